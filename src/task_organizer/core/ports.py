# src/task_organizer/core/ports.py

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the HTTP backend / offline demo swappable and makes testing easier.

Every gateway method either returns a canonical reply (see gateway/wire.py) or
raises GatewayError. Cancellation is ordinary asyncio cancellation.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from ..gateway.wire import ClarificationReply, DecompositionReply, ExtractionReply
from ..tasks.task_models import Subtask, Task

IdFactory = Callable[[str], str]
# Builds a new identifier from a prefix (the parent task id for subtasks).

Clock = Callable[[], float]
# UNIX timestamp source.


class TaskSource(Protocol):
    """The part of the backend the task store needs for bulk loads."""

    async def list_tasks(self) -> list[Task]: ...


class InteractionGateway(TaskSource, Protocol):
    """Reasoning service + task CRUD backend, reached over request/response calls."""

    # Reasoning calls
    async def process_message(
        self, message: str, thread_id: str | None = None
    ) -> ExtractionReply | ClarificationReply: ...

    async def organize_task(
        self, task: Task, thread_id: str | None = None
    ) -> DecompositionReply: ...

    async def ask_followup(
        self, task_id: str, question: str, thread_id: str | None = None
    ) -> DecompositionReply: ...

    # CRUD
    async def get_task(self, task_id: str) -> Task: ...
    async def list_subtasks(self, task_id: str) -> list[Subtask]: ...
    async def create_task(self, task: Task) -> Task: ...
    async def update_task(self, task_id: str, fields: dict[str, Any]) -> Task: ...
    async def replace_task(self, task: Task) -> Task: ...
    async def delete_task(self, task_id: str) -> None: ...
    async def save_subtask(self, parent_id: str, subtask: Subtask) -> None: ...

    async def aclose(self) -> None: ...
