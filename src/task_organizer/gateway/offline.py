# src/task_organizer/gateway/offline.py

from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import date, timedelta
from typing import Any

from ..core.errors import GatewayError
from ..tasks.task_models import Priority, Subtask, Task, TaskStatus
from .wire import ClarificationReply, DecompositionReply, ExtractionReply, parse_date


class OfflineGateway:
    """
    Offline deterministic gateway used for demos when no task service is configured.

    Behavior:
    - Short messages (fewer than 4 words) -> needs_context with clarifying questions
    - Longer messages -> one task per non-empty line
    - organize -> three generic subtasks + one message
    - ask-followup -> echoes the question, keeps subtasks as they are
    - CRUD works on an in-memory dict
    """

    MIN_WORDS = 4

    def __init__(self, *, today: date | None = None) -> None:
        self._today = today or date.today()
        self._tasks: dict[str, Task] = {}
        self._subtasks: dict[str, list[Subtask]] = {}
        self._ids = itertools.count(1)
        self._threads = itertools.count(1)

    def _thread(self, thread_id: str | None) -> str:
        return thread_id or f"offline-{next(self._threads)}"

    async def aclose(self) -> None:
        return

    # ---- reasoning calls ----

    async def process_message(
        self, message: str, thread_id: str | None = None
    ) -> ExtractionReply | ClarificationReply:
        tid = self._thread(thread_id)
        if len(message.split()) < self.MIN_WORDS:
            return ClarificationReply(
                questions=("Who is this for?", "When is it due?"),
                thread_id=tid,
            )

        tasks: list[Task] = []
        for line in message.splitlines():
            title = line.strip()
            if not title:
                continue
            task = Task(
                id=f"offline-task-{next(self._ids)}",
                title=title[:80],
                description=title,
                deadline=self._today + timedelta(days=7),
                request_date=self._today,
            )
            self._tasks[task.id] = task
            tasks.append(task)
        return ExtractionReply(tasks=tuple(tasks), thread_id=tid)

    async def organize_task(self, task: Task, thread_id: str | None = None) -> DecompositionReply:
        due = task.deadline or self._today + timedelta(days=7)
        steps = (
            ("Clarify scope", "Confirm what done looks like with the requester.", Priority.HIGH),
            ("Do the work", task.description or task.title, Priority.MEDIUM),
            ("Review and hand over", "Check the result and send it to the requester.", Priority.LOW),
        )
        subtasks = tuple(
            Subtask(
                title=title,
                description=desc,
                due_date=due,
                priority=prio,
                best_approach="Offline demo suggestion.",
            )
            for title, desc, prio in steps
        )
        return DecompositionReply(
            subtasks=subtasks,
            messages=(f"Offline demo mode: split '{task.title}' into {len(subtasks)} steps.",),
            thread_id=self._thread(thread_id),
        )

    async def ask_followup(
        self, task_id: str, question: str, thread_id: str | None = None
    ) -> DecompositionReply:
        return DecompositionReply(
            subtasks=None,
            messages=(f"Offline demo mode: no reasoning service is configured. You asked: {question}",),
            thread_id=self._thread(thread_id),
        )

    # ---- CRUD ----

    def _require(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise GatewayError(f"task {task_id} not found", kind="http_status", status_code=404)
        return task

    async def list_tasks(self) -> list[Task]:
        return list(self._tasks.values())

    async def get_task(self, task_id: str) -> Task:
        return self._require(task_id)

    async def list_subtasks(self, task_id: str) -> list[Subtask]:
        return list(self._subtasks.get(task_id, []))

    async def create_task(self, task: Task) -> Task:
        created = task if task.id else replace(task, id=f"offline-task-{next(self._ids)}")
        self._tasks[created.id] = created
        return created

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> Task:
        task = self._require(task_id)
        changes: dict[str, Any] = {}
        for key in ("title", "description", "requester", "assigned_to"):
            if key in fields:
                changes[key] = str(fields[key])
        if "status" in fields:
            changes["status"] = TaskStatus.from_wire(fields["status"])
        if "deadline" in fields:
            changes["deadline"] = parse_date(fields["deadline"])
        updated = replace(task, **changes)
        self._tasks[task_id] = updated
        return updated

    async def replace_task(self, task: Task) -> Task:
        self._require(task.id)
        self._tasks[task.id] = task
        return task

    async def delete_task(self, task_id: str) -> None:
        self._require(task_id)
        del self._tasks[task_id]
        self._subtasks.pop(task_id, None)

    async def save_subtask(self, parent_id: str, subtask: Subtask) -> None:
        self._require(parent_id)
        self._subtasks.setdefault(parent_id, []).append(subtask)
