# src/task_organizer/tasks/task_api.py

from __future__ import annotations

import logging
import random
import string
import time
from datetime import date
from typing import TYPE_CHECKING, Any

from ..core.ports import Clock
from .task_models import Task, TaskStatus, Urgency

if TYPE_CHECKING:
    from ..core.state import AppState

logger = logging.getLogger(__name__)

SUGGESTED_QUESTIONS: tuple[str, ...] = (
    "What are the key stakeholders for this task?",
    "Can you break down the main objectives?",
    "What are the dependencies between subtasks?",
    "What are the potential risks?",
    "How should we prioritize these subtasks?",
)

_ID_ALPHABET = string.digits + string.ascii_lowercase


class TimestampIdFactory:
    """
    Builds client-side ids as "<prefix>-<ms timestamp>-<9 random base36 chars>".

    Clock and RNG are injectable so tests get deterministic ids.
    """

    def __init__(self, *, clock: Clock = time.time, rng: random.Random | None = None) -> None:
        self._clock = clock
        self._rng = rng or random.Random()

    def __call__(self, prefix: str) -> str:
        ms = int(self._clock() * 1000)
        suffix = "".join(self._rng.choices(_ID_ALPHABET, k=9))
        return f"{prefix}-{ms}-{suffix}"


def deadline_urgency(deadline: date | None, today: date | None = None) -> Urgency | None:
    """
    <= 3 days (or overdue) -> HIGH, <= 7 days -> MEDIUM, otherwise LOW.
    No deadline -> None.
    """
    if deadline is None:
        return None
    today = today or date.today()
    days = (deadline - today).days
    if days <= 3:
        return Urgency.HIGH
    if days <= 7:
        return Urgency.MEDIUM
    return Urgency.LOW


async def create_task(state: AppState, task: Task) -> Task:
    """Create on the backend, then add the backend's version to the store."""
    created = await state.gateway.create_task(task)
    state.store.upsert(created)
    logger.info("Created task id=%s", created.id)
    return created


async def update_task_fields(state: AppState, task_id: str, **fields: Any) -> Task:
    wire = {k: (v.value if isinstance(v, TaskStatus) else v) for k, v in fields.items()}
    updated = await state.gateway.update_task(task_id, wire)
    state.store.upsert(updated)
    logger.info("Updated task id=%s fields=%s", task_id, sorted(wire))
    return updated


async def complete_task(state: AppState, task_id: str) -> Task:
    return await update_task_fields(state, task_id, status=TaskStatus.COMPLETED)


async def delete_task(state: AppState, task_id: str) -> bool:
    """Delete on the backend first; the store only changes when that succeeded."""
    await state.gateway.delete_task(task_id)
    state.close_view(task_id)
    removed = state.store.remove(task_id)
    logger.info("Deleted task id=%s (was_cached=%s)", task_id, removed)
    return removed
