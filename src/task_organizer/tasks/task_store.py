# src/task_organizer/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..core.errors import GatewayError, InvariantError
from ..core.ports import TaskSource
from .task_models import Subtask, Task

logger = logging.getLogger(__name__)


class TaskHierarchyStore:
    """
    In-memory task hierarchy: top-level tasks + per-parent subtask collections.

    Persistence is owned by the backend; this is the client-side view of it.

    Concurrency:
    - the store is the only state shared between dialogues,
    - every mutation swaps a whole tuple (top-level list or one parent's subtree),
      so under single-threaded asyncio scheduling no reader ever sees a partial update.

    Duplicate ids in appended tasks are kept side by side; get() returns the
    latest entry, matching what a reload from the backend would show.
    """

    def __init__(self, source: TaskSource | None = None) -> None:
        self._source = source
        self._tasks: tuple[Task, ...] = ()
        self._subtasks: dict[str, tuple[Subtask, ...]] = {}

    # ---- reads ----

    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Task | None:
        for t in reversed(self._tasks):
            if t.id == task_id:
                return t
        return None

    def subtasks(self, parent_id: str) -> tuple[Subtask, ...]:
        return self._subtasks.get(parent_id, ())

    def has_subtasks(self, parent_id: str) -> bool:
        return bool(self._subtasks.get(parent_id))

    # ---- mutations ----

    async def load_all(self) -> tuple[Task, ...]:
        """
        Replace the top-level collection from the backend.

        Fails open: on GatewayError the previous collection is kept and the error
        is re-raised so the caller can show it.
        """
        if self._source is None:
            raise RuntimeError("TaskHierarchyStore has no task source to load from.")
        try:
            fetched = await self._source.list_tasks()
        except GatewayError:
            logger.warning("Task load failed; keeping %d cached tasks.", len(self._tasks))
            raise
        self._tasks = tuple(fetched)
        logger.info("Loaded %d tasks.", len(self._tasks))
        return self._tasks

    def append_extracted(self, tasks: Iterable[Task]) -> None:
        new = tuple(tasks)
        if not new:
            return
        known = {t.id for t in self._tasks}
        dup = [t.id for t in new if t.id in known]
        if dup:
            logger.warning("Appending tasks with already known ids: %s", ", ".join(dup))
        self._tasks = (*self._tasks, *new)
        logger.info("Appended %d extracted tasks (total=%d).", len(new), len(self._tasks))

    def replace_subtasks(self, parent_id: str, subtasks: Iterable[Subtask]) -> None:
        """
        Authoritative replace of the whole subtree of `parent_id`. No partial merges.

        Subtasks already bound to another parent are rejected: a parent
        reference is set once and never reassigned.
        """
        if not parent_id:
            raise ValueError("parent_id is required")
        new = tuple(subtasks)
        for st in new:
            if st.parent_id is not None and st.parent_id != parent_id:
                raise InvariantError(
                    f"subtask {st.id or st.title!r} belongs to {st.parent_id}, not {parent_id}"
                )
        self._subtasks = {**self._subtasks, parent_id: new}
        logger.debug("Replaced subtasks parent=%s count=%d", parent_id, len(new))

    def upsert(self, task: Task) -> None:
        """Replace every entry with task.id by `task` (or append it)."""
        if any(t.id == task.id for t in self._tasks):
            self._tasks = tuple(task if t.id == task.id else t for t in self._tasks)
        else:
            self._tasks = (*self._tasks, task)

    def remove(self, task_id: str) -> bool:
        before = len(self._tasks)
        self._tasks = tuple(t for t in self._tasks if t.id != task_id)
        if task_id in self._subtasks:
            self._subtasks = {k: v for k, v in self._subtasks.items() if k != task_id}
        return len(self._tasks) != before
