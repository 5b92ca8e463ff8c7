# src/task_organizer/core/state.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_store import TaskHierarchyStore
from .driver import MessageIngestion, TaskView
from .errors import DialogueStateError
from .ports import Clock, IdFactory, InteractionGateway

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    gateway: InteractionGateway
    store: TaskHierarchyStore
    ingestion: MessageIngestion
    new_id: IdFactory
    clock: Clock = time.time

    # Open task views by task id; at most one is "active" for the console.
    views: dict[str, TaskView] = field(default_factory=dict)
    active_view_id: str | None = None

    # Last store-level error worth showing (e.g. initial load failure).
    banner: str | None = None

    @property
    def active_view(self) -> TaskView | None:
        if self.active_view_id is None:
            return None
        return self.views.get(self.active_view_id)

    async def open_view(self, task_id: str) -> TaskView:
        """Open (or re-activate) the task view for `task_id`."""
        view = self.views.get(task_id)
        if view is not None and not view.closed:
            self.active_view_id = task_id
            return view

        task = self.store.get(task_id)
        if task is None:
            raise DialogueStateError(f"Unknown task id: {task_id}")

        view = TaskView(
            task,
            self.gateway,
            self.store,
            new_id=self.new_id,
            clock=self.clock,
            persist_generated_subtasks=bool(getattr(self.settings, "persist_generated_subtasks", True)),
        )
        self.views[task_id] = view
        self.active_view_id = task_id
        await view.open()
        logger.info("Opened task view id=%s state=%s", task_id, view.state.value)
        return view

    def close_view(self, task_id: str | None = None) -> bool:
        task_id = task_id or self.active_view_id
        if task_id is None:
            return False
        view = self.views.pop(task_id, None)
        if self.active_view_id == task_id:
            self.active_view_id = None
        if view is None:
            return False
        view.close()
        return True

    def close_all_views(self) -> None:
        for task_id in list(self.views):
            self.close_view(task_id)
