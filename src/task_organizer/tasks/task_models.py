# src/task_organizer/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any

DEFAULT_REQUESTER = "Unknown"
DEFAULT_ASSIGNEE = "Unassigned"


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def from_wire(cls, raw: Any) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.PENDING


class Priority(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def from_wire(cls, raw: Any) -> Priority:
        s = str(raw or "").strip().lower()
        for p in cls:
            if p.value.lower() == s:
                return p
        return cls.MEDIUM


class Urgency(StrEnum):
    """How close a deadline is (used for highlighting in task lists)."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True, slots=True)
class Task:
    """
    A unit of work.

    Immutable: the store swaps whole collections and parent_id is set once at creation.
    """

    id: str
    title: str
    description: str = ""
    requester: str = DEFAULT_REQUESTER
    assigned_to: str = DEFAULT_ASSIGNEE
    status: TaskStatus = TaskStatus.PENDING
    deadline: date | None = None
    parent_id: str | None = None
    request_date: date | None = None

    @property
    def is_subtask(self) -> bool:
        return self.parent_id is not None

    def to_wire(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "requester": self.requester,
            "assigned_to": self.assigned_to,
            "status": self.status.value,
            "deadline": self.deadline.isoformat() if self.deadline else None,
        }
        if self.parent_id is not None:
            out["parentId"] = self.parent_id
        if self.request_date is not None:
            out["request_date"] = self.request_date.isoformat()
        return out


@dataclass(frozen=True, slots=True)
class Subtask:
    """
    A refinement of a parent Task produced by the decomposition dialogue.

    id may be None for subtasks loaded from a backend that does not assign one;
    display falls back to the position in the current subtree.
    """

    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    due_date: date | None = None
    priority: Priority = Priority.MEDIUM
    best_approach: str = ""
    assigned_to: str | None = None
    dependencies: tuple[str, ...] = ()
    id: str | None = None
    parent_id: str | None = None

    def to_wire(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "task_name": self.title,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "priority": self.priority.value,
            "best_approach": self.best_approach,
            "dependencies": list(self.dependencies),
        }
        if self.assigned_to is not None:
            out["assigned_to"] = self.assigned_to
        if self.id is not None:
            out["id"] = self.id
        if self.parent_id is not None:
            out["parentId"] = self.parent_id
        return out
