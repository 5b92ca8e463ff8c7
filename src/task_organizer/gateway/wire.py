# src/task_organizer/gateway/wire.py

"""
Wire-shape normalization.

The reasoning service is not consistent about response shapes between call sites
(flat task list vs {"tasks": [...]}, "subtasks" vs nested "data.tasks",
"message" as a list or a single string). Everything is adapted here into one
canonical reply per call type, so the dialogue state machine never sees raw JSON.

Parsers raise GatewayError(kind="decode") on bodies they cannot interpret.
Individual malformed items inside an otherwise valid list are skipped (logged).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from ..core.errors import GatewayError
from ..tasks.task_models import (
    DEFAULT_ASSIGNEE,
    DEFAULT_REQUESTER,
    Priority,
    Subtask,
    Task,
    TaskStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExtractionReply:
    """process-message, status=success."""

    tasks: tuple[Task, ...]
    thread_id: str | None = None


@dataclass(frozen=True, slots=True)
class ClarificationReply:
    """process-message, status=needs_context."""

    questions: tuple[str, ...]
    thread_id: str | None = None


@dataclass(frozen=True, slots=True)
class DecompositionReply:
    """
    organize / ask-followup.

    subtasks is None when the response carried no subtask list at all
    (the store must stay untouched); an empty tuple means "no subtasks".
    """

    subtasks: tuple[Subtask, ...] | None
    messages: tuple[str, ...] = ()
    thread_id: str | None = None


def _decode_error(msg: str) -> GatewayError:
    return GatewayError(msg, kind="decode")


def _str(v: Any, default: str = "") -> str:
    if v is None:
        return default
    s = str(v).strip()
    return s or default


def _opt_str(v: Any) -> str | None:
    s = _str(v)
    return s or None


def parse_date(raw: Any) -> date | None:
    """Accept ISO dates and datetimes (with or without 'Z'); anything else -> None."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    s = str(raw).strip()
    if not s:
        return None
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        return None


def thread_id_of(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    return _opt_str(payload.get("threadId"))


def parse_task(raw: Any) -> Task:
    """
    Build a Task from a backend dict, applying the display defaults
    (requester "Unknown", assignee "Unassigned", status pending).

    A missing id is left empty; callers that need one synthesize it.
    """
    if not isinstance(raw, dict):
        raise _decode_error(f"task must be an object, got {type(raw).__name__}")

    return Task(
        id=_str(raw.get("id")),
        title=_str(raw.get("title") or raw.get("task_name"), "Untitled task"),
        description=_str(raw.get("description")),
        requester=_str(raw.get("requester"), DEFAULT_REQUESTER),
        assigned_to=_str(raw.get("assigned_to"), DEFAULT_ASSIGNEE),
        status=TaskStatus.from_wire(raw.get("status")),
        deadline=parse_date(raw.get("deadline")),
        parent_id=_opt_str(raw.get("parentId") or raw.get("parent_id")),
        request_date=parse_date(raw.get("request_date")),
    )


def parse_subtask(raw: Any) -> Subtask:
    if not isinstance(raw, dict):
        raise _decode_error(f"subtask must be an object, got {type(raw).__name__}")

    deps_raw = raw.get("dependencies")
    deps: tuple[str, ...] = ()
    if isinstance(deps_raw, list):
        deps = tuple(s for s in (_str(d) for d in deps_raw) if s)

    return Subtask(
        title=_str(raw.get("title") or raw.get("task_name"), "Untitled subtask"),
        description=_str(raw.get("description")),
        status=TaskStatus.from_wire(raw.get("status")),
        due_date=parse_date(raw.get("due_date") or raw.get("deadline")),
        priority=Priority.from_wire(raw.get("priority")),
        best_approach=_str(raw.get("best_approach")),
        assigned_to=_opt_str(raw.get("assigned_to")),
        dependencies=deps,
        id=_opt_str(raw.get("id")),
        parent_id=_opt_str(raw.get("parentId") or raw.get("parent_id")),
    )


def _parse_items(items: list[Any], parse: Any, what: str) -> list[Any]:
    out: list[Any] = []
    for i, item in enumerate(items):
        try:
            out.append(parse(item))
        except GatewayError:
            logger.warning("Skipping malformed %s at index %d: %r", what, i, item)
    return out


def parse_task_list(payload: Any) -> list[Task]:
    """GET tasks -> list of tasks. Also accepts {"tasks": [...]}."""
    items = _task_sequence(payload)
    if items is None:
        raise _decode_error("task list response is not a list")
    return _parse_items(items, parse_task, "task")


def parse_subtask_list(payload: Any) -> list[Subtask]:
    """GET tasks/{id}/subtasks -> list of subtasks."""
    items = _task_sequence(payload)
    if items is None:
        raise _decode_error("subtask list response is not a list")
    return _parse_items(items, parse_subtask, "subtask")


def _task_sequence(data: Any) -> list[Any] | None:
    """Either a bare list, or an object wrapping one under "tasks"."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("tasks"), list):
        return data["tasks"]
    return None


def parse_process_message(payload: Any) -> ExtractionReply | ClarificationReply:
    if not isinstance(payload, dict):
        raise _decode_error("process-message response is not an object")

    status = _str(payload.get("status")).lower()
    thread_id = thread_id_of(payload)
    data = payload.get("data")

    if status == "success":
        items = _task_sequence(data)
        if items is None:
            # An object without a task list is an extraction of nothing.
            if data is not None and not isinstance(data, dict):
                raise _decode_error("success response carries no task sequence")
            items = []
        tasks = _parse_items(items, parse_task, "task")
        return ExtractionReply(tasks=tuple(tasks), thread_id=thread_id)

    if status == "needs_context":
        raw_q = data.get("questions") if isinstance(data, dict) else None
        questions = tuple(q for q in (_str(x) for x in raw_q or []) if q) if isinstance(raw_q, list) else ()
        return ClarificationReply(questions=questions, thread_id=thread_id)

    raise _decode_error(f"unknown process-message status: {status or '<missing>'}")


def _messages(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        s = raw.strip()
        return (s,) if s else ()
    if isinstance(raw, list):
        return tuple(s for s in (_str(m) for m in raw) if s)
    return ()


def parse_decomposition(payload: Any) -> DecompositionReply:
    """organize / ask-followup response."""
    if not isinstance(payload, dict):
        raise _decode_error("decomposition response is not an object")

    raw_subtasks: list[Any] | None = None
    if isinstance(payload.get("subtasks"), list):
        raw_subtasks = payload["subtasks"]
    else:
        nested = _task_sequence(payload.get("data")) if isinstance(payload.get("data"), dict) else None
        if nested is not None:
            raw_subtasks = nested

    subtasks: tuple[Subtask, ...] | None = None
    if raw_subtasks is not None:
        subtasks = tuple(_parse_items(raw_subtasks, parse_subtask, "subtask"))

    return DecompositionReply(
        subtasks=subtasks,
        messages=_messages(payload.get("message")),
        thread_id=thread_id_of(payload),
    )
