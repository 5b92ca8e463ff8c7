# src/task_organizer/core/errors.py

"""
Error taxonomy.

- GatewayError: transport/decoding failures. Always recoverable; dialogues catch it.
- DialogueBusyError / EmptyInputError / DialogueStateError: rejected calls (raised to the caller).
- InvariantError: a caller tried to break the task hierarchy (parent reassignment).

Cancellation is not an error and has no class here: it is plain asyncio cancellation.
"""

from __future__ import annotations

from typing import Literal

GatewayErrorKind = Literal["connection", "timeout", "http_status", "decode"]


class TaskOrganizerError(Exception):
    """Base class for all project errors."""


class GatewayError(TaskOrganizerError):
    def __init__(
        self,
        message: str,
        *,
        kind: GatewayErrorKind,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class DialogueBusyError(TaskOrganizerError):
    """A call is already in flight for this dialogue."""


class EmptyInputError(TaskOrganizerError, ValueError):
    pass


class DialogueStateError(TaskOrganizerError):
    pass


class InvariantError(TaskOrganizerError):
    pass


def friendly_gateway_error_message(err: Exception) -> str:
    if isinstance(err, GatewayError):
        if err.kind == "connection":
            return "Cannot reach the task service. Check TASKORG_API_URL and that the backend is running."
        if err.kind == "timeout":
            return "The task service timed out. Try again in a moment."
        if err.kind == "http_status":
            if err.status_code is not None and err.status_code >= 500:
                return f"The task service failed (HTTP {err.status_code}). Try again later."
            return f"The task service rejected the request (HTTP {err.status_code})."
        if err.kind == "decode":
            return "The task service returned a response that could not be understood."
    msg = str(err).strip()
    return msg or "Unexpected error."
