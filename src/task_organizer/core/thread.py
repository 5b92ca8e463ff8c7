# src/task_organizer/core/thread.py

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class ThreadSession:
    """
    Continuation token for one logical conversation.

    - adopt(token) overwrites whenever a response carries one (the server is the authority),
    - a response without a token keeps the previous one,
    - tokens are never synthesized here,
    - reset() drops the token so the next call starts a fresh, context-free conversation.
    """

    def __init__(self, name: str = "dialogue") -> None:
        self._name = name
        self._token: str | None = None

    def continuation_token(self) -> str | None:
        return self._token

    @property
    def active(self) -> bool:
        return self._token is not None

    def adopt(self, token: str | None) -> None:
        if not token:
            return
        if token != self._token:
            logger.debug("Thread %s: adopted token=%s (was %s)", self._name, token, self._token)
        self._token = token

    def reset(self) -> None:
        if self._token is not None:
            logger.debug("Thread %s: reset (dropped token=%s)", self._name, self._token)
        self._token = None

    def __repr__(self) -> str:
        return f"ThreadSession(name={self._name!r}, token={self._token!r})"
