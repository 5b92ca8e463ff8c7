# src/task_organizer/core/turns.py

"""
Question/answer turns of a decomposition dialogue.

The log is append-only. The only in-place change allowed is the two-phase
resolution of a pending turn (awaiting -> answered); extra answers that arrive
with it are inserted right after it, in arrival order. Nothing is ever deleted.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, replace

from .ports import Clock

ORGANIZE_QUESTION = "Help me organize this task"
ADDITIONAL_INFO = "Additional information"


@dataclass(frozen=True, slots=True)
class Turn:
    id: int
    question: str
    answer: str | None
    timestamp: float
    awaiting_response: bool = False


class TurnLog:
    def __init__(self, *, clock: Clock = time.time) -> None:
        self._clock = clock
        self._turns: list[Turn] = []
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._turns)

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def has_pending(self) -> bool:
        return any(t.awaiting_response for t in self._turns)

    def _new(self, question: str, answer: str | None, awaiting: bool) -> Turn:
        turn = Turn(
            id=self._next_id,
            question=question,
            answer=answer,
            timestamp=self._clock(),
            awaiting_response=awaiting,
        )
        self._next_id += 1
        return turn

    def append(self, question: str, answer: str) -> Turn:
        turn = self._new(question, answer, awaiting=False)
        self._turns.append(turn)
        return turn

    def append_answers(self, question: str, answers: Iterable[str]) -> list[Turn]:
        """
        First answer goes to `question`; every further one becomes an
        "Additional information" turn.
        """
        out: list[Turn] = []
        for i, answer in enumerate(answers):
            out.append(self.append(question if i == 0 else ADDITIONAL_INFO, answer))
        return out

    def append_pending(self, question: str) -> Turn:
        turn = self._new(question, None, awaiting=True)
        self._turns.append(turn)
        return turn

    def resolve(self, turn_id: int, answer: str, extra_answers: Iterable[str] = ()) -> Turn:
        """Phase two: answer a pending turn in place, then insert extra answers after it."""
        idx = self._index_of(turn_id)
        current = self._turns[idx]
        if not current.awaiting_response:
            raise ValueError(f"turn {turn_id} is not awaiting a response")

        resolved = replace(current, answer=answer, awaiting_response=False)
        extras = [self._new(ADDITIONAL_INFO, a, awaiting=False) for a in extra_answers]

        # Single list swap: readers never observe a half-applied resolution.
        self._turns = [*self._turns[:idx], resolved, *extras, *self._turns[idx + 1 :]]
        return resolved

    def get(self, turn_id: int) -> Turn:
        return self._turns[self._index_of(turn_id)]

    def _index_of(self, turn_id: int) -> int:
        for i, t in enumerate(self._turns):
            if t.id == turn_id:
                return i
        raise KeyError(turn_id)
