# src/task_organizer/core/driver.py

"""
Conversation driver.

One dialogue state machine, two front ends:
- MessageIngestion: unstructured text -> extracted tasks (or clarifying questions),
- TaskView: one task -> subtasks, plus follow-up Q&A turns.

Both share ConversationDriver, which owns:
- the in-flight guard (at most one call per dialogue; a second one is rejected, not queued),
- the thread continuation token (echoed on every call, adopted from every reply),
- the settle-always cleanup (the busy flag clears on success, business error and transport failure),
- the failure boundary (gateway errors never escape a dialogue; they become
  an error message or a synthetic turn, and the store stays untouched).

Only the endpoint, request shape and reply interpretation differ between the two.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import replace
from enum import StrEnum
from typing import TypeVar

from ..gateway.wire import ClarificationReply, DecompositionReply, ExtractionReply
from ..tasks.task_models import Subtask, Task
from ..tasks.task_store import TaskHierarchyStore
from .errors import (
    DialogueBusyError,
    DialogueStateError,
    EmptyInputError,
    GatewayError,
    friendly_gateway_error_message,
)
from .ports import Clock, IdFactory, InteractionGateway
from .thread import ThreadSession
from .turns import ORGANIZE_QUESTION, Turn, TurnLog

logger = logging.getLogger(__name__)

R = TypeVar("R")

INGESTION_ERROR = "Failed to process message"
ORGANIZE_ERROR = "Sorry, I encountered an error while organizing the task."
ORGANIZE_DONE = "I've organized this task into subtasks."
FOLLOWUP_ERROR = "Sorry, I encountered an error while processing your request."
FOLLOWUP_ACK = "Got it. I've taken that into account."


class ConversationDriver:
    def __init__(
        self,
        name: str,
        gateway: InteractionGateway,
        store: TaskHierarchyStore,
        *,
        new_id: IdFactory,
        thread: ThreadSession | None = None,
    ) -> None:
        self.name = name
        self.gateway = gateway
        self.store = store
        self.thread = thread or ThreadSession(name)
        self._new_id = new_id
        self._in_flight = False

    @property
    def busy(self) -> bool:
        return self._in_flight

    def _ensure_idle(self) -> None:
        if self._in_flight:
            raise DialogueBusyError(f"{self.name}: a request is already in progress")

    async def _exchange(
        self, call: Callable[[str | None], Awaitable[R]]
    ) -> tuple[R | None, Exception | None]:
        """
        Run one gateway call for this dialogue.

        Returns (reply, None) on success and (None, error) on any failure.
        Cancellation is not a failure and propagates unchanged.
        """
        self._ensure_idle()
        self._in_flight = True
        t0 = time.monotonic()
        try:
            reply = await call(self.thread.continuation_token())
        except GatewayError as e:
            logger.warning(
                "%s: gateway call failed kind=%s status=%s (%.2fs): %s",
                self.name,
                e.kind,
                e.status_code,
                time.monotonic() - t0,
                e,
            )
            return None, e
        except Exception as e:
            logger.exception("%s: unexpected failure during gateway call", self.name)
            return None, e
        finally:
            self._in_flight = False

        self.thread.adopt(getattr(reply, "thread_id", None))
        logger.debug("%s: call settled in %.2fs", self.name, time.monotonic() - t0)
        return reply, None


class IngestionPhase(StrEnum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    TASKS_READY = "tasks_ready"
    NEEDS_CONTEXT = "needs_context"
    FAILED = "failed"


class MessageIngestion(ConversationDriver):
    """
    Mode A: paste text, get tasks.

    `phase` is the outcome of the last submission; `busy` tells whether one is in flight.
    A needs_context reply keeps the thread token so the next submission continues
    the same clarification dialogue.
    """

    def __init__(
        self,
        gateway: InteractionGateway,
        store: TaskHierarchyStore,
        *,
        new_id: IdFactory,
        thread: ThreadSession | None = None,
    ) -> None:
        super().__init__("ingestion", gateway, store, new_id=new_id, thread=thread)
        self.draft = ""
        self.phase = IngestionPhase.IDLE
        self.questions: tuple[str, ...] = ()
        self.error: str | None = None
        self.error_detail: str | None = None
        self.last_extracted: tuple[Task, ...] = ()

    @property
    def continuing(self) -> bool:
        return self.thread.active

    @property
    def needs_context(self) -> bool:
        return self.phase == IngestionPhase.NEEDS_CONTEXT

    async def submit(self, message: str | None = None) -> IngestionPhase:
        if message is not None:
            self.draft = message
        text = self.draft
        if not text.strip():
            raise EmptyInputError("message is empty")
        self._ensure_idle()

        self.phase = IngestionPhase.SUBMITTING
        self.error = None
        self.error_detail = None
        logger.info("Submitting message (%d chars, continuing=%s)", len(text), self.continuing)

        reply, err = await self._exchange(lambda tid: self.gateway.process_message(text, tid))

        if err is not None:
            self.error = INGESTION_ERROR
            self.error_detail = friendly_gateway_error_message(err)
            self.phase = IngestionPhase.FAILED
            return self.phase

        if isinstance(reply, ExtractionReply):
            tasks = tuple(self._with_id(t) for t in reply.tasks)
            self.store.append_extracted(tasks)
            self.last_extracted = tasks
            self.questions = ()
            self.draft = ""
            self.phase = IngestionPhase.TASKS_READY
            logger.info("Extraction produced %d tasks", len(tasks))
        elif isinstance(reply, ClarificationReply):
            self.questions = reply.questions
            self.phase = IngestionPhase.NEEDS_CONTEXT
            logger.info("Service needs more context (%d questions)", len(reply.questions))
        else:
            logger.error("Unexpected process-message reply type: %r", type(reply).__name__)
            self.error = INGESTION_ERROR
            self.phase = IngestionPhase.FAILED

        return self.phase

    def reset(self) -> None:
        """Drop the conversation context: next submission starts a new thread."""
        self.thread.reset()
        self.questions = ()
        self.error = None
        self.error_detail = None
        self.phase = IngestionPhase.IDLE

    def _with_id(self, task: Task) -> Task:
        if task.id:
            return task
        return replace(task, id=self._new_id("task"))


class ViewState(StrEnum):
    NOT_STARTED = "not_started"
    LOADING = "loading"
    ORGANIZING = "organizing"
    ORGANIZED = "organized"
    CLOSED = "closed"


class TaskView(ConversationDriver):
    """
    Mode B: decomposition dialogue for one open task.

    Lifecycle: open() -> (saved subtasks? ORGANIZED : NOT_STARTED) -> organize() -> ORGANIZED,
    then ask() cycles within ORGANIZED. close() cancels the subtask prefetch and drops
    the thread token; a closed view accepts no further calls.

    Turns live only as long as the view.
    """

    def __init__(
        self,
        task: Task,
        gateway: InteractionGateway,
        store: TaskHierarchyStore,
        *,
        new_id: IdFactory,
        clock: Clock = time.time,
        persist_generated_subtasks: bool = True,
    ) -> None:
        super().__init__(f"task:{task.id}", gateway, store, new_id=new_id)
        self.task = task
        self.state = ViewState.NOT_STARTED
        self.turns = TurnLog(clock=clock)
        self._persist = persist_generated_subtasks
        self._prefetch: asyncio.Task[None] | None = None
        self._closed = False

    # ---- reads ----

    @property
    def subtasks(self) -> tuple[Subtask, ...]:
        return self.store.subtasks(self.task.id)

    @property
    def answering(self) -> bool:
        return self.busy and self.state == ViewState.ORGANIZED

    @property
    def closed(self) -> bool:
        return self._closed

    # ---- lifecycle ----

    async def open(self) -> ViewState:
        """Read-through load of saved subtasks; decides the initial state."""
        self._ensure_open()
        if self._prefetch is not None:
            raise DialogueStateError(f"{self.name}: view already opened")

        if self.store.has_subtasks(self.task.id):
            self.state = ViewState.ORGANIZED
            return self.state

        self.state = ViewState.LOADING
        self._prefetch = asyncio.create_task(self._load_saved_subtasks())
        try:
            await self._prefetch
        except asyncio.CancelledError:
            if not self._closed:
                raise
        return self.state

    async def _load_saved_subtasks(self) -> None:
        try:
            saved = await self.gateway.list_subtasks(self.task.id)
        except asyncio.CancelledError:
            if self._closed:
                logger.debug("%s: subtask prefetch cancelled (view closed)", self.name)
                return
            self.state = ViewState.NOT_STARTED
            raise
        except GatewayError as e:
            logger.warning("%s: could not load saved subtasks: %s", self.name, e)
            saved = []

        if self._closed:
            logger.debug("%s: discarding subtask prefetch result (view closed)", self.name)
            return

        if saved:
            self.store.replace_subtasks(self.task.id, self._bind(saved, synthesize_ids=False))
            self.state = ViewState.ORGANIZED
            logger.info("%s: opened with %d saved subtasks", self.name, len(saved))
        else:
            self.state = ViewState.NOT_STARTED

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._prefetch is not None and not self._prefetch.done():
            self._prefetch.cancel()
        self.thread.reset()
        self.state = ViewState.CLOSED
        logger.debug("%s: closed", self.name)

    def _ensure_open(self) -> None:
        if self._closed:
            raise DialogueStateError(f"{self.name}: view is closed")

    # ---- dialogue ----

    async def organize(self) -> ViewState:
        self._ensure_open()
        if self.state == ViewState.LOADING:
            raise DialogueStateError(f"{self.name}: still loading saved subtasks")
        self._ensure_idle()

        previous = self.state
        self.state = ViewState.ORGANIZING
        logger.info("%s: organizing", self.name)

        reply, err = await self._exchange(lambda tid: self.gateway.organize_task(self.task, tid))

        if err is not None or not isinstance(reply, DecompositionReply):
            self.turns.append(ORGANIZE_QUESTION, ORGANIZE_ERROR)
            self.state = ViewState.ORGANIZED if previous == ViewState.ORGANIZED else ViewState.NOT_STARTED
            return self.state

        generated: tuple[Subtask, ...] = ()
        if reply.subtasks is not None:
            generated = self._bind(reply.subtasks, synthesize_ids=True)
            self.store.replace_subtasks(self.task.id, generated)

        if reply.messages:
            self.turns.append_answers(ORGANIZE_QUESTION, reply.messages)
        else:
            self.turns.append(ORGANIZE_QUESTION, ORGANIZE_DONE)

        self.state = ViewState.ORGANIZED
        logger.info("%s: organized (%d subtasks)", self.name, len(self.subtasks))

        if generated and self._persist:
            await self._persist_generated(generated)
        return self.state

    async def ask(self, question: str) -> Turn:
        self._ensure_open()
        q = (question or "").strip()
        if not q:
            raise EmptyInputError("question is empty")
        if self.state != ViewState.ORGANIZED:
            raise DialogueStateError(f"{self.name}: organize the task before asking follow-ups")
        self._ensure_idle()

        # Phase one: show the question immediately.
        pending = self.turns.append_pending(q)

        reply, err = await self._exchange(
            lambda tid: self.gateway.ask_followup(self.task.id, q, tid)
        )

        # Phase two: resolve the placeholder.
        if err is not None or not isinstance(reply, DecompositionReply):
            return self.turns.resolve(pending.id, FOLLOWUP_ERROR)

        if reply.subtasks is not None:
            self.store.replace_subtasks(self.task.id, self._bind(reply.subtasks, synthesize_ids=True))

        first, *rest = reply.messages or (FOLLOWUP_ACK,)
        return self.turns.resolve(pending.id, first, rest)

    # ---- helpers ----

    def _bind(self, subtasks: Iterable[Subtask], *, synthesize_ids: bool) -> tuple[Subtask, ...]:
        out: list[Subtask] = []
        for st in subtasks:
            if st.parent_id is not None and st.parent_id != self.task.id:
                logger.warning("%s: skipping subtask bound to another parent (%s)", self.name, st.parent_id)
                continue
            sid = st.id
            if sid is None and synthesize_ids:
                sid = self._new_id(self.task.id)
            out.append(
                replace(
                    st,
                    id=sid,
                    parent_id=st.parent_id or self.task.id,
                    assigned_to=st.assigned_to or self.task.assigned_to,
                )
            )
        return tuple(out)

    async def _persist_generated(self, subtasks: Iterable[Subtask]) -> None:
        """Best-effort: a failed save is logged and never changes the dialogue outcome."""
        saved = 0
        for st in subtasks:
            try:
                await self.gateway.save_subtask(self.task.id, st)
                saved += 1
            except GatewayError as e:
                logger.warning("%s: failed to persist subtask id=%s: %s", self.name, st.id, e)
        logger.debug("%s: persisted %d generated subtasks", self.name, saved)
