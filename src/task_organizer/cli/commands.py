# src/task_organizer/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import date
from typing import cast

from ..core.driver import ViewState
from ..core.errors import DialogueStateError
from ..core.state import AppState
from ..core.turns import Turn
from ..tasks import task_api
from ..tasks.task_api import SUGGESTED_QUESTIONS, deadline_urgency
from ..tasks.task_models import Subtask, Task

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be plain functions or coroutines.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            result = await result
        return cast(str, result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting ----


def format_task_line(index: int, task: Task, today: date | None = None) -> str:
    urgency = deadline_urgency(task.deadline, today)
    mark = f"[{urgency.value.upper()}] " if urgency else ""
    due = f"due {task.deadline.isoformat()}" if task.deadline else "no deadline"
    return (
        f"#{index} {mark}{task.title} (id={task.id}) | {due} | "
        f"{task.status.value} | assigned to {task.assigned_to}"
    )


def format_subtasks(subtasks: Iterable[Subtask]) -> str:
    lines: list[str] = []
    for i, st in enumerate(subtasks, start=1):
        label = st.id or f"#{i}"
        due = st.due_date.isoformat() if st.due_date else "no due date"
        lines.append(f"  {i}. [{st.priority.value}] {st.title} ({label}, {due}, {st.status.value})")
        if st.description:
            lines.append(f"     {st.description}")
        if st.best_approach:
            lines.append(f"     approach: {st.best_approach}")
        if st.assigned_to:
            lines.append(f"     assigned to: {st.assigned_to}")
        if st.dependencies:
            lines.append(f"     depends on: {', '.join(st.dependencies)}")
    return "\n".join(lines) if lines else "  (no subtasks)"


def format_turn(turn: Turn) -> str:
    answer = "... thinking" if turn.awaiting_response else (turn.answer or "")
    return f"Q: {turn.question}\nA: {answer}"


def format_turns(turns: Iterable[Turn]) -> str:
    out = "\n\n".join(format_turn(t) for t in turns)
    return out or "(no conversation yet)"


def resolve_task_id(state: AppState, ref: str) -> str:
    """
    Accept "#3" (position in /tasks), a literal task id, or a bare "3".

    A bare number is an id when a task has that id, otherwise a position.
    """
    raw = ref.strip()
    if not raw.startswith("#") and state.store.get(raw) is not None:
        return raw
    pos = raw[1:] if raw.startswith("#") else raw
    if pos.isdigit():
        tasks = state.store.tasks()
        n = int(pos)
        if 1 <= n <= len(tasks):
            return tasks[n - 1].id
        if raw.startswith("#"):
            raise DialogueStateError(f"No task at position {raw}.")
    if state.store.get(raw) is None:
        raise DialogueStateError(f"Unknown task: {raw}")
    return raw


def _require_view(state: AppState):
    view = state.active_view
    if view is None:
        raise DialogueStateError("No task is open. Use /open <id|#n> first.")
    return view


def describe_view(state: AppState) -> str:
    view = _require_view(state)
    task = view.task
    header = [
        f"{task.title} (id={task.id})",
        f"Requested by {task.requester} | assigned to {task.assigned_to} | {task.status.value}",
    ]
    if task.deadline:
        header.append(f"Deadline: {task.deadline.isoformat()}")
    if task.description:
        header.append(task.description)

    if view.state == ViewState.NOT_STARTED:
        header.append("Use /organize to break this task into subtasks.")
    elif view.state == ViewState.ORGANIZED:
        header.append("Subtasks:")
        header.append(format_subtasks(view.subtasks))
        header.append("Ask follow-up questions by typing them (see /suggest).")
    else:
        header.append(f"State: {view.state.value}")
    return "\n".join(header)


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    s = state.settings
    backend = getattr(s, "api_url", "") or "offline demo"
    view = state.active_view
    lines = [
        "Status:",
        f"  Backend: {backend}",
        f"  Tasks cached: {len(state.store)}",
        f"  Conversation: {'continuing' if state.ingestion.continuing else 'new'}",
        f"  Open task: {view.task.id + ' (' + view.state.value + ')' if view else 'none'}",
    ]
    if state.banner:
        lines.append(f"  Notice: {state.banner}")
    return "\n".join(lines)


def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = state.store.tasks()
    if not tasks:
        return "No tasks yet. Paste a message to extract some."
    limit = int(getattr(state.settings, "task_list_limit", 50))
    today = date.today()
    lines = ["Tasks:"]
    lines.extend(format_task_line(i, t, today) for i, t in enumerate(tasks[:limit], start=1))
    if len(tasks) > limit:
        lines.append(f"... and {len(tasks) - limit} more")
    return "\n".join(lines)


async def cmd_open(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /open <id|#n>"
    task_id = resolve_task_id(state, args[0])
    if emit:
        emit("Loading saved subtasks...")
    await state.open_view(task_id)
    return describe_view(state)


async def cmd_organize(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    view = _require_view(state)
    if emit:
        emit("Analyzing and organizing your task...")
    before = len(view.turns)
    await view.organize()
    new_turns = view.turns.turns[before:]
    return f"{format_turns(new_turns)}\n\nSubtasks:\n{format_subtasks(view.subtasks)}"


async def cmd_ask(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /ask <question>"
    return await ask_active_view(state, " ".join(args), emit)


async def ask_active_view(state: AppState, question: str, emit: CommandEmitter | None = None) -> str:
    view = _require_view(state)
    before = view.subtasks
    if emit:
        emit("Thinking...")
    turn = await view.ask(question)

    # The resolved turn plus any extra answers inserted after it.
    turns = view.turns.turns
    idx = next(i for i, t in enumerate(turns) if t.id == turn.id)
    tail = [t for t in turns[idx:] if not t.awaiting_response]
    out = format_turns(tail)
    if view.subtasks != before:
        out += f"\n\nSubtasks updated:\n{format_subtasks(view.subtasks)}"
    return out


def cmd_subtasks(state: AppState, args: list[str]) -> str:
    view = _require_view(state)
    return f"Subtasks of {view.task.title}:\n{format_subtasks(view.subtasks)}"


def cmd_turns(state: AppState, args: list[str]) -> str:
    return format_turns(_require_view(state).turns.turns)


def cmd_suggest(state: AppState, args: list[str]) -> str:
    lines = ["Suggested questions:"]
    lines.extend(f"  {i}. {q}" for i, q in enumerate(SUGGESTED_QUESTIONS, start=1))
    lines.append("Use /ask <question>, or /suggest <n> to ask one of these.")
    return "\n".join(lines)


async def cmd_suggest_or_ask(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if args and args[0].isdigit():
        n = int(args[0])
        if 1 <= n <= len(SUGGESTED_QUESTIONS):
            return await ask_active_view(state, SUGGESTED_QUESTIONS[n - 1], emit)
        return f"Pick a number between 1 and {len(SUGGESTED_QUESTIONS)}."
    return cmd_suggest(state, args)


def cmd_close(state: AppState, args: list[str]) -> str:
    if state.close_view():
        return "Task closed."
    return "No task is open."


def cmd_reset(state: AppState, args: list[str]) -> str:
    logger.debug("Ingestion conversation reset requested")
    state.ingestion.reset()
    return "Conversation context cleared. The next message starts a new conversation."


async def cmd_reload(state: AppState, args: list[str]) -> str:
    await state.store.load_all()
    state.banner = None
    return f"Reloaded {len(state.store)} tasks."


async def cmd_complete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /complete <id|#n>"
    task = await task_api.complete_task(state, resolve_task_id(state, args[0]))
    return f"Marked '{task.title}' as {task.status.value}."


async def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <id|#n>"
    task_id = resolve_task_id(state, args[0])
    logger.debug("Delete requested id=%s", task_id)
    await task_api.delete_task(state, task_id)
    return f"Deleted task {task_id}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show backend, cache and conversation status.")
registry.register("tasks", cmd_tasks, help_text="List tasks with deadline urgency.", aliases=["ls"])
registry.register("open", cmd_open, help_text="Open a task: /open <id|#n>.")
registry.register("organize", cmd_organize, help_text="Break the open task into subtasks.")
registry.register("ask", cmd_ask, help_text="Ask a follow-up about the open task: /ask <question>.")
registry.register("subtasks", cmd_subtasks, help_text="Show subtasks of the open task.")
registry.register("turns", cmd_turns, help_text="Show the Q&A of the open task.")
registry.register("suggest", cmd_suggest_or_ask, help_text="Suggested questions: /suggest | /suggest <n>.")
registry.register("close", cmd_close, help_text="Close the open task.", aliases=["back"])
registry.register("reset", cmd_reset, help_text="Forget the current message conversation.")
registry.register("reload", cmd_reload, help_text="Reload tasks from the backend.")
registry.register("complete", cmd_complete, help_text="Mark a task completed: /complete <id|#n>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id|#n>.")
