# src/task_organizer/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import ask_active_view, describe_view
from ..cli.commands import registry as command_registry
from ..core.driver import IngestionPhase, ViewState
from ..core.errors import GatewayError, TaskOrganizerError, friendly_gateway_error_message
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _format_ingestion(state: AppState) -> str:
    ing = state.ingestion
    if ing.phase == IngestionPhase.TASKS_READY:
        if not ing.last_extracted:
            return "No tasks found in that message."
        lines = [f"Extracted {len(ing.last_extracted)} task(s):"]
        for t in ing.last_extracted:
            due = t.deadline.isoformat() if t.deadline else "no deadline"
            lines.append(f"  - {t.title} (id={t.id}, {due}, assigned to {t.assigned_to})")
        return "\n".join(lines)

    if ing.phase == IngestionPhase.NEEDS_CONTEXT:
        lines = ["More information needed:"]
        lines.extend(f"  - {q}" for q in ing.questions)
        lines.append("Reply with the missing details; the conversation continues.")
        return "\n".join(lines)

    if ing.phase == IngestionPhase.FAILED:
        detail = f" ({ing.error_detail})" if ing.error_detail else ""
        return f"{ing.error or 'Failed to process message'}{detail}"

    return ""


async def handle_text(state: AppState, text: str, emit=None) -> str:
    """
    Plain (non-command) input:
    - an organized task view is open -> follow-up question,
    - a task view is open but not organized -> hint,
    - otherwise -> message ingestion.
    """
    view = state.active_view
    if view is not None:
        if view.state == ViewState.ORGANIZED:
            return await ask_active_view(state, text, emit)
        return describe_view(state)

    if emit:
        emit("Analyzing your message and extracting tasks...")
    await state.ingestion.submit(text)
    return _format_ingestion(state)


def _prompt(state: AppState) -> str:
    view = state.active_view
    if view is not None:
        return f">>> [{view.task.title[:24]}] You: "
    if state.ingestion.continuing:
        return ">>> (continuing) You: "
    return ">>> You: "


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Paste a message from Slack, email, Discord... Use /help for commands, /exit to quit.\n")
    if state.banner:
        _print_ts(state.banner)

    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations.
        _print_ts(text)

    while True:
        try:
            user_input = (await asyncio.to_thread(input, _prompt(state))).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(state, user_input, emit=emit)
            if reply is None:
                reply = await handle_text(state, user_input, emit)
        except GatewayError as e:
            msg = friendly_gateway_error_message(e)
            logger.info("Gateway error in console: %s", msg)
            reply = msg
        except TaskOrganizerError as e:
            reply = str(e)
        except Exception:
            logger.exception("Console handler crashed.")
            reply = "Internal error while handling your input."

        if reply:
            _print_ts(reply)
        print()

    logger.info("Console connector finished.")
