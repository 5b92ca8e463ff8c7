# src/task_organizer/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Per-call chatter: request/response trace and token adoption. File only, unless it is a problem.
_QUIET_ON_CONSOLE = (
    "task_organizer.gateway.client",
    "task_organizer.core.thread",
)


class _ConsoleNoiseFilter(logging.Filter):
    """
    The console shares the terminal with the REPL prompt, so only show what the user can act on:
    - task_organizer records pass, except the per-call trace in _QUIET_ON_CONSOLE (WARNING+ only)
    - httpx/httpcore/asyncio and everything else only at ERROR+ (captured warnings included)
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith("task_organizer."):
            return record.levelno >= logging.ERROR
        if name.startswith(_QUIET_ON_CONSOLE):
            return record.levelno >= logging.WARNING
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/task_organizer",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Console on stderr (short lines, filtered) plus <log_dir>/task_organizer.log with everything.

    Replaces any handlers already on the root logger; call once from main().
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    # The console connector stamps its own output; log lines stay short.
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    logfile = logging.FileHandler(str(log_dir / "task_organizer.log"), encoding="utf-8")
    logfile.setLevel(file_level)
    logfile.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(logfile)

    logging.captureWarnings(True)

    # httpx logs every request at INFO; the gateway's own hooks already trace them.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
