# src/task_organizer/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (gateway/store/ingestion),
- performs the initial task load (fail-open).
"""

from __future__ import annotations

import logging
import time

from ..config import get_settings
from ..core.driver import MessageIngestion
from ..core.errors import GatewayError, friendly_gateway_error_message
from ..core.ports import InteractionGateway
from ..core.state import AppState
from ..gateway.client import HttpGateway
from ..gateway.offline import OfflineGateway
from ..tasks.task_api import TimestampIdFactory
from ..tasks.task_store import TaskHierarchyStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def create_gateway(settings) -> InteractionGateway:
    if not getattr(settings, "api_url", ""):
        logger.info("No TASKORG_API_URL configured: using the offline demo gateway.")
        return OfflineGateway()
    gateway = HttpGateway(settings)
    logger.info("Using task service at %s", gateway.base_url)
    return gateway


def create_initial_state(*, settings=None, gateway: InteractionGateway | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the gateway) injectable makes the app easier to test
    and avoids hidden global config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if gateway is None:
        gateway = create_gateway(settings)

    new_id = TimestampIdFactory(clock=time.time)
    store = TaskHierarchyStore(gateway)

    return AppState(
        settings=settings,
        gateway=gateway,
        store=store,
        ingestion=MessageIngestion(gateway, store, new_id=new_id),
        new_id=new_id,
    )


async def load_initial_tasks(state: AppState) -> bool:
    """Fail-open initial load: on failure the (empty) cache stays and a banner is set."""
    try:
        await state.store.load_all()
    except GatewayError as e:
        state.banner = f"Failed to load tasks: {friendly_gateway_error_message(e)}"
        logger.warning("Initial task load failed: %s", e)
        return False
    state.banner = None
    return True


async def shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    state.close_all_views()
    try:
        await state.gateway.aclose()
    except Exception:
        logger.debug("Gateway close failed.", exc_info=True)
