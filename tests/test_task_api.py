# tests/test_task_api.py

from __future__ import annotations

import random
import re
from datetime import date

import pytest

from task_organizer.core.errors import GatewayError
from task_organizer.gateway.offline import OfflineGateway
from task_organizer.tasks import task_api
from task_organizer.tasks.task_api import TimestampIdFactory, deadline_urgency
from task_organizer.tasks.task_models import Task, TaskStatus, Urgency


@pytest.mark.parametrize(
    ("days", "expected"),
    [(-2, Urgency.HIGH), (0, Urgency.HIGH), (3, Urgency.HIGH), (4, Urgency.MEDIUM), (7, Urgency.MEDIUM), (8, Urgency.LOW)],
)
def test_deadline_urgency_thresholds(days: int, expected: Urgency) -> None:
    today = date(2024, 10, 1)
    assert deadline_urgency(date.fromordinal(today.toordinal() + days), today) == expected


def test_deadline_urgency_without_deadline() -> None:
    assert deadline_urgency(None) is None


def test_timestamp_id_factory_is_deterministic_with_injected_clock_and_rng() -> None:
    make = lambda: TimestampIdFactory(clock=lambda: 1700000000.0, rng=random.Random(7))  # noqa: E731
    a, b = make(), make()

    first = a("task")
    assert first == b("task")
    assert re.fullmatch(r"task-1700000000000-[0-9a-z]{9}", first)
    assert a("task") != first


@pytest.mark.asyncio
async def test_crud_helpers_keep_store_in_sync(state) -> None:
    state.gateway = OfflineGateway()

    created = await task_api.create_task(state, Task(id="", title="Write docs"))
    assert created.id
    assert state.store.get(created.id) == created

    done = await task_api.complete_task(state, created.id)
    assert done.status == TaskStatus.COMPLETED
    assert state.store.get(created.id).status == TaskStatus.COMPLETED

    assert await task_api.delete_task(state, created.id) is True
    assert state.store.get(created.id) is None


@pytest.mark.asyncio
async def test_failed_delete_leaves_store_untouched(state) -> None:
    state.gateway = OfflineGateway()
    state.store.append_extracted([Task(id="local-only", title="x")])

    with pytest.raises(GatewayError):
        await task_api.delete_task(state, "local-only")

    assert state.store.get("local-only") is not None
