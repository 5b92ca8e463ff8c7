# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from task_organizer.core.driver import MessageIngestion
from task_organizer.core.state import AppState
from task_organizer.tasks.task_models import Task
from task_organizer.tasks.task_store import TaskHierarchyStore

from .fakes import CountingIds, FakeGateway, fixed_clock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="task-organizer-test",
        log_level="DEBUG",
        api_url="",
        connect_timeout_seconds=1.0,
        read_timeout_seconds=2.0,
        persist_generated_subtasks=True,
        task_list_limit=50,
        data_dir=tmp_path / "data",
    )


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def ids() -> CountingIds:
    return CountingIds()


@pytest.fixture()
def store(gateway: FakeGateway) -> TaskHierarchyStore:
    return TaskHierarchyStore(gateway)


@pytest.fixture()
def ingestion(gateway: FakeGateway, store: TaskHierarchyStore, ids: CountingIds) -> MessageIngestion:
    return MessageIngestion(gateway, store, new_id=ids)


@pytest.fixture()
def report_task() -> Task:
    return Task(
        id="t-100",
        title="Send Q3 report",
        description="Bob needs the Q3 report by Friday",
        requester="Bob",
        assigned_to="Alice",
    )


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    gateway: FakeGateway,
    store: TaskHierarchyStore,
    ingestion: MessageIngestion,
    ids: CountingIds,
) -> AppState:
    """AppState wired with deterministic fakes."""
    return AppState(
        settings=settings,
        gateway=gateway,
        store=store,
        ingestion=ingestion,
        new_id=ids,
        clock=fixed_clock,
    )
