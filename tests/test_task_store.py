# tests/test_task_store.py

from __future__ import annotations

import pytest

from task_organizer.core.errors import GatewayError, InvariantError
from task_organizer.tasks.task_models import Priority, Subtask, Task
from task_organizer.tasks.task_store import TaskHierarchyStore

from .fakes import FakeGateway, transport_error


def _task(tid: str, title: str = "t") -> Task:
    return Task(id=tid, title=title)


def _sub(title: str, parent: str | None = "p1", sid: str | None = None) -> Subtask:
    return Subtask(title=title, priority=Priority.HIGH, id=sid, parent_id=parent)


def test_append_extracted_preserves_order_and_accumulates() -> None:
    store = TaskHierarchyStore()
    store.append_extracted([_task("a"), _task("b")])
    store.append_extracted([])
    store.append_extracted([_task("c")])

    assert [t.id for t in store.tasks()] == ["a", "b", "c"]
    assert len(store) == 3


def test_duplicate_ids_coexist_and_get_returns_latest() -> None:
    store = TaskHierarchyStore()
    store.append_extracted([_task("a", "first")])
    store.append_extracted([_task("a", "second")])

    assert len(store) == 2
    assert store.get("a").title == "second"
    assert store.get("missing") is None


def test_replace_subtasks_is_authoritative_and_idempotent() -> None:
    store = TaskHierarchyStore()
    store.replace_subtasks("p1", [_sub("one"), _sub("two")])
    store.replace_subtasks("p1", [_sub("three")])
    assert [s.title for s in store.subtasks("p1")] == ["three"]

    subs = [_sub("x"), _sub("y")]
    store.replace_subtasks("p1", subs)
    first = store.subtasks("p1")
    store.replace_subtasks("p1", subs)
    assert store.subtasks("p1") == first


def test_replace_subtasks_with_empty_clears_subtree() -> None:
    store = TaskHierarchyStore()
    store.replace_subtasks("p1", [_sub("one")])
    store.replace_subtasks("p1", [])
    assert store.subtasks("p1") == ()
    assert not store.has_subtasks("p1")


def test_replace_subtasks_rejects_foreign_parent_and_keeps_state() -> None:
    store = TaskHierarchyStore()
    store.replace_subtasks("p1", [_sub("kept")])

    with pytest.raises(InvariantError):
        store.replace_subtasks("p1", [_sub("ok"), _sub("stolen", parent="p2")])

    assert [s.title for s in store.subtasks("p1")] == ["kept"]


def test_replace_subtasks_requires_parent_id() -> None:
    store = TaskHierarchyStore()
    with pytest.raises(ValueError):
        store.replace_subtasks("", [_sub("x", parent=None)])


def test_subtrees_are_independent() -> None:
    store = TaskHierarchyStore()
    store.replace_subtasks("p1", [_sub("a")])
    store.replace_subtasks("p2", [_sub("b", parent="p2")])
    store.replace_subtasks("p1", [])
    assert [s.title for s in store.subtasks("p2")] == ["b"]


@pytest.mark.asyncio
async def test_load_all_replaces_collection() -> None:
    gw = FakeGateway(tasks=[_task("x"), _task("y")])
    store = TaskHierarchyStore(gw)
    store.append_extracted([_task("local")])

    loaded = await store.load_all()

    assert [t.id for t in loaded] == ["x", "y"]
    assert [t.id for t in store.tasks()] == ["x", "y"]


@pytest.mark.asyncio
async def test_load_all_failure_keeps_previous_collection() -> None:
    gw = FakeGateway(list_error=transport_error())
    store = TaskHierarchyStore(gw)
    store.append_extracted([_task("cached")])

    with pytest.raises(GatewayError):
        await store.load_all()

    assert [t.id for t in store.tasks()] == ["cached"]


@pytest.mark.asyncio
async def test_load_all_without_source_is_an_error() -> None:
    with pytest.raises(RuntimeError):
        await TaskHierarchyStore().load_all()


def test_upsert_and_remove() -> None:
    store = TaskHierarchyStore()
    store.append_extracted([_task("a", "old"), _task("b")])
    store.upsert(_task("a", "new"))
    store.upsert(_task("c"))
    assert [(t.id, t.title) for t in store.tasks()] == [("a", "new"), ("b", "t"), ("c", "t")]

    store.replace_subtasks("a", [_sub("s", parent="a")])
    assert store.remove("a") is True
    assert store.get("a") is None
    assert store.subtasks("a") == ()
    assert store.remove("a") is False
