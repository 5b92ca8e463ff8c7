# tests/test_http_gateway.py

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest

from task_organizer.core.driver import IngestionPhase, MessageIngestion
from task_organizer.core.errors import GatewayError
from task_organizer.gateway.client import HttpGateway
from task_organizer.gateway.wire import ClarificationReply, ExtractionReply
from task_organizer.tasks.task_models import Subtask, Task
from task_organizer.tasks.task_store import TaskHierarchyStore

from .fakes import CountingIds


class Recorder:
    """MockTransport handler: records requests and answers from a scripted function."""

    def __init__(self, respond) -> None:
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    def body(self, i: int = -1) -> dict:
        return json.loads(self.requests[i].content)


def _gateway(respond) -> tuple[HttpGateway, Recorder]:
    rec = Recorder(respond)
    settings = SimpleNamespace(
        api_url="http://backend.test/",
        connect_timeout_seconds=1.0,
        read_timeout_seconds=2.0,
    )
    return HttpGateway(settings, transport=httpx.MockTransport(rec)), rec


def test_missing_url_is_rejected() -> None:
    with pytest.raises(RuntimeError):
        HttpGateway(SimpleNamespace(api_url=""))


@pytest.mark.asyncio
async def test_process_message_omits_thread_id_when_absent() -> None:
    gw, rec = _gateway(
        lambda r: httpx.Response(
            200, json={"status": "success", "threadId": "t1", "data": [{"id": "a", "title": "A"}]}
        )
    )

    reply = await gw.process_message("Bob needs the report")

    assert isinstance(reply, ExtractionReply)
    assert reply.thread_id == "t1"
    req = rec.requests[0]
    assert req.method == "POST"
    assert req.url.path == "/api/tasks/process-message"
    assert rec.body() == {"message": "Bob needs the report"}
    await gw.aclose()


@pytest.mark.asyncio
async def test_process_message_echoes_thread_id() -> None:
    gw, rec = _gateway(
        lambda r: httpx.Response(
            200, json={"status": "needs_context", "data": {"questions": ["Who?"]}}
        )
    )

    reply = await gw.process_message("more info", "t1")

    assert isinstance(reply, ClarificationReply)
    assert rec.body() == {"message": "more info", "threadId": "t1"}
    await gw.aclose()


@pytest.mark.asyncio
async def test_organize_and_followup_request_shapes() -> None:
    gw, rec = _gateway(
        lambda r: httpx.Response(200, json={"subtasks": [{"task_name": "x"}], "message": ["ok"]})
    )
    task = Task(id="t-1", title="Report")

    organized = await gw.organize_task(task)
    followed = await gw.ask_followup("t-1", "Risks?", "th")

    assert rec.requests[0].url.path == "/api/tasks/organize"
    assert rec.body(0)["task"]["id"] == "t-1"
    assert "threadId" not in rec.body(0)
    assert rec.requests[1].url.path == "/api/tasks/ask-followup"
    assert rec.body(1) == {"taskId": "t-1", "question": "Risks?", "threadId": "th"}
    assert [s.title for s in organized.subtasks] == ["x"]
    assert followed.messages == ("ok",)
    await gw.aclose()


@pytest.mark.asyncio
async def test_non_2xx_is_http_status_error() -> None:
    gw, _ = _gateway(lambda r: httpx.Response(500, text="boom"))

    with pytest.raises(GatewayError) as ei:
        await gw.process_message("hello there")

    assert ei.value.kind == "http_status"
    assert ei.value.status_code == 500
    await gw.aclose()


@pytest.mark.asyncio
async def test_invalid_json_is_decode_error() -> None:
    gw, _ = _gateway(lambda r: httpx.Response(200, text="<html>nope</html>"))

    with pytest.raises(GatewayError) as ei:
        await gw.organize_task(Task(id="t", title="t"))

    assert ei.value.kind == "decode"
    await gw.aclose()


@pytest.mark.asyncio
async def test_connection_and_timeout_errors() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    gw, _ = _gateway(refuse)
    with pytest.raises(GatewayError) as ei:
        await gw.list_tasks()
    assert ei.value.kind == "connection"
    await gw.aclose()

    gw, _ = _gateway(slow)
    with pytest.raises(GatewayError) as ei:
        await gw.ask_followup("t", "q")
    assert ei.value.kind == "timeout"
    await gw.aclose()


@pytest.mark.asyncio
async def test_crud_routes() -> None:
    def respond(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            return httpx.Response(204)
        if request.url.path.endswith("/subtasks") and request.method == "GET":
            return httpx.Response(200, json=[{"title": "s", "id": "s1"}])
        if request.url.path == "/api/tasks" and request.method == "GET":
            return httpx.Response(200, json=[{"id": "a", "title": "A"}])
        return httpx.Response(200, json={"id": "a", "title": "A", "status": "completed"})

    gw, rec = _gateway(respond)

    assert [t.id for t in await gw.list_tasks()] == ["a"]
    assert [s.id for s in await gw.list_subtasks("a")] == ["s1"]
    updated = await gw.update_task("a", {"status": "completed"})
    await gw.delete_task("a")
    await gw.save_subtask("a", Subtask(title="s", id="s2"))

    assert updated.status == "completed"
    assert [(r.method, r.url.path) for r in rec.requests] == [
        ("GET", "/api/tasks"),
        ("GET", "/api/tasks/a/subtasks"),
        ("PATCH", "/api/tasks/a"),
        ("DELETE", "/api/tasks/a"),
        ("POST", "/api/tasks/a/subtasks"),
    ]
    assert rec.body(-1)["task_name"] == "s"
    await gw.aclose()


@pytest.mark.asyncio
async def test_empty_subtask_body_is_no_subtasks() -> None:
    gw, _ = _gateway(lambda r: httpx.Response(204))
    assert await gw.list_subtasks("a") == []
    await gw.aclose()


@pytest.mark.asyncio
async def test_undecodable_body_is_decode_error_and_load_fails_open() -> None:
    gw, _ = _gateway(
        lambda r: httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")
    )
    store = TaskHierarchyStore(gw)
    store.append_extracted([Task(id="cached", title="Cached")])

    with pytest.raises(GatewayError) as ei:
        await store.load_all()

    assert ei.value.kind == "decode"
    assert [t.id for t in store.tasks()] == ["cached"]
    await gw.aclose()


@pytest.mark.asyncio
async def test_other_request_errors_are_connection_errors() -> None:
    def redirect_loop(request: httpx.Request) -> httpx.Response:
        raise httpx.TooManyRedirects("loop", request=request)

    gw, _ = _gateway(redirect_loop)
    with pytest.raises(GatewayError) as ei:
        await gw.list_subtasks("a")
    assert ei.value.kind == "connection"
    await gw.aclose()


@pytest.mark.asyncio
async def test_empty_object_extraction_adopts_thread() -> None:
    gw, _ = _gateway(lambda r: httpx.Response(200, json={"status": "success", "data": {}, "threadId": "t9"}))
    store = TaskHierarchyStore(gw)
    ingestion = MessageIngestion(gw, store, new_id=CountingIds())

    phase = await ingestion.submit("Nothing actionable in here")

    assert phase == IngestionPhase.TASKS_READY
    assert len(store) == 0
    assert ingestion.thread.continuation_token() == "t9"
    await gw.aclose()
