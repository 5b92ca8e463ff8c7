# src/task_organizer/gateway/client.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.errors import GatewayError
from ..tasks.task_models import Subtask, Task
from .wire import (
    ClarificationReply,
    DecompositionReply,
    ExtractionReply,
    parse_decomposition,
    parse_process_message,
    parse_subtask_list,
    parse_task,
    parse_task_list,
)

logger = logging.getLogger(__name__)


def _make_timeout(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)


async def _log_request(request: httpx.Request) -> None:
    logger.debug("Request: %s %s", request.method, request.url)


async def _log_response(response: httpx.Response) -> None:
    request = response.request
    logger.debug("Response: %s %s -> %s", request.method, request.url, response.status_code)


def _with_thread(body: dict[str, Any], thread_id: str | None) -> dict[str, Any]:
    # An absent thread id starts a new conversation; never send null.
    if thread_id:
        body["threadId"] = thread_id
    return body


class HttpGateway:
    """
    Interaction gateway over HTTP/JSON.

    - One lazily created httpx.AsyncClient per gateway (base URL = <api_url>/api).
    - Every failure is raised as GatewayError: connection, timeout, non-2xx, undecodable body.
    - Responses are normalized by gateway/wire.py before they leave this class.
    - Cancellation (asyncio) is not caught here; it propagates to the caller.
    """

    def __init__(self, settings: Any, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        api_url = str(getattr(settings, "api_url", "") or "").strip().rstrip("/")
        if not api_url:
            raise RuntimeError("Task service URL is not set. Set TASKORG_API_URL in your .env.")
        self._base_url = f"{api_url}/api"
        self._timeout = _make_timeout(
            float(getattr(settings, "connect_timeout_seconds", 5.0)),
            float(getattr(settings, "read_timeout_seconds", 60.0)),
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
                event_hooks={"request": [_log_request], "response": [_log_response]},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        client = self._get_client()
        try:
            response = await client.request(method, path, json=json)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning("Gateway timeout: %s %s", method, path)
            raise GatewayError(f"timeout on {method} {path}", kind="timeout") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Gateway HTTP %s: %s %s body=%s", status, method, path, e.response.text[:300])
            raise GatewayError(f"HTTP {status} on {method} {path}", kind="http_status", status_code=status) from e
        except httpx.DecodingError as e:
            logger.warning("Gateway body could not be decoded: %s %s", method, path)
            raise GatewayError(f"undecodable body from {method} {path}", kind="decode") from e
        except httpx.RequestError as e:
            logger.warning("Gateway connection error: %s %s (%s)", method, path, e.__class__.__name__)
            raise GatewayError(f"connection error on {method} {path}: {e}", kind="connection") from e

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning("Gateway returned non-JSON body: %s %s", method, path)
            raise GatewayError(f"invalid JSON from {method} {path}", kind="decode") from e

    # ---- reasoning calls ----

    async def process_message(
        self, message: str, thread_id: str | None = None
    ) -> ExtractionReply | ClarificationReply:
        payload = await self._request(
            "POST", "/tasks/process-message", json=_with_thread({"message": message}, thread_id)
        )
        return parse_process_message(payload)

    async def organize_task(self, task: Task, thread_id: str | None = None) -> DecompositionReply:
        payload = await self._request(
            "POST", "/tasks/organize", json=_with_thread({"task": task.to_wire()}, thread_id)
        )
        return parse_decomposition(payload)

    async def ask_followup(
        self, task_id: str, question: str, thread_id: str | None = None
    ) -> DecompositionReply:
        payload = await self._request(
            "POST",
            "/tasks/ask-followup",
            json=_with_thread({"taskId": task_id, "question": question}, thread_id),
        )
        return parse_decomposition(payload)

    # ---- CRUD ----

    async def list_tasks(self) -> list[Task]:
        return parse_task_list(await self._request("GET", "/tasks"))

    async def get_task(self, task_id: str) -> Task:
        return parse_task(await self._request("GET", f"/tasks/{task_id}"))

    async def list_subtasks(self, task_id: str) -> list[Subtask]:
        payload = await self._request("GET", f"/tasks/{task_id}/subtasks")
        return [] if payload is None else parse_subtask_list(payload)

    async def create_task(self, task: Task) -> Task:
        return parse_task(await self._request("POST", "/tasks", json=task.to_wire()))

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> Task:
        return parse_task(await self._request("PATCH", f"/tasks/{task_id}", json=fields))

    async def replace_task(self, task: Task) -> Task:
        return parse_task(await self._request("PUT", f"/tasks/{task.id}", json=task.to_wire()))

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")

    async def save_subtask(self, parent_id: str, subtask: Subtask) -> None:
        await self._request("POST", f"/tasks/{parent_id}/subtasks", json=subtask.to_wire())
