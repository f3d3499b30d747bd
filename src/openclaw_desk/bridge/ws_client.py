from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable
from uuid import uuid4

from websockets.asyncio.client import connect as ws_connect

from .errors import BridgeError, BridgeRequestTimeoutError

logger = logging.getLogger(__name__)

# Keep in sync with the desktop host's bridge protocol version.
PROTOCOL_VERSION = 1
DEFAULT_CONNECT_TIMEOUT_MS = 10_000


@dataclass
class _PendingRequest:
    method: str
    future: asyncio.Future[Any]


class BridgeWsClient:
    """Request/response client for the desktop host's WebSocket bridge.

    Requests are ``{"type": "req", "id", "method", "params"}`` frames matched to
    ``{"type": "res", "id", "ok", "payload" | "error"}`` responses by id. Push
    notifications arrive as ``{"type": "event", "event", "payload"}`` frames and
    are forwarded to ``on_event``.
    """

    def __init__(
        self,
        *,
        url: str,
        token: str | None = None,
        client_display_name: str = "openclaw-desk",
        client_version: str = "dev",
        request_timeout_ms: int | None = None,
        connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS,
        connector: Callable[[str], Awaitable[Any]] | None = None,
    ) -> None:
        self.url = url
        self.token = token
        self.client_display_name = client_display_name
        self.client_version = client_version
        self.request_timeout_ms = max(1, int(request_timeout_ms)) if request_timeout_ms else None
        self.connect_timeout_ms = max(1, int(connect_timeout_ms))
        self._connector = connector or self._default_connector

        self._ws: Any | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._pending: dict[str, _PendingRequest] = {}
        self._ready = asyncio.Event()
        self._closed = False
        self._connect_sent = False
        self._connect_error: str | None = None
        self._connect_failed = asyncio.Event()

        self.hello: dict[str, Any] | None = None
        self.on_event: Callable[[str, Any], None] | None = None
        self.on_connected: Callable[[], None] | None = None
        self.on_disconnected: Callable[[str], None] | None = None

    async def _default_connector(self, url: str) -> Any:
        return await ws_connect(url, max_size=8 * 1024 * 1024)

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    async def start(self) -> None:
        if self._ws is not None:
            return
        self._closed = False
        self._connect_error = None
        self._connect_failed.clear()
        self._ws = await self._connector(self.url)
        self._reader_task = asyncio.create_task(self._read_loop())
        self._queue_connect()

    async def stop(self) -> None:
        self._closed = True
        if self._connect_task is not None:
            self._connect_task.cancel()
            self._connect_task = None
        if self._reader_task is not None:
            self._reader_task.cancel()
            self._reader_task = None
        ws = self._ws
        self._ws = None
        if ws is not None:
            try:
                await ws.close()
            except Exception:  # noqa: BLE001
                pass
        self._ready.clear()
        self._connect_failed.clear()
        self._connect_error = None
        self._fail_pending(BridgeError("bridge client stopped"))

    async def wait_ready(self, timeout_ms: int | None = None) -> None:
        timeout_s = (timeout_ms if timeout_ms is not None else self.connect_timeout_ms) / 1000.0
        ready_task = asyncio.create_task(self._ready.wait())
        failed_task = asyncio.create_task(self._connect_failed.wait())
        try:
            done, pending = await asyncio.wait(
                {ready_task, failed_task},
                timeout=timeout_s,
                return_when=asyncio.FIRST_COMPLETED,
            )
            for pending_task in pending:
                pending_task.cancel()
            if ready_task in done and self._ready.is_set():
                return
            if failed_task in done and self._connect_failed.is_set():
                raise BridgeError(self._connect_error or "bridge connect failed")
            raise TimeoutError("bridge connect timed out")
        finally:
            if not ready_task.done():
                ready_task.cancel()
            if not failed_task.done():
                failed_task.cancel()

    async def invoke(self, command: str, args: dict[str, Any] | None = None) -> Any:
        return await self.request(command, args)

    async def request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        timeout_ms: int | None = None,
    ) -> Any:
        ws = self._ws
        if ws is None:
            raise ConnectionError("desktop host bridge not connected")

        request_id = str(uuid4())
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        self._pending[request_id] = _PendingRequest(method=method, future=future)
        frame = {
            "type": "req",
            "id": request_id,
            "method": method,
            "params": params or {},
        }
        await ws.send(json.dumps(frame))

        resolved_timeout_ms = timeout_ms or self.request_timeout_ms
        if resolved_timeout_ms is None:
            return await future
        try:
            return await asyncio.wait_for(future, timeout=resolved_timeout_ms / 1000.0)
        except asyncio.TimeoutError as exc:
            self._pending.pop(request_id, None)
            raise BridgeRequestTimeoutError(method, request_id, resolved_timeout_ms) from exc

    def _queue_connect(self) -> None:
        if self._connect_task is not None:
            self._connect_task.cancel()
        self._connect_task = asyncio.create_task(self._connect())

    async def _connect(self) -> None:
        try:
            if self._closed:
                return
            await self._send_connect()
        except Exception as exc:  # noqa: BLE001
            logger.debug("bridge connect failed: %s", exc)
            self._connect_sent = False
            self._connect_error = str(exc)
            self._connect_failed.set()
            if self.on_disconnected is not None:
                self.on_disconnected(str(exc))

    async def _send_connect(self) -> None:
        if self._connect_sent:
            return
        self._connect_sent = True
        params: dict[str, Any] = {
            "minProtocol": PROTOCOL_VERSION,
            "maxProtocol": PROTOCOL_VERSION,
            "client": {
                "id": "desktop-ui",
                "displayName": self.client_display_name,
                "version": self.client_version,
                "instanceId": str(uuid4()),
            },
            "auth": {"token": self.token} if self.token else None,
        }

        hello = await self.request("connect", params, timeout_ms=self.connect_timeout_ms)
        if isinstance(hello, dict):
            self.hello = hello
        self._connect_error = None
        self._connect_failed.clear()
        self._ready.set()
        logger.info("Bridge connected: %s", self.url)
        if self.on_connected is not None:
            self.on_connected()

    async def _read_loop(self) -> None:
        ws = self._ws
        if ws is None:
            return
        reason = "closed"
        try:
            async for raw in ws:
                self._handle_frame(raw)
        except asyncio.CancelledError:
            reason = "cancelled"
            raise
        except Exception as exc:  # noqa: BLE001
            reason = str(exc)
            logger.debug("bridge ws read loop ended: %s", exc)
        finally:
            was_ready = self._ready.is_set()
            self._ready.clear()
            self._connect_sent = False
            self._ws = None
            if not self._closed and not was_ready:
                self._connect_error = reason
                self._connect_failed.set()
            self._fail_pending(ConnectionError(f"desktop host bridge disconnected: {reason}"))
            if not self._closed and self.on_disconnected is not None:
                self.on_disconnected(reason)

    def _handle_frame(self, raw: str) -> None:
        try:
            frame = json.loads(raw)
        except Exception:  # noqa: BLE001
            return
        if not isinstance(frame, dict):
            return

        frame_type = frame.get("type")
        if frame_type == "event":
            self._handle_event_frame(frame)
            return
        if frame_type == "res":
            self._handle_response_frame(frame)

    def _handle_event_frame(self, frame: dict[str, Any]) -> None:
        event = frame.get("event")
        if not isinstance(event, str):
            return
        if event == "connect.challenge":
            if not self._connect_sent:
                self._queue_connect()
            return
        if self.on_event is not None:
            self.on_event(event, frame.get("payload"))

    def _handle_response_frame(self, frame: dict[str, Any]) -> None:
        request_id = frame.get("id")
        if not isinstance(request_id, str):
            return
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return

        if frame.get("ok"):
            if not pending.future.done():
                pending.future.set_result(frame.get("payload"))
            return

        message = "unknown error"
        error = frame.get("error")
        if isinstance(error, dict):
            error_message = error.get("message")
            if isinstance(error_message, str) and error_message:
                message = error_message
        elif isinstance(error, str) and error:
            message = error
        if not pending.future.done():
            pending.future.set_exception(BridgeError(message))

    def _fail_pending(self, exc: Exception) -> None:
        for request_id, pending in list(self._pending.items()):
            self._pending.pop(request_id, None)
            if not pending.future.done():
                pending.future.set_exception(exc)
