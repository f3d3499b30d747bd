from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ..config import DeskConfig
from .errors import AuthError, BridgeError

logger = logging.getLogger(__name__)


def _extract_error_text(data: object) -> str | None:
    """Best-effort extraction of human-readable error text from host JSON."""
    if not isinstance(data, dict):
        return None

    candidates: list[object] = [
        data.get("error"),
        data.get("message"),
        data.get("detail"),
    ]

    result = data.get("result")
    if isinstance(result, dict):
        candidates.extend([
            result.get("error"),
            result.get("message"),
            result.get("detail"),
        ])

    for item in candidates:
        if isinstance(item, str) and item.strip():
            return item.strip()
        if isinstance(item, dict):
            for key in ("message", "error", "detail"):
                value = item.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
    return None


def _extract_response_error_detail(response: httpx.Response, data: object) -> str | None:
    """Extract best available human-readable error detail from response."""
    message = _extract_error_text(data)
    if message:
        return message

    text = response.text.strip()
    if text:
        return text[:300]
    return None


class BridgeHttpClient:
    """Invoke desktop host commands over HTTP.

    POST /invoke with body {"command": name, "args": {...}}; the host answers
    {"ok": true, "payload": ...}. There is no push channel, so ``on_event`` is
    never called.
    """

    def __init__(self, config: DeskConfig) -> None:
        self.config = config
        self._client: httpx.Client | None = None
        self.on_event = None

    def _get_client(self) -> httpx.Client:
        """Get or create reusable HTTP client."""
        if self._client is None or self._client.is_closed:
            headers: dict[str, str] = {}
            if self.config.token:
                headers["Authorization"] = f"Bearer {self.config.token}"
            timeout = (
                self.config.request_timeout_ms / 1000.0
                if self.config.request_timeout_ms
                else None
            )
            self._client = httpx.Client(
                base_url=self.config.base_url,
                headers=headers,
                timeout=timeout,
            )
            logger.info("Bridge HTTP client created for %s", self.config.base_url)
        return self._client

    async def start(self) -> None:
        self._get_client()

    async def stop(self) -> None:
        self.close()

    async def invoke(self, command: str, args: dict[str, Any] | None = None) -> Any:
        """Run ``invoke_sync`` in a worker thread so the event loop stays responsive."""
        return await asyncio.to_thread(self.invoke_sync, command, args or {})

    def invoke_sync(self, command: str, args: dict[str, Any]) -> Any:
        """Invoke one host command.

        Raises ConnectionError if the host is unreachable.
        Raises AuthError if 401/403.
        Raises BridgeError on any other non-200 status or invalid JSON.
        Returns the ``payload`` (or ``result``) member of the response body.
        """
        client = self._get_client()
        body = {"command": command, "args": args}

        try:
            response = client.post("/invoke", json=body)
        except httpx.ConnectError as exc:
            logger.warning("Bridge connection failed: %s", exc)
            raise ConnectionError(f"Cannot reach desktop host at {self.config.base_url}: {exc}") from exc
        except httpx.TimeoutException as exc:
            logger.warning("Bridge request timed out: %s", exc)
            raise ConnectionError(f"Desktop host request timed out: {exc}") from exc
        except httpx.RequestError as exc:
            logger.warning("Bridge request error: %s", exc)
            raise ConnectionError(f"Desktop host request error: {exc}") from exc

        if response.status_code in (401, 403):
            logger.warning("Bridge auth failed: HTTP %d", response.status_code)
            raise AuthError(f"Authentication failed: HTTP {response.status_code}")

        data: object = None
        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code != 200:
            detail = f"Desktop host returned HTTP {response.status_code} for '{command}'"
            response_detail = _extract_response_error_detail(response, data)
            if response_detail:
                detail = f"{detail}: {response_detail}"
            logger.warning("invoke failed: %s", detail)
            raise BridgeError(detail)

        if not isinstance(data, dict):
            logger.warning("invoke %s returned invalid JSON", command)
            raise BridgeError(f"Desktop host returned invalid JSON for '{command}'")

        if data.get("ok") is False:
            raise BridgeError(_extract_error_text(data) or f"'{command}' failed")

        if "payload" in data:
            return data["payload"]
        return data.get("result")

    def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            self._client.close()
            logger.info("Bridge HTTP client closed")
