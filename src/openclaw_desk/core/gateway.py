from __future__ import annotations

import logging
from typing import Literal

from ..boundary import DEFAULT_LOG_LINES, GatewayApi
from ..models import GatewayLogs, GatewayStatus

logger = logging.getLogger(__name__)

GatewayAction = Literal["status", "start", "stop", "restart"]


class GatewayController:
    """Status and log-tail mirror for the background gateway process."""

    def __init__(self, api: GatewayApi, *, log_lines: int = DEFAULT_LOG_LINES) -> None:
        self._api = api
        self._log_lines = log_lines
        self.status: GatewayStatus | None = None
        self.logs: GatewayLogs | None = None

    async def refresh(self, profile_id: str) -> GatewayStatus:
        return await self.run("status", profile_id)

    async def start(self, profile_id: str) -> GatewayStatus:
        return await self.run("start", profile_id)

    async def stop(self, profile_id: str) -> GatewayStatus:
        return await self.run("stop", profile_id)

    async def restart(self, profile_id: str) -> GatewayStatus:
        return await self.run("restart", profile_id)

    async def run(self, action: GatewayAction, profile_id: str) -> GatewayStatus:
        call = {
            "status": self._api.status,
            "start": self._api.start,
            "stop": self._api.stop,
            "restart": self._api.restart,
        }[action]
        status = await call(profile_id)
        # The snapshot is canonical even when the command itself exited non-zero.
        self.status = status
        if not status.ok:
            logger.warning("gateway %s exited with %d", action, status.exit_code)
        self.logs = await self._api.logs(lines=self._log_lines)
        return status

    async def refresh_logs(self) -> GatewayLogs:
        self.logs = await self._api.logs(lines=self._log_lines)
        return self.logs

    def reset(self) -> None:
        self.status = None
        self.logs = None
