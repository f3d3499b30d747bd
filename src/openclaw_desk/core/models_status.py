from __future__ import annotations

import logging

from ..boundary import ModelsApi
from ..models import ModelsStatus

logger = logging.getLogger(__name__)


class ModelsController:
    def __init__(self, api: ModelsApi) -> None:
        self._api = api
        self.status: ModelsStatus | None = None

    async def refresh(self, profile_id: str) -> ModelsStatus:
        self.status = await self._api.status(profile_id)
        return self.status

    async def set_default(self, profile_id: str, model: str) -> ModelsStatus | None:
        clean = model.strip()
        if not clean:
            return None
        self.status = await self._api.set_default(profile_id, clean)
        logger.info("Default model for %s set to %s", profile_id, clean)
        return self.status

    def reset(self) -> None:
        self.status = None
