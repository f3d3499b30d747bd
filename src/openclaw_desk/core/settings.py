from __future__ import annotations

import logging

from ..boundary import AutostartApi, SettingsApi
from ..models import ProfileSettings

logger = logging.getLogger(__name__)

UNLOCK_PHRASE = "I UNDERSTAND"


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    clean = value.strip()
    return clean or None


class SettingsManager:
    """Per-profile settings mirror plus the host-wide launch-at-login flag.

    Enabling automatic full exec requires typing the unlock phrase first; the
    unlock is forgotten whenever the profile changes.
    """

    def __init__(self, settings_api: SettingsApi, autostart_api: AutostartApi) -> None:
        self._api = settings_api
        self._autostart_api = autostart_api
        self.profile_id: str | None = None
        self.settings: ProfileSettings | None = None
        self.autostart: bool | None = None
        self._unlocked = False

    @property
    def unlocked(self) -> bool:
        return self._unlocked

    async def load(self, profile_id: str | None) -> ProfileSettings | None:
        if profile_id != self.profile_id:
            self.profile_id = profile_id
            self.settings = None
            self._unlocked = False
        if profile_id is None:
            return None
        return self._apply(profile_id, await self._api.get(profile_id))

    async def set_openclaw_path(self, path: str | None) -> ProfileSettings | None:
        profile_id = self.profile_id
        if profile_id is None:
            return None
        return self._apply(profile_id, await self._api.set_openclaw_path(profile_id, _blank_to_none(path)))

    async def set_ollama(self, base_url: str | None, model: str | None) -> ProfileSettings | None:
        profile_id = self.profile_id
        if profile_id is None:
            return None
        await self._api.set_ollama_base_url(profile_id, _blank_to_none(base_url))
        return self._apply(profile_id, await self._api.set_ollama_model(profile_id, _blank_to_none(model)))

    def unlock(self, phrase: str) -> bool:
        self._unlocked = phrase.strip() == UNLOCK_PHRASE
        return self._unlocked

    async def set_dev_full_exec_auto(self, enabled: bool) -> ProfileSettings | None:
        profile_id = self.profile_id
        if profile_id is None:
            return None
        if enabled and not self._unlocked:
            logger.info("Refusing to enable full exec for %s: not unlocked", profile_id)
            return None
        return self._apply(profile_id, await self._api.set_dev_full_exec_auto(profile_id, enabled))

    async def load_autostart(self) -> bool:
        self.autostart = await self._autostart_api.get()
        return self.autostart

    async def set_autostart(self, enabled: bool) -> bool:
        await self._autostart_api.set(enabled)
        self.autostart = enabled
        return enabled

    def _apply(self, profile_id: str, settings: ProfileSettings) -> ProfileSettings:
        if profile_id == self.profile_id:
            self.settings = settings
        return settings
