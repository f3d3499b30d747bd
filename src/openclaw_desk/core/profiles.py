from __future__ import annotations

import logging

from ..boundary import ProfilesApi
from ..models import Profile, ProfilesStore

logger = logging.getLogger(__name__)


class ProfileStore:
    """Mirror of the host's profile collection.

    Every operation swaps in the full store the host returns; nothing is
    patched locally, so a failed call leaves the mirror untouched.
    """

    def __init__(self, api: ProfilesApi) -> None:
        self._api = api
        self._store: ProfilesStore | None = None

    @property
    def store(self) -> ProfilesStore | None:
        return self._store

    @property
    def profiles(self) -> list[Profile]:
        return list(self._store.profiles) if self._store is not None else []

    @property
    def active_profile_id(self) -> str | None:
        return self._store.active_profile_id if self._store is not None else None

    @property
    def active(self) -> Profile | None:
        return self._store.active if self._store is not None else None

    @property
    def can_delete(self) -> bool:
        return len(self.profiles) > 1

    def get(self, profile_id: str) -> Profile | None:
        return self._store.get(profile_id) if self._store is not None else None

    async def list(self) -> ProfilesStore:
        return self._swap(await self._api.list())

    async def create(self, name: str) -> ProfilesStore | None:
        clean = name.strip()
        if not clean:
            return None
        return self._swap(await self._api.create(clean))

    async def set_active(self, profile_id: str) -> ProfilesStore:
        return self._swap(await self._api.set_active(profile_id))

    async def rename(self, profile_id: str, name: str) -> ProfilesStore | None:
        clean = name.strip()
        if not clean:
            return None
        return self._swap(await self._api.rename(profile_id, clean))

    async def delete(self, profile_id: str) -> ProfilesStore | None:
        if not self.can_delete:
            logger.info("Refusing to delete %s: it is the only profile", profile_id)
            return None
        return self._swap(await self._api.delete(profile_id))

    def _swap(self, store: ProfilesStore) -> ProfilesStore:
        self._store = store
        logger.debug("Profiles store now has %d profiles (active=%s)", len(store.profiles), store.active_profile_id)
        return store
