from __future__ import annotations

import logging
from dataclasses import dataclass

from ..boundary import ChatApi, ChatsApi
from ..models import Chat, ChatIndex, ChatSendResult, ChatThread

logger = logging.getLogger(__name__)

UNSET: object = object()


@dataclass
class SendOutcome:
    chat_id: str
    result: ChatSendResult
    applied: bool

    @property
    def soft_error(self) -> str | None:
        return self.result.soft_error


class ChatSessionManager:
    """Chat index and active thread for the active profile.

    The index is replaced wholesale after every mutation. Thread fetches are
    keyed by the selection ``(profile_id, chat_id)`` that issued them and are
    dropped if the selection moved on before they resolved.
    """

    def __init__(self, chats_api: ChatsApi, chat_api: ChatApi) -> None:
        self._chats_api = chats_api
        self._chat_api = chat_api
        self._profile_id: str | None = None
        self._index: ChatIndex | None = None
        self._active_chat_id: str | None = None
        self._thread: ChatThread | None = None
        self.draft: str = ""

    @property
    def profile_id(self) -> str | None:
        return self._profile_id

    @property
    def chats(self) -> list[Chat]:
        return list(self._index.chats) if self._index is not None else []

    @property
    def active_chat_id(self) -> str | None:
        return self._active_chat_id

    @property
    def active_chat(self) -> Chat | None:
        return self._index.get(self._active_chat_id) if self._index is not None else None

    @property
    def thread(self) -> ChatThread | None:
        return self._thread

    def get(self, chat_id: str) -> Chat | None:
        return self._index.get(chat_id) if self._index is not None else None

    def set_draft(self, text: str) -> None:
        self.draft = text

    def _selection(self) -> tuple[str | None, str | None]:
        return self._profile_id, self._active_chat_id

    async def load_for_profile(self, profile_id: str | None) -> None:
        """Re-derive the chat mirrors after the active profile changed."""
        if profile_id != self._profile_id:
            self._profile_id = profile_id
            self._index = None
            self._active_chat_id = None
            self._thread = None
            self.draft = ""
        if profile_id is None:
            return
        await self.refresh_chats()

    async def refresh_chats(self) -> ChatIndex | None:
        profile_id = self._profile_id
        if profile_id is None:
            return None
        index = await self._chats_api.list(profile_id)
        if profile_id != self._profile_id:
            logger.debug("Dropping chat index for %s: profile changed", profile_id)
            return None
        self._apply_index(index)
        await self._ensure_selection()
        return index

    async def select_chat(self, chat_id: str | None) -> None:
        if chat_id == self._active_chat_id and self._thread is not None:
            return
        self._active_chat_id = chat_id
        self._thread = None
        if chat_id is not None:
            await self.refresh_thread()

    async def refresh_thread(self) -> ChatThread | None:
        profile_id, chat_id = self._selection()
        if profile_id is None or chat_id is None:
            return None
        thread = await self._chat_api.thread(profile_id, chat_id)
        self._apply_thread((profile_id, chat_id), thread)
        return thread

    async def reset_thread(self) -> ChatThread | None:
        profile_id, chat_id = self._selection()
        if profile_id is None or chat_id is None:
            return None
        thread = await self._chat_api.reset(profile_id, chat_id)
        self._apply_thread((profile_id, chat_id), thread)
        return thread

    async def create_chat(self, title: str | None = None) -> Chat | None:
        profile_id = self._profile_id
        if profile_id is None:
            return None
        clean = title.strip() if title else ""
        chat = await self._chats_api.create(profile_id, clean or None)
        logger.info("Created chat %s in profile %s", chat.id, profile_id)
        index = await self._chats_api.list(profile_id)
        if profile_id != self._profile_id:
            return chat
        self._apply_index(index)
        self._active_chat_id = None
        await self.select_chat(chat.id)
        return chat

    async def rename_chat(self, chat_id: str, title: str) -> ChatIndex | None:
        profile_id = self._profile_id
        clean = title.strip()
        if profile_id is None or not clean:
            return None
        index = await self._chats_api.rename(profile_id, chat_id, clean)
        if profile_id == self._profile_id:
            self._apply_index(index)
        return index

    async def update_chat_settings(
        self,
        chat_id: str,
        *,
        thinking: str | None | object = UNSET,
        agent_id: str | None | object = UNSET,
        worker: str | None | object = UNSET,
    ) -> ChatIndex | None:
        """Patch per-chat options. Omitted fields keep the chat's current value."""
        profile_id = self._profile_id
        chat = self.get(chat_id)
        if profile_id is None or chat is None:
            return None
        index = await self._chats_api.update(
            profile_id,
            chat_id,
            thinking=chat.thinking if thinking is UNSET else thinking,  # type: ignore[arg-type]
            agent_id=chat.agent_id if agent_id is UNSET else agent_id,  # type: ignore[arg-type]
            worker=chat.worker if worker is UNSET else worker,  # type: ignore[arg-type]
        )
        if profile_id == self._profile_id:
            self._apply_index(index)
        return index

    async def delete_chat(self, chat_id: str) -> ChatIndex | None:
        profile_id = self._profile_id
        if profile_id is None:
            return None
        index = await self._chats_api.delete(profile_id, chat_id)
        if profile_id != self._profile_id:
            return index
        self._apply_index(index)
        if self._active_chat_id == chat_id:
            self._active_chat_id = None
            self._thread = None
        await self._ensure_selection()
        return index

    async def send(self) -> SendOutcome | None:
        """Send the draft to the active chat.

        The draft is cleared before the host answers; the thread only changes
        when the response arrives (and still matches the selection).
        """
        profile_id, chat_id = self._selection()
        text = self.draft.strip()
        if profile_id is None or chat_id is None or not text:
            return None
        self.draft = ""
        result = await self._chat_api.send(profile_id, chat_id, text)
        applied = self._apply_thread((profile_id, chat_id), result.thread)
        if result.soft_error:
            logger.warning("Chat %s reply carries an error: %s", chat_id, result.soft_error)
        outcome = SendOutcome(chat_id=chat_id, result=result, applied=applied)
        # The message is delivered at this point; a failed re-list only leaves the index stale.
        try:
            index = await self._chats_api.list(profile_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Chat index refresh after send failed: %s", exc)
            return outcome
        if profile_id == self._profile_id:
            self._apply_index(index)
        return outcome

    def _apply_index(self, index: ChatIndex) -> None:
        self._index = index

    def _apply_thread(self, selection: tuple[str, str], thread: ChatThread) -> bool:
        if selection != self._selection():
            logger.debug("Dropping stale thread for %s/%s", *selection)
            return False
        self._thread = thread
        return True

    async def _ensure_selection(self) -> None:
        if self._index is None:
            return
        if self._active_chat_id is not None and self._index.get(self._active_chat_id) is not None:
            if self._thread is None:
                await self.refresh_thread()
            return
        first = self._index.chats[0].id if self._index.chats else None
        await self.select_chat(first)
