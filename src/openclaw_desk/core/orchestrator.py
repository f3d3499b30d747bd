"""Top-level coordinator for the desktop companion.

The orchestrator owns the busy lock, the toast queue, the modal slot and the
persistent banner. Every user intent that mutates host state goes through
``_locked``: it takes the lock, awaits the manager call, turns any failure into
an error toast and always releases the lock. Listeners registered with
``on_change`` are told whenever something renderable may have changed.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..boundary import DesktopApi
from ..models import Banner
from .busy import BusyState
from .chats import UNSET, ChatSessionManager
from .gateway import GatewayAction, GatewayController
from .modal import (
    DeleteChat,
    DeleteProfile,
    Dialog,
    ModalState,
    ModalStateMachine,
    RenameChat,
    RenameProfile,
    SecretDelete,
    SecretSet,
    SecretShow,
)
from .models_status import ModelsController
from .profiles import ProfileStore
from .settings import SettingsManager
from .toasts import ToastQueue

logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEY = "demo.secret"

PUSH_NEW_CHAT = "tray:new_chat"
PUSH_RESTART_GATEWAY = "tray:restart_gateway"

_GATEWAY_REASONS: dict[str, str] = {
    "status": "Checking gateway…",
    "start": "Starting gateway…",
    "stop": "Stopping gateway…",
    "restart": "Restarting gateway…",
}

_GATEWAY_DONE: dict[str, str] = {
    "start": "Gateway started",
    "stop": "Gateway stopped",
    "restart": "Gateway restarted",
}


def _error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Orchestrator:
    def __init__(
        self,
        api: DesktopApi,
        *,
        busy: BusyState | None = None,
        toasts: ToastQueue | None = None,
        modal: ModalStateMachine | None = None,
        secret_key: str = DEFAULT_SECRET_KEY,
    ) -> None:
        self.api = api
        self.busy = busy if busy is not None else BusyState()
        self.toasts = toasts if toasts is not None else ToastQueue()
        self.modal = modal if modal is not None else ModalStateMachine()
        self.secret_key = secret_key

        self.profiles = ProfileStore(api.profiles)
        self.chats = ChatSessionManager(api.chats, api.chat)
        self.gateway = GatewayController(api.gateway)
        self.settings = SettingsManager(api.settings, api.autostart)
        self.models = ModelsController(api.models)

        self.banner: Banner | None = None
        self._listeners: list[Callable[[], None]] = []

        self.busy.subscribe(lambda _reason: self._changed())
        self.toasts.on_change = self._changed
        self.modal.on_change = lambda _state: self._changed()

    def on_change(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as exc:  # noqa: BLE001
                logger.warning("Change listener failed: %s", exc)

    async def _guard(self, error_title: str, operation: Callable[[], Awaitable[Any]]) -> bool:
        """Await ``operation``; failures become an error toast. True on success."""
        try:
            await operation()
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s: %s", error_title, exc)
            self.toasts.error(error_title, _error_text(exc))
            return False
        finally:
            self._changed()
        return True

    async def _locked(
        self,
        reason: str,
        error_title: str,
        operation: Callable[[], Awaitable[Any]],
    ) -> bool:
        """Run a mutating operation under the busy lock.

        Returns False without calling anything if another operation holds the
        lock, or if the operation failed.
        """
        with self.busy.hold(reason) as acquired:
            if not acquired:
                return False
            return await self._guard(error_title, operation)

    @property
    def active_profile_id(self) -> str | None:
        return self.profiles.active_profile_id

    async def _sync_active_profile(self) -> None:
        """Re-derive the per-profile mirrors after the active profile may have changed."""
        profile_id = self.profiles.active_profile_id
        if profile_id != self.chats.profile_id:
            self.gateway.reset()
            self.models.reset()
        await self.chats.load_for_profile(profile_id)
        await self.settings.load(profile_id)

    async def initialize(self) -> bool:
        async def load() -> None:
            try:
                await self.profiles.list()
            except Exception as exc:
                self.banner = Banner("Could not load profiles", _error_text(exc))
                raise
            self.banner = None
            await self._sync_active_profile()
            await self.settings.load_autostart()

        ok = await self._locked("Loading profiles…", "Failed to load profiles", load)
        if ok:
            logger.info(
                "Loaded %d profiles (active=%s)",
                len(self.profiles.profiles),
                self.profiles.active_profile_id,
            )
        return ok

    async def retry_initialize(self) -> bool:
        self.banner = None
        self._changed()
        return await self.initialize()

    def dismiss_banner(self) -> None:
        self.banner = None
        self._changed()

    async def create_profile(self, name: str) -> bool:
        if not name.strip():
            return False

        async def create() -> None:
            await self.profiles.create(name)
            await self._sync_active_profile()
            self.toasts.success("Profile created", name.strip())

        return await self._locked("Creating profile…", "Failed to create profile", create)

    async def select_profile(self, profile_id: str) -> bool:
        if profile_id == self.profiles.active_profile_id:
            return False

        async def switch() -> None:
            await self.profiles.set_active(profile_id)
            await self._sync_active_profile()

        return await self._locked("Switching profile…", "Failed to switch profile", switch)

    def open_rename_profile(self, profile_id: str) -> None:
        profile = self.profiles.get(profile_id)
        if profile is None:
            return
        self.modal.open(RenameProfile(profile_id=profile_id, value=profile.name))

    def open_delete_profile(self, profile_id: str) -> None:
        if not self.profiles.can_delete:
            logger.debug("Not offering delete for %s: last profile", profile_id)
            return
        self.modal.open(DeleteProfile(profile_id=profile_id))

    async def new_chat(self, title: str | None = None) -> bool:
        if self.active_profile_id is None:
            return False
        return await self._locked("Creating chat…", "Failed to create chat", lambda: self.chats.create_chat(title))

    async def select_chat(self, chat_id: str) -> bool:
        # Reads are not gated by the busy lock; stale results are dropped by the manager.
        return await self._guard("Failed to load chat", lambda: self.chats.select_chat(chat_id))

    async def refresh_chats(self) -> bool:
        return await self._guard("Failed to load chats", self.chats.refresh_chats)

    async def refresh_thread(self) -> bool:
        return await self._guard("Failed to load chat", self.chats.refresh_thread)

    def open_rename_chat(self, chat_id: str) -> None:
        chat = self.chats.get(chat_id)
        if chat is None:
            return
        self.modal.open(RenameChat(chat_id=chat_id, value=chat.title))

    def open_delete_chat(self, chat_id: str) -> None:
        if self.chats.get(chat_id) is None:
            return
        self.modal.open(DeleteChat(chat_id=chat_id))

    async def update_chat_settings(
        self,
        chat_id: str,
        *,
        thinking: Any = UNSET,
        agent_id: Any = UNSET,
        worker: Any = UNSET,
    ) -> bool:
        async def update() -> None:
            await self.chats.update_chat_settings(
                chat_id, thinking=thinking, agent_id=agent_id, worker=worker
            )

        return await self._locked("Saving chat settings…", "Failed to update chat", update)

    async def reset_chat(self) -> bool:
        if self.chats.active_chat_id is None:
            return False

        async def reset() -> None:
            await self.chats.reset_thread()
            self.toasts.info("Chat reset")

        return await self._locked("Resetting chat…", "Failed to reset chat", reset)

    def set_draft(self, text: str) -> None:
        self.chats.set_draft(text)

    async def send(self, text: str | None = None) -> bool:
        if text is not None:
            self.chats.set_draft(text)
        if not self.chats.draft.strip() or self.chats.active_chat_id is None:
            return False

        async def send() -> None:
            outcome = await self.chats.send()
            if outcome is not None and outcome.soft_error:
                self.toasts.error("Send failed", outcome.soft_error)

        return await self._locked("Sending…", "Send failed", send)

    def open_secret_set(self) -> None:
        if self.active_profile_id is None:
            return
        self.modal.open(SecretSet(value=""))

    def open_secret_delete(self) -> None:
        if self.active_profile_id is None:
            return
        self.modal.open(SecretDelete())

    async def reveal_secret(self) -> bool:
        profile_id = self.active_profile_id
        if profile_id is None:
            return False

        async def reveal() -> None:
            value = await self.api.secrets.get(profile_id, self.secret_key)
            self.modal.open(SecretShow(value=value))

        return await self._locked("Reading secret…", "Failed to read secret", reveal)

    def update_modal_field(self, value: str) -> None:
        self.modal.update_field(value)

    def cancel_modal(self) -> None:
        self.modal.cancel()

    async def confirm_modal(self) -> bool:
        state = self.modal.state
        if state is None:
            return False
        if isinstance(state, (RenameProfile, RenameChat)) and not state.value.strip():
            return False
        if isinstance(state, SecretShow):
            self.modal.close()
            return True

        applied = False

        async def confirm() -> None:
            nonlocal applied
            applied = await self.modal.confirm(self._confirm_dialog)

        ok = await self._locked(_confirm_reason(state), _confirm_error(state), confirm)
        return ok and applied

    async def _confirm_dialog(self, dialog: Dialog) -> ModalState:
        profile_id = self.active_profile_id
        if isinstance(dialog, RenameProfile):
            await self.profiles.rename(dialog.profile_id, dialog.value)
            self.toasts.success("Profile renamed", dialog.value.strip())
            return None
        if isinstance(dialog, DeleteProfile):
            if await self.profiles.delete(dialog.profile_id) is not None:
                await self._sync_active_profile()
                self.toasts.success("Profile deleted")
            return None
        if isinstance(dialog, RenameChat):
            await self.chats.rename_chat(dialog.chat_id, dialog.value)
            self.toasts.success("Chat renamed", dialog.value.strip())
            return None
        if isinstance(dialog, DeleteChat):
            await self.chats.delete_chat(dialog.chat_id)
            self.toasts.success("Chat deleted")
            return None
        if profile_id is None:
            return None
        if isinstance(dialog, SecretSet):
            await self.api.secrets.set(profile_id, self.secret_key, dialog.value)
            self.toasts.success("Secret saved")
            return SecretShow(value=dialog.value)
        if isinstance(dialog, SecretDelete):
            await self.api.secrets.delete(profile_id, self.secret_key)
            self.toasts.success("Secret deleted")
            return None
        return None

    async def gateway_action(self, action: GatewayAction) -> bool:
        profile_id = self.active_profile_id
        if profile_id is None:
            return False

        async def run() -> None:
            status = await self.gateway.run(action, profile_id)
            if not status.ok:
                self.toasts.error(
                    f"Gateway {action} failed",
                    status.stderr.strip() or f"exit code {status.exit_code}",
                )
            elif action in _GATEWAY_DONE:
                self.toasts.success(_GATEWAY_DONE[action])

        return await self._locked(_GATEWAY_REASONS[action], f"Gateway {action} failed", run)

    async def refresh_gateway(self) -> bool:
        return await self.gateway_action("status")

    async def start_gateway(self) -> bool:
        return await self.gateway_action("start")

    async def stop_gateway(self) -> bool:
        return await self.gateway_action("stop")

    async def restart_gateway(self) -> bool:
        return await self.gateway_action("restart")

    async def save_openclaw_path(self, path: str | None) -> bool:
        async def save() -> None:
            await self.settings.set_openclaw_path(path)
            self.toasts.success("Saved OpenClaw path")

        return await self._locked("Saving settings…", "Failed to save", save)

    async def save_ollama(self, base_url: str | None, model: str | None) -> bool:
        async def save() -> None:
            await self.settings.set_ollama(base_url, model)
            self.toasts.success("Saved Ollama settings")

        return await self._locked("Saving settings…", "Failed to save Ollama settings", save)

    def unlock_dev_mode(self, phrase: str) -> bool:
        if self.settings.unlock(phrase):
            self.toasts.info("Developer Mode unlocked")
            return True
        self.toasts.error("Wrong phrase")
        return False

    async def set_dev_full_exec_auto(self, enabled: bool) -> bool:
        if enabled and not self.settings.unlocked:
            return False

        async def save() -> None:
            await self.settings.set_dev_full_exec_auto(enabled)
            if enabled:
                self.toasts.success("DEV: Full Exec (Auto) enabled")
            else:
                self.toasts.info("Developer Mode disabled")

        return await self._locked("Saving Developer Mode…", "Failed to update Developer Mode", save)

    async def set_autostart(self, enabled: bool) -> bool:
        async def save() -> None:
            await self.settings.set_autostart(enabled)
            self.toasts.success("Launch at login enabled" if enabled else "Launch at login disabled")

        return await self._locked("Saving launch at login…", "Failed to update launch at login", save)

    async def refresh_models(self) -> bool:
        profile_id = self.active_profile_id
        if profile_id is None:
            return False

        async def refresh() -> None:
            status = await self.models.refresh(profile_id)
            if not status.ok:
                self.toasts.error("Models status failed", status.stderr.strip() or None)

        return await self._locked("Checking models…", "Failed to load models", refresh)

    async def set_default_model(self, model: str) -> bool:
        profile_id = self.active_profile_id
        if profile_id is None or not model.strip():
            return False

        async def save() -> None:
            status = await self.models.set_default(profile_id, model)
            if status is not None and not status.ok:
                self.toasts.error("Failed to set default model", status.stderr.strip() or None)
            else:
                self.toasts.success("Default model set", model.strip())

        return await self._locked("Setting default model…", "Failed to set default model", save)

    async def handle_push(self, event: str) -> bool:
        """Route a tray notification through the same path as the manual action."""
        logger.info("Push event %s", event)
        if event == PUSH_NEW_CHAT:
            return await self.new_chat()
        if event == PUSH_RESTART_GATEWAY:
            return await self.restart_gateway()
        logger.debug("Ignoring unknown push event %r", event)
        return False

    def dismiss_toast(self, toast_id: str) -> None:
        self.toasts.dismiss(toast_id)


def _confirm_reason(dialog: Dialog) -> str:
    if isinstance(dialog, (RenameProfile, RenameChat)):
        return "Renaming…"
    if isinstance(dialog, SecretSet):
        return "Writing secret…"
    if isinstance(dialog, SecretDelete):
        return "Deleting secret…"
    return "Deleting…"


def _confirm_error(dialog: Dialog) -> str:
    return {
        RenameProfile: "Failed to rename profile",
        DeleteProfile: "Failed to delete profile",
        RenameChat: "Failed to rename chat",
        DeleteChat: "Failed to delete chat",
        SecretSet: "Failed to save secret",
        SecretDelete: "Failed to delete secret",
    }.get(type(dialog), "Action failed")
