"""Typed facade over the desktop host's command surface.

Every call is asynchronous and can fail; failures surface as exceptions from the
transport (``BridgeError``, ``AuthError``, ``ConnectionError``). The facade only
translates between Python types and the host's JSON payloads.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Protocol

from .config import DeskConfig
from .models import (
    Chat,
    ChatIndex,
    ChatSendResult,
    ChatThread,
    GatewayLogs,
    GatewayStatus,
    ModelsStatus,
    ProfileSettings,
    ProfilesStore,
)

logger = logging.getLogger(__name__)

DEFAULT_LOG_LINES = 200


class Transport(Protocol):
    on_event: Callable[[str, Any], None] | None

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def invoke(self, command: str, args: dict[str, Any] | None = None) -> Any: ...


class _Namespace:
    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def _invoke(self, command: str, **args: Any) -> Any:
        logger.debug("invoke %s", command)
        return await self._transport.invoke(command, args)


class ProfilesApi(_Namespace):
    async def list(self) -> ProfilesStore:
        return ProfilesStore.from_payload(await self._invoke("profiles_list"))

    async def create(self, name: str) -> ProfilesStore:
        return ProfilesStore.from_payload(await self._invoke("profiles_create", name=name))

    async def set_active(self, profile_id: str) -> ProfilesStore:
        return ProfilesStore.from_payload(
            await self._invoke("profiles_set_active", profileId=profile_id)
        )

    async def rename(self, profile_id: str, name: str) -> ProfilesStore:
        return ProfilesStore.from_payload(
            await self._invoke("profiles_rename", profileId=profile_id, name=name)
        )

    async def delete(self, profile_id: str) -> ProfilesStore:
        return ProfilesStore.from_payload(
            await self._invoke("profiles_delete", profileId=profile_id)
        )


class SecretsApi(_Namespace):
    async def set(self, profile_id: str, key: str, value: str) -> None:
        await self._invoke("secret_set", profileId=profile_id, key=key, value=value)

    async def get(self, profile_id: str, key: str) -> str | None:
        value = await self._invoke("secret_get", profileId=profile_id, key=key)
        return value if isinstance(value, str) else None

    async def delete(self, profile_id: str, key: str) -> None:
        await self._invoke("secret_delete", profileId=profile_id, key=key)


class ChatsApi(_Namespace):
    async def list(self, profile_id: str) -> ChatIndex:
        return ChatIndex.from_payload(await self._invoke("chats_list", profileId=profile_id))

    async def create(self, profile_id: str, title: str | None = None) -> Chat:
        return Chat.from_payload(await self._invoke("chats_create", profileId=profile_id, title=title))

    async def rename(self, profile_id: str, chat_id: str, title: str) -> ChatIndex:
        return ChatIndex.from_payload(
            await self._invoke("chats_rename", profileId=profile_id, chatId=chat_id, title=title)
        )

    async def update(
        self,
        profile_id: str,
        chat_id: str,
        *,
        thinking: str | None = None,
        agent_id: str | None = None,
        worker: str | None = None,
    ) -> ChatIndex:
        return ChatIndex.from_payload(
            await self._invoke(
                "chats_update",
                profileId=profile_id,
                chatId=chat_id,
                thinking=thinking,
                agentId=agent_id,
                worker=worker,
            )
        )

    async def delete(self, profile_id: str, chat_id: str) -> ChatIndex:
        return ChatIndex.from_payload(
            await self._invoke("chats_delete", profileId=profile_id, chatId=chat_id)
        )


class ChatApi(_Namespace):
    async def thread(self, profile_id: str, chat_id: str) -> ChatThread:
        return ChatThread.from_payload(
            await self._invoke("chat_thread", profileId=profile_id, chatId=chat_id)
        )

    async def send(self, profile_id: str, chat_id: str, text: str) -> ChatSendResult:
        return ChatSendResult.from_payload(
            await self._invoke("chat_send", profileId=profile_id, chatId=chat_id, text=text)
        )

    async def reset(self, profile_id: str, chat_id: str) -> ChatThread:
        return ChatThread.from_payload(
            await self._invoke("chat_reset", profileId=profile_id, chatId=chat_id)
        )


class GatewayApi(_Namespace):
    async def status(self, profile_id: str) -> GatewayStatus:
        return GatewayStatus.from_payload(await self._invoke("gateway_status", profileId=profile_id))

    async def start(self, profile_id: str) -> GatewayStatus:
        return GatewayStatus.from_payload(await self._invoke("gateway_start", profileId=profile_id))

    async def stop(self, profile_id: str) -> GatewayStatus:
        return GatewayStatus.from_payload(await self._invoke("gateway_stop", profileId=profile_id))

    async def restart(self, profile_id: str) -> GatewayStatus:
        return GatewayStatus.from_payload(await self._invoke("gateway_restart", profileId=profile_id))

    async def logs(self, lines: int = DEFAULT_LOG_LINES) -> GatewayLogs:
        # Log tails are host-wide, never profile-scoped.
        return GatewayLogs.from_payload(await self._invoke("gateway_logs", lines=lines))


class SettingsApi(_Namespace):
    async def get(self, profile_id: str) -> ProfileSettings:
        return ProfileSettings.from_payload(await self._invoke("settings_get", profileId=profile_id))

    async def set_openclaw_path(self, profile_id: str, path: str | None) -> ProfileSettings:
        return ProfileSettings.from_payload(
            await self._invoke("settings_set_openclaw_path", profileId=profile_id, openclawPath=path)
        )

    async def set_ollama_base_url(self, profile_id: str, base_url: str | None) -> ProfileSettings:
        return ProfileSettings.from_payload(
            await self._invoke(
                "settings_set_ollama_base_url", profileId=profile_id, ollamaBaseUrl=base_url
            )
        )

    async def set_ollama_model(self, profile_id: str, model: str | None) -> ProfileSettings:
        return ProfileSettings.from_payload(
            await self._invoke("settings_set_ollama_model", profileId=profile_id, ollamaModel=model)
        )

    async def set_dev_full_exec_auto(self, profile_id: str, enabled: bool) -> ProfileSettings:
        return ProfileSettings.from_payload(
            await self._invoke(
                "settings_set_dev_full_exec_auto", profileId=profile_id, enabled=enabled
            )
        )


class AutostartApi(_Namespace):
    async def get(self) -> bool:
        return bool(await self._invoke("autostart_get"))

    async def set(self, enabled: bool) -> None:
        await self._invoke("autostart_set", enabled=enabled)


class ModelsApi(_Namespace):
    async def status(self, profile_id: str) -> ModelsStatus:
        return ModelsStatus.from_payload(await self._invoke("models_status", profileId=profile_id))

    async def set_default(self, profile_id: str, model: str) -> ModelsStatus:
        return ModelsStatus.from_payload(
            await self._invoke("models_set_default", profileId=profile_id, model=model)
        )


class DesktopApi:
    """All boundary calls the orchestration core consumes, grouped by concern."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self.profiles = ProfilesApi(transport)
        self.secrets = SecretsApi(transport)
        self.chats = ChatsApi(transport)
        self.chat = ChatApi(transport)
        self.gateway = GatewayApi(transport)
        self.settings = SettingsApi(transport)
        self.autostart = AutostartApi(transport)
        self.models = ModelsApi(transport)

    async def start(self) -> None:
        await self.transport.start()
        wait_ready = getattr(self.transport, "wait_ready", None)
        if callable(wait_ready):
            result = wait_ready()
            if inspect.isawaitable(result):
                await result

    async def stop(self) -> None:
        await self.transport.stop()

    def on_push(self, callback: Callable[[str], None]) -> None:
        """Route host push notifications (tray events) to ``callback``."""

        def _forward(event: str, _payload: Any) -> None:
            callback(event)

        self.transport.on_event = _forward


def build_api(config: DeskConfig) -> DesktopApi:
    """Build the facade over the transport selected in ``config``."""
    from .bridge import BridgeHttpClient, BridgeWsClient

    transport: Transport
    if config.transport == "http":
        transport = BridgeHttpClient(config)
    else:
        transport = BridgeWsClient(
            url=config.ws_url,
            token=config.token,
            request_timeout_ms=config.request_timeout_ms,
        )
    logger.info("Using %s bridge transport", config.transport)
    return DesktopApi(transport)
