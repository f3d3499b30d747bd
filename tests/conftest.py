"""Shared fixtures: an in-memory desktop host and a manual toast scheduler."""
from __future__ import annotations

import asyncio
import itertools
from typing import Any, Callable

import pytest

from openclaw_desk.boundary import DesktopApi
from openclaw_desk.bridge import BridgeError
from openclaw_desk.core import Orchestrator, ToastQueue


class FakeTimer:
    def __init__(self, delay_s: float, callback: Callable[[], None]) -> None:
        self.delay_s = delay_s
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.callback()


class FakeScheduler:
    """Collects toast timers so tests decide when they fire."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay_s: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay_s, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def fire_all(self) -> None:
        for timer in list(self.timers):
            timer.fire()


class FakeHost:
    """In-memory stand-in for the desktop host's command surface.

    Mirrors the host's behaviour closely enough for the orchestration tests:
    creating a profile appends it and makes it active, deleting the last
    profile is refused, new chats are inserted first, and a send appends the
    user message plus either a reply or an ``[error] ...`` assistant message.
    """

    def __init__(self) -> None:
        self.on_event: Callable[[str, Any], None] | None = None
        self.started = False
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: dict[str, Exception] = {}
        self.gates: dict[tuple[str, str | None], asyncio.Event] = {}

        self.profiles: list[dict[str, Any]] = []
        self.active_profile_id: str | None = None
        self.chats: dict[str, list[dict[str, Any]]] = {}
        self.threads: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self.secrets: dict[tuple[str, str], str] = {}
        self.settings: dict[str, dict[str, Any]] = {}
        self.autostart = False

        self.reply_text = "hello back"
        self.reply_error: str | None = None
        self.gateway_exit_code = 0
        self.gateway_stderr = ""
        self.default_model: str | None = None

        self._ids = itertools.count(1)
        self._clock = itertools.count(1_700_000_000_000, 1_000)

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.started = False

    async def invoke(self, command: str, args: dict[str, Any] | None = None) -> Any:
        args = dict(args or {})
        self.calls.append((command, args))
        gate = self.gates.get((command, args.get("chatId"))) or self.gates.get((command, None))
        if gate is not None:
            await gate.wait()
        failure = self.failures.get(command)
        if failure is not None:
            raise failure
        handler = getattr(self, f"_cmd_{command}", None)
        if handler is None:
            raise BridgeError(f"unknown command: {command}")
        return handler(**args)

    def hold(self, command: str, chat_id: str | None = None) -> asyncio.Event:
        """Block ``command`` (optionally for one chat) until the returned event is set."""
        gate = asyncio.Event()
        self.gates[(command, chat_id)] = gate
        return gate

    def commands(self, name: str) -> list[dict[str, Any]]:
        return [args for command, args in self.calls if command == name]

    def seed_profile(self, name: str, *, active: bool = False) -> str:
        profile_id = self._new_id("p")
        self.profiles.append({"id": profile_id, "name": name, "created_at_ms": self._now()})
        if active or self.active_profile_id is None:
            self.active_profile_id = profile_id
        return profile_id

    def seed_chat(self, profile_id: str, title: str, *, chat_id: str | None = None, messages: list[str] | None = None) -> str:
        chat_id = chat_id or self._new_id("c")
        self.chats.setdefault(profile_id, []).append(self._chat(chat_id, title))
        self.threads[(profile_id, chat_id)] = [
            self._message("user", text) for text in messages or []
        ]
        return chat_id

    def _new_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def _now(self) -> int:
        return next(self._clock)

    def _chat(self, chat_id: str, title: str) -> dict[str, Any]:
        now = self._now()
        return {
            "id": chat_id,
            "title": title,
            "session_id": f"desktop-{chat_id}",
            "created_at_ms": now,
            "updated_at_ms": now,
            "agent_id": None,
            "thinking": "low",
            "worker": "default",
        }

    def _message(self, role: str, text: str) -> dict[str, Any]:
        return {"id": self._new_id("m"), "role": role, "text": text, "created_at_ms": self._now()}

    def _store(self) -> dict[str, Any]:
        return {
            "version": 1,
            "active_profile_id": self.active_profile_id,
            "profiles": [dict(p) for p in self.profiles],
        }

    def _index(self, profile_id: str) -> dict[str, Any]:
        return {"version": 1, "chats": [dict(c) for c in self.chats.get(profile_id, [])]}

    def _thread(self, profile_id: str, chat_id: str) -> dict[str, Any]:
        messages = self.threads.get((profile_id, chat_id), [])
        return {"version": 1, "chat_id": chat_id, "messages": [dict(m) for m in messages]}

    def _find_chat(self, profile_id: str, chat_id: str) -> dict[str, Any]:
        for chat in self.chats.get(profile_id, []):
            if chat["id"] == chat_id:
                return chat
        raise BridgeError("chat not found")

    def _cmd_profiles_list(self) -> dict[str, Any]:
        return self._store()

    def _cmd_profiles_create(self, name: str) -> dict[str, Any]:
        if not name.strip():
            raise BridgeError("name required")
        profile_id = self._new_id("p")
        self.profiles.append({"id": profile_id, "name": name.strip(), "created_at_ms": self._now()})
        self.active_profile_id = profile_id
        return self._store()

    def _cmd_profiles_set_active(self, profileId: str) -> dict[str, Any]:
        if not any(p["id"] == profileId for p in self.profiles):
            raise BridgeError("profile not found")
        self.active_profile_id = profileId
        return self._store()

    def _cmd_profiles_rename(self, profileId: str, name: str) -> dict[str, Any]:
        if not name.strip():
            raise BridgeError("name required")
        for profile in self.profiles:
            if profile["id"] == profileId:
                profile["name"] = name.strip()
                return self._store()
        raise BridgeError("profile not found")

    def _cmd_profiles_delete(self, profileId: str) -> dict[str, Any]:
        if len(self.profiles) == 1:
            raise BridgeError("cannot delete last profile")
        self.profiles = [p for p in self.profiles if p["id"] != profileId]
        if self.active_profile_id == profileId:
            self.active_profile_id = self.profiles[0]["id"] if self.profiles else None
        return self._store()

    def _cmd_secret_set(self, profileId: str, key: str, value: str) -> None:
        self.secrets[(profileId, key)] = value

    def _cmd_secret_get(self, profileId: str, key: str) -> str | None:
        return self.secrets.get((profileId, key))

    def _cmd_secret_delete(self, profileId: str, key: str) -> None:
        self.secrets.pop((profileId, key), None)

    def _cmd_chats_list(self, profileId: str) -> dict[str, Any]:
        return self._index(profileId)

    def _cmd_chats_create(self, profileId: str, title: str | None = None) -> dict[str, Any]:
        chat = self._chat(self._new_id("c"), title or "New chat")
        self.chats.setdefault(profileId, []).insert(0, chat)
        self.threads[(profileId, chat["id"])] = []
        return dict(chat)

    def _cmd_chats_rename(self, profileId: str, chatId: str, title: str) -> dict[str, Any]:
        if not title.strip():
            raise BridgeError("title required")
        self._find_chat(profileId, chatId)["title"] = title.strip()
        return self._index(profileId)

    def _cmd_chats_update(
        self,
        profileId: str,
        chatId: str,
        thinking: str | None = None,
        agentId: str | None = None,
        worker: str | None = None,
    ) -> dict[str, Any]:
        chat = self._find_chat(profileId, chatId)
        chat["thinking"] = thinking
        chat["agent_id"] = agentId
        chat["worker"] = worker
        return self._index(profileId)

    def _cmd_chats_delete(self, profileId: str, chatId: str) -> dict[str, Any]:
        self.chats[profileId] = [c for c in self.chats.get(profileId, []) if c["id"] != chatId]
        self.threads.pop((profileId, chatId), None)
        return self._index(profileId)

    def _cmd_chat_thread(self, profileId: str, chatId: str) -> dict[str, Any]:
        return self._thread(profileId, chatId)

    def _cmd_chat_reset(self, profileId: str, chatId: str) -> dict[str, Any]:
        self.threads[(profileId, chatId)] = []
        return self._thread(profileId, chatId)

    def _cmd_chat_send(self, profileId: str, chatId: str, text: str) -> dict[str, Any]:
        chat = self._find_chat(profileId, chatId)
        messages = self.threads.setdefault((profileId, chatId), [])
        messages.append(self._message("user", text))
        if self.reply_error is not None:
            messages.append(self._message("assistant", f"[error] {self.reply_error}"))
        else:
            messages.append(self._message("assistant", self.reply_text))
        chat["updated_at_ms"] = self._now()
        return {"thread": self._thread(profileId, chatId)}

    def _gateway(self, action: str) -> dict[str, Any]:
        return {
            "exit_code": self.gateway_exit_code,
            "stdout": f"gateway {action}: ok" if self.gateway_exit_code == 0 else "",
            "stderr": self.gateway_stderr,
        }

    def _cmd_gateway_status(self, profileId: str) -> dict[str, Any]:
        return self._gateway("status")

    def _cmd_gateway_start(self, profileId: str) -> dict[str, Any]:
        return self._gateway("start")

    def _cmd_gateway_stop(self, profileId: str) -> dict[str, Any]:
        return self._gateway("stop")

    def _cmd_gateway_restart(self, profileId: str) -> dict[str, Any]:
        return self._gateway("restart")

    def _cmd_gateway_logs(self, lines: int) -> dict[str, Any]:
        return {"out": f"last {lines} lines", "err": ""}

    def _settings_for(self, profile_id: str) -> dict[str, Any]:
        return self.settings.setdefault(profile_id, {"version": 1})

    def _cmd_settings_get(self, profileId: str) -> dict[str, Any]:
        return dict(self._settings_for(profileId))

    def _cmd_settings_set_openclaw_path(self, profileId: str, openclawPath: str | None) -> dict[str, Any]:
        self._settings_for(profileId)["openclaw_path"] = openclawPath
        return dict(self._settings_for(profileId))

    def _cmd_settings_set_ollama_base_url(self, profileId: str, ollamaBaseUrl: str | None) -> dict[str, Any]:
        self._settings_for(profileId)["ollama_base_url"] = ollamaBaseUrl
        return dict(self._settings_for(profileId))

    def _cmd_settings_set_ollama_model(self, profileId: str, ollamaModel: str | None) -> dict[str, Any]:
        self._settings_for(profileId)["ollama_model"] = ollamaModel
        return dict(self._settings_for(profileId))

    def _cmd_settings_set_dev_full_exec_auto(self, profileId: str, enabled: bool) -> dict[str, Any]:
        self._settings_for(profileId)["dev_full_exec_auto"] = enabled
        return dict(self._settings_for(profileId))

    def _cmd_autostart_get(self) -> bool:
        return self.autostart

    def _cmd_autostart_set(self, enabled: bool) -> None:
        self.autostart = enabled

    def _cmd_models_status(self, profileId: str) -> dict[str, Any]:
        return {"exit_code": 0, "stdout": f"default: {self.default_model or 'unset'}", "stderr": ""}

    def _cmd_models_set_default(self, profileId: str, model: str) -> dict[str, Any]:
        self.default_model = model
        return self._cmd_models_status(profileId)


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def api(host: FakeHost) -> DesktopApi:
    return DesktopApi(host)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def orchestrator(api: DesktopApi, scheduler: FakeScheduler) -> Orchestrator:
    return Orchestrator(api, toasts=ToastQueue(scheduler=scheduler))
