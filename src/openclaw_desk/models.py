from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

logger = logging.getLogger(__name__)

ThinkingLevel = Literal["off", "minimal", "low", "medium", "high"]
ChatRole = Literal["user", "assistant", "tool"]
ToastKind = Literal["info", "success", "error"]

THINKING_LEVELS: tuple[str, ...] = ("off", "minimal", "low", "medium", "high")
CHAT_ROLES: tuple[str, ...] = ("user", "assistant", "tool")

# Assistant replies that failed upstream are stored with this prefix.
ERROR_MARKER = "[error]"


def _pick(raw: dict, *keys: str, default: Any = None) -> Any:
    """Return the first present key; the host may answer in snake_case or camelCase."""
    for key in keys:
        if key in raw:
            return raw[key]
    return default


def _as_int(value: object, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    return default


def _as_opt_str(value: object) -> str | None:
    if isinstance(value, str):
        return value
    return None


def _require_dict(raw: object, what: str) -> dict:
    if not isinstance(raw, dict):
        raise ValueError(f"{what} payload is not an object: {type(raw).__name__}")
    return raw


@dataclass
class Profile:
    id: str
    name: str
    created_at_ms: int = 0

    @classmethod
    def from_payload(cls, raw: object) -> Profile:
        data = _require_dict(raw, "profile")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            created_at_ms=_as_int(_pick(data, "created_at_ms", "createdAt", "createdAtMs")),
        )

    @property
    def initials(self) -> str:
        """'Deep Research Lab' → 'DR'."""
        parts = self.name.strip().split()[:2]
        return "".join(part[0].upper() for part in parts) or "?"


@dataclass
class ProfilesStore:
    version: int
    active_profile_id: str | None
    profiles: list[Profile] = field(default_factory=list)

    @classmethod
    def from_payload(cls, raw: object) -> ProfilesStore:
        data = _require_dict(raw, "profiles store")
        profiles = [Profile.from_payload(item) for item in data.get("profiles") or []]
        active = _as_opt_str(_pick(data, "active_profile_id", "activeProfileId"))
        known = {profile.id for profile in profiles}
        if active is not None and active not in known:
            repaired = profiles[0].id if profiles else None
            logger.warning("Active profile %r not in store: using %r", active, repaired)
            active = repaired
        elif active is None and profiles:
            active = profiles[0].id
        return cls(version=_as_int(data.get("version"), 1), active_profile_id=active, profiles=profiles)

    def get(self, profile_id: str | None) -> Profile | None:
        if profile_id is None:
            return None
        return next((profile for profile in self.profiles if profile.id == profile_id), None)

    @property
    def active(self) -> Profile | None:
        return self.get(self.active_profile_id)


@dataclass
class Chat:
    id: str
    title: str
    session_id: str
    created_at_ms: int = 0
    updated_at_ms: int = 0
    agent_id: str | None = None
    thinking: ThinkingLevel | None = None
    worker: str | None = None

    @classmethod
    def from_payload(cls, raw: object) -> Chat:
        data = _require_dict(raw, "chat")
        thinking = _as_opt_str(data.get("thinking"))
        if thinking is not None and thinking not in THINKING_LEVELS:
            logger.warning("Unknown thinking level %r on chat %s: ignoring", thinking, data.get("id"))
            thinking = None
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            session_id=str(_pick(data, "session_id", "sessionId", default="")),
            created_at_ms=_as_int(_pick(data, "created_at_ms", "createdAt", "createdAtMs")),
            updated_at_ms=_as_int(_pick(data, "updated_at_ms", "updatedAt", "updatedAtMs")),
            agent_id=_as_opt_str(_pick(data, "agent_id", "agentId")),
            thinking=thinking,  # type: ignore[arg-type]
            worker=_as_opt_str(data.get("worker")),
        )


@dataclass
class ChatIndex:
    version: int
    chats: list[Chat] = field(default_factory=list)

    @classmethod
    def from_payload(cls, raw: object) -> ChatIndex:
        data = _require_dict(raw, "chat index")
        chats = [Chat.from_payload(item) for item in data.get("chats") or []]
        return cls(version=_as_int(data.get("version"), 1), chats=chats)

    def get(self, chat_id: str | None) -> Chat | None:
        if chat_id is None:
            return None
        return next((chat for chat in self.chats if chat.id == chat_id), None)


@dataclass(frozen=True)
class ChatMessage:
    id: str
    role: ChatRole
    text: str
    created_at_ms: int = 0

    @classmethod
    def from_payload(cls, raw: object) -> ChatMessage:
        data = _require_dict(raw, "chat message")
        role = str(data.get("role", "assistant")).lower()
        if role not in CHAT_ROLES:
            role = "tool"
        return cls(
            id=str(data["id"]),
            role=role,  # type: ignore[arg-type]
            text=str(data.get("text", "")),
            created_at_ms=_as_int(_pick(data, "created_at_ms", "createdAt", "createdAtMs")),
        )

    @property
    def is_error(self) -> bool:
        return self.role == "assistant" and self.text.startswith(ERROR_MARKER)


@dataclass
class ChatThread:
    version: int
    chat_id: str
    messages: list[ChatMessage] = field(default_factory=list)

    @classmethod
    def from_payload(cls, raw: object) -> ChatThread:
        data = _require_dict(raw, "chat thread")
        return cls(
            version=_as_int(data.get("version"), 1),
            chat_id=str(_pick(data, "chat_id", "chatId", default="")),
            messages=[ChatMessage.from_payload(item) for item in data.get("messages") or []],
        )

    @property
    def last_message(self) -> ChatMessage | None:
        return self.messages[-1] if self.messages else None


@dataclass
class ChatSendResult:
    thread: ChatThread
    assistant_message_id: str | None = None

    @classmethod
    def from_payload(cls, raw: object) -> ChatSendResult:
        data = _require_dict(raw, "chat send result")
        thread = ChatThread.from_payload(data.get("thread"))
        assistant_id = _as_opt_str(_pick(data, "assistant_message_id", "assistantMessageId"))
        if assistant_id is None:
            assistant = next((m for m in reversed(thread.messages) if m.role == "assistant"), None)
            assistant_id = assistant.id if assistant is not None else None
        return cls(thread=thread, assistant_message_id=assistant_id)

    @property
    def soft_error(self) -> str | None:
        """Text of a trailing '[error] ...' assistant reply, if the send failed upstream."""
        last = self.thread.last_message
        if last is not None and last.is_error:
            return last.text
        return None


@dataclass
class GatewayStatus:
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @classmethod
    def from_payload(cls, raw: object) -> GatewayStatus:
        data = _require_dict(raw, "gateway status")
        return cls(
            exit_code=_as_int(_pick(data, "exit_code", "exitCode"), -1),
            stdout=str(data.get("stdout") or ""),
            stderr=str(data.get("stderr") or ""),
        )

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


# `models status` has the same process-snapshot shape.
ModelsStatus = GatewayStatus


@dataclass
class GatewayLogs:
    out: str = ""
    err: str = ""

    @classmethod
    def from_payload(cls, raw: object) -> GatewayLogs:
        data = _require_dict(raw, "gateway logs")
        return cls(out=str(data.get("out") or ""), err=str(data.get("err") or ""))


@dataclass
class ProfileSettings:
    version: int = 1
    openclaw_path: str | None = None
    ollama_base_url: str | None = None
    ollama_model: str | None = None
    dev_full_exec_auto: bool | None = None

    @classmethod
    def from_payload(cls, raw: object) -> ProfileSettings:
        data = _require_dict(raw, "profile settings")
        dev = _pick(data, "dev_full_exec_auto", "devFullExecAuto")
        return cls(
            version=_as_int(data.get("version"), 1),
            openclaw_path=_as_opt_str(_pick(data, "openclaw_path", "openclawPath")),
            ollama_base_url=_as_opt_str(_pick(data, "ollama_base_url", "ollamaBaseUrl")),
            ollama_model=_as_opt_str(_pick(data, "ollama_model", "ollamaModel")),
            dev_full_exec_auto=dev if isinstance(dev, bool) else None,
        )


@dataclass
class Toast:
    id: str
    kind: ToastKind
    title: str
    message: str | None
    created_at_ms: int
    timeout_ms: int


@dataclass
class Banner:
    title: str
    message: str | None = None
