from __future__ import annotations

import pytest

from openclaw_desk.models import (
    Chat,
    ChatIndex,
    ChatMessage,
    ChatSendResult,
    ChatThread,
    GatewayLogs,
    GatewayStatus,
    Profile,
    ProfileSettings,
    ProfilesStore,
)


class TestProfilesStore:
    def test_parses_snake_case(self):
        store = ProfilesStore.from_payload(
            {
                "version": 1,
                "active_profile_id": "p2",
                "profiles": [
                    {"id": "p1", "name": "Work", "created_at_ms": 10},
                    {"id": "p2", "name": "Home", "created_at_ms": 20},
                ],
            }
        )
        assert store.active_profile_id == "p2"
        assert store.active.name == "Home"
        assert store.profiles[0].created_at_ms == 10

    def test_parses_camel_case(self):
        store = ProfilesStore.from_payload(
            {"activeProfileId": "p1", "profiles": [{"id": "p1", "name": "Work", "createdAt": 5}]}
        )
        assert store.version == 1
        assert store.active_profile_id == "p1"
        assert store.profiles[0].created_at_ms == 5

    def test_dangling_active_id_is_repaired(self):
        store = ProfilesStore.from_payload(
            {"active_profile_id": "gone", "profiles": [{"id": "p1", "name": "Work"}]}
        )
        assert store.active_profile_id == "p1"

    def test_empty_store(self):
        store = ProfilesStore.from_payload({"version": 1, "active_profile_id": None, "profiles": []})
        assert store.profiles == []
        assert store.active is None

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            ProfilesStore.from_payload(["not", "a", "store"])


class TestProfile:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Deep Research Lab", "DR"),
            ("work", "W"),
            ("  ", "?"),
        ],
    )
    def test_initials(self, name, expected):
        assert Profile(id="p", name=name).initials == expected


class TestChat:
    def test_parses_full_chat(self):
        chat = Chat.from_payload(
            {
                "id": "c1",
                "title": "Plans",
                "sessionId": "desktop-c1",
                "createdAtMs": 1,
                "updatedAtMs": 2,
                "agentId": "main",
                "thinking": "high",
                "worker": "default",
            }
        )
        assert chat.session_id == "desktop-c1"
        assert chat.updated_at_ms == 2
        assert chat.agent_id == "main"
        assert chat.thinking == "high"

    def test_unknown_thinking_level_is_dropped(self):
        chat = Chat.from_payload({"id": "c1", "title": "t", "session_id": "s", "thinking": "extreme"})
        assert chat.thinking is None

    def test_index_lookup(self):
        index = ChatIndex.from_payload({"chats": [{"id": "c1", "title": "a"}, {"id": "c2", "title": "b"}]})
        assert index.get("c2").title == "b"
        assert index.get("c3") is None
        assert index.get(None) is None


class TestThread:
    def test_unknown_role_becomes_tool(self):
        message = ChatMessage.from_payload({"id": "m1", "role": "system", "text": "x"})
        assert message.role == "tool"

    def test_error_marker_only_on_assistant(self):
        assert ChatMessage(id="m", role="assistant", text="[error] boom").is_error
        assert not ChatMessage(id="m", role="user", text="[error] boom").is_error

    def test_thread_camel_case(self):
        thread = ChatThread.from_payload({"chatId": "c1", "messages": [{"id": "m1", "role": "user", "text": "hi"}]})
        assert thread.chat_id == "c1"
        assert thread.last_message.text == "hi"


class TestSendResult:
    def _payload(self, reply: str) -> dict:
        return {
            "thread": {
                "version": 1,
                "chat_id": "c1",
                "messages": [
                    {"id": "m1", "role": "user", "text": "hi"},
                    {"id": "m2", "role": "assistant", "text": reply},
                ],
            }
        }

    def test_assistant_id_defaults_to_last_assistant(self):
        result = ChatSendResult.from_payload(self._payload("hello"))
        assert result.assistant_message_id == "m2"
        assert result.soft_error is None

    def test_soft_error(self):
        result = ChatSendResult.from_payload(self._payload("[error] model offline"))
        assert result.soft_error == "[error] model offline"


class TestProcessSnapshots:
    def test_gateway_status(self):
        status = GatewayStatus.from_payload({"exitCode": 1, "stdout": None, "stderr": "bad"})
        assert status.exit_code == 1
        assert status.stdout == ""
        assert not status.ok

    def test_missing_exit_code_is_failure(self):
        assert not GatewayStatus.from_payload({}).ok

    def test_logs(self):
        logs = GatewayLogs.from_payload({"out": "a\nb", "err": None})
        assert logs.out == "a\nb"
        assert logs.err == ""


class TestProfileSettings:
    def test_camel_case_and_bool_only(self):
        settings = ProfileSettings.from_payload(
            {"openclawPath": "/bin/openclaw", "ollamaBaseUrl": "http://x", "devFullExecAuto": "yes"}
        )
        assert settings.openclaw_path == "/bin/openclaw"
        assert settings.ollama_base_url == "http://x"
        assert settings.ollama_model is None
        assert settings.dev_full_exec_auto is None
