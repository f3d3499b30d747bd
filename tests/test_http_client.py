from __future__ import annotations

import json

import httpx
import pytest

from openclaw_desk.bridge import AuthError, BridgeError, BridgeHttpClient
from openclaw_desk.config import DeskConfig


def make_config(token: str | None = "test-token") -> DeskConfig:
    return DeskConfig(host="127.0.0.1", port=18790, token=token, transport="http")


def make_client(handler, token: str | None = "test-token") -> BridgeHttpClient:
    client = BridgeHttpClient(make_config(token))
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    client._client = httpx.Client(
        base_url="http://127.0.0.1:18790",
        headers=headers,
        transport=httpx.MockTransport(handler),
    )
    return client


def respond(body: object, status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=status_code, json=body)

    return handler


class TestInvokeSync:
    def test_posts_command_and_args(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"ok": True, "payload": {"version": 1, "chats": []}})

        client = make_client(handler)

        result = client.invoke_sync("chats_list", {"profileId": "p1"})

        assert result == {"version": 1, "chats": []}
        request = captured[0]
        assert request.method == "POST"
        assert request.url.path == "/invoke"
        assert json.loads(request.content) == {"command": "chats_list", "args": {"profileId": "p1"}}
        assert request.headers["Authorization"] == "Bearer test-token"

    def test_result_member_is_accepted(self):
        client = make_client(respond({"ok": True, "result": True}))
        assert client.invoke_sync("autostart_get", {}) is True

    def test_null_payload(self):
        client = make_client(respond({"ok": True, "payload": None}))
        assert client.invoke_sync("secret_get", {"profileId": "p1", "key": "k"}) is None

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_auth_failure(self, status_code):
        client = make_client(respond({"error": "nope"}, status_code=status_code))
        with pytest.raises(AuthError):
            client.invoke_sync("profiles_list", {})

    def test_server_error_includes_detail(self):
        client = make_client(respond({"error": {"message": "store locked"}}, status_code=500))
        with pytest.raises(BridgeError, match="HTTP 500 for 'profiles_list': store locked"):
            client.invoke_sync("profiles_list", {})

    def test_ok_false_raises_with_host_message(self):
        client = make_client(respond({"ok": False, "error": "cannot delete last profile"}))
        with pytest.raises(BridgeError, match="cannot delete last profile"):
            client.invoke_sync("profiles_delete", {"profileId": "p1"})

    def test_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        client = make_client(handler)
        with pytest.raises(BridgeError, match="invalid JSON"):
            client.invoke_sync("profiles_list", {})

    def test_connect_error_becomes_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)
        with pytest.raises(ConnectionError, match="Cannot reach desktop host"):
            client.invoke_sync("profiles_list", {})


class TestClientLifecycle:
    def test_token_sets_bearer_header(self):
        client = BridgeHttpClient(make_config(token="abc"))
        http = client._get_client()
        assert http.headers["Authorization"] == "Bearer abc"
        client.close()

    def test_no_token_no_header(self):
        client = BridgeHttpClient(make_config(token=None))
        http = client._get_client()
        assert "Authorization" not in http.headers
        client.close()

    def test_client_is_reused(self):
        client = BridgeHttpClient(make_config())
        assert client._get_client() is client._get_client()
        client.close()


@pytest.mark.asyncio
async def test_async_invoke_runs_in_thread():
    client = make_client(respond({"ok": True, "payload": {"version": 1, "profiles": []}}))
    assert await client.invoke("profiles_list") == {"version": 1, "profiles": []}
    await client.stop()
