from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_DEFAULT_HOST = "127.0.0.1"
_DEFAULT_PORT = 18790
_DEFAULT_TRANSPORT = "ws"
_DEFAULT_SECRET_KEY = "demo.secret"
_DEFAULT_CONFIG_PATH = Path.home() / ".openclaw" / "desktop.json"
_TRANSPORTS = ("ws", "http")


@dataclass
class DeskConfig:
    host: str
    port: int
    token: str | None
    transport: str = _DEFAULT_TRANSPORT
    request_timeout_ms: int | None = None
    secret_key: str = _DEFAULT_SECRET_KEY
    log_path: str | None = None

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def ws_url(self) -> str:
        return f"ws://{self.host}:{self.port}"


def _coerce_timeout(value: object) -> int | None:
    if value is None:
        return None
    timeout = int(value)  # type: ignore[arg-type]
    return timeout if timeout > 0 else None


def load_config(config_path: str | None = None) -> DeskConfig:
    """Load config from ~/.openclaw/desktop.json, falling back to env vars.

    Config file fields:
    - bridge.host (str, default "127.0.0.1")
    - bridge.port (int, default 18790)
    - bridge.transport ("ws" | "http", default "ws")
    - bridge.auth.token (str, optional)
    - bridge.requestTimeoutMs (int, optional; unset means wait forever)
    - secretKey (str, default "demo.secret")
    - logPath (str, optional)

    Env var overrides:
    - OPENCLAW_DESK_HOST
    - OPENCLAW_DESK_PORT
    - OPENCLAW_DESK_TOKEN
    - OPENCLAW_DESK_TRANSPORT
    - OPENCLAW_DESK_LOG

    Returns DeskConfig. Never raises; uses defaults if config missing.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH

    host = _DEFAULT_HOST
    port = _DEFAULT_PORT
    transport = _DEFAULT_TRANSPORT
    token: str | None = None
    request_timeout_ms: int | None = None
    secret_key = _DEFAULT_SECRET_KEY
    log_path: str | None = None

    if path.exists():
        try:
            data = json.loads(path.read_text())
            bridge_section = data.get("bridge", {})
            host = str(bridge_section.get("host", _DEFAULT_HOST))
            port = int(bridge_section.get("port", _DEFAULT_PORT))
            transport = str(bridge_section.get("transport", _DEFAULT_TRANSPORT)).lower()
            token = bridge_section.get("auth", {}).get("token", None)
            request_timeout_ms = _coerce_timeout(bridge_section.get("requestTimeoutMs"))
            secret_key = str(data.get("secretKey", _DEFAULT_SECRET_KEY))
            log_path = data.get("logPath")
        except Exception as exc:
            logger.warning("Failed to parse config file %s: %s: using defaults", path, exc)
            host = _DEFAULT_HOST
            port = _DEFAULT_PORT
            transport = _DEFAULT_TRANSPORT
            token = None
            request_timeout_ms = None
            secret_key = _DEFAULT_SECRET_KEY
            log_path = None
    else:
        logger.info("Config file not found at %s: using defaults", path)

    # Env var overrides
    host = os.environ.get("OPENCLAW_DESK_HOST", host)

    env_port = os.environ.get("OPENCLAW_DESK_PORT")
    if env_port is not None:
        try:
            port = int(env_port)
        except ValueError:
            logger.warning("Invalid OPENCLAW_DESK_PORT value %r: using %d", env_port, port)

    env_token = os.environ.get("OPENCLAW_DESK_TOKEN")
    if env_token is not None:
        token = env_token

    env_transport = os.environ.get("OPENCLAW_DESK_TRANSPORT")
    if env_transport is not None:
        transport = env_transport.strip().lower()

    if transport not in _TRANSPORTS:
        logger.warning("Unknown bridge transport %r: using %r", transport, _DEFAULT_TRANSPORT)
        transport = _DEFAULT_TRANSPORT

    log_path = os.environ.get("OPENCLAW_DESK_LOG", log_path)

    return DeskConfig(
        host=host,
        port=port,
        token=token,
        transport=transport,
        request_timeout_ms=request_timeout_ms,
        secret_key=secret_key,
        log_path=log_path,
    )
