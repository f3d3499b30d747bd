"""Transports to the desktop host's command surface."""

from .errors import AuthError, BridgeError, BridgeRequestTimeoutError
from .http_client import BridgeHttpClient
from .ws_client import BridgeWsClient

__all__ = [
    "AuthError",
    "BridgeError",
    "BridgeHttpClient",
    "BridgeRequestTimeoutError",
    "BridgeWsClient",
]
