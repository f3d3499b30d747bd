from __future__ import annotations


class BridgeError(Exception):
    """Base error for desktop host communication."""
    pass


class AuthError(BridgeError):
    """Authentication failed (401/403)."""
    pass


class BridgeRequestTimeoutError(BridgeError, TimeoutError):
    def __init__(self, method: str, request_id: str, timeout_ms: int) -> None:
        super().__init__(f"bridge request timed out after {timeout_ms}ms: {method}")
        self.method = method
        self.request_id = request_id
        self.timeout_ms = timeout_ms
