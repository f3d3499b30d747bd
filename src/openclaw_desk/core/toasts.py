from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Protocol
from uuid import uuid4

from ..models import Toast, ToastKind

MAX_TOASTS = 5

DEFAULT_TIMEOUT_MS: dict[str, int] = {
    "info": 3_500,
    "success": 2_500,
    "error": 7_000,
}


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def _loop_scheduler(delay_s: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay_s, callback)


class ToastQueue:
    """Newest-first notification list capped at five entries.

    Every toast owns its own expiry timer keyed by id; dismissing or evicting a
    toast cancels that timer.
    """

    def __init__(
        self,
        *,
        scheduler: Scheduler | None = None,
        on_change: Callable[[], None] | None = None,
        max_toasts: int = MAX_TOASTS,
    ) -> None:
        self._scheduler = scheduler or _loop_scheduler
        self._timers: dict[str, TimerHandle] = {}
        self._toasts: list[Toast] = []
        self._max = max_toasts
        self.on_change = on_change

    @property
    def toasts(self) -> list[Toast]:
        return list(self._toasts)

    def push(
        self,
        kind: ToastKind,
        title: str,
        message: str | None = None,
        *,
        timeout_ms: int | None = None,
    ) -> str:
        toast = Toast(
            id=uuid4().hex,
            kind=kind,
            title=title,
            message=message or None,
            created_at_ms=int(time.time() * 1000),
            timeout_ms=timeout_ms if timeout_ms is not None else DEFAULT_TIMEOUT_MS[kind],
        )
        self._toasts.insert(0, toast)
        for evicted in self._toasts[self._max:]:
            self._cancel_timer(evicted.id)
        del self._toasts[self._max:]
        self._timers[toast.id] = self._scheduler(
            toast.timeout_ms / 1000.0,
            lambda toast_id=toast.id: self._expire(toast_id),
        )
        self._changed()
        return toast.id

    def info(self, title: str, message: str | None = None) -> str:
        return self.push("info", title, message)

    def success(self, title: str, message: str | None = None) -> str:
        return self.push("success", title, message)

    def error(self, title: str, message: str | None = None) -> str:
        return self.push("error", title, message)

    def dismiss(self, toast_id: str) -> None:
        self._cancel_timer(toast_id)
        remaining = [toast for toast in self._toasts if toast.id != toast_id]
        if len(remaining) == len(self._toasts):
            return
        self._toasts = remaining
        self._changed()

    def clear(self) -> None:
        for toast_id in list(self._timers):
            self._cancel_timer(toast_id)
        had_toasts = bool(self._toasts)
        self._toasts = []
        if had_toasts:
            self._changed()

    def _expire(self, toast_id: str) -> None:
        self._timers.pop(toast_id, None)
        self.dismiss(toast_id)

    def _cancel_timer(self, toast_id: str) -> None:
        handle = self._timers.pop(toast_id, None)
        if handle is not None:
            handle.cancel()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
