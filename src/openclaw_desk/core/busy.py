from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class BusyState:
    """Single-flight lock for mutating calls against the desktop host.

    Not a queue: ``try_begin`` fails while another operation holds the slot and
    the caller is expected to drop its intent. Listeners are told about every
    transition so the UI can disable its controls.
    """

    def __init__(self) -> None:
        self._reason: str | None = None
        self._listeners: list[Callable[[str | None], None]] = []

    @property
    def reason(self) -> str | None:
        return self._reason

    @property
    def is_busy(self) -> bool:
        return self._reason is not None

    def subscribe(self, listener: Callable[[str | None], None]) -> None:
        self._listeners.append(listener)

    def try_begin(self, reason: str) -> bool:
        if self._reason is not None:
            logger.debug("Busy with %r, rejecting %r", self._reason, reason)
            return False
        self._reason = reason
        self._notify()
        return True

    def end(self) -> None:
        if self._reason is None:
            return
        self._reason = None
        self._notify()

    @contextmanager
    def hold(self, reason: str) -> Iterator[bool]:
        """Scoped acquisition: yields whether the slot was taken, always releases it."""
        acquired = self.try_begin(reason)
        try:
            yield acquired
        finally:
            if acquired:
                self.end()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._reason)
