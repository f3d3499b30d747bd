from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenameProfile:
    profile_id: str
    value: str


@dataclass(frozen=True)
class DeleteProfile:
    profile_id: str


@dataclass(frozen=True)
class RenameChat:
    chat_id: str
    value: str


@dataclass(frozen=True)
class DeleteChat:
    chat_id: str


@dataclass(frozen=True)
class SecretSet:
    value: str = ""


@dataclass(frozen=True)
class SecretShow:
    value: str | None


@dataclass(frozen=True)
class SecretDelete:
    pass


Dialog = Union[
    RenameProfile,
    DeleteProfile,
    RenameChat,
    DeleteChat,
    SecretSet,
    SecretShow,
    SecretDelete,
]
ModalState = Union[Dialog, None]

EDITABLE = (RenameProfile, RenameChat, SecretSet)

ConfirmHandler = Callable[[Dialog], Awaitable[ModalState]]


class ModalStateMachine:
    """At most one open dialog; opening another replaces it.

    ``confirm`` hands the open dialog to a handler that performs the matching
    boundary call and returns the next state. A failing handler leaves the
    dialog open. Results of calls whose dialog was cancelled or replaced while
    in flight are dropped.
    """

    def __init__(self, on_change: Callable[[ModalState], None] | None = None) -> None:
        self._state: ModalState = None
        self._generation = 0
        self.on_change = on_change

    @property
    def state(self) -> ModalState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is not None

    def open(self, dialog: Dialog) -> None:
        if self._state is not None:
            logger.debug("Replacing open dialog %s with %s", type(self._state).__name__, type(dialog).__name__)
        self._generation += 1
        self._set(dialog)

    def update_field(self, value: str) -> None:
        if not isinstance(self._state, EDITABLE):
            return
        self._set(replace(self._state, value=value))

    async def confirm(self, handler: ConfirmHandler) -> bool:
        """Run ``handler`` for the open dialog; True when its result was applied."""
        current = self._state
        if current is None:
            return False
        generation = self._generation
        next_state = await handler(current)
        if generation != self._generation:
            logger.debug("Dialog %s closed while confirming, dropping result", type(current).__name__)
            return False
        if next_state is not None:
            self._generation += 1
        self._set(next_state)
        return True

    def cancel(self) -> None:
        self._generation += 1
        self._set(None)

    close = cancel

    def _set(self, state: ModalState) -> None:
        self._state = state
        if self.on_change is not None:
            self.on_change(state)
