"""ToastHost: renders the toast queue in the corner; click a toast to dismiss it."""
from __future__ import annotations

from rich.markup import escape as escape_markup
from textual import events
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Static

from ..models import Toast

_KIND_STYLE = {
    "info": ("#4A90D9", "ℹ"),
    "success": ("#4ADE80", "✓"),
    "error": ("#C67B5C", "⚠"),
}


class ToastCard(Static):
    DEFAULT_CSS = """
    ToastCard {
        width: 44;
        height: auto;
        background: #1A1A2E;
        border: round #2A2E3D;
        padding: 0 1;
        margin-bottom: 1;
    }
    ToastCard.-error {
        border: round #C67B5C;
    }
    """

    def __init__(self, toast: Toast) -> None:
        color, glyph = _KIND_STYLE.get(toast.kind, _KIND_STYLE["info"])
        text = f"[bold {color}]{glyph} {escape_markup(toast.title)}[/]"
        if toast.message:
            text += f"\n[#A8B5A2]{escape_markup(toast.message)}[/]"
        super().__init__(text, classes=f"-{toast.kind}")
        self.toast_id = toast.id

    def on_click(self, event: events.Click) -> None:
        event.stop()
        self.post_message(ToastHost.Dismiss(self.toast_id))


class ToastHost(Vertical):
    DEFAULT_CSS = """
    ToastHost {
        dock: bottom;
        height: auto;
        align-horizontal: right;
        background: transparent;
    }
    """

    class Dismiss(Message):
        def __init__(self, toast_id: str) -> None:
            super().__init__()
            self.toast_id = toast_id

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._shown: list[str] = []

    def show_toasts(self, toasts: list[Toast]) -> None:
        ids = [toast.id for toast in toasts]
        if ids == self._shown:
            return
        self._shown = ids
        self.remove_children()
        self.mount_all([ToastCard(toast) for toast in toasts])
        self.display = bool(toasts)
