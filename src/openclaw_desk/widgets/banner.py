from __future__ import annotations

from rich.markup import escape as escape_markup
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Button, Static

from ..models import Banner


class ErrorBanner(Horizontal):
    """Non-expiring error strip shown when the profile store could not be loaded."""

    DEFAULT_CSS = """
    ErrorBanner {
        height: auto;
        background: #3A1E1E;
        border: round #C67B5C;
        padding: 0 1;
    }
    #banner-text {
        width: 1fr;
    }
    ErrorBanner Button {
        margin-left: 1;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static("", id="banner-text")
        yield Button("Retry", id="banner-retry", variant="warning")
        yield Button("✕", id="banner-close")

    def show_banner(self, banner: Banner | None) -> None:
        self.display = banner is not None
        if banner is None:
            return
        text = f"[bold #C67B5C]⚠ {escape_markup(banner.title)}[/]"
        if banner.message:
            text += f"  [#FFF8E7]{escape_markup(banner.message)}[/]"
        self.query_one("#banner-text", Static).update(text)
