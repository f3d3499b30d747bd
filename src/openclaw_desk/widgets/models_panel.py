from __future__ import annotations

from rich.markup import escape as escape_markup
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, RichLog

from ..models import ModelsStatus


class ModelsPanel(Vertical):
    """Output of ``openclaw models status`` and a default-model setter."""

    DEFAULT_CSS = """
    ModelsPanel {
        height: 1fr;
        background: #16213E;
        padding: 0 1;
    }
    #models-actions {
        height: 3;
    }
    #models-actions Button {
        margin-left: 1;
    }
    #models-default {
        width: 1fr;
    }
    #models-log {
        height: 1fr;
        border: round #2A2E3D;
        padding: 0 1;
    }
    """

    def compose(self) -> ComposeResult:
        with Horizontal(id="models-actions"):
            yield Input(placeholder="provider/model", id="models-default")
            yield Button("Set default", id="models-set-default", variant="primary")
            yield Button("Refresh", id="models-refresh")
        yield RichLog(id="models-log", wrap=True, markup=True)

    def on_mount(self) -> None:
        self.show_status(None)

    def set_busy(self, busy: bool) -> None:
        for selector in ("#models-default", "#models-set-default", "#models-refresh"):
            self.query_one(selector).disabled = busy

    def show_status(self, status: ModelsStatus | None) -> None:
        log = self.query_one("#models-log", RichLog)
        log.clear()
        if status is None:
            log.write("[dim #A8B5A2]Press Refresh to load model status[/]")
            return
        for line in status.stdout.rstrip().splitlines() or ["(no output)"]:
            log.write(escape_markup(line))
        if status.stderr.strip():
            log.write("")
            for line in status.stderr.rstrip().splitlines():
                log.write(f"[#C67B5C]{escape_markup(line)}[/]")
