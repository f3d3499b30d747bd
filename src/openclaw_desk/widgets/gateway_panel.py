"""GatewayPanel widget: process controls plus status and log-tail output."""
from __future__ import annotations

from rich.markup import escape as escape_markup
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, RichLog, Static

from ..models import GatewayLogs, GatewayStatus


class GatewayPanel(Vertical):
    """Start/stop/restart buttons above the last status snapshot and log tail.

    Default state: placeholder until the first status check.
    """

    DEFAULT_CSS = """
    GatewayPanel {
        height: 1fr;
        background: #16213E;
        padding: 0 1;
    }
    #gateway-actions {
        height: 3;
    }
    #gateway-actions Button {
        margin-right: 1;
    }
    #gateway-summary {
        height: 1;
        margin-top: 1;
    }
    #gateway-log {
        height: 1fr;
        border: round #2A2E3D;
        background: #16213E;
        padding: 0 1;
    }
    """

    BUTTON_ACTIONS = {
        "gateway-refresh": "status",
        "gateway-start": "start",
        "gateway-stop": "stop",
        "gateway-restart": "restart",
    }

    def compose(self) -> ComposeResult:
        with Horizontal(id="gateway-actions"):
            yield Button("Check", id="gateway-refresh")
            yield Button("Start", id="gateway-start", variant="success")
            yield Button("Stop", id="gateway-stop", variant="error")
            yield Button("Restart", id="gateway-restart", variant="warning")
        yield Static("", id="gateway-summary")
        yield RichLog(id="gateway-log", wrap=True, markup=True)

    def on_mount(self) -> None:
        self.show_snapshot(None, None)

    def set_busy(self, busy: bool) -> None:
        for button_id in self.BUTTON_ACTIONS:
            self.query_one(f"#{button_id}", Button).disabled = busy

    def show_snapshot(self, status: GatewayStatus | None, logs: GatewayLogs | None) -> None:
        summary = self.query_one("#gateway-summary", Static)
        log = self.query_one("#gateway-log", RichLog)
        log.clear()
        if status is None:
            summary.update("[dim #A8B5A2]Status unknown. Press Check.[/]")
        elif status.ok:
            summary.update("[bold #4ADE80]●[/] last command exited 0")
        else:
            summary.update(f"[bold #C67B5C]⚠[/] last command exited {status.exit_code}")

        if status is not None:
            self._section(log, "Status output", status.stdout)
            if status.stderr.strip():
                self._section(log, "stderr", status.stderr, error=True)
        if logs is not None:
            self._section(log, "gateway.log (tail)", logs.out)
            self._section(log, "gateway.err.log (tail)", logs.err, error=True)

    @staticmethod
    def _section(log: RichLog, title: str, body: str, *, error: bool = False) -> None:
        color = "#C67B5C" if error else "#F5A623"
        log.write(f"[bold {color}]{escape_markup(title)}[/]")
        text = body.rstrip()
        if not text:
            log.write("[dim](empty)[/dim]")
        else:
            for line in text.splitlines():
                log.write(escape_markup(line))
        log.write("[#7B7F87 dim]" + "─" * 52 + "[/]")
