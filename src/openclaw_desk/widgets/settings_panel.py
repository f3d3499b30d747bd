"""SettingsPanel widget: per-profile overrides, developer mode, launch at login and secrets."""
from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.message import Message
from textual.widgets import Button, Input, Label, Static, Switch

from ..models import ProfileSettings

_HOST_CONTROLS = (
    "#settings-save-path",
    "#settings-save-ollama",
    "#settings-autostart",
    "#secret-set",
    "#secret-show",
    "#secret-delete",
)


class SettingsPanel(VerticalScroll):
    DEFAULT_CSS = """
    SettingsPanel {
        height: 1fr;
        background: #16213E;
        padding: 0 1;
    }
    SettingsPanel .section-title {
        color: #F5A623;
        text-style: bold;
        margin-top: 1;
    }
    SettingsPanel .row {
        height: auto;
    }
    SettingsPanel .row Button {
        margin-right: 1;
    }
    SettingsPanel .row Label {
        padding: 1 1 0 0;
    }
    #settings-dev-note {
        color: #C67B5C;
    }
    """

    class DevModeToggled(Message):
        def __init__(self, enabled: bool) -> None:
            super().__init__()
            self.enabled = enabled

    class AutostartToggled(Message):
        def __init__(self, enabled: bool) -> None:
            super().__init__()
            self.enabled = enabled

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._busy = False
        self._dev_allowed = False

    def compose(self) -> ComposeResult:
        yield Static("OpenClaw", classes="section-title")
        yield Input(placeholder="openclaw binary path (blank = auto)", id="settings-openclaw-path")
        with Horizontal(classes="row"):
            yield Button("Save path", id="settings-save-path")

        yield Static("Ollama", classes="section-title")
        yield Input(placeholder="base URL, e.g. http://127.0.0.1:11434", id="settings-ollama-url")
        yield Input(placeholder="model, e.g. llama3.1", id="settings-ollama-model")
        with Horizontal(classes="row"):
            yield Button("Save Ollama", id="settings-save-ollama")

        yield Static("Developer Mode", classes="section-title")
        yield Static("Type I UNDERSTAND to unlock full automatic exec.", id="settings-dev-note")
        yield Input(placeholder="unlock phrase", id="settings-unlock")
        with Horizontal(classes="row"):
            yield Label("Full Exec (Auto)")
            yield Switch(value=False, id="settings-dev-switch", disabled=True)

        yield Static("App", classes="section-title")
        with Horizontal(classes="row"):
            yield Label("Launch at login")
            yield Switch(value=False, id="settings-autostart")

        yield Static("Secrets", classes="section-title")
        with Horizontal(classes="row"):
            yield Button("Set", id="secret-set")
            yield Button("Show", id="secret-show")
            yield Button("Delete", id="secret-delete", variant="error")

    def show_settings(self, settings: ProfileSettings | None, *, unlocked: bool) -> None:
        values = settings or ProfileSettings()
        self._fill("#settings-openclaw-path", values.openclaw_path)
        self._fill("#settings-ollama-url", values.ollama_base_url)
        self._fill("#settings-ollama-model", values.ollama_model)
        dev_switch = self.query_one("#settings-dev-switch", Switch)
        enabled = bool(values.dev_full_exec_auto)
        if dev_switch.value != enabled:
            dev_switch.value = enabled
        # Turning it off never needs the phrase.
        self._dev_allowed = unlocked or enabled
        self._sync_controls()

    def set_busy(self, busy: bool) -> None:
        self._busy = busy
        self._sync_controls()

    def _sync_controls(self) -> None:
        for selector in _HOST_CONTROLS:
            self.query_one(selector).disabled = self._busy
        self.query_one("#settings-dev-switch", Switch).disabled = self._busy or not self._dev_allowed

    def show_autostart(self, enabled: bool | None) -> None:
        switch = self.query_one("#settings-autostart", Switch)
        if enabled is not None and switch.value != enabled:
            switch.value = enabled

    def _fill(self, selector: str, value: str | None) -> None:
        field = self.query_one(selector, Input)
        if not field.has_focus:
            field.value = value or ""

    def value_of(self, selector: str) -> str:
        return self.query_one(selector, Input).value

    def on_switch_changed(self, event: Switch.Changed) -> None:
        event.stop()
        if event.switch.id == "settings-dev-switch":
            self.post_message(self.DevModeToggled(event.value))
        elif event.switch.id == "settings-autostart":
            self.post_message(self.AutostartToggled(event.value))
