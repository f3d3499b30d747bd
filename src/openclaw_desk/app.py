"""DeskApp: Textual front end over the orchestrator."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.theme import Theme
from textual.widgets import Button, Footer, Header, Input, Static, TabbedContent, TabPane

from .boundary import DesktopApi, build_api
from .config import DeskConfig, load_config
from .core import Orchestrator
from .models import Banner
from .widgets import (
    ChatPanel,
    DialogScreen,
    ErrorBanner,
    GatewayPanel,
    ModelsPanel,
    ProfileSidebar,
    SettingsPanel,
    ToastHost,
)

logger = logging.getLogger(__name__)

_RECONNECT_INITIAL_DELAY_S = 1.0
_RECONNECT_MAX_DELAY_S = 10.0


class DeskApp(App[None]):
    """Profiles on the left; chats, gateway, models and settings in tabs.

    All state lives in the orchestrator. Widgets post intents, the app turns
    them into orchestrator calls on workers, and every orchestrator change
    re-renders the parts of the screen whose mirrors moved.
    """

    TITLE = "🌘 OpenClaw Desktop"
    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("ctrl+n", "new_chat", "New Chat"),
        ("ctrl+g", "refresh_gateway", "Gateway Status"),
        ("ctrl+r", "reload_chats", "Reload Chats"),
    ]

    CSS = """
Screen {
    background: #1A1A2E;
    color: #FFF8E7;
}
Header {
    background: #1A1A2E;
    color: #F5A623;
    text-style: bold;
}
#main-content {
    height: 1fr;
    padding: 0 1;
}
#right-panel {
    width: 1fr;
}
TabbedContent {
    height: 1fr;
}
#busy-line {
    height: 1;
    color: #A8B5A2;
    padding: 0 2;
}
Footer {
    background: #1A1A2E;
    color: #A8B5A2;
}
"""

    def __init__(self, api: DesktopApi | None = None, config: DeskConfig | None = None) -> None:
        super().__init__()
        self._config = config
        self._api = api
        self.orchestrator: Orchestrator | None = None
        self._dialog: DialogScreen | None = None
        self._host_connected = False
        self._rendered: dict[str, object] = {}

    def compose(self) -> ComposeResult:
        yield Header()
        banner = ErrorBanner(id="banner")
        banner.display = False
        yield banner
        with Horizontal(id="main-content"):
            yield ProfileSidebar(id="profiles")
            with Vertical(id="right-panel"):
                with TabbedContent(initial="tab-chats"):
                    with TabPane("Chats", id="tab-chats"):
                        yield ChatPanel(id="chat-panel")
                    with TabPane("Gateway", id="tab-gateway"):
                        yield GatewayPanel(id="gateway-panel")
                    with TabPane("Models", id="tab-models"):
                        yield ModelsPanel(id="models-panel")
                    with TabPane("Settings", id="tab-settings"):
                        yield SettingsPanel(id="settings-panel")
        yield Static("", id="busy-line")
        yield ToastHost(id="toasts")
        yield Footer()

    def on_mount(self) -> None:
        self.register_theme(Theme(
            name="hearth",
            primary="#F5A623",
            background="#1A1A2E",
            surface="#16213E",
            accent="#F5A623",
            warning="#FFD93D",
            error="#C67B5C",
            success="#4ADE80",
            secondary="#4A90D9",
            foreground="#FFF8E7",
            panel="#16213E",
        ))
        self.theme = "hearth"
        self._main = self.screen
        if self._config is None:
            self._config = load_config()
        if self._api is None:
            self._api = build_api(self._config)
        self.orchestrator = Orchestrator(self._api, secret_key=self._config.secret_key)
        self.orchestrator.on_change(self._render_state)
        self._api.on_push(self._on_push)
        if hasattr(self._api.transport, "on_disconnected"):
            self._api.transport.on_disconnected = self._on_host_disconnected
        self._render_state()
        self.run_worker(self._connect_and_load, exclusive=True, group="startup")

    # Host connection

    async def _connect_and_load(self) -> None:
        if self._api is None or self.orchestrator is None:
            return
        if not self._host_connected:
            try:
                await self._api.start()
            except Exception as exc:  # noqa: BLE001
                logger.warning("Desktop host unreachable: %s", exc)
                try:
                    await self._api.stop()
                except Exception:  # noqa: BLE001
                    pass
                self.orchestrator.banner = Banner("Desktop host unreachable", str(exc) or type(exc).__name__)
                self._render_state()
                return
            self._host_connected = True
            logger.info("Desktop host connected")
        await self.orchestrator.initialize()

    def _on_host_disconnected(self, reason: str) -> None:
        self._host_connected = False
        if self.orchestrator is not None:
            self.orchestrator.toasts.error("Desktop host disconnected", reason)
        self.workers.cancel_group(self, "host_reconnect")
        self.run_worker(self._reconnect, exclusive=True, group="host_reconnect")

    async def _reconnect(self) -> None:
        """Back off and reconnect to the desktop host, then reload profiles."""
        if self._api is None:
            return
        delay = _RECONNECT_INITIAL_DELAY_S
        try:
            await self._api.stop()
        except Exception:  # noqa: BLE001
            pass
        while not self._host_connected:
            if not self.is_running:
                return
            self._set_busy_line(f"reconnecting in {delay:.1f}s…")
            await asyncio.sleep(delay)
            try:
                await self._api.start()
            except Exception as exc:  # noqa: BLE001
                logger.debug("Reconnect failed: %s", exc)
                try:
                    await self._api.stop()
                except Exception:  # noqa: BLE001
                    pass
                delay = min(delay * 1.5, _RECONNECT_MAX_DELAY_S)
                continue
            self._host_connected = True
        self._set_busy_line("")
        if self.orchestrator is not None:
            await self.orchestrator.initialize()

    def _on_push(self, event: str) -> None:
        if self.orchestrator is None:
            return
        self._run(self.orchestrator.handle_push(event), group="push")

    def _run(self, intent: Awaitable[object], *, group: str = "intent") -> None:
        self.run_worker(intent, group=group)

    # Rendering

    def _mirror_moved(self, key: str, value: object) -> bool:
        previous = self._rendered.get(key, _UNRENDERED)
        if previous is not _UNRENDERED and previous == value:
            return False
        self._rendered[key] = value
        return True

    def _render_state(self) -> None:
        orch = self.orchestrator
        if orch is None:
            return

        self._main.query_one(ErrorBanner).show_banner(orch.banner)

        profiles = orch.profiles
        profiles_key = (
            tuple((p.id, p.name) for p in profiles.profiles),
            profiles.active_profile_id,
        )
        if self._mirror_moved("profiles", profiles_key):
            self._main.query_one(ProfileSidebar).show_profiles(
                profiles.profiles, profiles.active_profile_id, can_delete=profiles.can_delete
            )

        chats = orch.chats
        panel = self._main.query_one(ChatPanel)
        chats_key = (
            tuple((c.id, c.title, c.updated_at_ms) for c in chats.chats),
            chats.active_chat_id,
        )
        if self._mirror_moved("chats", chats_key):
            panel.show_chats(chats.chats, chats.active_chat_id)
        active_chat = chats.active_chat
        thread_key = (
            chats.active_chat_id,
            active_chat.title if active_chat else None,
            active_chat.thinking if active_chat else None,
            chats.thread,
        )
        if self._mirror_moved("thread", thread_key):
            panel.show_chat(active_chat, chats.thread)
        panel.set_draft(chats.draft)
        panel.set_status(orch.busy.reason)

        gateway = orch.gateway
        if self._mirror_moved("gateway", (gateway.status, gateway.logs)):
            self._main.query_one(GatewayPanel).show_snapshot(gateway.status, gateway.logs)

        if self._mirror_moved("models", orch.models.status):
            self._main.query_one(ModelsPanel).show_status(orch.models.status)

        settings = orch.settings
        settings_panel = self._main.query_one(SettingsPanel)
        if self._mirror_moved("settings", (settings.settings, settings.unlocked)):
            settings_panel.show_settings(settings.settings, unlocked=settings.unlocked)
        settings_panel.show_autostart(settings.autostart)

        busy = orch.busy.is_busy
        if self._mirror_moved("busy", busy):
            self._main.query_one(ProfileSidebar).set_busy(busy)
            panel.set_busy(busy)
            self._main.query_one(GatewayPanel).set_busy(busy)
            self._main.query_one(ModelsPanel).set_busy(busy)
            settings_panel.set_busy(busy)

        self._main.query_one(ToastHost).show_toasts(orch.toasts.toasts)
        self._set_busy_line(orch.busy.reason or "")
        self._sync_dialog()

    def _set_busy_line(self, text: str) -> None:
        self._main.query_one("#busy-line", Static).update(f"[bold #F5A623]⣾[/] {text}" if text else "")

    def _sync_dialog(self) -> None:
        if self.orchestrator is None:
            return
        state = self.orchestrator.modal.state
        if state is None:
            screen = self._dialog
            self._dialog = None
            if screen is not None and self.screen is screen:
                self.pop_screen()
            return
        if self._dialog is None:
            self._dialog = DialogScreen(state)
            self.push_screen(self._dialog)
        else:
            self._dialog.sync(state)
        if self._dialog.is_mounted:
            self._dialog.set_busy(self.orchestrator.busy.is_busy)

    # Intents

    def on_profile_sidebar_selected(self, event: ProfileSidebar.Selected) -> None:
        if self.orchestrator is None:
            return
        self._run(self.orchestrator.select_profile(event.profile_id))

    def on_profile_sidebar_create_requested(self, event: ProfileSidebar.CreateRequested) -> None:
        if self.orchestrator is None:
            return
        self._run(self.orchestrator.create_profile(event.name))

    def on_chat_panel_chat_selected(self, event: ChatPanel.ChatSelected) -> None:
        if self.orchestrator is None:
            return
        self._run(self.orchestrator.select_chat(event.chat_id), group="chat_select")

    def on_chat_panel_draft_changed(self, event: ChatPanel.DraftChanged) -> None:
        if self.orchestrator is None:
            return
        self.orchestrator.set_draft(event.text)

    def on_chat_panel_submit(self, event: ChatPanel.Submit) -> None:
        if self.orchestrator is None:
            return
        self._run(self.orchestrator.send(event.text))

    def on_chat_panel_thinking_changed(self, event: ChatPanel.ThinkingChanged) -> None:
        if self.orchestrator is None:
            return
        chat = self.orchestrator.chats.active_chat
        if chat is None or chat.thinking == event.thinking:
            return
        self._run(self.orchestrator.update_chat_settings(chat.id, thinking=event.thinking))

    def on_settings_panel_dev_mode_toggled(self, event: SettingsPanel.DevModeToggled) -> None:
        if self.orchestrator is None:
            return
        current = self.orchestrator.settings.settings
        if current is not None and bool(current.dev_full_exec_auto) == event.enabled:
            return
        self._run(self.orchestrator.set_dev_full_exec_auto(event.enabled))

    def on_settings_panel_autostart_toggled(self, event: SettingsPanel.AutostartToggled) -> None:
        if self.orchestrator is None:
            return
        if self.orchestrator.settings.autostart == event.enabled:
            return
        self._run(self.orchestrator.set_autostart(event.enabled))

    def on_toast_host_dismiss(self, event: ToastHost.Dismiss) -> None:
        if self.orchestrator is None:
            return
        self.orchestrator.dismiss_toast(event.toast_id)

    def on_dialog_screen_field_changed(self, event: DialogScreen.FieldChanged) -> None:
        if self.orchestrator is None:
            return
        self.orchestrator.update_modal_field(event.value)

    def on_dialog_screen_confirmed(self, _event: DialogScreen.Confirmed) -> None:
        if self.orchestrator is None:
            return
        self._run(self.orchestrator.confirm_modal(), group="modal")

    def on_dialog_screen_cancelled(self, _event: DialogScreen.Cancelled) -> None:
        if self.orchestrator is None:
            return
        self.orchestrator.cancel_modal()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if self.orchestrator is None:
            return
        if event.input.id == "settings-unlock":
            self.orchestrator.unlock_dev_mode(event.value)
            event.input.value = ""

    def on_button_pressed(self, event: Button.Pressed) -> None:
        orch = self.orchestrator
        if orch is None:
            return
        button_id = event.button.id
        active_profile = orch.active_profile_id
        active_chat = orch.chats.active_chat_id
        settings = self._main.query_one(SettingsPanel)

        if button_id == "profile-rename" and active_profile is not None:
            orch.open_rename_profile(active_profile)
        elif button_id == "profile-delete" and active_profile is not None:
            orch.open_delete_profile(active_profile)
        elif button_id == "chat-new":
            self._run(orch.new_chat())
        elif button_id == "chat-rename" and active_chat is not None:
            orch.open_rename_chat(active_chat)
        elif button_id == "chat-delete" and active_chat is not None:
            orch.open_delete_chat(active_chat)
        elif button_id == "chat-reset":
            self._run(orch.reset_chat())
        elif button_id in GatewayPanel.BUTTON_ACTIONS:
            self._run(orch.gateway_action(GatewayPanel.BUTTON_ACTIONS[button_id]))  # type: ignore[arg-type]
        elif button_id == "models-refresh":
            self._run(orch.refresh_models())
        elif button_id == "models-set-default":
            self._run(orch.set_default_model(self._main.query_one("#models-default", Input).value))
        elif button_id == "settings-save-path":
            self._run(orch.save_openclaw_path(settings.value_of("#settings-openclaw-path")))
        elif button_id == "settings-save-ollama":
            self._run(orch.save_ollama(
                settings.value_of("#settings-ollama-url"),
                settings.value_of("#settings-ollama-model"),
            ))
        elif button_id == "secret-set":
            orch.open_secret_set()
        elif button_id == "secret-show":
            self._run(orch.reveal_secret())
        elif button_id == "secret-delete":
            orch.open_secret_delete()
        elif button_id == "banner-retry":
            orch.dismiss_banner()
            self.run_worker(self._connect_and_load, exclusive=True, group="startup")
        elif button_id == "banner-close":
            orch.dismiss_banner()

    def action_new_chat(self) -> None:
        if self.orchestrator is not None:
            self._run(self.orchestrator.new_chat())

    def action_refresh_gateway(self) -> None:
        if self.orchestrator is not None:
            self._run(self.orchestrator.refresh_gateway())

    def action_reload_chats(self) -> None:
        if self.orchestrator is not None:
            self._run(self._reload_chats(), group="chat_select")

    async def _reload_chats(self) -> None:
        if self.orchestrator is None:
            return
        if await self.orchestrator.refresh_chats():
            await self.orchestrator.refresh_thread()

    async def on_unmount(self) -> None:
        if self._api is not None and self._host_connected:
            try:
                await self._api.stop()
            except Exception as exc:  # noqa: BLE001
                logger.debug("Error stopping bridge transport: %s", exc)


_UNRENDERED = object()
