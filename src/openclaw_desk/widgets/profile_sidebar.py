"""ProfileSidebar: profile list, active marker and create/rename/delete controls."""
from __future__ import annotations

from rich.markup import escape as escape_markup
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Input, OptionList, Static
from textual.widgets.option_list import Option

from ..models import Profile


class ProfileSidebar(Vertical):
    """Left column listing profiles.

    Selecting a row posts ``Selected``; the create input posts ``CreateRequested``.
    Rename/delete buttons are plain ``Button.Pressed`` events handled by the app.
    """

    DEFAULT_CSS = """
    ProfileSidebar {
        width: 30;
        border: round #2A2E3D;
        background: #16213E;
        padding: 0 1;
    }
    #profiles-title {
        color: #F5A623;
        text-style: bold;
        height: 1;
    }
    #profile-list {
        height: 1fr;
        background: #16213E;
    }
    #profile-new {
        margin-top: 1;
    }
    #profile-actions Button {
        min-width: 8;
        margin-right: 1;
    }
    """

    class Selected(Message):
        def __init__(self, profile_id: str) -> None:
            super().__init__()
            self.profile_id = profile_id

    class CreateRequested(Message):
        def __init__(self, name: str) -> None:
            super().__init__()
            self.name = name

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._profile_ids: list[str] = []
        self._has_active = False
        self._can_delete = False
        self._busy = False

    def compose(self) -> ComposeResult:
        yield Static("Profiles", id="profiles-title")
        yield OptionList(id="profile-list")
        yield Input(placeholder="New profile name", id="profile-new")
        with Horizontal(id="profile-actions"):
            yield Button("Rename", id="profile-rename")
            yield Button("Delete", id="profile-delete", variant="error")

    def show_profiles(self, profiles: list[Profile], active_id: str | None, *, can_delete: bool) -> None:
        options = self.query_one("#profile-list", OptionList)
        options.clear_options()
        self._profile_ids = [profile.id for profile in profiles]
        for profile in profiles:
            marker = "[bold #F5A623]●[/]" if profile.id == active_id else "[dim]○[/]"
            label = (
                f"{marker} [bold]{escape_markup(profile.initials)}[/] "
                f"{escape_markup(profile.name)}"
            )
            options.add_option(Option(label, id=profile.id))
        if active_id in self._profile_ids:
            options.highlighted = self._profile_ids.index(active_id)
        self._has_active = active_id is not None
        self._can_delete = can_delete
        self._sync_controls()

    def set_busy(self, busy: bool) -> None:
        self._busy = busy
        self._sync_controls()

    def _sync_controls(self) -> None:
        self.query_one("#profile-list", OptionList).disabled = self._busy
        self.query_one("#profile-new", Input).disabled = self._busy
        self.query_one("#profile-rename", Button).disabled = self._busy or not self._has_active
        self.query_one("#profile-delete", Button).disabled = (
            self._busy or not (self._has_active and self._can_delete)
        )

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_list.id != "profile-list" or event.option.id is None:
            return
        event.stop()
        self.post_message(self.Selected(event.option.id))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "profile-new":
            return
        event.stop()
        name = event.value.strip()
        if name:
            self.post_message(self.CreateRequested(name))
            event.input.value = ""
