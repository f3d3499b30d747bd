from __future__ import annotations

from rich.markup import escape as escape_markup
from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static

from ..core.modal import (
    DeleteChat,
    DeleteProfile,
    Dialog,
    RenameChat,
    RenameProfile,
    SecretDelete,
    SecretSet,
    SecretShow,
)


def describe(dialog: Dialog) -> tuple[str, str, str]:
    """Title, body text and confirm-button label for a dialog."""
    if isinstance(dialog, RenameProfile):
        return "Rename profile", "New profile name", "Rename"
    if isinstance(dialog, DeleteProfile):
        return "Delete profile", "Delete this profile? This cannot be undone.", "Delete"
    if isinstance(dialog, RenameChat):
        return "Rename chat", "New chat title", "Rename"
    if isinstance(dialog, DeleteChat):
        return "Delete chat", "Delete this chat and its history?", "Delete"
    if isinstance(dialog, SecretSet):
        return "Set secret", "Value stored in the system keychain for this profile", "Save"
    if isinstance(dialog, SecretShow):
        if dialog.value is None:
            return "Secret", "No secret set for this profile.", "Close"
        return "Secret", dialog.value, "Close"
    return "Delete secret", "Remove the stored secret for this profile?", "Delete"


def _identity(dialog: Dialog | None) -> tuple:
    if dialog is None:
        return (None,)
    return (type(dialog), getattr(dialog, "profile_id", None), getattr(dialog, "chat_id", None))


class DialogScreen(ModalScreen[None]):
    """Renders the open dialog.

    The screen holds no decision state: it reports edits, confirm and cancel as
    messages and the app mirrors the modal state machine back into it.
    Escape and clicking the backdrop both cancel.
    """

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
    ]

    DEFAULT_CSS = """
    DialogScreen {
        align: center middle;
    }
    #dialog-shell {
        width: 64;
        max-width: 96%;
        height: auto;
        border: round #2A2E3D;
        background: #16213E;
        padding: 1 2;
    }
    #dialog-title {
        color: #F5A623;
        text-style: bold;
        margin-bottom: 1;
    }
    #dialog-body {
        color: #A8B5A2;
        margin-bottom: 1;
    }
    #dialog-input {
        margin-bottom: 1;
    }
    #dialog-buttons {
        height: auto;
        align-horizontal: right;
    }
    #dialog-buttons Button {
        margin-left: 1;
    }
    """

    class FieldChanged(Message):
        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    class Confirmed(Message):
        pass

    class Cancelled(Message):
        pass

    def __init__(self, dialog: Dialog) -> None:
        super().__init__()
        self.dialog = dialog

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog-shell"):
            yield Static("", id="dialog-title")
            yield Static("", id="dialog-body")
            yield Input(id="dialog-input")
            with Horizontal(id="dialog-buttons"):
                yield Button("Cancel", id="dialog-cancel")
                yield Button("OK", id="dialog-confirm", variant="primary")

    def on_mount(self) -> None:
        self._render_dialog()

    def sync(self, dialog: Dialog) -> None:
        """Follow the state machine; only redraw when a different dialog opened."""
        changed = _identity(dialog) != _identity(self.dialog)
        self.dialog = dialog
        if changed and self.is_mounted:
            self._render_dialog()

    def set_busy(self, busy: bool) -> None:
        self.query_one("#dialog-confirm", Button).disabled = busy

    def _render_dialog(self) -> None:
        title, body, confirm_label = describe(self.dialog)
        self.query_one("#dialog-title", Static).update(escape_markup(title))
        self.query_one("#dialog-body", Static).update(escape_markup(body))
        confirm = self.query_one("#dialog-confirm", Button)
        confirm.label = confirm_label
        confirm.variant = "error" if isinstance(self.dialog, (DeleteProfile, DeleteChat, SecretDelete)) else "primary"
        self.query_one("#dialog-cancel", Button).display = not isinstance(self.dialog, SecretShow)

        field = self.query_one("#dialog-input", Input)
        editable = isinstance(self.dialog, (RenameProfile, RenameChat, SecretSet))
        field.display = editable
        if editable:
            field.value = self.dialog.value
            field.password = isinstance(self.dialog, SecretSet)
            field.focus()
        else:
            confirm.focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        self.post_message(self.FieldChanged(event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.post_message(self.Confirmed())

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "dialog-confirm":
            self.post_message(self.Confirmed())
        else:
            self.action_cancel()

    def on_click(self, event: events.Click) -> None:
        # Clicks inside the shell land on its children; only the backdrop is the screen itself.
        if event.widget is self:
            self.action_cancel()

    def action_cancel(self) -> None:
        self.post_message(self.Cancelled())
