"""ChatPanel widget: chat list, active thread and composer for the active profile."""
from __future__ import annotations

import time

from rich.markdown import Markdown
from rich.markup import escape as escape_markup
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Input, OptionList, RichLog, Select, Static
from textual.widgets.option_list import Option

from ..models import THINKING_LEVELS, Chat, ChatMessage, ChatThread
from ..utils.time import clock_time, relative_time


class ChatPanel(Horizontal):
    """Chat list on the left, thread and composer on the right.

    The panel renders what it is given; selection, sends and settings changes
    are posted as messages for the app to route.
    """

    DEFAULT_CSS = """
    ChatPanel {
        height: 1fr;
        background: #16213E;
    }
    #chat-sidebar {
        width: 34;
        border-right: solid #2A2E3D;
        padding: 0 1;
    }
    #chat-list {
        height: 1fr;
        background: #16213E;
    }
    #chat-list-actions Button {
        min-width: 6;
        margin-right: 1;
    }
    #chat-main {
        width: 1fr;
        padding: 0 1;
    }
    #chat-header {
        height: 1;
        color: #F5A623;
        text-style: bold;
    }
    #chat-options {
        height: 3;
    }
    #chat-thinking {
        width: 24;
    }
    #chat-log {
        height: 1fr;
        border: round #2A2E3D;
        background: #16213E;
        padding: 0 1;
    }
    #chat-status {
        height: 1;
        color: #A8B5A2;
    }
    #chat-input {
        height: 3;
        border: round #2A2E3D;
        background: #1A1A2E;
        color: #FFF8E7;
    }
    #chat-input:focus {
        border: round #F5A623;
    }
    """

    class Submit(Message):
        """Posted when the user submits the composer."""

        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    class DraftChanged(Message):
        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    class ChatSelected(Message):
        def __init__(self, chat_id: str) -> None:
            super().__init__()
            self.chat_id = chat_id

    class ThinkingChanged(Message):
        def __init__(self, thinking: str) -> None:
            super().__init__()
            self.thinking = thinking

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._chat_ids: list[str] = []
        self._has_active = False
        self._busy = False
        self._refocus_composer = False

    @staticmethod
    def _safe_markup_text(value: object) -> str:
        """Escape dynamic text before interpolating it into Rich markup."""
        return escape_markup(str(value))

    def compose(self) -> ComposeResult:
        with Vertical(id="chat-sidebar"):
            yield OptionList(id="chat-list")
            with Horizontal(id="chat-list-actions"):
                yield Button("New", id="chat-new", variant="primary")
                yield Button("Rename", id="chat-rename")
                yield Button("Delete", id="chat-delete", variant="error")
        with Vertical(id="chat-main"):
            yield Static("Select a chat", id="chat-header")
            with Horizontal(id="chat-options"):
                yield Select(
                    [(level, level) for level in THINKING_LEVELS],
                    prompt="thinking",
                    id="chat-thinking",
                )
                yield Button("Reset", id="chat-reset")
            yield RichLog(id="chat-log", wrap=True, markup=True)
            yield Static("", id="chat-status")
            yield Input(placeholder="Message your agent", id="chat-input")

    def show_chats(self, chats: list[Chat], active_id: str | None) -> None:
        options = self.query_one("#chat-list", OptionList)
        options.clear_options()
        self._chat_ids = [chat.id for chat in chats]
        now_ms = int(time.time() * 1000)
        for chat in chats:
            marker = "[bold #F5A623]▸[/]" if chat.id == active_id else " "
            age = relative_time(chat.updated_at_ms, now_ms)
            age_chunk = f" [dim #7B7F87]{self._safe_markup_text(age)}[/]" if age else ""
            options.add_option(Option(f"{marker} {self._safe_markup_text(chat.title)}{age_chunk}", id=chat.id))
        if active_id in self._chat_ids:
            options.highlighted = self._chat_ids.index(active_id)
        self._has_active = active_id is not None
        self._sync_controls()

    def show_chat(self, chat: Chat | None, thread: ChatThread | None) -> None:
        header = self.query_one("#chat-header", Static)
        thinking = self.query_one("#chat-thinking", Select)
        if chat is None:
            header.update("[dim #A8B5A2]Select a chat[/]")
            self._show_placeholder("No chat selected")
            return
        header.update(f"[bold #F5A623]{self._safe_markup_text(chat.title)}[/]")
        if chat.thinking is not None and thinking.value != chat.thinking:
            thinking.value = chat.thinking
        if thread is None:
            self._show_placeholder("Loading…")
            return
        self.show_thread(thread)

    def show_thread(self, thread: ChatThread) -> None:
        log = self.query_one("#chat-log", RichLog)
        log.clear()
        if not thread.messages:
            log.write("[dim]No messages yet[/dim]")
            return
        for message in thread.messages:
            self._write_message(log, message)

    def set_busy(self, busy: bool) -> None:
        """Lock every control that would start a host call; the chat list stays usable."""
        self._busy = busy
        self._sync_controls()

    def _sync_controls(self) -> None:
        idle = not self._busy
        self.query_one("#chat-new", Button).disabled = not idle
        for selector in ("#chat-rename", "#chat-delete", "#chat-reset"):
            self.query_one(selector, Button).disabled = not (idle and self._has_active)
        self.query_one("#chat-thinking", Select).disabled = not (idle and self._has_active)
        composer = self.query_one("#chat-input", Input)
        if not idle and composer.has_focus:
            self._refocus_composer = True
        composer.disabled = not idle
        if idle and self._refocus_composer:
            self._refocus_composer = False
            composer.focus()

    def set_status(self, text: str | None) -> None:
        status = self.query_one("#chat-status", Static)
        if not text:
            status.update("")
            return
        status.update(f"[bold #F5A623]⣾[/] [#A8B5A2]{self._safe_markup_text(text)}[/]")

    def set_draft(self, text: str) -> None:
        composer = self.query_one("#chat-input", Input)
        if composer.value != text:
            composer.value = text

    def _show_placeholder(self, text: str) -> None:
        log = self.query_one("#chat-log", RichLog)
        log.clear()
        log.write(f"[#7B7F87 dim]┌─[/] [#A8B5A2 dim]{self._safe_markup_text(text)}[/]")

    def _write_message(self, log: RichLog, msg: ChatMessage) -> None:
        stamp = self._safe_markup_text(clock_time(msg.created_at_ms))
        if msg.role == "user":
            log.write(f"[#F5A623]┌─[/] [bold #F5A623]you[/] [dim #7B7F87]{stamp}[/]")
            log.write(Markdown(msg.text, hyperlinks=True))
        elif msg.is_error:
            log.write(f"[#C67B5C]┌─[/] [bold #C67B5C]⚠ assistant[/] [dim #7B7F87]{stamp}[/]")
            log.write(f"[#C67B5C]{self._safe_markup_text(msg.text)}[/]")
        elif msg.role == "assistant":
            log.write(f"[#A8B5A2]┌─[/] [bold #A8B5A2]assistant[/] [dim #7B7F87]{stamp}[/]")
            log.write(Markdown(msg.text, hyperlinks=True))
        else:
            log.write(f"[dim #7B7F87]├─ tool {stamp}[/]")
            log.write(f"[dim #A8B5A2]{self._safe_markup_text(msg.text)}[/]")
        log.write("")

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_list.id != "chat-list" or event.option.id is None:
            return
        event.stop()
        self.post_message(self.ChatSelected(event.option.id))

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "chat-input":
            event.stop()
            self.post_message(self.DraftChanged(event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "chat-input":
            return
        event.stop()
        if event.input.value.strip():
            self.post_message(self.Submit(event.input.value))
            event.input.value = ""

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id != "chat-thinking":
            return
        event.stop()
        if isinstance(event.value, str):
            self.post_message(self.ThinkingChanged(event.value))
