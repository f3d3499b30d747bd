from __future__ import annotations

import asyncio

import pytest

from openclaw_desk.core.modal import (
    DeleteChat,
    DeleteProfile,
    ModalStateMachine,
    RenameChat,
    RenameProfile,
    SecretDelete,
    SecretSet,
    SecretShow,
)


class TestOpenAndEdit:
    def test_open_replaces_previous_dialog(self):
        modal = ModalStateMachine()
        modal.open(RenameProfile(profile_id="p1", value="Work"))
        modal.open(DeleteChat(chat_id="c1"))
        assert modal.state == DeleteChat(chat_id="c1")

    def test_update_field_on_editable_variants(self):
        modal = ModalStateMachine()
        modal.open(RenameChat(chat_id="c1", value="Old"))
        modal.update_field("New")
        assert modal.state == RenameChat(chat_id="c1", value="New")

        modal.open(SecretSet())
        modal.update_field("s3cret")
        assert modal.state == SecretSet(value="s3cret")

    @pytest.mark.parametrize("dialog", [DeleteProfile(profile_id="p1"), DeleteChat(chat_id="c1"), SecretDelete(), SecretShow(value="x")])
    def test_update_field_ignored_on_non_editable(self, dialog):
        modal = ModalStateMachine()
        modal.open(dialog)
        modal.update_field("whatever")
        assert modal.state == dialog

    def test_update_field_with_nothing_open(self):
        modal = ModalStateMachine()
        modal.update_field("x")
        assert modal.state is None

    def test_on_change_sees_each_state(self):
        seen = []
        modal = ModalStateMachine(on_change=seen.append)
        modal.open(SecretSet())
        modal.cancel()
        assert seen == [SecretSet(), None]


class TestConfirm:
    @pytest.mark.asyncio
    async def test_success_moves_to_handler_result(self):
        modal = ModalStateMachine()
        modal.open(RenameChat(chat_id="c1", value="Old"))
        modal.update_field("New")
        received = []

        async def handler(dialog):
            received.append(dialog)
            return None

        assert await modal.confirm(handler) is True
        assert received == [RenameChat(chat_id="c1", value="New")]
        assert modal.state is None

    @pytest.mark.asyncio
    async def test_secret_set_transitions_to_secret_show(self):
        modal = ModalStateMachine()
        modal.open(SecretSet(value="abc"))

        async def handler(dialog):
            return SecretShow(value=dialog.value)

        await modal.confirm(handler)
        assert modal.state == SecretShow(value="abc")

    @pytest.mark.asyncio
    async def test_failure_keeps_dialog_open(self):
        modal = ModalStateMachine()
        modal.open(DeleteProfile(profile_id="p1"))

        async def handler(_dialog):
            raise RuntimeError("host said no")

        with pytest.raises(RuntimeError):
            await modal.confirm(handler)
        assert modal.state == DeleteProfile(profile_id="p1")

    @pytest.mark.asyncio
    async def test_confirm_with_nothing_open(self):
        modal = ModalStateMachine()

        async def handler(_dialog):
            raise AssertionError("should not be called")

        assert await modal.confirm(handler) is False

    @pytest.mark.asyncio
    async def test_result_dropped_when_cancelled_in_flight(self):
        modal = ModalStateMachine()
        modal.open(SecretSet(value="abc"))
        release = asyncio.Event()
        calls = []

        async def handler(dialog):
            calls.append(dialog)
            await release.wait()
            return SecretShow(value=dialog.value)

        task = asyncio.create_task(modal.confirm(handler))
        await asyncio.sleep(0)
        modal.cancel()
        release.set()

        assert await task is False
        assert calls == [SecretSet(value="abc")]
        assert modal.state is None

    @pytest.mark.asyncio
    async def test_result_dropped_when_replaced_in_flight(self):
        modal = ModalStateMachine()
        modal.open(RenameProfile(profile_id="p1", value="A"))
        release = asyncio.Event()

        async def handler(_dialog):
            await release.wait()
            return None

        task = asyncio.create_task(modal.confirm(handler))
        await asyncio.sleep(0)
        modal.open(DeleteChat(chat_id="c9"))
        release.set()

        assert await task is False
        assert modal.state == DeleteChat(chat_id="c9")

    def test_close_is_cancel(self):
        modal = ModalStateMachine()
        modal.open(SecretShow(value=None))
        modal.close()
        assert modal.is_open is False
