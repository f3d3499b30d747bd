from __future__ import annotations

import pytest

from openclaw_desk.core.busy import BusyState


class TestBusyState:
    def test_starts_free(self):
        busy = BusyState()
        assert busy.is_busy is False
        assert busy.reason is None

    def test_second_try_begin_fails_while_held(self):
        busy = BusyState()
        assert busy.try_begin("Creating profile…") is True
        assert busy.try_begin("Renaming…") is False
        assert busy.reason == "Creating profile…"

    def test_end_frees_the_slot(self):
        busy = BusyState()
        busy.try_begin("Deleting…")
        busy.end()
        assert busy.is_busy is False
        assert busy.try_begin("Renaming…") is True

    def test_end_when_free_is_a_no_op(self):
        busy = BusyState()
        seen: list[str | None] = []
        busy.subscribe(seen.append)
        busy.end()
        assert seen == []

    def test_listeners_see_every_transition(self):
        busy = BusyState()
        seen: list[str | None] = []
        busy.subscribe(seen.append)
        busy.try_begin("Sending…")
        busy.try_begin("ignored")
        busy.end()
        assert seen == ["Sending…", None]


class TestHold:
    def test_hold_releases_after_block(self):
        busy = BusyState()
        with busy.hold("Switching profile…") as acquired:
            assert acquired is True
            assert busy.reason == "Switching profile…"
        assert busy.is_busy is False

    def test_hold_releases_on_exception(self):
        busy = BusyState()
        with pytest.raises(RuntimeError):
            with busy.hold("Starting gateway…"):
                raise RuntimeError("boom")
        assert busy.is_busy is False

    def test_nested_hold_is_rejected_and_does_not_release_outer(self):
        busy = BusyState()
        with busy.hold("outer") as outer:
            with busy.hold("inner") as inner:
                assert outer is True
                assert inner is False
            assert busy.reason == "outer"
        assert busy.is_busy is False
