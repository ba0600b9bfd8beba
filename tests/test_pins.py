"""Tests for the state-backed pin tracker."""

from __future__ import annotations

from memfiles.pins import PinTracker, StatePinTracker
from memfiles.state import JsonStateStore


class TestStatePinTracker:
    def test_pin_and_unpin(self, state: JsonStateStore):
        pins = StatePinTracker(state, "ws")
        pins.pin("/memories/a.txt")
        pins.pin("/memories/a.txt")
        assert pins.pinned() == ["/memories/a.txt"]
        pins.unpin("/memories/a.txt")
        assert not pins.is_pinned("/memories/a.txt")

    def test_scope_keys(self, state: JsonStateStore):
        assert StatePinTracker(state, "ws").storage_key == "pinned_memory_files_ws"
        assert StatePinTracker(state, "ws", global_scope=True).storage_key == "pinned_memory_files"

    def test_workspaces_isolated(self, state: JsonStateStore):
        StatePinTracker(state, "one").pin("/memories/a.txt")
        assert not StatePinTracker(state, "two").is_pinned("/memories/a.txt")

    def test_rename_carries_only_pinned(self, state: JsonStateStore):
        pins = StatePinTracker(state, "ws")
        pins.pin("/memories/a.txt")
        pins.on_rename("/memories/a.txt", "/memories/b.txt")
        pins.on_rename("/memories/c.txt", "/memories/d.txt")
        assert pins.pinned() == ["/memories/b.txt"]

    def test_persisted_across_instances(self, tmp_path):
        StatePinTracker(JsonStateStore(tmp_path / "s.json"), "ws").pin("/memories/a.txt")
        assert StatePinTracker(JsonStateStore(tmp_path / "s.json"), "ws").is_pinned("/memories/a.txt")

    def test_satisfies_protocol(self, state: JsonStateStore):
        assert isinstance(StatePinTracker(state, "ws"), PinTracker)
