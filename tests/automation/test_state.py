"""Tests for cooldown tracking and the variable store."""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from streamweave_bot.automation.state import CooldownTracker, VariableStore


class TestCooldownTracker:
    """Tests for CooldownTracker."""

    def test_no_cooldown_always_acquires(self, clock):
        tracker = CooldownTracker(clock=clock)
        assert tracker.try_acquire("c1", 0, 0, "alice")
        assert tracker.try_acquire("c1", 0, 0, "alice")

    def test_global_cooldown(self, clock):
        tracker = CooldownTracker(clock=clock)
        assert tracker.try_acquire("c1", 30, 0, "alice")
        clock.advance(1)
        assert not tracker.try_acquire("c1", 30, 0, "bob")
        assert tracker.remaining("c1", 30, 0) == 29
        clock.advance(29)
        assert tracker.try_acquire("c1", 30, 0, "bob")

    def test_user_cooldown_is_per_user(self, clock):
        tracker = CooldownTracker(clock=clock)
        assert tracker.try_acquire("c1", 0, 10, "alice")
        assert not tracker.try_acquire("c1", 0, 10, "@Alice")
        assert tracker.try_acquire("c1", 0, 10, "bob")
        clock.advance(10)
        assert tracker.try_acquire("c1", 0, 10, "alice")

    def test_failed_acquire_changes_nothing(self, clock):
        tracker = CooldownTracker(clock=clock)
        tracker.try_acquire("c1", 10, 0)
        clock.advance(5)
        assert not tracker.try_acquire("c1", 10, 0)
        clock.advance(5)
        assert tracker.try_acquire("c1", 10, 0)

    def test_record_refreshes_the_gate(self, clock):
        tracker = CooldownTracker(clock=clock)
        tracker.try_acquire("c1", 10, 0)
        clock.advance(8)
        tracker.record("c1", 10, 0)
        clock.advance(5)
        assert not tracker.try_acquire("c1", 10, 0)

    def test_reset(self, clock):
        tracker = CooldownTracker(clock=clock)
        tracker.try_acquire("c1", 10, 10, "alice")
        tracker.try_acquire("c2", 10, 0)
        tracker.reset("c1")
        assert tracker.try_acquire("c1", 10, 10, "alice")
        assert not tracker.try_acquire("c2", 10, 0)
        tracker.reset()
        assert tracker.try_acquire("c2", 10, 0)


class TestVariableStore:
    """Tests for VariableStore."""

    def test_globals_in_memory(self):
        store = VariableStore()
        store.set_global("counter", 1)
        assert store.get_global("counter") == 1
        assert store.get_global("missing", "fallback") == "fallback"
        assert store.delete_global("counter") is True
        assert store.delete_global("counter") is False
        store.save()  # no path: nothing to write

    def test_user_keys_are_normalised(self):
        store = VariableStore()
        store.set_user("@Alice", "points", 5)
        assert store.get_user("alice", "points") == 5
        assert store.user_variables("ALICE") == {"points": 5}
        assert store.users() == {"alice": {"points": 5}}
        assert store.delete_user("alice", "points") is True
        assert store.get_user("alice", "points", 0) == 0

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "variables.json"
        store = VariableStore(path)
        store.set_global("deaths", 3)
        store.set_user("bob", "points", 10)
        store.save()

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == {"global": {"deaths": 3}, "users": {"bob": {"points": 10}}}

        reloaded = VariableStore(path)
        assert reloaded.get_global("deaths") == 3
        assert reloaded.get_user("Bob", "points") == 10

    def test_failed_save_keeps_previous_file(self, tmp_path, monkeypatch):
        path = tmp_path / "variables.json"
        store = VariableStore(path)
        store.set_global("deaths", 3)
        store.save()

        def fail_replace(self, target):
            raise OSError("disk full")

        store.set_global("deaths", 4)
        monkeypatch.setattr(Path, "replace", fail_replace)
        with pytest.raises(OSError):
            store.save()
        monkeypatch.undo()

        assert json.loads(path.read_text(encoding="utf-8"))["global"] == {"deaths": 3}
        store.save()
        assert json.loads(path.read_text(encoding="utf-8"))["global"] == {"deaths": 4}
        assert not path.with_suffix(".json.tmp").exists()

    def test_concurrent_saves_leave_a_complete_file(self, tmp_path):
        path = tmp_path / "variables.json"
        store = VariableStore(path)

        def set_and_save(index: int) -> None:
            store.set_global(f"counter{index}", index)
            store.save()

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(set_and_save, range(32)))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["global"] == {f"counter{index}": index for index in range(32)}

    def test_malformed_file_yields_empty_store(self, tmp_path):
        path = tmp_path / "variables.json"
        path.write_text("{broken", encoding="utf-8")
        store = VariableStore(path)
        assert store.globals() == {}

        path.write_text("[1, 2]", encoding="utf-8")
        store.load()
        assert store.globals() == {}

    def test_clear(self):
        store = VariableStore()
        store.set_global("a", 1)
        store.set_user("bob", "b", 2)
        store.clear()
        assert store.globals() == {}
        assert store.users() == {}
