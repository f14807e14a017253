# tests/test_watch.py
"""
Tests for the mtime polling watcher.
"""

import asyncio
import os

import pytest

from coke.errors import FatalError
from coke.watch import WatchLoop, run_watch


def _touch(path, ns):
    os.utime(path, ns=(ns, ns))


class TestTick:

    def test_first_tick_triggers(self, tmp_path):
        src = tmp_path / "a.co"
        src.write_text("1")
        hits = []
        loop = WatchLoop(str(src), lambda: hits.append(1))
        assert loop.tick() is True
        assert hits == [1]

    def test_unchanged_mtime_does_not_trigger(self, tmp_path):
        src = tmp_path / "a.co"
        src.write_text("1")
        hits = []
        loop = WatchLoop(str(src), lambda: hits.append(1))
        loop.tick()
        assert loop.tick() is False
        assert loop.tick() is False
        assert hits == [1]

    def test_changed_mtime_triggers_once(self, tmp_path):
        src = tmp_path / "a.co"
        src.write_text("1")
        _touch(src, 1_000_000_000)
        hits = []
        loop = WatchLoop(str(src), lambda: hits.append(1))
        loop.tick()
        _touch(src, 2_000_000_000)
        assert loop.tick() is True
        assert loop.tick() is False
        assert hits == [1, 1]

    def test_going_back_in_time_still_triggers(self, tmp_path):
        src = tmp_path / "a.co"
        src.write_text("1")
        _touch(src, 5_000_000_000)
        loop = WatchLoop(str(src), lambda: None)
        loop.tick()
        _touch(src, 3_000_000_000)
        assert loop.tick() is True
        assert loop.last_mtime == 3_000_000_000

    def test_vanished_file_is_fatal(self, tmp_path):
        loop = WatchLoop(str(tmp_path / "gone.co"), lambda: None)
        with pytest.raises(FatalError):
            loop.tick()


class TestRun:

    def test_reschedules_until_failure(self, tmp_path):
        src = tmp_path / "a.co"
        src.write_text("1")
        hits = []

        def action():
            hits.append(1)
            src.unlink()

        loop = WatchLoop(str(src), action, interval=0.01)
        with pytest.raises(FatalError):
            asyncio.run(loop.run())
        assert hits == [1]

    def test_run_watch_drives_every_loop(self, tmp_path):
        a, b = tmp_path / "a.co", tmp_path / "b.co"
        a.write_text("a")
        b.write_text("b")
        hits = []

        def make(path):
            def action():
                hits.append(path.name)
                if len(hits) == 2:
                    raise FatalError("stop")
            return action

        with pytest.raises(FatalError, match="stop"):
            run_watch([WatchLoop(str(a), make(a), 0.01),
                       WatchLoop(str(b), make(b), 0.01)])
        assert sorted(hits) == ["a.co", "b.co"]

    def test_no_loops_returns(self):
        run_watch([])
