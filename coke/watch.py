"""Polling file watcher.

One :class:`WatchLoop` per file.  Each tick stats the file and calls the
action when the modification time differs from the previous tick's; the
first tick always fires.  Loops run on one asyncio event loop and never
stop on their own.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Callable, Iterable, Optional

from coke.errors import FatalError

_log = logging.getLogger(__name__)

WATCH_INTERVAL = 0.5


class WatchLoop:
    """Re-run *action* whenever *path* changes."""

    def __init__(self, path: str, action: Callable[[], Any],
                 interval: float = WATCH_INTERVAL) -> None:
        self.path = path
        self.action = action
        self.interval = interval
        self.last_mtime: Optional[int] = None

    def tick(self) -> bool:
        """Poll once; returns True when the action ran."""
        try:
            mtime = os.stat(self.path).st_mtime_ns
        except OSError as exc:
            raise FatalError(str(exc)) from exc
        if mtime == self.last_mtime:
            return False
        self.last_mtime = mtime
        _log.debug("%s changed", self.path)
        self.action()
        return True

    async def run(self) -> None:
        while True:
            self.tick()
            await asyncio.sleep(self.interval)


async def _watch_all(loops: Iterable[WatchLoop]) -> None:
    await asyncio.gather(*(loop.run() for loop in loops))


def run_watch(loops: Iterable[WatchLoop]) -> None:
    """Drive *loops* until one of them raises."""
    loops = list(loops)
    if loops:
        asyncio.run(_watch_all(loops))
