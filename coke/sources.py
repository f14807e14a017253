"""Resolve command-line paths into ``.co`` files to compile."""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from coke.errors import FatalError
from coke.watch import WatchLoop, run_watch

_log = logging.getLogger(__name__)

SOURCE_EXTENSION = ".co"

Compiler = Callable[[str, str, Optional[str]], Any]


class SourceWalker:
    """Expand file and directory arguments.

    Top-level arguments always compile, whatever their extension; files
    found while descending a directory compile only when they end in
    ``.co``.  A missing top-level argument without the extension is
    retried with it.
    """

    def __init__(self, extension: str = SOURCE_EXTENSION) -> None:
        self.extension = extension

    def walk(self, source: str, base: Optional[str] = None,
             top: bool = True) -> Iterator[Tuple[str, str]]:
        """Yield ``(path, base)`` for every file *source* stands for.

        Raises
        ------
        FatalError
            ``Can't find: <path>`` for a path that does not exist.
        """
        if base is None:
            base = os.path.normpath(source)
        if not os.path.exists(source):
            if top and not source.endswith(self.extension):
                yield from self.walk(source + self.extension, None, False)
                return
            raise FatalError(f"Can't find: {source}")
        if os.path.isdir(source):
            for entry in sorted(os.listdir(source)):
                child = os.path.normpath(os.path.join(source, entry))
                yield from self.walk(child, base, False)
        elif top or os.path.splitext(source)[1].lower() == self.extension:
            yield source, base

    def resolve(self, sources: Sequence[str]) -> List[Tuple[str, str]]:
        found: List[Tuple[str, str]] = []
        for source in sources:
            found.extend(self.walk(source))
        return found


def read_source(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except OSError as exc:
        raise FatalError(str(exc)) from exc


def compile_all(sources: Sequence[str], compile_file: Compiler,
                watch: bool = False,
                walker: Optional[SourceWalker] = None) -> None:
    """Compile every file under *sources* via ``compile_file(code, path, base)``.

    In watch mode each file gets a :class:`~coke.watch.WatchLoop` and this
    call does not return until a loop fails.
    """
    walker = walker or SourceWalker()
    loops: List[WatchLoop] = []
    for path, base in walker.resolve(sources):
        def work(path: str = path, base: str = base) -> Any:
            return compile_file(read_source(path), path, base)
        if watch:
            loops.append(WatchLoop(path, work))
        else:
            work()
    if watch:
        _log.info("watching %d file(s)", len(loops))
        run_watch(loops)
