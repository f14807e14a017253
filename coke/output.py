"""Placement and writing of compiled output files."""

from __future__ import annotations

import logging
import os
import re
from typing import Optional

from coke.console import Console

_log = logging.getLogger(__name__)

# The last extension is replaced; an inner one (``data.json.co``) wins over
# the target extension.
_EXTENSION_RE = re.compile(r"(?:(\.\w+)?\.\w+)?$")


def target_name(source: str, extension: str) -> str:
    """``src/a/b.co`` → ``b.py``; ``data.json.co`` → ``data.json``."""
    basename = os.path.basename(source)
    return _EXTENSION_RE.sub(lambda m: m.group(1) or extension, basename, count=1)


def target_dir(source: str, base: Optional[str],
               output_dir: Optional[str]) -> str:
    """Directory that receives the compiled form of *source*.

    With *output_dir* the source's directory is re-rooted under it, after
    stripping the *base* prefix (nothing is stripped when base is ``.``).
    Both are compared in normalized form, so ``./src`` and ``src`` agree.
    """
    directory = os.path.dirname(source)
    if not output_dir:
        return directory
    base = os.path.normpath(base or ".")
    if directory:
        directory = os.path.normpath(directory)
    relative = directory
    if base != "." and (directory == base
                        or directory.startswith(base + os.sep)):
        relative = directory[len(base):]
    return os.path.join(output_dir, relative.lstrip("/" + os.sep))


class OutputWriter:
    """Write compiled code next to its source or under an output root."""

    def __init__(self, output_dir: Optional[str] = None, json_mode: bool = False,
                 watch: bool = False, extension: str = ".py",
                 console: Optional[Console] = None) -> None:
        self.output_dir = output_dir
        self.json_mode = json_mode
        self.watch = watch
        self.extension = extension
        self.console = console or Console()

    def destination(self, source: str, base: Optional[str] = None) -> str:
        name = target_name(source, ".json" if self.json_mode else self.extension)
        return os.path.join(target_dir(source, base, self.output_dir), name)

    def write(self, source: str, code: str, base: Optional[str] = None) -> Optional[str]:
        """Write *code* for *source*; returns the path, or None on failure.

        Write failures are warnings.
        """
        path = self.destination(source, base)
        directory = os.path.dirname(path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(code or "\n")
        except OSError as exc:
            self.console.warn(exc)
            return None
        if self.watch:
            _log.info("%s => %s", source, path)
        return path
