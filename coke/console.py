"""Terminal output and logging setup shared by the ``coco`` and ``coke`` commands."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, TextIO


class _Colors:
    """ANSI color codes, disabled when not writing to a TTY."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def _code(self, code: str) -> str:
        return code if self.enabled else ""

    @property
    def RESET(self) -> str:
        return self._code("\033[0m")

    @property
    def BOLD(self) -> str:
        return self._code("\033[1m")

    @property
    def RED(self) -> str:
        return self._code("\033[31m")

    @property
    def YELLOW(self) -> str:
        return self._code("\033[33m")


def _get_colors(stream: TextIO) -> _Colors:
    """Get color codes appropriate for the given stream."""
    try:
        is_tty = hasattr(stream, "isatty") and stream.isatty()
    except ValueError:
        is_tty = False
    return _Colors(enabled=is_tty and os.environ.get("NO_COLOR") is None)


def configure_logging(verbose: bool = False, watch: bool = False) -> None:
    """Set up the ``coke`` logger.

    WARNING by default, INFO in watch mode, DEBUG with ``--verbose``.
    """
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif watch:
        level = logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("coke")
    root.setLevel(level)
    root.handlers = [handler]


class Console:
    """Line-oriented writer for user-facing output.

    Streams default to whatever ``sys.stdout`` / ``sys.stderr`` are at the
    moment of writing, so redirected or captured streams are honoured.
    Warnings are yellow and fatal diagnostics bold red, on a TTY only.
    """

    def __init__(self, stdout: Optional[TextIO] = None,
                 stderr: Optional[TextIO] = None) -> None:
        self._stdout = stdout
        self._stderr = stderr

    @property
    def out(self) -> TextIO:
        return self._stdout or sys.stdout

    @property
    def err(self) -> TextIO:
        return self._stderr or sys.stderr

    def write(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()

    def say(self, text: object = "") -> None:
        self.write(f"{text}\n")

    def _err_line(self, text: object) -> None:
        self.err.write(f"{text}\n")
        self.err.flush()

    def warn(self, text: object) -> None:
        c = _get_colors(self.err)
        self._err_line(f"{c.YELLOW}{text}{c.RESET}" if c.enabled else text)

    def fatal(self, text: object) -> None:
        """Print a fatal diagnostic (the caller decides the exit status)."""
        c = _get_colors(self.err)
        self._err_line(f"{c.BOLD}{c.RED}{text}{c.RESET}" if c.enabled else text)
