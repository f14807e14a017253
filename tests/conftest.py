# tests/conftest.py
"""
Shared fixtures and helpers for the coke test-suite.
"""

import io
import logging
import os
from typing import Any, List, Optional

import pytest

from coke.console import Console
from coke.engine import EventHub


# ═══════════════════════════════════════════════════════════════════════════
#  Recording engine
# ═══════════════════════════════════════════════════════════════════════════

class FakeAst:
    """Stands in for a parsed module; records what the pipeline does to it."""

    def __init__(self, text: str = "(module)", output: str = "code()\n"):
        self.text = text
        self.output = output
        self.returned = False
        self.compiled_with: List[Any] = []

    def make_return(self):
        self.returned = True
        return self

    def compile_root(self, options):
        self.compiled_with.append((options.filename, options.bare))
        return self.output

    def stringify(self, indent=None):
        return '{"type": "Module"}'

    def __str__(self):
        return "  " + self.text + "\n"


class RecordingEngine(EventHub):
    """Engine double: every stage is recorded, results are configurable."""

    target_extension = ".py"

    def __init__(self, tokens=None, ast=None, result=None,
                 fail_at: Optional[str] = None, error: Exception = None):
        super().__init__()
        self.token_list = tokens if tokens is not None else [("NUMBER", "1", 1)]
        self.tree = ast or FakeAst()
        self.result = result
        self.fail_at = fail_at
        self.error = error or RuntimeError("boom")
        self.calls: List[str] = []
        self.raw_flags: List[bool] = []
        self.run_argv: List[List[str]] = []

    def _maybe_fail(self, stage):
        self.calls.append(stage)
        if self.fail_at == stage:
            raise self.error

    def tokens(self, code, raw=False):
        self.raw_flags.append(raw)
        self._maybe_fail("tokens")
        return self.token_list

    def ast(self, tokens):
        self._maybe_fail("ast")
        return self.tree

    def run(self, code, options=None, namespace=None):
        import sys
        self.run_argv.append(list(sys.argv))
        self._maybe_fail("run")
        return self.result

    def compile(self, source, bare=False, make_return=False, filename=""):
        self._maybe_fail("compile")
        return f"# compiled bare={bare}\n{source}"


def make_console():
    """A Console writing into two StringIO buffers."""
    return Console(stdout=io.StringIO(), stderr=io.StringIO())


# ═══════════════════════════════════════════════════════════════════════════
#  Fixtures
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def console():
    return make_console()


@pytest.fixture
def engine():
    return RecordingEngine()


@pytest.fixture
def in_tmp(tmp_path):
    """Run the test with *tmp_path* as the working directory."""
    old = os.getcwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(old)


@pytest.fixture(autouse=True)
def _reset_coke_logger():
    """The CLI entry points reconfigure the ``coke`` logger; undo that."""
    logger = logging.getLogger("coke")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers = handlers
    logger.setLevel(level)
