# coke/pipeline.py
"""
One compilation unit through the engine.

Stage order
───────────
┌──────────────────────────────────────────────────────────────────────┐
│  lex ─▶ [stop: --lex/--tokens] ─▶ parse ─▶ [stop: --ast] ─▶ compile  │
│      ─▶ run (run mode or --json) ─▶ [stop: run mode] ─▶ write        │
└──────────────────────────────────────────────────────────────────────┘

Every stage returns an :class:`Outcome`.  ``CONTINUE`` moves on, ``STOP``
ends the unit quietly (the debug dumps and run mode use it), and a
``FAIL`` outcome carries the error that ended the unit.  Errors raised by
the engine are turned into ``FAIL`` at the stage boundary, so each unit
is failure-handled exactly once.

Engine events fire before the matching stage: ``lex``, ``parse``,
``compile``, ``run`` and ``write`` receive the :class:`CompilationContext`;
``success`` fires after a unit that neither stopped nor failed; ``failure``
receives ``(error, context)`` and, when anyone listens, replaces the
default reporting.
"""

from __future__ import annotations

import enum
import json
import logging
import pprint
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from coke.console import Console
from coke.errors import FatalError, describe
from coke.options import Options
from coke.output import OutputWriter

_log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# DATA MODEL
# ═══════════════════════════════════════════════════════════════════════════

class OutcomeKind(enum.Enum):
    CONTINUE = "continue"
    STOP = "stop"
    FAIL = "fail"


@dataclass(frozen=True)
class Outcome:
    """Result of one pipeline stage."""

    kind: OutcomeKind
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.kind is OutcomeKind.FAIL


CONTINUE = Outcome(OutcomeKind.CONTINUE)
STOP = Outcome(OutcomeKind.STOP)


def Fail(error: BaseException) -> Outcome:
    return Outcome(OutcomeKind.FAIL, error)


@dataclass
class UnitOptions:
    """Per-unit compile options handed to the engine."""

    filename: str = ""
    bare: bool = False


@dataclass
class CompilationContext:
    """State of one unit as it moves through the stages."""

    input: str
    options: UnitOptions = field(default_factory=UnitOptions)
    tokens: Optional[List[Any]] = None
    ast: Any = None
    output: Optional[str] = None
    result: Any = None


# ═══════════════════════════════════════════════════════════════════════════
# TOKEN DUMP
# ═══════════════════════════════════════════════════════════════════════════

def render_tokens(tokens: Sequence[Sequence[Any]]) -> List[str]:
    """Group tokens by line for the ``--lex``/``--tokens`` dumps.

    Every line index between the first and last token line gets an entry;
    lines with no tokens render blank.  A token prints as ``TAG`` when its
    lower-cased tag equals its value and as ``TAG:value`` otherwise.
    """
    by_line: Dict[int, List[str]] = {}
    for tag, value, line in tokens:
        text = tag if tag.lower() == value else f"{tag}:{value}"
        by_line.setdefault(line, []).append(text)
    if not by_line:
        return []
    return [
        " ".join(by_line.get(line, ())).replace("\n", "\\n")
        for line in range(min(by_line), max(by_line) + 1)
    ]


@contextmanager
def _script_argv(argv: List[str]) -> Iterator[None]:
    saved = sys.argv
    sys.argv = argv
    try:
        yield
    finally:
        sys.argv = saved


# ═══════════════════════════════════════════════════════════════════════════
# DRIVER
# ═══════════════════════════════════════════════════════════════════════════

class PipelineDriver:
    """Run compilation units according to the driver's flags.

    Parameters
    ----------
    engine:
        Anything with ``on/emit/listeners``, ``tokens``, ``ast`` and
        ``run`` (see :class:`coke.engine.Engine`).
    options:
        Parsed driver flags.
    script_args:
        Arguments the compiled program sees after its own name in run mode.
    """

    def __init__(self, engine: Any, options: Options,
                 console: Optional[Console] = None,
                 script_args: Sequence[str] = (),
                 writer: Optional[OutputWriter] = None) -> None:
        self.engine = engine
        self.options = options
        self.console = console or Console()
        self.script_args = list(script_args)
        self.run_mode = not (options.get("compile") or options.get("output"))
        self.watch = bool(options.get("watch"))
        self.writer = writer or OutputWriter(
            output_dir=options.get("output"),
            json_mode=bool(options.get("json")),
            watch=self.watch,
            extension=getattr(engine, "target_extension", ".py"),
            console=self.console,
        )
        self._stages: List[Callable[[CompilationContext, Optional[str]], Outcome]] = [
            self._lex, self._parse, self._compile, self._run, self._write,
        ]

    def compile_unit(self, source: str, filename: str = "",
                     base: Optional[str] = None,
                     program: Optional[str] = None) -> Outcome:
        """Compile one unit; *program* names it in ``sys.argv`` when run.

        Raises
        ------
        FatalError
            When a stage fails outside watch mode and nobody listens for
            ``failure``.
        """
        ctx = CompilationContext(
            input=source,
            options=UnitOptions(filename=filename,
                                bare=bool(self.options.get("bare"))),
        )
        argv = [filename or program or "eval"] + self.script_args
        with _script_argv(argv):
            outcome = self._execute(ctx, base)
        if outcome.failed:
            self._handle_failure(outcome.error, ctx)
        elif outcome.kind is OutcomeKind.CONTINUE:
            self.engine.emit("success", ctx)
        return outcome

    def _execute(self, ctx: CompilationContext, base: Optional[str]) -> Outcome:
        for stage in self._stages:
            _log.debug("%s: %s", ctx.options.filename or "<input>",
                       stage.__name__.lstrip("_"))
            try:
                outcome = stage(ctx, base)
            except Exception as exc:  # any engine error ends the unit
                return Fail(exc)
            if outcome is not CONTINUE:
                return outcome
        return CONTINUE

    # --- stages ---

    def _lex(self, ctx: CompilationContext, base: Optional[str]) -> Outcome:
        o = self.options
        self.engine.emit("lex", ctx)
        ctx.tokens = self.engine.tokens(ctx.input, raw=bool(o.get("lex")))
        if o.get("lex") or o.get("tokens"):
            for line in render_tokens(ctx.tokens):
                self.console.say(line)
            return STOP
        return CONTINUE

    def _parse(self, ctx: CompilationContext, base: Optional[str]) -> Outcome:
        o = self.options
        self.engine.emit("parse", ctx)
        ctx.ast = self.engine.ast(ctx.tokens)
        if o.get("ast"):
            self.console.say(ctx.ast.stringify(2) if o.get("json")
                             else str(ctx.ast).strip())
            return STOP
        return CONTINUE

    def _compile(self, ctx: CompilationContext, base: Optional[str]) -> Outcome:
        o = self.options
        self.engine.emit("compile", ctx)
        ctx.options.bare = ctx.options.bare or bool(o.get("json")) or self.run_mode
        if o.get("json") or (self.run_mode and o.get("print")):
            ctx.ast.make_return()
        ctx.output = ctx.ast.compile_root(ctx.options)
        return CONTINUE

    def _run(self, ctx: CompilationContext, base: Optional[str]) -> Outcome:
        o = self.options
        if o.get("json") or self.run_mode:
            self.engine.emit("run", ctx)
            ctx.result = self.engine.run(ctx.output, ctx.options)
        if o.get("json"):
            ctx.output = json.dumps(ctx.result, indent=2) + "\n"
        if not self.run_mode:
            return CONTINUE
        if o.get("json"):
            self.console.write(ctx.output)
        elif o.get("print"):
            result = ctx.result
            self.console.say(result if isinstance(result, str)
                             else pprint.pformat(result))
        return STOP

    def _write(self, ctx: CompilationContext, base: Optional[str]) -> Outcome:
        self.engine.emit("write", ctx)
        filename = ctx.options.filename
        if self.options.get("print") or not filename:
            self.console.say((ctx.output or "").rstrip())
        else:
            self.writer.write(filename, ctx.output or "", base)
        return CONTINUE

    # --- failure policy ---

    def _handle_failure(self, error: BaseException,
                        ctx: CompilationContext) -> None:
        if self.engine.listeners("failure"):
            self.engine.emit("failure", error, ctx)
            return
        if ctx.options.filename:
            self.console.warn(f"Failed at: {ctx.options.filename}")
        message = describe(error)
        if self.watch:
            self.console.warn(message + "\x07")
            return
        raise FatalError(message)
