#!/usr/bin/env python3
"""coke/driver.py: the ``coco`` compiler driver.

Usage examples
--------------
    # Run a script, passing it two arguments
    coco script.co one two

    # Compile a source tree into build/, keeping its layout
    coco -c -o build src

    # Recompile on every change
    coco -cw src

    # Evaluate inline code and print the result
    coco -pe "(+ 1 2)"

    # Debug dumps
    coco --tokens script.co
    coco --ast --json script.co

    # Start the REPL
    coco -i

Exit codes
----------
    0   Success.
    1   Fatal diagnostic (missing file, unknown flag, compile failure).

``python -m coke`` runs this module's :func:`main`.
"""

from __future__ import annotations

import importlib
import logging
import os
import runpy
import sys
from typing import Any, Dict, List, Optional, Sequence

from coke import __version__
from coke.console import Console, configure_logging
from coke.errors import EXIT_ERROR, EXIT_OK, FatalError
from coke.fork import fork
from coke.options import FlagDecl, OptionParser, Options
from coke.pipeline import PipelineDriver
from coke.repl import ReplSession
from coke.sources import compile_all

_log = logging.getLogger("coke")

DRIVER_FLAGS: Dict[str, FlagDecl] = {
    "interactive": "start REPL; submit each entry with three blank lines",
    "compile": "compile to Python and save as .py files",
    "output": ("compile into the specified directory", "DIR"),
    "watch": "watch scripts for changes, and repeat",
    "stdin": "read stdin",
    "eval": "read command line arguments as script",
    "require": ("import libraries before executing", "FILE+"),
    "bare": "compile without the top-level function wrapper",
    "print": "print the result to stdout",
    "lex": "print the tokens the lexer produces",
    "tokens": "print the tokens the rewriter produces",
    "ast": "print the syntax tree the parser produces",
    "json": "print/compile as JSON",
    "python": ('pass options through to the "python" binary', "ARGS+"),
    "version": "display version",
    "help": "display this",
    "verbose": "log pipeline stages to stderr",
}


# ===========================================================================
# Utility helpers
# ===========================================================================

def build_parser() -> OptionParser:
    return OptionParser(DRIVER_FLAGS, prog="coco")


def help_text(parser: OptionParser) -> str:
    return f"Usage: coco [options] [files] [arguments]\n\nOptions:\n{parser}"


def version_text() -> str:
    return f"Coco {__version__}"


def _default_engine() -> Any:
    from coke.engine import Engine
    return Engine()


def _require(targets: Sequence[str]) -> None:
    """Load ``--require`` targets: script paths via runpy, the rest by import."""
    for target in targets:
        try:
            if os.path.exists(target) or target.endswith(".py"):
                runpy.run_path(target, run_name="__coke_require__")
            else:
                importlib.import_module(target)
        except (ImportError, OSError) as exc:
            raise FatalError(f"can't require {target}: {exc}") from exc
        _log.debug("required %s", target)


# ===========================================================================
# Mode dispatch
# ===========================================================================

def run(argv: Sequence[str], engine: Any = None,
        console: Optional[Console] = None, stdin: Any = None,
        prog_path: Optional[str] = None) -> int:
    """Parse *argv* and run the selected mode.

    Raises
    ------
    FatalError
        For every fatal diagnostic; :func:`main` turns it into exit status 1.
    """
    console = console or Console()
    stdin = stdin or sys.stdin
    parser = build_parser()
    options = parser.parse(argv)

    if options.unknown_flags:
        raise FatalError(
            "Unrecognized option(s): " + " ".join(options.unknown_flags)
            + "\n\n" + help_text(parser)
        )
    configure_logging(bool(options.verbose), bool(options.watch))

    if options.python:
        full_argv = [prog_path or sys.argv[0]] + list(argv)
        return fork(full_argv, options.python)
    if options.version:
        console.say(version_text())
        return EXIT_OK
    if options.help:
        console.say(help_text(parser))
        return EXIT_OK

    engine = engine or _default_engine()
    args: List[str] = list(options.positional_args)
    run_mode = not (options.compile or options.output)
    if options.output:
        options.compile = True
    if options.stdin:
        script_args = args
    elif run_mode:
        script_args, args = args[1:], args[:1]
    else:
        script_args = []

    if options.require:
        _require(options.require)

    pipeline = PipelineDriver(engine, options, console=console,
                              script_args=script_args)
    _log.debug("mode: %s", "run" if run_mode else "compile")

    if options.eval:
        pipeline.compile_unit("\n".join(args), program="eval")
    elif options.interactive:
        return _repl(engine, options, console, stdin)
    elif options.stdin:
        pipeline.compile_unit(stdin.read(), program="stdin")
    elif args:
        compile_all(
            args,
            lambda code, path, base: pipeline.compile_unit(code, path, base),
            watch=bool(options.watch),
        )
    elif _isatty(stdin):
        console.say(version_text() + "\n" + help_text(parser) + "\n")
        return _repl(engine, options, console, stdin)
    else:
        pipeline.compile_unit(stdin.read(), program="stdin")
    return EXIT_OK


def _isatty(stream: Any) -> bool:
    try:
        return bool(stream.isatty())
    except (AttributeError, ValueError):
        return False


def _repl(engine: Any, options: Options, console: Console, stdin: Any) -> int:
    saved = sys.argv
    sys.argv = ["repl"]
    try:
        return ReplSession(engine, options, console=console, stdin=stdin).run()
    finally:
        sys.argv = saved


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for ``coco``; returns the process exit status."""
    console = Console()
    try:
        return run(sys.argv[1:] if argv is None else list(argv), console=console)
    except FatalError as exc:
        console.fatal(exc.message)
        return exc.status
    except KeyboardInterrupt:
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
