"""coke: compiler driver and task runner for the ``.co`` toolchain.

This package provides two command-line surfaces sharing one option
parser and one set of exit conventions:

``coco``
    The compiler driver.  Turns flags into a pipeline of stages
    (tokenize → parse → compile → run → write), compiles whole directory
    trees, watches sources for changes, and hosts an interactive REPL.

``coke``
    A minimal task runner.  Finds a ``Cokefile`` by walking up from the
    current directory, loads the tasks it declares and runs the ones
    named on the command line.

Submodules
----------
errors
    Exception hierarchy (``CokeError``, ``FatalError``, ``CoSyntaxError``).
console
    ``say`` / ``warn`` output helpers with TTY-aware colors.
options
    Flag-spec driven option parser built on :mod:`argparse`.
tasks
    ``Task``, alias derivation and the ``TaskRegistry``.
manifest
    ``Cokefile`` discovery and loading.
pipeline
    ``PipelineDriver``, one compilation unit through every stage.
sources
    ``SourceWalker``, CLI paths to compilable source files.
watch
    ``WatchLoop``, mtime polling on the asyncio event loop.
output
    ``OutputWriter``, destination paths and file writes.
repl
    ``ReplSession`` and its evaluator adapter.
fork
    Re-exec under a differently configured interpreter (``--python``).
engine
    The default ``.co`` compiler engine (s-expressions → Python).
driver, runner
    The ``coco`` and ``coke`` entry points.

Usage
-----
Command-line::

    coco -c -o build src/
    coco -w -c src/
    coco -a -j hello.co
    coke build

Programmatic::

    from coke.engine import Engine

    engine = Engine()
    code = engine.compile('(print "hello")', bare=True)
"""

from __future__ import annotations

__version__: str = "0.3.1"
__all__: list[str] = [
    "__version__",
    "errors",
    "engine",
    "pipeline",
    "driver",
    "runner",
]
