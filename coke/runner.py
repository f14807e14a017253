#!/usr/bin/env python3
"""coke/runner.py: the ``coke`` task runner.

Usage examples
--------------
    # List the tasks of the nearest Cokefile
    coke

    # Run two tasks, in this order, with a task-level flag
    coke --release build docs

    # Use another manifest (only recognized as the first argument)
    coke -f tasks.py test

Exit codes
----------
    0   Every requested task ran.
    1   No Cokefile found, or an unknown task was requested.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import List, Optional, Sequence, Tuple

from coke.console import Console, configure_logging
from coke.errors import EXIT_OK, FatalError
from coke.manifest import DEFAULT_MANIFEST, BuildSession, load, locate
from coke.options import OptionParser

_log = logging.getLogger("coke")

MANIFEST_FLAGS = ("-f", "--cokefile")


def split_manifest_flag(args: Sequence[str]) -> Tuple[str, List[str]]:
    """Peel ``-f FILE`` off the front of *args*.

    Without it the manifest name comes from ``$COKEFILE``, else
    ``Cokefile``.
    """
    args = list(args)
    if len(args) >= 2 and args[0] in MANIFEST_FLAGS:
        return args[1], args[2:]
    return os.environ.get("COKEFILE") or DEFAULT_MANIFEST, args


def run(argv: Sequence[str], console: Optional[Console] = None) -> int:
    """Load the manifest, then run the named tasks or list them all."""
    session = BuildSession(console=console or Console())
    filename, args = split_manifest_flag(argv)

    path = locate(os.getcwd(), filename)
    directory = os.path.dirname(path)
    if directory != os.getcwd():
        _log.debug("entering %s", directory)
        os.chdir(directory)
    load(path, session)

    parser = OptionParser(session.flags, prog="coke")
    session.options = parser.parse(args)
    if args:
        session.registry.invoke_all(session.options.positional_args,
                                    session.options)
    else:
        session.registry.list_usage(str(parser))
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for ``coke``; returns the process exit status."""
    configure_logging()
    console = Console()
    try:
        return run(sys.argv[1:] if argv is None else list(argv), console)
    except FatalError as exc:
        console.fatal(exc.message)
        return exc.status


if __name__ == "__main__":
    sys.exit(main())
