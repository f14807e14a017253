"""Re-run the driver under a differently configured Python interpreter.

``coco --python "-X dev -W error" script.co`` becomes::

    <sys.executable> -X dev -W error <coco> script.co
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from typing import List, Optional, Sequence

_log = logging.getLogger(__name__)

MARKER = "--python"


def strip_marker(args: Sequence[str]) -> List[str]:
    """Drop ``--python VALUE`` and ``--python=VALUE`` from *args*."""
    out: List[str] = []
    skip = False
    for arg in args:
        if skip:
            skip = False
            continue
        if arg == MARKER:
            skip = True
            continue
        if arg.startswith(MARKER + "="):
            continue
        out.append(arg)
    return out


def build_command(argv: Sequence[str], python_args: Sequence[str],
                  executable: Optional[str] = None) -> List[str]:
    """Command line for the child: interpreter, its flags, then our argv.

    *argv* is the full command line including the driver script at
    index 0.
    """
    flags = " ".join(python_args).split()
    return ([executable or sys.executable] + flags
            + [argv[0]] + strip_marker(argv[1:]))


def fork(argv: Sequence[str], python_args: Sequence[str]) -> int:
    """Spawn the child with inherited stdio, cwd and environment.

    Returns the child's exit status.
    """
    command = build_command(argv, python_args)
    _log.debug("forking: %s", " ".join(command))
    proc = subprocess.Popen(command, cwd=os.getcwd(), env=os.environ.copy())
    return proc.wait()
