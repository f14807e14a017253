# coke/errors.py
"""
Error types for the coke toolchain.

Hierarchy
─────────
┌──────────────────────────────────────────────────────────────────────┐
│  CokeError (base)                                                    │
│  ├── FatalError        - ends the process with exit status 1         │
│  └── CoSyntaxError     - lexer/parser failures (also a SyntaxError)  │
└──────────────────────────────────────────────────────────────────────┘

Fatal errors cover discovery failures (missing Cokefile or source file),
unknown task names, unrecognized flags and compile failures outside of
watch mode.  The CLI entry points catch ``FatalError``, print its message
on stderr and return ``EXIT_ERROR``.

Syntax-class errors are reported without a traceback.  Anything whose
type derives from the builtin ``SyntaxError`` qualifies, as does any
error whose message starts with ``Parse error``.
"""

from __future__ import annotations

import re
import traceback
from typing import Optional

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1

_PARSE_ERROR_RE = re.compile(r"^Parse error ")


class CokeError(Exception):
    """Base exception for all coke errors."""


class FatalError(CokeError):
    """An error that terminates the current run.

    Parameters
    ----------
    message:
        Diagnostic shown on stderr.
    status:
        Process exit status (defaults to ``EXIT_ERROR``).
    """

    def __init__(self, message: str, status: int = EXIT_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return self.message


class CoSyntaxError(CokeError, SyntaxError):
    """Lexer or parser failure in ``.co`` source."""

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        prefix = "Parse error"
        if line is not None:
            prefix = f"Parse error on line {line}"
        super().__init__(f"{prefix}: {message}")
        self.msg = f"{prefix}: {message}"
        self.lineno = line

    def __str__(self) -> str:
        return self.msg


def is_syntax_class(error: BaseException) -> bool:
    """Return True when *error* should be shown without a traceback."""
    if isinstance(error, SyntaxError):
        return True
    return bool(_PARSE_ERROR_RE.match(str(error)))


def describe(error: BaseException) -> str:
    """Normalize *error* for display.

    Syntax-class errors render as their message; everything else renders
    as a full traceback.
    """
    if is_syntax_class(error):
        return str(error)
    return "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    ).rstrip()
