"""Flag-spec driven option parsing.

Both command surfaces declare their flags as a *FlagSpec*: a mapping from
flag name to either a description string (a boolean flag) or a tuple
``(description, placeholder[, default])`` for a flag that takes a value.
A placeholder ending in ``+`` marks a repeatable flag whose values collect
into a list (``-r a -r b`` gives ``["a", "b"]``)::

    FLAGS = {
        "compile": "compile to Python and save as .py files",
        "output": ("compile into the specified directory", "DIR"),
        "require": ("import libraries before executing", "FILE+"),
    }

    parser = OptionParser(FLAGS, prog="coco")
    options = parser.parse(["-c", "-o", "build", "src"])
    options.output            # 'build'
    options.positional_args   # ['src']
    print(parser)             # aligned help lines

Each flag gets a ``--long`` form and, when its first letter is still free,
a ``-x`` short form (first declaration wins).  Parsing never exits the
process: unknown flags land in ``Options.unknown_flags`` and malformed
values raise :class:`~coke.errors.FatalError`.
"""

from __future__ import annotations

import argparse
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from coke.errors import FatalError

FlagDecl = Union[str, Tuple[Any, ...]]
FlagSpec = Mapping[str, FlagDecl]


class Options(argparse.Namespace):
    """Parsed flags plus ``positional_args`` and ``unknown_flags``."""

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("positional_args", [])
        kwargs.setdefault("unknown_flags", [])
        super().__init__(**kwargs)

    def get(self, name: str, default: Any = None) -> Any:
        return getattr(self, _dest(name), default)


class _ArgumentParser(argparse.ArgumentParser):
    """An ArgumentParser that reports problems instead of exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise FatalError(f"{self.prog}: {message}")


def _dest(name: str) -> str:
    return name.replace("-", "_")


def _unpack(decl: FlagDecl) -> Tuple[str, Optional[str], Any]:
    """Split a declaration into ``(description, placeholder, default)``."""
    if isinstance(decl, str):
        return decl, None, False
    parts = tuple(decl)
    if not parts:
        raise ValueError("empty flag declaration")
    description = parts[0]
    placeholder = parts[1] if len(parts) > 1 else None
    default = parts[2] if len(parts) > 2 else None
    if placeholder is None:
        default = False
    return description, placeholder, default


class OptionParser:
    """Apply a FlagSpec to an argument vector."""

    def __init__(self, spec: FlagSpec, prog: Optional[str] = None) -> None:
        self.spec: Dict[str, FlagDecl] = dict(spec)
        self.prog = prog
        self._rows: List[Tuple[str, str]] = []
        self._parser = _ArgumentParser(prog=prog, add_help=False,
                                       allow_abbrev=False)
        taken: set = set()
        for name, decl in self.spec.items():
            description, placeholder, default = _unpack(decl)
            flags = [f"--{name}"]
            short = name[:1]
            if short.isalnum() and short not in taken:
                taken.add(short)
                flags.insert(0, f"-{short}")
            if placeholder is None:
                self._parser.add_argument(*flags, dest=_dest(name),
                                          action="store_true", default=False)
                label = ", ".join(flags)
            else:
                if placeholder.endswith("+"):
                    default = (list(default)
                               if isinstance(default, (list, tuple)) else None)
                    kwargs = dict(action="append", default=default,
                                  metavar=placeholder.rstrip("+") or "VALUE")
                else:
                    kwargs = dict(default=default, metavar=placeholder)
                self._parser.add_argument(*flags, dest=_dest(name), **kwargs)
                label = f"{', '.join(flags)} {placeholder}"
            self._rows.append((label, description))
        self._parser.add_argument("positional_args", nargs="*")

    def parse(self, argv: Sequence[str]) -> Options:
        """Parse *argv*; unknown flags are collected, not rejected."""
        options, extras = self._parser.parse_known_intermixed_args(
            list(argv), namespace=Options()
        )
        options.positional_args = list(options.positional_args or [])
        options.unknown_flags = list(extras)
        return options

    def __str__(self) -> str:
        if not self._rows:
            return ""
        width = max(len(label) for label, _ in self._rows)
        return "\n".join(
            f"  {label.ljust(width)}  {description}"
            for label, description in self._rows
        )
