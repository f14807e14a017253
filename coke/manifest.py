"""Cokefile discovery and loading.

A Cokefile is Python source.  It runs with a small set of names already
in scope, supplied by :class:`ManifestCapabilities`::

    task("build", "compile everything", lambda options: ...)

    @task("docs", "render the manual")
    def docs(options):
        invoke("build")
        spit("docs/index.txt", slurp("README"))

    option("release", "build without debug output")
    option("target", ("output directory", "DIR", "build"))
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from coke.console import Console
from coke.errors import FatalError
from coke.options import FlagDecl, Options
from coke.tasks import Task, TaskRegistry

_log = logging.getLogger(__name__)

DEFAULT_MANIFEST = "Cokefile"


@dataclass
class BuildSession:
    """Everything one ``coke`` run knows about its tasks and flags."""

    console: Console = field(default_factory=Console)
    registry: TaskRegistry = field(init=False)
    flags: Dict[str, FlagDecl] = field(default_factory=dict)
    options: Options = field(default_factory=Options)
    manifest_path: Optional[str] = None

    def __post_init__(self) -> None:
        self.registry = TaskRegistry(self.console)


class ManifestCapabilities:
    """The registration surface handed to a loading Cokefile."""

    def __init__(self, session: BuildSession) -> None:
        self.session = session

    def register_task(self, name: str, description: Any = None,
                      action: Optional[Callable[[Any], Any]] = None) -> Any:
        """``task(name, [description,] action)``, or a decorator when the
        action is omitted."""
        if action is None and not callable(description):
            def deco(fn: Callable[[Any], Any]) -> Callable[[Any], Any]:
                self.session.registry.register(name, description or "", fn)
                return fn
            return deco
        return self.session.registry.register(name, description, action)

    def register_flag(self, name: str, *spec: Any) -> None:
        """``option(name, description)`` or ``option(name, (desc, PH[, default]))``."""
        if not spec:
            raise TypeError(f"option {name!r} needs a description")
        self.session.flags[name] = spec[0] if len(spec) == 1 else tuple(spec)

    def invoke(self, name: str) -> Any:
        return self.session.registry.invoke(name, self.session.options)

    def namespace(self) -> Dict[str, Any]:
        return {
            "task": self.register_task,
            "option": self.register_flag,
            "invoke": self.invoke,
            "say": self.session.console.say,
            "slurp": slurp,
            "spit": spit,
            "ls": ls,
        }


def slurp(path: str, encoding: str = "utf-8") -> str:
    with open(path, "r", encoding=encoding) as fh:
        return fh.read()


def spit(path: str, text: str, encoding: str = "utf-8") -> None:
    with open(path, "w", encoding=encoding) as fh:
        fh.write(text)


def ls(path: str = ".") -> List[str]:
    return sorted(os.listdir(path))


def locate(start_dir: str, filename: str = DEFAULT_MANIFEST) -> str:
    """Find *filename* in *start_dir* or the nearest ancestor directory.

    Raises
    ------
    FatalError
        When the filesystem root is reached without a match.
    """
    directory = os.path.abspath(start_dir)
    while True:
        candidate = os.path.join(directory, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(directory)
        if parent == directory:
            raise FatalError(f'no "{filename}"')
        _log.debug("%s not in %s, trying %s", filename, directory, parent)
        directory = parent


def load(manifest_path: str, session: BuildSession) -> BuildSession:
    """Execute the Cokefile at *manifest_path*, populating *session*.

    The manifest runs synchronously; anything it raises aborts the run.
    """
    source = slurp(manifest_path)
    namespace = ManifestCapabilities(session).namespace()
    namespace.update(__name__="__cokefile__", __file__=manifest_path)
    exec(compile(source, manifest_path, "exec"), namespace)
    session.manifest_path = manifest_path
    _log.debug("loaded %d task(s) from %s",
               len(session.registry.tasks), manifest_path)
    return session


__all__ = [
    "DEFAULT_MANIFEST",
    "BuildSession",
    "ManifestCapabilities",
    "Task",
    "locate",
    "load",
]
