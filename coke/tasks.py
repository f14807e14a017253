"""Task registry: registration, alias derivation, invocation and usage."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional

from coke.console import Console
from coke.errors import FatalError

_log = logging.getLogger(__name__)

_WORD_SPLIT_RE = re.compile(r"\W+")

Action = Callable[[Any], Any]


def derive_alias(name: str) -> str:
    """First letter of every word in *name*: ``"build docs"`` → ``"bd"``."""
    return "".join(word[0] for word in _WORD_SPLIT_RE.split(name) if word)


@dataclass
class Task:
    """A named build action declared in a Cokefile."""

    name: str
    description: str
    action: Action
    alias_key: str = field(init=False)

    def __post_init__(self) -> None:
        self.alias_key = derive_alias(self.name)


class TaskRegistry:
    """Tasks keyed by name, plus an alias index.

    Re-registering a name replaces the earlier task.  When two tasks share
    an alias the most recently registered one owns it.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self.tasks: Dict[str, Task] = {}
        self.aliases: Dict[str, str] = {}

    def register(self, name: str, description: Any = None,
                 action: Optional[Action] = None) -> Task:
        """Store a task.  ``register(name, action)`` is also accepted."""
        if action is None:
            action, description = description, ""
        if not callable(action):
            raise TypeError(f"task {name!r} needs a callable action")
        task = Task(name, description or "", action)
        self.tasks[name] = task
        if task.alias_key:
            self.aliases[task.alias_key] = name
        return task

    def resolve(self, name: str) -> Optional[Task]:
        task = self.tasks.get(name)
        if task is None and name in self.aliases:
            task = self.tasks.get(self.aliases[name])
        return task

    def invoke(self, name: str, options: Any = None) -> Any:
        """Run the task named (or aliased) *name* with *options*.

        Errors raised by the action are deliberately left to propagate.
        """
        task = self.resolve(name)
        if task is None:
            raise FatalError(f'no such task: "{name}"')
        _log.debug("invoking task %r", task.name)
        return task.action(options)

    def invoke_all(self, names: Iterable[str], options: Any = None) -> None:
        for name in names:
            self.invoke(name, options)

    def list_usage(self, flag_help: str = "") -> None:
        say = self.console.say
        say("Usage: coke [coke options] [task options] [tasks]\n\nTasks:")
        width = max((len(name) for name in self.tasks), default=0)
        for name, task in self.tasks.items():
            say(f"  {name.ljust(width)}  {task.description}")
        if flag_help:
            say("\nTask options:\n" + flag_help)
        say("\nCoke options:\n  -f, --cokefile FILE  use FILE as the Cokefile")
