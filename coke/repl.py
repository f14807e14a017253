"""Interactive read-eval-print session for ``coco -i``.

Input is line based.  Empty lines count up a continuation counter that
any non-empty line resets.  Non-empty lines and the first two empty lines
in a row go into the buffer with a ``....`` continuation prompt; the third
empty line in a row evaluates the buffer::

    coco> (defn sq (x)
    ....     (* x x))
    ....
    ....
    ....
    coco>

Every entry is submitted this way, a single complete line such as
``(+ 1 2)`` included; pressing Enter once only continues the buffer.
A ``None`` result prints nothing and leaves ``_`` unchanged.

Ctrl-C drops pending input, or ends the session when there is none.
End of input ends the session, flushing a pending buffer first when the
session is interactive.
"""

from __future__ import annotations

import builtins
import logging
import pprint
import sys
from typing import Any, Dict, List, Optional, TextIO, Tuple

from coke.console import Console
from coke.errors import EXIT_OK, describe
from coke.options import Options

try:
    import readline
except ImportError:  # not available on every platform
    readline = None

_log = logging.getLogger(__name__)

CONTINUATION_LIMIT = 3


class ReplEvaluator:
    """Compile and evaluate REPL input in one persistent namespace."""

    def __init__(self, engine: Any,
                 namespace: Optional[Dict[str, Any]] = None) -> None:
        self.engine = engine
        self.namespace = namespace if namespace is not None else {
            "__name__": "__repl__",
        }

    def evaluate(self, code: str) -> Tuple[Any, Optional[BaseException]]:
        try:
            compiled = self.engine.compile(code, bare=True, make_return=True,
                                           filename="repl")
            return self.engine.run(compiled, None, self.namespace), None
        except Exception as exc:
            return None, exc

    def complete(self, prefix: str) -> List[str]:
        names = set(self.namespace) | set(dir(builtins))
        return sorted(n for n in names if n.startswith(prefix))


class ReplSession:
    """The line loop, its buffer and its prompts."""

    def __init__(self, engine: Any, options: Optional[Options] = None,
                 console: Optional[Console] = None,
                 stdin: Optional[TextIO] = None,
                 evaluator: Optional[ReplEvaluator] = None) -> None:
        self.engine = engine
        self.options = options or Options()
        self.console = console or Console()
        self.stdin = stdin or sys.stdin
        self.compile_only = bool(self.options.get("compile"))
        self.bare = bool(self.options.get("bare"))
        self.evaluator = evaluator or ReplEvaluator(engine)
        self.buffer = ""
        self.continuation = 0
        self.closed = False
        try:
            self.interactive = bool(self.stdin.isatty())
        except (AttributeError, ValueError):
            self.interactive = False

        name = "coco"
        flags = ("b" if self.bare else "") + ("c" if self.compile_only else "")
        if flags:
            name += f" -{flags}"
        self.prompt = f"{name}> "
        self.continuation_prompt = "." * len(name) + ". "

    # --- line handling ---

    def feed(self, line: str) -> Optional[str]:
        """Handle one input line; returns the prompt to show next."""
        if line:
            self.continuation = 0
        else:
            self.continuation += 1
            if not self.buffer:
                self.continuation = 0
                return self.prompt
        if self.continuation < CONTINUATION_LIMIT:
            self.buffer += line + "\n"
            return self.continuation_prompt
        self.accept()
        return self.prompt

    def accept(self) -> None:
        """Evaluate (or compile) the buffer, then clear it."""
        code = self.buffer
        self.reset()
        if self.compile_only:
            try:
                self.console.say(self.engine.compile(code, bare=self.bare))
            except Exception as exc:
                self.console.say(describe(exc))
            return
        value, error = self.evaluator.evaluate(code)
        if error is not None:
            self.console.say(describe(error))
            return
        if value is not None:
            self.evaluator.namespace["_"] = value
            self.console.say(pprint.pformat(value))

    def reset(self) -> None:
        self.buffer = ""
        self.continuation = 0

    def interrupt(self, partial_line: str = "") -> bool:
        """Ctrl-C: returns True when the session should keep going."""
        if self.buffer or partial_line:
            self.console.say("")
            self.reset()
            return True
        self.close()
        return False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.buffer and self.interactive:
            self.continuation = 0
            self.console.say("")
            self.accept()

    # --- loop ---

    def _read(self, prompt: str) -> str:
        if self.stdin is sys.stdin and self.interactive:
            return input(prompt)
        if self.interactive:
            self.console.write(prompt)
        line = self.stdin.readline()
        if not line:
            raise EOFError
        return line.rstrip("\n")

    def _install_completer(self) -> None:
        if readline is None or not self.interactive or self.compile_only:
            return

        def completer(text: str, state: int) -> Optional[str]:
            matches = self.evaluator.complete(text)
            return matches[state] if state < len(matches) else None

        readline.set_completer(completer)
        readline.parse_and_bind("tab: complete")

    def run(self) -> int:
        self._install_completer()
        prompt = self.prompt
        while not self.closed:
            try:
                line = self._read(prompt)
            except EOFError:
                self.close()
                break
            except KeyboardInterrupt:
                partial = readline.get_line_buffer() if readline else ""
                if not self.interrupt(partial):
                    break
                prompt = self.prompt
                continue
            prompt = self.feed(line)
        return EXIT_OK
