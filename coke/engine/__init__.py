"""
coke.engine: the default ``.co`` compiler engine
================================================

A small s-expression language compiled to Python.

Submodules
----------
lexer
    parsimonious grammar, raw tokens and the rewriter.
reader
    Tokens → nested forms (``Form``, ``Symbol``, literals).
parser
    Forms → syntax tree by head-symbol dispatch.
nodes
    Syntax tree dataclasses and the ``Module`` root.
codegen
    Python emission.

Usage::

    from coke.engine import Engine

    engine = Engine()
    engine.compile("(defn sq (x) (* x x)) (sq 7)", bare=True)
    engine.run(engine.compile("(+ 1 2)", bare=True, make_return=True))  # 3
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from coke.engine.codegen import RESULT_NAME, generate
from coke.engine.lexer import Token, tokenize
from coke.engine.nodes import Module
from coke.engine.parser import parse

_log = logging.getLogger(__name__)

Listener = Callable[..., Any]

__all__ = ["Engine", "EventHub", "Module", "Token"]


class EventHub:
    """Named lifecycle events with ordered listeners."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> Listener:
        self._listeners[event].append(listener)
        return listener

    def emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners.get(event, ())):
            listener(*args)

    def listeners(self, event: str) -> List[Listener]:
        return list(self._listeners.get(event, ()))


class Engine(EventHub):
    """Tokenize, parse, compile and run ``.co`` code."""

    target_extension = ".py"

    def tokens(self, code: str, raw: bool = False) -> List[Token]:
        return tokenize(code, raw=raw)

    def ast(self, tokens: List[Token]) -> Module:
        return parse(tokens)

    def compile(self, source: str, bare: bool = False,
                make_return: bool = False, filename: str = "") -> str:
        """Run the whole front end over *source* and return Python code."""
        _log.debug("compiling %s", filename or "<input>")
        module = self.ast(self.tokens(source))
        if make_return:
            module.make_return()
        return generate(module, bare=bare)

    def run(self, code: str, options: Any = None,
            namespace: Optional[Dict[str, Any]] = None) -> Any:
        """Execute compiled *code* and return what it left in ``__result__``.

        A fresh namespace is used unless one is given; the result slot is
        removed from it afterwards.
        """
        filename = getattr(options, "filename", None) or "<co>"
        if namespace is None:
            namespace = {"__name__": "__main__", "__file__": filename}
        _log.debug("running %s", filename)
        exec(compile(code, filename, "exec"), namespace)
        return namespace.pop(RESULT_NAME, None)
