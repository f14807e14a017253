"""Token stream → nested forms.

A form is one of:

- :class:`Form`, a list of forms that remembers the line it opened on;
- :class:`Symbol`, a bare identifier (a ``str`` subtype, so it compares
  equal to plain strings);
- ``str``, ``int`` or ``float`` literals.
"""

from __future__ import annotations

import ast
import json
import re
from typing import Any, Iterable, List, Optional

from coke.errors import CoSyntaxError
from coke.engine.lexer import Token, rewrite

_INT_RE = re.compile(r"^[-+]?\d+$")


class Symbol(str):
    """An identifier read from source."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Symbol({str.__repr__(self)})"


class Form(list):
    """A parenthesized form."""

    def __init__(self, items: Iterable[Any] = (), line: Optional[int] = None) -> None:
        super().__init__(items)
        self.line = line


def _atom(tok: Token) -> Any:
    if tok.tag == "NUMBER":
        return int(tok.value) if _INT_RE.match(tok.value) else float(tok.value)
    if tok.tag == "STRING":
        try:
            return ast.literal_eval(tok.value.replace("\n", "\\n"))
        except (ValueError, SyntaxError):
            raise CoSyntaxError(f"bad string literal {tok.value}", tok.line) from None
    if tok.tag == "SYMBOL":
        return Symbol(tok.value)
    raise CoSyntaxError(f"unexpected token {tok.tag}", tok.line)


def read(tokens: Iterable[Token]) -> List[Any]:
    """Read every top-level form out of *tokens* (raw or rewritten)."""
    stack: List[Form] = [Form(line=1)]
    for tok in rewrite(tokens):
        if tok.tag == "NEWLINE":
            continue
        if tok.tag == "(":
            stack.append(Form(line=tok.line))
        elif tok.tag == ")":
            if len(stack) == 1:
                raise CoSyntaxError("unmatched )", tok.line)
            form = stack.pop()
            stack[-1].append(form)
        else:
            stack[-1].append(_atom(tok))
    if len(stack) > 1:
        raise CoSyntaxError("missing ) for the form opened here", stack[-1].line)
    return list(stack[0])


def to_data(form: Any) -> Any:
    """Strip reader types: forms become lists and symbols plain strings."""
    if isinstance(form, list):
        return [to_data(item) for item in form]
    if isinstance(form, Symbol):
        return str(form)
    return form


def dump_form(form: Any) -> str:
    """Print *form* back as s-expression text."""
    if isinstance(form, list):
        return "(" + " ".join(dump_form(item) for item in form) + ")"
    if isinstance(form, Symbol):
        return str(form)
    if isinstance(form, str):
        return json.dumps(form)
    if form is None:
        return "nil"
    if isinstance(form, bool):
        return "true" if form else "false"
    return repr(form)
