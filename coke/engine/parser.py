"""
coke/engine/parser.py
=====================

Build a :class:`~coke.engine.nodes.Module` from tokens.

Reading produces nested forms (see :mod:`coke.engine.reader`); each list
form is then converted by looking up its head symbol in a dispatch table.
Heads with no entry are operators when they name one, and plain calls
otherwise::

    (def x 1)             → Def
    (defn inc (n) (+ n 1)) → Defn
    (+ 1 2 3)             → Op
    (print "hi")          → Call
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from coke.errors import CoSyntaxError
from coke.engine import nodes as N
from coke.engine.lexer import Token
from coke.engine.reader import Form, Symbol, read

# Maps a head-symbol string to a form parser.
# Populated by the ``@_register`` decorator below.
_FORM_DISPATCH: Dict[str, Callable[[Form], N.Node]] = {}

OPERATORS = frozenset([
    "+", "-", "*", "/", "//", "%", "**",
    "=", "!=", "<", ">", "<=", ">=",
    "and", "or", "not",
])

_CONSTANTS = {"true": True, "false": False, "nil": None}


def _register(tag: str):
    """Decorator: register a form parser under *tag*."""
    def deco(fn):
        _FORM_DISPATCH[tag] = fn
        return fn
    return deco


# ═══════════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════════

def _expect_arity(form: Form, low: int, high: Optional[int] = None) -> None:
    count = len(form) - 1
    if count < low or (high is not None and count > high):
        if high is None:
            want = f"at least {low}"
        elif low == high:
            want = str(low)
        else:
            want = f"{low} to {high}"
        raise CoSyntaxError(
            f"{form[0]} takes {want} argument(s), got {count}", form.line
        )


def _symbol(value: Any, what: str, line: Optional[int]) -> str:
    if not isinstance(value, Symbol):
        raise CoSyntaxError(f"{what} must be a symbol, got {value!r}", line)
    return str(value)


def _params(value: Any, line: Optional[int]) -> Tuple[List[str], Optional[str]]:
    """Parse a parameter list; ``&`` introduces the rest parameter."""
    if not isinstance(value, list):
        raise CoSyntaxError("parameter list must be a form", line)
    items = list(value)
    if items and items[0] == "list":
        items = items[1:]
    names = [_symbol(p, "parameter", line) for p in items]
    rest = None
    if "&" in names:
        at = names.index("&")
        if at != len(names) - 2:
            raise CoSyntaxError("& must be followed by exactly one name", line)
        rest = names[-1]
        names = names[:at]
    return names, rest


def _body(items: Iterable[Any]) -> List[N.Node]:
    return [to_node(item) for item in items]


# ═══════════════════════════════════════════════════════════════════════════
#  Special forms
# ═══════════════════════════════════════════════════════════════════════════

@_register("def")
def _parse_def(form: Form) -> N.Node:
    _expect_arity(form, 2, 2)
    return N.Def(_symbol(form[1], "def name", form.line), to_node(form[2]),
                 line=form.line)


@_register("defn")
def _parse_defn(form: Form) -> N.Node:
    _expect_arity(form, 2)
    name = _symbol(form[1], "defn name", form.line)
    params, rest = _params(form[2], form.line)
    return N.Defn(name, params, rest, _body(form[3:]), line=form.line)


@_register("fn")
def _parse_fn(form: Form) -> N.Node:
    _expect_arity(form, 1)
    params, rest = _params(form[1], form.line)
    return N.Lambda(params, rest, _body(form[2:]), line=form.line)


@_register("if")
def _parse_if(form: Form) -> N.Node:
    _expect_arity(form, 2, 3)
    orelse = to_node(form[3]) if len(form) > 3 else None
    return N.If(to_node(form[1]), to_node(form[2]), orelse, line=form.line)


@_register("do")
def _parse_do(form: Form) -> N.Node:
    return N.Do(_body(form[1:]), line=form.line)


@_register("let")
def _parse_let(form: Form) -> N.Node:
    _expect_arity(form, 1)
    pairs = form[1]
    if not isinstance(pairs, list):
        raise CoSyntaxError("let bindings must be a form", form.line)
    pairs = list(pairs)
    if pairs and pairs[0] == "list":
        pairs = pairs[1:]
    if len(pairs) % 2:
        raise CoSyntaxError("let bindings must come in name/value pairs",
                            form.line)
    bindings = [
        N.Binding(_symbol(pairs[i], "let name", form.line),
                  to_node(pairs[i + 1]), line=form.line)
        for i in range(0, len(pairs), 2)
    ]
    return N.Let(bindings, _body(form[2:]), line=form.line)


@_register("set!")
def _parse_set(form: Form) -> N.Node:
    _expect_arity(form, 2, 2)
    target = to_node(form[1])
    if not isinstance(target, (N.Name, N.Attr)):
        raise CoSyntaxError("set! target must be a name or attribute",
                            form.line)
    return N.SetBang(target, to_node(form[2]), line=form.line)


@_register("quote")
def _parse_quote(form: Form) -> N.Node:
    _expect_arity(form, 1, 1)
    return N.Quote(form[1], line=form.line)


@_register("import")
def _parse_import(form: Form) -> N.Node:
    _expect_arity(form, 1, 2)
    module = _symbol(form[1], "module name", form.line)
    alias = _symbol(form[2], "import alias", form.line) if len(form) > 2 else None
    return N.Import(module, alias, line=form.line)


@_register("return")
def _parse_return(form: Form) -> N.Node:
    _expect_arity(form, 0, 1)
    value = to_node(form[1]) if len(form) > 1 else None
    return N.Return(value, line=form.line)


@_register("list")
def _parse_list(form: Form) -> N.Node:
    return N.ListExpr(_body(form[1:]), line=form.line)


@_register("dict")
def _parse_dict(form: Form) -> N.Node:
    if (len(form) - 1) % 2:
        raise CoSyntaxError("dict needs an even number of arguments", form.line)
    return N.DictExpr(_body(form[1:]), line=form.line)


@_register(".")
def _parse_attr(form: Form) -> N.Node:
    _expect_arity(form, 2)
    names = [_symbol(n, "attribute", form.line) for n in form[2:]]
    return N.Attr(to_node(form[1]), names, line=form.line)


# ═══════════════════════════════════════════════════════════════════════════
#  Entry points
# ═══════════════════════════════════════════════════════════════════════════

def to_node(form: Any) -> N.Node:
    """Convert one reader form into a syntax tree node."""
    if isinstance(form, list):
        line = getattr(form, "line", None)
        if not form:
            return N.Literal(None, line=line)
        head = form[0]
        if isinstance(head, Symbol):
            parser = _FORM_DISPATCH.get(head)
            if parser is not None:
                return parser(form)
            if head in OPERATORS:
                if head == "not":
                    _expect_arity(form, 1, 1)
                else:
                    _expect_arity(form, 1)
                return N.Op(str(head), _body(form[1:]), line=line)
        return N.Call(to_node(head), _body(form[1:]), line=line)
    if isinstance(form, Symbol):
        if form in _CONSTANTS:
            return N.Literal(_CONSTANTS[form])
        return N.Name(str(form))
    return N.Literal(form)


def parse(tokens: Iterable[Token]) -> N.Module:
    """Parse a token stream into a :class:`~coke.engine.nodes.Module`."""
    return N.Module(_body(read(tokens)), line=1)
