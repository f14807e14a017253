"""
coke/engine/nodes.py
====================

Typed syntax tree for ``.co`` programs.

Every node is a dataclass.  Visitors dispatch on ``visit_<snake_name>``
through :meth:`Node.accept`, so ``Defn`` lands in ``visit_defn`` and
``SetBang`` in ``visit_set_bang``.

The root :class:`Module` also carries the operations the compiler driver
needs: :meth:`Module.make_return`, :meth:`Module.compile_root`,
:meth:`Module.stringify` (JSON) and ``str()`` (an indented tree).
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from coke.engine.reader import dump_form, to_data

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


# ═══════════════════════════════════════════════════════════════════════════
# BASE
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class Node:
    """Base class of all syntax tree nodes."""

    line: Optional[int] = field(default=None, repr=False, compare=False,
                                kw_only=True)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._visit_name = "visit_" + _CAMEL_RE.sub("_", cls.__name__).lower()

    def accept(self, visitor: Any) -> Any:
        method = getattr(visitor, self._visit_name, None)
        if method is None:
            return visitor.generic_visit(self)
        return method(self)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": type(self).__name__}
        for f in fields(self):
            if f.name == "line":
                continue
            out[f.name] = _plain(getattr(self, f.name))
        return out


def _plain(value: Any) -> Any:
    if isinstance(value, Node):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


class ASTVisitor:
    """Base visitor: ``visit(node)`` dispatches to ``visit_<kind>``."""

    def visit(self, node: Node) -> Any:
        return node.accept(self)

    def generic_visit(self, node: Node) -> Any:
        return None


# ═══════════════════════════════════════════════════════════════════════════
# EXPRESSIONS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class Literal(Node):
    value: Any = None


@dataclass
class Name(Node):
    name: str = ""


@dataclass
class Quote(Node):
    """``(quote datum)``; the datum keeps its reader form."""

    form: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "Quote", "form": to_data(self.form)}


@dataclass
class ListExpr(Node):
    items: List[Node] = field(default_factory=list)


@dataclass
class DictExpr(Node):
    """``(dict k1 v1 k2 v2)``: keys and values alternate in ``items``."""

    items: List[Node] = field(default_factory=list)


@dataclass
class Call(Node):
    func: Node = None
    args: List[Node] = field(default_factory=list)


@dataclass
class Attr(Node):
    obj: Node = None
    names: List[str] = field(default_factory=list)


@dataclass
class Op(Node):
    op: str = ""
    args: List[Node] = field(default_factory=list)


@dataclass
class If(Node):
    test: Node = None
    then: Node = None
    orelse: Optional[Node] = None


@dataclass
class Do(Node):
    body: List[Node] = field(default_factory=list)


@dataclass
class Binding(Node):
    name: str = ""
    value: Node = None


@dataclass
class Let(Node):
    bindings: List[Binding] = field(default_factory=list)
    body: List[Node] = field(default_factory=list)


@dataclass
class Lambda(Node):
    params: List[str] = field(default_factory=list)
    rest: Optional[str] = None
    body: List[Node] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════
# STATEMENTS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class Def(Node):
    name: str = ""
    value: Node = None


@dataclass
class Defn(Node):
    name: str = ""
    params: List[str] = field(default_factory=list)
    rest: Optional[str] = None
    body: List[Node] = field(default_factory=list)


@dataclass
class SetBang(Node):
    target: Node = None
    value: Node = None


@dataclass
class Import(Node):
    module: str = ""
    alias: Optional[str] = None


@dataclass
class Return(Node):
    value: Optional[Node] = None


@dataclass
class Module(Node):
    body: List[Node] = field(default_factory=list)

    def make_return(self) -> "Module":
        """Turn the final statement into an explicit return of its value."""
        if not self.body:
            self.body.append(Return(Literal(None)))
        elif not isinstance(self.body[-1], Return):
            last = self.body[-1]
            self.body[-1] = Return(last, line=last.line)
        return self

    def compile_root(self, options: Any = None) -> str:
        """Generate Python source; ``options.bare`` drops the module wrapper."""
        from coke.engine.codegen import generate
        return generate(self, bare=bool(getattr(options, "bare", False)))

    def stringify(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        lines: List[str] = []
        _dump_tree(self, 0, lines)
        return "\n".join(lines)


# ═══════════════════════════════════════════════════════════════════════════
# TREE DUMP
# ═══════════════════════════════════════════════════════════════════════════

def _dump_tree(node: Node, depth: int, lines: List[str]) -> None:
    prefix = "  " * depth
    scalars = []
    children = []
    for f in fields(node):
        if f.name == "line":
            continue
        value = getattr(node, f.name)
        if isinstance(node, Quote):
            scalars.append(f"form={dump_form(value)}")
        elif isinstance(value, Node):
            children.append((f.name, [value]))
        elif isinstance(value, list) and value and isinstance(value[0], Node):
            children.append((f.name, value))
        elif value is not None and value != []:
            scalars.append(f"{f.name}={value!r}")
    header = type(node).__name__
    if scalars:
        header = f"{header} {' '.join(scalars)}"
    lines.append(prefix + header)
    for name, items in children:
        lines.append(f"{prefix}  {name}:")
        for item in items:
            _dump_tree(item, depth + 2, lines)
