"""
coke/engine/codegen.py
======================

Python code generation for ``.co`` syntax trees.

Output shape
------------
Without ``bare`` the whole module becomes the body of one function that is
called once, so top-level names stay local to the unit::

    def __module__():
        ...
    __result__ = __module__()

With ``bare`` the statements are emitted at top level and a trailing
``return`` stores its value in ``__result__`` instead.

Forms that only make sense as statements (``def``, ``set!``, ``import``,
``defn``) have expression renderings where Python allows one: ``def`` and
``set!`` use ``:=``, ``do`` becomes a tuple indexed with ``[-1]``, ``let``
an immediately-called lambda.  ``defn`` and ``import`` inside an
expression are compile errors.
"""

from __future__ import annotations

import keyword
import re
from io import StringIO
from typing import Any, List, Optional

from coke.errors import CoSyntaxError
from coke.engine import nodes as N
from coke.engine.reader import to_data

__all__ = [
    "generate",
    "CodeEmitter",
    "PythonGenerator",
    "RESULT_NAME",
]

RESULT_NAME = "__result__"
MODULE_FUNCTION = "__module__"

_BINARY_OPS = {
    "+": "+", "-": "-", "*": "*", "/": "/", "//": "//", "%": "%", "**": "**",
    "and": "and", "or": "or",
}
_COMPARE_OPS = {"=": "==", "!=": "!=", "<": "<", ">": ">", "<=": "<=", ">=": ">="}


# ═══════════════════════════════════════════════════════════════════════════
# CODE EMITTER
# ═══════════════════════════════════════════════════════════════════════════

class CodeEmitter:
    """Line-oriented emission with indentation tracking."""

    def __init__(self, indent_str: str = "    ") -> None:
        self._buffer = StringIO()
        self._indent_str = indent_str
        self._indent_level = 0

    @property
    def depth(self) -> int:
        return self._indent_level

    def emit(self, code: str) -> None:
        """Emit a line of code at the current indentation."""
        if code.strip():
            self._buffer.write(self._indent_str * self._indent_level)
            self._buffer.write(code)
        self._buffer.write("\n")

    def indent(self) -> None:
        self._indent_level += 1

    def dedent(self) -> None:
        self._indent_level = max(0, self._indent_level - 1)

    def block(self, header: str) -> "CodeEmitter._BlockContext":
        """Context manager for indented blocks."""
        return self._BlockContext(self, header)

    class _BlockContext:

        def __init__(self, emitter: "CodeEmitter", header: str) -> None:
            self._emitter = emitter
            self._header = header

        def __enter__(self) -> "CodeEmitter":
            self._emitter.emit(self._header)
            self._emitter.indent()
            return self._emitter

        def __exit__(self, *args: Any) -> None:
            self._emitter.dedent()

    def get_code(self) -> str:
        return self._buffer.getvalue()

    @staticmethod
    def make_identifier(name: str) -> str:
        """Mangle a ``.co`` symbol into a Python identifier.

        ``empty?`` → ``empty_p``, ``reset!`` → ``reset_b``,
        ``file-name`` → ``file_name``; dotted names are mangled per part.
        """
        if "." in name.strip("."):
            return ".".join(CodeEmitter.make_identifier(p) for p in name.split("."))
        result = name.replace("-", "_").replace("?", "_p").replace("!", "_b")
        result = re.sub(r"\W", "_", result)
        if result and result[0].isdigit():
            result = "_" + result
        if keyword.iskeyword(result):
            result = result + "_"
        return result or "_unnamed"


_ident = CodeEmitter.make_identifier


# ═══════════════════════════════════════════════════════════════════════════
# EXPRESSION COMPILER
# ═══════════════════════════════════════════════════════════════════════════

class ExpressionCompiler(N.ASTVisitor):
    """Compile nodes to Python expression strings."""

    def compile(self, node: Optional[N.Node]) -> str:
        if node is None:
            return "None"
        return self.visit(node)

    def visit_literal(self, node: N.Literal) -> str:
        return repr(node.value)

    def visit_name(self, node: N.Name) -> str:
        return _ident(node.name)

    def visit_quote(self, node: N.Quote) -> str:
        return repr(to_data(node.form))

    def visit_list_expr(self, node: N.ListExpr) -> str:
        return "[" + ", ".join(self.compile(i) for i in node.items) + "]"

    def visit_dict_expr(self, node: N.DictExpr) -> str:
        items = node.items
        entries = ", ".join(
            f"{self.compile(items[i])}: {self.compile(items[i + 1])}"
            for i in range(0, len(items), 2)
        )
        return "{" + entries + "}"

    def visit_call(self, node: N.Call) -> str:
        func = self.compile(node.func)
        if isinstance(node.func, (N.Lambda, N.Let, N.If, N.Do, N.Op)):
            func = f"({func})"
        args = ", ".join(self.compile(a) for a in node.args)
        return f"{func}({args})"

    def visit_attr(self, node: N.Attr) -> str:
        obj = self.compile(node.obj)
        if not isinstance(node.obj, (N.Name, N.Attr, N.Call)):
            obj = f"({obj})"
        return ".".join([obj] + [_ident(n) for n in node.names])

    def visit_op(self, node: N.Op) -> str:
        args = [self.compile(a) for a in node.args]
        if node.op == "not":
            return f"(not {args[0]})"
        if len(args) == 1:
            if node.op in ("-", "+"):
                return f"({node.op}{args[0]})"
            return args[0]
        op = _BINARY_OPS.get(node.op) or _COMPARE_OPS[node.op]
        return "(" + f" {op} ".join(args) + ")"

    def visit_if(self, node: N.If) -> str:
        return (f"({self.compile(node.then)} if {self.compile(node.test)} "
                f"else {self.compile(node.orelse)})")

    def visit_do(self, node: N.Do) -> str:
        if not node.body:
            return "None"
        if len(node.body) == 1:
            return self.compile(node.body[0])
        return "(" + ", ".join(self.compile(b) for b in node.body) + ")[-1]"

    def visit_let(self, node: N.Let) -> str:
        params = ", ".join(_ident(b.name) for b in node.bindings)
        values = ", ".join(self.compile(b.value) for b in node.bindings)
        body = self.visit_do(N.Do(node.body))
        return f"(lambda {params}: {body})({values})"

    def visit_lambda(self, node: N.Lambda) -> str:
        params = [_ident(p) for p in node.params]
        if node.rest:
            params.append("*" + _ident(node.rest))
        body = self.visit_do(N.Do(node.body))
        head = f"lambda {', '.join(params)}" if params else "lambda"
        return f"({head}: {body})"

    def visit_def(self, node: N.Def) -> str:
        return f"({_ident(node.name)} := {self.compile(node.value)})"

    def visit_set_bang(self, node: N.SetBang) -> str:
        value = self.compile(node.value)
        if isinstance(node.target, N.Name):
            return f"({self.compile(node.target)} := {value})"
        target = node.target
        obj = self.compile(N.Attr(target.obj, target.names[:-1])) \
            if len(target.names) > 1 else self.compile(target.obj)
        return f"setattr({obj}, {target.names[-1]!r}, {value})"

    def generic_visit(self, node: N.Node) -> str:
        raise CoSyntaxError(
            f"{type(node).__name__.lower()} cannot be used as an expression",
            node.line,
        )


# ═══════════════════════════════════════════════════════════════════════════
# STATEMENT GENERATOR
# ═══════════════════════════════════════════════════════════════════════════

class PythonGenerator(N.ASTVisitor):
    """Emit a module as Python statements.

    ``tail`` marks statements whose value is the value of the enclosing
    body; those are written as returns.
    """

    def __init__(self, bare: bool = False) -> None:
        self.bare = bare
        self.emitter = CodeEmitter()
        self.expr = ExpressionCompiler()
        self._functions = 0
        self._tail = False

    # --- helpers ---

    def _return(self, code: str) -> None:
        if self._functions == 0:
            self.emitter.emit(f"{RESULT_NAME} = {code}")
        else:
            self.emitter.emit(f"return {code}")

    def statement(self, node: N.Node, tail: bool = False) -> None:
        saved, self._tail = self._tail, tail
        try:
            self.visit(node)
        finally:
            self._tail = saved

    def body(self, nodes: List[N.Node], tail: bool) -> None:
        if not nodes:
            if tail:
                self._return("None")
            else:
                self.emitter.emit("pass")
            return
        for i, node in enumerate(nodes):
            self.statement(node, tail and i == len(nodes) - 1)

    def function(self, header: str, nodes: List[N.Node]) -> None:
        with self.emitter.block(header):
            self._functions += 1
            try:
                self.body(nodes, tail=True)
            finally:
                self._functions -= 1

    # --- root ---

    def generate(self, module: N.Module) -> str:
        if self.bare:
            if module.body:
                self.body(module.body, tail=False)
        else:
            self.function(f"def {MODULE_FUNCTION}():", module.body)
            self.emitter.emit(f"{RESULT_NAME} = {MODULE_FUNCTION}()")
        return self.emitter.get_code()

    # --- statements ---

    def visit_def(self, node: N.Def) -> None:
        name = _ident(node.name)
        self.emitter.emit(f"{name} = {self.expr.compile(node.value)}")
        if self._tail:
            self._return(name)

    def visit_set_bang(self, node: N.SetBang) -> None:
        target = self.expr.compile(node.target)
        self.emitter.emit(f"{target} = {self.expr.compile(node.value)}")
        if self._tail:
            self._return(target)

    def visit_defn(self, node: N.Defn) -> None:
        params = [_ident(p) for p in node.params]
        if node.rest:
            params.append("*" + _ident(node.rest))
        name = _ident(node.name)
        self.function(f"def {name}({', '.join(params)}):", node.body)
        if self._tail:
            self._return(name)

    def visit_import(self, node: N.Import) -> None:
        module = _ident(node.module)
        if node.alias:
            bound = _ident(node.alias)
            self.emitter.emit(f"import {module} as {bound}")
        else:
            bound = module.split(".")[0]
            self.emitter.emit(f"import {module}")
        if self._tail:
            self._return(bound)

    def visit_if(self, node: N.If) -> None:
        tail = self._tail
        with self.emitter.block(f"if {self.expr.compile(node.test)}:"):
            self.statement(node.then, tail)
        if node.orelse is not None or tail:
            with self.emitter.block("else:"):
                if node.orelse is None:
                    self._return("None")
                else:
                    self.statement(node.orelse, tail)

    def visit_do(self, node: N.Do) -> None:
        self.body(node.body, self._tail)

    def visit_return(self, node: N.Return) -> None:
        if node.value is None:
            self._return("None")
        else:
            self.statement(node.value, tail=True)

    def generic_visit(self, node: N.Node) -> None:
        code = self.expr.compile(node)
        if self._tail:
            self._return(code)
        else:
            self.emitter.emit(code)


def generate(module: N.Module, bare: bool = False) -> str:
    """Compile *module* to Python source."""
    return PythonGenerator(bare=bare).generate(module)
