"""
coke/engine/lexer.py
====================

Tokenizer for ``.co`` source.

The raw token stream comes straight from a parsimonious PEG grammar; every
token is a :class:`Token` ``(tag, value, line)`` with a 1-based line
number.  Tags are the punctuation itself (``(``, ``)``, ``[``, ``]``,
``'``) or one of ``STRING``, ``NUMBER``, ``SYMBOL``, ``COMMENT`` and
``NEWLINE``.

:func:`rewrite` turns the raw stream into the stream the reader expects:

- comments are dropped, runs of newlines collapse to one;
- ``[a b]`` becomes ``(list a b)``;
- ``'x`` becomes ``(quote x)``, for atoms and whole forms alike.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, NamedTuple

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from coke.errors import CoSyntaxError

_log = logging.getLogger(__name__)


class Token(NamedTuple):
    tag: str
    value: str
    line: int


# ═══════════════════════════════════════════════════════════════════════════
# GRAMMAR
# ═══════════════════════════════════════════════════════════════════════════

CO_GRAMMAR = Grammar(r'''
    tokens     = token*
    token      = ws / newline / comment / lparen / rparen / lbracket /
                 rbracket / quote / string / number / symbol

    ws         = ~r"[ \t\r,]+"
    newline    = "\n"
    comment    = ~r";[^\n]*"
    lparen     = "("
    rparen     = ")"
    lbracket   = "["
    rbracket   = "]"
    quote      = "'"
    string     = ~r'"(?:[^"\\]|\\[\s\S])*"'
    number     = ~r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?(?![^\s()\[\]';\",])"
    symbol     = ~r"[^\s()\[\]';\",]+"
''')

_PUNCTUATION = {
    "lparen": "(",
    "rparen": ")",
    "lbracket": "[",
    "rbracket": "]",
    "quote": "'",
}


class _TokenCollector(NodeVisitor):
    """Flatten a parse tree into tokens, counting lines as it goes.

    NodeVisitor visits children before parents and left to right, so leaf
    callbacks arrive in source order.
    """

    def __init__(self) -> None:
        self.line = 1
        self.tokens: List[Token] = []

    def _add(self, tag: str, value: str) -> None:
        self.tokens.append(Token(tag, value, self.line))
        self.line += value.count("\n")

    def visit_tokens(self, node: Node, visited_children: list) -> List[Token]:
        return self.tokens

    def visit_newline(self, node: Node, visited_children: list) -> None:
        self._add("NEWLINE", "\n")

    def visit_comment(self, node: Node, visited_children: list) -> None:
        self._add("COMMENT", node.text)

    def visit_string(self, node: Node, visited_children: list) -> None:
        self._add("STRING", node.text)

    def visit_number(self, node: Node, visited_children: list) -> None:
        self._add("NUMBER", node.text)

    def visit_symbol(self, node: Node, visited_children: list) -> None:
        self._add("SYMBOL", node.text)

    def generic_visit(self, node: Node, visited_children: list) -> None:
        tag = _PUNCTUATION.get(node.expr_name)
        if tag is not None:
            self._add(tag, tag)


def lex(source: str) -> List[Token]:
    """Tokenize *source* without any rewriting.

    Raises
    ------
    CoSyntaxError
        When some text matches no token rule (an unterminated string, for
        instance).
    """
    try:
        tree = CO_GRAMMAR.parse(source)
    except ParseError as exc:
        snippet = exc.text[exc.pos:exc.pos + 10].split("\n")[0]
        raise CoSyntaxError(f"unexpected {snippet!r}", exc.line()) from None
    return _TokenCollector().visit(tree)


# ═══════════════════════════════════════════════════════════════════════════
# REWRITER
# ═══════════════════════════════════════════════════════════════════════════

def rewrite(tokens: Iterable[Token]) -> List[Token]:
    """Normalize a raw token stream for the reader.

    Quote sugar is closed with a stack of depths: each ``'`` opens a
    ``(quote`` form and records the depth it opened; whenever a datum
    finishes at that depth the form is closed.
    """
    out: List[Token] = []
    depth = 0
    pending: List[int] = []

    def close_quotes(line: int) -> None:
        nonlocal depth
        while pending and pending[-1] == depth:
            pending.pop()
            out.append(Token(")", ")", line))
            depth -= 1

    for tok in tokens:
        tag = tok.tag
        if tag == "COMMENT":
            continue
        if tag == "NEWLINE":
            if out and out[-1].tag != "NEWLINE":
                out.append(tok)
            continue
        if tag == "'":
            out.append(Token("(", "(", tok.line))
            out.append(Token("SYMBOL", "quote", tok.line))
            depth += 1
            pending.append(depth)
            continue
        if tag in ("(", "["):
            out.append(Token("(", "(", tok.line))
            if tag == "[":
                out.append(Token("SYMBOL", "list", tok.line))
            depth += 1
            continue
        if tag in (")", "]"):
            out.append(Token(")", ")", tok.line))
            depth -= 1
        else:
            out.append(tok)
        close_quotes(tok.line)
    return out


def tokenize(source: str, raw: bool = False) -> List[Token]:
    tokens = lex(source)
    _log.debug("lexed %d raw token(s)", len(tokens))
    return tokens if raw else rewrite(tokens)
