"""Tokenizer and recursive-descent parser for rewritten expressions.

The evaluator rewrites SCL operators into a compact vocabulary before
parsing (``&&``, ``||``, ``!``, ``==``, ``!=``, ``%``, ``true``/``false``).
This module turns that text into an explicit AST; it never executes
anything.

Precedence, tightest first::

    unary  ! -
    multiplicative  * / %
    additive  + -
    relational  < > <= >=
    equality  == !=
    logical and  &&
    logical or  ||
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from dataclasses import dataclass

from sclx.model.expressions import (
    BinaryExpr,
    BinaryOp,
    Expression,
    FunctionCallExpr,
    LiteralExpr,
    UnaryExpr,
    UnaryOp,
    VariableRef,
)

from ._values import EvaluationError, parse_based_int, parse_time_literal


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int


_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<time>(?i:L?TIME|LT|T)\#-?[0-9][0-9A-Za-z_.]*)
    | (?P<based>(?:2|8|16)\#[0-9A-Fa-f_]+)
    | (?P<number>(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)
    | (?P<string>"(?:[^"\\]|\\.)*"|'[^']*')
    | (?P<name>\#?[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*)
    | (?P<op>&&|\|\||==|!=|<=|>=|[-+*/%<>!(),])
    | (?P<local>\#)
    """,
    re.VERBOSE,
)

_CONSTANTS: dict[str, object] = {
    "true": True,
    "false": False,
    "null": None,
    "Infinity": math.inf,
    "NaN": math.nan,
}

_EQUALITY_OPS = {"==": BinaryOp.EQ, "!=": BinaryOp.NE}
_RELATIONAL_OPS = {
    "<": BinaryOp.LT, ">": BinaryOp.GT, "<=": BinaryOp.LE, ">=": BinaryOp.GE,
}
_ADDITIVE_OPS = {"+": BinaryOp.ADD, "-": BinaryOp.SUB}
_MULTIPLICATIVE_OPS = {"*": BinaryOp.MUL, "/": BinaryOp.DIV, "%": BinaryOp.MOD}


def tokenize(text: str) -> list[Token]:
    """Split rewritten expression text into tokens."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise EvaluationError(
                f"Unexpected character {text[pos]!r} at position {pos}"
            )
        kind = m.lastgroup
        # A lone '#' is the local-variable prefix left over after
        # substitution (``#count`` -> ``#3``); it carries no meaning.
        if kind not in ("ws", "local"):
            tokens.append(Token(kind, m.group(), pos))
        pos = m.end()
    return tokens


def parse_expression(text: str) -> Expression:
    """Parse rewritten expression text into an AST."""
    tokens = tokenize(text)
    if not tokens:
        raise EvaluationError("Empty expression")
    return _Parser(tokens).parse()


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.index = 0

    # -----------------------------------------------------------------------
    # Token helpers
    # -----------------------------------------------------------------------

    def _peek(self) -> Token | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _next(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise EvaluationError("Unexpected end of expression")
        self.index += 1
        return tok

    def _accept(self, *texts: str) -> Token | None:
        tok = self._peek()
        if tok is not None and tok.kind == "op" and tok.text in texts:
            self.index += 1
            return tok
        return None

    def _expect(self, text: str) -> None:
        if self._accept(text) is None:
            tok = self._peek()
            found = tok.text if tok else "end of expression"
            raise EvaluationError(f"Expected {text!r}, found {found!r}")

    # -----------------------------------------------------------------------
    # Grammar
    # -----------------------------------------------------------------------

    def parse(self) -> Expression:
        expr = self._or()
        tok = self._peek()
        if tok is not None:
            raise EvaluationError(
                f"Unexpected token {tok.text!r} at position {tok.pos}"
            )
        return expr

    def _or(self) -> Expression:
        left = self._and()
        while self._accept("||"):
            left = BinaryExpr(op=BinaryOp.OR, left=left, right=self._and())
        return left

    def _and(self) -> Expression:
        left = self._equality()
        while self._accept("&&"):
            left = BinaryExpr(op=BinaryOp.AND, left=left, right=self._equality())
        return left

    def _binary_level(
        self,
        ops: dict[str, BinaryOp],
        operand: Callable[[], Expression],
    ) -> Expression:
        left = operand()
        while True:
            tok = self._accept(*ops)
            if tok is None:
                return left
            left = BinaryExpr(op=ops[tok.text], left=left, right=operand())

    def _equality(self) -> Expression:
        return self._binary_level(_EQUALITY_OPS, self._relational)

    def _relational(self) -> Expression:
        return self._binary_level(_RELATIONAL_OPS, self._additive)

    def _additive(self) -> Expression:
        return self._binary_level(_ADDITIVE_OPS, self._multiplicative)

    def _multiplicative(self) -> Expression:
        return self._binary_level(_MULTIPLICATIVE_OPS, self._unary)

    def _unary(self) -> Expression:
        if self._accept("!"):
            return UnaryExpr(op=UnaryOp.NOT, operand=self._unary())
        if self._accept("-"):
            return UnaryExpr(op=UnaryOp.NEG, operand=self._unary())
        if self._accept("+"):
            return self._unary()
        return self._primary()

    def _primary(self) -> Expression:
        tok = self._next()

        if tok.kind == "number":
            if any(c in tok.text for c in ".eE"):
                return LiteralExpr(value=float(tok.text))
            return LiteralExpr(value=int(tok.text))

        if tok.kind == "based":
            return LiteralExpr(value=parse_based_int(tok.text))

        if tok.kind == "time":
            return LiteralExpr(value=parse_time_literal(tok.text))

        if tok.kind == "string":
            return LiteralExpr(value=_unquote(tok.text))

        if tok.kind == "name":
            name = tok.text.lstrip("#")
            if name in _CONSTANTS:
                return LiteralExpr(value=_CONSTANTS[name])
            if self._accept("("):
                return FunctionCallExpr(
                    function_name=name.upper(), args=self._call_args(),
                )
            return VariableRef(name=name)

        if tok.kind == "op" and tok.text == "(":
            expr = self._or()
            self._expect(")")
            return expr

        raise EvaluationError(f"Unexpected token {tok.text!r} at position {tok.pos}")

    def _call_args(self) -> list[Expression]:
        args: list[Expression] = []
        if self._accept(")"):
            return args
        while True:
            args.append(self._or())
            if self._accept(")"):
                return args
            self._expect(",")


def _unquote(text: str) -> str:
    if text.startswith("'"):
        return text[1:-1]
    return re.sub(r"\\(.)", r"\1", text[1:-1])
