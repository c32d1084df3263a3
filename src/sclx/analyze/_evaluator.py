"""Expression evaluator.

``ExpressionEvaluator.evaluate`` runs a fixed pipeline over SCL expression
text:

1. ``"Quoted"`` tag references are replaced by their value text.
2. Bound names (longest first) are replaced by their value text.
3. SCL operator vocabulary is rewritten (AND -> ``&&``, ``<>`` -> ``!=`` ...).
4. The result is parsed into an AST and tree-walked.

Any failure yields ``None`` ("no value"); nothing propagates to the caller.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable

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

from ._builtins import STDLIB_FUNCTIONS
from ._context import LocalEnvironment
from ._parser import parse_expression
from ._values import EvaluationError, coerce_type

logger = logging.getLogger(__name__)


_QUOTED_TAG_RE = re.compile(r'"([^"]+)"')
_STRING_SPLIT_RE = re.compile(r"""("(?:[^"\\]|\\.)*"|'[^']*')""")
_CONVERSION_RE = re.compile(r"^([A-Z]+)_TO_([A-Z]+)$")

# Applied in order; '<>' must become '!=' before the bare '=' rule runs.
_OPERATOR_REWRITES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\bAND\b", re.IGNORECASE), "&&"),
    (re.compile(r"\bXOR\b", re.IGNORECASE), "!="),
    (re.compile(r"\bOR\b", re.IGNORECASE), "||"),
    (re.compile(r"\bNOT\b\s*", re.IGNORECASE), "!"),
    (re.compile(r"\bMOD\b", re.IGNORECASE), "%"),
    (re.compile(r"\bTRUE\b", re.IGNORECASE), "true"),
    (re.compile(r"\bFALSE\b", re.IGNORECASE), "false"),
    (re.compile(r"<>"), "!="),
    (re.compile(r"(?<![<>!=:])=(?!=)"), "=="),
)


def _outside_strings(text: str, fn: Callable[[str], str]) -> str:
    """Apply *fn* to every part of *text* that is not a string literal."""
    parts = _STRING_SPLIT_RE.split(text)
    # split() with one capture group alternates code, literal, code, ...
    return "".join(
        part if i % 2 else fn(part) for i, part in enumerate(parts)
    )


def rewrite_operators(text: str) -> str:
    """Rewrite SCL operators into the parser's vocabulary."""
    def _rewrite(part: str) -> str:
        for pattern, replacement in _OPERATOR_REWRITES:
            part = pattern.sub(replacement, part)
        return part

    return _outside_strings(text, _rewrite)


def _require_value(value: object) -> object:
    if value is None:
        raise EvaluationError("Operand has no value")
    return value


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float))


def _require_number(value: object, op: object) -> int | float:
    if not _is_number(value):
        raise EvaluationError(f"{op} expects numbers, got {type(value).__name__}")
    return value


def _truthy(value: object) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def _divide(left: int | float, right: int | float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.inf if left > 0 else -math.inf
    return left / right


def _modulo(left: int | float, right: int | float) -> int | float:
    if right == 0:
        return math.nan
    if isinstance(left, float) or isinstance(right, float):
        return math.fmod(left, right)
    # Sign follows the dividend.
    result = abs(left) % abs(right)
    return result if left >= 0 else -result


def _strict_equal(left: object, right: object) -> bool:
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    if _is_number(left) and _is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


class ExpressionEvaluator:
    """Evaluate SCL expression text against a ``LocalEnvironment``."""

    def __init__(self, env: LocalEnvironment) -> None:
        self.env = env

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def evaluate(self, expression: str) -> object:
        """Evaluate *expression*; return None when it cannot be evaluated."""
        try:
            text = rewrite_operators(self.substitute(expression))
            logger.debug("Evaluating %r as %r", expression, text)
            return self._eval(parse_expression(text))
        except (EvaluationError, ArithmeticError, TypeError, ValueError) as e:
            logger.debug("Could not evaluate %r: %s", expression, e)
            return None

    def substitute(self, expression: str) -> str:
        """Replace tag references and bound names with their value text."""
        text = _QUOTED_TAG_RE.sub(
            lambda m: self.env.source_text(m.group(1)), expression,
        )

        names = self.env.names()
        if not names:
            return text

        # One alternation, longest names first, so substituted text is
        # never rescanned.
        pattern = re.compile(
            r"(?<![\w.])(?:" + "|".join(re.escape(n) for n in names) + r")(?![\w.#])"
        )
        return _outside_strings(
            text, lambda part: pattern.sub(lambda m: self.env.source_text(m.group(0)), part),
        )

    # -----------------------------------------------------------------------
    # Expression dispatch
    # -----------------------------------------------------------------------

    def _eval(self, expr: Expression) -> object:
        handler = self._EXPR_DISPATCH.get(expr.kind)
        if handler is None:
            raise EvaluationError(f"Unsupported expression kind: {expr.kind}")
        return handler(self, expr)

    def _eval_literal(self, expr: LiteralExpr) -> object:
        return expr.value

    def _eval_variable_ref(self, expr: VariableRef) -> object:
        binding = self.env.lookup(expr.name)
        if binding is None:
            # Unresolved names default to 0 without a diagnostic.
            logger.debug("Unresolved identifier %r defaults to 0", expr.name)
            return 0
        return binding.value

    def _eval_binary(self, expr: BinaryExpr) -> object:
        # Both sides are always evaluated, no short-circuit
        left = _require_value(self._eval(expr.left))
        right = _require_value(self._eval(expr.right))
        return self._apply_binop(expr.op, left, right)

    def _apply_binop(self, op: BinaryOp, left: object, right: object) -> object:
        if op == BinaryOp.ADD:
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            return _require_number(left, op) + _require_number(right, op)
        if op == BinaryOp.SUB:
            return _require_number(left, op) - _require_number(right, op)
        if op == BinaryOp.MUL:
            return _require_number(left, op) * _require_number(right, op)
        if op == BinaryOp.DIV:
            return _divide(_require_number(left, op), _require_number(right, op))
        if op == BinaryOp.MOD:
            return _modulo(_require_number(left, op), _require_number(right, op))

        # Logical / bitwise
        if op == BinaryOp.AND:
            if _is_plain_int(left) and _is_plain_int(right):
                return left & right
            return _truthy(left) and _truthy(right)
        if op == BinaryOp.OR:
            if _is_plain_int(left) and _is_plain_int(right):
                return left | right
            return _truthy(left) or _truthy(right)

        # Comparison
        if op == BinaryOp.EQ:
            return _strict_equal(left, right)
        if op == BinaryOp.NE:
            return not _strict_equal(left, right)

        if isinstance(left, str) != isinstance(right, str):
            raise EvaluationError(f"Cannot compare {left!r} with {right!r}")
        if op == BinaryOp.GT:
            return left > right
        if op == BinaryOp.GE:
            return left >= right
        if op == BinaryOp.LT:
            return left < right
        if op == BinaryOp.LE:
            return left <= right

        raise EvaluationError(f"Unsupported binary op: {op}")

    def _eval_unary(self, expr: UnaryExpr) -> object:
        operand = _require_value(self._eval(expr.operand))
        if expr.op == UnaryOp.NEG:
            return -_require_number(operand, expr.op)
        if expr.op == UnaryOp.NOT:
            if _is_plain_int(operand):
                return ~operand
            return not _truthy(operand)
        raise EvaluationError(f"Unsupported unary op: {expr.op}")

    def _eval_function_call(self, expr: FunctionCallExpr) -> object:
        name = expr.function_name
        args = [_require_value(self._eval(a)) for a in expr.args]

        if name in STDLIB_FUNCTIONS:
            return STDLIB_FUNCTIONS[name](*args)

        m = _CONVERSION_RE.match(name)
        if m is not None:
            if len(args) != 1:
                raise EvaluationError(f"{name} expects exactly one argument")
            return coerce_type(args[0], m.group(2))

        raise EvaluationError(f"Unknown function: {name}")

    # Expression dispatch table
    _EXPR_DISPATCH: dict[str, Callable[[ExpressionEvaluator, Expression], object]] = {
        "literal": _eval_literal,
        "variable_ref": _eval_variable_ref,
        "binary": _eval_binary,
        "unary": _eval_unary,
        "function_call": _eval_function_call,
    }


def _is_plain_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
