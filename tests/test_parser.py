"""Tests for the expression tokenizer and parser."""

import math

import pytest

from sclx.analyze._parser import parse_expression, tokenize
from sclx.analyze._values import EvaluationError
from sclx.model.expressions import (
    BinaryExpr,
    BinaryOp,
    FunctionCallExpr,
    LiteralExpr,
    UnaryExpr,
    UnaryOp,
    VariableRef,
)


class TestTokenize:
    def test_kinds(self):
        kinds = [t.kind for t in tokenize("a && 16#FF >= T#5s")]
        assert kinds == ["name", "op", "based", "op", "time"]

    def test_whitespace_skipped(self):
        assert [t.text for t in tokenize("  1 +  2 ")] == ["1", "+", "2"]

    def test_lone_hash_skipped(self):
        assert [t.text for t in tokenize("#3 + 1")] == ["3", "+", "1"]

    def test_dotted_name(self):
        tokens = tokenize("Timer1.Q")
        assert len(tokens) == 1
        assert tokens[0].text == "Timer1.Q"

    def test_unexpected_character(self):
        with pytest.raises(EvaluationError, match="Unexpected character"):
            tokenize("a $ b")


class TestParseExpression:
    def test_integer_literal(self):
        assert parse_expression("42") == LiteralExpr(value=42)

    def test_float_literal(self):
        expr = parse_expression("2.5")
        assert isinstance(expr, LiteralExpr)
        assert expr.value == pytest.approx(2.5)

    def test_constants(self):
        assert parse_expression("true") == LiteralExpr(value=True)
        assert parse_expression("null") == LiteralExpr(value=None)
        assert parse_expression("Infinity").value == math.inf

    def test_string_literals(self):
        assert parse_expression("'abc'") == LiteralExpr(value="abc")
        assert parse_expression('"a\\"b"') == LiteralExpr(value='a"b')

    def test_time_literal(self):
        assert parse_expression("T#2s") == LiteralExpr(value=2000)

    def test_based_literal(self):
        assert parse_expression("16#10") == LiteralExpr(value=16)

    def test_variable_strips_local_prefix(self):
        assert parse_expression("#count") == VariableRef(name="count")

    def test_precedence_mul_over_add(self):
        expr = parse_expression("1 + 2 * 3")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.ADD
        assert expr.right.op == BinaryOp.MUL

    def test_precedence_and_over_or(self):
        expr = parse_expression("a || b && c")
        assert expr.op == BinaryOp.OR
        assert expr.right.op == BinaryOp.AND

    def test_comparison_binds_tighter_than_and(self):
        expr = parse_expression("a > 1 && b == 2")
        assert expr.op == BinaryOp.AND
        assert expr.left.op == BinaryOp.GT
        assert expr.right.op == BinaryOp.EQ

    def test_left_associative(self):
        expr = parse_expression("10 - 3 - 2")
        assert expr.op == BinaryOp.SUB
        assert expr.left.op == BinaryOp.SUB

    def test_parentheses(self):
        expr = parse_expression("(1 + 2) * 3")
        assert expr.op == BinaryOp.MUL
        assert expr.left.op == BinaryOp.ADD

    def test_unary(self):
        expr = parse_expression("!-x")
        assert isinstance(expr, UnaryExpr)
        assert expr.op == UnaryOp.NOT
        assert expr.operand.op == UnaryOp.NEG

    def test_function_call(self):
        expr = parse_expression("max(a, 2)")
        assert isinstance(expr, FunctionCallExpr)
        assert expr.function_name == "MAX"
        assert expr.args == [VariableRef(name="a"), LiteralExpr(value=2)]

    def test_function_call_no_args(self):
        assert parse_expression("F()").args == []

    def test_empty(self):
        with pytest.raises(EvaluationError, match="Empty expression"):
            parse_expression("   ")

    def test_trailing_tokens(self):
        with pytest.raises(EvaluationError, match="Unexpected token"):
            parse_expression("1 2")

    def test_unclosed_paren(self):
        with pytest.raises(EvaluationError):
            parse_expression("(1 + 2")

    def test_dangling_operator(self):
        with pytest.raises(EvaluationError, match="Unexpected end"):
            parse_expression("1 +")
