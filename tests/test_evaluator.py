"""Tests for the expression evaluator."""

import math

import pytest

from conftest import snapshot, tag

from sclx.analyze._context import LocalEnvironment
from sclx.analyze._evaluator import ExpressionEvaluator, rewrite_operators


def _evaluator(*tags):
    return ExpressionEvaluator(LocalEnvironment.from_snapshot(snapshot(*tags)))


def _eval(expression, *tags):
    return _evaluator(*tags).evaluate(expression)


# ---------------------------------------------------------------------------
# Operator rewriting
# ---------------------------------------------------------------------------

class TestRewriteOperators:
    def test_logic_words(self):
        assert rewrite_operators("a AND b OR NOT c") == "a && b || !c"

    def test_xor(self):
        assert rewrite_operators("a XOR b") == "a != b"

    def test_mod(self):
        assert rewrite_operators("a MOD 3") == "a % 3"

    def test_case_insensitive(self):
        assert rewrite_operators("a and b") == "a && b"

    def test_equality(self):
        assert rewrite_operators("a = 1") == "a == 1"

    def test_not_equal(self):
        assert rewrite_operators("a <> 1") == "a != 1"

    def test_relational_untouched(self):
        assert rewrite_operators("a >= 1 AND b <= 2") == "a >= 1 && b <= 2"

    def test_bool_literals(self):
        assert rewrite_operators("TRUE OR FALSE") == "true || false"

    def test_words_inside_names_untouched(self):
        assert rewrite_operators("ANDON OR MODE") == "ANDON || MODE"

    def test_strings_untouched(self):
        assert rewrite_operators("s = 'A AND B'") == "s == 'A AND B'"


# ---------------------------------------------------------------------------
# Substitution
# ---------------------------------------------------------------------------

class TestSubstitute:
    def test_bound_name(self):
        ev = _evaluator(tag("Speed", "12", "INT"))
        assert ev.substitute("Speed + 1") == "12 + 1"

    def test_quoted_tag(self):
        ev = _evaluator(tag("Speed", "12", "INT"))
        assert ev.substitute('"Speed" * 2') == "12 * 2"

    def test_quoted_unknown_is_zero(self):
        assert _evaluator().substitute('"Missing" + 1') == "0 + 1"

    def test_longest_name_first(self):
        ev = _evaluator(tag("A", "1", "INT"), tag("A_Long", "5", "INT"))
        assert ev.substitute("A_Long + A") == "5 + 1"

    def test_no_partial_word_match(self):
        ev = _evaluator(tag("Run", "TRUE"))
        assert ev.substitute("Running") == "Running"

    def test_time_literal_prefix_untouched(self):
        ev = _evaluator(tag("T", "1", "INT"))
        assert ev.substitute("T#5s + T") == "T#5s + 1"

    def test_string_value_not_rescanned(self):
        ev = _evaluator(tag("Msg", "B", "STRING"), tag("B", "2", "INT"))
        assert ev.substitute("Msg") == '"B"'


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------

class TestArithmetic:
    def test_add(self):
        assert _eval("2 + 3") == 5

    def test_precedence(self):
        assert _eval("2 + 3 * 4") == 14

    def test_true_division(self):
        assert _eval("7 / 2") == pytest.approx(3.5)

    def test_division_by_zero(self):
        assert _eval("10 / 0") == math.inf
        assert _eval("-10 / 0") == -math.inf

    def test_zero_by_zero_is_nan(self):
        assert math.isnan(_eval("0 / 0"))

    def test_mod(self):
        assert _eval("7 MOD 3") == 1

    def test_mod_sign_follows_dividend(self):
        assert _eval("-7 MOD 3") == -1

    def test_mod_by_zero_is_nan(self):
        assert math.isnan(_eval("7 MOD 0"))

    def test_negation(self):
        assert _eval("-(2 + 3)") == -5

    def test_string_concat(self):
        assert _eval("'ab' + 'cd'") == "abcd"

    def test_number_plus_string_fails(self):
        assert _eval("1 + 'a'") is None

    def test_time_literal(self):
        assert _eval("T#1s + T#500ms") == 1500

    def test_based_literal(self):
        assert _eval("16#10 + 1") == 17


# ---------------------------------------------------------------------------
# Logic and comparison
# ---------------------------------------------------------------------------

class TestLogic:
    def test_and(self):
        assert _eval("A AND B", tag("A", "TRUE"), tag("B", "FALSE")) is False

    def test_or(self):
        assert _eval("A OR B", tag("A", "TRUE"), tag("B", "FALSE")) is True

    def test_not(self):
        assert _eval("NOT A", tag("A", "FALSE")) is True

    def test_xor(self):
        assert _eval("A XOR B", tag("A", "TRUE"), tag("B", "FALSE")) is True

    def test_and_on_ints_is_bitwise(self):
        assert _eval("12 AND 10") == 8

    def test_or_on_ints_is_bitwise(self):
        assert _eval("12 OR 3") == 15

    def test_not_on_int_is_bitwise(self):
        assert _eval("NOT 0") == -1

    def test_comparisons(self):
        assert _eval("3 > 2") is True
        assert _eval("3 <= 2") is False
        assert _eval("3 = 3") is True
        assert _eval("3 <> 3") is False

    def test_int_equals_float(self):
        assert _eval("2 = 2.0") is True

    def test_equality_is_strict_about_bool(self):
        assert _eval("TRUE = 1") is False

    def test_compare_string_with_number_fails(self):
        assert _eval("'a' > 1") is None

    def test_comparison_with_tags(self):
        tags = (tag("Level", "75.5", "REAL"), tag("Limit", "70", "INT"))
        assert _eval("Level > Limit AND Level < 100", *tags) is True


# ---------------------------------------------------------------------------
# Names and functions
# ---------------------------------------------------------------------------

class TestNames:
    def test_unresolved_defaults_to_zero(self):
        assert _eval("Missing + 1") == 1

    def test_case_insensitive_lookup(self):
        assert _eval("speed * 2", tag("Speed", "4", "INT")) == 8

    def test_local_prefix(self):
        assert _eval("#count + 1", tag("count", "2", "INT")) == 3

    def test_no_value_makes_expression_fail(self):
        ev = _evaluator()
        ev.env.bind_computed("X", None, "UNKNOWN")
        assert ev.evaluate("X + 1") is None

    def test_infinity_propagates(self):
        ev = _evaluator()
        ev.env.bind_computed("X", math.inf, "REAL")
        assert ev.evaluate("X * 2") == math.inf


class TestFunctions:
    def test_abs(self):
        assert _eval("ABS(-4)") == 4

    def test_max_min(self):
        assert _eval("MAX(1, 7, 3)") == 7
        assert _eval("min(4, 2)") == 2

    def test_limit(self):
        assert _eval("LIMIT(0, 150, 100)") == 100

    def test_sel(self):
        assert _eval("SEL(TRUE, 1, 2)") == 2

    def test_sqrt(self):
        assert _eval("SQRT(16)") == pytest.approx(4.0)

    def test_sqrt_negative_fails(self):
        assert _eval("SQRT(-1)") is None

    def test_round_half_away_from_zero(self):
        assert _eval("ROUND(2.5)") == 3
        assert _eval("ROUND(-2.5)") == -3

    def test_conversion(self):
        assert _eval("REAL_TO_INT(3.7)") == 3
        assert _eval("INT_TO_REAL(2)") == pytest.approx(2.0)

    def test_unknown_function_fails(self):
        assert _eval("FOO(1)") is None


class TestMalformed:
    def test_syntax_error_is_no_value(self):
        assert _eval("1 +") is None

    def test_garbage_is_no_value(self):
        assert _eval("@@") is None
