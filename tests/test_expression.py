"""Tests for expression module."""

import math

import numpy as np
import pytest

from imgverb.config import ChannelExpressions
from imgverb.errors import ConfigError, EvaluationError, ParseError
from imgverb.expression import (
    MAX_DEPTH, BinaryOp, Call, Literal, UnaryOp, Variable, evaluate, parse, parse_channels,
)


class TestParse:
    def test_literal(self):
        assert parse("255") == Literal(255.0)

    def test_tree_shape(self):
        tree = parse("x + y * 2")
        assert tree == BinaryOp("+", Variable("x"), BinaryOp("*", Variable("y"), Literal(2.0)))

    def test_call_and_unary(self):
        tree = parse("-sin(x)")
        assert tree == UnaryOp("-", Call("sin", (Variable("x"),)))

    def test_whitespace_stripped(self):
        assert parse("  x  ") == Variable("x")

    def test_str_renders_subexpression(self):
        assert str(parse("(x + 1) / y")) == "(x + 1) / y"
        assert str(parse("atan2(y, x)")) == "atan2(y, x)"

    def test_syntax_error(self):
        with pytest.raises(ParseError) as exc:
            parse("x +")
        assert exc.value.text == "x +"
        assert "x +" in str(exc.value)

    def test_empty(self):
        with pytest.raises(ParseError):
            parse("   ")

    @pytest.mark.parametrize("text", [
        "x if y else 1",
        "x < y",
        "[x, y]",
        "x.real",
        "'abc'",
        "True",
        "lambda: 1",
        "f(x=1)",
        "x & y",
    ])
    def test_unsupported_syntax(self, text):
        with pytest.raises(ParseError):
            parse(text)

    def test_long_sum_rejected(self):
        with pytest.raises(ParseError) as exc:
            parse(" + ".join(["x"] * 2000))
        assert "too deeply nested" in str(exc.value)

    def test_deep_parentheses_rejected(self):
        with pytest.raises(ParseError):
            parse("(" * 5000 + "x" + ")" * 5000)

    def test_depth_limit(self):
        assert evaluate(parse(" + ".join(["x"] * (MAX_DEPTH + 1))), {"x": 2}) == 2 * (MAX_DEPTH + 1)
        with pytest.raises(ParseError):
            parse(" + ".join(["x"] * (MAX_DEPTH + 2)))

    def test_parse_error_is_config_error(self):
        with pytest.raises(ConfigError):
            parse("(")


class TestEvaluate:
    def test_constant(self):
        assert evaluate(parse("255"), {"x": 3, "y": 4}) == 255.0

    def test_arithmetic(self):
        assert evaluate(parse("x * y + 2 ** 3 - 1"), {"x": 3, "y": 4}) == 19.0

    def test_true_division(self):
        assert evaluate(parse("x / y"), {"x": 1, "y": 4}) == 0.25

    def test_truncated_modulo(self):
        assert evaluate(parse("x % 3"), {"x": -7, "y": 0}) == -1.0
        assert evaluate(parse("mod(x, 3)"), {"x": 7, "y": 0}) == 1.0

    def test_functions(self):
        value = evaluate(parse("sin(x) + hypot(3, 4) + max(x, y)"), {"x": 0, "y": 2})
        assert value == pytest.approx(7.0)

    def test_constants(self):
        assert evaluate(parse("pi"), {}) == pytest.approx(math.pi)

    def test_binding_shadows_constant(self):
        assert evaluate(parse("e"), {"e": 2}) == 2.0

    def test_domain_error_gives_nan(self):
        assert math.isnan(evaluate(parse("sqrt(x)"), {"x": -1}))

    def test_vectorized(self):
        ys, xs = np.mgrid[0:2, 0:3]
        result = evaluate(parse("x + 10 * y"), {"x": xs, "y": ys})
        np.testing.assert_array_equal(result, [[0, 1, 2], [10, 11, 12]])

    def test_pure(self):
        tree = parse("x * 2")
        assert evaluate(tree, {"x": 5}) == evaluate(tree, {"x": 5}) == 10.0


class TestEvaluationErrors:
    def test_undefined_variable(self):
        with pytest.raises(EvaluationError) as exc:
            evaluate(parse("x + z"), {"x": 1, "y": 2})
        assert exc.value.expression == "z"
        assert "undefined variable" in str(exc.value)

    def test_unsupported_function(self):
        with pytest.raises(EvaluationError) as exc:
            evaluate(parse("gamma(x)"), {"x": 1})
        assert exc.value.expression == "gamma(x)"

    def test_wrong_arity(self):
        with pytest.raises(EvaluationError):
            evaluate(parse("sin(x, y)"), {"x": 1, "y": 2})

    def test_division_by_zero_scalar(self):
        with pytest.raises(EvaluationError) as exc:
            evaluate(parse("1 / (x - 1)"), {"x": 1})
        assert exc.value.expression == "1 / (x - 1)"
        assert exc.value.index is None

    def test_division_by_zero_reports_first_index(self):
        ys, xs = np.mgrid[0:3, 0:4]
        with pytest.raises(EvaluationError) as exc:
            evaluate(parse("100 / (x - 2)"), {"x": xs, "y": ys})
        assert exc.value.index == (0, 2)

    def test_modulo_by_zero(self):
        with pytest.raises(EvaluationError):
            evaluate(parse("mod(x, y)"), {"x": 1, "y": 0})

    def test_tree_too_deep(self):
        tree = Variable("x")
        for _ in range(5000):
            tree = BinaryOp("+", tree, Literal(1.0))
        with pytest.raises(EvaluationError) as exc:
            evaluate(tree, {"x": 0})
        assert "too deeply nested" in exc.value.message


class TestParseChannels:
    def test_all_channels(self):
        programs = parse_channels(ChannelExpressions("x", "y", "x + y", "255"))
        assert list(programs) == ["red", "green", "blue", "alpha"]
        assert programs["blue"].source == "x + y"
        assert programs["alpha"].evaluate({"x": 1, "y": 1}) == 255.0

    def test_names_failing_channel(self):
        with pytest.raises(ParseError) as exc:
            parse_channels(ChannelExpressions("x", "y", "x +* y", "255"))
        assert exc.value.channel == "blue"
        assert "blue" in str(exc.value)
