"""Evaluation semantics: IEEE arithmetic, built-ins and variable errors."""

from __future__ import annotations

import math

import pytest

from arithfunc import (
    ENGINE_ERRORS,
    ExpressionVariableError,
    compile_expression,
    evaluate,
)
from arithfunc.nodes import ConstantNode, OperatorNode, VariableNode


def _eval(text: str, *values: float) -> float:
    return compile_expression(text).evaluate(*values)


# ────────────────────────────────────────────────────────────────
# Arithmetic edge cases
# ────────────────────────────────────────────────────────────────


class TestArithmetic:
    def test_division_by_zero_is_infinite(self) -> None:
        assert _eval("1 / 0") == math.inf
        assert _eval("(0 - 1) / 0") == -math.inf

    def test_zero_over_zero_is_nan(self) -> None:
        assert math.isnan(_eval("0 / 0"))

    def test_power_of_negative_base_to_fraction_is_nan(self) -> None:
        assert math.isnan(_eval("(0 - 8) ^ (1 / 3)"))

    def test_zero_to_negative_power(self) -> None:
        assert _eval("0 ^ -1") == math.inf

    def test_power_overflow(self) -> None:
        assert _eval("10 ^ 400") == math.inf
        assert _eval("(0 - 10) ^ 401") == -math.inf

    def test_unary_negation_is_zero_minus(self) -> None:
        node = OperatorNode("-", None, ConstantNode(2.0))
        assert evaluate(node, []) == -2


# ────────────────────────────────────────────────────────────────
# Built-in functions
# ────────────────────────────────────────────────────────────────


class TestBuiltins:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("abs(-3)", 3.0),
            ("sqrt(9)", 3.0),
            ("sin(pi / 2)", 1.0),
            ("cos(0)", 1.0),
            ("tan(pi / 4)", 1.0),
            ("ln(e)", 1.0),
            ("log(1000)", 3.0),
            ("asin(1)", math.pi / 2),
            ("acos(1)", 0.0),
            ("atan(1)", math.pi / 4),
            ("atan2(1, 0)", math.pi / 2),
        ],
    )
    def test_values(self, text: str, expected: float) -> None:
        assert _eval(text) == pytest.approx(expected, abs=1e-12)

    def test_domain_errors_are_nan(self) -> None:
        assert math.isnan(_eval("sqrt(-1)"))
        assert math.isnan(_eval("ln(-1)"))
        assert math.isnan(_eval("asin(2)"))
        assert math.isnan(_eval("acos(-2)"))

    def test_log_of_zero(self) -> None:
        assert _eval("ln(0)") == -math.inf
        assert _eval("log(0)") == -math.inf


# ────────────────────────────────────────────────────────────────
# Variables
# ────────────────────────────────────────────────────────────────


class TestVariables:
    def test_out_of_range_index(self) -> None:
        f = compile_expression("V2")
        with pytest.raises(ExpressionVariableError, match="V2") as exc_info:
            f.evaluate(1, 2)
        assert exc_info.value.index == 2
        assert exc_info.value.supplied == 2

    def test_missing_variable_in_larger_expression(self) -> None:
        with pytest.raises(ExpressionVariableError):
            _eval("V0 + V1 + V2", 1, 2)

    def test_error_does_not_break_expression(self) -> None:
        f = compile_expression("V0 + V1")
        with pytest.raises(ExpressionVariableError):
            f.evaluate(1)
        assert f.evaluate(1, 2) == 3

    def test_extra_values_are_ignored(self) -> None:
        assert _eval("V0", 1, 2, 3) == 1

    def test_engine_errors_cover_variable_error(self) -> None:
        with pytest.raises(ENGINE_ERRORS):
            evaluate(VariableNode(0), [])

    def test_values_are_coerced_to_float(self) -> None:
        result = _eval("V0", 3)
        assert isinstance(result, float)
        assert result == 3.0
