"""Built-in math functions available to every new registry.

Domain errors follow IEEE-754 rather than raising: an argument outside a
function's domain yields ``nan`` and a logarithm of zero yields ``-inf``,
matching how ``/`` and ``^`` behave in the evaluator.
"""

from __future__ import annotations

import math
from typing import Callable

from arithfunc.functions.registry import FunctionDefinition

BUILTIN_FUNCTIONS: list[FunctionDefinition] = []


def _builtin(name: str, arity: int = 1) -> Callable:
    """Decorator that adds a function to :data:`BUILTIN_FUNCTIONS`."""

    def decorator(fn: Callable[..., float]) -> Callable[..., float]:
        BUILTIN_FUNCTIONS.append(
            FunctionDefinition(name=name, arity=arity, computation=fn)
        )
        return fn

    return decorator


@_builtin("abs")
def fn_abs(x: float) -> float:
    return math.fabs(x)


@_builtin("sqrt")
def fn_sqrt(x: float) -> float:
    """Square root; ``nan`` for negative input."""
    if x < 0:
        return math.nan
    return math.sqrt(x)


@_builtin("sin")
def fn_sin(x: float) -> float:
    if math.isinf(x):
        return math.nan
    return math.sin(x)


@_builtin("cos")
def fn_cos(x: float) -> float:
    if math.isinf(x):
        return math.nan
    return math.cos(x)


@_builtin("tan")
def fn_tan(x: float) -> float:
    if math.isinf(x):
        return math.nan
    return math.tan(x)


def _log(x: float, base_fn: Callable[[float], float]) -> float:
    if math.isnan(x) or x < 0:
        return math.nan
    if x == 0:
        return -math.inf
    return base_fn(x)


@_builtin("ln")
def fn_ln(x: float) -> float:
    """Natural logarithm."""
    return _log(x, math.log)


@_builtin("log")
def fn_log(x: float) -> float:
    """Base-10 logarithm."""
    return _log(x, math.log10)


@_builtin("asin")
def fn_asin(x: float) -> float:
    if not -1.0 <= x <= 1.0:
        return math.nan
    return math.asin(x)


@_builtin("acos")
def fn_acos(x: float) -> float:
    if not -1.0 <= x <= 1.0:
        return math.nan
    return math.acos(x)


@_builtin("atan")
def fn_atan(x: float) -> float:
    return math.atan(x)


@_builtin("atan2", arity=2)
def fn_atan2(y: float, x: float) -> float:
    """Angle of the point (x, y), in radians."""
    return math.atan2(y, x)
