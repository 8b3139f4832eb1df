"""Compile infix arithmetic text into reusable numeric functions.

Public API::

    from arithfunc import compile_expression, register_function

    f = compile_expression("abs(-5 - V0) / V0 + V1^(1/2)")
    f.evaluate(1, 4)  # 8.0
"""

from arithfunc.errors import (
    COMPILE_ERRORS,
    ENGINE_ERRORS,
    ExpressionError,
    ExpressionFunctionError,
    ExpressionParseError,
    ExpressionVariableError,
)
from arithfunc.evaluator import evaluate
from arithfunc.functions.registry import (
    FunctionDefinition,
    FunctionRegistry,
    default_registry,
    register,
    register_function,
)
from arithfunc.parser import CONSTANTS, CompiledExpression, compile_expression

__version__ = "0.1.0"

__all__ = [
    "COMPILE_ERRORS",
    "CONSTANTS",
    "CompiledExpression",
    "ENGINE_ERRORS",
    "ExpressionError",
    "ExpressionFunctionError",
    "ExpressionParseError",
    "ExpressionVariableError",
    "FunctionDefinition",
    "FunctionRegistry",
    "compile_expression",
    "default_registry",
    "evaluate",
    "register",
    "register_function",
]
