"""Function registry and built-in math functions."""

from arithfunc.functions.registry import (
    FunctionDefinition,
    FunctionRegistry,
    default_registry,
    register,
    register_function,
)

__all__ = [
    "FunctionDefinition",
    "FunctionRegistry",
    "default_registry",
    "register",
    "register_function",
]
