"""Error types for expression compilation and evaluation."""

from __future__ import annotations


class ExpressionError(Exception):
    """Base class for all expression-related errors."""


class ExpressionParseError(ExpressionError):
    """The expression text could not be compiled.

    Attributes:
        fragment: The substring where the problem was detected, if known.
    """

    def __init__(self, message: str, fragment: str | None = None) -> None:
        self.fragment = fragment
        full = f"Expression parse error: {message}"
        if fragment is not None:
            full += f" (in {fragment!r})"
        super().__init__(full)


class ExpressionFunctionError(ExpressionParseError):
    """Unknown function or wrong number of arguments.

    Attributes:
        func_name: The function that caused the error.
    """

    def __init__(
        self, func_name: str, message: str | None = None, fragment: str | None = None
    ) -> None:
        self.func_name = func_name
        super().__init__(message or f"Unknown function: {func_name!r}", fragment)


class ExpressionVariableError(ExpressionError):
    """A variable index is not covered by the supplied values.

    Attributes:
        index: The requested variable index.
        supplied: How many values were passed to the evaluation.
    """

    def __init__(self, index: int, supplied: int) -> None:
        self.index = index
        self.supplied = supplied
        super().__init__(
            f"Variable V{index} is required but only {supplied} "
            f"value(s) were supplied"
        )


# Failures raised by compile_expression().
COMPILE_ERRORS: tuple[type[Exception], ...] = (ExpressionParseError,)

# Everything the engine raises for a bad expression or a bad evaluation call.
ENGINE_ERRORS: tuple[type[Exception], ...] = (
    ExpressionParseError,
    ExpressionVariableError,
)
