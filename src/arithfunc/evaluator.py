"""Tree-walking evaluator for compiled expressions.

Arithmetic follows IEEE-754: division by zero and overflow produce
infinities, undefined results produce ``nan``.  The only error raised for
a well-formed tree is :class:`ExpressionVariableError`, when the tree
references a variable that was not supplied.

The walk uses an explicit stack, so long operator chains (which compile
to deep left-leaning trees) evaluate without touching the recursion limit.
"""

from __future__ import annotations

import math
from typing import Callable, Sequence

from arithfunc.errors import ExpressionError, ExpressionVariableError
from arithfunc.nodes import (
    ConstantNode,
    FunctionNode,
    Node,
    OperatorNode,
    VariableNode,
)


def evaluate(node: Node, variables: Sequence[float]) -> float:
    """Evaluate the tree rooted at *node*.

    Args:
        node: Root node, normally ``CompiledExpression.root``.
        variables: Value of ``V0``, ``V1``, ... in order.

    Returns:
        The computed value.
    """
    values = tuple(float(v) for v in variables)
    return _eval(node, values)


def _eval(root: Node, values: tuple[float, ...]) -> float:
    # (node, children_done) pairs; results holds evaluated operands.
    stack: list[tuple[Node, bool]] = [(root, False)]
    results: list[float] = []

    while stack:
        node, children_done = stack.pop()

        if isinstance(node, ConstantNode):
            results.append(node.value)

        elif isinstance(node, VariableNode):
            if node.index >= len(values):
                raise ExpressionVariableError(node.index, len(values))
            results.append(values[node.index])

        elif isinstance(node, OperatorNode):
            if not children_done:
                stack.append((node, True))
                stack.append((node.right, False))
                if node.left is not None:
                    stack.append((node.left, False))
                continue
            right = results.pop()
            # Missing left operand: unary negation, evaluated as 0 - right.
            left = 0.0 if node.left is None else results.pop()
            results.append(_OPERATORS[node.symbol](left, right))

        elif isinstance(node, FunctionNode):
            if not children_done:
                stack.append((node, True))
                # Reversed so arguments are evaluated left to right.
                stack.extend((arg, False) for arg in reversed(node.args))
                continue
            n = len(node.args)
            args = results[-n:]
            del results[-n:]
            results.append(float(node.definition.computation(*args)))

        else:
            raise ExpressionError(f"Unknown node type: {type(node).__name__}")

    return results[0]


# ---------- Operators ----------


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _signed_inf(base: float, exp: float) -> float:
    odd = exp.is_integer() and exp % 2 == 1
    if odd and math.copysign(1.0, base) < 0:
        return -math.inf
    return math.inf


def _power(base: float, exp: float) -> float:
    try:
        return math.pow(base, exp)
    except OverflowError:
        return _signed_inf(base, exp)
    except ValueError:
        # 0 to a negative power, or a negative base to a fractional power
        if base == 0:
            return _signed_inf(base, exp)
        return math.nan


_OPERATORS: dict[str, Callable[[float, float], float]] = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _divide,
    "^": _power,
}
