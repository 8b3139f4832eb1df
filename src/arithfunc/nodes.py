"""Expression tree node types.

A compiled expression is a strict tree of these immutable nodes.  The
node class determines which fields are meaningful.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union

from arithfunc.functions.registry import FunctionDefinition

OPERATOR_SYMBOLS = ("+", "-", "*", "/", "^")


@dataclass(frozen=True)
class OperatorNode:
    """Binary operator; ``left`` is ``None`` only for unary negation."""

    symbol: str
    left: Node | None
    right: Node


@dataclass(frozen=True)
class FunctionNode:
    """Call of a registered function with exactly ``definition.arity`` args."""

    definition: FunctionDefinition
    args: tuple[Node, ...]

    @property
    def name(self) -> str:
        return self.definition.name


@dataclass(frozen=True)
class ConstantNode:
    value: float


@dataclass(frozen=True)
class VariableNode:
    index: int


Node = Union[OperatorNode, FunctionNode, ConstantNode, VariableNode]


def iter_nodes(node: Node) -> Iterator[Node]:
    """Yield *node* and all of its descendants, depth first."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if isinstance(current, OperatorNode):
            stack.append(current.right)
            if current.left is not None:
                stack.append(current.left)
        elif isinstance(current, FunctionNode):
            stack.extend(reversed(current.args))


def variable_count(node: Node) -> int:
    """Number of values an evaluation of *node* needs (highest index + 1)."""
    indices = [n.index for n in iter_nodes(node) if isinstance(n, VariableNode)]
    return max(indices) + 1 if indices else 0
