"""Compiler from infix arithmetic text to an expression tree.

Supports:
- Binary operators ``+ - * / ^``; precedence ``+ -`` < ``* /`` < ``^``,
  every level left-associative (``2^3^2`` is ``(2^3)^2``)
- Parentheses, including redundant ones: ``((V0))``
- Unary negation and chains of it: ``-V0``, ``5--5``, ``2*-3``
- Positional variables ``V0``, ``V1``, ... (``v0`` is accepted too)
- Named constants ``e``, ``pi``, ``phi``
- Calls of registered functions: ``sqrt(2)``, ``atan2(V1, V0)``

The text is split at its lowest-precedence operators outside parentheses
and the chain is folded left to right, so ``1+2+3`` is ``(1+2)+3``.  Each
operand is compiled the same way.  Text that holds no such operator is a
leaf (number, constant, variable or function call).  Only parentheses and
calls nest the compiler; past the interpreter's recursion limit they are
reported as ``ExpressionParseError``.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Iterable, Sequence

from arithfunc.errors import (
    COMPILE_ERRORS,
    ExpressionFunctionError,
    ExpressionParseError,
    ExpressionVariableError,
)
from arithfunc.evaluator import evaluate
from arithfunc.functions.registry import FunctionRegistry, default_registry
from arithfunc.logging import EventType, emit_warning
from arithfunc.nodes import (
    OPERATOR_SYMBOLS,
    ConstantNode,
    FunctionNode,
    Node,
    OperatorNode,
    VariableNode,
    iter_nodes,
    variable_count,
)

logger = logging.getLogger(__name__)

# Lowest precedence first: the first level with a top-level operator
# provides the root of the (sub)tree.
PRECEDENCE_LEVELS: tuple[str, ...] = ("+-", "*/", "^")

CONSTANTS: dict[str, float] = {
    "e": math.e,
    "pi": math.pi,
    "phi": (1 + math.sqrt(5)) / 2,
}

# Plain decimal only.  No sign (handled as negation) and no exponent:
# "1e5" is rejected instead of being read as a number.
_NUMBER_RE = re.compile(r"[0-9]+(?:\.[0-9]*)?|\.[0-9]+")
_SCIENTIFIC_RE = re.compile(r"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)[eE][0-9]*")
_VARIABLE_RE = re.compile(r"[Vv]([0-9]+)")
_CALL_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)\(")


class CompiledExpression:
    """A compiled expression, evaluable any number of times.

    Instances are immutable and hold no evaluation state, so one instance
    can be shared between threads.

    Example::

        f = compile_expression("V0 / V0 + V1")
        f.evaluate(1, -0.5)   # 0.5
        f(2, 3)               # 4.0
    """

    __slots__ = ("_text", "_root", "_variable_count")

    def __init__(self, text: str, root: Node) -> None:
        self._text = text
        self._root = root
        self._variable_count = variable_count(root)

    @property
    def text(self) -> str:
        """The source text this expression was compiled from."""
        return self._text

    @property
    def root(self) -> Node:
        return self._root

    @property
    def variable_count(self) -> int:
        """Minimum number of values :meth:`evaluate` must receive."""
        return self._variable_count

    def function_names(self) -> set[str]:
        """Names of all functions called by this expression."""
        return {n.name for n in iter_nodes(self._root) if isinstance(n, FunctionNode)}

    def evaluate(self, *variables: float) -> float:
        """Evaluate with ``variables[i]`` bound to ``Vi``.

        Raises:
            ExpressionVariableError: If a referenced variable index is not
                covered by *variables*.  The expression stays usable.
        """
        try:
            return evaluate(self._root, variables)
        except ExpressionVariableError as exc:
            emit_warning(
                EventType.eval_failed,
                str(exc),
                {"expression": self._text, "supplied": len(variables)},
                error_code="variable_out_of_range",
            )
            raise

    __call__ = evaluate

    def evaluate_many(self, rows: Iterable[Sequence[float]]) -> list[float]:
        """Evaluate once per row of variable values."""
        return [self.evaluate(*row) for row in rows]

    def __repr__(self) -> str:
        return f"CompiledExpression({self._text!r})"


def compile_expression(
    text: str, registry: FunctionRegistry | None = None
) -> CompiledExpression:
    """Compile *text* into a :class:`CompiledExpression`.

    Args:
        text: The expression, e.g. ``"abs(-5 - V0) / V0 + V1^(1/2)"``.
        registry: Functions available to the expression.  Defaults to the
            process-wide registry.

    Returns:
        The compiled expression.

    Raises:
        ExpressionParseError: If the text is empty or malformed.
        ExpressionFunctionError: If an unknown function is called or a
            function gets the wrong number of arguments.
    """
    if registry is None:
        registry = default_registry()
    try:
        check_balanced(text)
        try:
            root = _build(text, registry)
        except RecursionError:
            # Only parenthesis and call nesting recurse; chains are folded.
            raise ExpressionParseError("expression is too deeply nested") from None
        if root is None:
            raise ExpressionParseError("expression is empty", text)
    except COMPILE_ERRORS as exc:
        emit_warning(
            EventType.compile_failed,
            str(exc),
            {"expression": text},
            error_code="compile_error",
        )
        raise
    logger.debug("compiled %r", text)
    return CompiledExpression(text, root)


# ---------------------------------------------------------------------------
# Parenthesis helpers
# ---------------------------------------------------------------------------


def check_balanced(text: str) -> None:
    """Raise ``ExpressionParseError`` unless every parenthesis is matched."""
    depth = 0
    for pos, ch in enumerate(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise ExpressionParseError(
                    f"unmatched ')' at position {pos}", text
                )
    if depth:
        raise ExpressionParseError(f"{depth} unclosed '('", text)


def is_wrapped(text: str) -> bool:
    """True if the first ``(`` of *text* is matched by its last ``)``."""
    if len(text) < 2 or text[0] != "(" or text[-1] != ")":
        return False
    depth = 1
    for ch in text[1:-1]:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return False
    return True


def split_arguments(inner: str) -> list[str]:
    """Split a call's argument text at commas outside parentheses."""
    parts: list[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(inner):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(inner[start:i])
            start = i + 1
    parts.append(inner[start:])
    return parts


# ---------------------------------------------------------------------------
# Tree construction
# ---------------------------------------------------------------------------


def _unwrap(text: str) -> str:
    text = text.strip()
    while is_wrapped(text):
        text = text[1:-1].strip()
    return text


def _build(text: str, registry: FunctionRegistry) -> Node | None:
    """Compile *text*; ``None`` means the text is empty."""
    # Peel leading negations in a loop: "---5" is three nested unary nodes.
    negations = 0
    text = _unwrap(text)
    while text.startswith("-") and _split_points(text, "+-") == [0]:
        negations += 1
        text = _unwrap(text[1:])

    node = _build_unsigned(text, registry)
    if negations:
        if node is None:
            raise ExpressionParseError("operator '-' is missing its right operand", text)
        for _ in range(negations):
            node = OperatorNode("-", None, node)
    return node


def _build_unsigned(text: str, registry: FunctionRegistry) -> Node | None:
    for level in PRECEDENCE_LEVELS:
        points = _split_points(text, level)
        if points:
            return _build_chain(text, points, registry)

    if not text:
        return None
    return _resolve_leaf(text, registry)


def _split_points(text: str, symbols: str) -> list[int]:
    """Indices of the top-level binary operators in *symbols*, ascending."""
    points: list[int] = []
    depth = 0
    for i in range(len(text) - 1, -1, -1):
        ch = text[i]
        if ch == ")":
            depth += 1
        elif ch == "(":
            depth -= 1
        elif depth == 0 and ch in symbols:
            # A '-' right after another operator negates its right operand.
            if ch == "-" and _follows_operator(text, i):
                continue
            points.append(i)
    points.reverse()
    return points


def _follows_operator(text: str, pos: int) -> bool:
    j = pos - 1
    while j >= 0 and text[j].isspace():
        j -= 1
    return j >= 0 and text[j] in OPERATOR_SYMBOLS


def _build_chain(text: str, points: list[int], registry: FunctionRegistry) -> OperatorNode:
    """Fold a same-precedence chain ``a op b op c`` left to right."""
    node = _build(text[:points[0]], registry)
    if node is None and text[points[0]] != "-":
        raise ExpressionParseError(
            f"operator {text[points[0]]!r} is missing its left operand", text
        )

    ends = points[1:] + [len(text)]
    for pos, end in zip(points, ends):
        symbol = text[pos]
        right = _build(text[pos + 1:end], registry)
        if right is None:
            raise ExpressionParseError(
                f"operator {symbol!r} is missing its right operand", text
            )
        node = OperatorNode(symbol, node, right)
    return node


def _resolve_leaf(text: str, registry: FunctionRegistry) -> Node:
    """Resolve operator-free text.  The order of the checks matters."""
    if _NUMBER_RE.fullmatch(text):
        return ConstantNode(float(text))

    if text in CONSTANTS:
        return ConstantNode(CONSTANTS[text])

    m = _VARIABLE_RE.fullmatch(text)
    if m:
        return VariableNode(int(m.group(1)))

    m = _CALL_RE.match(text)
    if m and is_wrapped(text[m.end() - 1:]):
        return _build_call(m.group(1), text, text[m.end():-1], registry)

    if _SCIENTIFIC_RE.fullmatch(text):
        raise ExpressionParseError(
            "scientific notation is not supported; "
            "write the value as a quotient, e.g. (1 / 100000)",
            text,
        )
    raise ExpressionParseError(
        "expected a number, a constant, a variable V<n> or a function call",
        text,
    )


def _build_call(
    name: str, text: str, inner: str, registry: FunctionRegistry
) -> FunctionNode:
    definition = registry.lookup(name)
    if definition is None:
        raise ExpressionFunctionError(name, fragment=text)

    raw_args = split_arguments(inner)
    if len(raw_args) != definition.arity:
        raise ExpressionFunctionError(
            name,
            f"{name}() takes {definition.arity} argument(s) "
            f"but {len(raw_args)} were given",
            fragment=text,
        )

    args: list[Node] = []
    for i, raw in enumerate(raw_args):
        node = _build(raw, registry)
        if node is None:
            raise ExpressionParseError(f"argument {i} of {name}() is empty", text)
        args.append(node)
    return FunctionNode(definition, tuple(args))
