"""Central registry for callable expression functions.

Lookups happen on every function leaf during compilation, while
registrations are rare.  The registry therefore publishes an immutable
snapshot of its table: writers copy, insert and swap under a lock,
readers use whatever snapshot is current and never block.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Callable, Iterator, Mapping

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class FunctionDefinition(BaseModel):
    """A named function with a fixed number of float arguments."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    arity: int = Field(ge=1)
    computation: Callable[..., float]

    def __call__(self, *args: float) -> float:
        return self.computation(*args)


class FunctionRegistry:
    """Name-keyed table of :class:`FunctionDefinition` objects.

    Args:
        with_builtins: Pre-populate the table with the built-in math
            functions (``abs``, ``sqrt``, ``sin`` ... ``atan2``).
    """

    def __init__(self, with_builtins: bool = True) -> None:
        self._lock = threading.Lock()
        self._table: Mapping[str, FunctionDefinition] = MappingProxyType({})
        if with_builtins:
            from arithfunc.functions.builtin import BUILTIN_FUNCTIONS

            self._table = MappingProxyType(
                {d.name: d for d in BUILTIN_FUNCTIONS}
            )

    def register(
        self, name: str, arity: int, computation: Callable[..., float]
    ) -> FunctionDefinition:
        """Insert or replace the function stored under *name*.

        Args:
            name: Lookup name, used with call syntax ``name(...)``.
            arity: Exact number of arguments, at least 1.
            computation: Callable taking *arity* floats, returning a float.

        Returns:
            The stored definition.

        Raises:
            pydantic.ValidationError: If the name, arity or computation
                is invalid.
        """
        definition = FunctionDefinition(
            name=name, arity=arity, computation=computation
        )
        with self._lock:
            table = dict(self._table)
            replaced = name in table
            table[name] = definition
            self._table = MappingProxyType(table)
        logger.debug(
            "%s function %r (arity %d)",
            "replaced" if replaced else "registered",
            name,
            arity,
        )
        return definition

    def lookup(self, name: str) -> FunctionDefinition | None:
        """Return the definition registered under *name*, or ``None``."""
        return self._table.get(name)

    def names(self) -> list[str]:
        """Return all registered names, sorted."""
        return sorted(self._table)

    def __contains__(self, name: object) -> bool:
        return name in self._table

    def __iter__(self) -> Iterator[FunctionDefinition]:
        table = self._table
        return iter([table[n] for n in sorted(table)])

    def __len__(self) -> int:
        return len(self._table)


_default_registry: FunctionRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> FunctionRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default_registry
    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                _default_registry = FunctionRegistry()
    return _default_registry


def register_function(
    name: str, arity: int, computation: Callable[..., float]
) -> FunctionDefinition:
    """Register *computation* in the process-wide registry.

    The new definition is visible to every later ``compile_expression``
    call that does not pass its own registry.  Expressions compiled
    earlier keep the definition they were compiled against.
    """
    from arithfunc.logging import EventType, emit_info

    definition = default_registry().register(name, arity, computation)
    emit_info(
        EventType.function_registered,
        f"Registered function {name!r}",
        {"name": name, "arity": arity},
    )
    return definition


def register(name: str, arity: int) -> Callable:
    """Decorator that registers a function in the process-wide registry.

    Args:
        name: The lookup name for this function.
        arity: Exact number of arguments.

    Returns:
        The original function, unmodified.
    """

    def decorator(fn: Callable[..., float]) -> Callable[..., float]:
        register_function(name, arity, fn)
        return fn

    return decorator
