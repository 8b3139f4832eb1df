"""Function registry: built-ins, registration, validation and isolation."""

from __future__ import annotations

import threading

import pytest
from pydantic import ValidationError

from arithfunc import (
    ExpressionFunctionError,
    FunctionRegistry,
    compile_expression,
    default_registry,
    register,
    register_function,
)

BUILTIN_ARITIES = {
    "abs": 1,
    "sqrt": 1,
    "sin": 1,
    "cos": 1,
    "tan": 1,
    "ln": 1,
    "log": 1,
    "asin": 1,
    "acos": 1,
    "atan": 1,
    "atan2": 2,
}


# ────────────────────────────────────────────────────────────────
# Built-ins
# ────────────────────────────────────────────────────────────────


class TestBuiltins:
    def test_builtins_installed(self, registry: FunctionRegistry) -> None:
        assert {d.name: d.arity for d in registry} == BUILTIN_ARITIES

    def test_empty_registry(self) -> None:
        empty = FunctionRegistry(with_builtins=False)
        assert len(empty) == 0
        assert empty.lookup("sqrt") is None
        with pytest.raises(ExpressionFunctionError):
            compile_expression("sqrt(4)", empty)

    def test_empty_registry_still_compiles_arithmetic(self) -> None:
        empty = FunctionRegistry(with_builtins=False)
        assert compile_expression("1 + V0", empty).evaluate(1) == 2

    def test_default_registry_is_shared(self) -> None:
        assert default_registry() is default_registry()


# ────────────────────────────────────────────────────────────────
# Registration
# ────────────────────────────────────────────────────────────────


class TestRegister:
    def test_register_and_lookup(self, registry: FunctionRegistry) -> None:
        definition = registry.register("double", 1, lambda x: 2 * x)
        assert registry.lookup("double") is definition
        assert "double" in registry
        assert definition(4) == 8

    def test_registered_function_usable_in_compile(self, registry: FunctionRegistry) -> None:
        registry.register("hypot", 2, lambda a, b: (a * a + b * b) ** 0.5)
        f = compile_expression("hypot(V0, 4) + 1", registry)
        assert f.evaluate(3) == 6

    def test_overwrite(self, registry: FunctionRegistry) -> None:
        registry.register("f", 1, lambda x: x + 1)
        registry.register("f", 1, lambda x: x + 2)
        assert compile_expression("f(1)", registry).evaluate() == 3

    def test_compiled_expression_keeps_its_definition(self, registry: FunctionRegistry) -> None:
        registry.register("f", 1, lambda x: x + 1)
        before = compile_expression("f(1)", registry)
        registry.register("f", 2, lambda x, y: x * y)
        assert before.evaluate() == 2
        assert compile_expression("f(2, 3)", registry).evaluate() == 6

    def test_unrelated_registration_does_not_change_results(self, registry: FunctionRegistry) -> None:
        f = compile_expression("sqrt(V0)", registry)
        registry.register("cube", 1, lambda x: x ** 3)
        assert f.evaluate(16) == 4

    def test_override_builtin(self, registry: FunctionRegistry) -> None:
        registry.register("abs", 1, lambda x: -x)
        assert compile_expression("abs(3)", registry).evaluate() == -3
        assert compile_expression("abs(3)", FunctionRegistry()).evaluate() == 3

    def test_names_sorted(self, registry: FunctionRegistry) -> None:
        registry.register("zeta", 1, lambda x: x)
        names = registry.names()
        assert names == sorted(names)
        assert "zeta" in names

    def test_process_wide_registration(self) -> None:
        register_function("triple_for_test", 1, lambda x: 3 * x)
        assert compile_expression("triple_for_test(2)").evaluate() == 6

    def test_decorator(self) -> None:
        @register("halve_for_test", 1)
        def halve(x: float) -> float:
            return x / 2

        assert halve(4) == 2
        assert compile_expression("halve_for_test(V0)").evaluate(5) == 2.5


# ────────────────────────────────────────────────────────────────
# Validation
# ────────────────────────────────────────────────────────────────


class TestValidation:
    def test_zero_arity_rejected(self, registry: FunctionRegistry) -> None:
        with pytest.raises(ValidationError):
            registry.register("nullary", 0, lambda: 1.0)

    def test_bad_name_rejected(self, registry: FunctionRegistry) -> None:
        with pytest.raises(ValidationError):
            registry.register("", 1, lambda x: x)
        with pytest.raises(ValidationError):
            registry.register("two words", 1, lambda x: x)

    def test_non_callable_rejected(self, registry: FunctionRegistry) -> None:
        with pytest.raises(ValidationError):
            registry.register("f", 1, 42)  # type: ignore[arg-type]

    def test_failed_registration_leaves_registry_unchanged(self, registry: FunctionRegistry) -> None:
        before = registry.names()
        with pytest.raises(ValidationError):
            registry.register("f", -1, lambda x: x)
        assert registry.names() == before


# ────────────────────────────────────────────────────────────────
# Concurrency
# ────────────────────────────────────────────────────────────────


class TestConcurrency:
    def test_concurrent_registration(self, registry: FunctionRegistry) -> None:
        def worker(n: int) -> None:
            for i in range(50):
                registry.register(f"f{n}_{i}", 1, lambda x: x)
                assert registry.lookup("sqrt") is not None

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry) == len(BUILTIN_ARITIES) + 200

    def test_shared_expression_across_threads(self) -> None:
        f = compile_expression("V0 * V0")
        results: dict[int, float] = {}

        def worker(n: int) -> None:
            results[n] = f.evaluate(n)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == {n: float(n * n) for n in range(8)}
