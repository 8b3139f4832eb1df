"""Shared fixtures for arithfunc tests."""

from __future__ import annotations

from typing import Iterator

import pytest

from arithfunc.functions.registry import FunctionRegistry
from arithfunc.logging import set_log_dir


@pytest.fixture(autouse=True)
def _no_event_sink() -> Iterator[None]:
    """Make sure no test leaks a configured event sink into the next."""
    set_log_dir(None)
    yield
    set_log_dir(None)


@pytest.fixture
def registry() -> FunctionRegistry:
    """A private registry with the built-ins, isolated from the default one."""
    return FunctionRegistry()
