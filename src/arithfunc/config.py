"""YAML configuration: event logging options and expression-defined functions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from arithfunc.errors import ExpressionParseError
from arithfunc.functions.registry import FunctionDefinition, FunctionRegistry

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "log_dir": None,  # directory for events.ndjson; None disables events
    "logging_fsync": False,
    "functions": {},
}


def load_config(path: Path | None) -> dict[str, Any]:
    """Load configuration from a YAML file, with defaults.

    Args:
        path: Config file.  ``None`` or a missing file yields the defaults.

    Returns:
        Merged configuration dict.

    Raises:
        ValueError: If the file does not hold a mapping, or ``functions``
            is not a mapping.
    """
    config = dict(DEFAULT_CONFIG)
    if path is None or not path.exists():
        return config

    user_config = yaml.safe_load(path.read_text()) or {}
    if not isinstance(user_config, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    config.update(user_config)

    if not isinstance(config.get("functions") or {}, dict):
        raise ValueError(f"{path}: 'functions' must be a mapping of name to spec")
    config["functions"] = config.get("functions") or {}
    logger.debug("loaded config from %s", path)
    return config


def register_config_functions(
    config: dict[str, Any], registry: FunctionRegistry
) -> list[FunctionDefinition]:
    """Compile and register every entry of ``config["functions"]``.

    Entries are registered in file order, so an entry may call any entry
    defined above it.  Each entry needs ``arity`` and ``expr``; inside
    ``expr`` the arguments are ``V0`` .. ``V<arity-1>``.

    Returns:
        The registered definitions.

    Raises:
        ExpressionParseError: If an ``expr`` does not compile or uses a
            variable beyond its arity.
        ValueError: If an entry is missing ``arity`` or ``expr``.
    """
    from arithfunc.parser import compile_expression

    registered: list[FunctionDefinition] = []
    for name, spec in (config.get("functions") or {}).items():
        if not isinstance(spec, dict) or "arity" not in spec or "expr" not in spec:
            raise ValueError(f"Function {name!r} needs 'arity' and 'expr'")
        arity = int(spec["arity"])
        compiled = compile_expression(str(spec["expr"]), registry)
        if compiled.variable_count > arity:
            raise ExpressionParseError(
                f"function {name!r} has arity {arity} but uses "
                f"V{compiled.variable_count - 1}",
                compiled.text,
            )
        registered.append(registry.register(str(name), arity, compiled.evaluate))
    return registered
