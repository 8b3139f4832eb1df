"""Command-line interface for arithfunc."""

from __future__ import annotations

import json
import math
from pathlib import Path

import click

from arithfunc import __version__
from arithfunc.config import load_config, register_config_functions
from arithfunc.errors import ENGINE_ERRORS
from arithfunc.functions.registry import FunctionRegistry
from arithfunc.logging import EventType, emit_error, emit_info, get_sink, set_log_dir
from arithfunc.parser import compile_expression

DEMO_EXPRESSION = "abs(-5 - V0) / V0 + V1^(1/2)"
DEMO_VALUES = (1.0, 4.0)


@click.group()
@click.version_option(version=__version__, prog_name="arithfunc")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML config with log settings and extra functions.",
)
@click.option(
    "--log-dir",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Write structured events to LOG_DIR/events.ndjson.",
)
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, log_dir: Path | None) -> None:
    """arithfunc -- compile arithmetic expressions and evaluate them."""
    try:
        config = load_config(config_path)
    except (OSError, ValueError) as e:
        raise click.ClickException(str(e))

    log_dir = log_dir or config.get("log_dir")
    set_log_dir(log_dir, fsync=bool(config.get("logging_fsync", False)))

    registry = FunctionRegistry()
    try:
        registered = register_config_functions(config, registry)
    except (ValueError, *ENGINE_ERRORS) as e:
        emit_error(
            EventType.config_failed,
            str(e),
            {"path": str(config_path)},
            error_code="config_function_error",
        )
        raise click.ClickException(str(e))
    if config_path is not None:
        emit_info(
            EventType.config_loaded,
            f"Loaded {config_path}",
            {"path": str(config_path), "functions": [d.name for d in registered]},
        )

    ctx.obj = registry


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _json_number(value: float) -> float | str:
    """JSON has no inf or nan: those become the strings "inf", "-inf", "nan"."""
    if math.isfinite(value):
        return value
    return repr(value)


def _run(registry: FunctionRegistry, expression: str, values: tuple[float, ...]) -> float:
    try:
        result = compile_expression(expression, registry).evaluate(*values)
    except ENGINE_ERRORS as e:
        raise click.ClickException(str(e))
    emit_info(
        EventType.cli_evaluated,
        f"{expression} = {result!r}",
        {
            "expression": expression,
            "variables": [_json_number(v) for v in values],
            "result": _json_number(result),
        },
    )
    return result


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@main.command("eval")
@click.argument("expression")
@click.argument("values", nargs=-1, type=float)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_obj
def eval_cmd(
    registry: FunctionRegistry,
    expression: str,
    values: tuple[float, ...],
    as_json: bool,
) -> None:
    """Evaluate EXPRESSION with VALUES bound to V0, V1, ...

    Use "--" before the values when the first one is negative.
    """
    result = _run(registry, expression, values)
    if as_json:
        click.echo(json.dumps(
            {
                "expression": expression,
                "variables": [_json_number(v) for v in values],
                "result": _json_number(result),
            },
            allow_nan=False,
        ))
    else:
        click.echo(repr(result))


@main.command()
@click.argument("expression")
@click.pass_obj
def check(registry: FunctionRegistry, expression: str) -> None:
    """Compile EXPRESSION without evaluating it."""
    try:
        compiled = compile_expression(expression, registry)
    except ENGINE_ERRORS as e:
        raise click.ClickException(str(e))
    click.echo(f"ok (variables: {compiled.variable_count})")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_obj
def functions(registry: FunctionRegistry, as_json: bool) -> None:
    """List the available functions and their arities."""
    if as_json:
        click.echo(json.dumps({d.name: d.arity for d in registry}, indent=2))
        return
    for d in registry:
        click.echo(f"{d.name}/{d.arity}")


@main.command()
@click.pass_obj
def demo(registry: FunctionRegistry) -> None:
    """Evaluate a sample expression (prints 8.0)."""
    click.echo(repr(_run(registry, DEMO_EXPRESSION, DEMO_VALUES)))


@main.command("events")
@click.option(
    "--level",
    default=None,
    type=click.Choice(["info", "warning", "error"]),
    help="Filter by level.",
)
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--limit", default=100, type=int, help="Maximum events to show.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def events_cmd(level: str | None, event_type: str | None, limit: int, as_json: bool) -> None:
    """Show the structured event log, most recent first.

    Reads LOG_DIR/events.ndjson from --log-dir or the config's log_dir.
    """
    sink = get_sink()
    if sink is None:
        raise click.ClickException(
            "No log directory configured. Use --log-dir or set log_dir in the config."
        )
    events = sink.read_events(level=level, event_type=event_type, limit=limit)

    if as_json:
        click.echo(json.dumps(events, indent=2))
        return
    if not events:
        click.echo("No events found.")
        return

    for evt in events:
        ts = evt.get("ts", "")
        lvl = evt.get("level", "").upper()
        etype = evt.get("event_type", "")
        msg = evt.get("message", "")
        err = evt.get("error_code")
        line = f"[{ts}] {lvl:7s} {etype}: {msg}"
        if err:
            line += f"  ({err})"
        click.echo(line)
