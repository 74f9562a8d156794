"""CLI interface for modelvalidate using Typer framework."""

import json as jsonlib
import logging
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from modelvalidate import __description__, __version__
from modelvalidate.config import LogLevel, ModelValidateConfig, load_config
from modelvalidate.document import build_record, load_document
from modelvalidate.exceptions import ModelValidateError
from modelvalidate.validation import ErrorBag, HookRegistry, Validator, resolve_rules

app = typer.Typer(
    name="modelvalidate",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

console = Console()

_LOG_LEVELS = {
    LogLevel.ERROR.value: logging.ERROR,
    LogLevel.WARN.value: logging.WARNING,
    LogLevel.INFO.value: logging.INFO,
    LogLevel.DEBUG.value: logging.DEBUG,
}


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"modelvalidate version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", callback=version_callback, help="Show version and exit")
    ] = False,
) -> None:
    """modelvalidate - Scenario-aware validation for ORM records."""


def _configure_logging(config: ModelValidateConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else _LOG_LEVELS.get(config.logging.level, logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _load_rules(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        rules = jsonlib.load(f)
    if not isinstance(rules, dict):
        raise ValueError(f"Rules file must hold a JSON object, got: {type(rules).__name__}")
    return rules


def _format_rule(rule: Any) -> str:
    return rule if isinstance(rule, str) else jsonlib.dumps(rule, sort_keys=True)


def _output_errors_table(errors: ErrorBag) -> None:
    table = Table()
    table.add_column("Field", style="cyan")
    table.add_column("Message", style="white")

    for field, messages in errors:
        for message in messages:
            table.add_row(escape(field), escape(message))

    console.print(table)


@app.command()
def rules(
    path: Annotated[
        Path,
        typer.Argument(help="JSON file mapping fields to rule specs")
    ],
    scenario: Annotated[
        str,
        typer.Option("--scenario", "-s", help="Scenario to resolve rules for")
    ] = "insert",
    field: Annotated[
        Optional[list[str]],
        typer.Option("--field", "-F", help="Restrict output to these fields (repeatable)")
    ] = None,
) -> None:
    """Show the effective rules of a rule declaration for a scenario."""
    try:
        effective = resolve_rules(_load_rules(path), scenario, field)
    except (OSError, ValueError, ModelValidateError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not effective:
        console.print(f"[yellow]No rules apply in scenario '{scenario}'[/yellow]")
        return

    table = Table(title=f"Effective rules ({scenario})")
    table.add_column("Field", style="cyan")
    table.add_column("Rules", style="white")

    for name, expressions in effective.items():
        table.add_row(escape(name), escape(", ".join(_format_rule(rule) for rule in expressions)))

    console.print(table)


@app.command()
def check(
    path: Annotated[
        Path,
        typer.Argument(help="JSON record document to validate")
    ],
    scenario: Annotated[
        Optional[str],
        typer.Option("--scenario", "-s", help="Override the document's scenario")
    ] = None,
    field: Annotated[
        Optional[list[str]],
        typer.Option("--field", "-F", help="Validate only these fields of the root record (repeatable)")
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: table, json (default: table)")
    ] = "table",
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .modelvalidate.json)")
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging")
    ] = False,
) -> None:
    """Validate a record document and its nested relations."""
    valid_formats = ["table", "json"]
    if format not in valid_formats:
        console.print(f"[red]Error:[/red] Invalid format '{format}'. Must be one of: {', '.join(valid_formats)}")
        raise typer.Exit(1)

    try:
        settings = load_config(config)
        _configure_logging(settings, verbose)

        record = build_record(load_document(path))
        if scenario:
            record.set_scenario(scenario)

        validator = Validator(hooks=HookRegistry(), config=settings)
        valid = validator.validate(record, field)
    except (OSError, ValueError, ModelValidateError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    errors = record.get_errors()
    active = validator.resolve_scenario(record)

    if format == "json":
        payload = {"valid": valid, "scenario": active, **errors.to_dict()}
        typer.echo(jsonlib.dumps(payload, indent=2))
    elif valid:
        console.print(f"[green]Validation passed[/green] (scenario: {active})")
    else:
        console.print(f"[red]Validation failed[/red] (scenario: {active}, {errors.count()} messages)")
        _output_errors_table(errors)

    if not valid:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
