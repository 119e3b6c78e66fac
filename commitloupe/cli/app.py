"""Main Typer application — imports and registers all CLI commands.

Entry point: ``commitloupe`` (configured via pyproject.toml project.scripts).

Commands: config, resolve, query, series, render.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from commitloupe.cli.commands.render_cmd import render_cmd
from commitloupe.cli.commands.series_cmd import load_or_exit, series_cmd
from commitloupe.config import settings
from commitloupe.core.assets import resolve_asset_base
from commitloupe.core.query import ABSENT, evaluate

console = Console()

app = typer.Typer(
    name="commitloupe",
    help="commitloupe: commit-linked benchmark dashboard harness.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="series", help="Fetch per-commit metrics for each series.")(series_cmd)
app.command(name="render", help="Load the engine, reconcile styles, emit HTML.")(render_cmd)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (default: COMMITLOUPE_LOG_LEVEL)."
    ),
) -> None:
    """Configure logging once for every command."""
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@app.command(name="config", help="Print the engine configuration for a dashboard file.")
def config_cmd(
    config_file: Path = typer.Argument(..., help="Dashboard definition (.toml or .json)."),
) -> None:
    """Print the configuration object the engine would receive, as JSON."""
    config = load_or_exit(config_file)
    typer.echo(json.dumps(config.to_engine_config(), indent=2))


@app.command(name="resolve", help="Print the asset base URL for a script URL.")
def resolve_cmd(
    script_url: str = typer.Argument(..., help="URL the bootstrap script is served from."),
) -> None:
    """Resolve the directory assets are loaded from."""
    try:
        typer.echo(resolve_asset_base(script_url))
    except ValueError as exc:
        console.print(f"[bold red]Invalid script URL:[/bold red] {exc}")
        raise typer.Exit(code=1)


@app.command(name="query", help="Evaluate a dotted query path against a JSON file.")
def query_cmd(
    artifact: Path = typer.Argument(..., help="Per-commit JSON result file."),
    query_path: str = typer.Argument(..., help="Dotted path, e.g. performance.throughput."),
) -> None:
    """Print the value at ``query_path``; exit 1 when it is absent."""
    try:
        document = json.loads(artifact.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        console.print(f"[bold red]Cannot read artifact:[/bold red] {exc}")
        raise typer.Exit(code=1)

    value = evaluate(document, query_path)
    if value is ABSENT:
        console.print(f"[yellow]absent:[/yellow] {query_path}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(value))


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
