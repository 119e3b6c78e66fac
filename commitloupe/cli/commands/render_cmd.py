"""``commitloupe render FILE`` — load the engine into a document and emit HTML.

Runs the same sequence as a hosting page: resolve the asset base from the
bootstrap script URL, load the engine under it, then start the Style
Reconciler on the rendered root.  ``--fetch`` additionally fills the bundled
table engine's commit tables, after the reconciler is running.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from commitloupe.bootstrap import run_dashboard
from commitloupe.cli.commands.series_cmd import build_range, fetch_series, load_or_exit
from commitloupe.config import settings
from commitloupe.core.commit_range import CommitRange
from commitloupe.core.dom import Document, SelectorError
from commitloupe.datasource import DataSourceError, MalformedArtifactError
from commitloupe.engines import table
from commitloupe.models.dashboard import DashboardConfiguration

console = Console(stderr=True)

TABLE_ENGINE = "commitloupe.engines.table"


def host_document(mount_selector: str) -> Document:
    """A blank page whose body holds a ``div`` matching ``mount_selector``."""
    document = Document()
    host = document.create_element("div")
    if mount_selector.startswith("#"):
        host.set_attribute("id", mount_selector[1:])
    elif mount_selector.startswith("."):
        host.class_list.add(mount_selector[1:])
    if not host.matches(mount_selector):
        raise SelectorError(f"cannot build a host element for {mount_selector!r}")
    document.body.append_child(host)
    return document


async def _render(
    config: DashboardConfiguration,
    document: Document,
    script_url: str | None,
    entry_point: str,
    commit_range: CommitRange | None,
) -> int:
    reconciler = await run_dashboard(
        config, document, script_url=script_url, entry_point=entry_point
    )
    if commit_range is not None and entry_point.partition(":")[0] == TABLE_ENGINE:
        all_series = await fetch_series(config, commit_range, settings)
        for index, data in enumerate(all_series):
            table.populate_series(document, index, data)
    return reconciler.passes


def render_cmd(
    config_file: Path = typer.Argument(..., help="Dashboard definition (.toml or .json)."),
    script_url: str = typer.Option(
        None, "--script-url", help="URL the bootstrap script is served from."
    ),
    engine: str = typer.Option(
        None, "--engine", "-e", help="Engine entry point (module:attr or file.py:attr)."
    ),
    output: Path = typer.Option(None, "--output", "-o", help="Write HTML here."),
    fetch: bool = typer.Option(False, "--fetch", help="Fill commit tables with live data."),
    count: int = typer.Option(None, "--count", "-n", help="Commits to look back over."),
    samples: int = typer.Option(None, "--samples", "-s", help="Commits to sample."),
) -> None:
    """Render a dashboard and print (or write) the reconciled HTML."""
    config = load_or_exit(config_file)
    entry_point = engine or settings.engine_entry_point
    commit_range = build_range(None, count, samples) if fetch else None

    try:
        document = host_document(config.mount_selector)
    except SelectorError as exc:
        console.print(f"[bold red]Unsupported mount selector:[/bold red] {exc}")
        raise typer.Exit(code=1)

    try:
        passes = asyncio.run(
            _render(config, document, script_url, entry_point, commit_range)
        )
    except (DataSourceError, MalformedArtifactError) as exc:
        console.print(f"[bold red]Data source error:[/bold red] {exc}")
        raise typer.Exit(code=1)
    except Exception as exc:
        console.print(f"[bold red]Engine load failed:[/bold red] {exc}")
        raise typer.Exit(code=1)

    html = document.to_html()
    if output is None:
        typer.echo(html)
    else:
        output.write_text(html, encoding="utf-8")
        console.print(
            f"[green]Rendered[/green] {len(config.series_bindings)} series to "
            f"{output} [dim]({passes} style pass(es))[/dim]"
        )
