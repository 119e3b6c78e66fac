"""``commitloupe series FILE`` — fetch commit history and metrics per series.

Shows one table per series binding: commit, author, date, subject and the
metric value, with ``-`` for commits where the metric is absent.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from commitloupe.config import LoupeSettings, settings
from commitloupe.core.commit_range import CommitRange
from commitloupe.core.dataset import SeriesData, collect_dashboard
from commitloupe.datasource import DataSourceError, MalformedArtifactError, build_client
from commitloupe.datasource.artifacts import StaticArtifactApi
from commitloupe.datasource.github import GitHubCommitsApi
from commitloupe.models.dashboard import DashboardConfiguration, load_dashboard_config

console = Console()


async def fetch_series(
    config: DashboardConfiguration,
    commit_range: CommitRange,
    loupe_settings: LoupeSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[SeriesData]:
    """Collect every series of ``config`` from GitHub and the artifact site."""
    async with build_client(loupe_settings, transport) as client:
        commits_api = GitHubCommitsApi(
            client, loupe_settings.github_endpoint, loupe_settings.github_token
        )
        artifact_api = StaticArtifactApi(
            client, loupe_settings.artifact_base_for(config.repository), config.data_root
        )
        return await collect_dashboard(
            config,
            commits_api,
            artifact_api,
            commit_range,
            loupe_settings.commits_page_size,
        )


def load_or_exit(config_file: Path) -> DashboardConfiguration:
    """Load a dashboard file, turning failures into a CLI error exit."""
    try:
        return load_dashboard_config(config_file)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Invalid dashboard config:[/bold red] {exc}")
        raise typer.Exit(code=1)


def build_range(
    from_ref: str | None, count: int | None, samples: int | None
) -> CommitRange:
    count = count or settings.default_count
    try:
        return CommitRange(
            from_ref=from_ref,
            count=count,
            samples=samples or min(settings.default_samples, count),
        )
    except ValidationError as exc:
        console.print(f"[bold red]Invalid range:[/bold red] {exc}")
        raise typer.Exit(code=1)


def series_table(data: SeriesData) -> Table:
    table = Table(title=data.binding.title)
    table.add_column("Commit", style="cyan")
    table.add_column("Author")
    table.add_column("Timestamp")
    table.add_column("Subject")
    table.add_column(data.binding.title, justify="right", style="green")
    for point in data.points:
        commit = point.commit
        value = "[dim]-[/dim]" if point.value is None else f"{point.value:g}"
        table.add_row(
            commit.sha_short,
            commit.author.name,
            commit.author_date_str(),
            commit.message_headline,
            value,
        )
    return table


def series_cmd(
    config_file: Path = typer.Argument(..., help="Dashboard definition (.toml or .json)."),
    count: int = typer.Option(None, "--count", "-n", help="Commits to look back over."),
    samples: int = typer.Option(None, "--samples", "-s", help="Commits to sample."),
    from_ref: str = typer.Option(None, "--from", help="Start commit (default: branch)."),
) -> None:
    """Fetch each series' metric for the sampled commits of the branch."""
    config = load_or_exit(config_file)
    commit_range = build_range(from_ref, count, samples)

    if not config.series_bindings:
        console.print("[dim]No series configured.[/dim]")
        return

    try:
        all_series = asyncio.run(fetch_series(config, commit_range, settings))
    except (DataSourceError, MalformedArtifactError) as exc:
        console.print(f"[bold red]Data source error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    for data in all_series:
        console.print(series_table(data))
