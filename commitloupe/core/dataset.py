"""Series collection — commit history joined with per-commit metric values."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict

from commitloupe.core.cache import CachedArtifactSource, CachedCommitsApi
from commitloupe.core.commit_range import CommitRange
from commitloupe.core.query import extract_number
from commitloupe.datasource import ArtifactSource, CommitsApi, DataSourceError
from commitloupe.models.commits import CommitInfo
from commitloupe.models.dashboard import DashboardConfiguration, SeriesBinding

logger = logging.getLogger(__name__)

COMMITS_PAGE_SIZE = 50


class SeriesPoint(BaseModel):
    """One commit's value for a series; ``None`` is a gap."""

    model_config = ConfigDict(frozen=True)

    commit: CommitInfo
    value: float | None = None


class SeriesData(BaseModel):
    """All points of one series, in commit-list order (newest first)."""

    model_config = ConfigDict(frozen=True)

    binding: SeriesBinding
    points: list[SeriesPoint]

    @property
    def values(self) -> list[float | None]:
        return [p.value for p in self.points]

    @property
    def gap_count(self) -> int:
        return sum(1 for p in self.points if p.value is None)


async def collect_commits(
    commits_api: CommitsApi,
    repository: str,
    commit_range: CommitRange,
    page_size: int = COMMITS_PAGE_SIZE,
) -> list[CommitInfo]:
    """Fetch the pages covering ``commit_range`` and sample them.

    Pages are requested concurrently and flattened in page order.  If any
    page fails the whole collection fails.
    """
    pages = commit_range.pages_for_batch(page_size)
    batches = await asyncio.gather(
        *(
            commits_api.list_commits(repository, commit_range.from_ref, page, page_size)
            for page in range(1, pages + 1)
        )
    )
    commits = [c for batch in batches for c in batch][: commit_range.count]
    return commit_range.sample(commits)


async def _fetch_document(api: ArtifactSource, sha: str, artifact_file: str) -> Any | None:
    try:
        return await api.fetch(sha, artifact_file)
    except DataSourceError as exc:
        logger.error("Failed to get commit metadata for %s: %s", sha, exc)
        return None


async def collect_series(
    commits_api: CommitsApi,
    artifact_api: ArtifactSource,
    repository: str,
    binding: SeriesBinding,
    commit_range: CommitRange,
    page_size: int = COMMITS_PAGE_SIZE,
) -> SeriesData:
    """Evaluate ``binding`` against every sampled commit's artifact.

    A commit without an artifact, one whose artifact failed to download, or
    one where the query path does not reach a number becomes a gap.
    ``MalformedArtifactError`` is not caught.
    """
    commits = await collect_commits(commits_api, repository, commit_range, page_size)
    documents = await asyncio.gather(
        *(_fetch_document(artifact_api, c.sha, binding.artifact_file) for c in commits)
    )
    points = [
        SeriesPoint(
            commit=commit,
            value=None if doc is None else extract_number(doc, binding.query_path),
        )
        for commit, doc in zip(commits, documents)
    ]
    data = SeriesData(binding=binding, points=points)
    logger.info(
        "Series %r: %d commit(s), %d gap(s)", binding.title, len(points), data.gap_count
    )
    return data


async def collect_dashboard(
    config: DashboardConfiguration,
    commits_api: CommitsApi,
    artifact_api: ArtifactSource,
    commit_range: CommitRange | None = None,
    page_size: int = COMMITS_PAGE_SIZE,
) -> list[SeriesData]:
    """Collect every series of ``config`` in display order.

    The range starts at ``config.branch`` unless it names its own
    ``from_ref``.  Commit pages and artifacts are shared between series.
    """
    commit_range = commit_range or CommitRange()
    if commit_range.from_ref is None:
        commit_range = commit_range.model_copy(update={"from_ref": config.branch})

    commits = CachedCommitsApi(commits_api)
    artifacts = CachedArtifactSource(artifact_api)
    return list(
        await asyncio.gather(
            *(
                collect_series(
                    commits, artifacts, config.repository, binding, commit_range, page_size
                )
                for binding in config.series_bindings
            )
        )
    )
