"""Data source protocols for commit history and per-commit artifacts.

The dashboard reads two kinds of data from the commit-hosting side:

* the commit list of a branch (``CommitsApi``), and
* one JSON result file per commit (``ArtifactSource``).

``commitloupe.core.dataset`` only depends on these protocols; the GitHub and
static-site implementations live in ``github`` and ``artifacts``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from commitloupe.datasource._http import (
    DataSourceError,
    MalformedArtifactError,
    build_client,
)
from commitloupe.models.commits import CommitInfo


@runtime_checkable
class CommitsApi(Protocol):
    """Lists the commits of a repository, newest first."""

    async def list_commits(
        self,
        repository: str,
        from_ref: str | None = None,
        page: int = 1,
        count: int = 50,
    ) -> list[CommitInfo]:
        """Return one page of commits reachable from ``from_ref``.

        Raises ``DataSourceError`` when the listing cannot be fetched.
        """
        ...


@runtime_checkable
class ArtifactSource(Protocol):
    """Fetches the parsed JSON result file of one commit."""

    async def fetch(self, sha: str, artifact_file: str) -> Any | None:
        """Return the parsed document, or ``None`` when the commit has none.

        Raises ``DataSourceError`` for other transport failures and
        ``MalformedArtifactError`` when the file is not valid JSON.
        """
        ...


__all__ = [
    "ArtifactSource",
    "CommitsApi",
    "DataSourceError",
    "MalformedArtifactError",
    "build_client",
]
