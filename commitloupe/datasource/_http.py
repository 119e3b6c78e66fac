"""Shared HTTP plumbing for the data source clients."""

from __future__ import annotations

import httpx

from commitloupe.config import LoupeSettings


class DataSourceError(RuntimeError):
    """Raised when commit data or an artifact cannot be fetched."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedArtifactError(ValueError):
    """Raised when a per-commit artifact is not valid JSON."""


def build_client(
    settings: LoupeSettings, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """An ``httpx.AsyncClient`` configured from ``settings``.

    The GitHub token, when set, is only sent by ``GitHubCommitsApi``; the
    client itself carries no credentials.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds, connect=10.0),
        follow_redirects=True,
        headers={"User-Agent": "commitloupe"},
        transport=transport,
    )
