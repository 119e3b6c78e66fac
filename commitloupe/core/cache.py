"""Request-coalescing cache for the data source clients.

Concurrent requests for the same key share one in-flight fetch; the outcome
(result or exception) is then kept for the lifetime of the cache.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any, Generic, TypeVar

from commitloupe.datasource import ArtifactSource, CommitsApi
from commitloupe.models.commits import CommitInfo

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")


class ApiCache(Generic[K, R]):
    """Memoizes ``fetch(key)`` and merges concurrent identical calls."""

    def __init__(self, fetch: Callable[[K], Awaitable[R]]) -> None:
        self._fetch = fetch
        self._entries: dict[K, asyncio.Future[R]] = {}

    async def get(self, key: K) -> R:
        future = self._entries.get(key)
        if future is None:
            logger.debug("API cache miss: %r", key)
            future = asyncio.ensure_future(self._fetch(key))
            self._entries[key] = future
        else:
            logger.debug("API cache hit: %r", key)
        return await asyncio.shield(future)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class CachedCommitsApi:
    """``CommitsApi`` wrapper that fetches each page at most once."""

    def __init__(self, inner: CommitsApi) -> None:
        self._cache: ApiCache[tuple[str, str | None, int, int], list[CommitInfo]] = (
            ApiCache(lambda key: inner.list_commits(*key))
        )

    async def list_commits(
        self,
        repository: str,
        from_ref: str | None = None,
        page: int = 1,
        count: int = 50,
    ) -> list[CommitInfo]:
        return await self._cache.get((repository, from_ref, page, count))


class CachedArtifactSource:
    """``ArtifactSource`` wrapper that fetches each commit file at most once."""

    def __init__(self, inner: ArtifactSource) -> None:
        self._cache: ApiCache[tuple[str, str], Any | None] = ApiCache(
            lambda key: inner.fetch(*key)
        )

    async def fetch(self, sha: str, artifact_file: str) -> Any | None:
        return await self._cache.get((sha, artifact_file))
