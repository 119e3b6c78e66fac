"""Tests for the request-coalescing API cache."""

from __future__ import annotations

import asyncio

import pytest

from commitloupe.core.cache import ApiCache, CachedArtifactSource


class TestApiCache:
    def test_concurrent_calls_share_one_fetch(self):
        calls: list[str] = []

        async def fetch(key: str) -> str:
            calls.append(key)
            await asyncio.sleep(0.01)
            return key.upper()

        async def scenario():
            cache = ApiCache(fetch)
            results = await asyncio.gather(*(cache.get("abc") for _ in range(5)))
            return cache, results

        cache, results = asyncio.run(scenario())
        assert results == ["ABC"] * 5
        assert calls == ["abc"]
        assert "abc" in cache
        assert len(cache) == 1

    def test_distinct_keys_fetch_separately(self):
        calls: list[int] = []

        async def fetch(key: int) -> int:
            calls.append(key)
            return key * 2

        async def scenario():
            cache = ApiCache(fetch)
            return [await cache.get(k) for k in (1, 2, 1)]

        assert asyncio.run(scenario()) == [2, 4, 2]
        assert calls == [1, 2]

    def test_failure_is_cached(self):
        calls: list[str] = []

        async def fetch(key: str) -> str:
            calls.append(key)
            raise LookupError(key)

        async def scenario():
            cache = ApiCache(fetch)
            for _ in range(2):
                with pytest.raises(LookupError):
                    await cache.get("k")

        asyncio.run(scenario())
        assert calls == ["k"]


class TestCachedArtifactSource:
    def test_delegates_once_per_key(self):
        class Source:
            def __init__(self) -> None:
                self.calls: list[tuple[str, str]] = []

            async def fetch(self, sha, artifact_file):
                self.calls.append((sha, artifact_file))
                return {"sha": sha}

        source = Source()
        cached = CachedArtifactSource(source)

        async def scenario():
            first = await cached.fetch("abc", "perf.json")
            second = await cached.fetch("abc", "perf.json")
            other = await cached.fetch("abc", "mem.json")
            return first, second, other

        first, second, other = asyncio.run(scenario())
        assert first == second == other == {"sha": "abc"}
        assert source.calls == [("abc", "perf.json"), ("abc", "mem.json")]
