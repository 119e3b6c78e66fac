"""Shared test fixtures for commitloupe."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest

from commitloupe.core import assets
from commitloupe.core.dom import Document, Element
from commitloupe.models.dashboard import DashboardConfiguration, SeriesBinding


@pytest.fixture(autouse=True)
def _clean_asset_base() -> Iterator[None]:
    """Every test starts and ends with no asset base override."""
    assets._asset_base_path = None
    assets._active_overrides = 0
    yield
    assets._asset_base_path = None
    assets._active_overrides = 0


@pytest.fixture
def document() -> Document:
    """A blank document with a ``#dashboard`` host element in the body."""
    doc = Document()
    doc.body.append_child(doc.create_element("div", id="dashboard"))
    return doc


@pytest.fixture
def loupe_root(document: Document) -> Element:
    """An empty ``.loupe-root`` mounted in the document body."""
    return document.body.append_child(
        document.create_element("div", classes=["loupe-root"])
    )


@pytest.fixture
def throughput_binding() -> SeriesBinding:
    return SeriesBinding(
        title="Throughput",
        artifact_file="perf.json",
        query_path="performance.throughput",
    )


@pytest.fixture
def make_dashboard_config(
    throughput_binding: SeriesBinding,
) -> Callable[..., DashboardConfiguration]:
    """Factory fixture: build a DashboardConfiguration with sensible defaults."""

    def _factory(**overrides: Any) -> DashboardConfiguration:
        defaults: dict[str, Any] = {
            "mount_selector": "#dashboard",
            "repository": "line/decaton",
            "branch": "master",
            "series_bindings": [throughput_binding],
        }
        defaults.update(overrides)
        return DashboardConfiguration(**defaults)

    return _factory


@pytest.fixture
def make_commit_payload() -> Callable[..., dict[str, Any]]:
    """Factory fixture: one element of the GitHub commits API response."""

    def _factory(
        sha: str,
        message: str = "Improve throughput",
        date: str = "2026-03-01T10:00:00Z",
        author: str = "Jane Dev",
    ) -> dict[str, Any]:
        user = {"name": author, "email": "dev@example.org", "date": date}
        return {
            "sha": sha,
            "commit": {"author": user, "committer": user, "message": message},
            "html_url": f"https://github.com/line/decaton/commit/{sha}",
        }

    return _factory


@pytest.fixture
def bench_site(
    make_commit_payload: Callable[..., dict[str, Any]],
) -> Callable[..., httpx.MockTransport]:
    """Factory fixture: a MockTransport serving commits and per-commit artifacts.

    ``artifacts`` maps sha -> JSON-able document, or -> raw ``str`` body, or
    -> an ``int`` status code to answer with.  Every request is recorded in
    ``transport.requests``.
    """

    def _factory(
        shas: list[str],
        artifacts: dict[str, Any],
        commits_status: int = 200,
    ) -> httpx.MockTransport:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.host == "api.github.com":
                if commits_status != 200:
                    return httpx.Response(commits_status, json={"message": "nope"})
                page = int(request.url.params.get("page", "1"))
                per_page = int(request.url.params.get("per_page", "50"))
                chunk = shas[(page - 1) * per_page: page * per_page]
                return httpx.Response(200, json=[make_commit_payload(s) for s in chunk])

            sha = request.url.path.split("/")[-2]
            body = artifacts.get(sha, 404)
            if isinstance(body, int):
                return httpx.Response(body)
            if isinstance(body, str):
                return httpx.Response(200, text=body)
            return httpx.Response(200, json=body)

        transport = httpx.MockTransport(handler)
        transport.requests = requests  # type: ignore[attr-defined]
        return transport

    return _factory
