"""Static per-commit artifact source: ``<base>/<data_root>/<sha>/<file>``."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from commitloupe.datasource._http import DataSourceError, MalformedArtifactError

logger = logging.getLogger(__name__)


class StaticArtifactApi:
    """Reads benchmark result files published next to the dashboard.

    A missing file (404) means the commit has no result and yields ``None``.
    Any other non-success status raises ``DataSourceError``; a body that is
    not JSON raises ``MalformedArtifactError``.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str, data_root: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._data_root = data_root.strip("/")

    def build_url(self, sha: str, artifact_file: str) -> str:
        parts = [self._base_url, self._data_root, sha, artifact_file.lstrip("/")]
        return "/".join(p for p in parts if p)

    async def fetch(self, sha: str, artifact_file: str) -> Any | None:
        url = self.build_url(sha, artifact_file)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise DataSourceError(f"fetch error for {url}: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            logger.debug("Artifact 404 not found: %s", url)
            return None
        if not response.is_success:
            raise DataSourceError(
                f"http error {response.status_code} for {url}",
                status_code=response.status_code,
            )

        try:
            return json.loads(response.text)
        except json.JSONDecodeError as exc:
            raise MalformedArtifactError(f"{url} is not valid JSON: {exc}") from exc
