"""GitHub commits API client."""

from __future__ import annotations

import logging

import httpx

from commitloupe.datasource._http import DataSourceError
from commitloupe.models.commits import CommitInfo

logger = logging.getLogger(__name__)

GITHUB_ENDPOINT = "https://api.github.com"


class GitHubCommitsApi:
    """Lists commits through ``GET /repos/{owner}/{name}/commits``.

    Parameters
    ----------
    client:
        Shared async HTTP client.
    endpoint:
        API root, overridable for GitHub Enterprise.
    token:
        Optional token sent as ``Authorization: Bearer``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str = GITHUB_ENDPOINT,
        token: str = "",
    ) -> None:
        self._client = client
        self._endpoint = endpoint.rstrip("/")
        self._token = token

    def build_commits_url(
        self, repository: str, from_ref: str | None, page: int, count: int
    ) -> httpx.URL:
        params: dict[str, str | int] = {"page": page, "per_page": count}
        if from_ref:
            params["sha"] = from_ref
        return httpx.URL(f"{self._endpoint}/repos/{repository}/commits", params=params)

    async def list_commits(
        self,
        repository: str,
        from_ref: str | None = None,
        page: int = 1,
        count: int = 50,
    ) -> list[CommitInfo]:
        url = self.build_commits_url(repository, from_ref, page, count)
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = await self._client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise DataSourceError(f"fetch error for {url}: {exc}") from exc

        logger.debug("Commit list %s -> %s", url, response.status_code)
        if not response.is_success:
            logger.error("Failed to get commits list: %s", response.status_code)
            raise DataSourceError(
                f"http error {response.status_code} for {url}",
                status_code=response.status_code,
            )

        try:
            return [CommitInfo.from_github(item) for item in response.json()]
        except (ValueError, KeyError, TypeError) as exc:
            raise DataSourceError(f"unexpected commit list payload: {exc}") from exc
