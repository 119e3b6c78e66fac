"""Runtime settings — env-driven via pydantic-settings.

Reads from a ``.env`` file and ``COMMITLOUPE_*`` environment variables.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class LoupeSettings(BaseSettings):
    """Settings shared by the CLI and the data source clients.

    Examples
    --------
    Override via environment::

        export COMMITLOUPE_LOG_LEVEL=DEBUG
        export COMMITLOUPE_GITHUB_TOKEN=ghp_...
        export COMMITLOUPE_ARTIFACT_BASE_URL=https://bench.example.org/site
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="COMMITLOUPE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Commit history
    github_endpoint: str = "https://api.github.com"
    github_token: str = ""
    commits_page_size: int = 50

    # Per-commit artifacts; empty means https://<owner>.github.io/<name>
    artifact_base_url: str = ""

    http_timeout_seconds: float = 30.0

    # Range defaults
    default_count: int = 50
    default_samples: int = 50

    # Engine and styling
    engine_entry_point: str = "commitloupe.engines.table:create"
    root_selector: str = ".loupe-root"

    def artifact_base_for(self, repository: str) -> str:
        """Artifact site root for ``repository`` (GitHub Pages by default)."""
        if self.artifact_base_url:
            return self.artifact_base_url.rstrip("/")
        owner, name = repository.split("/", 1)
        return f"https://{owner}.github.io/{name}"


# Module-level singleton: import as `from commitloupe.config import settings`
settings = LoupeSettings()
