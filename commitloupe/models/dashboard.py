"""Dashboard configuration models — what the engine is asked to render."""

from __future__ import annotations

import json
import logging
import re
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

_REPOSITORY_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def _default_visibility() -> dict[str, bool]:
    return {"showTable": True, "showRange": True}


class SeriesBinding(BaseModel):
    """One plottable metric: a per-commit artifact file and a query path into it.

    Examples
    --------
    >>> b = SeriesBinding(
    ...     title="Throughput",
    ...     artifact_file="perf.json",
    ...     query_path="performance.throughput",
    ... )
    >>> b.to_engine_dict()["artifactFile"]
    'perf.json'
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    artifact_file: str = Field(alias="artifactFile")
    query_path: str = Field(alias="queryPath")

    @field_validator("query_path")
    @classmethod
    def _non_empty_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query_path must not be empty")
        return v

    def to_engine_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "artifactFile": self.artifact_file,
            "queryPath": self.query_path,
        }


class DashboardConfiguration(BaseModel):
    """Everything the engine needs to render one dashboard.

    Created once per page load and read-only afterwards.  The order of
    ``series_bindings`` is the display order.  An empty list is a valid
    "no series" dashboard, not an error.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    mount_selector: str = Field(alias="mount")
    repository: str
    branch: str = "master"
    data_root: str = Field(default="commit-data", alias="dataRoot")
    series_bindings: list[SeriesBinding] = Field(
        default_factory=list, alias="series"
    )
    component_visibility: dict[str, bool] = Field(
        default_factory=_default_visibility, alias="componentVisibility"
    )

    @field_validator("repository")
    @classmethod
    def _owner_slash_name(cls, v: str) -> str:
        if not _REPOSITORY_RE.match(v):
            raise ValueError(f"repository must be in 'owner/name' form, got {v!r}")
        return v

    @field_validator("component_visibility")
    @classmethod
    def _fill_defaults(cls, v: dict[str, bool]) -> dict[str, bool]:
        merged = _default_visibility()
        merged.update(v)
        return merged

    @field_validator("series_bindings")
    @classmethod
    def _note_duplicate_titles(cls, v: list[SeriesBinding]) -> list[SeriesBinding]:
        seen: set[str] = set()
        for binding in v:
            if binding.title in seen:
                logger.debug("Duplicate series title %r", binding.title)
            seen.add(binding.title)
        return v

    def to_engine_config(self) -> dict[str, Any]:
        """Build the plain configuration object handed to the engine."""
        return {
            "mount": self.mount_selector,
            "repository": self.repository,
            "branch": self.branch,
            "dataRoot": self.data_root,
            "componentVisibility": dict(self.component_visibility),
            "series": [b.to_engine_dict() for b in self.series_bindings],
        }


def load_dashboard_config(path: Path) -> DashboardConfiguration:
    """Read a dashboard definition from a TOML or JSON file.

    Both the snake_case field names and the engine's camelCase keys are
    accepted.  A TOML file may nest everything under a ``[dashboard]`` table.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ValueError
        If the file extension is not ``.toml`` or ``.json``.
    pydantic.ValidationError
        If the content does not describe a valid dashboard.
    """
    if not path.exists():
        raise FileNotFoundError(f"Dashboard config not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".toml":
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
        raw = raw.get("dashboard", raw)
    elif suffix == ".json":
        raw = json.loads(path.read_text(encoding="utf-8"))
    else:
        raise ValueError(f"Unsupported dashboard config format: {path.name}")

    return DashboardConfiguration.model_validate(raw)
