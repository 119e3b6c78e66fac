"""Commit range — how many commits to look at and how many to sample."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T")

ZOOM_IN = 0.5
ZOOM_OUT = 2.0


class CommitRange(BaseModel):
    """A window of ``count`` commits from ``from_ref`` thinned to ``samples``.

    Examples
    --------
    >>> r = CommitRange(count=100, samples=50)
    >>> r.pages_for_batch(50)
    2
    >>> r.sample(list(range(100)))[:3]
    [0, 2, 4]
    >>> r.zoom(ZOOM_IN).count
    50
    """

    model_config = ConfigDict(frozen=True)

    from_ref: str | None = None
    count: int = Field(default=50, ge=1)
    samples: int = Field(default=50, ge=1)

    @model_validator(mode="after")
    def _samples_within_count(self) -> CommitRange:
        if self.samples > self.count:
            raise ValueError(
                f"samples ({self.samples}) cannot exceed count ({self.count})"
            )
        return self

    def pages_for_batch(self, batch_size: int) -> int:
        """Number of ``batch_size`` pages needed to cover ``count`` commits."""
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        return max(1, math.ceil(self.count / batch_size))

    def sample(self, candidates: Sequence[T]) -> list[T]:
        """Every ``count // samples``-th candidate, at most ``samples`` of them."""
        step = max(1, self.count // self.samples)
        return list(candidates[::step][: self.samples])

    def zoom(self, factor: float) -> CommitRange:
        """Scale the window; ``samples`` shrinks with it when it must."""
        if factor <= 0:
            raise ValueError("zoom factor must be positive")
        count = max(1, int(self.count * factor))
        return self.model_copy(
            update={"count": count, "samples": min(self.samples, count)}
        )
