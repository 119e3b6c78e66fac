"""Tests for CommitRange paging, sampling and zoom."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from commitloupe.core.commit_range import ZOOM_IN, ZOOM_OUT, CommitRange


class TestValidation:
    def test_defaults(self):
        r = CommitRange()
        assert (r.from_ref, r.count, r.samples) == (None, 50, 50)

    @pytest.mark.parametrize("kwargs", [{"count": 0}, {"samples": 0}, {"count": -3}])
    def test_non_positive_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            CommitRange(**kwargs)

    def test_samples_cannot_exceed_count(self):
        with pytest.raises(ValidationError, match="cannot exceed"):
            CommitRange(count=10, samples=11)


class TestPagesForBatch:
    @pytest.mark.parametrize(
        ("count", "batch", "pages"),
        [(50, 50, 1), (51, 50, 2), (100, 50, 2), (1, 50, 1), (7, 3, 3)],
    )
    def test_covers_count(self, count, batch, pages):
        assert CommitRange(count=count, samples=1).pages_for_batch(batch) == pages

    def test_batch_must_be_positive(self):
        with pytest.raises(ValueError):
            CommitRange().pages_for_batch(0)


class TestSample:
    def test_every_nth(self):
        r = CommitRange(count=10, samples=3)
        assert r.sample(list(range(10))) == [0, 3, 6]

    def test_no_thinning_when_equal(self):
        r = CommitRange(count=4, samples=4)
        assert r.sample("abcd") == ["a", "b", "c", "d"]

    def test_short_history(self):
        r = CommitRange(count=100, samples=50)
        assert r.sample(list(range(5))) == [0, 2, 4]

    def test_capped_at_samples(self):
        r = CommitRange(count=9, samples=2)
        assert len(r.sample(list(range(9)))) == 2


class TestZoom:
    def test_zoom_in_halves(self):
        r = CommitRange(count=50, samples=50).zoom(ZOOM_IN)
        assert (r.count, r.samples) == (25, 25)

    def test_zoom_out_doubles_count_keeps_samples(self):
        r = CommitRange(count=50, samples=50, from_ref="main").zoom(ZOOM_OUT)
        assert (r.count, r.samples, r.from_ref) == (100, 50, "main")

    def test_never_below_one(self):
        assert CommitRange(count=1, samples=1).zoom(0.1).count == 1

    def test_factor_must_be_positive(self):
        with pytest.raises(ValueError):
            CommitRange().zoom(0)
