"""Dotted-path query evaluation over per-commit JSON artifacts.

A query path such as ``performance.throughput`` addresses a nested field of a
benchmark result document.  Evaluation is a total function: it returns the
value reached by following every segment through mapping keys, or ``ABSENT``
when any segment is missing or a non-mapping is hit before the path is
exhausted.  It never raises for JSON-shaped input.

Examples
--------
>>> evaluate({"performance": {"throughput": 42}}, "performance.throughput")
42
>>> evaluate({"performance": {}}, "performance.throughput") is ABSENT
True
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict


class _Absent:
    """Marker for a query path that does not resolve in a document."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


class QueryPath(BaseModel):
    """An ordered sequence of mapping keys parsed from a dotted string.

    The path is split on ``.`` only; no escaping, wildcards or indexing.
    """

    model_config = ConfigDict(frozen=True)

    segments: tuple[str, ...]

    @classmethod
    def parse(cls, path: str | QueryPath) -> QueryPath:
        if isinstance(path, QueryPath):
            return path
        return cls(segments=tuple(path.split(".")))

    def __str__(self) -> str:
        return ".".join(self.segments)


def evaluate(document: Any, path: str | QueryPath) -> Any:
    """Follow ``path`` through ``document`` and return the value or ``ABSENT``.

    Parameters
    ----------
    document:
        A parsed JSON value (mapping, sequence or scalar).
    path:
        A dotted string or an already parsed ``QueryPath``.

    Returns
    -------
    Any
        The nested value (scalar, mapping or sequence), or ``ABSENT``.
    """
    current = document
    for segment in QueryPath.parse(path).segments:
        if not isinstance(current, Mapping) or segment not in current:
            return ABSENT
        current = current[segment]
    return current


def extract_number(document: Any, path: str | QueryPath) -> float | None:
    """Evaluate ``path`` and keep the result only when it is a number.

    Booleans, strings, containers, ``null`` and ``ABSENT`` all yield ``None``
    so callers can plot them as gaps.
    """
    value = evaluate(document, path)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
