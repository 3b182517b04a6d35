"""
Scale and projection primitives used by the selection model and view binder.

The core depends only on three contracts: "scale a value" (Scale), "invert a scaled value"
(InvertibleScale) and "project an entity to a point" (PointProjector). Chart rendering and
map projection happen client-side in Vega-Lite via Altair; the scales here exist so that
pixel-space brushing and slider inversion are computed the same way on the server.

Notes:
    - Extents skip non-finite values (NaN, inf) and missing datetimes so one malformed
      record never poisons a domain.
    - A degenerate domain (min == max) maps every input to the middle of the range.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar

T = TypeVar("T")

__all__ = [
    "Scale",
    "InvertibleScale",
    "PointProjector",
    "finite_extent",
    "time_extent",
    "is_finite",
    "LinearScale",
    "SqrtScale",
    "TimeScale",
    "OrdinalScale",
]


class Scale(Protocol):
    def __call__(self, value: Any) -> float: ...


class InvertibleScale(Scale, Protocol):
    def invert(self, position: float) -> Any: ...


class PointProjector(Protocol):
    def project(self, entity: Any) -> tuple[float, float] | None: ...


def is_finite(value: Any) -> bool:
    """Return True when value is a real, finite number."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def finite_extent(
    values: Iterable[T], accessor: Callable[[T], Any] | None = None
) -> tuple[float, float] | None:
    """Return (min, max) over the finite values, or None when there are none."""
    lo = math.inf
    hi = -math.inf
    for item in values:
        v = accessor(item) if accessor is not None else item
        if not is_finite(v):
            continue
        fv = float(v)
        lo = min(lo, fv)
        hi = max(hi, fv)
    if lo > hi:
        return None
    return (lo, hi)


def time_extent(
    values: Iterable[T], accessor: Callable[[T], datetime | None] | None = None
) -> tuple[datetime, datetime] | None:
    """Return (earliest, latest) over the present datetimes, or None when there are none."""
    present = [
        v
        for v in ((accessor(item) if accessor is not None else item) for item in values)
        if isinstance(v, datetime)
    ]
    if not present:
        return None
    return (min(present), max(present))


def _normalize(a: float, b: float, x: float) -> float:
    span = b - a
    if span == 0:
        return 0.5
    return (x - a) / span


@dataclass(frozen=True)
class LinearScale:
    """Continuous linear mapping from a numeric domain to a numeric range."""

    domain: tuple[float, float]
    range: tuple[float, float]

    def __call__(self, value: Any) -> float:
        if not is_finite(value):
            return math.nan
        t = _normalize(self.domain[0], self.domain[1], float(value))
        return self.range[0] + t * (self.range[1] - self.range[0])

    def invert(self, position: float) -> float:
        t = _normalize(self.range[0], self.range[1], float(position))
        return self.domain[0] + t * (self.domain[1] - self.domain[0])


@dataclass(frozen=True)
class SqrtScale:
    """Square-root scale: area, not radius, grows linearly with the input."""

    domain: tuple[float, float]
    range: tuple[float, float]

    def __call__(self, value: Any) -> float:
        if not is_finite(value) or float(value) < 0:
            return math.nan
        d0 = math.sqrt(max(self.domain[0], 0.0))
        d1 = math.sqrt(max(self.domain[1], 0.0))
        t = _normalize(d0, d1, math.sqrt(float(value)))
        return self.range[0] + t * (self.range[1] - self.range[0])


@dataclass(frozen=True)
class TimeScale:
    """Linear mapping between a datetime domain and a numeric range (and back)."""

    domain: tuple[datetime, datetime]
    range: tuple[float, float]

    def __call__(self, value: datetime | None) -> float:
        if value is None:
            return math.nan
        t = _normalize(self.domain[0].timestamp(), self.domain[1].timestamp(), value.timestamp())
        return self.range[0] + t * (self.range[1] - self.range[0])

    def invert(self, position: float) -> datetime:
        t = _normalize(self.range[0], self.range[1], float(position))
        lo = self.domain[0].timestamp()
        hi = self.domain[1].timestamp()
        tz = self.domain[0].tzinfo or UTC
        return datetime.fromtimestamp(lo + t * (hi - lo), tz=tz)


class OrdinalScale:
    """Categorical scale assigning colors in first-seen order, cycling the scheme."""

    def __init__(self, scheme: Iterable[str], domain: Iterable[Any] = ()) -> None:
        self.scheme = tuple(scheme)
        self._assigned: dict[Any, str] = {}
        for key in domain:
            self(key)

    def __call__(self, key: Any) -> str:
        if key not in self._assigned:
            self._assigned[key] = self.scheme[len(self._assigned) % len(self.scheme)]
        return self._assigned[key]

    @property
    def domain(self) -> list[Any]:
        return list(self._assigned)
