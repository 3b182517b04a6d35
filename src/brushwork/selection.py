"""
Selection model: the live "current selection" of an explorer session.

Three kinds of selection are supported:
- BrushSelection: a rectangle in scatter-plot pixel space. A projected point is selected iff
  x0 <= x <= x1 and y0 <= y <= y1 (inclusive on every edge). No rectangle selects nothing.
- TimeCutoff: a 0-100 slider position mapped through a time scale spanning the full range of
  instants; an entity is included iff its instant is at or before the cutoff.
- CountrySelection: an insertion-ordered, de-duplicated list of ids capped at max_size.
  A plain click acts as radio-select, a modified click toggles membership up to the cap.

All selections are mutated in place; they are owned by one session and never shared.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime

from .constants import MAX_SELECTED, SLIDER_RANGE
from .errors import SelectionError
from .scales import TimeScale, is_finite, time_extent

__all__ = [
    "Brush",
    "BrushSelection",
    "TimeCutoff",
    "CountrySelection",
]


@dataclass(frozen=True)
class Brush:
    """Axis-aligned rectangle in pixel space; corners are normalized so x0 <= x1, y0 <= y1."""

    x0: float
    y0: float
    x1: float
    y1: float

    @classmethod
    def from_corners(cls, a: tuple[float, float], b: tuple[float, float]) -> Brush:
        return cls(
            x0=min(a[0], b[0]),
            y0=min(a[1], b[1]),
            x1=max(a[0], b[0]),
            y1=max(a[1], b[1]),
        )

    def contains(self, x: float, y: float) -> bool:
        if not (is_finite(x) and is_finite(y)):
            return False
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1


class BrushSelection:
    """Rectangular brush, updated continuously while dragging and finalized on release."""

    def __init__(self) -> None:
        self.rect: Brush | None = None
        self.dragging = False

    def start(self, rect: Brush | None = None) -> None:
        self.dragging = True
        self.rect = rect

    def move(self, rect: Brush | None) -> None:
        self.rect = rect

    def end(self, rect: Brush | None = None) -> None:
        if rect is not None:
            self.rect = rect
        self.dragging = False

    def clear(self) -> None:
        self.rect = None
        self.dragging = False

    def selects(self, point: tuple[float, float] | None) -> bool:
        if self.rect is None or point is None:
            return False
        return self.rect.contains(point[0], point[1])

    @property
    def is_empty(self) -> bool:
        return self.rect is None


class TimeCutoff:
    """
    Slider-driven time threshold.

    The time scale spans [earliest, latest] over the given instants (missing instants are
    skipped) and maps onto the slider range [0, 100]. Position 0 is the earliest instant,
    100 the latest. With no valid instants there is no cutoff and nothing is included.
    """

    def __init__(self, instants: Iterable[datetime | None], position: float = SLIDER_RANGE[1]) -> None:
        ext = time_extent(instants)
        self.scale: TimeScale | None = TimeScale(ext, SLIDER_RANGE) if ext is not None else None
        self.position = SLIDER_RANGE[1]
        self.set_position(position)

    def set_position(self, position: float) -> datetime | None:
        """Clamp and store the slider position, returning the new cutoff."""
        p = float(position) if is_finite(position) else SLIDER_RANGE[1]
        self.position = min(max(p, SLIDER_RANGE[0]), SLIDER_RANGE[1])
        return self.cutoff

    @property
    def cutoff(self) -> datetime | None:
        if self.scale is None:
            return None
        if self.position >= SLIDER_RANGE[1]:
            # Exact upper bound, immune to float round-trip through timestamps.
            return self.scale.domain[1]
        if self.position <= SLIDER_RANGE[0]:
            return self.scale.domain[0]
        return self.scale.invert(self.position)

    def includes(self, instant: datetime | None) -> bool:
        cutoff = self.cutoff
        if cutoff is None or instant is None:
            return False
        return instant <= cutoff


class CountrySelection:
    """
    Ordered, de-duplicated, capped list of selected country ids.

    Rules:
        - plain click on a member clears the selection; on a non-member replaces it with [id].
        - modified click on a member removes it; on a non-member appends it if under the cap,
          otherwise leaves the selection unchanged.
        - last_selected is the most recently appended id (strict insertion order).
    """

    def __init__(self, max_size: int = MAX_SELECTED, ids: Iterable[int] = ()) -> None:
        if max_size < 1:
            raise SelectionError(f"max_size must be >= 1 (got {max_size})")
        self.max_size = int(max_size)
        self.ids: list[int] = []
        for cid in ids:
            self.append(cid)

    def click(self, country_id: int, *, modified: bool = False) -> list[int]:
        cid = int(country_id)
        has = cid in self.ids
        if modified:
            if has:
                self.ids.remove(cid)
            elif len(self.ids) < self.max_size:
                self.ids.append(cid)
        else:
            self.ids = [] if has else [cid]
        return list(self.ids)

    def append(self, country_id: int) -> bool:
        """Append a non-member when under the cap; return True if it was added."""
        cid = int(country_id)
        if cid in self.ids or len(self.ids) >= self.max_size:
            return False
        self.ids.append(cid)
        return True

    def clear(self) -> None:
        self.ids = []

    @property
    def last_selected(self) -> int | None:
        return self.ids[-1] if self.ids else None

    def __contains__(self, country_id: object) -> bool:
        return country_id in self.ids

    def __iter__(self) -> Iterator[int]:
        return iter(list(self.ids))

    def __len__(self) -> int:
        return len(self.ids)
