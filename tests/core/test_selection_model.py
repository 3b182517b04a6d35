from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta

import pytest

from brushwork.errors import SelectionError
from brushwork.selection import Brush, BrushSelection, CountrySelection, TimeCutoff


def test_brush_edges_are_inclusive() -> None:
    rect = Brush.from_corners((50, 40), (10, 20))

    assert (rect.x0, rect.y0, rect.x1, rect.y1) == (10, 20, 50, 40)
    assert rect.contains(10, 20)
    assert rect.contains(50, 40)
    assert not rect.contains(50.01, 30)
    assert not rect.contains(math.nan, 30)


def test_brush_selection_lifecycle() -> None:
    sel = BrushSelection()
    assert sel.is_empty and not sel.selects((0, 0))

    sel.start()
    sel.move(Brush(0, 0, 10, 10))
    assert sel.dragging
    assert sel.selects((5, 5))

    sel.end()
    # Release keeps the last rectangle
    assert not sel.dragging
    assert sel.rect == Brush(0, 0, 10, 10)
    assert not sel.selects(None)

    sel.clear()
    assert sel.is_empty


def _instants() -> list[datetime | None]:
    start = datetime(2025, 1, 1, tzinfo=UTC)
    return [start, None, start + timedelta(days=10), start + timedelta(days=5)]


def test_time_cutoff_endpoints() -> None:
    cutoff = TimeCutoff(_instants())
    start = datetime(2025, 1, 1, tzinfo=UTC)

    assert cutoff.cutoff == start + timedelta(days=10)
    assert cutoff.set_position(0) == start
    assert cutoff.set_position(50) == start + timedelta(days=5)


def test_time_cutoff_inclusion_is_monotonic() -> None:
    instants = [i for i in _instants() if i is not None]
    cutoff = TimeCutoff(instants)

    counts = []
    for position in (0, 25, 50, 75, 100):
        cutoff.set_position(position)
        counts.append(sum(cutoff.includes(i) for i in instants))

    assert counts == sorted(counts)
    assert counts[0] == 1 and counts[-1] == 3
    assert not cutoff.includes(None)


def test_time_cutoff_clamps_position() -> None:
    cutoff = TimeCutoff(_instants(), position=250)
    assert cutoff.position == 100

    cutoff.set_position(-3)
    assert cutoff.position == 0


def test_time_cutoff_without_instants_includes_nothing() -> None:
    cutoff = TimeCutoff([None, None])

    assert cutoff.cutoff is None
    assert not cutoff.includes(datetime(2025, 1, 1, tzinfo=UTC))


def test_modified_click_on_member_removes_it() -> None:
    sel = CountrySelection(ids=[4, 8])

    assert sel.click(4, modified=True) == [8]


def test_plain_click_replaces_selection() -> None:
    sel = CountrySelection(ids=[4, 8])

    assert sel.click(12) == [12]
    assert sel.last_selected == 12


def test_plain_click_on_member_clears() -> None:
    sel = CountrySelection(ids=[4])

    assert sel.click(4) == []
    assert sel.last_selected is None


def test_modified_click_respects_cap() -> None:
    sel = CountrySelection(ids=[1, 2, 3, 4, 5])

    assert sel.click(6, modified=True) == [1, 2, 3, 4, 5]
    assert len(sel) == 5
    assert not sel.append(7)


def test_selection_stays_deduplicated_in_insertion_order() -> None:
    sel = CountrySelection(max_size=3)
    for cid in (8, 4, 8, 12):
        sel.click(cid, modified=True)

    # 8 was added, 4 added, 8 removed, 12 added
    assert list(sel) == [4, 12]
    assert sel.last_selected == 12
    assert 4 in sel and 8 not in sel


def test_max_size_must_be_positive() -> None:
    with pytest.raises(SelectionError):
        CountrySelection(max_size=0)
