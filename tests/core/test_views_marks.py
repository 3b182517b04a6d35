from __future__ import annotations

import json
import math
from datetime import UTC, datetime

import polars as pl
import pytest

from brushwork.commits import group_into_commits
from brushwork.constants import CATEGORY_SCHEME, RADIUS_RANGE
from brushwork.demography import AgingData, slopegraph_series
from brushwork.scales import OrdinalScale
from brushwork.views import (
    ScatterLayout,
    clean,
    format_full_date,
    format_long_datetime,
    format_percent,
    legend_entries,
    map_chart,
    region_marks,
    scatter_chart,
    scatter_marks,
    selection_count_text,
    slope_marks,
    summary_card,
    tooltip_content,
)


def _layout(commits) -> ScatterLayout:
    return ScatterLayout.fit(commits, width=1000, height=600, radius_range=RADIUS_RANGE)


def test_radius_scale_spans_range_by_total_lines(line_records: pl.DataFrame) -> None:
    a, b, _ = group_into_commits(line_records)
    layout = _layout([a, b])

    assert layout.radius(a) == pytest.approx(RADIUS_RANGE[1])
    assert layout.radius(b) == pytest.approx(RADIUS_RANGE[0])


def test_projection_respects_margins(line_records: pl.DataFrame) -> None:
    a, _, c = group_into_commits(line_records)
    layout = _layout([a, c])

    ax, _ = layout.project(a)
    cx, _ = layout.project(c)

    # left margin 20, right margin 10
    assert ax == pytest.approx(20.0)
    assert cx == pytest.approx(990.0)
    # y is inverted: hour 0 sits on the bottom edge, 24 on the top edge
    assert layout.y(0) == pytest.approx(570.0)
    assert layout.y(24) == pytest.approx(10.0)


def test_scatter_marks_draw_largest_first(line_records: pl.DataFrame) -> None:
    commits = group_into_commits(line_records)
    layout = _layout(commits)

    marks = scatter_marks(commits, layout, selected_ids={"b"}, hovered_id="c")

    assert [m["id"] for m in marks] == ["a", "b", "c"]
    assert [m["draw_order"] for m in marks] == [0, 1, 2]
    assert [m["selected"] for m in marks] == [False, True, False]
    assert marks[2]["opacity"] == 1.0 and marks[0]["opacity"] == 0.7


def test_scatter_marks_are_json_safe(line_records: pl.DataFrame) -> None:
    commits = group_into_commits(line_records)
    marks = scatter_marks(commits, _layout(commits))

    text = json.dumps(marks, allow_nan=False)

    assert '"datetime": "2025-10-20T09:15:00+00:00"' in text


def test_commits_without_instant_are_not_drawn(line_records: pl.DataFrame) -> None:
    df = line_records.with_columns(
        pl.when(pl.col("commit") == "b").then(None).otherwise(pl.col("datetime")).alias("datetime")
    )
    commits = group_into_commits(df)

    marks = scatter_marks(commits, _layout(commits))

    assert [m["id"] for m in marks] == ["a", "c"]


def test_clean_scalars() -> None:
    assert clean(math.nan) is None
    assert clean(math.inf) is None
    assert clean(1.5) == 1.5
    assert clean(datetime(2025, 1, 1, tzinfo=UTC)) == "2025-01-01T00:00:00+00:00"


def test_format_percent() -> None:
    assert format_percent(0.5) == "50%"
    assert format_percent(0.1234) == "12.3%"
    assert format_percent(math.nan) == "n/a"


def test_selection_count_text() -> None:
    assert selection_count_text(0) == "No commits selected"
    assert selection_count_text(3) == "3 commits selected"


def test_date_formats_follow_display_timezone() -> None:
    instant = datetime(2025, 10, 20, 21, 3, tzinfo=UTC)

    assert format_long_datetime(instant) == "October 20, 2025 at 9:03 PM"
    assert format_long_datetime(instant, "America/Los_Angeles") == "October 20, 2025 at 2:03 PM"
    assert format_long_datetime(instant, offset="-07:00") == "October 20, 2025 at 2:03 PM"
    assert format_full_date(datetime(2025, 10, 21, 3, 0, tzinfo=UTC), offset="-07:00") == "Monday, October 20, 2025"
    assert format_full_date(instant) == "Monday, October 20, 2025"
    assert format_long_datetime(None) == "n/a"


def test_tooltip_content(line_records: pl.DataFrame) -> None:
    a = group_into_commits(line_records, url_base="https://example.org/c/")[0]

    tip = tooltip_content(a)

    assert tip == {
        "id": "a",
        "url": "https://example.org/c/a",
        "date": "Monday, October 20, 2025",
        "time": "09:15:00+00:00",
        "author": "ana",
        "lines": 3,
    }
    assert tooltip_content(None) is None


def test_region_marks_fade_and_hide(aging_data: AgingData) -> None:
    marks = {m["cid"]: m for m in region_marks(aging_data.countries(), [4], {"no_peak"})}

    assert marks[4]["selected"] and marks[4]["stroke"] == "#111"
    assert marks[4]["opacity"] == 1.0
    assert marks[8]["opacity"] == 0.6
    assert marks[12]["visible"] is False
    assert marks[8]["visible"] is True


def test_region_marks_without_selection_are_opaque(aging_data: AgingData) -> None:
    marks = region_marks(aging_data.countries(), [])
    assert {m["opacity"] for m in marks} == {1.0}


def test_legend_entries_follow_fixed_domain() -> None:
    entries = legend_entries({"2050"})

    assert [e["status"] for e in entries] == ["peaked", "2050", "2055plus", "no_peak"]
    assert [e["visible"] for e in entries] == [True, False, True, True]


def test_slope_marks_keyed_per_side(aging_data: AgingData) -> None:
    colors = OrdinalScale(CATEGORY_SCHEME)
    series = slopegraph_series([4, 12], aging_data, 10)

    marks = slope_marks(series, 10, colors)

    assert [m["key"] for m in marks] == ["4:left", "4:right", "12:left", "12:right"]
    assert marks[0]["color"] == CATEGORY_SCHEME[0]
    assert marks[2]["color"] == CATEGORY_SCHEME[1]
    assert marks[1]["column"] == "Peak + 10"
    assert marks[1]["pct"] == pytest.approx(25.0)


def test_summary_card(aging_data: AgingData) -> None:
    card = summary_card(aging_data.country(4), 25, "oadr_p25")
    angola = summary_card(aging_data.country(8), 25, "oadr_p25")

    assert card is not None and angola is not None
    assert card["peak_year"] == 2020
    assert card["oadr_after"] == pytest.approx(0.35)
    assert angola["oadr_peak"] is None
    assert summary_card(None, 25, "oadr_p25") is None


def test_scatter_chart_carries_brush_param(line_records: pl.DataFrame) -> None:
    commits = group_into_commits(line_records)
    layout = _layout(commits)

    spec = scatter_chart(scatter_marks(commits, layout), layout).to_dict()

    assert [p["name"] for p in spec["params"]] == ["brush"]
    assert spec["width"] == 1000 and spec["height"] == 600


def test_map_chart_carries_region_param(aging_data: AgingData) -> None:
    world = {"type": "Topology", "objects": {"countries": {"type": "GeometryCollection", "geometries": []}}, "arcs": []}

    spec = map_chart(world, region_marks(aging_data.countries(), []))

    assert '"region"' in json.dumps(spec.to_dict())
