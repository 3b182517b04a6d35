"""
View builders: marks, Altair chart specs and text panels for both explorers.

Mark builders turn entities plus the current selection into plain, JSON-safe datums keyed by
entity id (non-finite numbers become None). Chart builders turn marks into Altair specs.
Sessions (brushwork.session) feed the marks through the ViewBinder so a chart is rebuilt
only when its marks or inputs change.

Conventions
- Scatter: x = commit instant, y = fractional hour of day (0-24), circle area proportional
  to total lines (sqrt radius scale), marks drawn largest first so small ones stay on top.
- Map: fill by peak status via the fixed palette, "no data" regions in a neutral grey,
  selected regions outlined, unselected regions faded while a selection exists; regions of
  a hidden status are filtered out at render time (their data stays in the session).
- Slopegraph and components chart are keyed by country id; colors come from one ordinal
  scale per session so a country has the same color in every view.
"""

from __future__ import annotations

import math
from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import altair as alt

from .commits import CategoryShare, Commit, FileLines, local_time
from .constants import SCATTER_MARGIN, STATUS_COLORS, STATUS_DOMAIN, WATER_COLOR
from .demography import ComponentBar, Country, SlopeSeries, decade_label, status_color
from .scales import LinearScale, OrdinalScale, SqrtScale, TimeScale, finite_extent, is_finite, time_extent

__all__ = [
    "ScatterLayout",
    "clean",
    "format_percent",
    "format_full_date",
    "format_long_datetime",
    "selection_count_text",
    "tooltip_content",
    "scatter_marks",
    "breakdown_rows",
    "file_rows",
    "region_marks",
    "legend_entries",
    "slope_marks",
    "summary_card",
    "placeholder_chart",
    "scatter_chart",
    "map_chart",
    "slopegraph_chart",
    "components_chart",
    "SLOPE_LEFT",
    "slope_right_label",
    "SLOPE_EMPTY_TEXT",
    "COMPONENTS_EMPTY_TEXT",
]

SLOPE_LEFT = "At peak"
SLOPE_EMPTY_TEXT = "Click a country (Shift-click to compare up to 5)"
COMPONENTS_EMPTY_TEXT = "Select a country to see components of change"


def slope_right_label(years_after: int) -> str:
    return f"Peak + {years_after}"


def clean(value: Any) -> Any:
    """JSON-safe scalar: non-finite floats become None, datetimes become ISO strings."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return value


# ---------- Formatting ----------


def format_percent(p: float) -> str:
    """One decimal percentage with a trailing ".0" trimmed (0.5 -> "50%", 0.1234 -> "12.3%")."""
    if not is_finite(p):
        return "n/a"
    text = f"{p * 100:.1f}"
    if text.endswith(".0"):
        text = text[:-2]
    return f"{text}%"


def format_full_date(dt: datetime | None, tz: str = "", offset: str | None = None) -> str:
    """E.g. "Monday, October 20, 2025"."""
    if dt is None:
        return "n/a"
    d = local_time(dt, tz, offset)
    return f"{d:%A}, {d:%B} {d.day}, {d.year}"


def format_long_datetime(dt: datetime | None, tz: str = "", offset: str | None = None) -> str:
    """E.g. "October 20, 2025 at 2:03 PM"."""
    if dt is None:
        return "n/a"
    d = local_time(dt, tz, offset)
    hour12 = d.hour % 12 or 12
    meridiem = "AM" if d.hour < 12 else "PM"
    return f"{d:%B} {d.day}, {d.year} at {hour12}:{d:%M} {meridiem}"


def selection_count_text(n: int) -> str:
    return f"{n or 'No'} commits selected"


# ---------- Commit explorer ----------


@dataclass(frozen=True)
class ScatterLayout:
    """
    Pixel-space scales for the commit scatter plot.

    x maps instants onto [left, right], y maps hours [0, 24] onto [bottom, top] and r is a
    sqrt scale from total lines onto the radius range. Scales are derived from the commits
    currently drawn, so filtering by time re-fits x and r.
    """

    x: TimeScale | None
    y: LinearScale
    r: SqrtScale | None
    width: int
    height: int

    @classmethod
    def fit(
        cls,
        commits: Sequence[Commit],
        *,
        width: int,
        height: int,
        radius_range: tuple[float, float],
        margin: Mapping[str, int] = SCATTER_MARGIN,
    ) -> ScatterLayout:
        left = float(margin["left"])
        right = float(width - margin["right"])
        top = float(margin["top"])
        bottom = float(height - margin["bottom"])
        t_ext = time_extent(commits, lambda c: c.datetime)
        r_ext = finite_extent(commits, lambda c: c.total_lines)
        return cls(
            x=TimeScale(t_ext, (left, right)) if t_ext is not None else None,
            y=LinearScale((0.0, 24.0), (bottom, top)),
            r=SqrtScale(r_ext, radius_range) if r_ext is not None else None,
            width=width,
            height=height,
        )

    def project(self, commit: Commit) -> tuple[float, float] | None:
        if self.x is None or commit.datetime is None or not is_finite(commit.hour_frac):
            return None
        return (self.x(commit.datetime), self.y(commit.hour_frac))

    def radius(self, commit: Commit) -> float:
        if self.r is None:
            return math.nan
        return self.r(commit.total_lines)

    @property
    def x_domain(self) -> tuple[datetime, datetime] | None:
        return self.x.domain if self.x is not None else None


def tooltip_content(commit: Commit | None, tz: str = "") -> dict[str, Any] | None:
    """Detail content for one commit; None for an absent commit (nothing rendered)."""
    if commit is None or not commit.id:
        return None
    return {
        "id": commit.id,
        "url": commit.url,
        "date": format_full_date(commit.datetime, tz, commit.timezone),
        "time": commit.time,
        "author": commit.author,
        "lines": commit.total_lines,
    }


def scatter_marks(
    commits: Sequence[Commit],
    layout: ScatterLayout,
    selected_ids: Collection[str] = (),
    hovered_id: str | None = None,
) -> list[dict[str, Any]]:
    """
    One datum per drawable commit, sorted by descending total lines.

    Commits that cannot be projected (missing instant or hour) are skipped. draw_order
    follows the sorted order so the renderer paints small circles last.
    """
    ordered = sorted(commits, key=lambda c: -c.total_lines)
    marks: list[dict[str, Any]] = []
    for c in ordered:
        point = layout.project(c)
        if point is None:
            continue
        r = layout.radius(c)
        selected = c.id in selected_ids
        marks.append(
            {
                "id": c.id,
                "url": c.url,
                "author": c.author,
                "datetime": clean(c.datetime),
                "time": c.time,
                "hour_frac": clean(c.hour_frac),
                "total_lines": c.total_lines,
                "x": clean(point[0]),
                "y": clean(point[1]),
                "r": clean(r),
                "area": clean(math.pi * r * r) if is_finite(r) else None,
                "selected": selected,
                "fill": "#ff6b6b" if selected else "steelblue",
                "opacity": 1.0 if c.id == hovered_id else 0.7,
                "draw_order": len(marks),
            }
        )
    return marks


def breakdown_rows(shares: Sequence[CategoryShare]) -> list[dict[str, Any]]:
    return [
        {
            "category": s.category,
            "lines": s.lines,
            "proportion": clean(s.proportion),
            "label": f"{s.lines} lines ({format_percent(s.proportion)})",
        }
        for s in shares
    ]


def file_rows(files: Sequence[FileLines]) -> list[dict[str, Any]]:
    return [{"name": f.name, "lines": f.lines, "label": f"{f.lines} lines"} for f in files]


# ---------- Aging explorer ----------


def region_marks(
    countries: Sequence[Country],
    selected: Sequence[int],
    hidden_statuses: Collection[str] = (),
) -> list[dict[str, Any]]:
    """One datum per map region with fill, outline, fade and visibility resolved."""
    chosen = set(selected)
    any_selected = bool(chosen)
    marks: list[dict[str, Any]] = []
    for c in countries:
        is_sel = c.id in chosen
        status = c.status.status if c.status is not None else None
        marks.append(
            {
                "cid": c.id,
                "name": c.name,
                "status": status or "no data",
                "peak_year": clean(c.status.peak_year) if c.status is not None else None,
                "fill": status_color(c.status),
                "stroke": "#111" if is_sel else "#fff",
                "stroke_width": 1.5 if is_sel else 0.5,
                "opacity": 0.6 if any_selected and not is_sel else 1.0,
                "visible": status not in hidden_statuses,
                "selected": is_sel,
                "title": c.title(),
            }
        )
    return marks


def legend_entries(hidden_statuses: Collection[str] = ()) -> list[dict[str, Any]]:
    return [
        {"status": s, "color": STATUS_COLORS[s], "visible": s not in hidden_statuses}
        for s in STATUS_DOMAIN
    ]


def slope_marks(
    series: Sequence[SlopeSeries], years_after: int, colors: OrdinalScale
) -> list[dict[str, Any]]:
    """Two points per series (left/right column) keyed "<id>:<side>"."""
    right = slope_right_label(years_after)
    marks: list[dict[str, Any]] = []
    for s in series:
        color = colors(s.id)
        for side, column, value in (("left", SLOPE_LEFT, s.left), ("right", right, s.right)):
            marks.append(
                {
                    "key": f"{s.id}:{side}",
                    "id": s.id,
                    "name": s.name,
                    "side": side,
                    "column": column,
                    "value": clean(value),
                    "pct": clean(value * 100) if is_finite(value) else None,
                    "color": color,
                }
            )
    return marks


def summary_card(
    country: Country | None, years_after: int, oadr_key: str
) -> dict[str, Any] | None:
    """Single-target detail card for the last selected country."""
    if country is None:
        return None
    card: dict[str, Any] = {
        "id": country.id,
        "name": country.name,
        "status": country.status.status if country.status is not None else "no data",
        "peak_year": (
            int(country.status.peak_year)
            if country.status is not None and is_finite(country.status.peak_year)
            else None
        ),
        "oadr_peak": None,
        "oadr_after": None,
        "years_after": years_after,
    }
    if country.oadr is not None:
        card["oadr_peak"] = clean(country.oadr.get("oadr_peak", math.nan))
        card["oadr_after"] = clean(country.oadr.get(oadr_key, math.nan))
    return card


# ---------- Altair specs ----------


def placeholder_chart(message: str, *, width: int = 400, height: int = 60) -> alt.Chart:
    return (
        alt.Chart(alt.Data(values=[{"msg": message}]))
        .mark_text(color="#666", fontSize=13)
        .encode(text="msg:N")
        .properties(width=width, height=height)
    )


def scatter_chart(
    marks: Sequence[dict[str, Any]],
    layout: ScatterLayout,
    *,
    brush_name: str = "brush",
) -> alt.Chart:
    """Commit scatter plot with an x/y interval brush named brush_name."""
    brush = alt.selection_interval(name=brush_name, encodings=["x", "y"])
    domain = layout.x_domain
    x_scale = alt.Scale(domain=[clean(domain[0]), clean(domain[1])]) if domain else alt.Undefined
    return (
        alt.Chart(alt.Data(values=list(marks)))
        .mark_circle(stroke="white", strokeWidth=0.5)
        .encode(
            x=alt.X("datetime:T", title=None, scale=x_scale),
            y=alt.Y(
                "hour_frac:Q",
                title=None,
                scale=alt.Scale(domain=[0, 24]),
                axis=alt.Axis(
                    labelExpr="(datum.value % 24 < 10 ? '0' : '') + (datum.value % 24) + ':00'",
                ),
            ),
            size=alt.Size("area:Q", scale=None, legend=None),
            color=alt.Color("fill:N", scale=None, legend=None),
            opacity=alt.Opacity("opacity:Q", scale=None, legend=None),
            order=alt.Order("draw_order:Q"),
            tooltip=[
                alt.Tooltip("id:N", title="Commit"),
                alt.Tooltip("datetime:T", title="Date", format="%A, %B %-d, %Y"),
                alt.Tooltip("time:N", title="Time"),
                alt.Tooltip("author:N", title="Author"),
                alt.Tooltip("total_lines:Q", title="Lines edited"),
            ],
        )
        .add_params(brush)
        .properties(width=layout.width, height=layout.height)
    )


def map_chart(
    world: Mapping[str, Any],
    regions: Sequence[dict[str, Any]],
    *,
    width: int = 960,
    height: int = 500,
    click_name: str = "region",
) -> alt.LayerChart:
    """
    World map: water sphere plus one geoshape per region, joined to region marks by id.

    The click parameter always toggles the clicked id in the client-side set; the shell
    diffs successive sets to recover which region was clicked.
    """
    click = alt.selection_point(name=click_name, fields=["cid"], toggle="true", empty=False)
    sphere = alt.Chart(alt.sphere()).mark_geoshape(fill=WATER_COLOR)
    shapes = (
        alt.Chart(
            alt.InlineData(
                values=dict(world),
                format=alt.TopoDataFormat(type="topojson", feature="countries"),
            )
        )
        .mark_geoshape(cursor="pointer")
        .transform_calculate(cid="toNumber(datum.id)")
        .transform_lookup(
            lookup="cid",
            from_=alt.LookupData(
                data=alt.Data(values=list(regions)),
                key="cid",
                fields=["name", "status", "fill", "stroke", "stroke_width", "opacity", "visible", "title"],
            ),
        )
        .transform_filter("datum.visible !== false")
        .encode(
            color=alt.Color("fill:N", scale=None, legend=None),
            stroke=alt.Stroke("stroke:N", scale=None, legend=None),
            strokeWidth=alt.StrokeWidth("stroke_width:Q", scale=None, legend=None),
            opacity=alt.Opacity("opacity:Q", scale=None, legend=None),
            tooltip=alt.Tooltip("title:N", title=None),
        )
        .add_params(click)
    )
    return alt.layer(sphere, shapes).project(type="naturalEarth1").properties(width=width, height=height)


def slopegraph_chart(
    marks: Sequence[dict[str, Any]],
    *,
    y_domain: tuple[float, float] | None,
    years_after: int,
    width: int = 530,
    height: int = 305,
) -> alt.Chart | alt.LayerChart:
    """Two-column OADR slopegraph; one line, two points and a label per country."""
    if not marks:
        return placeholder_chart(SLOPE_EMPTY_TEXT, width=width, height=height)
    right = slope_right_label(years_after)
    y_scale = (
        alt.Scale(domain=[y_domain[0] * 100, y_domain[1] * 100], nice=True)
        if y_domain is not None
        else alt.Scale(nice=True)
    )
    base = alt.Chart(alt.Data(values=list(marks))).encode(
        x=alt.X("column:N", sort=[SLOPE_LEFT, right], title=None, axis=alt.Axis(labelAngle=0)),
        y=alt.Y("pct:Q", scale=y_scale, title="older (65+) per 100 working-age (15–64)"),
        color=alt.Color("color:N", scale=None, legend=None),
    )
    lines = base.mark_line(strokeWidth=2).encode(detail="id:N")
    points = base.mark_circle(size=50, stroke="#111", strokeWidth=0.8, opacity=1).encode(
        tooltip=[
            alt.Tooltip("name:N", title="Country"),
            alt.Tooltip("column:N", title="When"),
            alt.Tooltip("pct:Q", title="OADR", format=".1f"),
        ]
    )
    labels = (
        base.transform_filter(alt.datum.side == "right")
        .mark_text(align="left", dx=8, fontSize=12)
        .encode(text="name:N")
    )
    return alt.layer(lines, points, labels).properties(width=width, height=height)


def components_chart(
    bars: Sequence[ComponentBar],
    *,
    country_name: str,
    decade: int,
    mode: str,
    y_domain: tuple[float, float],
    width: int = 634,
    height: int = 256,
) -> alt.Chart:
    """Bar chart of one country's components of change for one decade."""
    subtitle = "Change over decade (units match file)" if mode == "abs" else "Avg annual rate (per 1,000)"
    rows = [{"key": b.key, "value": clean(b.value), "color": b.color} for b in bars]
    return (
        alt.Chart(alt.Data(values=rows))
        .mark_bar()
        .encode(
            x=alt.X("key:N", sort=[b.key for b in bars], title=None, axis=alt.Axis(labelAngle=0)),
            y=alt.Y("value:Q", scale=alt.Scale(domain=list(y_domain), nice=True), title=None),
            color=alt.Color("color:N", scale=None, legend=None),
            tooltip=[alt.Tooltip("key:N", title="Component"), alt.Tooltip("value:Q", format=",.1f")],
        )
        .properties(
            width=width,
            height=height,
            title=alt.TitleParams(
                f"{country_name}: {decade_label(decade)}", subtitle=subtitle, anchor="start"
            ),
        )
    )
