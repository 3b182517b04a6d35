"""
Session-scoped explorer state.

A session owns the derived entities (computed once), the live selection (mutated in place
per interaction), view-local scales and a ViewBinder. refresh() is the single re-render
entry point and always runs in the same order:

    recompute selection -> recompute derived aggregates restricted to the selection -> bind views

so no view ever reads a half-updated selection. Sessions never import Streamlit; the shell
stores one session per explorer in st.session_state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import polars as pl

from .binder import BoundView, ViewBinder
from .commits import (
    Commit,
    file_breakdown,
    group_into_commits,
    language_breakdown,
    summarize_codebase,
)
from .config import Settings
from .constants import CATEGORY_SCHEME, STATUS_DOMAIN, YEARS_AFTER_CHOICES
from .demography import (
    AgingData,
    ComponentMode,
    aggregate_components,
    component_domain,
    decade_options,
    oadr_column,
    oadr_domain,
    slopegraph_series,
)
from .scales import OrdinalScale
from .selection import BrushSelection, CountrySelection, TimeCutoff
from .views import (
    COMPONENTS_EMPTY_TEXT,
    ScatterLayout,
    breakdown_rows,
    components_chart,
    file_rows,
    format_long_datetime,
    legend_entries,
    map_chart,
    placeholder_chart,
    region_marks,
    scatter_chart,
    scatter_marks,
    selection_count_text,
    slope_marks,
    slopegraph_chart,
    summary_card,
    tooltip_content,
)

__all__ = ["Hover", "CommitSession", "AgingSession", "COMMIT_VIEWS", "AGING_VIEWS"]

logger = logging.getLogger(__name__)

COMMIT_VIEWS: tuple[str, ...] = (
    "stats",
    "scatter",
    "selection_count",
    "language_breakdown",
    "files",
    "slider_label",
    "tooltip",
)
AGING_VIEWS: tuple[str, ...] = (
    "map",
    "legend",
    "slopegraph",
    "components",
    "summary",
    "tooltip",
)


def _single(value: Any) -> list[Any]:
    return [value]


@dataclass(frozen=True)
class Hover:
    """Entity under the pointer and the pointer position (tooltip anchor)."""

    entity_id: Any
    x: float = 0.0
    y: float = 0.0


class CommitSession:
    """
    Version-history explorer: scatter plot with brush, time slider, breakdowns.

    Args:
        lines (pl.DataFrame): Typed line records.
        settings (Settings): Runtime settings (timezone, radius range, geometry, URLs).
        binder (ViewBinder | None): Binder to use; a fresh one with every view mounted
            is created when omitted.
    """

    def __init__(
        self,
        lines: pl.DataFrame,
        settings: Settings | None = None,
        binder: ViewBinder | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.lines = lines
        self.commits: list[Commit] = group_into_commits(
            lines, url_base=self.settings.commit_url_base, tz=self.settings.display_timezone
        )
        self.by_id: dict[str, Commit] = {c.id: c for c in self.commits}
        self.brush = BrushSelection()
        self.cutoff = TimeCutoff(c.datetime for c in self.commits)
        self.hover: Hover | None = None
        if binder is None:
            binder = ViewBinder()
            binder.mount_all(COMMIT_VIEWS)
        self.binder = binder
        self.filtered: list[Commit] = list(self.commits)
        self.layout = self._fit(self.filtered)
        self.selected: list[Commit] = []
        self._stats = summarize_codebase(lines, self.commits, tz=self.settings.display_timezone)

    def _fit(self, commits: list[Commit]) -> ScatterLayout:
        s = self.settings
        return ScatterLayout.fit(
            commits,
            width=s.scatter_width,
            height=s.scatter_height,
            radius_range=(s.radius_min, s.radius_max),
        )

    # ---------- Derived state ----------

    def _recompute(self) -> None:
        self.filtered = [c for c in self.commits if self.cutoff.includes(c.datetime)]
        self.layout = self._fit(self.filtered)
        self.selected = [c for c in self.filtered if self.brush.selects(self.layout.project(c))]

    @property
    def hovered(self) -> Commit | None:
        if self.hover is None:
            return None
        return self.by_id.get(str(self.hover.entity_id))

    # ---------- Render ----------

    def refresh(self) -> dict[str, BoundView[Any]]:
        """Recompute selection-dependent state and bind every mounted view."""
        self._recompute()
        tz = self.settings.display_timezone
        selected_ids = {c.id for c in self.selected}
        hovered = self.hovered
        out: dict[str, BoundView[Any] | None] = {}

        out["stats"] = self.binder.bind(
            "stats", self._stats, key=lambda s: s.label, build=lambda items: list(items)
        )

        marks = scatter_marks(
            self.filtered, self.layout, selected_ids, hovered.id if hovered else None
        )
        out["scatter"] = self.binder.bind(
            "scatter",
            marks,
            key=lambda m: m["id"],
            build=lambda items: scatter_chart(items, self.layout),
            signature=(self.layout.x_domain, self.layout.width, self.layout.height),
        )

        out["selection_count"] = self.binder.bind(
            "selection_count",
            _single(selection_count_text(len(self.selected))),
            key=lambda _: "count",
            build=lambda items: items[0],
        )

        # Empty selection clears the panel; it never falls back to every commit.
        shares = breakdown_rows(language_breakdown(self.selected))
        out["language_breakdown"] = self.binder.bind(
            "language_breakdown", shares, key=lambda r: r["category"], build=lambda items: list(items)
        )

        files = file_rows(file_breakdown(self.filtered))
        out["files"] = self.binder.bind(
            "files", files, key=lambda r: r["name"], build=lambda items: list(items)
        )

        out["slider_label"] = self.binder.bind(
            "slider_label",
            _single(format_long_datetime(self.cutoff.cutoff, tz)),
            key=lambda _: "label",
            build=lambda items: items[0],
        )

        tip = tooltip_content(hovered, tz)
        out["tooltip"] = self.binder.bind(
            "tooltip",
            [tip] if tip is not None else [],
            key=lambda t: t["id"],
            build=lambda items: (
                {**items[0], "x": self.hover.x, "y": self.hover.y}
                if items and self.hover is not None
                else None
            ),
            signature=(self.hover.x, self.hover.y) if self.hover is not None else None,
        )

        logger.debug(
            "commit refresh: filtered=%d selected=%d position=%.1f",
            len(self.filtered),
            len(self.selected),
            self.cutoff.position,
        )
        return {k: v for k, v in out.items() if v is not None}


class AgingSession:
    """
    Peak-aging explorer: status map, legend filters, OADR slopegraph, components chart.

    Args:
        data (AgingData): Joined country tables.
        world (dict | None): TopoJSON boundaries; None renders the map as a placeholder.
        settings (Settings | None): Runtime settings (selection cap).
        binder (ViewBinder | None): Binder to use; defaults to one with every view mounted.
    """

    def __init__(
        self,
        data: AgingData,
        world: dict[str, Any] | None = None,
        settings: Settings | None = None,
        binder: ViewBinder | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.data = data
        self.world = world
        self.countries = data.countries()
        self.selection = CountrySelection(self.settings.max_selected)
        self.hidden_statuses: set[str] = set()
        self.years_after: int = 25
        self.decades: list[int] = decade_options(data.components)
        self.decade: int | None = self.decades[-1] if self.decades else None
        self.mode: ComponentMode = "abs"
        self.hover: Hover | None = None
        self.colors = OrdinalScale(CATEGORY_SCHEME)
        self.oadr_extent = oadr_domain(data.oadr_rows)
        if binder is None:
            binder = ViewBinder()
            binder.mount_all(AGING_VIEWS)
        self.binder = binder

    # ---------- Controls ----------

    def set_years_after(self, years: int) -> None:
        if int(years) in YEARS_AFTER_CHOICES:
            self.years_after = int(years)

    def set_decade(self, decade: int) -> None:
        if int(decade) in self.decades:
            self.decade = int(decade)

    def set_mode(self, mode: ComponentMode) -> None:
        if mode in ("abs", "per1k"):
            self.mode = mode

    def set_status_visible(self, status: str, visible: bool) -> None:
        if status not in STATUS_DOMAIN:
            return
        if visible:
            self.hidden_statuses.discard(status)
        else:
            self.hidden_statuses.add(status)

    def search(self, query: str) -> int | None:
        """Case-insensitive substring search; appends and returns the first matching id."""
        needle = query.strip().lower()
        if not needle:
            return None
        for country in self.countries:
            if needle in country.search_text():
                self.selection.append(country.id)
                return country.id
        return None

    # ---------- Render ----------

    def refresh(self) -> dict[str, BoundView[Any]]:
        selected = list(self.selection)
        last = self.selection.last_selected
        out: dict[str, BoundView[Any] | None] = {}

        regions = region_marks(self.countries, selected, self.hidden_statuses)
        out["map"] = self.binder.bind(
            "map",
            regions,
            key=lambda m: m["cid"],
            build=lambda items: (
                map_chart(self.world, items)
                if self.world is not None
                else placeholder_chart("World boundaries unavailable.")
            ),
        )

        out["legend"] = self.binder.bind(
            "legend",
            legend_entries(self.hidden_statuses),
            key=lambda e: e["status"],
            build=lambda items: list(items),
        )

        series = slopegraph_series(selected, self.data, self.years_after)
        points = slope_marks(series, self.years_after, self.colors)
        out["slopegraph"] = self.binder.bind(
            "slopegraph",
            points,
            key=lambda p: p["key"],
            build=lambda items: slopegraph_chart(
                items, y_domain=self.oadr_extent, years_after=self.years_after
            ),
            signature=self.years_after,
        )

        if last is None or self.decade is None:
            bars = []
        else:
            bars = aggregate_components(self.data.components, last, self.decade, self.mode)
        name = self.data.name_for(last) if last is not None else ""
        out["components"] = self.binder.bind(
            "components",
            bars,
            key=lambda b: b.key,
            build=lambda items: (
                components_chart(
                    items,
                    country_name=name,
                    decade=self.decade or 0,
                    mode=self.mode,
                    y_domain=component_domain(items),
                )
                if items
                else placeholder_chart(COMPONENTS_EMPTY_TEXT)
            ),
            signature=(last, self.decade, self.mode),
        )

        card = summary_card(
            self.data.country(last) if last is not None else None,
            self.years_after,
            oadr_column(self.years_after),
        )
        out["summary"] = self.binder.bind(
            "summary",
            [card] if card is not None else [],
            key=lambda c: c["id"],
            build=lambda items: items[0] if items else None,
        )

        hovered = self.data.find(self.hover.entity_id) if self.hover is not None else None
        out["tooltip"] = self.binder.bind(
            "tooltip",
            [{"id": hovered.id, "title": hovered.title()}] if hovered is not None else [],
            key=lambda t: t["id"],
            build=lambda items: (
                {**items[0], "x": self.hover.x, "y": self.hover.y}
                if items and self.hover is not None
                else None
            ),
            signature=(self.hover.x, self.hover.y) if self.hover is not None else None,
        )

        logger.debug("aging refresh: selected=%s hidden=%s", selected, sorted(self.hidden_statuses))
        return {k: v for k, v in out.items() if v is not None}
