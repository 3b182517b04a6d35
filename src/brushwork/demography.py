"""
Aggregator for the peak-aging dataset.

Joins up to three independently loaded tables onto a numeric country id: peak status,
old-age dependency ratio (OADR) samples and per-decade components of population change.
A country missing from a secondary table is never dropped and never raises; the affected
fields resolve to "no data", zero or NaN.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

import polars as pl

from .constants import (
    COMPONENT_COLORS,
    NO_DATA_COLOR,
    OADR_COLUMNS,
    STATUS_COLORS,
    YEARS_AFTER_CHOICES,
)
from .records import OADR_VALUE_COLUMNS
from .scales import finite_extent, is_finite

__all__ = [
    "ComponentMode",
    "StatusRecord",
    "AgingData",
    "Country",
    "ComponentBar",
    "SlopeSeries",
    "oadr_column",
    "aggregate_components",
    "component_domain",
    "decade_options",
    "decade_label",
    "oadr_domain",
    "slopegraph_series",
    "status_color",
]

ComponentMode = Literal["abs", "per1k"]


@dataclass(frozen=True)
class StatusRecord:
    id: int
    status: str
    peak_year: float


@dataclass(frozen=True)
class Country:
    """
    A country joined across the loaded tables.

    Attributes:
        id (int): Numeric region id shared by all tables and the boundary geometry.
        name (str): Display name, "ID <id>" when the geometry has none.
        status (StatusRecord | None): Peak status, None renders as "no data".
        oadr (dict[str, float] | None): OADR samples by column, None when absent.
    """

    id: int
    name: str
    status: StatusRecord | None = None
    oadr: dict[str, float] | None = field(default=None, compare=False)

    @property
    def has_data(self) -> bool:
        return self.status is not None

    def title(self) -> str:
        """Hover title for the map region."""
        if self.status is None:
            return f"{self.name}\n(no data)"
        year = self.status.peak_year
        year_text = str(int(year)) if is_finite(year) else "n/a"
        return f"{self.name}\nStatus: {self.status.status}\nPeak year: {year_text}"

    def search_text(self) -> str:
        """Lower-cased joined representation used by free-text search."""
        parts: list[str] = [self.name, str(self.id)]
        if self.status is not None:
            parts.append(self.status.status)
            if is_finite(self.status.peak_year):
                parts.append(str(int(self.status.peak_year)))
        return " ".join(parts).lower()


def status_color(status: StatusRecord | None) -> str:
    if status is None:
        return NO_DATA_COLOR
    return STATUS_COLORS.get(status.status, NO_DATA_COLOR)


class AgingData:
    """
    Indexed view over the peak-aging tables.

    Args:
        peak_status (pl.DataFrame): Coerced peak-status rows.
        oadr (pl.DataFrame | None): Coerced OADR rows (None when the table failed to load).
        components (pl.DataFrame | None): Coerced decade component rows.
        names (Mapping[int, str]): Country names from the boundary geometry.
        region_ids (Iterable[int] | None): Every region id drawn on the map; defaults to
            the union of names and status ids.

    Notes:
        Rows with a null id are ignored. When an id repeats, the last row wins.
    """

    def __init__(
        self,
        peak_status: pl.DataFrame,
        oadr: pl.DataFrame | None = None,
        components: pl.DataFrame | None = None,
        names: Mapping[int, str] | None = None,
        region_ids: Iterable[int] | None = None,
    ) -> None:
        self.names: dict[int, str] = dict(names or {})
        self.status_by_id: dict[int, StatusRecord] = {}
        for row in peak_status.drop_nulls("id").iter_rows(named=True):
            self.status_by_id[int(row["id"])] = StatusRecord(
                id=int(row["id"]),
                status=str(row["status"]) if row["status"] is not None else "",
                peak_year=float(row["peak_year"]),
            )
        self.oadr_rows: list[dict[str, float]] = []
        self.oadr_by_id: dict[int, dict[str, float]] = {}
        if oadr is not None:
            for row in oadr.drop_nulls("id").iter_rows(named=True):
                values = {c: float(row[c]) for c in OADR_VALUE_COLUMNS if c in row}
                self.oadr_rows.append(values)
                self.oadr_by_id[int(row["id"])] = values
        self.components = components if components is not None else pl.DataFrame()
        if region_ids is None:
            ids = list(self.names)
            ids += [i for i in self.status_by_id if i not in self.names]
        else:
            ids = list(region_ids)
        self.region_ids: list[int] = ids

    def name_for(self, country_id: int) -> str:
        return self.names.get(int(country_id), f"ID {country_id}")

    def country(self, country_id: int) -> Country:
        cid = int(country_id)
        return Country(
            id=cid,
            name=self.name_for(cid),
            status=self.status_by_id.get(cid),
            oadr=self.oadr_by_id.get(cid),
        )

    def find(self, country_id: object) -> Country | None:
        """Like `country`, but None for ids that are not numeric."""
        try:
            return self.country(int(country_id))
        except (TypeError, ValueError):
            return None

    def countries(self) -> list[Country]:
        return [self.country(i) for i in self.region_ids]


# ---------- Components of change ----------


@dataclass(frozen=True)
class ComponentBar:
    key: str
    value: float
    color: str


def _component_row(rows: pl.DataFrame, country_id: int, decade: int) -> dict[str, Any] | None:
    if rows.is_empty() or not {"id", "decade_start"}.issubset(rows.columns):
        return None
    hit = rows.filter((pl.col("id") == int(country_id)) & (pl.col("decade_start") == int(decade)))
    if hit.height == 0:
        return None
    return hit.row(0, named=True)


def aggregate_components(
    rows: pl.DataFrame, country_id: int, decade: int, mode: ComponentMode = "abs"
) -> list[ComponentBar]:
    """
    Build the component bars for one country and decade.

    Exact match on (id, decade_start); the first matching row is used. When no row
    matches, absolute bars default to 0 and per-1k bars to NaN.

    Args:
        rows (pl.DataFrame): Coerced component rows.
        country_id (int): Country id.
        decade (int): Decade start year.
        mode (Literal["abs", "per1k"]): Absolute change or average annual rate per 1,000.

    Returns:
        list[ComponentBar]: Bars in display order. Deaths are negated in absolute mode.
    """
    row = _component_row(rows, country_id, decade)

    def get(column: str, default: float) -> float:
        if row is None or row.get(column) is None:
            return default
        return float(row[column])

    if mode == "abs":
        pairs = [
            ("Births", get("births", 0.0)),
            ("Deaths", -get("deaths", 0.0)),
            ("Net migration", get("net_migration", 0.0)),
            ("Δ population", get("total_change", 0.0)),
        ]
    else:
        pairs = [
            ("Natural (per 1k)", get("rate_natural_per_1k", math.nan)),
            ("Migration (per 1k)", get("rate_migration_per_1k", math.nan)),
            ("Total (per 1k)", get("rate_total_per_1k", math.nan)),
        ]
    return [ComponentBar(key=k, value=v, color=COMPONENT_COLORS.get(k, "#888")) for k, v in pairs]


def component_domain(bars: Sequence[ComponentBar]) -> tuple[float, float]:
    """
    Y domain for the component chart: always includes zero, padded by 10% of the
    largest magnitude (or 1 when there is nothing finite to pad by).
    """
    ext = finite_extent(bars, lambda b: b.value)
    if ext is None:
        return (-1.0, 1.0)
    lo, hi = ext
    pad = max(abs(lo), abs(hi)) * 0.1 or 1.0
    return (min(0.0, lo) - pad, max(0.0, hi) + pad)


def decade_options(rows: pl.DataFrame) -> list[int]:
    """Sorted distinct decade starts present in the component rows."""
    if rows.is_empty() or "decade_start" not in rows.columns:
        return []
    return sorted(int(d) for d in rows.get_column("decade_start").drop_nulls().unique().to_list())


def decade_label(decade: int) -> str:
    return f"{decade}–{decade + 9}"


# ---------- OADR slopegraph ----------


@dataclass(frozen=True)
class SlopeSeries:
    id: int
    name: str
    left: float
    right: float


def oadr_column(years_after: int) -> str:
    """Column holding the OADR sample N years after the peak; unknown N falls back to 30."""
    return OADR_COLUMNS.get(int(years_after), OADR_COLUMNS[YEARS_AFTER_CHOICES[-1]])


def oadr_domain(oadr_rows: Iterable[Mapping[str, float]]) -> tuple[float, float] | None:
    """Extent of every finite OADR value across all countries and all offsets."""
    values = [row.get(c) for row in oadr_rows for c in OADR_VALUE_COLUMNS]
    return finite_extent(values)


def slopegraph_series(
    selected: Sequence[int], data: AgingData, years_after: int
) -> list[SlopeSeries]:
    """
    One series per selected country that has an OADR record, in selection order.

    Countries without an OADR record are left out (the map still shows them).
    """
    right_key = oadr_column(years_after)
    out: list[SlopeSeries] = []
    for cid in selected:
        rec = data.oadr_by_id.get(int(cid))
        if rec is None:
            continue
        out.append(
            SlopeSeries(
                id=int(cid),
                name=data.name_for(cid),
                left=float(rec.get("oadr_peak", math.nan)),
                right=float(rec.get(right_key, math.nan)),
            )
        )
    return out
