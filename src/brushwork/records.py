"""
Record loader: parse raw tabular rows into typed Polars frames.

Every column is read as text first, then coerced. Numeric coercion never raises: values that
are not numbers become NaN. Date/time coercion never raises either: unparsable values become
null (the "invalid date" sentinel). A single bad row therefore never aborts a load; only a
missing or unreadable file does (LoadError).

Tables
- line records (loc.csv): commit, file, line, depth, length, author, date, time,
  timezone, datetime, type.
- peak status: id, status, peak_year.
- OADR peaks: id, oadr_peak, oadr_p10, oadr_p15, oadr_p20, oadr_p25, oadr_p30.
- components by decade: id, decade_start, births, deaths, natural_increase,
  net_migration, total_change, rate_natural_per_1k, rate_migration_per_1k,
  rate_total_per_1k.

Import DAG discipline
- Depends on stdlib, polars and brushwork.errors; does not import the view or UI layers.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import polars as pl

from .constants import OADR_COLUMNS
from .errors import LoadError

__all__ = [
    "LINE_NUMERIC_COLUMNS",
    "OADR_VALUE_COLUMNS",
    "COMPONENT_VALUE_COLUMNS",
    "coerce_numeric",
    "parse_instant",
    "coerce_line_records",
    "coerce_peak_status",
    "coerce_oadr",
    "coerce_components",
    "read_text_csv",
    "load_line_records",
    "load_peak_status",
    "load_oadr",
    "load_components",
    "load_world",
    "country_names",
]

logger = logging.getLogger(__name__)

LINE_NUMERIC_COLUMNS: tuple[str, ...] = ("line", "depth", "length")
LINE_TEXT_COLUMNS: tuple[str, ...] = ("commit", "file", "author", "date", "time", "timezone", "type")
OADR_VALUE_COLUMNS: tuple[str, ...] = ("oadr_peak", *OADR_COLUMNS.values())
COMPONENT_VALUE_COLUMNS: tuple[str, ...] = (
    "births",
    "deaths",
    "natural_increase",
    "net_migration",
    "total_change",
    "rate_natural_per_1k",
    "rate_migration_per_1k",
    "rate_total_per_1k",
)

_ISO_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%.f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S%.f%z",
    "%Y-%m-%dT%H:%M%z",
)


def parse_instant(expr: pl.Expr) -> pl.Expr:
    """Parse ISO-8601 text with an offset into a UTC instant.

    A trailing "Z" reads as "+00:00" and fractional seconds are optional.
    Text that matches none of the accepted layouts becomes null.
    """
    text = expr.str.strip_chars().str.replace(r"[zZ]$", "+00:00")
    return pl.coalesce(
        [text.str.to_datetime(fmt, strict=False, time_zone="UTC") for fmt in _ISO_FORMATS]
    )


def coerce_numeric(column: str) -> pl.Expr:
    """Force a text column to Float64; anything non-numeric becomes NaN."""
    return (
        pl.col(column)
        .str.strip_chars()
        .cast(pl.Float64, strict=False)
        .fill_null(float("nan"))
        .alias(column)
    )


def _coerce_id(column: str = "id") -> pl.Expr:
    # Ids are join keys; a non-numeric id stays null so it never matches anything.
    return pl.col(column).str.strip_chars().cast(pl.Float64, strict=False).cast(pl.Int64, strict=False)


def _ensure_columns(df: pl.DataFrame, columns: tuple[str, ...]) -> pl.DataFrame:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        df = df.with_columns([pl.lit(None, dtype=pl.Utf8).alias(c) for c in missing])
    return df


def coerce_line_records(raw: pl.DataFrame) -> pl.DataFrame:
    """
    Coerce raw line-history rows (all text) into typed line records.

    Args:
        raw (pl.DataFrame): Frame with text columns as read from loc.csv.

    Returns:
        pl.DataFrame: Same rows with
            - line/depth/length as Float64 (NaN when malformed),
            - date as a UTC instant built from date + "T00:00:00" + timezone,
            - datetime as a UTC instant parsed from its ISO-8601 text,
            - remaining columns kept as text.
        Unparsable instants are null.
    """
    df = _ensure_columns(raw, ("datetime", *LINE_NUMERIC_COLUMNS, *LINE_TEXT_COLUMNS))
    df = df.with_columns([pl.col(c).cast(pl.Utf8) for c in df.columns])
    return df.with_columns(
        [coerce_numeric(c) for c in LINE_NUMERIC_COLUMNS]
        + [
            parse_instant(
                pl.concat_str(
                    [
                        pl.col("date").str.strip_chars(),
                        pl.lit("T00:00:00"),
                        pl.col("timezone").str.strip_chars(),
                    ]
                )
            ).alias("date"),
            parse_instant(pl.col("datetime")).alias("datetime"),
        ]
    )


def coerce_peak_status(raw: pl.DataFrame) -> pl.DataFrame:
    """Coerce peak-status rows: id (Int64), status (text), peak_year (Float64, NaN if bad)."""
    df = _ensure_columns(raw, ("id", "status", "peak_year"))
    return df.select(
        _coerce_id().alias("id"),
        pl.col("status").cast(pl.Utf8).str.strip_chars().alias("status"),
        coerce_numeric("peak_year"),
    )


def coerce_oadr(raw: pl.DataFrame) -> pl.DataFrame:
    """Coerce OADR rows: id (Int64) and every ratio column as Float64."""
    df = _ensure_columns(raw, ("id", *OADR_VALUE_COLUMNS))
    return df.select(_coerce_id().alias("id"), *[coerce_numeric(c) for c in OADR_VALUE_COLUMNS])


def coerce_components(raw: pl.DataFrame) -> pl.DataFrame:
    """Coerce decade component rows: id and decade_start (Int64) plus Float64 values."""
    df = _ensure_columns(raw, ("id", "decade_start", *COMPONENT_VALUE_COLUMNS))
    return df.select(
        _coerce_id().alias("id"),
        _coerce_id("decade_start").alias("decade_start"),
        *[coerce_numeric(c) for c in COMPONENT_VALUE_COLUMNS],
    )


# ---------- File readers ----------


def read_text_csv(path: str | Path) -> pl.DataFrame:
    """Read a CSV with every column as text; raise LoadError if the file is unusable."""
    p = Path(path)
    if not p.exists():
        logger.warning("resource not found: %s", p)
        raise LoadError(str(p), "file not found")
    try:
        return pl.read_csv(p, infer_schema_length=0)
    except (pl.exceptions.ComputeError, pl.exceptions.NoDataError, OSError) as e:
        logger.warning("failed to parse %s: %s", p, e)
        raise LoadError(str(p), str(e)) from e


def load_line_records(path: str | Path) -> pl.DataFrame:
    return coerce_line_records(read_text_csv(path))


def load_peak_status(path: str | Path) -> pl.DataFrame:
    return coerce_peak_status(read_text_csv(path))


def load_oadr(path: str | Path) -> pl.DataFrame:
    return coerce_oadr(read_text_csv(path))


def load_components(path: str | Path) -> pl.DataFrame:
    return coerce_components(read_text_csv(path))


def load_world(path: str | Path) -> dict[str, Any]:
    """Load the TopoJSON world boundaries; requires an objects.countries collection."""
    p = Path(path)
    if not p.exists():
        logger.warning("resource not found: %s", p)
        raise LoadError(str(p), "file not found")
    try:
        world = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("failed to parse %s: %s", p, e)
        raise LoadError(str(p), str(e)) from e
    if not isinstance(world, dict) or "countries" not in world.get("objects", {}):
        raise LoadError(str(p), "missing objects.countries")
    return world


def country_names(world: dict[str, Any]) -> dict[int, str]:
    """
    Map numeric country id to display name from TopoJSON geometry properties.

    Geometries without a numeric id are skipped; geometries without a name are omitted so
    callers fall back to "ID <id>".
    """
    out: dict[int, str] = {}
    geometries = world.get("objects", {}).get("countries", {}).get("geometries", [])
    for geom in geometries:
        try:
            cid = int(geom.get("id"))
        except (TypeError, ValueError):
            continue
        name = (geom.get("properties") or {}).get("name")
        if name:
            out[cid] = str(name)
    return out
