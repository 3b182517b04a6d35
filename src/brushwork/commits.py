"""
Aggregator for the version-history dataset.

Groups line records into Commit entities and computes derived views over them: the
language (category) breakdown of a commit set, the per-file line counts of a commit set,
and the codebase summary stat list.

Policy
- Grouping preserves first-seen order of commit ids.
- A commit's representative metadata (author, date, time, timezone, instant) comes from the
  first line record of its group, not an aggregate.
- hour_frac = hour + minute / 60 read from the instant in the display timezone when one
  is configured, otherwise in the UTC offset the commit was recorded with.
- A commit holds its own line records (Commit.lines); the reference is excluded from
  equality, repr and to_dict().
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

import polars as pl

from .constants import DAY_PERIODS
from .scales import is_finite

__all__ = [
    "Commit",
    "COMMIT_SCHEMA",
    "group_into_commits",
    "commits_to_frame",
    "lines_of",
    "parse_offset",
    "local_time",
    "hour_fraction",
    "day_period",
    "CategoryShare",
    "language_breakdown",
    "FileLines",
    "file_breakdown",
    "Stat",
    "summarize_codebase",
    "round_half_up",
]

COMMIT_SCHEMA: dict[str, Any] = {
    "id": pl.Utf8,
    "url": pl.Utf8,
    "author": pl.Utf8,
    "date": pl.Datetime("us", "UTC"),
    "time": pl.Utf8,
    "timezone": pl.Utf8,
    "datetime": pl.Datetime("us", "UTC"),
    "hour_frac": pl.Float64,
    "total_lines": pl.Int64,
}


@dataclass(frozen=True)
class Commit:
    """
    A commit derived from its line records.

    Attributes:
        id (str): Commit hash.
        author (str | None): Author of the first line record.
        date (datetime | None): Day instant (midnight in the commit's offset), None if invalid.
        time (str | None): Time-of-day text as recorded.
        timezone (str | None): Offset text, e.g. "-07:00".
        datetime (datetime | None): Absolute instant, None if invalid.
        hour_frac (float): Fractional hour of day in [0, 24), NaN when the instant is invalid.
        total_lines (int): Number of line records in the group.
        url (str | None): Link to the commit when a URL base is configured.
        lines (pl.DataFrame): The commit's line records (not compared, not serialized).
    """

    id: str
    author: str | None
    date: datetime | None
    time: str | None
    timezone: str | None
    datetime: datetime | None
    hour_frac: float
    total_lines: int
    url: str | None = None
    lines: pl.DataFrame = field(default_factory=pl.DataFrame, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Serializable fields only (the line-record reference is left out)."""
        return {
            "id": self.id,
            "url": self.url,
            "author": self.author,
            "date": self.date,
            "time": self.time,
            "timezone": self.timezone,
            "datetime": self.datetime,
            "hour_frac": self.hour_frac,
            "total_lines": self.total_lines,
        }


_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


def parse_offset(text: str | None) -> tzinfo | None:
    """Fixed offset for text like "-07:00", "+0530" or "Z"; None when unreadable."""
    if not isinstance(text, str) or not text:
        return None
    t = text.strip()
    if t in ("Z", "z"):
        return UTC
    m = _OFFSET_RE.match(t)
    if m is None:
        return None
    sign, hh, mm = m.groups()
    delta = timedelta(hours=int(hh), minutes=int(mm))
    if delta >= timedelta(hours=24):
        return None
    return timezone(-delta if sign == "-" else delta)


def local_time(instant: datetime, tz: str = "", offset: str | None = None) -> datetime:
    """
    Wall-clock view of an instant.

    A non-empty tz (IANA name) wins. Otherwise the recorded offset text is used, and
    when that is unreadable the instant is returned unchanged.
    """
    if tz:
        return instant.astimezone(ZoneInfo(tz))
    fixed = parse_offset(offset)
    return instant.astimezone(fixed) if fixed is not None else instant


def hour_fraction(instant: datetime | None, tz: str = "", offset: str | None = None) -> float:
    """Return hour + minute/60 of the local instant, or NaN when it is missing."""
    if instant is None:
        return math.nan
    local = local_time(instant, tz, offset)
    return local.hour + local.minute / 60


def group_into_commits(
    lines: pl.DataFrame, *, url_base: str = "", tz: str = ""
) -> list[Commit]:
    """
    Partition line records by commit id into Commit entities.

    Args:
        lines (pl.DataFrame): Typed line records (see brushwork.records.coerce_line_records).
        url_base (str): Prefix for commit URLs; empty disables URLs.
        tz (str): Display timezone for hour_frac; empty reads each commit in its own
            recorded offset.

    Returns:
        list[Commit]: One commit per distinct id, in first-seen order. Each commit's
        total_lines equals the height of its line-record slice.

    Examples:
        >>> import polars as pl
        >>> from brushwork.commits import group_into_commits
        >>> df = pl.DataFrame({"commit": ["a", "a", "b"], "datetime": [None, None, None]})
        >>> [(c.id, c.total_lines) for c in group_into_commits(df)]
        [('a', 2), ('b', 1)]
    """
    if lines.is_empty():
        return []
    commits: list[Commit] = []
    for part in lines.partition_by("commit", maintain_order=True, include_key=True):
        first = part.row(0, named=True)
        cid = "" if first.get("commit") is None else str(first["commit"])
        instant = first.get("datetime")
        commits.append(
            Commit(
                id=cid,
                author=first.get("author"),
                date=first.get("date"),
                time=first.get("time"),
                timezone=first.get("timezone"),
                datetime=instant,
                hour_frac=hour_fraction(instant, tz, first.get("timezone")),
                total_lines=part.height,
                url=(url_base + cid) if url_base else None,
                lines=part,
            )
        )
    return commits


def commits_to_frame(commits: Iterable[Commit]) -> pl.DataFrame:
    """Flatten commits to a frame (one row per commit, no line records)."""
    return pl.DataFrame([c.to_dict() for c in commits], schema=COMMIT_SCHEMA)


def lines_of(commits: Sequence[Commit]) -> pl.DataFrame:
    """Union of the line records owned by the given commits (empty frame if none)."""
    parts = [c.lines for c in commits if c.lines.height > 0]
    if not parts:
        return pl.DataFrame()
    return pl.concat(parts, how="vertical_relaxed")


# ---------- Breakdowns ----------


@dataclass(frozen=True)
class CategoryShare:
    category: str
    lines: int
    proportion: float


def language_breakdown(commits: Sequence[Commit]) -> list[CategoryShare]:
    """
    Proportion of line records by category over the union of the commits' lines.

    An empty commit set yields an empty breakdown (it never falls back to all commits).
    Categories keep first-seen order.
    """
    lines = lines_of(commits)
    if lines.is_empty():
        return []
    total = lines.height
    counts = lines.group_by("type", maintain_order=True).agg(pl.len().alias("n"))
    return [
        CategoryShare(category=str(t), lines=int(n), proportion=int(n) / total)
        for t, n in counts.iter_rows()
    ]


@dataclass(frozen=True)
class FileLines:
    name: str
    lines: int


def file_breakdown(commits: Sequence[Commit]) -> list[FileLines]:
    """Line counts per file over the commits' lines, files in first-seen order."""
    lines = lines_of(commits)
    if lines.is_empty():
        return []
    counts = lines.group_by("file", maintain_order=True).agg(pl.len().alias("n"))
    return [FileLines(name=str(f), lines=int(n)) for f, n in counts.iter_rows()]


# ---------- Codebase summary ----------


@dataclass(frozen=True)
class Stat:
    label: str
    value: str


def round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def day_period(hour: int) -> str:
    for label, start, end in DAY_PERIODS:
        if start <= hour < end:
            return label
    return "night"


def _local_hour(lines: pl.DataFrame, tz: str) -> pl.Expr:
    """Hour of each line's instant in tz, or in its recorded offset when tz is empty."""
    if tz:
        return pl.col("datetime").dt.convert_time_zone(tz).dt.hour()
    if "timezone" not in lines.columns:
        return pl.col("datetime").dt.hour()
    text = pl.col("timezone").cast(pl.Utf8).str.strip_chars()
    pattern = r"^([+-])(\d{2}):?(\d{2})$"
    magnitude = (
        text.str.extract(pattern, 2).cast(pl.Int64, strict=False) * 60
        + text.str.extract(pattern, 3).cast(pl.Int64, strict=False)
    )
    minutes = (
        pl.when(text.str.extract(pattern, 1) == "-").then(-magnitude).otherwise(magnitude).fill_null(0)
    )
    return (pl.col("datetime") + pl.duration(minutes=minutes)).dt.hour()


def summarize_codebase(
    lines: pl.DataFrame, commits: Sequence[Commit], *, tz: str = ""
) -> list[Stat]:
    """
    Summary statistics over every line record.

    Computes total LOC, total commits, number of files, average file length (mean of the
    max line number per file), the longest file, average line length and the day period
    with the most line records. Non-finite numbers are skipped.

    Args:
        lines (pl.DataFrame): Typed line records.
        commits (Sequence[Commit]): Commits derived from the same lines.
        tz (str): Display timezone used to bucket instants into day periods; empty
            uses each line's recorded offset.

    Returns:
        list[Stat]: Ordered label/value pairs; values are display strings ("n/a" when
        a figure cannot be computed).
    """
    stats = [
        Stat("Total LOC", str(lines.height)),
        Stat("Total commits", str(len(commits))),
    ]
    if lines.is_empty():
        stats.append(Stat("Number of files", "0"))
        return stats

    stats.append(Stat("Number of files", str(lines.get_column("file").n_unique())))

    file_lengths = (
        lines.group_by("file", maintain_order=True)
        .agg(pl.col("line").fill_nan(None).max().alias("length"))
        .filter(pl.col("length").is_not_null())
    )
    if file_lengths.height:
        avg = file_lengths.get_column("length").mean()
        stats.append(Stat("Average file length", f"{round_half_up(float(avg))} lines"))
        # First file reaching the maximum wins ties.
        max_len = file_lengths.get_column("length").max()
        longest = file_lengths.filter(pl.col("length") == max_len).row(0, named=True)
        stats.append(Stat("Longest file", f"{longest['file']} ({round_half_up(float(longest['length']))} lines)"))
    else:
        stats.append(Stat("Average file length", "n/a"))
        stats.append(Stat("Longest file", "n/a"))

    avg_line = lines.select(pl.col("length").fill_nan(None).mean()).item()
    stats.append(
        Stat(
            "Average line length",
            f"{round_half_up(float(avg_line))} characters" if is_finite(avg_line) else "n/a",
        )
    )

    periods = (
        lines.select(_local_hour(lines, tz).alias("hour"))
        .drop_nulls()
        .group_by("hour", maintain_order=True)
        .agg(pl.len().alias("n"))
    )
    tally: dict[str, int] = {}
    for hour, n in periods.iter_rows():
        label = day_period(int(hour))
        tally[label] = tally.get(label, 0) + int(n)
    busiest = max(tally, key=lambda k: tally[k]) if tally else "n/a"
    stats.append(Stat("Most work done", busiest))
    return stats
