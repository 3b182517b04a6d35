"""
Shared UI helper utilities for the Brushwork Streamlit application.

This module centralizes small cross-cutting helpers (time formatting, widget-state
readers, markdown for text panels) used by both explorer tabs. Keeping these here avoids
circular imports and keeps the per-tab modules lean.

Notes:
    - Pure functions only: no Streamlit state manipulation happens here, so every helper
      is testable without a running server.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from brushwork.commits import Stat
from brushwork.views import format_percent


def humanize_ago(ts: float) -> str:
    """Convert a UNIX timestamp into a short humanized age string.

    Args:
        ts (float): UNIX timestamp (seconds since epoch).

    Returns:
        str: Humanized string like "32s ago", "5m ago", "2h ago", "3d ago",
        or "n/a" if conversion fails.
    """
    try:
        dt = datetime.fromtimestamp(ts, tz=UTC)
        now = datetime.now(tz=UTC)
        delta = (now - dt).total_seconds()
        if delta < 60:
            return f"{int(delta)}s ago"
        if delta < 3600:
            return f"{int(delta // 60)}m ago"
        if delta < 86400:
            return f"{int(delta // 3600)}h ago"
        return f"{int(delta // 86400)}d ago"
    except (OverflowError, OSError, ValueError):
        return "n/a"


def selection_state(widget_state: Any, param: str) -> Any:
    """Read one selection parameter from a Streamlit chart's on_select state.

    Args:
        widget_state (Any): Value stored under the chart's key (mapping-like or None).
        param (str): Selection parameter name.

    Returns:
        Any: The parameter's value (dict for intervals, list for points) or None.
    """
    if not isinstance(widget_state, Mapping):
        return None
    selection = widget_state.get("selection")
    if not isinstance(selection, Mapping):
        return None
    return selection.get(param) or None


def point_ids(points: Any, field: str = "cid") -> list[int]:
    """Extract integer ids from a point selection value (list of field mappings)."""
    out: list[int] = []
    if not isinstance(points, Sequence) or isinstance(points, str):
        return out
    for p in points:
        if not isinstance(p, Mapping) or p.get(field) is None:
            continue
        try:
            out.append(int(p[field]))
        except (TypeError, ValueError):
            continue
    return out


def stats_markdown(stats: Sequence[Stat]) -> str:
    """Render the codebase summary as a compact definition list.

    Args:
        stats (Sequence[Stat]): Ordered label/value pairs.

    Returns:
        str: Markdown, one bold label per line.
    """
    return "\n".join(f"- **{s.label}:** {s.value}" for s in stats)


def breakdown_markdown(rows: Sequence[Mapping[str, Any]]) -> str:
    """Language breakdown lines like "**py**: 12 lines (40%)"; empty when nothing is selected."""
    return "\n".join(f"- **{r['category']}**: {r['label']}" for r in rows)


def tooltip_markdown(tip: Mapping[str, Any] | None) -> str:
    """Commit detail card; the id links to the commit when a URL is known."""
    if not tip:
        return ""
    ident = f"[{tip['id']}]({tip['url']})" if tip.get("url") else str(tip["id"])
    return "\n".join(
        [
            f"**Commit:** {ident}",
            f"**Date:** {tip['date']}",
            f"**Time:** {tip['time']}",
            f"**Author:** {tip['author']}",
            f"**Lines edited:** {tip['lines']}",
        ]
    )


def _pct(value: Any) -> str:
    return format_percent(float(value)) if value is not None else "n/a"


def summary_markdown(card: Mapping[str, Any] | None) -> str:
    """Summary card for the last selected country."""
    if not card:
        return ""
    peak = card["peak_year"] if card.get("peak_year") is not None else "n/a"
    lines = [
        f"**{card['name']}**",
        f"Status: {card['status']} · Peak year: {peak}",
    ]
    if card.get("oadr_peak") is not None or card.get("oadr_after") is not None:
        lines.append(
            f"OADR at peak: {_pct(card.get('oadr_peak'))} · "
            f"Peak + {card['years_after']}: {_pct(card.get('oadr_after'))}"
        )
    else:
        lines.append("No old-age dependency data.")
    return "  \n".join(lines)


def legend_swatch(color: str, label: str) -> str:
    """Inline colored square followed by a label (markdown with HTML)."""
    return (
        f'<span style="display:inline-block;width:10px;height:10px;'
        f'background:{color};margin-right:6px"></span>{label}'
    )
