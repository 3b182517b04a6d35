from __future__ import annotations

from typing import Any

import altair as alt

from brushwork.session import CommitSession

__all__ = [
    "BRUSH_PARAM",
    "REGION_PARAM",
    "scatter_view",
    "map_view",
    "slopegraph_view",
    "components_view",
    "message_chart",
]

# Selection parameter names read back from Streamlit's on_select state.
BRUSH_PARAM = "brush"
REGION_PARAM = "region"


# Uniform chart defaults for a professional look
def _apply_chart_defaults(ch: Any) -> Any:
    try:
        return (
            ch.configure_axis(labelFontSize=12, titleFontSize=12, grid=True)
            .configure_legend(labelFontSize=12, titleFontSize=12)
            .configure_title(fontSize=14)
            .configure_view(strokeOpacity=0)
        )
    except Exception:
        # If configuration fails (e.g., non-top-level), return chart as-is
        return ch


def _bound_output(views: dict[str, Any], name: str) -> Any:
    bound = views.get(name)
    return bound.output if bound is not None else None


def message_chart(text: str) -> alt.Chart:
    """Placeholder chart carrying a single message (load failures, empty states)."""
    return _apply_chart_defaults(
        alt.Chart(alt.Data(values=[{"msg": text}]))
        .mark_text(color="#666", fontSize=13)
        .encode(text="msg:N")
        .properties(height=60)
    )


# ----------------------------
# Commit explorer
# ----------------------------


def scatter_view(session: CommitSession, views: dict[str, Any]) -> Any:
    """Bound scatter spec with chart defaults, or a placeholder when nothing is drawable."""
    ch = _bound_output(views, "scatter")
    if ch is None or not session.filtered:
        return message_chart("No commits to show.")
    return _apply_chart_defaults(ch)


# ----------------------------
# Aging explorer
# ----------------------------


def map_view(views: dict[str, Any]) -> Any:
    ch = _bound_output(views, "map")
    if ch is None:
        return message_chart("World boundaries unavailable.")
    # Geoshape layers draw without axes; only view/title defaults apply.
    try:
        return ch.configure_view(strokeOpacity=0).configure_title(fontSize=14)
    except Exception:
        return ch


def slopegraph_view(views: dict[str, Any]) -> Any:
    ch = _bound_output(views, "slopegraph")
    if ch is None:
        return message_chart("Old-age dependency data unavailable.")
    return _apply_chart_defaults(ch)


def components_view(views: dict[str, Any]) -> Any:
    ch = _bound_output(views, "components")
    if ch is None:
        return message_chart("Components of change unavailable.")
    return _apply_chart_defaults(ch)
