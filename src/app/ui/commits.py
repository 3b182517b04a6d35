"""
Commit explorer tab: codebase stats, time slider, brushable scatter and breakdowns.

Each rerun translates widget state into router events (slider first, then the brush, so
the brush is projected with the layout fitted to the filtered commits), dispatches them,
and renders the bound views. The router and its session live in st.session_state and are
rebuilt only when the data source or display settings change.
"""

from __future__ import annotations

from typing import Any, cast

import streamlit as st

from app import charts as app_charts
from app.data import CacheConfig, load_lines
from brushwork.config import Settings
from brushwork.errors import LoadError
from brushwork.router import (
    BrushEnd,
    BrushStart,
    ClearSelection,
    PointerEnter,
    PointerLeave,
    Router,
    SliderInput,
    brush_from_interval,
)
from brushwork.selection import Brush
from brushwork.session import CommitSession

from .helpers import breakdown_markdown, selection_state, stats_markdown, tooltip_markdown

SCATTER_KEY = "commit_scatter"
SLIDER_KEY = "commit_slider"
DETAIL_KEY = "commit_detail"


def session_key(settings: Settings) -> tuple[Any, ...]:
    """Inputs that require a fresh commit session when they change."""
    return (
        str(settings.path(settings.loc_file)),
        settings.display_timezone,
        settings.commit_url_base,
        settings.radius_min,
        settings.radius_max,
        settings.scatter_width,
        settings.scatter_height,
    )


def brush_events(rect: Brush | None, current: Brush | None) -> list[Any]:
    """Events that move the session brush from current to rect (none when equal)."""
    if rect == current:
        return []
    if rect is None:
        return [ClearSelection()]
    return [BrushStart(x=rect.x0, y=rect.y0), BrushEnd(x=rect.x1, y=rect.y1)]


def _router(settings: Settings, cache_cfg: CacheConfig) -> Router | None:
    key = session_key(settings)
    held = st.session_state.get("commit_router")
    if held is not None and held[0] == key:
        return held[1]
    try:
        with st.spinner("Loading line history ..."):
            lines = load_lines(key[0], cfg=cache_cfg)
    except LoadError as e:
        st.session_state.pop("commit_router", None)
        st.info(f"Commit explorer unavailable. {e}")
        return None
    router = Router(CommitSession(lines, settings))
    st.session_state["commit_router"] = (key, router)
    return router


def render_commits_tab(settings: Settings, cache_cfg: CacheConfig) -> None:
    """Render the commit explorer for the configured line-history file."""
    router = _router(settings, cache_cfg)
    if router is None:
        return
    session = cast(CommitSession, router.session)

    # Slider before brush: the brush is projected with the re-fitted layout.
    position = float(st.session_state.get(SLIDER_KEY, session.cutoff.position))
    if position != session.cutoff.position:
        router.dispatch(SliderInput(position=position))

    interval = selection_state(st.session_state.get(SCATTER_KEY), app_charts.BRUSH_PARAM)
    rect = brush_from_interval(interval, session.layout)
    router.replay(brush_events(rect, session.brush.rect))

    detail = st.session_state.get(DETAIL_KEY)
    current = session.hover.entity_id if session.hover is not None else None
    if detail != current:
        router.dispatch(PointerEnter(entity_id=detail) if detail else PointerLeave())

    views = session.refresh()

    st.subheader("Summary")
    st.markdown(stats_markdown(views["stats"].output))

    st.subheader("Commits by time of day")
    st.slider(
        "Show commits until",
        min_value=0.0,
        max_value=100.0,
        value=session.cutoff.position,
        step=0.5,
        format="%.1f%%",
        key=SLIDER_KEY,
    )
    st.caption(views["slider_label"].output)

    chart = app_charts.scatter_view(session, views)
    if session.filtered:
        st.altair_chart(
            chart,
            theme=None,
            use_container_width=False,
            on_select="rerun",
            selection_mode=[app_charts.BRUSH_PARAM],
            key=SCATTER_KEY,
        )
    else:
        # Placeholders carry no selection parameter.
        st.altair_chart(chart, theme=None, use_container_width=True)
    st.caption(views["selection_count"].output)

    c1, c2 = st.columns(2)
    with c1:
        st.markdown("**Languages in selection**")
        body = breakdown_markdown(views["language_breakdown"].output)
        if body:
            st.markdown(body)
        else:
            st.caption("Brush commits to see their language mix.")
        ids = [c.id for c in session.selected]
        st.selectbox(
            "Commit details",
            options=[""] + ids,
            index=0,
            format_func=lambda i: i or "(none)",
            key=DETAIL_KEY,
        )
        tip = views["tooltip"].output
        if tip:
            st.markdown(tooltip_markdown(tip))
    with c2:
        st.markdown("**Lines per file (up to cutoff)**")
        rows = views["files"].output
        if rows:
            st.dataframe(
                [{"file": r["name"], "lines": r["lines"]} for r in rows],
                hide_index=True,
                use_container_width=True,
            )
        else:
            st.caption("No lines up to this point in time.")
