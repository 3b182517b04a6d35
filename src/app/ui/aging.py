"""
Peak-aging explorer tab: status map with legend filters, OADR slopegraph, components chart.

Widget callbacks only record pending actions in st.session_state; the tab turns pending
actions and changed widget values into router events at the top of each rerun, before any
view is rendered, so every view reads the same selection.

Map clicks arrive as the client-side toggle set of region ids. The map's select callback
queues the difference from the previous set as the clicked id; a rerun without a map
event queues nothing. The map widget gets a fresh key whenever its spec is rebuilt, and
the remembered set is emptied with it. The "Compare" toggle supplies the shift modifier.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any, cast

import streamlit as st

from app import charts as app_charts
from app.data import CacheConfig, load_aging_tables
from brushwork.config import Settings
from brushwork.constants import STATUS_DOMAIN, YEARS_AFTER_CHOICES
from brushwork.demography import decade_label
from brushwork.router import (
    Click,
    ClearSelection,
    DecadeInput,
    LegendToggle,
    ModeInput,
    Router,
    SearchInput,
    YearsAfterInput,
    infer_clicked_id,
)
from brushwork.session import AgingSession

from .helpers import legend_swatch, point_ids, selection_state, summary_markdown

MAP_KEY = "aging_map"
MAP_PREV_KEY = "aging_map_prev"
MAP_WIDGET_KEY = "aging_map_widget"
MAP_GEN_KEY = "aging_map_generation"
MAP_SPEC_KEY = "aging_map_spec"
PENDING_CLICK_KEY = "aging_pending_click"
COMPARE_KEY = "aging_compare"
SEARCH_KEY = "aging_search"
PENDING_SEARCH_KEY = "aging_pending_search"
PENDING_CLEAR_KEY = "aging_pending_clear"
YEARS_KEY = "aging_years_after"
DECADE_KEY = "aging_decade"
MODE_KEY = "aging_mode"

MODE_LABELS = {"abs": "Absolute change", "per1k": "Rate per 1,000"}


def session_key(settings: Settings) -> tuple[Any, ...]:
    return (
        settings.data_dir,
        settings.peak_status_file,
        settings.oadr_file,
        settings.components_file,
        settings.world_file,
        settings.max_selected,
    )


def legend_key(status: str) -> str:
    return f"aging_legend_{status}"


def map_widget_key(state: Mapping[str, Any]) -> str:
    return str(state.get(MAP_WIDGET_KEY, MAP_KEY))


def record_map_click(state: MutableMapping[str, Any]) -> None:
    """Queue the region whose toggle changed since the last map event."""
    current = point_ids(selection_state(state.get(map_widget_key(state)), app_charts.REGION_PARAM))
    clicked = infer_clicked_id(list(state.get(MAP_PREV_KEY, [])), current)
    state[MAP_PREV_KEY] = current
    if clicked is not None:
        state[PENDING_CLICK_KEY] = clicked


def sync_map_widget(state: MutableMapping[str, Any], spec: Any) -> str:
    """
    Return the widget key to render the map under.

    A rebuilt spec is drawn by a fresh widget whose toggle set starts empty, so the
    remembered set is emptied with it.
    """
    if MAP_WIDGET_KEY not in state or state.get(MAP_SPEC_KEY) is not spec:
        generation = int(state.get(MAP_GEN_KEY, -1)) + 1
        state[MAP_GEN_KEY] = generation
        state[MAP_WIDGET_KEY] = f"{MAP_KEY}_{generation}"
        state[MAP_SPEC_KEY] = spec
        state[MAP_PREV_KEY] = []
    return map_widget_key(state)


def pending_events(state: Mapping[str, Any], session: AgingSession) -> list[Any]:
    """
    Translate widget state into router events, in a fixed order.

    Order: clear, map click, search, legend visibility, years-after, decade, mode.

    Args:
        state: st.session_state or any mapping with the same keys.
        session (AgingSession): Session whose current values are compared against.

    Returns:
        list: Events to dispatch (possibly empty).
    """
    events: list[Any] = []
    if state.get(PENDING_CLEAR_KEY):
        events.append(ClearSelection())

    clicked = state.get(PENDING_CLICK_KEY)
    if clicked is not None:
        events.append(Click(country_id=int(clicked), modified=bool(state.get(COMPARE_KEY, False))))

    query = state.get(PENDING_SEARCH_KEY)
    if query:
        events.append(SearchInput(query=str(query)))

    for status in STATUS_DOMAIN:
        visible = bool(state.get(legend_key(status), True))
        if visible != (status not in session.hidden_statuses):
            events.append(LegendToggle(status=status, visible=visible))

    years = state.get(YEARS_KEY)
    if years is not None and int(years) != session.years_after:
        events.append(YearsAfterInput(years=int(years)))
    decade = state.get(DECADE_KEY)
    if decade is not None and int(decade) != session.decade:
        events.append(DecadeInput(decade=int(decade)))
    mode = state.get(MODE_KEY)
    if mode is not None and mode != session.mode:
        events.append(ModeInput(mode=mode))
    return events


def _queue_search() -> None:
    st.session_state[PENDING_SEARCH_KEY] = st.session_state.get(SEARCH_KEY, "")


def _queue_clear() -> None:
    st.session_state[PENDING_CLEAR_KEY] = True


def _on_map_select() -> None:
    record_map_click(st.session_state)


def _router(settings: Settings, cache_cfg: CacheConfig) -> tuple[Router | None, dict[str, str]]:
    key = session_key(settings)
    held = st.session_state.get("aging_router")
    if held is not None and held[0] == key:
        return held[1], held[2]
    with st.spinner("Loading country tables ..."):
        tables = load_aging_tables(settings, cfg=cache_cfg)
    if tables.data is None:
        st.session_state.pop("aging_router", None)
        return None, tables.errors
    router = Router(AgingSession(tables.data, tables.world, settings))
    st.session_state["aging_router"] = (key, router, tables.errors)
    st.session_state.pop(MAP_SPEC_KEY, None)
    return router, tables.errors


def render_aging_tab(settings: Settings, cache_cfg: CacheConfig) -> None:
    """Render the peak-aging explorer for the configured country tables."""
    router, errors = _router(settings, cache_cfg)
    if router is None:
        st.info(f"Peak-aging explorer unavailable. {errors.get('peak_status', '')}")
        return
    session = cast(AgingSession, router.session)

    state = st.session_state
    router.replay(pending_events(state, session))
    state[PENDING_CLICK_KEY] = None
    state[PENDING_SEARCH_KEY] = ""
    state[PENDING_CLEAR_KEY] = False

    views = session.refresh()

    left, right = st.columns([0.72, 0.28])
    with right:
        st.markdown("**Peak status**")
        for entry in views["legend"].output:
            st.checkbox(
                entry["status"],
                value=entry["visible"],
                key=legend_key(entry["status"]),
            )
            st.markdown(legend_swatch(entry["color"], entry["status"]), unsafe_allow_html=True)
        st.toggle("Compare (shift-click)", value=False, key=COMPARE_KEY)
        st.text_input(
            "Find a country",
            value="",
            placeholder="name, status, peak year or id",
            key=SEARCH_KEY,
            on_change=_queue_search,
        )
        st.button("Clear selection", on_click=_queue_clear)
        selected = [session.data.name_for(i) for i in session.selection]
        st.caption(", ".join(selected) if selected else "Nothing selected.")
        summary = views["summary"].output
        if summary:
            st.markdown(summary_markdown(summary))

    with left:
        if session.world is None:
            st.info(f"Map unavailable. {errors.get('world', '')}")
        else:
            st.altair_chart(
                app_charts.map_view(views),
                theme=None,
                use_container_width=True,
                on_select=_on_map_select,
                selection_mode=[app_charts.REGION_PARAM],
                key=sync_map_widget(state, views["map"].output),
            )

    c1, c2 = st.columns(2)
    with c1:
        st.markdown("**Old-age dependency: at peak vs. later**")
        st.selectbox(
            "Years after peak",
            options=list(YEARS_AFTER_CHOICES),
            index=YEARS_AFTER_CHOICES.index(session.years_after),
            key=YEARS_KEY,
        )
        if "oadr" in errors:
            st.info(f"Old-age dependency data unavailable. {errors['oadr']}")
        else:
            st.altair_chart(app_charts.slopegraph_view(views), theme=None)
    with c2:
        st.markdown("**Components of change**")
        if "components" in errors or not session.decades:
            st.info(f"Components of change unavailable. {errors.get('components', '')}")
        else:
            ctl1, ctl2 = st.columns(2)
            with ctl1:
                st.selectbox(
                    "Decade",
                    options=session.decades,
                    index=session.decades.index(session.decade),
                    format_func=decade_label,
                    key=DECADE_KEY,
                )
            with ctl2:
                st.radio(
                    "Mode",
                    options=list(MODE_LABELS),
                    index=list(MODE_LABELS).index(session.mode),
                    format_func=lambda m: MODE_LABELS[m],
                    horizontal=True,
                    key=MODE_KEY,
                )
            st.altair_chart(app_charts.components_view(views), theme=None)
