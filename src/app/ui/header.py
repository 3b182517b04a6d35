"""
Header (global controls) for the Brushwork Streamlit application.

This module renders the top-of-page controls, including:
- Data directory selection with a last-modified caption.
- Display timezone used for hour-of-day axes and labels.
- Cache preferences panel.
- Construction of the Settings and CacheConfig used by loaders and sessions.

Notes:
    - Performs no heavy IO; loaders in app.data do the reading.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import streamlit as st

from app.data import CacheConfig
from brushwork.config import Settings

from .helpers import humanize_ago


def render_header(*, base: Settings) -> tuple[Settings, CacheConfig]:
    """Render the global header and return the effective settings and cache config.

    Args:
        base (Settings): Settings resolved from env/TOML/CLI; header widgets override
            data_dir and display_timezone for the current session.

    Returns:
        tuple[Settings, CacheConfig]: (settings, cache_config)
    """
    st.markdown("### Brushwork")

    # Session defaults
    if "data_dir" not in st.session_state:
        st.session_state["data_dir"] = base.data_dir
    if "display_timezone" not in st.session_state:
        st.session_state["display_timezone"] = base.display_timezone
    if "cache_ttl" not in st.session_state:
        st.session_state["cache_ttl"] = 600
    if "cache_persist" not in st.session_state:
        st.session_state["cache_persist"] = False

    c1, c2, c3 = st.columns([0.45, 0.30, 0.25])

    with c1:
        data_dir = st.text_input(
            "Data directory",
            value=str(st.session_state["data_dir"]),
            help="Folder holding the line-history CSV and the country tables.",
            key="data_dir_header",
        )
        st.session_state["data_dir"] = data_dir or base.data_dir
        p = Path(st.session_state["data_dir"])
        if p.is_dir():
            st.caption(f"Updated {humanize_ago(p.stat().st_mtime)}")
        else:
            st.caption("Directory does not exist; views will show placeholders.")

    with c2:
        tz = st.text_input(
            "Display timezone",
            value=str(st.session_state["display_timezone"]),
            help=(
                "IANA zone for hour-of-day and date labels, e.g. UTC or Europe/Paris. "
                "Leave empty to read each commit in its own recorded offset."
            ),
            key="display_timezone_header",
        )
        st.session_state["display_timezone"] = tz.strip()

    with c3:
        with st.expander("Cache", expanded=False):
            ttl = st.number_input(
                "Cache TTL (seconds)",
                min_value=0,
                value=int(st.session_state["cache_ttl"]),
                step=60,
                help="0 disables TTL",
                key="cache_ttl_header",
            )
            persist = st.checkbox(
                "Persist to disk",
                value=bool(st.session_state["cache_persist"]),
                key="cache_persist_header",
            )
            st.session_state["cache_ttl"] = int(ttl)
            st.session_state["cache_persist"] = bool(persist)

    settings = replace(
        base,
        data_dir=str(st.session_state["data_dir"]),
        display_timezone=str(st.session_state["display_timezone"]),
    )
    settings, problems = settings.repaired()
    for message in problems:
        st.warning(message)
    cache_cfg = CacheConfig(
        ttl=int(st.session_state["cache_ttl"]) if int(st.session_state["cache_ttl"]) > 0 else None,
        persist=bool(st.session_state["cache_persist"]),
    )
    return settings, cache_cfg
