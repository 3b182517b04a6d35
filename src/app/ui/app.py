"""
Streamlit application orchestrator for Brushwork.

This module composes the global header and both explorer tabs while delegating
supporting concerns to focused modules under app.ui.* (header, commits, aging, helpers).

Responsibilities:
    - Configure Streamlit page and logging.
    - Render global header (data directory, timezone, cache prefs).
    - Mount tab content (Commits, Peak aging).

Notes:
    - Charts are produced by brushwork.views and finished by app.charts.
    - Each tab owns its router/session in st.session_state; a load failure in one tab
      never affects the other.
"""

from __future__ import annotations

from dataclasses import replace

import streamlit as st

from brushwork.config import Settings
from brushwork.logging import configure_logging

from .aging import render_aging_tab
from .commits import render_commits_tab
from .header import render_header


def streamlit_app(default_data_dir: str | None = None) -> None:
    """Render the Brushwork Streamlit application.

    Args:
        default_data_dir (str | None): Optional data directory overriding the configured
            one (CLI --data-dir).

    Returns:
        None
    """
    st.set_page_config(page_title="Brushwork", layout="wide")

    base = Settings.load()
    if default_data_dir:
        base = replace(base, data_dir=default_data_dir)
    base, problems = base.repaired()
    configure_logging(base.log_level)
    for message in problems:
        st.warning(message)

    settings, cache_cfg = render_header(base=base)

    tab_commits, tab_aging = st.tabs(["Commits", "Peak aging"])
    with tab_commits:
        render_commits_tab(settings, cache_cfg)
    with tab_aging:
        render_aging_tab(settings, cache_cfg)
