"""
Brushwork App UI package.

This package contains the decomposed Streamlit UI for the Brushwork explorers. It exposes
high-level orchestration and focused modules for separate concerns.

Modules:
    - app: Streamlit application orchestrator (streamlit_app).
    - header: Global header (data directory, timezone, cache preferences).
    - commits: Commit explorer tab (stats, slider, brushable scatter, breakdowns).
    - aging: Peak-aging explorer tab (map, legend filters, slopegraph, components).
    - helpers: Small cross-cutting helpers (widget-state readers, text panels).

Usage:
    from app.ui import streamlit_app
    streamlit_app(default_data_dir="data")
"""

from __future__ import annotations

from .app import streamlit_app
from .header import render_header

__all__ = [
    "streamlit_app",
    "render_header",
]
