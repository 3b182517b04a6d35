"""
Top-level Streamlit app package.

This package hosts the interactive Brushwork explorers (Streamlit) decoupled from the
brushwork.* core. Selection state, aggregation and chart specs live in brushwork; the
Streamlit UI shell, cached loaders and chart finishing live here.

CLI entrypoint (configured in pyproject.toml):
    brushwork-app = app.main:main
"""

from __future__ import annotations
