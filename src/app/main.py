"""
Brushwork App entrypoint.

This module provides the CLI entrypoint to launch the Streamlit UI. It defers
all UI composition to the app.ui package and exists solely to start Streamlit
programmatically or render directly when already running under Streamlit.

Usage:
    - Python execution (hands process to Streamlit):
        python -m app.main --data-dir data

    - Streamlit direct:
        streamlit run src/app/main.py -- --data-dir data
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path

from app.ui import streamlit_app


def main(argv: list[str] | None = None) -> None:
    """Console entrypoint that launches Streamlit with the Brushwork UI.

    If already executing within a Streamlit server (environment variable
    STREAMLIT_SERVER_PORT is set), this function renders the app directly.
    Otherwise, it execs "python -m streamlit run <this_module>" to leverage
    Streamlit's reloader and argument parsing, passing through any supported
    options after "--".

    Args:
        argv (list[str] | None): Optional list of CLI arguments. If None,
            sys.argv[1:] is used.

    Examples:
        python -m app.main --data-dir data
        streamlit run src/app/main.py -- --data-dir data
    """
    args = list(sys.argv[1:] if argv is None else argv)

    parser = argparse.ArgumentParser(description="Brushwork Streamlit App")
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory with loc.csv and the country tables (overrides config).",
    )
    ns = parser.parse_args(args)

    # If invoked within Streamlit, just render
    if os.environ.get("STREAMLIT_SERVER_PORT"):
        streamlit_app(default_data_dir=ns.data_dir)
        return

    # Otherwise, exec streamlit run on this module to take over the process
    app_path = Path(__file__).resolve()
    cmd = [sys.executable, "-m", "streamlit", "run", str(app_path)]
    if ns.data_dir:
        cmd += ["--", "--data-dir", ns.data_dir]

    try:
        os.execv(sys.executable, cmd)
    except OSError:
        subprocess.run(cmd, check=False)


if __name__ == "__main__":
    # Support: --data-dir after '--' when using `streamlit run`
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--data-dir", default=None)
    ns, _ = parser.parse_known_args(sys.argv[1:])
    streamlit_app(default_data_dir=ns.data_dir)
