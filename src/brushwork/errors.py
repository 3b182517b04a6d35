"""
Custom exceptions for brushwork.

Purpose
- Provide error types that map cleanly onto the failure taxonomy of the visualization core.
- Keep recoverable data problems (missing joins, malformed fields, absent render targets)
  out of the exception path: those resolve to sentinels or no-ops instead.

Mapping
- LoadError: a bulk read or parse of a tabular/geometry resource failed. The shell shows a
  placeholder in the dependent view only.
- ConfigError: invalid or unsupported settings.
- SelectionError: programmer misuse of the selection model (never raised for user input).

Notes
- These exceptions do not perform any IO and are stdlib-only.
"""

from __future__ import annotations

__all__ = [
    "BrushworkError",
    "LoadError",
    "ConfigError",
    "SelectionError",
]


class BrushworkError(Exception):
    """Base class for brushwork errors."""


class LoadError(BrushworkError):
    """
    Raised when a resource cannot be read or parsed as a whole.

    Attributes:
        path (str): Resource path that failed to load.

    Notes:
        A single malformed row never raises; its fields coerce to NaN/None instead.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to load {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigError(BrushworkError):
    """
    Raised when settings are invalid.

    Examples:
        - max_selected < 1
        - radius_min greater than radius_max
    """


class SelectionError(BrushworkError, ValueError):
    """Raised on misuse of the selection model (e.g., an unknown selection kind)."""
