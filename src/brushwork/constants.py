"""
Brushwork defaults shared by the loaders, selection model and view binder.

Defines palettes, category domains, fixed chart geometry and selection limits. This
module is zero-IO and uses only the Python standard library.

Notes:
    - Settings in brushwork.config consume these values as defaults; change them here.
    - Color palettes are keyed by category so every view colors an entity identically.
"""

from __future__ import annotations

__all__ = [
    "MAX_SELECTED",
    "RADIUS_RANGE",
    "SCATTER_WIDTH",
    "SCATTER_HEIGHT",
    "SCATTER_MARGIN",
    "SLIDER_RANGE",
    "STATUS_DOMAIN",
    "STATUS_COLORS",
    "NO_DATA_COLOR",
    "WATER_COLOR",
    "YEARS_AFTER_CHOICES",
    "OADR_COLUMNS",
    "COMPONENT_COLORS",
    "CATEGORY_SCHEME",
    "DAY_PERIODS",
]

# Country multi-select cap.
MAX_SELECTED: int = 5

# Scatter-plot circle radius range in pixels (sqrt scale, so area tracks magnitude).
RADIUS_RANGE: tuple[float, float] = (2.0, 30.0)

# Scatter-plot viewBox and margins (pixel space used by the brush).
SCATTER_WIDTH: int = 1000
SCATTER_HEIGHT: int = 600
SCATTER_MARGIN: dict[str, int] = {"top": 10, "right": 10, "bottom": 30, "left": 20}

# Time slider position range.
SLIDER_RANGE: tuple[float, float] = (0.0, 100.0)

# Peak-aging status categories and their fixed palette.
STATUS_DOMAIN: tuple[str, ...] = ("peaked", "2050", "2055plus", "no_peak")
STATUS_COLORS: dict[str, str] = {
    "peaked": "#6e40aa",
    "2050": "#32a852",
    "2055plus": "#2a7fff",
    "no_peak": "#b3b3b3",
}
NO_DATA_COLOR: str = "#e8e8e8"
WATER_COLOR: str = "#eef6fb"

# Offsets (years after peak) with an OADR sample, mapped to their column.
YEARS_AFTER_CHOICES: tuple[int, ...] = (10, 15, 20, 25, 30)
OADR_COLUMNS: dict[int, str] = {n: f"oadr_p{n}" for n in YEARS_AFTER_CHOICES}

COMPONENT_COLORS: dict[str, str] = {
    "Births": "#69b34c",
    "Deaths": "#d73027",
    "Net migration": "#2b8cbe",
    "Δ population": "#7f7f7f",
    "Natural (per 1k)": "#69b34c",
    "Migration (per 1k)": "#2b8cbe",
    "Total (per 1k)": "#7f7f7f",
}

# Tableau10, used to key slopegraph series by country id.
CATEGORY_SCHEME: tuple[str, ...] = (
    "#4e79a7",
    "#f28e2c",
    "#e15759",
    "#76b7b2",
    "#59a14f",
    "#edc949",
    "#af7aa1",
    "#ff9da7",
    "#9c755f",
    "#bab0ab",
)

# (label, start hour inclusive, end hour exclusive); anything else is "night".
DAY_PERIODS: tuple[tuple[str, int, int], ...] = (
    ("morning", 6, 12),
    ("afternoon", 12, 18),
    ("evening", 18, 21),
)
