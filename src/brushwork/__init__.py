"""
Brushwork visualization core: loaders, aggregates, selections and keyed view binding.

## Contracts
- Record Loader (`records`): text-first CSV reads with forced numeric coercion (bad cells
  become NaN/null, never an exception); boundary geometry loading.
- Aggregator (`commits`, `demography`): commits grouped from line records in first-seen
  order; country tables joined by numeric id; decade components of change.
- Selection Model (`selection`): inclusive rectangular brush, slider-driven time cutoff,
  capped insertion-ordered country multi-select.
- View Binder (`binder`, `views`): keyed enter/update/exit joins per view; marks and
  Altair specs rebuilt only when their inputs change.
- Interaction Router (`router`): validated event models dispatched to a session, one
  synchronous refresh per event, deterministic replay.

## Notes
- No Streamlit imports anywhere in this package; the `app` package is the UI shell.
- Session state lives in `session.CommitSession` / `session.AgingSession`, never in
  module globals.
- Import DAG: constants/errors/scales -> records -> commits/demography -> selection/
  binder -> views -> session -> router.

## Examples
```python
from brushwork import Click, Router, AgingSession
router = Router(AgingSession(data))
router.replay([Click(country_id=4), Click(country_id=8, modified=True)])
list(router.session.selection)  # [4, 8]
```
"""

from __future__ import annotations

from .binder import BoundView, JoinPatch, ViewBinder, join_keyed
from .commits import Commit, group_into_commits, language_breakdown, summarize_codebase
from .config import Settings
from .demography import AgingData, Country, aggregate_components
from .errors import BrushworkError, ConfigError, LoadError, SelectionError
from .logging import configure_logging
from .router import (
    BrushEnd,
    BrushMove,
    BrushStart,
    Click,
    ClearSelection,
    DecadeInput,
    LegendToggle,
    ModeInput,
    PointerEnter,
    PointerLeave,
    Router,
    SearchInput,
    SliderInput,
    YearsAfterInput,
    parse_event,
)
from .selection import Brush, BrushSelection, CountrySelection, TimeCutoff
from .session import AgingSession, CommitSession

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Config / errors / logging
    "Settings",
    "BrushworkError",
    "LoadError",
    "ConfigError",
    "SelectionError",
    "configure_logging",
    # Aggregates
    "Commit",
    "group_into_commits",
    "language_breakdown",
    "summarize_codebase",
    "AgingData",
    "Country",
    "aggregate_components",
    # Selection
    "Brush",
    "BrushSelection",
    "TimeCutoff",
    "CountrySelection",
    # Binding
    "JoinPatch",
    "BoundView",
    "join_keyed",
    "ViewBinder",
    # Sessions / routing
    "CommitSession",
    "AgingSession",
    "Router",
    "parse_event",
    "PointerEnter",
    "PointerLeave",
    "Click",
    "BrushStart",
    "BrushMove",
    "BrushEnd",
    "SliderInput",
    "YearsAfterInput",
    "DecadeInput",
    "ModeInput",
    "SearchInput",
    "LegendToggle",
    "ClearSelection",
]
