"""
Interaction Router: discrete, validated interaction events and a single dispatch loop.

Every user input is expressed as a frozen pydantic event. Router.dispatch applies one event
to its session's selection state and then calls the session's refresh() synchronously, so
each input produces one complete, consistent re-render. A recorded list of events can be
replayed deterministically with Router.replay.

Responsibilities
- Define the event models (hover, click, brush, slider, search, legend, controls, clear).
- Route each event to the owning session; events that do not apply to the session raise
  SelectionError (a wiring mistake, not a user error).
- Convert renderer-side selection payloads (interval brushes in data space, toggled point
  sets) into pixel-space brushes and clicked ids.

Style
- No Streamlit imports; the shell builds events from widget state and dispatches them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .binder import BoundView
from .errors import SelectionError
from .selection import Brush
from .session import AgingSession, CommitSession, Hover
from .views import ScatterLayout

__all__ = [
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
    "Event",
    "parse_event",
    "Router",
    "infer_clicked_id",
    "brush_from_interval",
]

logger = logging.getLogger(__name__)


class _EventBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class PointerEnter(_EventBase):
    """
    Pointer entered a mark.

    Attributes:
        entity_id (str | int): Commit id or country id under the pointer.
        x (float): Pointer x (tooltip anchor).
        y (float): Pointer y (tooltip anchor).
    """

    kind: Literal["pointer_enter"] = "pointer_enter"
    entity_id: Union[int, str]
    x: float = 0.0
    y: float = 0.0


class PointerLeave(_EventBase):
    kind: Literal["pointer_leave"] = "pointer_leave"


class Click(_EventBase):
    """Click on a map region; modified=True for shift-click."""

    kind: Literal["click"] = "click"
    country_id: int
    modified: bool = False


class BrushStart(_EventBase):
    """Drag started at (x, y) in scatter pixel space."""

    kind: Literal["brush_start"] = "brush_start"
    x: float
    y: float


class BrushMove(_EventBase):
    kind: Literal["brush_move"] = "brush_move"
    x: float
    y: float


class BrushEnd(_EventBase):
    """Drag released; a release without a rectangle clears the brush."""

    kind: Literal["brush_end"] = "brush_end"
    x: float | None = None
    y: float | None = None


class SliderInput(_EventBase):
    kind: Literal["slider_input"] = "slider_input"
    position: float = Field(..., ge=0.0, le=100.0)


class YearsAfterInput(_EventBase):
    kind: Literal["years_after_input"] = "years_after_input"
    years: int


class DecadeInput(_EventBase):
    kind: Literal["decade_input"] = "decade_input"
    decade: int


class ModeInput(_EventBase):
    kind: Literal["mode_input"] = "mode_input"
    mode: Literal["abs", "per1k"]


class SearchInput(_EventBase):
    kind: Literal["search_input"] = "search_input"
    query: str


class LegendToggle(_EventBase):
    kind: Literal["legend_toggle"] = "legend_toggle"
    status: str
    visible: bool


class ClearSelection(_EventBase):
    kind: Literal["clear_selection"] = "clear_selection"


Event = Annotated[
    Union[
        PointerEnter,
        PointerLeave,
        Click,
        BrushStart,
        BrushMove,
        BrushEnd,
        SliderInput,
        YearsAfterInput,
        DecadeInput,
        ModeInput,
        SearchInput,
        LegendToggle,
        ClearSelection,
    ],
    Field(discriminator="kind"),
]

_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(Event)


def parse_event(payload: Mapping[str, Any]) -> Any:
    """
    Validate a plain mapping (e.g. a recorded JSON event) into an event model.

    Raises:
        pydantic.ValidationError: If the payload has an unknown kind or invalid fields.
    """
    return _EVENT_ADAPTER.validate_python(dict(payload))


Session = Union[CommitSession, AgingSession]


class Router:
    """
    Routes events to one session and re-renders after each.

    Args:
        session (CommitSession | AgingSession): The session whose state events mutate.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._anchor: tuple[float, float] | None = None

    def dispatch(self, event: Any) -> dict[str, BoundView[Any]]:
        """
        Apply one event, then refresh every mounted view.

        Args:
            event: An event model instance or a mapping accepted by parse_event.

        Returns:
            dict[str, BoundView]: Bound views keyed by view name.

        Raises:
            SelectionError: If the event does not apply to this router's session.
        """
        if isinstance(event, Mapping):
            event = parse_event(event)
        if isinstance(event, PointerEnter):
            self.session.hover = Hover(entity_id=event.entity_id, x=event.x, y=event.y)
        elif isinstance(event, PointerLeave):
            self.session.hover = None
        elif isinstance(event, ClearSelection):
            if isinstance(self.session, CommitSession):
                self._anchor = None
                self.session.brush.clear()
            else:
                self.session.selection.clear()
        elif isinstance(self.session, CommitSession):
            self._apply_commit_event(self.session, event)
        else:
            self._apply_aging_event(self.session, event)
        views = self.session.refresh()
        logger.debug("routed %s -> %s", type(event).__name__, self._summary())
        return views

    def replay(self, events: Iterable[Any]) -> dict[str, BoundView[Any]]:
        """Dispatch events in order and return the views after the last one."""
        views: dict[str, BoundView[Any]] = {}
        for event in events:
            views = self.dispatch(event)
        return views

    def _apply_commit_event(self, session: CommitSession, event: Any) -> None:
        if isinstance(event, BrushStart):
            self._anchor = (event.x, event.y)
            session.brush.start(None)
        elif isinstance(event, BrushMove):
            if self._anchor is None:
                self._anchor = (event.x, event.y)
                session.brush.start(None)
            session.brush.move(Brush.from_corners(self._anchor, (event.x, event.y)))
        elif isinstance(event, BrushEnd):
            if event.x is not None and event.y is not None and self._anchor is not None:
                session.brush.end(Brush.from_corners(self._anchor, (event.x, event.y)))
            else:
                session.brush.end()
            if self._anchor is not None and session.brush.rect is not None:
                r = session.brush.rect
                if r.x0 == r.x1 and r.y0 == r.y1:
                    # Click without drag releases the brush.
                    session.brush.clear()
            self._anchor = None
        elif isinstance(event, SliderInput):
            session.cutoff.set_position(event.position)
        else:
            raise SelectionError(f"{type(event).__name__} does not apply to the commit explorer")

    def _apply_aging_event(self, session: AgingSession, event: Any) -> None:
        if isinstance(event, Click):
            session.selection.click(event.country_id, modified=event.modified)
        elif isinstance(event, SearchInput):
            session.search(event.query)
        elif isinstance(event, LegendToggle):
            session.set_status_visible(event.status, event.visible)
        elif isinstance(event, YearsAfterInput):
            session.set_years_after(event.years)
        elif isinstance(event, DecadeInput):
            session.set_decade(event.decade)
        elif isinstance(event, ModeInput):
            session.set_mode(event.mode)
        else:
            raise SelectionError(f"{type(event).__name__} does not apply to the aging explorer")

    def _summary(self) -> str:
        s = self.session
        if isinstance(s, CommitSession):
            return f"selected={len(s.selected)} filtered={len(s.filtered)}"
        return f"selected={list(s.selection)}"


# ---------- Renderer payload adapters ----------


def infer_clicked_id(previous: Sequence[int], current: Sequence[int]) -> int | None:
    """
    Recover the clicked id from two successive client-side toggle sets.

    The renderer toggles the clicked id in its own set, so exactly one id differs between
    consecutive states. An added id wins over a removed one; no difference yields None.
    """
    before = {int(i) for i in previous}
    after = [int(i) for i in current]
    added = [i for i in after if i not in before]
    if added:
        return added[-1]
    removed = [i for i in previous if int(i) not in set(after)]
    return int(removed[-1]) if removed else None


def _to_instant(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(float(value) / 1000.0, tz=UTC)
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)
    return None


def brush_from_interval(
    interval: Mapping[str, Sequence[Any]] | None,
    layout: ScatterLayout,
    *,
    x_field: str = "datetime",
    y_field: str = "hour_frac",
) -> Brush | None:
    """
    Convert an interval selection in data space to a pixel-space brush.

    Args:
        interval (Mapping | None): Field -> [lo, hi]; temporal bounds may be epoch
            milliseconds, ISO strings or datetimes.
        layout (ScatterLayout): Scales currently used to project commits.
        x_field (str): Temporal field name.
        y_field (str): Hour-of-day field name.

    Returns:
        Brush | None: None when the interval is empty or cannot be projected.
    """
    if not interval or layout.x is None:
        return None
    xs = interval.get(x_field)
    ys = interval.get(y_field)
    if not xs or not ys or len(xs) < 2 or len(ys) < 2:
        return None
    t0, t1 = _to_instant(xs[0]), _to_instant(xs[-1])
    if t0 is None or t1 is None:
        return None
    try:
        h0, h1 = float(ys[0]), float(ys[-1])
    except (TypeError, ValueError):
        return None
    return Brush.from_corners((layout.x(t0), layout.y(h0)), (layout.x(t1), layout.y(h1)))
