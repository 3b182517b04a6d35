from __future__ import annotations

import polars as pl
import pytest
from pydantic import ValidationError

from brushwork.demography import AgingData
from brushwork.errors import SelectionError
from brushwork.router import (
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
    brush_from_interval,
    infer_clicked_id,
    parse_event,
)
from brushwork.selection import Brush
from brushwork.session import COMMIT_VIEWS, AgingSession, CommitSession


@pytest.fixture
def commit_router(line_records: pl.DataFrame) -> Router:
    return Router(CommitSession(line_records))


@pytest.fixture
def aging_router(aging_data: AgingData) -> Router:
    return Router(AgingSession(aging_data))


# ---------- Commit explorer ----------


def test_initial_refresh_binds_every_commit_view(line_records: pl.DataFrame) -> None:
    session = CommitSession(line_records)

    views = session.refresh()

    assert set(views) == set(COMMIT_VIEWS)
    assert views["selection_count"].output == "No commits selected"
    assert views["language_breakdown"].output == []
    assert views["tooltip"].output is None
    assert views["slider_label"].output == "October 22, 2025 at 10:45 PM"


def test_full_brush_selects_every_commit(commit_router: Router) -> None:
    # Act
    views = commit_router.replay([BrushStart(x=0, y=0), BrushMove(x=500, y=300), BrushEnd(x=1000, y=600)])

    # Assert
    session = commit_router.session
    assert [c.id for c in session.selected] == ["a", "b", "c"]
    assert views["selection_count"].output == "3 commits selected"
    assert [r["category"] for r in views["language_breakdown"].output] == ["py", "css", "md"]
    assert not session.brush.dragging


def test_brush_release_without_drag_clears(commit_router: Router) -> None:
    commit_router.replay([BrushStart(x=0, y=0), BrushEnd(x=1000, y=600)])

    views = commit_router.replay([BrushStart(x=40, y=40), BrushEnd(x=40, y=40)])

    assert commit_router.session.brush.is_empty
    assert views["selection_count"].output == "No commits selected"


def test_clear_selection_releases_brush(commit_router: Router) -> None:
    commit_router.replay([BrushStart(x=0, y=0), BrushEnd(x=1000, y=600)])

    commit_router.dispatch(ClearSelection())

    assert commit_router.session.selected == []


def test_slider_at_zero_keeps_only_earliest_commit(commit_router: Router) -> None:
    views = commit_router.dispatch(SliderInput(position=0))

    session = commit_router.session
    assert [c.id for c in session.filtered] == ["a"]
    assert [f["name"] for f in views["files"].output] == ["src/app.py", "styles.css"]
    assert views["slider_label"].output == "October 20, 2025 at 9:15 AM"


def test_refresh_without_changes_rebuilds_nothing(commit_router: Router) -> None:
    commit_router.dispatch(BrushStart(x=0, y=0))
    commit_router.dispatch(BrushEnd(x=1000, y=600))

    views = commit_router.session.refresh()

    assert not any(v.rebuilt for v in views.values())


def test_hover_shows_and_hides_tooltip(commit_router: Router) -> None:
    shown = commit_router.dispatch(PointerEnter(entity_id="b", x=5, y=6))
    tip = shown["tooltip"].output

    assert tip["id"] == "b" and tip["author"] == "bo"
    assert (tip["x"], tip["y"]) == (5.0, 6.0)

    hidden = commit_router.dispatch(PointerLeave())
    assert hidden["tooltip"].output is None


def test_hover_on_unknown_id_renders_nothing(commit_router: Router) -> None:
    views = commit_router.dispatch(PointerEnter(entity_id="zzz"))
    assert views["tooltip"].output is None


def test_replay_is_deterministic(line_records: pl.DataFrame) -> None:
    events = [
        {"kind": "slider_input", "position": 60},
        {"kind": "brush_start", "x": 0, "y": 0},
        {"kind": "brush_end", "x": 1000, "y": 300},
    ]
    first, second = Router(CommitSession(line_records)), Router(CommitSession(line_records))

    a = first.replay(events)
    b = second.replay(events)

    assert [c.id for c in first.session.selected] == [c.id for c in second.session.selected]
    assert a["scatter"].output.to_dict() == b["scatter"].output.to_dict()


def test_aging_event_on_commit_router_raises(commit_router: Router) -> None:
    with pytest.raises(SelectionError):
        commit_router.dispatch(Click(country_id=4))


# ---------- Aging explorer ----------


def test_clicks_follow_radio_and_toggle_rules(aging_router: Router) -> None:
    session = aging_router.session

    aging_router.dispatch(Click(country_id=4))
    aging_router.dispatch(Click(country_id=8, modified=True))
    assert list(session.selection) == [4, 8]

    aging_router.dispatch(Click(country_id=4, modified=True))
    assert list(session.selection) == [8]

    aging_router.dispatch(Click(country_id=12))
    assert list(session.selection) == [12]


def test_search_appends_first_match(aging_router: Router) -> None:
    session = aging_router.session

    aging_router.dispatch(SearchInput(query="  alg "))
    aging_router.dispatch(SearchInput(query="ANG"))
    aging_router.dispatch(SearchInput(query="atlantis"))

    assert list(session.selection) == [12, 8]


def test_legend_toggle_hides_status(aging_router: Router) -> None:
    views = aging_router.dispatch(LegendToggle(status="no_peak", visible=False))

    legend = {e["status"]: e["visible"] for e in views["legend"].output}
    assert legend["no_peak"] is False
    assert aging_router.session.hidden_statuses == {"no_peak"}

    aging_router.dispatch(LegendToggle(status="no_peak", visible=True))
    assert aging_router.session.hidden_statuses == set()


def test_components_follow_last_selected_country(aging_router: Router) -> None:
    empty = aging_router.dispatch(ClearSelection())
    assert empty["components"].output.to_dict()["mark"]["type"] == "text"

    aging_router.dispatch(Click(country_id=12))
    views = aging_router.dispatch(Click(country_id=4, modified=True))

    spec = views["components"].output.to_dict()
    assert spec["title"]["text"] == "Albania: 2030–2039"

    views = aging_router.replay([DecadeInput(decade=2020), ModeInput(mode="per1k")])
    spec = views["components"].output.to_dict()
    assert spec["title"]["text"] == "Albania: 2020–2029"
    assert spec["title"]["subtitle"] == "Avg annual rate (per 1,000)"


def test_summary_and_slopegraph_follow_controls(aging_router: Router) -> None:
    aging_router.dispatch(Click(country_id=4))

    views = aging_router.dispatch(YearsAfterInput(years=10))

    assert views["summary"].output["name"] == "Albania"
    assert views["summary"].output["years_after"] == 10
    assert views["slopegraph"].rebuilt

    # Unsupported offsets are ignored
    aging_router.dispatch(YearsAfterInput(years=12))
    assert aging_router.session.years_after == 10


def test_clear_empties_selection(aging_router: Router) -> None:
    aging_router.replay([Click(country_id=4), Click(country_id=12, modified=True)])

    views = aging_router.dispatch(ClearSelection())

    assert list(aging_router.session.selection) == []
    assert views["summary"].output is None


def test_map_without_world_is_a_placeholder(aging_router: Router) -> None:
    views = aging_router.dispatch(PointerEnter(entity_id=4, x=1, y=2))

    assert views["map"].output.to_dict()["mark"]["type"] == "text"
    assert views["tooltip"].output["title"].startswith("Albania")


def test_hover_on_non_numeric_country_id_renders_nothing(aging_router: Router) -> None:
    views = aging_router.dispatch(PointerEnter(entity_id="abc"))

    assert views["tooltip"].output is None
    assert aging_router.session.data.find("abc") is None


def test_commit_event_on_aging_router_raises(aging_router: Router) -> None:
    with pytest.raises(SelectionError):
        aging_router.dispatch(SliderInput(position=50))


# ---------- Events and adapters ----------


def test_parse_event_validates_payloads() -> None:
    assert parse_event({"kind": "slider_input", "position": 50}) == SliderInput(position=50)

    with pytest.raises(ValidationError):
        parse_event({"kind": "slider_input", "position": 150})
    with pytest.raises(ValidationError):
        parse_event({"kind": "teleport"})
    with pytest.raises(ValidationError):
        parse_event({"kind": "click", "country_id": 4, "extra": True})


def test_infer_clicked_id() -> None:
    assert infer_clicked_id([4], [4, 8]) == 8
    assert infer_clicked_id([4, 8], [4]) == 8
    assert infer_clicked_id([4], [4]) is None
    assert infer_clicked_id([], [12]) == 12


def test_brush_from_interval_projects_data_space(commit_router: Router) -> None:
    session = commit_router.session
    a, _, c = session.commits
    interval = {
        "datetime": [a.datetime.timestamp() * 1000, c.datetime.isoformat()],
        "hour_frac": [0, 24],
    }

    rect = brush_from_interval(interval, session.layout)

    assert rect == Brush(x0=20.0, y0=10.0, x1=990.0, y1=570.0)


def test_brush_from_interval_rejects_incomplete_payloads(commit_router: Router) -> None:
    layout = commit_router.session.layout

    assert brush_from_interval(None, layout) is None
    assert brush_from_interval({"datetime": [0, 1]}, layout) is None
    assert brush_from_interval({"datetime": ["x", "y"], "hour_frac": [0, 1]}, layout) is None
