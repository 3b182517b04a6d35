from __future__ import annotations

import time

from app.ui.helpers import (
    breakdown_markdown,
    humanize_ago,
    point_ids,
    selection_state,
    stats_markdown,
    summary_markdown,
    tooltip_markdown,
)
from brushwork.commits import Stat


def test_humanize_ago_smoke() -> None:
    now = time.time()
    assert "ago" in humanize_ago(now - 2)
    assert humanize_ago(now - 7200) == "2h ago"
    assert humanize_ago(float("inf")) == "n/a"


def test_selection_state_reads_on_select_payload() -> None:
    state = {"selection": {"brush": {"hour_frac": [1, 2]}, "region": []}}

    assert selection_state(state, "brush") == {"hour_frac": [1, 2]}
    # An empty selection reads as no selection
    assert selection_state(state, "region") is None
    assert selection_state(None, "brush") is None
    assert selection_state({"selection": "bad"}, "brush") is None


def test_point_ids_skips_malformed_points() -> None:
    points = [{"cid": 4}, {"cid": "12"}, {"cid": None}, {"other": 1}, {"cid": "x"}, "junk"]
    assert point_ids(points) == [4, 12]
    assert point_ids("4") == []


def test_stats_and_breakdown_markdown() -> None:
    stats = [Stat("Total LOC", "5"), Stat("Total commits", "3")]
    rows = [{"category": "py", "label": "3 lines (75%)"}]

    assert stats_markdown(stats) == "- **Total LOC:** 5\n- **Total commits:** 3"
    assert breakdown_markdown(rows) == "- **py**: 3 lines (75%)"
    assert breakdown_markdown([]) == ""


def test_tooltip_markdown_links_commit_when_url_known() -> None:
    tip = {"id": "a", "url": "https://example.org/c/a", "date": "d", "time": "t", "author": "ana", "lines": 3}

    body = tooltip_markdown(tip)

    assert body.splitlines()[0] == "**Commit:** [a](https://example.org/c/a)"
    assert "**Lines edited:** 3" in body
    assert tooltip_markdown({**tip, "url": None}).startswith("**Commit:** a\n")
    assert tooltip_markdown(None) == ""


def test_summary_markdown_with_and_without_oadr() -> None:
    card = {
        "name": "Albania",
        "status": "peaked",
        "peak_year": 2020,
        "oadr_peak": 0.2,
        "oadr_after": 0.35,
        "years_after": 25,
    }

    body = summary_markdown(card)
    bare = summary_markdown({**card, "peak_year": None, "oadr_peak": None, "oadr_after": None})

    assert "Status: peaked · Peak year: 2020" in body
    assert "OADR at peak: 20% · Peak + 25: 35%" in body
    assert "Peak year: n/a" in bare
    assert bare.endswith("No old-age dependency data.")
    assert summary_markdown(None) == ""
