from __future__ import annotations

import math

import polars as pl
import pytest

from brushwork.constants import NO_DATA_COLOR, STATUS_COLORS
from brushwork.demography import (
    AgingData,
    aggregate_components,
    component_domain,
    decade_label,
    decade_options,
    oadr_column,
    oadr_domain,
    slopegraph_series,
    status_color,
)


def test_absolute_components_negate_deaths(aging_data: AgingData) -> None:
    # Act
    bars = aggregate_components(aging_data.components, 4, 2020, "abs")

    # Assert
    assert [(b.key, b.value) for b in bars] == [
        ("Births", 100.0),
        ("Deaths", -50.0),
        ("Net migration", 20.0),
        ("Δ population", 70.0),
    ]


def test_per1k_components(aging_data: AgingData) -> None:
    bars = aggregate_components(aging_data.components, 4, 2030, "per1k")

    assert [b.value for b in bars] == [3.0, -1.0, 2.0]
    assert [b.key for b in bars] == ["Natural (per 1k)", "Migration (per 1k)", "Total (per 1k)"]


def test_components_without_a_matching_row_use_defaults(aging_data: AgingData) -> None:
    absolute = aggregate_components(aging_data.components, 8, 2020, "abs")
    rates = aggregate_components(aging_data.components, 8, 2020, "per1k")

    assert [b.value for b in absolute] == [0.0, -0.0, 0.0, 0.0]
    assert all(math.isnan(b.value) for b in rates)


def test_components_from_an_empty_table() -> None:
    bars = aggregate_components(pl.DataFrame(), 4, 2020, "abs")
    assert [b.value for b in bars] == [0.0, -0.0, 0.0, 0.0]


def test_component_domain_includes_zero_with_padding(aging_data: AgingData) -> None:
    bars = aggregate_components(aging_data.components, 4, 2020, "abs")

    assert component_domain(bars) == pytest.approx((-60.0, 110.0))


def test_component_domain_degenerate_cases(aging_data: AgingData) -> None:
    zeros = aggregate_components(aging_data.components, 8, 2020, "abs")
    nans = aggregate_components(aging_data.components, 8, 2020, "per1k")

    assert component_domain(zeros) == (-1.0, 1.0)
    assert component_domain(nans) == (-1.0, 1.0)


def test_decade_options_and_label(aging_data: AgingData) -> None:
    assert decade_options(aging_data.components) == [2020, 2030]
    assert decade_options(pl.DataFrame()) == []
    assert decade_label(2020) == "2020–2029"


def test_slopegraph_skips_countries_without_oadr(aging_data: AgingData) -> None:
    series = slopegraph_series([12, 8, 4], aging_data, 25)

    assert [(s.id, s.name) for s in series] == [(12, "Algeria"), (4, "Albania")]
    assert series[1].left == pytest.approx(0.20)
    assert series[1].right == pytest.approx(0.35)


def test_unknown_offset_falls_back_to_thirty_years() -> None:
    assert oadr_column(10) == "oadr_p10"
    assert oadr_column(12) == "oadr_p30"


def test_country_without_oadr_still_colored_on_map(aging_data: AgingData) -> None:
    angola = aging_data.country(8)

    assert angola.oadr is None
    assert status_color(angola.status) == STATUS_COLORS["2050"]


def test_country_without_any_record(aging_data: AgingData) -> None:
    unknown = aging_data.country(99)

    assert not unknown.has_data
    assert unknown.name == "ID 99"
    assert unknown.title() == "ID 99\n(no data)"
    assert status_color(unknown.status) == NO_DATA_COLOR


def test_country_title_and_search_text(aging_data: AgingData) -> None:
    albania = aging_data.country(4)
    algeria = aging_data.country(12)

    assert albania.title() == "Albania\nStatus: peaked\nPeak year: 2020"
    assert algeria.title() == "Algeria\nStatus: no_peak\nPeak year: n/a"
    assert albania.search_text() == "albania 4 peaked 2020"


def test_region_ids_cover_names_then_status_only_ids() -> None:
    status = pl.DataFrame(
        {"id": [4, 99], "status": ["peaked", "no_peak"], "peak_year": [2020.0, math.nan]}
    )

    data = AgingData(status, names={8: "Angola", 4: "Albania"})

    assert data.region_ids == [8, 4, 99]
    assert [c.has_data for c in data.countries()] == [False, True, True]


def test_oadr_domain_spans_every_offset(aging_data: AgingData) -> None:
    assert oadr_domain(aging_data.oadr_rows) == pytest.approx((0.10, 0.40))
    assert oadr_domain([]) is None
