from __future__ import annotations

import polars as pl
import pytest

from brushwork.demography import AgingData
from brushwork.records import (
    coerce_components,
    coerce_line_records,
    coerce_oadr,
    coerce_peak_status,
)

LOC_CSV = """commit,file,line,depth,length,author,date,time,timezone,datetime,type
a,src/app.py,1,0,10,ana,2025-10-20,09:15:00+00:00,+00:00,2025-10-20T09:15:00+00:00,py
a,src/app.py,2,1,20,ana,2025-10-20,09:15:00+00:00,+00:00,2025-10-20T09:15:00+00:00,py
a,styles.css,1,0,30,ana,2025-10-20,09:15:00+00:00,+00:00,2025-10-20T09:15:00+00:00,css
b,src/app.py,3,1,40,bo,2025-10-21,13:30:00+00:00,+00:00,2025-10-21T13:30:00+00:00,py
c,README.md,1,0,oops,ana,2025-10-22,22:45:00+00:00,+00:00,2025-10-22T22:45:00+00:00,md
"""

PEAK_STATUS_CSV = """id,status,peak_year
4,peaked,2020
8,2050,2050
12,no_peak,
"""

OADR_CSV = """id,oadr_peak,oadr_p10,oadr_p15,oadr_p20,oadr_p25,oadr_p30
4,0.20,0.25,0.28,0.31,0.35,0.40
12,0.10,0.12,0.13,0.15,0.16,0.18
"""

COMPONENTS_CSV = """id,decade_start,births,deaths,natural_increase,net_migration,total_change,rate_natural_per_1k,rate_migration_per_1k,rate_total_per_1k
4,2020,100,50,50,20,70,5.0,2.0,7.0
4,2030,90,60,30,-10,20,3.0,-1.0,2.0
12,2030,40,45,-5,,-5,-0.5,,-0.5
"""

NAMES = {4: "Albania", 8: "Angola", 12: "Algeria"}


def text_frame(csv: str) -> pl.DataFrame:
    """Parse CSV text with every column as a string, the way the loaders read files."""
    return pl.read_csv(csv.encode("utf-8"), infer_schema_length=0)


@pytest.fixture
def line_records() -> pl.DataFrame:
    return coerce_line_records(text_frame(LOC_CSV))


@pytest.fixture
def aging_data() -> AgingData:
    return AgingData(
        coerce_peak_status(text_frame(PEAK_STATUS_CSV)),
        oadr=coerce_oadr(text_frame(OADR_CSV)),
        components=coerce_components(text_frame(COMPONENTS_CSV)),
        names=NAMES,
    )


@pytest.fixture
def data_dir(tmp_path):
    """A data directory holding every resource the explorers read."""
    (tmp_path / "loc.csv").write_text(LOC_CSV)
    (tmp_path / "peak_status.csv").write_text(PEAK_STATUS_CSV)
    (tmp_path / "oadr_peaks.csv").write_text(OADR_CSV)
    (tmp_path / "components_decades.csv").write_text(COMPONENTS_CSV)
    return tmp_path
