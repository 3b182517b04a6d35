from __future__ import annotations

from pathlib import Path

from app.data import CacheConfig, _get_cached, load_aging_tables
from brushwork.config import Settings


def test_missing_geometry_only_degrades_the_map(data_dir: Path) -> None:
    # Arrange
    settings = Settings(data_dir=str(data_dir))

    # Act
    tables = load_aging_tables(settings)

    # Assert
    assert set(tables.errors) == {"world"}
    assert tables.world is None
    assert tables.data is not None
    assert sorted(tables.data.status_by_id) == [4, 8, 12]
    # Names fall back to ids without geometry
    assert tables.data.name_for(4) == "ID 4"


def test_missing_status_table_leaves_no_data(data_dir: Path) -> None:
    (data_dir / "peak_status.csv").unlink()

    tables = load_aging_tables(Settings(data_dir=str(data_dir)))

    assert tables.data is None
    assert {"peak_status", "world"} <= set(tables.errors)


def test_missing_secondary_tables_keep_the_join(data_dir: Path) -> None:
    (data_dir / "oadr_peaks.csv").unlink()
    (data_dir / "components_decades.csv").unlink()

    tables = load_aging_tables(Settings(data_dir=str(data_dir)))

    assert tables.data is not None
    assert tables.data.oadr_by_id == {}
    assert tables.data.components.is_empty()
    assert set(tables.errors) == {"oadr", "components", "world"}


def test_cached_callables_are_memoized_per_config() -> None:
    def loader(path: str) -> str:
        return path

    a = _get_cached("loader", CacheConfig(ttl=5), loader)
    b = _get_cached("loader", CacheConfig(ttl=5), loader)
    c = _get_cached("loader", CacheConfig(ttl=10), loader)

    assert a is b
    assert a is not c
