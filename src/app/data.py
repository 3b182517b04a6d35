from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import polars as pl
import streamlit as st

from brushwork.config import Settings
from brushwork.demography import AgingData
from brushwork.errors import LoadError
from brushwork.records import (
    country_names,
    load_components,
    load_line_records,
    load_oadr,
    load_peak_status,
    load_world,
)

__all__ = [
    "CacheConfig",
    "AgingTables",
    "load_lines",
    "load_status_table",
    "load_oadr_table",
    "load_components_table",
    "load_world_geometry",
    "load_aging_tables",
]

logger = logging.getLogger(__name__)

# ---------- Cache configuration (factory of cached callables) ----------


@dataclass(frozen=True)
class CacheConfig:
    """Hashable cache configuration for Streamlit @st.cache_data.

    Note: Streamlit's decorator parameters (ttl, persist) are fixed at decoration
    time. We build and memoize decorated callables per (name, ttl, persist) so the
    app can switch these at runtime while still benefiting from caching.
    """

    ttl: int | None = None
    persist: bool = False


# Registry of decorated functions by (loader_name, CacheConfig)
_CACHE_REGISTRY: dict[tuple[str, CacheConfig], Callable[..., Any]] = {}


def _get_cached(loader_name: str, cfg: CacheConfig, fn: Callable[..., Any]) -> Callable[..., Any]:
    key = (loader_name, cfg)
    if key in _CACHE_REGISTRY:
        return _CACHE_REGISTRY[key]
    if cfg.persist:
        wrapped = st.cache_data(persist="disk", ttl=cfg.ttl, show_spinner=False)(fn)
    else:
        wrapped = st.cache_data(ttl=cfg.ttl, show_spinner=False)(fn)
    _CACHE_REGISTRY[key] = wrapped
    return wrapped


# ---------- Public loader APIs (dispatch to cached implementations) ----------
# Failures are not cached: st.cache_data only memoizes successful returns, so a fixed
# file is picked up on the next rerun.


def load_lines(path: str, *, cfg: CacheConfig = CacheConfig()) -> pl.DataFrame:
    fn = _get_cached("load_lines", cfg, load_line_records)
    return fn(path)  # type: ignore[no-any-return]


def load_status_table(path: str, *, cfg: CacheConfig = CacheConfig()) -> pl.DataFrame:
    fn = _get_cached("load_status_table", cfg, load_peak_status)
    return fn(path)  # type: ignore[no-any-return]


def load_oadr_table(path: str, *, cfg: CacheConfig = CacheConfig()) -> pl.DataFrame:
    fn = _get_cached("load_oadr_table", cfg, load_oadr)
    return fn(path)  # type: ignore[no-any-return]


def load_components_table(path: str, *, cfg: CacheConfig = CacheConfig()) -> pl.DataFrame:
    fn = _get_cached("load_components_table", cfg, load_components)
    return fn(path)  # type: ignore[no-any-return]


def load_world_geometry(path: str, *, cfg: CacheConfig = CacheConfig()) -> dict[str, Any]:
    fn = _get_cached("load_world_geometry", cfg, load_world)
    return fn(path)  # type: ignore[no-any-return]


# ---------- Joined aging tables ----------


@dataclass
class AgingTables:
    """Result of loading every aging resource; failures are collected, not raised.

    Attributes:
        data (AgingData | None): Joined tables, None when peak status failed to load.
        world (dict | None): Boundary geometry, None when it failed to load.
        errors (dict[str, str]): Resource name -> failure message.
    """

    data: AgingData | None = None
    world: dict[str, Any] | None = None
    errors: dict[str, str] = field(default_factory=dict)


def load_aging_tables(settings: Settings, *, cfg: CacheConfig = CacheConfig()) -> AgingTables:
    """Load status, OADR, components and geometry independently.

    Each failure only degrades the view that depends on it: no OADR means an empty
    slopegraph, no components means an empty bar chart, no geometry means a map
    placeholder. Peak status is the backbone of the join; without it data is None.
    """
    out = AgingTables()

    def attempt(name: str, loader: Callable[..., Any], filename: str) -> Any:
        try:
            return loader(str(settings.path(filename)), cfg=cfg)
        except LoadError as e:
            out.errors[name] = str(e)
            return None

    status = attempt("peak_status", load_status_table, settings.peak_status_file)
    oadr = attempt("oadr", load_oadr_table, settings.oadr_file)
    components = attempt("components", load_components_table, settings.components_file)
    out.world = attempt("world", load_world_geometry, settings.world_file)

    if status is not None:
        names = country_names(out.world) if out.world is not None else {}
        out.data = AgingData(status, oadr=oadr, components=components, names=names)
    if out.errors:
        logger.info("aging tables loaded with failures: %s", sorted(out.errors))
    return out
