"""
Configuration for brushwork.

Defines Settings, a frozen dataclass carrying runtime configuration for data locations,
chart geometry, selection limits and logging. Defaults are sourced from
brushwork.constants (the single source of truth).

Precedence
- environment (BRUSHWORK_*) > TOML (./brushwork.toml or [tool.brushwork] in
  ./pyproject.toml) > defaults.
- Malformed values are ignored and the previous value is kept.

Import DAG discipline
- Depends only on stdlib, brushwork.constants and brushwork.errors.
- Does not import the Streamlit shell (app.*).
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .constants import MAX_SELECTED, RADIUS_RANGE, SCATTER_HEIGHT, SCATTER_WIDTH
from .errors import ConfigError

__all__ = ["Settings"]

_STR_FIELDS = (
    "data_dir",
    "loc_file",
    "world_file",
    "peak_status_file",
    "oadr_file",
    "components_file",
    "commit_url_base",
    "display_timezone",
    "log_level",
)
_INT_FIELDS = ("max_selected", "scatter_width", "scatter_height")
_FLOAT_FIELDS = ("radius_min", "radius_max")


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for brushwork.

    Attributes:
        data_dir (str): Directory holding every tabular and geometry resource.
        loc_file (str): Line-history CSV (one row per line of source).
        world_file (str): TopoJSON world boundaries keyed by numeric country id.
        peak_status_file (str): Peak-status CSV (id, status, peak_year).
        oadr_file (str): Old-age dependency ratio CSV (id, oadr_peak, oadr_p10..oadr_p30).
        components_file (str): Per-decade components-of-change CSV.
        commit_url_base (str): Prefix joined with a commit id to form its URL ("" disables).
        display_timezone (str): IANA zone used to read wall-clock hours from instants.
            Empty reads each commit in the UTC offset it was recorded with.
        max_selected (int): Country multi-select cap.
        radius_min (float): Smallest scatter circle radius in pixels.
        radius_max (float): Largest scatter circle radius in pixels.
        scatter_width (int): Scatter viewBox width in pixels.
        scatter_height (int): Scatter viewBox height in pixels.
        log_level (str): Level passed to brushwork.logging.configure_logging.

    Examples:
        >>> from brushwork.config import Settings
        >>> Settings(data_dir="data", max_selected=3)  # doctest: +ELLIPSIS
        Settings(...)
    """

    data_dir: str = "data"
    loc_file: str = "loc.csv"
    world_file: str = "countries-110m.json"
    peak_status_file: str = "peak_status.csv"
    oadr_file: str = "oadr_peaks.csv"
    components_file: str = "components_decades.csv"
    commit_url_base: str = ""
    display_timezone: str = ""
    max_selected: int = MAX_SELECTED
    radius_min: float = RADIUS_RANGE[0]
    radius_max: float = RADIUS_RANGE[1]
    scatter_width: int = SCATTER_WIDTH
    scatter_height: int = SCATTER_HEIGHT
    log_level: str = "INFO"

    def path(self, name: str) -> Path:
        """Resolve a resource file name against data_dir."""
        return Path(self.data_dir) / name

    def problems(self) -> list[tuple[tuple[str, ...], str]]:
        """List (offending field names, message) pairs; empty when consistent."""
        found: list[tuple[tuple[str, ...], str]] = []
        if self.max_selected < 1:
            found.append((("max_selected",), f"max_selected must be >= 1 (got {self.max_selected})"))
        if self.radius_min < 0 or self.radius_min > self.radius_max:
            found.append(
                (
                    ("radius_min", "radius_max"),
                    f"radius range must satisfy 0 <= min <= max (got {self.radius_min}, {self.radius_max})",
                )
            )
        if self.scatter_width <= 0 or self.scatter_height <= 0:
            found.append((("scatter_width", "scatter_height"), "scatter dimensions must be positive"))
        if self.display_timezone:
            try:
                ZoneInfo(self.display_timezone)
            except (ZoneInfoNotFoundError, ValueError):
                found.append((("display_timezone",), f"unknown display_timezone {self.display_timezone!r}"))
        if self.log_level.upper() not in logging.getLevelNamesMapping():
            found.append((("log_level",), f"unknown log_level {self.log_level!r}"))
        return found

    def validate(self) -> Settings:
        """Return self when consistent, otherwise raise ConfigError."""
        found = self.problems()
        if found:
            raise ConfigError(found[0][1])
        return self

    def repaired(self) -> tuple[Settings, list[str]]:
        """
        Reset each inconsistent field to its default.

        Returns:
            tuple[Settings, list[str]]: (consistent settings, one message per problem
            that was reset). Fields that were fine keep their values.
        """
        found = self.problems()
        if not found:
            return self, []
        defaults = {f.name: f.default for f in fields(Settings)}
        names = {name for group, _ in found for name in group}
        fixed = replace(self, **{name: defaults[name] for name in names})
        return fixed, [f"{message}; using the default" for _, message in found]

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: Settings, cfg: dict[str, Any] | None) -> Settings:
        """Apply a loose config mapping onto Settings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base
        for name in _STR_FIELDS:
            if name in cfg and isinstance(cfg[name], str):
                s = replace(s, **{name: cfg[name]})
        for name in _INT_FIELDS:
            if name in cfg:
                try:
                    s = replace(s, **{name: int(cfg[name])})
                except (TypeError, ValueError):
                    pass
        for name in _FLOAT_FIELDS:
            if name in cfg:
                try:
                    s = replace(s, **{name: float(cfg[name])})
                except (TypeError, ValueError):
                    pass
        return s

    @classmethod
    def from_env(cls, base: Settings | None = None, prefix: str = "BRUSHWORK_") -> Settings:
        """
        Build Settings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables are the upper-cased field names under the prefix, e.g.
        BRUSHWORK_DATA_DIR, BRUSHWORK_MAX_SELECTED, BRUSHWORK_DISPLAY_TIMEZONE.
        """
        s = base or cls()
        mapping: dict[str, Any] = {}
        for name in (*_STR_FIELDS, *_INT_FIELDS, *_FLOAT_FIELDS):
            v = os.getenv(prefix + name.upper())
            if v:
                mapping[name] = v
        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> Settings:
        """
        Build Settings from a TOML file.

        Search order when `path` is None:
            1) ./brushwork.toml (with either a [brushwork] table or direct keys)
            2) ./pyproject.toml under [tool.brushwork]

        Returns defaults if no file is present or parsable.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "brushwork.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("brushwork") if isinstance(tool, dict) else None
            elif isinstance(data.get("brushwork"), dict):
                cfg = data["brushwork"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> Settings:
        """
        Load Settings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults.

        Returns:
            Settings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
