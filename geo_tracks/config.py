"""Configuration helpers for the track dumper.

Provides YAML loading, small utilities for accessing nested configuration
values with defaults, and the strongly-typed :class:`DumperConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict

import pandas as pd
import yaml

from geo_tracks.roles import DEFAULT_ENTRY_SUFFIX, DEFAULT_START_SUFFIX
from geo_tracks.timeutils import parse_duration


def load_config(path: str | Path) -> Dict[str, Any]:
    """Load a YAML configuration file."""

    with Path(path).open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def get_nested(config: Dict[str, Any], keys: list[str], default: Any) -> Any:
    """Retrieve a nested value from a config dict with a default."""

    current: Any = config
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


@dataclass(frozen=True)
class DumperConfig:
    """Settings for one dumper invocation."""

    event_gap: pd.Timedelta = pd.Timedelta(hours=2)
    show_event_lines: bool = False
    busy_timeout: pd.Timedelta = pd.Timedelta(seconds=10)
    query: str | None = None
    name: str = "geo-track-dumper"
    delimiter: str = ","
    entry_suffix: str = DEFAULT_ENTRY_SUFFIX
    start_suffix: str = DEFAULT_START_SUFFIX
    escape_ascii: bool = False
    debug: bool = False
    logging: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Output goes through pandas' csv writer, which takes one character only.
        if len(self.delimiter) != 1:
            raise ValueError(f"CSV delimiter must be a single character, got {self.delimiter!r}")

    def with_overrides(self, **overrides: Any) -> "DumperConfig":
        """Return a copy with every non-None override applied."""

        values = {k: v for k, v in overrides.items() if v is not None}
        for key in ("event_gap", "busy_timeout"):
            if key in values:
                values[key] = parse_duration(values[key])
        return replace(self, **values)


def config_from_dict(cfg: Dict[str, Any]) -> DumperConfig:
    """Build a :class:`DumperConfig` from a loaded YAML mapping.

    Expected layout (every key optional)::

        events:   {gap: 2h, show_lines: false}
        columns:  {entry_suffix: entrydate, start_suffix: startdate}
        source:   {busy_timeout: 10s, query: null}
        output:   {name: geo-track-dumper, delimiter: ",", escape_ascii: false}
        logging:  {level: INFO, dir: null, filename: dumper.log}
        debug: false
    """

    defaults = DumperConfig()
    query = get_nested(cfg, ["source", "query"], None)
    return DumperConfig(
        event_gap=parse_duration(get_nested(cfg, ["events", "gap"], defaults.event_gap)),
        show_event_lines=bool(get_nested(cfg, ["events", "show_lines"], defaults.show_event_lines)),
        busy_timeout=parse_duration(get_nested(cfg, ["source", "busy_timeout"], defaults.busy_timeout)),
        query=str(query) if query else None,
        name=str(get_nested(cfg, ["output", "name"], defaults.name)),
        delimiter=str(get_nested(cfg, ["output", "delimiter"], defaults.delimiter)),
        entry_suffix=str(get_nested(cfg, ["columns", "entry_suffix"], defaults.entry_suffix)),
        start_suffix=str(get_nested(cfg, ["columns", "start_suffix"], defaults.start_suffix)),
        escape_ascii=bool(get_nested(cfg, ["output", "escape_ascii"], defaults.escape_ascii)),
        debug=bool(cfg.get("debug", defaults.debug)),
        logging=dict(cfg.get("logging", {}) or {}),
    )


def resolve_config(path: str | Path | None) -> DumperConfig:
    """Load ``path`` if given, otherwise return the defaults."""

    if path is None:
        return DumperConfig()
    return config_from_dict(load_config(path))
