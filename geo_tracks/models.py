"""Data models for points, events, tracks and runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence, Tuple

import pandas as pd


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS 84 position. Altitude is 0.0 when the table has no altitude column."""

    lon: float
    lat: float
    alt: float = 0.0


@dataclass(frozen=True, slots=True)
class TrackPoint:
    """A single row turned into a location sample.

    Attributes:
        index: 1-based position of the row in its table scan.
        coordinate: Position, or None when latitude/longitude could not be read.
        timestamp: Decoded UTC time, or None when absent.
        attributes: Column name to rendered value, in column order.
        title: Display name (timestamp, or the Z_PK value when present).
        description: Multi-line text blob of all rendered values.
    """

    index: int
    coordinate: Coordinate | None = None
    timestamp: pd.Timestamp | None = None
    attributes: Mapping[str, str] = field(default_factory=dict)
    title: str = ""
    description: str = ""


@dataclass(frozen=True, slots=True)
class Event:
    """A maximal run of points with no internal time gap above the threshold."""

    points: Tuple[TrackPoint, ...]
    start_time: pd.Timestamp | None
    end_time: pd.Timestamp | None
    distance_m: float
    altitude_sum_m: float
    table_name: str
    source_name: str = ""
    joined_with: str | None = None

    @property
    def point_count(self) -> int:
        return len(self.points)

    @property
    def duration(self) -> pd.Timedelta:
        if self.start_time is None or self.end_time is None:
            return pd.Timedelta(0)
        return self.end_time - self.start_time

    @property
    def mean_altitude_m(self) -> float:
        if not self.points:
            return 0.0
        return self.altitude_sum_m / len(self.points)

    @property
    def has_altitude(self) -> bool:
        return self.altitude_sum_m != 0

    @property
    def coordinates(self) -> Tuple[Coordinate, ...]:
        return tuple(p.coordinate for p in self.points if p.coordinate is not None)


@dataclass(slots=True)
class Track:
    """All events of one table scan."""

    table_name: str
    events: list[Event] = field(default_factory=list)
    row_count: int = 0
    joined_with: str | None = None


@dataclass(slots=True)
class Run:
    """Everything produced from one source (database or CSV file)."""

    source_name: str
    tracks: list[Track] = field(default_factory=list)
    skipped_tables: list[str] = field(default_factory=list)
    custom_query: bool = False

    @property
    def event_count(self) -> int:
        return sum(len(t.events) for t in self.tracks)


@dataclass(slots=True)
class TableScan:
    """An ordered row stream for one table, as handed over by a row source.

    ``rows`` yields value sequences indexable by column position; values are
    plain driver scalars and are classified into cells by the track builder.
    """

    name: str
    columns: Tuple[str, ...]
    rows: Iterable[Sequence[Any]]
    joined_with: str | None = None
