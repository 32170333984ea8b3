"""Column role classification from column names.

Tables from location databases do not declare which columns hold coordinates
or times, so roles are inferred from name suffixes. Only the first latitude,
longitude, altitude and timestamp column is consumed downstream; additional
matches are kept for diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from geo_tracks.errors import SchemaError

DEFAULT_ENTRY_SUFFIX = "entrydate"
DEFAULT_START_SUFFIX = "startdate"
TIMESTAMP_SUFFIXES: Tuple[str, ...] = ("date", "timestamp")


@dataclass(frozen=True, slots=True)
class ColumnRoles:
    """Column indices per semantic role for one table schema."""

    latitude: Tuple[int, ...] = ()
    longitude: Tuple[int, ...] = ()
    altitude: Tuple[int, ...] = ()
    timestamp_primary: Tuple[int, ...] = ()
    timestamp_secondary: Tuple[int, ...] = ()

    @property
    def timestamp(self) -> Tuple[int, ...]:
        """Primary timestamp columns followed by the secondary ones."""

        return self.timestamp_primary + self.timestamp_secondary

    @property
    def has_position(self) -> bool:
        return bool(self.latitude) and bool(self.longitude)

    @property
    def latitude_index(self) -> int | None:
        return self.latitude[0] if self.latitude else None

    @property
    def longitude_index(self) -> int | None:
        return self.longitude[0] if self.longitude else None

    @property
    def altitude_index(self) -> int | None:
        return self.altitude[0] if self.altitude else None

    @property
    def timestamp_index(self) -> int | None:
        ts = self.timestamp
        return ts[0] if ts else None

    def require_position(self, table_name: str, columns: Sequence[str]) -> "ColumnRoles":
        """Return self, or raise :class:`SchemaError` if latitude/longitude is missing."""

        if not self.has_position:
            raise SchemaError(table_name, tuple(columns))
        return self


def is_timestamp_name(name: str) -> bool:
    """Return ``True`` if the column name looks like a date or timestamp column."""

    return name.lower().endswith(TIMESTAMP_SUFFIXES)


def classify_columns(
    column_names: Iterable[str],
    entry_suffix: str = DEFAULT_ENTRY_SUFFIX,
    start_suffix: str = DEFAULT_START_SUFFIX,
) -> ColumnRoles:
    """Assign column indices to roles based on their lower-cased name suffix.

    Parameters
    ----------
    column_names:
        Column names in table order.
    entry_suffix:
        Suffix marking an entry/creation date; such columns are primary
        timestamps placed after any start-date column.
    start_suffix:
        Suffix marking a start date; such columns lead the primary timestamps.

    Returns
    -------
    ColumnRoles
        Role indices. A name matches at most one role; the first matching
        suffix in the order latitude, longitude, altitude, date/timestamp wins.
    """

    entry_suffix = entry_suffix.lower()
    start_suffix = start_suffix.lower()

    lat: List[int] = []
    lon: List[int] = []
    alt: List[int] = []
    start: List[int] = []
    entry: List[int] = []
    secondary: List[int] = []

    for idx, name in enumerate(column_names):
        lname = name.lower()
        if lname.endswith("latitude"):
            lat.append(idx)
        elif lname.endswith("longitude"):
            lon.append(idx)
        elif lname.endswith("altitude"):
            alt.append(idx)
        elif lname.endswith(TIMESTAMP_SUFFIXES):
            if lname.endswith(start_suffix):
                start.append(idx)
            elif lname.endswith(entry_suffix):
                entry.append(idx)
            else:
                secondary.append(idx)

    return ColumnRoles(
        latitude=tuple(lat),
        longitude=tuple(lon),
        altitude=tuple(alt),
        timestamp_primary=tuple(start + entry),
        timestamp_secondary=tuple(secondary),
    )
