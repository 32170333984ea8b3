"""Exception taxonomy shared by the row sources and the track builder."""

from __future__ import annotations


class GeoTracksError(Exception):
    """Base class for all errors raised by :mod:`geo_tracks`."""


class SchemaError(GeoTracksError, ValueError):
    """A table has no resolvable latitude or longitude column.

    Recoverable: the table is skipped and the rest of the run continues.
    """

    def __init__(self, table_name: str, columns: list[str] | tuple[str, ...]) -> None:
        self.table_name = table_name
        self.columns = list(columns)
        super().__init__(f"Missing latitude or longitude column in table {table_name!r}: {self.columns}")


class DecodeError(GeoTracksError, ValueError):
    """A single cell could not be read as the expected value.

    Recoverable: the affected point loses its coordinate or timestamp.
    """


class SourceFatalError(GeoTracksError, RuntimeError):
    """The underlying row store failed to prepare, step or read a statement."""
