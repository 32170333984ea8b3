"""Track building: rows to points to events, per table and per source.

The builder classifies columns once per table, turns each row into a
:class:`TrackPoint`, feeds the points through a :class:`SegmentationContext`
and hands every closed event to the configured output projections.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Protocol, Sequence

from geo_tracks.base import PipelineComponent
from geo_tracks.config import DumperConfig
from geo_tracks.errors import DecodeError, SchemaError
from geo_tracks.models import Coordinate, Event, Run, TableScan, Track, TrackPoint
from geo_tracks.roles import ColumnRoles, classify_columns, is_timestamp_name
from geo_tracks.segmentation import SegmentationContext
from geo_tracks.timeutils import decode_timestamp, format_parsed, format_rfc3339
from geo_tracks.values import NULL_CELL, Cell, cell_as_float, quote_text, render_cell, to_cell

SOURCE_FILE_COLUMN = "SOURCE_FILE_PATH"
SOURCE_TABLE_COLUMN = "SOURCE_TABLE"
PARSED_SUFFIX = "_PARSED"
PRIMARY_KEY_COLUMN = "Z_PK"


class EventSink(Protocol):
    """Output projection fed by the track builder."""

    def accept(self, event: Event) -> None:
        ...

    def close_track(self, track: Track) -> None:
        ...

    def close_run(self, run: Run) -> None:
        ...


def _cell_at(cells: Sequence[Cell], index: int | None) -> Cell:
    if index is None or index >= len(cells):
        return NULL_CELL
    return cells[index]


class TrackBuilder(PipelineComponent):
    """Build :class:`Track` and :class:`Run` trees from table scans."""

    def __init__(self, config: DumperConfig, sinks: Iterable[EventSink] = ()) -> None:
        super().__init__(config)
        self.sinks: List[EventSink] = list(sinks)

    def classify(self, scan: TableScan) -> ColumnRoles:
        """Classify the scan's columns, raising :class:`SchemaError` without a position."""

        roles = classify_columns(
            scan.columns,
            entry_suffix=self.config.entry_suffix,
            start_suffix=self.config.start_suffix,
        )
        return roles.require_position(scan.name, scan.columns)

    def build_track(self, scan: TableScan, source_name: str = "") -> Track:
        """Scan one table to completion and return its events."""

        columns = tuple(scan.columns)
        self.logger.debug("cols: %s", list(columns))
        roles = self.classify(scan)

        ctx = SegmentationContext(
            event_gap=self.config.event_gap,
            table_name=scan.name,
            source_name=source_name,
            joined_with=scan.joined_with,
            track_altitude=bool(roles.altitude),
        )
        track = Track(table_name=scan.name, joined_with=scan.joined_with)

        for row in scan.rows:
            track.row_count += 1
            point = self.build_point(row, columns, roles, track.row_count, scan, source_name)
            closed = ctx.offer(point)
            if closed is not None:
                self._emit(track, closed)

        final = ctx.flush()
        if final is not None:
            self._emit(track, final)

        for sink in self.sinks:
            sink.close_track(track)
        self.logger.debug("Table %s: %d rows, %d events", scan.name, track.row_count, len(track.events))
        return track

    def build_run(self, source_name: str, scans: Iterable[TableScan], custom_query: bool = False) -> Run:
        """Build every table of a source; tables without a position are skipped."""

        run = Run(source_name=source_name, custom_query=custom_query)
        for scan in scans:
            self.logger.debug("Table %s", scan.name)
            try:
                track = self.build_track(scan, source_name)
            except SchemaError as exc:
                self.logger.debug("Skipping table: %s", exc)
                run.skipped_tables.append(scan.name)
                continue
            run.tracks.append(track)

        for sink in self.sinks:
            sink.close_run(run)
        return run

    def build_point(
        self,
        row: Sequence[object],
        columns: Sequence[str],
        roles: ColumnRoles,
        index: int,
        scan: TableScan,
        source_name: str,
    ) -> TrackPoint:
        """Turn one row into a point; unreadable values degrade the point."""

        cells = [to_cell(value) for value in row]
        escape = self.config.escape_ascii

        attributes: Dict[str, str] = {
            SOURCE_FILE_COLUMN: quote_text(source_name, escape),
            SOURCE_TABLE_COLUMN: quote_text(scan.name, escape),
        }
        description = f"i: {index}"
        if scan.joined_with:
            description = f"Table {scan.name} left joined with {scan.joined_with}\n" + description

        for name, cell in zip(columns, cells):
            # The first occurrence wins, so joined columns never overwrite the base table.
            if cell.is_null or name in attributes:
                continue
            text = render_cell(cell, escape)
            attributes[name] = text
            suffix = ""
            if cell.is_numeric and is_timestamp_name(name):
                decoded = decode_timestamp(float(cell.value))
                if decoded is not None:
                    suffix = f" ({decoded})"
                    attributes[name + PARSED_SUFFIX] = format_parsed(decoded)
            description += f",\n{name}: {text}{suffix}"

        timestamp = None
        if roles.timestamp_index is not None:
            raw = self._read_number(cells, roles.timestamp_index, columns, scan.name)
            timestamp = decode_timestamp(raw)

        coordinate = None
        lat = self._read_number(cells, roles.latitude_index, columns, scan.name)
        lon = self._read_number(cells, roles.longitude_index, columns, scan.name)
        if lat is not None and lon is not None:
            alt = 0.0
            if roles.altitude_index is not None:
                alt = self._read_number(cells, roles.altitude_index, columns, scan.name) or 0.0
            coordinate = Coordinate(lon=lon, lat=lat, alt=alt)
        self.logger.debug("point: %s @ %s", coordinate, timestamp)

        if PRIMARY_KEY_COLUMN in attributes:
            title = attributes[PRIMARY_KEY_COLUMN]
        elif timestamp is not None:
            title = format_rfc3339(timestamp)
        else:
            title = str(index)

        return TrackPoint(
            index=index,
            coordinate=coordinate,
            timestamp=timestamp,
            attributes=attributes,
            title=title,
            description=description,
        )

    def _read_number(
        self,
        cells: Sequence[Cell],
        index: int | None,
        columns: Sequence[str],
        table_name: str,
    ) -> float | None:
        cell = _cell_at(cells, index)
        try:
            value = cell_as_float(cell)
        except DecodeError as exc:
            self.logger.debug("Unreadable %s in %s: %s", columns[index], table_name, exc)
            return None
        if value is not None and not math.isfinite(value):
            self.logger.debug("Non-finite %s in %s", columns[index], table_name)
            return None
        return value

    def _emit(self, track: Track, event: Event) -> None:
        track.events.append(event)
        for sink in self.sinks:
            sink.accept(event)
