"""High-level pipeline orchestration for the track dumper."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from geo_tracks.base import PipelineComponent
from geo_tracks.builder import EventSink, TrackBuilder
from geo_tracks.config import DumperConfig
from geo_tracks.csv_source import iter_csv_scans
from geo_tracks.models import Run
from geo_tracks.sqlite_io import SqliteRowStore


def read_file_list(path: str | Path) -> List[str]:
    """Read a list file with one source path per line; blank lines are ignored."""

    with Path(path).open("r", encoding="utf-8") as fh:
        return [line.strip() for line in fh if line.strip()]


class GeoTrackDumper(PipelineComponent):
    """Coordinate the end-to-end workflow from source files to projections."""

    def __init__(self, config: DumperConfig, sinks: Iterable[EventSink] = ()) -> None:
        """Initialise the track builder with the provided projections."""

        super().__init__(config)
        self.builder = TrackBuilder(config, sinks)

    def process_source(self, path: str | Path) -> Run:
        """Build the run of one source file.

        CSV files yield a single track. SQLite files yield one track per table,
        or one synthetic track when a custom query is configured. The database
        connection is released before this method returns or raises.
        """

        source_name = str(path)
        if Path(path).suffix.lower() == ".csv":
            scans = iter_csv_scans(
                path,
                entry_suffix=self.config.entry_suffix,
                start_suffix=self.config.start_suffix,
            )
            return self.builder.build_run(source_name, scans)

        with SqliteRowStore.open(
            path,
            busy_timeout=self.config.busy_timeout,
            entry_suffix=self.config.entry_suffix,
            start_suffix=self.config.start_suffix,
        ) as store:
            if self.config.query:
                return self.builder.build_run(source_name, store.iter_query_scans(self.config.query), custom_query=True)
            return self.builder.build_run(source_name, store.iter_table_scans())

    def run(self, paths: Iterable[str | Path]) -> List[Run]:
        """Process every source in order and return their runs."""

        runs: List[Run] = []
        for path in paths:
            if not str(path).strip():
                continue
            self.logger.info("Processing %s", path)
            run = self.process_source(path)
            self.logger.info(
                "%s: %d tracks, %d events, %d tables skipped",
                path,
                len(run.tracks),
                run.event_count,
                len(run.skipped_tables),
            )
            runs.append(run)
        return runs
