"""CLI entry point for the track dumper.

Reads SQLite location databases (or CSV exports), splits their located rows
into events on time gaps, and writes KML and/or CSV output. Command-line
values override the YAML config.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List

from geo_tracks.config import DumperConfig, resolve_config
from geo_tracks.csv_export import CsvProjection
from geo_tracks.errors import SourceFatalError
from geo_tracks.kml import KmlProjection
from geo_tracks.pipeline import GeoTrackDumper, read_file_list


def configure_logging(log_cfg: Dict[str, object], debug: bool = False) -> None:
    """Configure root logger with a console handler and an optional file handler."""

    level_name = "DEBUG" if debug else str(log_cfg.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s - %(levelname)s - %(message)s"
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(stream_handler)

    log_dir = log_cfg.get("dir")
    if log_dir:
        log_path = Path(str(log_dir)) / str(log_cfg.get("filename", "dumper.log"))
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(file_handler)
        root.info("Logging to %s (level=%s)", log_path, level_name)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(
        prog="geo-track-dumper",
        description="View the contents of a geo SQLite file as events of located points.",
    )
    p.add_argument("files", nargs="*", help="SQLite (or .csv) files to process.")
    p.add_argument("-c", "--config", default=None, help="Path to YAML config file.")
    p.add_argument("--debug", action="store_true", default=None, help="Verbose output.")
    p.add_argument(
        "-e",
        "--event-time",
        dest="event_gap",
        default=None,
        metavar="TIME",
        help="Event qualifier, time between events to split on (default 2h).",
    )
    p.add_argument(
        "-E",
        "--show-event-lines",
        dest="show_event_lines",
        action="store_true",
        default=None,
        help="Show event lines for a series of points within event-time.",
    )
    p.add_argument("--timeout", dest="busy_timeout", default=None, metavar="TIME", help="Busy timeout for SQLite calls.")
    p.add_argument("-q", "--query", default=None, metavar="SQL", help="Custom query for SQLite.")
    p.add_argument("--list", dest="file_list", default=None, metavar="FILE", help="File with one input path per line.")

    kml = p.add_argument_group("KML")
    kml.add_argument("-N", "--name", default=None, metavar="TEXT", help="Name to use for base KML folder.")
    kml.add_argument("--kml", default=None, metavar="FILENAME", help="Export to KML file.")

    out_csv = p.add_argument_group("CSV")
    out_csv.add_argument("--csv", default=None, metavar="FILENAME", help="Export to CSV file.")
    out_csv.add_argument("--delimiter", default=None, metavar="DELIM", help="Single-character delimiter for CSV output.")
    out_csv.add_argument(
        "--escape-ascii",
        dest="escape_ascii",
        action="store_true",
        default=None,
        help="Escape non-ASCII characters in rendered text values.",
    )
    return p


def _resolve(args: argparse.Namespace) -> DumperConfig:
    cfg = resolve_config(args.config)
    return cfg.with_overrides(
        event_gap=args.event_gap,
        show_event_lines=args.show_event_lines,
        busy_timeout=args.busy_timeout,
        query=args.query,
        name=args.name,
        delimiter=args.delimiter,
        escape_ascii=args.escape_ascii,
        debug=args.debug,
    )


def main(argv: List[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        cfg = _resolve(args)
    except (OSError, ValueError) as exc:
        parser.error(str(exc))

    configure_logging(cfg.logging, debug=cfg.debug)

    paths: List[str] = list(args.files)
    if args.file_list:
        try:
            paths.extend(read_file_list(args.file_list))
        except OSError as exc:
            logging.error("Error reading in list file %r, %s", args.file_list, exc)
            return 1
    if not paths:
        parser.print_usage(sys.stderr)
        logging.warning("No input files given.")
        return 0

    sinks = []
    kml = KmlProjection(cfg.name, show_event_lines=cfg.show_event_lines) if args.kml else None
    csv_out = CsvProjection(delimiter=cfg.delimiter) if args.csv else None
    sinks.extend(s for s in (kml, csv_out) if s is not None)

    dumper = GeoTrackDumper(cfg, sinks)
    try:
        runs = dumper.run(paths)
    except SourceFatalError as exc:
        logging.error("%s", exc)
        return 1

    if kml is not None:
        kml.write(args.kml)
    if csv_out is not None:
        csv_out.write(args.csv)
    logging.info("Processed %d sources, %d events", len(runs), sum(r.event_count for r in runs))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
