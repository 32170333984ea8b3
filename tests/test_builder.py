import pandas as pd
import pytest

from geo_tracks.builder import TrackBuilder
from geo_tracks.config import DumperConfig
from geo_tracks.errors import SchemaError
from geo_tracks.geo import arc_angle, earth_radius
from geo_tracks.models import TableScan

COLUMNS = ("Z_PK", "ZTIMESTAMP", "ZLATITUDE", "ZLONGITUDE")
ROWS = [(1, 0.0, 0.0, 0.0), (2, 100.0, 0.0, 1.0), (3, 201.0, 0.0, 1.0)]


class RecordingSink:
    def __init__(self):
        self.calls = []

    def accept(self, event):
        self.calls.append(("event", event.table_name, event.point_count))

    def close_track(self, track):
        self.calls.append(("track", track.table_name, track.row_count))

    def close_run(self, run):
        self.calls.append(("run", run.source_name, len(run.tracks)))


def _builder(sinks=()):
    return TrackBuilder(DumperConfig(event_gap=pd.Timedelta(seconds=100)), sinks)


def _scan(rows=ROWS, columns=COLUMNS, name="ZRTCLLOCATIONMO", joined_with=None):
    return TableScan(name=name, columns=tuple(columns), rows=list(rows), joined_with=joined_with)


def test_threshold_scenario_through_builder():
    track = _builder().build_track(_scan(), source_name="Cache.sqlite")
    assert track.row_count == 3
    assert [e.point_count for e in track.events] == [2, 1]
    assert track.events[0].distance_m == pytest.approx(arc_angle(0, 0, 0, 1) * earth_radius(0))
    assert track.events[1].distance_m == 0.0
    assert track.events[0].source_name == "Cache.sqlite"


def test_point_attributes_and_description():
    track = _builder().build_track(_scan(), source_name="Cache.sqlite")
    point = track.events[0].points[0]
    assert point.index == 1
    assert point.title == "1"
    assert point.attributes["SOURCE_FILE_PATH"] == '"Cache.sqlite"'
    assert point.attributes["SOURCE_TABLE"] == '"ZRTCLLOCATIONMO"'
    assert point.attributes["ZTIMESTAMP"] == "0.000000"
    assert point.attributes["ZTIMESTAMP_PARSED"] == "2001-01-01 00:00:00"
    assert point.description.startswith("i: 1,\nZ_PK: 1,\nZTIMESTAMP: 0.000000 (")
    assert point.timestamp == pd.Timestamp("2001-01-01", tz="UTC")


def test_title_falls_back_to_timestamp():
    track = _builder().build_track(_scan(rows=[(0.5, 1.0, 2.0)], columns=COLUMNS[1:]))
    assert track.events[0].points[0].title == "2001-01-01T00:00:00.5Z"


def test_altitude_is_read_from_altitude_column():
    columns = ("ZTIMESTAMP", "ZLATITUDE", "ZLONGITUDE", "ZALTITUDE")
    track = _builder().build_track(_scan(rows=[(0.0, 10.0, 20.0, 123.0)], columns=columns))
    event = track.events[0]
    assert event.points[0].coordinate.alt == 123.0
    assert event.altitude_sum_m == 123.0


def test_unreadable_values_degrade_the_point():
    rows = [(1, 0.0, "north", 1.0), (2, None, 1.0, 1.0), (3, 10.0, None, 1.0)]
    track = _builder().build_track(_scan(rows=rows))
    points = track.events[0].points
    assert [p.coordinate is None for p in points] == [True, False, True]
    assert points[1].timestamp is None
    assert track.row_count == 3


def test_duplicate_column_keeps_first_value():
    columns = ("Z_PK", "ZLATITUDE", "ZLONGITUDE", "Z_PK")
    track = _builder().build_track(_scan(rows=[(1, 0.0, 0.0, 99)], columns=columns, joined_with="ZOTHERMO"))
    point = track.events[0].points[0]
    assert point.attributes["Z_PK"] == "1"
    assert point.description.startswith("Table ZRTCLLOCATIONMO left joined with ZOTHERMO\ni: 1")
    assert track.events[0].joined_with == "ZOTHERMO"


def test_no_timestamp_column_gives_single_event():
    rows = [(0.0, 0.0), (0.0, 1.0), (0.0, 2.0)]
    track = _builder().build_track(_scan(rows=rows, columns=("ZLATITUDE", "ZLONGITUDE")))
    assert len(track.events) == 1
    assert track.events[0].start_time is None


def test_missing_position_skips_only_that_table():
    sink = RecordingSink()
    builder = _builder([sink])
    with pytest.raises(SchemaError):
        builder.build_track(_scan(columns=("Z_PK", "ZTIMESTAMP", "ZLATITUDE", "ZTEXT"), name="ZNOTES"))
    assert sink.calls == []

    scans = [_scan(columns=("Z_PK", "ZTIMESTAMP", "ZNAME", "ZTEXT"), name="ZNOTES"), _scan()]
    run = builder.build_run("Cache.sqlite", scans)
    assert run.skipped_tables == ["ZNOTES"]
    assert [t.table_name for t in run.tracks] == ["ZRTCLLOCATIONMO"]
    assert sink.calls == [
        ("event", "ZRTCLLOCATIONMO", 2),
        ("event", "ZRTCLLOCATIONMO", 1),
        ("track", "ZRTCLLOCATIONMO", 3),
        ("run", "Cache.sqlite", 1),
    ]


def test_rebuilding_gives_identical_runs():
    first = _builder().build_run("Cache.sqlite", [_scan()])
    second = _builder().build_run("Cache.sqlite", [_scan()])
    assert first == second
