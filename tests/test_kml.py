import pandas as pd

from geo_tracks.config import DumperConfig
from geo_tracks.kml import KmlProjection, event_folder, event_summary, event_title, format_coordinate
from geo_tracks.models import Coordinate, Event, TrackPoint
from geo_tracks.pipeline import GeoTrackDumper

T0 = pd.Timestamp("2001-01-01T00:00:00", tz="UTC")


def _event(points, start=T0, end=T0 + pd.Timedelta(seconds=100), table="ZRTCLLOCATIONMO", altitude_sum=0.0):
    return Event(
        points=tuple(points),
        start_time=start,
        end_time=end,
        distance_m=1234.5,
        altitude_sum_m=altitude_sum,
        table_name=table,
    )


def _point(i, lon, lat, alt=0.0):
    return TrackPoint(index=i, coordinate=Coordinate(lon=lon, lat=lat, alt=alt), title=str(i), description=f"i: {i}")


def test_event_title_variants():
    points = [_point(1, 0.0, 0.0), _point(2, 1.0, 0.0)]
    assert event_title(_event(points)) == "Event (2) 2001-01-01T00:00:00Z - 2001-01-01T00:01:40Z"
    assert event_title(_event(points[:1], end=T0)) == "Event (1) 2001-01-01T00:00:00Z"
    assert event_title(_event(points, start=None, end=None)) == "Event (2)"


def test_event_summary():
    event = _event([_point(1, 0.0, 0.0, 10.0), _point(2, 1.0, 0.0, 20.0)], altitude_sum=30.0)
    assert event_summary(event) == "{time: 1m40s, dist: 1234.500000m, mean altitude: 15.000000m}"


def test_format_coordinate_trims_numbers():
    assert format_coordinate(Coordinate(lon=2.35, lat=48.85, alt=0.0)) == "2.35,48.85,0"


def test_path_only_when_lines_requested():
    points = [_point(1, 0.0, 0.0), _point(2, 1.0, 0.0)]
    assert "<name>Path</name>" not in event_folder(_event(points))
    with_lines = event_folder(_event(points), show_event_lines=True)
    assert "<name>Path</name>" in with_lines
    assert "<altitudeMode>clampToGround</altitudeMode>" in with_lines
    assert "<coordinates>0,0,0 1,0,0</coordinates>" in with_lines


def test_no_path_for_single_point_or_places_of_interest():
    single = event_folder(_event([_point(1, 0.0, 0.0)], end=T0), show_event_lines=True)
    assert "<name>Path</name>" not in single
    assert "<description>" not in single.split("<Folder>\n<name>Points</name>")[0]

    places = _event([_point(1, 0.0, 0.0), _point(2, 1.0, 0.0)], table="ZLOCATIONOFINTERESTMO")
    assert "<name>Path</name>" not in event_folder(places, show_event_lines=True)


def test_unlocated_points_are_not_placed():
    unlocated = TrackPoint(index=2, coordinate=None, title="2")
    folder = event_folder(_event([_point(1, 0.0, 0.0), unlocated]), show_event_lines=True)
    assert folder.count("<Point>") == 1
    assert "<name>Path</name>" not in folder


def test_document_from_database(location_db, tmp_path):
    kml = KmlProjection("Test", show_event_lines=True)
    GeoTrackDumper(DumperConfig(), [kml]).process_source(location_db)
    text = kml.render()

    assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert "<name>Test</name>" in text
    assert '<Style id="yellowLineGreenPoly">' in text
    assert f"<name>{location_db}</name>" in text
    assert "<name>ZRTCLLOCATIONMO (3)</name>" in text
    assert "<name>ZNOTES" not in text
    assert "<name>Event (2) 2001-01-01T00:00:00Z - 2001-01-01T00:01:40Z</name>" in text
    assert "<name>Event (1) 2001-01-01T02:13:20Z</name>" in text
    # Located rows with altitude get an absolute path; the transition table a clamped one.
    assert text.count("<name>Path</name>") == 2
    assert "<altitudeMode>absolute</altitudeMode>" in text
    assert "<coordinates>0,0,10 1,0,20</coordinates>" in text
    assert "café & bar" in text
    assert text.rstrip().endswith("</kml>")

    out = kml.write(tmp_path / "out" / "tracks.kml")
    assert out.read_text(encoding="utf-8") == text


def test_custom_query_run_has_no_source_folder(location_db):
    kml = KmlProjection("Test")
    cfg = DumperConfig(query="SELECT ZLATITUDE, ZLONGITUDE FROM ZRTCLLOCATIONMO")
    GeoTrackDumper(cfg, [kml]).process_source(location_db)
    text = kml.render()
    assert f"<name>{location_db}</name>" not in text
    assert "<name>query (3)</name>" in text
