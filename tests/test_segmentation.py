import pandas as pd
import pytest

from geo_tracks.geo import earth_radius, arc_angle, segment_distance
from geo_tracks.models import Coordinate, TrackPoint
from geo_tracks.segmentation import SegmentationContext, segment_events

BASE = pd.Timestamp("2022-06-01 08:00:00", tz="UTC")
GAP = pd.Timedelta(seconds=100)


def _pt(index, seconds, lat=0.0, lon=0.0, alt=0.0, located=True):
    ts = None if seconds is None else BASE + pd.Timedelta(seconds=seconds)
    coord = Coordinate(lon=lon, lat=lat, alt=alt) if located else None
    return TrackPoint(index=index, coordinate=coord, timestamp=ts)


def test_threshold_scenario_gives_two_events():
    points = [_pt(1, 0, 0.0, 0.0), _pt(2, 100, 0.0, 1.0), _pt(3, 201, 0.0, 1.0)]
    events = list(segment_events(points, GAP))

    assert [e.point_count for e in events] == [2, 1]
    assert events[0].distance_m == pytest.approx(arc_angle(0.0, 0.0, 0.0, 1.0) * earth_radius(0.0))
    assert events[1].distance_m == 0.0
    assert events[0].start_time == BASE
    assert events[0].end_time == BASE + pd.Timedelta(seconds=100)
    assert events[1].duration == pd.Timedelta(0)


def test_event_count_is_one_plus_large_gaps():
    deltas = [10, 200, 50, 101, 100, 300, 1]
    times = [0]
    for d in deltas:
        times.append(times[-1] + d)
    points = [_pt(i, t) for i, t in enumerate(times, start=1)]

    events = list(segment_events(points, GAP))
    assert len(events) == 1 + sum(1 for d in deltas if d > 100)
    assert sum(e.point_count for e in events) == len(points)
    for event in events:
        stamps = [p.timestamp for p in event.points]
        assert all(b - a <= GAP for a, b in zip(stamps, stamps[1:]))


def test_gap_equal_to_threshold_does_not_split():
    events = list(segment_events([_pt(1, 0), _pt(2, 100), _pt(3, 200)], GAP))
    assert len(events) == 1


def test_absent_timestamps_never_split_or_update_last_time():
    points = [_pt(1, 0), _pt(2, None), _pt(3, 60), _pt(4, None), _pt(5, 161)]
    events = list(segment_events(points, GAP))
    assert [[p.index for p in e.points] for e in events] == [[1, 2, 3, 4], [5]]

    points = [_pt(1, 0), _pt(2, None), _pt(3, 150)]
    events = list(segment_events(points, GAP))
    assert [[p.index for p in e.points] for e in events] == [[1, 2], [3]]


def test_previous_coordinate_survives_event_boundary():
    ctx = SegmentationContext(event_gap=GAP)
    assert ctx.offer(_pt(1, 0, 0.0, 0.0)) is None
    first = ctx.offer(_pt(2, 500, 0.0, 0.5))
    assert first is not None and first.distance_m == 0.0
    second = ctx.flush()
    expected = segment_distance(Coordinate(0.0, 0.0), Coordinate(0.5, 0.0))
    assert second.point_count == 1
    assert second.distance_m == pytest.approx(expected)


def test_unlocated_points_are_kept_without_distance():
    points = [_pt(1, 0, 0.0, 0.0), _pt(2, 10, located=False), _pt(3, 20, 0.0, 1.0)]
    (event,) = segment_events(points, GAP)
    assert event.point_count == 3
    assert len(event.coordinates) == 2
    assert event.distance_m == pytest.approx(segment_distance(Coordinate(0.0, 0.0), Coordinate(1.0, 0.0)))


def test_altitude_sum_and_mean():
    points = [_pt(1, 0, alt=10.0), _pt(2, 10, alt=30.0), _pt(3, 20, located=False)]
    (event,) = segment_events(points, GAP, track_altitude=True)
    assert event.altitude_sum_m == 40.0
    assert event.mean_altitude_m == pytest.approx(40.0 / 3)
    assert event.has_altitude

    (flat,) = segment_events(points, GAP, track_altitude=False)
    assert flat.altitude_sum_m == 0.0
    assert not flat.has_altitude


def test_flush_and_reset():
    ctx = SegmentationContext(event_gap=GAP, table_name="ZRTCLLOCATIONMO")
    assert ctx.flush() is None
    ctx.offer(_pt(1, 0, 0.0, 0.0))
    ctx.offer(_pt(2, 10, 0.0, 1.0))
    assert ctx.is_open
    assert ctx.distance_m > 0
    ctx.reset()
    assert not ctx.is_open
    ctx.offer(_pt(3, 20, 5.0, 5.0))
    event = ctx.flush()
    assert event.table_name == "ZRTCLLOCATIONMO"
    assert event.distance_m == 0.0
    assert ctx.flush() is None
