"""Event segmentation based on time gaps.

A :class:`SegmentationContext` owns all mutable state of one table scan: the
open event's points, its running distance and altitude sums, the rolling last
timestamp and the previous coordinate. It is reset at table start; the event
accumulators are reset whenever an event closes.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List

import pandas as pd

from geo_tracks.geo import segment_distance
from geo_tracks.models import Coordinate, Event, TrackPoint

logger = logging.getLogger(__name__)

DEFAULT_EVENT_GAP = pd.Timedelta(hours=2)


class SegmentationContext:
    """Two-state (empty/open) segmenter fed one point at a time."""

    def __init__(
        self,
        event_gap: pd.Timedelta = DEFAULT_EVENT_GAP,
        table_name: str = "",
        source_name: str = "",
        joined_with: str | None = None,
        track_altitude: bool = False,
    ) -> None:
        self.event_gap = event_gap
        self.table_name = table_name
        self.source_name = source_name
        self.joined_with = joined_with
        self.track_altitude = track_altitude
        self.reset()

    def reset(self) -> None:
        """Return to a clean slate, including the previous-coordinate pointer."""

        self._points: List[TrackPoint] = []
        self._distance = 0.0
        self._altitude_sum = 0.0
        self._last_time: pd.Timestamp | None = None
        self._prev_coord: Coordinate | None = None

    @property
    def is_open(self) -> bool:
        return bool(self._points)

    @property
    def distance_m(self) -> float:
        return self._distance

    @property
    def altitude_sum_m(self) -> float:
        return self._altitude_sum

    def offer(self, point: TrackPoint) -> Event | None:
        """Add a point, returning the event it closed (if the time gap split one)."""

        closed: Event | None = None
        if point.timestamp is not None:
            if (
                self._points
                and self._last_time is not None
                and point.timestamp - self._last_time > self.event_gap
            ):
                closed = self._close()
            self._last_time = point.timestamp

        self._points.append(point)

        coord = point.coordinate
        if coord is not None:
            if self.track_altitude:
                self._altitude_sum += coord.alt
            if self._prev_coord is not None:
                self._distance += segment_distance(self._prev_coord, coord)
            self._prev_coord = coord
        return closed

    def flush(self) -> Event | None:
        """Close the open event at end of stream; ``None`` when nothing is open."""

        if not self._points:
            return None
        return self._close()

    def _close(self) -> Event:
        points = tuple(self._points)
        times = [p.timestamp for p in points if p.timestamp is not None]
        event = Event(
            points=points,
            start_time=times[0] if times else None,
            end_time=times[-1] if times else None,
            distance_m=self._distance,
            altitude_sum_m=self._altitude_sum,
            table_name=self.table_name,
            source_name=self.source_name,
            joined_with=self.joined_with,
        )
        logger.debug(
            "Closing event in %s: %d points, %s - %s",
            self.table_name,
            len(points),
            event.start_time,
            event.end_time,
        )
        self._points = []
        self._distance = 0.0
        self._altitude_sum = 0.0
        return event


def segment_events(
    points: Iterable[TrackPoint],
    event_gap: pd.Timedelta = DEFAULT_EVENT_GAP,
    table_name: str = "",
    track_altitude: bool = False,
) -> Iterator[Event]:
    """Lazily yield closed events from an ordered point stream."""

    ctx = SegmentationContext(event_gap=event_gap, table_name=table_name, track_altitude=track_altitude)
    for point in points:
        closed = ctx.offer(point)
        if closed is not None:
            yield closed
    final = ctx.flush()
    if final is not None:
        yield final
