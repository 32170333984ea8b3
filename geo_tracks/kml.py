"""KML projection of closed events.

Document layout::

    Document
      Folder <source path>            (omitted for custom query runs)
        Folder <TABLE> (<rows>)
          Folder Event (<n>) <start> - <end>
            Placemark Path            (optional LineString)
            Folder Points
              Placemark <title>       (one Point per located row)

Coordinates are written as lon,lat,alt in WGS84.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List
from xml.sax.saxutils import escape

import numpy as np

from geo_tracks.models import Coordinate, Event, Run, Track
from geo_tracks.timeutils import format_duration, format_rfc3339

logger = logging.getLogger(__name__)

PATH_STYLE_ID = "yellowLineGreenPoly"
NO_PATH_TABLE_SUFFIX = "OFINTERESTMO"
DEFAULT_DESCRIPTION = "Built using geo-track-dumper"


def _kml_header(name: str, description: str) -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
<Document>
<name>{escape(name)}</name>
<description>{_cdata(description)}</description>
<open>1</open>
"""


def _kml_footer() -> str:
    return """</Document>
</kml>
"""


def _style_block(style_id: str, line_color: str, poly_color: str) -> str:
    return f"""<Style id="{style_id}">
<LineStyle>
<color>{line_color}</color>
<width>4</width>
</LineStyle>
<PolyStyle>
<color>{poly_color}</color>
</PolyStyle>
</Style>
"""


def _kml_color(hex_rgb: str, alpha: str = "ff") -> str:
    """Convert #RRGGBB to KML AABBGGRR."""
    hex_rgb = hex_rgb.lstrip("#")
    if len(hex_rgb) != 6:
        return "ff0000ff"
    r, g, b = hex_rgb[0:2], hex_rgb[2:4], hex_rgb[4:6]
    return f"{alpha}{b}{g}{r}"


def _cdata(text: str) -> str:
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def _num(value: float) -> str:
    return np.format_float_positional(float(value), trim="-")


def format_coordinate(coord: Coordinate) -> str:
    return f"{_num(coord.lon)},{_num(coord.lat)},{_num(coord.alt)}"


def _folder(name: str, children: Iterable[str], description: str | None = None, open_: bool | None = None) -> str:
    parts = [f"<Folder>\n<name>{escape(name)}</name>\n"]
    if description is not None:
        parts.append(f"<description>{_cdata(description)}</description>\n")
    if open_ is not None:
        parts.append(f"<open>{int(open_)}</open>\n")
    parts.extend(children)
    parts.append("</Folder>\n")
    return "".join(parts)


def _path_placemark(coords: Iterable[Coordinate], absolute: bool) -> str:
    mode = "absolute" if absolute else "clampToGround"
    text = " ".join(format_coordinate(c) for c in coords)
    return f"""<Placemark>
<name>Path</name>
<styleUrl>#{PATH_STYLE_ID}</styleUrl>
<LineString>
<extrude>1</extrude>
<tessellate>1</tessellate>
<altitudeMode>{mode}</altitudeMode>
<coordinates>{text}</coordinates>
</LineString>
</Placemark>
"""


def _point_placemark(name: str, description: str, coord: Coordinate) -> str:
    return f"""<Placemark>
<name>{escape(name)}</name>
<description>{_cdata(description)}</description>
<Point>
<coordinates>{format_coordinate(coord)}</coordinates>
</Point>
</Placemark>
"""


def event_title(event: Event) -> str:
    """``Event (n) start - end``, or ``Event (n) start`` for a zero span."""

    head = f"Event ({event.point_count})"
    if event.start_time is None:
        return head
    if event.end_time is not None and event.end_time > event.start_time:
        return f"{head} {format_rfc3339(event.start_time)} - {format_rfc3339(event.end_time)}"
    return f"{head} {format_rfc3339(event.start_time)}"


def event_summary(event: Event) -> str:
    return (
        f"{{time: {format_duration(event.duration)}, dist: {event.distance_m:f}m, "
        f"mean altitude: {event.mean_altitude_m:f}m}}"
    )


def event_folder(event: Event, show_event_lines: bool = False) -> str:
    """Render one closed event as a KML folder."""

    children: List[str] = []
    coords = event.coordinates
    if (
        show_event_lines
        and event.point_count > 1
        and len(coords) > 1
        and not event.table_name.endswith(NO_PATH_TABLE_SUFFIX)
    ):
        children.append(_path_placemark(coords, absolute=event.has_altitude))

    points = [
        _point_placemark(p.title, p.description, p.coordinate) for p in event.points if p.coordinate is not None
    ]
    children.append(_folder("Points", points))

    description = event_summary(event) if event.point_count > 1 else None
    return _folder(event_title(event), children, description=description)


class KmlProjection:
    """Collect closed events into a KML document, one folder level per run/table/event."""

    def __init__(self, name: str, show_event_lines: bool = False, description: str = DEFAULT_DESCRIPTION) -> None:
        self.name = name
        self.show_event_lines = show_event_lines
        self.description = description
        self._events: List[str] = []
        self._tables: List[str] = []
        self._sources: List[str] = []

    def accept(self, event: Event) -> None:
        self._events.append(event_folder(event, self.show_event_lines))

    def close_track(self, track: Track) -> None:
        self._tables.append(_folder(f"{track.table_name} ({track.row_count})", self._events, open_=False))
        self._events = []

    def close_run(self, run: Run) -> None:
        if run.custom_query:
            self._sources.extend(self._tables)
        else:
            self._sources.append(_folder(run.source_name, self._tables, open_=False))
        self._tables = []

    def render(self) -> str:
        parts = [
            _kml_header(self.name, self.description),
            _style_block(PATH_STYLE_ID, _kml_color("#FFFF00", "7f"), _kml_color("#00FF00", "7f")),
            *self._sources,
            _kml_footer(),
        ]
        return "".join(parts)

    def write(self, path: str | Path) -> Path:
        out_path = Path(path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(self.render(), encoding="utf-8")
        logger.info("Wrote KML to %s", out_path)
        return out_path
