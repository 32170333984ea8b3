"""Closed value variant for row cells and its text rendering.

Row sources hand over whatever their driver produces (Python scalars from
``sqlite3``, NumPy scalars from pandas). Each value is classified once into a
:class:`Cell` so downstream code dispatches on :class:`CellKind` instead of
inspecting runtime types again.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict

import numpy as np

from geo_tracks.errors import DecodeError


class CellKind(Enum):
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    BYTES = "bytes"
    NULL = "null"


@dataclass(frozen=True, slots=True)
class Cell:
    """A single typed value read from a row."""

    kind: CellKind
    value: Any = None

    @property
    def is_null(self) -> bool:
        return self.kind is CellKind.NULL

    @property
    def is_numeric(self) -> bool:
        return self.kind in (CellKind.INTEGER, CellKind.FLOAT)


NULL_CELL = Cell(CellKind.NULL)


def to_cell(value: Any) -> Cell:
    """Classify a raw driver value into a :class:`Cell`.

    ``bool`` is stored as an integer, NaN floats (pandas' missing marker) and
    ``None`` become NULL. Anything unrecognised is kept as TEXT via ``str``.
    """

    if value is None:
        return NULL_CELL
    if isinstance(value, (bool, np.bool_)):
        return Cell(CellKind.INTEGER, int(value))
    if isinstance(value, (int, np.integer)):
        return Cell(CellKind.INTEGER, int(value))
    if isinstance(value, (float, np.floating)):
        if math.isnan(value):
            return NULL_CELL
        return Cell(CellKind.FLOAT, float(value))
    if isinstance(value, str):
        return Cell(CellKind.TEXT, value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Cell(CellKind.BYTES, bytes(value))
    return Cell(CellKind.TEXT, str(value))


def quote_text(text: str, escape_ascii: bool = False) -> str:
    """Return ``text`` as a double-quoted literal with escapes."""

    return json.dumps(text, ensure_ascii=escape_ascii)


def _render_integer(cell: Cell, escape_ascii: bool) -> str:
    return f"{cell.value:d}"


def _render_float(cell: Cell, escape_ascii: bool) -> str:
    return f"{cell.value:f}"


def _render_text(cell: Cell, escape_ascii: bool) -> str:
    return quote_text(cell.value, escape_ascii)


def _render_bytes(cell: Cell, escape_ascii: bool) -> str:
    return quote_text(cell.value.decode("utf-8", errors="replace"), escape_ascii)


def _render_null(cell: Cell, escape_ascii: bool) -> str:
    return ""


_RENDERERS: Dict[CellKind, Callable[[Cell, bool], str]] = {
    CellKind.INTEGER: _render_integer,
    CellKind.FLOAT: _render_float,
    CellKind.TEXT: _render_text,
    CellKind.BYTES: _render_bytes,
    CellKind.NULL: _render_null,
}


def render_cell(cell: Cell, escape_ascii: bool = False) -> str:
    """Render a cell into the stable text form used by the projections."""

    return _RENDERERS[cell.kind](cell, escape_ascii)


def cell_as_float(cell: Cell) -> float | None:
    """Read a cell as a float the way a numeric column accessor would.

    Returns
    -------
    float | None
        ``None`` for NULL cells.

    Raises
    ------
    DecodeError
        If the cell holds bytes or text that is not a number.
    """

    if cell.kind is CellKind.NULL:
        return None
    if cell.is_numeric:
        return float(cell.value)
    if cell.kind is CellKind.TEXT:
        try:
            return float(cell.value.strip())
        except ValueError as exc:
            raise DecodeError(f"Not a number: {cell.value!r}") from exc
    raise DecodeError(f"Cannot read {cell.kind.value} cell as a number")
