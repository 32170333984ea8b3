"""Timestamp decoding and formatting utilities.

Location databases written by Apple frameworks store times as fractional
seconds since 2001-01-01T00:00:00Z. Decoded values are UTC
:class:`pandas.Timestamp` objects so nanosecond remainders survive.
"""

from __future__ import annotations

import math
from typing import Final

import pandas as pd

# Seconds between the Unix epoch and 2001-01-01T00:00:00Z.
COCOA_EPOCH_OFFSET: Final[int] = 978307200

PARSED_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"


def decode_timestamp(raw: float | None) -> pd.Timestamp | None:
    """Convert a stored epoch value into an absolute UTC timestamp.

    Parameters
    ----------
    raw:
        Fractional seconds since the 2001 epoch, or ``None`` when the column
        was null.

    Returns
    -------
    pd.Timestamp | None
        The decoded time, or ``None`` when the value is absent, not finite,
        or outside the range pandas can represent.
    """

    if raw is None:
        return None
    raw = float(raw)
    if not math.isfinite(raw):
        return None

    frac, whole = math.modf(raw)
    try:
        ts = pd.Timestamp(int(whole) + COCOA_EPOCH_OFFSET, unit="s", tz="UTC")
        return ts + pd.Timedelta(int(round(frac * 1e9)), unit="ns")
    except (OverflowError, ValueError, pd.errors.OutOfBoundsDatetime):
        return None


def format_parsed(ts: pd.Timestamp) -> str:
    """Format a timestamp for the ``*_PARSED`` companion attribute."""

    return ts.strftime(PARSED_FORMAT)


def format_rfc3339(ts: pd.Timestamp) -> str:
    """Format as RFC 3339 in UTC with trailing zero nanoseconds trimmed."""

    ts = ts.tz_convert("UTC") if ts.tzinfo is not None else ts.tz_localize("UTC")
    text = ts.strftime("%Y-%m-%dT%H:%M:%S")
    nanos = ts.microsecond * 1000 + ts.nanosecond
    if nanos:
        text += "." + f"{nanos:09d}".rstrip("0")
    return text + "Z"


def _trim_number(value: float) -> str:
    text = f"{value:.9f}".rstrip("0").rstrip(".")
    return text or "0"


def format_duration(delta: pd.Timedelta) -> str:
    """Format a duration like ``1h2m3.5s`` (sub-second values use ms/us/ns)."""

    nanos = int(delta.value)
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)

    if nanos < 1_000:
        return f"{sign}{nanos}ns"
    if nanos < 1_000_000:
        return f"{sign}{_trim_number(nanos / 1_000)}us"
    if nanos < 1_000_000_000:
        return f"{sign}{_trim_number(nanos / 1_000_000)}ms"

    hours, rem = divmod(nanos, 3_600 * 10**9)
    minutes, rem = divmod(rem, 60 * 10**9)
    seconds = _trim_number(rem / 1e9)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def parse_duration(value: str | int | float | pd.Timedelta) -> pd.Timedelta:
    """Parse a duration given as ``"2h"``, ``"90min"``, ``"1h30m"`` or seconds.

    Raises
    ------
    ValueError
        If the value cannot be interpreted as a non-negative duration.
    """

    if isinstance(value, pd.Timedelta):
        delta = value
    elif isinstance(value, (int, float)):
        delta = pd.Timedelta(seconds=float(value))
    else:
        text = str(value).strip()
        try:
            delta = pd.Timedelta(seconds=float(text))
        except ValueError:
            try:
                delta = pd.Timedelta(text)
            except ValueError as exc:
                raise ValueError(f"Invalid duration: {value!r}") from exc
    if delta < pd.Timedelta(0):
        raise ValueError(f"Duration must not be negative: {value!r}")
    return delta
