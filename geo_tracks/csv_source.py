"""CSV row source.

Lets tables exported from a location database (or any timestamped location
CSV) be fed to the track builder. Columns are classified by name only, so the
file needs no particular header beyond ``*latitude``/``*longitude`` columns.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pandas as pd

from geo_tracks.errors import SourceFatalError
from geo_tracks.models import TableScan
from geo_tracks.roles import DEFAULT_ENTRY_SUFFIX, DEFAULT_START_SUFFIX, classify_columns

logger = logging.getLogger(__name__)


def load_csv_frame(
    path: str | Path,
    entry_suffix: str = DEFAULT_ENTRY_SUFFIX,
    start_suffix: str = DEFAULT_START_SUFFIX,
) -> pd.DataFrame:
    """Read ``path`` and sort it by its first timestamp role column, if any.

    Sorting is stable so rows with equal timestamps keep their file order.
    Rows with a missing timestamp go last.

    Raises
    ------
    SourceFatalError
        If the file cannot be opened or parsed as CSV.
    """

    try:
        df = pd.read_csv(path, low_memory=False)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise SourceFatalError(f"Unable to read CSV file {str(path)!r}: {exc}") from exc
    roles = classify_columns(df.columns.astype(str), entry_suffix=entry_suffix, start_suffix=start_suffix)
    idx = roles.timestamp_index
    if idx is not None:
        order_col = df.columns[idx]
        df = df.sort_values(order_col, kind="mergesort", na_position="last").reset_index(drop=True)
        logger.debug("Ordered %s by %s", path, order_col)
    logger.info("Read %d rows from %s", len(df), path)
    return df


def iter_frame_rows(df: pd.DataFrame) -> Iterator[tuple]:
    """Yield rows as plain tuples; missing values surface as NaN or None."""

    yield from df.itertuples(index=False, name=None)


def iter_csv_scans(
    path: str | Path,
    entry_suffix: str = DEFAULT_ENTRY_SUFFIX,
    start_suffix: str = DEFAULT_START_SUFFIX,
) -> Iterator[TableScan]:
    """Yield a single scan named after the file stem."""

    df = load_csv_frame(path, entry_suffix=entry_suffix, start_suffix=start_suffix)
    yield TableScan(
        name=Path(path).stem,
        columns=tuple(str(c) for c in df.columns),
        rows=iter_frame_rows(df),
    )
