"""CSV projection of closed events.

One output row per point of every non-joined table. Columns appear in the
order they were first seen across all tables; values are the rendered
attributes, so text columns keep their quoted literal form.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd

from geo_tracks.models import Event, Run, Track

logger = logging.getLogger(__name__)


class CsvProjection:
    """Accumulate point attributes and write them as one delimited table."""

    def __init__(self, delimiter: str = ",") -> None:
        self.delimiter = delimiter
        self._columns: Dict[str, None] = {}
        self._rows: List[Dict[str, str]] = []

    def accept(self, event: Event) -> None:
        # Joined tables repeat the rows of their base table.
        if event.joined_with:
            return
        for point in event.points:
            for name in point.attributes:
                self._columns.setdefault(name, None)
            self._rows.append(dict(point.attributes))

    def close_track(self, track: Track) -> None:
        pass

    def close_run(self, run: Run) -> None:
        pass

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def to_frame(self) -> pd.DataFrame:
        """Return the collected rows; missing attributes are empty strings."""

        return pd.DataFrame(self._rows, columns=self.columns).fillna("")

    def write(self, path: str | Path) -> Path:
        out_path = Path(path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        df = self.to_frame()
        df.to_csv(out_path, index=False, sep=self.delimiter, quoting=csv.QUOTE_ALL)
        logger.info("Saved %d rows to %s", len(df), out_path)
        return out_path
