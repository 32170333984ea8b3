"""Read-only SQLite row store.

Covers the file header check, table and column enumeration, the ordered
``SELECT`` per table (with the ``*TRANSITIONMO`` left-join heuristic) and the
custom query override. Every statement failure is raised as
:class:`SourceFatalError`.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Iterator, List, Sequence
from urllib.parse import quote

import pandas as pd

from geo_tracks.errors import SourceFatalError
from geo_tracks.models import TableScan
from geo_tracks.roles import DEFAULT_ENTRY_SUFFIX, DEFAULT_START_SUFFIX, classify_columns

logger = logging.getLogger(__name__)

SQLITE_HEADER = b"SQLite format 3\x00"
TRANSITION_SUFFIX = "TRANSITIONMO"
JOIN_SUFFIX = "MO"
QUERY_SCAN_NAME = "query"
FETCH_SIZE = 1000


def check_sqlite_header(path: str | Path) -> None:
    """Raise :class:`SourceFatalError` unless ``path`` starts with the SQLite header."""

    try:
        with Path(path).open("rb") as fh:
            header = fh.read(len(SQLITE_HEADER))
    except OSError as exc:
        raise SourceFatalError(f"Unable to read file {str(path)!r}: {exc}") from exc
    if not header:
        raise SourceFatalError(f"Empty file or unable to read bytes in file {str(path)!r}")
    if header != SQLITE_HEADER:
        raise SourceFatalError(f'Header of file is not in "SQLite format 3", {str(path)!r}')


def readonly_uri(path: str | Path) -> str:
    """Build a read-only, immutable SQLite URI with the path percent-encoded."""

    return f"file:{quote(str(path), safe='/')}?mode=ro&nolock=1&immutable=1"


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def join_partner(table: str, tables: Sequence[str]) -> str | None:
    """Return the ``XMO`` table to left-join onto ``XTRANSITIONMO``, if it exists."""

    if not table.endswith(TRANSITION_SUFFIX):
        return None
    partner = table[: -len(TRANSITION_SUFFIX)] + JOIN_SUFFIX
    return partner if partner in tables else None


class SqliteRowStore:
    """A read-only connection producing :class:`TableScan` objects."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        entry_suffix: str = DEFAULT_ENTRY_SUFFIX,
        start_suffix: str = DEFAULT_START_SUFFIX,
    ) -> None:
        self.connection = connection
        self.entry_suffix = entry_suffix
        self.start_suffix = start_suffix

    @classmethod
    @contextmanager
    def open(
        cls,
        path: str | Path,
        busy_timeout: pd.Timedelta = pd.Timedelta(seconds=10),
        entry_suffix: str = DEFAULT_ENTRY_SUFFIX,
        start_suffix: str = DEFAULT_START_SUFFIX,
    ) -> Iterator["SqliteRowStore"]:
        """Open ``path`` read-only; the connection is closed on every exit path."""

        check_sqlite_header(path)
        try:
            conn = sqlite3.connect(readonly_uri(path), uri=True, timeout=busy_timeout.total_seconds())
        except sqlite3.Error as exc:
            raise SourceFatalError(f"Unable to open {str(path)!r}: {exc}") from exc
        try:
            yield cls(conn, entry_suffix=entry_suffix, start_suffix=start_suffix)
        finally:
            conn.close()

    def _fetch_names(self, sql: str, params: Sequence[object] = ()) -> List[str]:
        with closing(self.connection.execute(sql, params)) as cur:
            return [str(row[0]) for row in cur.fetchall()]

    def list_tables(self) -> List[str]:
        """Return table names in schema order."""

        try:
            return self._fetch_names("SELECT name FROM sqlite_schema WHERE type='table'")
        except sqlite3.OperationalError:
            # sqlite_schema is only an alias from SQLite 3.33 on.
            pass
        try:
            return self._fetch_names("SELECT name FROM sqlite_master WHERE type='table'")
        except sqlite3.Error as exc:
            raise SourceFatalError(f"failed to select table list: {exc}") from exc

    def list_columns(self, table: str) -> List[str]:
        """Return the column names of ``table``."""

        try:
            return self._fetch_names("SELECT name FROM pragma_table_info(?)", (table,))
        except sqlite3.Error as exc:
            raise SourceFatalError(f"failed to select column list: {exc}") from exc

    def order_column(self, table: str) -> str | None:
        """First timestamp role column of ``table``, used as the ORDER BY key."""

        columns = self.list_columns(table)
        roles = classify_columns(columns, entry_suffix=self.entry_suffix, start_suffix=self.start_suffix)
        idx = roles.timestamp_index
        return columns[idx] if idx is not None else None

    def _execute(self, sql: str) -> sqlite3.Cursor:
        try:
            return self.connection.execute(sql)
        except sqlite3.Error as exc:
            raise SourceFatalError(f"failed to select data: {exc}") from exc

    def _iter_rows(self, cursor: sqlite3.Cursor) -> Iterator[tuple]:
        while True:
            try:
                batch = cursor.fetchmany(FETCH_SIZE)
            except sqlite3.Error as exc:
                raise SourceFatalError(f"step failed while querying data: {exc}") from exc
            if not batch:
                return
            yield from batch

    def _open_table_cursor(self, table: str, tables: Sequence[str]) -> tuple[sqlite3.Cursor, str | None]:
        order_col = self.order_column(table)
        partner = join_partner(table, tables)
        if partner is not None:
            sql = (
                f"SELECT * FROM {quote_identifier(table)} AS a "
                f"LEFT JOIN {quote_identifier(partner)} AS b ON a.ZLOCATIONOFINTEREST = b.Z_PK"
            )
            if order_col is not None:
                sql += f" ORDER BY a.{quote_identifier(order_col)}"
            try:
                return self.connection.execute(sql), partner
            except sqlite3.Error as exc:
                logger.debug("Join of %s with %s failed, selecting plain table: %s", table, partner, exc)

        sql = f"SELECT * FROM {quote_identifier(table)}"
        if order_col is not None:
            sql += f" ORDER BY {quote_identifier(order_col)}"
        return self._execute(sql), None

    def iter_table_scans(self, tables: Sequence[str] | None = None) -> Iterator[TableScan]:
        """Yield one scan per table; each cursor is closed before the next opens."""

        all_tables = self.list_tables()
        for table in tables if tables is not None else all_tables:
            cursor, partner = self._open_table_cursor(table, all_tables)
            with closing(cursor):
                columns = tuple(d[0] for d in cursor.description or ())
                yield TableScan(name=table, columns=columns, rows=self._iter_rows(cursor), joined_with=partner)

    def iter_query_scans(self, sql: str) -> Iterator[TableScan]:
        """Yield the single synthetic scan of a custom query."""

        cursor = self._execute(sql)
        with closing(cursor):
            columns = tuple(d[0] for d in cursor.description or ())
            yield TableScan(name=QUERY_SCAN_NAME, columns=columns, rows=self._iter_rows(cursor))
