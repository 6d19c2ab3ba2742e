"""
Indexed Edge Store
==================
Read-only access to one DuckDB edge table. Rows are addressed by DuckDB's
``rowid`` and looked up by start node, end node or (start, end) pair through
ART indexes that are created the first time each lookup is used.
"""

import logging
import threading
from typing import Iterator, List, NamedTuple, Optional, Sequence

import duckdb
import pandas as pd

from edge_topology import config
from edge_topology.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class EdgeRow(NamedTuple):
    row_id: int
    start: int
    end: int
    weight: float
    geometry_ref: Optional[int]


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


class EdgeStore:
    """
    One edge table seen through indexed point lookups.

    Every result is ordered by row id, so among parallel edges the one with
    the lowest row id always comes first.
    """

    def __init__(self, con: duckdb.DuckDBPyConnection, table: str = config.EDGES_TABLE,
                 start_column: str = config.START_NODE, end_column: str = config.END_NODE,
                 weight_column: str = None, geometry_column: str = None):
        self.con = con
        self.table = table
        self._local = threading.local()
        self._cursors = []
        self._lock = threading.Lock()
        self._indexed = set()

        self._columns = self._read_columns()
        self.start_column = self._require_column(start_column)
        self.end_column = self._require_column(end_column)
        self.weight_column = None
        self.geometry_column = self._require_column(geometry_column) if geometry_column else None
        if weight_column:
            self.set_weight_column(weight_column)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _read_columns(self) -> List[str]:
        table_type = self.con.execute(
            "SELECT table_type FROM information_schema.tables WHERE table_name = ?",
            [self.table],
        ).fetchone()
        if table_type is None:
            raise ConfigurationError(f"The edge table '{self.table}' does not exist")
        if table_type[0] != "BASE TABLE":
            raise ConfigurationError(
                f"The edge table '{self.table}' must be a base table, not {table_type[0]}"
            )
        rows = self.con.execute(
            "SELECT column_name FROM information_schema.columns "
            "WHERE table_name = ? ORDER BY ordinal_position",
            [self.table],
        ).fetchall()
        return [r[0] for r in rows]

    def _require_column(self, name: str) -> str:
        if name not in self._columns:
            raise ConfigurationError(f"The table must contain a field named {name}")
        return name

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def set_weight_column(self, name: str) -> None:
        self.weight_column = self._require_column(name)

    def _weight_expr(self) -> str:
        if self.weight_column is None:
            raise ConfigurationError("The weight field is not set")
        # NULL weights read as +inf so traversal never crosses them
        return f"COALESCE(CAST({_quote(self.weight_column)} AS DOUBLE), CAST('infinity' AS DOUBLE))"

    # ------------------------------------------------------------------
    # Connections and indexes
    # ------------------------------------------------------------------

    def cursor(self) -> duckdb.DuckDBPyConnection:
        """DuckDB cursor owned by the calling thread."""
        cur = getattr(self._local, "cursor", None)
        if cur is None:
            cur = self._new_cursor()
            self._local.cursor = cur
        return cur

    def _new_cursor(self) -> duckdb.DuckDBPyConnection:
        with self._lock:
            cur = self.con.cursor()
            self._cursors.append(cur)
        return cur

    def release_cursor(self):
        """Close the calling thread's cursor, if it has one."""
        cur = getattr(self._local, "cursor", None)
        if cur is None:
            return
        self._local.cursor = None
        with self._lock:
            if cur in self._cursors:
                self._cursors.remove(cur)
        cur.close()

    def open_cursors(self) -> int:
        with self._lock:
            return len(self._cursors)

    def close(self):
        with self._lock:
            for cur in self._cursors:
                cur.close()
            self._cursors.clear()
        self._local = threading.local()

    def ensure_indexed(self, columns: Sequence[str]) -> None:
        """Build an index over ``columns`` unless this store already has."""
        key = tuple(columns)
        if key in self._indexed:
            return
        with self._lock:
            if key in self._indexed:
                return
            name = "idx_" + "_".join([self.table, *key])
            cols = ", ".join(_quote(c) for c in key)
            logger.info(f"Building index {name} on {self.table}({', '.join(key)})")
            self.con.execute(f"CREATE INDEX IF NOT EXISTS {_quote(name)} ON {_quote(self.table)} ({cols})")
            self._indexed.add(key)

    # ------------------------------------------------------------------
    # Row access
    # ------------------------------------------------------------------

    def row_count(self) -> int:
        return self.cursor().execute(f"SELECT count(*) FROM {_quote(self.table)}").fetchone()[0]

    def _select_rows(self) -> str:
        return (f"SELECT rowid, {_quote(self.start_column)}, {_quote(self.end_column)}, "
                f"{self._weight_expr()} FROM {_quote(self.table)}")

    def _to_row(self, record) -> EdgeRow:
        row_id = record[0]
        return EdgeRow(row_id, record[1], record[2], record[3],
                       row_id if self.geometry_column else None)

    def row_at(self, row_id: int) -> EdgeRow:
        record = self.cursor().execute(f"{self._select_rows()} WHERE rowid = ?", [row_id]).fetchone()
        if record is None:
            raise IndexError(f"No row {row_id} in {self.table}")
        return self._to_row(record)

    def row_values(self, row_id: int) -> tuple:
        """All columns of one row, in table order."""
        record = self.cursor().execute(
            f"SELECT * FROM {_quote(self.table)} WHERE rowid = ?", [row_id]
        ).fetchone()
        if record is None:
            raise IndexError(f"No row {row_id} in {self.table}")
        return tuple(record)

    def geometry_at(self, row_id: int):
        if self.geometry_column is None:
            return None
        record = self.cursor().execute(
            f"SELECT {_quote(self.geometry_column)} FROM {_quote(self.table)} WHERE rowid = ?", [row_id]
        ).fetchone()
        if record is None:
            raise IndexError(f"No row {row_id} in {self.table}")
        return record[0]

    def iter_rows(self, batch_size: int = config.SCAN_BATCH_SIZE) -> Iterator[EdgeRow]:
        """Full scan in row id order."""
        # A dedicated cursor keeps the scan alive across interleaved lookups
        cur = self._new_cursor()
        try:
            cur.execute(f"{self._select_rows()} ORDER BY rowid")
            while True:
                batch = cur.fetchmany(batch_size)
                if not batch:
                    break
                for record in batch:
                    yield self._to_row(record)
        finally:
            with self._lock:
                if cur in self._cursors:
                    self._cursors.remove(cur)
            cur.close()

    def arc_sql(self, flipped: bool = False) -> str:
        """SELECT yielding (src, dst, weight) per row, optionally read backwards."""
        src, dst = self.start_column, self.end_column
        if flipped:
            src, dst = dst, src
        return (f"SELECT {_quote(src)} AS src, {_quote(dst)} AS dst, "
                f"{self._weight_expr()} AS weight FROM {_quote(self.table)}")

    def edge_frame(self) -> pd.DataFrame:
        """Columns start, end, weight for every row."""
        return self.cursor().execute(
            f"SELECT {_quote(self.start_column)} AS start, {_quote(self.end_column)} AS \"end\", "
            f"{self._weight_expr()} AS weight FROM {_quote(self.table)} ORDER BY rowid"
        ).df()

    # ------------------------------------------------------------------
    # Index lookups
    # ------------------------------------------------------------------

    def _lookup_ids(self, columns: Sequence[str], values: Sequence[int]) -> List[int]:
        self.ensure_indexed(columns)
        where = " AND ".join(f"{_quote(c)} = ?" for c in columns)
        records = self.cursor().execute(
            f"SELECT rowid FROM {_quote(self.table)} WHERE {where} ORDER BY rowid", list(values)
        ).fetchall()
        return [r[0] for r in records]

    def _lookup_rows(self, columns: Sequence[str], values: Sequence[int]) -> List[EdgeRow]:
        self.ensure_indexed(columns)
        where = " AND ".join(f"{_quote(c)} = ?" for c in columns)
        records = self.cursor().execute(
            f"{self._select_rows()} WHERE {where} ORDER BY rowid", list(values)
        ).fetchall()
        return [self._to_row(r) for r in records]

    def lookup_by_start(self, vertex: int) -> List[int]:
        return self._lookup_ids((self.start_column,), (vertex,))

    def lookup_by_end(self, vertex: int) -> List[int]:
        return self._lookup_ids((self.end_column,), (vertex,))

    def lookup_by_start_and_end(self, start: int, end: int) -> List[int]:
        return self._lookup_ids((self.start_column, self.end_column), (start, end))

    def rows_by_start(self, vertex: int) -> List[EdgeRow]:
        return self._lookup_rows((self.start_column,), (vertex,))

    def rows_by_end(self, vertex: int) -> List[EdgeRow]:
        return self._lookup_rows((self.end_column,), (vertex,))

    def rows_by_start_and_end(self, start: int, end: int) -> List[EdgeRow]:
        return self._lookup_rows((self.start_column, self.end_column), (start, end))

    def has_vertex(self, vertex: int) -> bool:
        for column in (self.start_column, self.end_column):
            self.ensure_indexed((column,))
            found = self.cursor().execute(
                f"SELECT 1 FROM {_quote(self.table)} WHERE {_quote(column)} = ? LIMIT 1", [vertex]
            ).fetchone()
            if found is not None:
                return True
        return False
