"""Shared pytest fixtures and helpers for edge-topology tests."""

import duckdb
import pytest

from edge_topology.edge_store import EdgeStore

EDGE_DDL = """
    CREATE TABLE {table} (
        id INTEGER,
        start_node BIGINT,
        end_node BIGINT,
        weight DOUBLE,
        the_geom VARCHAR
    )
"""

# rowid: 0 1 2 3 4
SAMPLE_EDGES = [
    (1, 2, 1.0),
    (2, 3, 1.0),
    (1, 3, 5.0),
    (3, 4, 1.0),
    (10, 11, 2.0),
]


def geometry_of(start, end) -> str:
    return f"LINESTRING ({start} 0, {end} 0)"


def make_store(con, edges, table="edges", weight="weight", geometry=True) -> EdgeStore:
    """Create ``table`` holding ``edges`` (start, end, weight) in row order."""
    con.execute(EDGE_DDL.format(table=table))
    rows = [(i + 1, s, e, w, geometry_of(s, e)) for i, (s, e, w) in enumerate(edges)]
    if rows:
        con.executemany(f"INSERT INTO {table} VALUES (?, ?, ?, ?, ?)", rows)
    return EdgeStore(con, table=table, weight_column=weight,
                     geometry_column="the_geom" if geometry else None)


@pytest.fixture
def con():
    """In-memory DuckDB connection."""
    connection = duckdb.connect(":memory:")
    try:
        yield connection
    finally:
        connection.close()


@pytest.fixture
def sample_store(con) -> EdgeStore:
    """1->2->3->4 chain with a 1->3 shortcut of weight 5, plus 10->11 apart."""
    store = make_store(con, SAMPLE_EDGES)
    try:
        yield store
    finally:
        store.close()
