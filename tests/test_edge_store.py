"""Tests for EdgeStore: schema checks, row access and indexed lookups."""

import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from edge_topology.edge_store import EdgeRow, EdgeStore
from edge_topology.exceptions import ConfigurationError
from tests.conftest import make_store


class TestSchema:
    def test_columns_in_table_order(self, sample_store):
        assert sample_store.columns == ["id", "start_node", "end_node", "weight", "the_geom"]

    def test_missing_table(self, con):
        with pytest.raises(ConfigurationError, match="does not exist"):
            EdgeStore(con, table="nowhere")

    def test_view_is_rejected(self, con, sample_store):
        con.execute("CREATE VIEW edges_view AS SELECT * FROM edges")
        with pytest.raises(ConfigurationError, match="base table"):
            EdgeStore(con, table="edges_view", weight_column="weight")

    def test_missing_start_column(self, con, sample_store):
        with pytest.raises(ConfigurationError, match="from_node"):
            EdgeStore(con, start_column="from_node", weight_column="weight")

    def test_missing_weight_column(self, con, sample_store):
        with pytest.raises(ConfigurationError, match="cost"):
            EdgeStore(con, weight_column="cost")

    def test_weight_not_set(self, con, sample_store):
        store = EdgeStore(con)
        # id lookups need no weight
        assert store.lookup_by_start(1) == [0, 2]
        with pytest.raises(ConfigurationError, match="weight field is not set"):
            store.rows_by_start(1)
        with pytest.raises(ConfigurationError):
            store.row_at(0)

    def test_set_weight_column(self, con, sample_store):
        store = EdgeStore(con)
        store.set_weight_column("weight")
        assert store.row_at(0).weight == 1.0


class TestRows:
    def test_row_count(self, sample_store):
        assert sample_store.row_count() == 5

    def test_row_at(self, sample_store):
        assert sample_store.row_at(2) == EdgeRow(2, 1, 3, 5.0, 2)

    def test_row_at_unknown(self, sample_store):
        with pytest.raises(IndexError):
            sample_store.row_at(99)

    def test_row_values(self, sample_store):
        assert sample_store.row_values(0) == (1, 1, 2, 1.0, "LINESTRING (1 0, 2 0)")

    def test_geometry(self, sample_store):
        assert sample_store.geometry_at(3) == "LINESTRING (3 0, 4 0)"

    def test_no_geometry_column(self, con):
        store = make_store(con, [(1, 2, 1.0)], geometry=False)
        assert store.row_at(0).geometry_ref is None
        assert store.geometry_at(0) is None

    def test_null_weight_reads_as_infinity(self, con):
        store = make_store(con, [(1, 2, None)])
        assert math.isinf(store.row_at(0).weight)

    def test_iter_rows(self, sample_store):
        rows = list(sample_store.iter_rows(batch_size=2))
        assert [r.row_id for r in rows] == [0, 1, 2, 3, 4]
        assert [(r.start, r.end) for r in rows] == [(1, 2), (2, 3), (1, 3), (3, 4), (10, 11)]

    def test_edge_frame(self, sample_store):
        df = sample_store.edge_frame()
        assert list(df.columns) == ["start", "end", "weight"]
        assert df["weight"].tolist() == [1.0, 1.0, 5.0, 1.0, 2.0]


class TestLookups:
    def test_lookup_by_start(self, sample_store):
        assert sample_store.lookup_by_start(1) == [0, 2]

    def test_lookup_by_end(self, sample_store):
        assert sample_store.lookup_by_end(3) == [1, 2]

    def test_lookup_by_start_and_end(self, sample_store):
        assert sample_store.lookup_by_start_and_end(1, 3) == [2]
        assert sample_store.lookup_by_start_and_end(3, 1) == []

    def test_unknown_vertex_is_empty(self, sample_store):
        assert sample_store.lookup_by_start(99) == []
        assert sample_store.rows_by_end(99) == []

    def test_parallel_edges_ordered_by_row_id(self, con):
        store = make_store(con, [(1, 2, 3.0), (1, 2, 1.0), (1, 2, 2.0)])
        assert store.lookup_by_start_and_end(1, 2) == [0, 1, 2]
        assert [r.weight for r in store.rows_by_start_and_end(1, 2)] == [3.0, 1.0, 2.0]

    def test_rows_by_start(self, sample_store):
        assert sample_store.rows_by_start(3) == [EdgeRow(3, 3, 4, 1.0, 3)]

    def test_has_vertex(self, sample_store):
        assert sample_store.has_vertex(1)
        assert sample_store.has_vertex(4)  # end node only
        assert not sample_store.has_vertex(99)

    def test_ensure_indexed_is_idempotent(self, con, sample_store):
        sample_store.lookup_by_start(1)
        sample_store.lookup_by_end(1)
        sample_store.lookup_by_start_and_end(1, 2)
        sample_store.ensure_indexed(("start_node",))
        sample_store.lookup_by_start(2)
        count = con.execute(
            "SELECT count(*) FROM duckdb_indexes() WHERE table_name = 'edges'"
        ).fetchone()[0]
        assert count == 3

    def test_release_cursor(self, sample_store):
        sample_store.lookup_by_start(1)
        assert sample_store.open_cursors() == 1
        sample_store.release_cursor()
        assert sample_store.open_cursors() == 0
        # a later lookup opens a fresh one
        assert sample_store.lookup_by_start(1) == [0, 2]
        assert sample_store.open_cursors() == 1
        sample_store.release_cursor()
        sample_store.release_cursor()

    def test_concurrent_lookups(self, sample_store):
        vertices = [1, 2, 3, 4, 10, 11] * 5
        expected = [sample_store.lookup_by_start(v) for v in vertices]
        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(sample_store.lookup_by_start, vertices))
        assert results == expected
