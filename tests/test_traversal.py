"""Tests for the closest-first traversal."""

import itertools
import math
import threading

import numpy as np
import pytest

from edge_topology.exceptions import GraphError
from edge_topology.graph_view import GraphView, Orientation
from edge_topology.traversal import ClosestFirstTraversal, TraversalState, closest_first
from tests.conftest import SAMPLE_EDGES, make_store


def _chain(n):
    return [(i, i + 1, 1.0) for i in range(n)]


class TestOrdering:
    def test_visits_in_distance_order(self, sample_store):
        visits = list(ClosestFirstTraversal(GraphView(sample_store), 1))
        assert [v.vertex for v in visits] == [1, 2, 3, 4]
        assert [v.distance for v in visits] == [0.0, 1.0, 2.0, 3.0]

    def test_source_has_no_edge(self, sample_store):
        first = next(closest_first(GraphView(sample_store), 1))
        assert first.vertex == 1
        assert first.edge is None

    def test_spanning_tree_edges(self, sample_store):
        traversal = ClosestFirstTraversal(GraphView(sample_store), 1)
        visits = list(traversal)
        assert [v.edge.row_id for v in visits[1:]] == [0, 1, 3]
        # 3 is settled through 2, not by the direct edge of weight 5
        assert traversal.spanning_tree_edge(3).row_id == 1
        assert traversal.spanning_tree_edge(1) is None

    def test_non_decreasing_on_denser_graph(self, con):
        edges = [(1, 2, 7.0), (1, 3, 9.0), (1, 6, 14.0), (2, 3, 10.0), (2, 4, 15.0),
                 (3, 4, 11.0), (3, 6, 2.0), (4, 5, 6.0), (5, 6, 9.0)]
        store = make_store(con, edges)
        visits = list(closest_first(GraphView(store, Orientation.UNDIRECTED), 1))
        distances = [v.distance for v in visits]
        assert distances == sorted(distances)
        assert dict((v.vertex, v.distance) for v in visits) == {1: 0, 2: 7, 3: 9, 6: 11, 4: 20, 5: 20}

    def test_ties_follow_insertion_order(self, con):
        store = make_store(con, [(1, 3, 1.0), (1, 2, 1.0)])
        assert [v.vertex for v in closest_first(GraphView(store), 1)] == [1, 3, 2]

    def test_reversed_view(self, sample_store):
        visits = list(closest_first(GraphView(sample_store, Orientation.DIRECTED_REVERSED), 4))
        assert [(v.vertex, v.distance) for v in visits] == [(4, 0.0), (3, 1.0), (2, 2.0), (1, 3.0)]

    def test_null_weight_is_never_crossed(self, con):
        store = make_store(con, [(1, 2, None)])
        assert [v.vertex for v in closest_first(GraphView(store), 1)] == [1]

    def test_negative_weight_raises(self, con):
        store = make_store(con, [(1, 2, -1.0)])
        with pytest.raises(GraphError, match="Negative weight"):
            list(closest_first(GraphView(store), 1))


class TestMultiSource:
    def test_numpy_integer_source(self, sample_store):
        visits = list(closest_first(GraphView(sample_store), np.int64(1)))
        assert [v.vertex for v in visits] == [1, 2, 3, 4]

    def test_sources_batched_at_zero(self, sample_store):
        visits = list(ClosestFirstTraversal(GraphView(sample_store), [1, 10]))
        assert [v.vertex for v in visits] == [1, 10, 2, 11, 3, 4]
        assert [v.distance for v in visits] == [0.0, 0.0, 1.0, 2.0, 2.0, 3.0]
        assert visits[1].edge is None


class TestRadius:
    def test_radius_is_inclusive(self, sample_store):
        visits = list(closest_first(GraphView(sample_store), 1, radius=2.0))
        assert [v.vertex for v in visits] == [1, 2, 3]

    def test_zero_radius(self, sample_store):
        assert [v.vertex for v in closest_first(GraphView(sample_store), 1, radius=0)] == [1]

    def test_negative_radius(self, sample_store):
        with pytest.raises(ValueError):
            ClosestFirstTraversal(GraphView(sample_store), 1, radius=-1)

    @pytest.mark.parametrize("radius", [0.5, 1.0, 1.5, 2.0, 2.9, 3.0, 100.0])
    def test_no_vertex_within_radius_is_missed(self, sample_store, radius):
        view = GraphView(sample_store)
        full = {v.vertex: v.distance for v in closest_first(view, 1)}
        bounded = {v.vertex: v.distance for v in closest_first(view, 1, radius=radius)}
        assert bounded == {k: d for k, d in full.items() if d <= radius}


class TestLifecycle:
    def test_exhausted(self, sample_store):
        traversal = ClosestFirstTraversal(GraphView(sample_store), 1)
        assert traversal.state is TraversalState.READY
        list(traversal)
        assert traversal.state is TraversalState.EXHAUSTED

    def test_early_stop(self, sample_store):
        traversal = ClosestFirstTraversal(GraphView(sample_store), 1)
        first_two = list(itertools.islice(traversal, 2))
        assert [v.vertex for v in first_two] == [1, 2]
        assert traversal.state is TraversalState.EXPANDING
        assert not traversal.is_finalized(3)

    def test_restartable(self, sample_store):
        traversal = ClosestFirstTraversal(GraphView(sample_store), 1)
        assert list(traversal) == list(traversal)

    def test_accessors(self, sample_store):
        traversal = ClosestFirstTraversal(GraphView(sample_store), 1)
        list(traversal)
        assert traversal.shortest_path_length(4) == 3.0
        assert math.isinf(traversal.shortest_path_length(11))
        assert [e.row_id for e in traversal.path_to(4)] == [0, 1, 3]
        assert traversal.path_to(11) == []
        assert traversal.path_to(1) == []


class TestCancellation:
    def test_cancel_checked_at_interval(self, con):
        store = make_store(con, _chain(300))
        cancel = threading.Event()
        cancel.set()
        traversal = ClosestFirstTraversal(GraphView(store), 0, cancel=cancel, check_interval=100)
        visits = list(traversal)
        assert len(visits) == 100
        assert traversal.state is TraversalState.CANCELLED

    def test_unset_event_runs_to_the_end(self, con):
        store = make_store(con, _chain(150))
        traversal = ClosestFirstTraversal(GraphView(store), 0, cancel=threading.Event())
        assert len(list(traversal)) == 151
        assert traversal.state is TraversalState.EXHAUSTED

    def test_cancel_keeps_emitted_results(self, con):
        store = make_store(con, _chain(10))
        cancel = threading.Event()
        seen = []
        for visit in closest_first(GraphView(store), 0, cancel=cancel, check_interval=1):
            seen.append(visit.vertex)
            if visit.vertex == 3:
                cancel.set()
        assert seen == [0, 1, 2, 3]


class TestOrientationSymmetry:
    def test_reversed_view_matches_explicit_reversal(self, con):
        forward = make_store(con, SAMPLE_EDGES)
        swapped = make_store(con, [(e, s, w) for s, e, w in SAMPLE_EDGES], table="edges_swapped")
        for source in (1, 3, 4, 11):
            reversed_view = {v.vertex: v.distance
                             for v in closest_first(GraphView(forward, Orientation.DIRECTED_REVERSED), source)}
            explicit = {v.vertex: v.distance for v in closest_first(GraphView(swapped), source)}
            assert reversed_view == explicit
