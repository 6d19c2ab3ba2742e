import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterator, List, Union

import pandas as pd

from edge_topology import config
from edge_topology import logging_config as log_conf
from edge_topology.edge_store import EdgeStore, _quote
from edge_topology.exceptions import ConfigurationError, GraphError
from edge_topology.graph_view import Edge, GraphView, Orientation
from edge_topology.sp_methods import compute_distances_pure_duckdb, compute_distances_scipy
from edge_topology.traversal import ClosestFirstTraversal
from edge_topology.utilities import format_time

logger = logging.getLogger(__name__)


@dataclass
class PathResult:
    source: int
    target: int
    edges: List[Edge] = field(default_factory=list)
    length: float = math.inf

    @property
    def reachable(self) -> bool:
        return not math.isinf(self.length)

    @property
    def vertices(self) -> List[int]:
        if not self.reachable:
            return []
        return [self.source] + [e.target for e in self.edges]


class GraphQueryProcessor:
    """
    Runs the graph queries over one edge table.

    Every ``iter_*``/row-producing method is lazy: rows are computed as they
    are consumed, so callers may stop early. The ``*_df`` methods collect the
    same rows into a DataFrame with the declared column names.
    """

    def __init__(self, store: EdgeStore, orientation=Orientation.DIRECTED,
                 radius: float = math.inf, cancel=None, workers: int = 1,
                 check_interval: int = config.CANCEL_CHECK_INTERVAL):
        if store.weight_column is None:
            raise ConfigurationError("The weight field is not set")
        if radius is None:
            radius = math.inf
        if radius < 0:
            raise ValueError(f"radius must be >= 0, got {radius}")
        self.store = store
        self.view = GraphView(store, orientation)
        self.radius = float(radius)
        self.cancel = cancel
        self.workers = max(1, int(workers))
        self.check_interval = check_interval

    @property
    def orientation(self) -> Orientation:
        return self.view.orientation

    def _traversal(self, sources) -> ClosestFirstTraversal:
        return ClosestFirstTraversal(self.view, sources, self.radius, self.cancel, self.check_interval)

    def _require_vertex(self, vertex: int, role: str = "source"):
        if not self.view.contains_vertex(vertex):
            raise GraphError(f"The graph must contain the {role} vertex {vertex}")

    # ------------------------------------------------------------------
    # Shortest path between two vertices
    # ------------------------------------------------------------------

    def shortest_path(self, source: int, target: int) -> PathResult:
        """
        Dijkstra from ``source`` until ``target`` is settled.

        An unreachable target (other component, beyond the radius, or a
        cancelled search) gives a PathResult with ``reachable == False``.
        """
        source, target = int(source), int(target)
        self._require_vertex(source, "source")
        self._require_vertex(target, "target")

        traversal = self._traversal(source)
        for visit in traversal:
            if visit.vertex == target:
                result = PathResult(source, target, traversal.path_to(target), visit.distance)
                logger.info(f"Shortest path {source} -> {target}: {len(result.edges)} edges, length {result.length}")
                return result

        logger.info(f"No path from {source} to {target} ({traversal.state.value})")
        return PathResult(source, target)

    def iter_shortest_path(self, source: int, target: int) -> Iterator[tuple]:
        """Original table rows of the path edges, in travel order."""
        for edge in self.shortest_path(source, target).edges:
            yield self.store.row_values(edge.row_id)

    def shortest_path_df(self, source: int, target: int) -> pd.DataFrame:
        return pd.DataFrame(list(self.iter_shortest_path(source, target)), columns=self.store.columns)

    # ------------------------------------------------------------------
    # Shortest path length to every vertex
    # ------------------------------------------------------------------

    def shortest_path_length_all(self, source: int) -> Iterator[tuple]:
        """
        Rows (id, start_node, end_node, weight) = (source, previous, vertex, distance).

        The first row is always (source, source, source, 0). ``previous`` is
        the vertex emitted just before, not the parent in the shortest-path
        tree, so it cannot be used to rebuild paths when branches interleave.
        """
        source = int(source)
        yield (source, source, source, 0.0)

        previous = source
        for visit in self._traversal(source):
            if visit.vertex == source:
                continue
            yield (source, previous, visit.vertex, visit.distance)
            previous = visit.vertex

    def shortest_path_length_df(self, source: int) -> pd.DataFrame:
        return pd.DataFrame(list(self.shortest_path_length_all(source)),
                            columns=config.SHORTEST_PATH_LENGTH_COLUMNS)

    # ------------------------------------------------------------------
    # Reachable edges
    # ------------------------------------------------------------------

    def _reachable_rows(self, source: int, tag_source: bool) -> Iterator[tuple]:
        for visit in self._traversal(source):
            if visit.vertex == source:
                continue
            edge = visit.edge
            geometry = self.view.geometry(edge)
            if tag_source:
                yield (geometry, edge.row_id, source, edge.weight, visit.distance)
            else:
                yield (geometry, edge.row_id, edge.weight, visit.distance)

    def reachable_edges(self, source: int) -> Iterator[tuple]:
        """Rows (the_geom, id, weight, distance), one per vertex settled within the radius."""
        source = int(source)
        self._require_vertex(source)
        return self._reachable_rows(source, tag_source=False)

    def reachable_edges_df(self, source: int) -> pd.DataFrame:
        return pd.DataFrame(list(self.reachable_edges(source)), columns=config.REACHABLE_EDGES_COLUMNS)

    def _source_values(self, nodes: Union[pd.DataFrame, str]) -> List[int]:
        if isinstance(nodes, str):
            nodes = self.store.cursor().execute(f"SELECT * FROM {_quote(nodes)}").df()
        matches = [c for c in nodes.columns if str(c).lower() == config.SOURCE]
        if not matches:
            raise GraphError("The table nodes must contain the column source")
        sources = [int(v) for v in nodes[matches[0]].tolist()]
        for source in sources:
            self._require_vertex(source)
        return sources

    def _cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()

    def _collect(self, source: int) -> List[tuple]:
        """Rows of one source, run on a worker thread."""
        if self._cancelled():
            return []
        start = time.time()
        try:
            rows = list(self._reachable_rows(source, tag_source=True))
        finally:
            # worker threads die with the executor, their cursors must not outlive them
            self.store.release_cursor()
        if log_conf.VERBOSE:
            logger.debug(f"  Source {source}: {len(rows)} edges [{format_time(time.time() - start)}]")
        return rows

    def multi_reachable_edges(self, nodes: Union[pd.DataFrame, str]) -> Iterator[tuple]:
        """
        Rows (the_geom, id, source, weight, distance) for every source of ``nodes``.

        ``nodes`` is a DataFrame or a table name with a ``source`` column. All
        sources are checked before any traversal starts. Output follows the
        order of the sources, also when traversals run on worker threads.
        """
        sources = self._source_values(nodes)
        logger.info(f"Reachable edges from {len(sources)} sources ({self.workers} workers)")
        return self._multi_rows(sources)

    def _multi_rows(self, sources: List[int]) -> Iterator[tuple]:
        if self.workers == 1:
            for source in sources:
                if self._cancelled():
                    return
                yield from self._reachable_rows(source, tag_source=True)
            return

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            for rows in executor.map(self._collect, sources):
                yield from rows

    def multi_reachable_edges_df(self, nodes: Union[pd.DataFrame, str]) -> pd.DataFrame:
        return pd.DataFrame(list(self.multi_reachable_edges(nodes)),
                            columns=config.MULTI_REACHABLE_EDGES_COLUMNS)

    # ------------------------------------------------------------------
    # Bulk distances
    # ------------------------------------------------------------------

    def shortest_distances(self, source: int, method: str = "LAZY") -> pd.DataFrame:
        """
        Settled distance of every vertex reachable from ``source``.

        LAZY runs the closest-first traversal, PURE relaxes inside DuckDB and
        SCIPY runs scipy's Dijkstra over the whole table. Rows are sorted by
        (distance, vertex) whatever the method.
        """
        source = int(source)
        method = method.upper()
        if method == "LAZY":
            visits = [(v.vertex, v.distance) for v in self._traversal(source)]
            df = pd.DataFrame(visits, columns=config.DISTANCE_COLUMNS)
        elif method == "PURE":
            df = compute_distances_pure_duckdb(self.store, source, self.orientation, self.radius)
        elif method == "SCIPY":
            df = compute_distances_scipy(self.store, source, self.orientation, self.radius)
        else:
            raise ValueError(f"Unknown sp_method {method!r}, expected one of {config.SP_METHODS}")
        return df.sort_values([config.DISTANCE, config.VERTEX], kind="stable").reset_index(drop=True)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def run(self, operation: str, source: int = None, target: int = None,
            nodes: Union[pd.DataFrame, str] = None, method: str = "LAZY") -> pd.DataFrame:
        """Run one named operation and return its rows as a DataFrame."""
        start = time.time()
        if operation == "shortest_path":
            df = self.shortest_path_df(source, target)
        elif operation == "shortest_path_length":
            df = self.shortest_path_length_df(source)
        elif operation == "reachable_edges":
            df = self.reachable_edges_df(source)
        elif operation == "multi_reachable_edges":
            df = self.multi_reachable_edges_df(nodes)
        elif operation == "shortest_distances":
            df = self.shortest_distances(source, method)
        else:
            raise ValueError(f"Unknown operation {operation!r}")
        logger.info(f"{operation} ({self.orientation.name}): {len(df):,} rows in {format_time(time.time() - start)}")
        return df
