"""
Closest-First Traversal
=======================
Lazy Dijkstra expansion over a ``GraphView``.

Vertices come out in non-decreasing distance order, each with the edge that
settled it. Iteration can be stopped at any point; re-iterating starts over
from the sources.
"""

import heapq
import itertools
import logging
import math
import numbers
from enum import Enum
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Union

from edge_topology import config
from edge_topology.exceptions import GraphError
from edge_topology.graph_view import Direction, Edge, GraphView

logger = logging.getLogger(__name__)


class TraversalState(Enum):
    READY = "ready"
    EXPANDING = "expanding"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


class Visit(NamedTuple):
    vertex: int
    distance: float
    edge: Optional[Edge]  # None for a source


class ClosestFirstTraversal:
    """
    Closest-first iterator from one source or a batch of sources.

    Args:
        view: Graph to expand over (its orientation decides the neighbors)
        sources: A vertex or an iterable of vertices, all seeded at distance 0
        radius: Vertices farther than this are never queued
        cancel: Anything with ``is_set()`` (e.g. ``threading.Event``);
                polled every ``check_interval`` produced vertices
    """

    def __init__(self, view: GraphView, sources: Union[int, Iterable[int]],
                 radius: float = math.inf, cancel=None,
                 check_interval: int = config.CANCEL_CHECK_INTERVAL):
        if radius < 0:
            raise ValueError(f"radius must be >= 0, got {radius}")
        if check_interval < 1:
            raise ValueError(f"check_interval must be >= 1, got {check_interval}")
        self.view = view
        self.sources = [int(sources)] if isinstance(sources, numbers.Integral) else list(sources)
        self.radius = radius
        self.cancel = cancel
        self.check_interval = check_interval

        self.state = TraversalState.READY
        self._distances: Dict[int, float] = {}
        self._tree: Dict[int, Edge] = {}

    def __iter__(self) -> Iterator[Visit]:
        return self._expand()

    def _cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()

    def _expand(self) -> Iterator[Visit]:
        # Fresh state per iteration
        distances: Dict[int, float] = {}
        tree: Dict[int, Edge] = {}
        self._distances = distances
        self._tree = tree
        self.state = TraversalState.EXPANDING

        tentative: Dict[int, float] = {}
        provisional: Dict[int, Edge] = {}
        counter = itertools.count()
        frontier = []
        for source in self.sources:
            if source not in tentative:
                tentative[source] = 0.0
                heapq.heappush(frontier, (0.0, next(counter), source))

        produced = 0
        while frontier:
            if produced and produced % self.check_interval == 0 and self._cancelled():
                self.state = TraversalState.CANCELLED
                logger.debug(f"Traversal from {self.sources} cancelled after {produced} vertices")
                return

            distance, _, vertex = heapq.heappop(frontier)
            if vertex in distances:
                continue

            # stale entry, a cheaper one is still queued
            if distance > tentative[vertex]:
                continue

            distances[vertex] = distance
            edge = provisional.get(vertex)
            if edge is not None:
                tree[vertex] = edge

            for out in self.view.neighbor_edges(vertex, Direction.OUT):
                if out.weight < 0:
                    raise GraphError(f"Negative weight {out.weight} on row {out.row_id}")
                neighbor = out.target
                if neighbor in distances:
                    continue
                candidate = distance + out.weight
                if math.isinf(candidate) or candidate > self.radius:
                    continue
                known = tentative.get(neighbor)
                if known is None or candidate < known:
                    tentative[neighbor] = candidate
                    provisional[neighbor] = out
                    heapq.heappush(frontier, (candidate, next(counter), neighbor))

            produced += 1
            yield Visit(vertex, distance, edge)

        self.state = TraversalState.EXHAUSTED

    # ------------------------------------------------------------------
    # State of the latest iteration
    # ------------------------------------------------------------------

    def is_finalized(self, vertex: int) -> bool:
        return vertex in self._distances

    def shortest_path_length(self, vertex: int) -> float:
        """Settled distance of ``vertex``; inf when not (yet) reached."""
        return self._distances.get(vertex, math.inf)

    def spanning_tree_edge(self, vertex: int) -> Optional[Edge]:
        return self._tree.get(vertex)

    def path_to(self, vertex: int) -> List[Edge]:
        """Spanning-tree edges from a source to ``vertex``, in travel order."""
        if vertex not in self._distances:
            return []
        path = []
        edge = self._tree.get(vertex)
        while edge is not None:
            path.append(edge)
            edge = self._tree.get(edge.source)
        path.reverse()
        return path


def closest_first(view: GraphView, sources: Union[int, Iterable[int]],
                  radius: float = math.inf, cancel=None,
                  check_interval: int = config.CANCEL_CHECK_INTERVAL) -> Iterator[Visit]:
    """Function form of ``ClosestFirstTraversal``."""
    return iter(ClosestFirstTraversal(view, sources, radius, cancel, check_interval))
