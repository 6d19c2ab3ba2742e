"""
Graph View
==========
Directed-multigraph abstraction over an ``EdgeStore``.

One class serves the three orientations. Each (orientation, direction) pair
maps to a list of lookup strategies: which index to query and whether the
stored row is read backwards. No edge data is ever copied.
"""

import logging
import numbers
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Iterator, List, Optional, Set, Tuple

from edge_topology import config
from edge_topology.edge_store import EdgeRow, EdgeStore
from edge_topology.exceptions import ConfigurationError, GraphError

logger = logging.getLogger(__name__)


class Orientation(IntEnum):
    DIRECTED = config.DIRECT
    DIRECTED_REVERSED = config.DIRECT_REVERSED
    UNDIRECTED = config.UNDIRECT

    @classmethod
    def from_code(cls, code) -> "Orientation":
        """Accept an Orientation, its integer code or its name."""
        if isinstance(code, cls):
            return code
        if isinstance(code, str):
            text = code.strip()
            if text.isdigit():
                code = int(text)
            elif text.upper() in cls.__members__:
                return cls[text.upper()]
        # bools and fractional codes are never valid
        if isinstance(code, numbers.Integral) and not isinstance(code, bool):
            try:
                return cls(int(code))
            except ValueError:
                pass
        raise GraphError(
            f"Unsupported orientation {code!r}. Only 3 types of graphs are allowed: "
            "1 directed, 2 directed with edges reversed, 3 undirected"
        )


class Direction(Enum):
    OUT = "out"
    IN = "in"


@dataclass(frozen=True)
class Edge:
    source: int
    target: int
    weight: float
    row_id: int

    def __str__(self):
        return f"({self.source} : {self.target} : {self.weight})"


# (index to query, read the row backwards)
_START, _END = "start", "end"
_STRATEGIES: Dict[Tuple[Orientation, Direction], List[Tuple[str, bool]]] = {
    (Orientation.DIRECTED, Direction.OUT): [(_START, False)],
    (Orientation.DIRECTED, Direction.IN): [(_END, False)],
    (Orientation.DIRECTED_REVERSED, Direction.OUT): [(_END, True)],
    (Orientation.DIRECTED_REVERSED, Direction.IN): [(_START, True)],
    (Orientation.UNDIRECTED, Direction.OUT): [(_START, False), (_END, True)],
    (Orientation.UNDIRECTED, Direction.IN): [(_END, False), (_START, True)],
}


def _as_edge(row: EdgeRow, flipped: bool) -> Edge:
    if flipped:
        return Edge(row.end, row.start, row.weight, row.row_id)
    return Edge(row.start, row.end, row.weight, row.row_id)


class GraphView:
    """Read-only graph over an edge table under one orientation."""

    def __init__(self, store: EdgeStore, orientation=Orientation.DIRECTED):
        if store.weight_column is None:
            raise ConfigurationError("The weight field is not set")
        self.store = store
        self.orientation = Orientation.from_code(orientation)
        self._vertex_set: Optional[Set[int]] = None

    def __repr__(self):
        return f"GraphView({self.store.table!r}, {self.orientation.name})"

    # ------------------------------------------------------------------
    # Vertices
    # ------------------------------------------------------------------

    def contains_vertex(self, vertex: int) -> bool:
        if self._vertex_set is not None:
            return vertex in self._vertex_set
        return self.store.has_vertex(vertex)

    def vertex_set(self) -> Set[int]:
        """All endpoint values, scanned once and then cached."""
        if self._vertex_set is None:
            vertices = set()
            for row in self.store.iter_rows():
                vertices.add(row.start)
                vertices.add(row.end)
            self._vertex_set = vertices
            logger.info(f"Vertex set of {self.store.table}: {len(vertices):,} vertices")
        return self._vertex_set

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def edge_set(self) -> Iterator[Edge]:
        flipped = self.orientation is Orientation.DIRECTED_REVERSED
        for row in self.store.iter_rows():
            yield _as_edge(row, flipped)

    def _rows(self, index: str, vertex: int) -> List[EdgeRow]:
        if index == _START:
            return self.store.rows_by_start(vertex)
        return self.store.rows_by_end(vertex)

    def neighbor_edges(self, vertex: int, direction: Direction = Direction.OUT) -> List[Edge]:
        """Edges leaving (OUT) or entering (IN) ``vertex`` under this orientation."""
        edges = []
        seen = set()
        for index, flipped in _STRATEGIES[(self.orientation, direction)]:
            for row in self._rows(index, vertex):
                # an undirected self-loop comes back from both indexes
                if row.row_id in seen:
                    continue
                seen.add(row.row_id)
                edges.append(_as_edge(row, flipped))
        return edges

    def out_edges(self, vertex: int) -> List[Edge]:
        return self.neighbor_edges(vertex, Direction.OUT)

    def in_edges(self, vertex: int) -> List[Edge]:
        return self.neighbor_edges(vertex, Direction.IN)

    def edges_of(self, vertex: int) -> List[Edge]:
        """Every edge touching ``vertex``, each row once."""
        edges = self.out_edges(vertex)
        seen = {e.row_id for e in edges}
        edges.extend(e for e in self.in_edges(vertex) if e.row_id not in seen)
        return edges

    def all_edges(self, source: int, target: int) -> List[Edge]:
        """Every edge from ``source`` to ``target``, lowest row id first."""
        if self.orientation is Orientation.DIRECTED:
            return [_as_edge(r, False) for r in self.store.rows_by_start_and_end(source, target)]
        if self.orientation is Orientation.DIRECTED_REVERSED:
            return [_as_edge(r, True) for r in self.store.rows_by_start_and_end(target, source)]

        by_row = {}
        for row in self.store.rows_by_start_and_end(source, target):
            by_row[row.row_id] = _as_edge(row, False)
        for row in self.store.rows_by_start_and_end(target, source):
            by_row.setdefault(row.row_id, _as_edge(row, True))
        return [by_row[k] for k in sorted(by_row)]

    def edge_between(self, source: int, target: int) -> Optional[Edge]:
        """One edge from ``source`` to ``target`` (the lowest row id), or None."""
        edges = self.all_edges(source, target)
        return edges[0] if edges else None

    def contains_edge(self, source: int, target: int) -> bool:
        return self.edge_between(source, target) is not None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def weight(self, edge: Edge) -> float:
        return edge.weight

    def geometry_ref(self, edge: Edge) -> Optional[int]:
        return edge.row_id if self.store.geometry_column else None

    def geometry(self, edge: Edge):
        return self.store.geometry_at(edge.row_id)

    def opposite(self, edge: Edge, vertex: int) -> int:
        if edge.source == vertex:
            return edge.target
        if edge.target == vertex:
            return edge.source
        raise GraphError(f"Vertex {vertex} is not an endpoint of edge {edge}")

    # ------------------------------------------------------------------
    # Degrees
    # ------------------------------------------------------------------

    def _degree(self, vertex: int, direction: Direction) -> int:
        strategies = _STRATEGIES[(self.orientation, direction)]
        if len(strategies) == 1:
            index = strategies[0][0]
            lookup = self.store.lookup_by_start if index == _START else self.store.lookup_by_end
            return len(lookup(vertex))
        return len(set(self.store.lookup_by_start(vertex)) | set(self.store.lookup_by_end(vertex)))

    def out_degree(self, vertex: int) -> int:
        return self._degree(vertex, Direction.OUT)

    def in_degree(self, vertex: int) -> int:
        return self._degree(vertex, Direction.IN)

    def degree(self, vertex: int) -> int:
        """Number of distinct rows touching ``vertex``."""
        return len(set(self.store.lookup_by_start(vertex)) | set(self.store.lookup_by_end(vertex)))
