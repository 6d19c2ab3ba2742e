"""
edge-topology
=============
Graph queries over an indexed DuckDB edge table.
"""

from edge_topology.edge_store import EdgeRow, EdgeStore
from edge_topology.exceptions import ConfigurationError, GraphError, TopologyError
from edge_topology.graph_view import Direction, Edge, GraphView, Orientation
from edge_topology.processor import GraphQueryProcessor, PathResult
from edge_topology.traversal import ClosestFirstTraversal, TraversalState, Visit, closest_first

__all__ = [
    'EdgeRow', 'EdgeStore',
    'ConfigurationError', 'GraphError', 'TopologyError',
    'Direction', 'Edge', 'GraphView', 'Orientation',
    'GraphQueryProcessor', 'PathResult',
    'ClosestFirstTraversal', 'TraversalState', 'Visit', 'closest_first',
]
