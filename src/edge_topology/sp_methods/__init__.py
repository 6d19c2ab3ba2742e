"""
SP Methods Package
==================
Eager single-source distance computations over the whole edge table.

Available methods:
- PURE: Uses pure DuckDB SQL (iterative Bellman-Ford relaxation)
- SCIPY: Uses scipy.sparse.csgraph.dijkstra
"""

from edge_topology.sp_methods.pure import compute_distances_pure_duckdb
from edge_topology.sp_methods.scipy import compute_distances_scipy

__all__ = ['compute_distances_pure_duckdb', 'compute_distances_scipy']
