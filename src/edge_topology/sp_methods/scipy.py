"""
Scipy-based Shortest Path Algorithm
====================================
Uses scipy.sparse.csgraph.dijkstra for single-source distances over the
whole edge table.
"""

import logging
import math

import numpy as np
import pandas as pd
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import dijkstra

from edge_topology import config
from edge_topology.edge_store import EdgeStore
from edge_topology.graph_view import Orientation

logger = logging.getLogger(__name__)


def compute_distances_scipy(store: EdgeStore, source: int, orientation: Orientation = Orientation.DIRECTED,
                            radius: float = math.inf) -> pd.DataFrame:
    """
    Distances from ``source`` using scipy's Dijkstra.

    Args:
        store: Edge table
        source: Start vertex
        orientation: DIRECTED, DIRECTED_REVERSED or UNDIRECTED
        radius: Vertices farther than this are left out

    Returns:
        DataFrame with columns ['vertex', 'distance'], source included at 0
    """
    orientation = Orientation.from_code(orientation)
    pdf = store.edge_frame()
    pdf = pdf[np.isfinite(pdf['weight'].values)]

    if orientation is Orientation.DIRECTED_REVERSED:
        pdf = pdf.rename(columns={'start': 'end', 'end': 'start'})

    # Map nodes to indices
    nodes = pd.concat([pd.Series([source]), pdf['start'], pdf['end']]).astype('int64').unique()
    n_nodes = len(nodes)
    node_to_idx = pd.Series(data=np.arange(n_nodes), index=nodes)

    if len(pdf) == 0:
        return pd.DataFrame({config.VERTEX: [int(source)], config.DISTANCE: [0.0]})

    # Parallel edges: keep the cheapest (csr_matrix would sum them)
    pdf_dedup = pdf.loc[pdf.groupby(['start', 'end'])['weight'].idxmin()]

    src_indices = pdf_dedup['start'].map(node_to_idx).values
    dst_indices = pdf_dedup['end'].map(node_to_idx).values
    costs = pdf_dedup['weight'].values.astype('float64')

    graph = csr_matrix((costs, (src_indices, dst_indices)), shape=(n_nodes, n_nodes))

    dist = dijkstra(
        csgraph=graph,
        directed=orientation is not Orientation.UNDIRECTED,
        indices=int(node_to_idx[source]),
        limit=radius,
    )

    reached = np.isfinite(dist)
    logger.debug(f"scipy dijkstra from {source}: {int(reached.sum())} of {n_nodes} vertices reached")
    return pd.DataFrame({
        config.VERTEX: nodes[reached].astype('int64'),
        config.DISTANCE: dist[reached],
    })
