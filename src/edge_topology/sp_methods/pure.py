"""
Pure DuckDB Shortest Path Algorithm
====================================
Uses iterative SQL (Bellman-Ford-style) to compute single-source distances.
"""

import logging
import math

import pandas as pd

from edge_topology.edge_store import EdgeStore
from edge_topology.graph_view import Orientation

logger = logging.getLogger(__name__)


def _arcs_sql(store: EdgeStore, orientation: Orientation) -> str:
    if orientation is Orientation.DIRECTED:
        return store.arc_sql()
    if orientation is Orientation.DIRECTED_REVERSED:
        return store.arc_sql(flipped=True)
    return f"{store.arc_sql()} UNION ALL {store.arc_sql(flipped=True)}"


def compute_distances_pure_duckdb(store: EdgeStore, source: int, orientation: Orientation = Orientation.DIRECTED,
                                  radius: float = math.inf, max_iterations: int = None,
                                  quiet: bool = False) -> pd.DataFrame:
    """
    Compute distances from ``source`` by repeated relaxation in SQL.
    Output: DataFrame (vertex, distance) including the source at 0.

    Converges after at most |V| - 1 rounds on non-negative weights; the
    default iteration cap is the row count + 1.
    """
    con = store.cursor()
    orientation = Orientation.from_code(orientation)
    if max_iterations is None:
        max_iterations = store.row_count() + 1
    radius_filter = "" if math.isinf(radius) else f"AND d.distance + a.weight <= {float(radius)!r}"

    if not quiet:
        logger.info(f"Starting pure DuckDB distance computation from {source} ({orientation.name})")

    # 1. Arcs under the orientation, unusable (inf) weights dropped
    con.execute(f"""
        CREATE OR REPLACE TEMP TABLE sp_arcs AS
        SELECT src, dst, weight FROM ({_arcs_sql(store, orientation)})
        WHERE weight < CAST('infinity' AS DOUBLE)
    """)
    con.execute(f"CREATE OR REPLACE TEMP TABLE sp_dist AS SELECT CAST({int(source)} AS BIGINT) AS vertex, CAST(0 AS DOUBLE) AS distance")

    # 2. Iterative relaxation
    i = 0
    while i < max_iterations:
        con.execute(f"""
            CREATE OR REPLACE TEMP TABLE sp_next AS
            SELECT vertex, MIN(distance) AS distance
            FROM (
                SELECT vertex, distance FROM sp_dist
                UNION ALL
                SELECT a.dst AS vertex, d.distance + a.weight AS distance
                FROM sp_dist d
                JOIN sp_arcs a ON d.vertex = a.src
                WHERE TRUE {radius_filter}
            )
            GROUP BY vertex
        """)

        # Convergence check: any new vertex or cheaper distance
        changed = con.execute("""
            SELECT count(*)
            FROM sp_next n
            LEFT JOIN sp_dist d ON n.vertex = d.vertex
            WHERE d.vertex IS NULL OR n.distance < d.distance
        """).fetchone()[0]

        con.execute("DROP TABLE sp_dist")
        con.execute("ALTER TABLE sp_next RENAME TO sp_dist")

        if not quiet:
            logger.info(f"Iteration {i}: {changed} vertices improved")
        if changed == 0:
            break
        i += 1

    result = con.execute("SELECT vertex, distance FROM sp_dist ORDER BY distance, vertex").df()

    # Cleanup
    con.execute("DROP TABLE IF EXISTS sp_dist")
    con.execute("DROP TABLE IF EXISTS sp_arcs")
    return result
