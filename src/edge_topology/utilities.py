import logging
from pathlib import Path

import duckdb
import pandas as pd

from edge_topology import config

logger = logging.getLogger(__name__)


def initialize_duckdb(db_path: str = ":memory:", memory_limit: str = None,
                      threads: int = None, read_only: bool = False) -> duckdb.DuckDBPyConnection:
    """Initialize DuckDB connection with the configured resource limits."""
    con = duckdb.connect(db_path, read_only=read_only)

    memory_limit = memory_limit or config.DUCKDB_MEMORY_LIMIT
    if memory_limit:
        con.execute(f"SET memory_limit='{memory_limit}'")

    threads = threads or config.DUCKDB_THREADS
    if threads:
        con.execute(f"SET threads={int(threads)}")

    return con

# ============================================================================
# DATA OPERATIONS
# ============================================================================

def _reader(file_path: str) -> str:
    """DuckDB table function reading the file, picked by extension."""
    suffix = Path(file_path).suffix.lower()
    if suffix in (".parquet", ".pq"):
        return f"read_parquet('{file_path}')"
    return f"read_csv_auto('{file_path}')"

def load_table(con: duckdb.DuckDBPyConnection, file_path: str, table: str) -> int:
    """Load a CSV or Parquet file into a base table. Returns the row count."""
    con.execute(f'CREATE OR REPLACE TABLE "{table}" AS SELECT * FROM {_reader(file_path)}')
    count = con.execute(f'SELECT count(*) FROM "{table}"').fetchone()[0]
    logger.info(f"Loaded {count:,} rows from {file_path} into '{table}'")
    return count

def load_edges(con: duckdb.DuckDBPyConnection, file_path: str, table: str = config.EDGES_TABLE) -> int:
    """Load the edge list into the edges table."""
    return load_table(con, file_path, table)

def read_nodes(file_path: str) -> pd.DataFrame:
    """Read a vertex list (needs a 'source' column) into a DataFrame."""
    return duckdb.sql(f"SELECT * FROM {_reader(file_path)}").df()

def save_output(con: duckdb.DuckDBPyConnection, df: pd.DataFrame, output_path: str) -> None:
    """Save a result DataFrame to Parquet."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    con.register("result_df", df)
    try:
        con.execute(f"COPY result_df TO '{output_path}' (FORMAT PARQUET)")
    finally:
        con.unregister("result_df")

def format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}m{secs}s"
