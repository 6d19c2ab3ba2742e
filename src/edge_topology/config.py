"""
Configuration parameters for edge-topology

This module centralizes the default constants used across the package.
"""

import os
from pathlib import Path

# ============================================================================
# PROJECT PATHS
# ============================================================================

# Project Root (parent of src/)
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

CONFIG_DIR = PROJECT_ROOT / "config"
LOGS_DIR = PROJECT_ROOT / "logs"

# ============================================================================
# DUCKDB CONFIGURATION
# ============================================================================

DUCKDB_MEMORY_LIMIT = os.getenv("DUCKDB_MEMORY_LIMIT", "")
DUCKDB_THREADS = int(os.getenv("DUCKDB_THREADS", "0"))  # 0 = DuckDB default

# ============================================================================
# EDGE TABLE SCHEMA
# ============================================================================

EDGES_TABLE = "edges"
START_NODE = "start_node"
END_NODE = "end_node"
WEIGHT = "weight"
GEOMETRY = "the_geom"
ID = "id"
SOURCE = "source"
DISTANCE = "distance"
VERTEX = "vertex"

# Orientation codes accepted from callers
DIRECT = 1
DIRECT_REVERSED = 2
UNDIRECT = 3

# ============================================================================
# OUTPUT SCHEMAS
# ============================================================================

SHORTEST_PATH_LENGTH_COLUMNS = [ID, START_NODE, END_NODE, WEIGHT]
REACHABLE_EDGES_COLUMNS = [GEOMETRY, ID, WEIGHT, DISTANCE]
MULTI_REACHABLE_EDGES_COLUMNS = [GEOMETRY, ID, SOURCE, WEIGHT, DISTANCE]
DISTANCE_COLUMNS = [VERTEX, DISTANCE]

# ============================================================================
# COMPUTATION PARAMETERS
# ============================================================================

# Cancellation is polled once every N produced vertices
CANCEL_CHECK_INTERVAL = 100

# Rows fetched per round trip on full scans
SCAN_BATCH_SIZE = 10_000

SP_METHODS = ("LAZY", "PURE", "SCIPY")

# ============================================================================
# LOGGING
# ============================================================================

LOG_LEVEL = "INFO"
VERBOSE = True
