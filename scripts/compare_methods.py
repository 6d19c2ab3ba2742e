#!/usr/bin/env python3
"""
Compare LAZY, PURE and SCIPY distances from one source on an edge file.

Usage:
    python scripts/compare_methods.py [EDGES_FILE] [SOURCE] [ORIENTATION]
"""

import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from edge_topology import utilities as utils
from edge_topology.edge_store import EdgeStore
from edge_topology.processor import GraphQueryProcessor

# Defaults
EDGES_FILE = str(Path(__file__).parent.parent / "data" / "example_edges.csv")
SOURCE = 1
ORIENTATION = 1


def main(argv):
    edges_file = argv[1] if len(argv) > 1 else EDGES_FILE
    source = int(argv[2]) if len(argv) > 2 else SOURCE
    orientation = int(argv[3]) if len(argv) > 3 else ORIENTATION

    con = utils.initialize_duckdb()
    utils.load_edges(con, edges_file)
    store = EdgeStore(con, weight_column="weight")
    processor = GraphQueryProcessor(store, orientation=orientation)

    results = {}
    for method in ("LAZY", "PURE", "SCIPY"):
        start = time.time()
        results[method] = processor.shortest_distances(source, method)
        print(f"  {method:<6} {len(results[method]):>8,} vertices  [{utils.format_time(time.time() - start)}]")

    print("\n" + "=" * 60)
    print("COMPARISON RESULTS")
    print("=" * 60)

    lazy = results["LAZY"].set_index("vertex")["distance"]
    mismatches = 0
    for method in ("PURE", "SCIPY"):
        other = results[method].set_index("vertex")["distance"]
        missing = lazy.index.symmetric_difference(other.index)
        common = lazy.index.intersection(other.index)
        diff = (lazy[common] - other[common]).abs()
        bad = diff[diff >= 1e-4]
        print(f"\n--- LAZY vs {method} ---")
        print(f"  Vertices only on one side: {len(missing):,}")
        print(f"  Distance mismatches: {len(bad):,}")
        if len(bad):
            print(bad.head(10).to_string())
        mismatches += len(missing) + len(bad)

    store.close()
    con.close()
    return 1 if mismatches else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
