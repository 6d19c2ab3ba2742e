#!/usr/bin/env python3
"""
Main entry point for graph queries over an edge table.

Usage:
    python main.py roads                       # Run with config/roads.yaml
    python main.py --config roads              # Same, alternative spelling
    python main.py roads --source 12 --target 10 --operation shortest_path
    python main.py roads --orientation 3 --radius 500 --operation reachable_edges
    python main.py --list                      # List available configs
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import yaml

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from edge_topology import logging_config as log_conf
from edge_topology import utilities as utils
from edge_topology.config import CONFIG_DIR
from edge_topology.config_loader import load_config
from edge_topology.edge_store import EdgeStore
from edge_topology.exceptions import TopologyError
from edge_topology.processor import GraphQueryProcessor

logger = logging.getLogger(__name__)

OPERATIONS = ["shortest_path", "shortest_path_length", "reachable_edges",
              "multi_reachable_edges", "shortest_distances"]


def list_configs(config_dir: Path = CONFIG_DIR):
    """List available configuration profiles."""
    print("Available configuration profiles:")
    for f in sorted(Path(config_dir).glob("*.yaml")):
        print(f"  - {f.stem}")


def run_query(cfg):
    """Load the edge table, run the configured query and save the result."""
    log_conf.setup_logging(cfg.profile, level=cfg.logging.level, verbose=cfg.logging.verbose)

    q = cfg.query
    log_conf.log_section(logger, "CONFIGURATION")
    log_conf.log_dict(logger, {
        "Profile": cfg.profile,
        "Edges": cfg.input.edges_file,
        "Operation": q.operation,
        "Source": q.source,
        "Target": q.target,
        "Orientation": q.orientation,
        "Radius": q.radius if q.radius is not None else "unbounded",
        "SP Method": q.sp_method,
        "Workers": cfg.parallel.workers,
    })

    total_start = time.time()
    store = None
    con = utils.initialize_duckdb(cfg.input.db_path, memory_limit=cfg.duckdb.memory_limit,
                                  threads=cfg.duckdb.threads)
    try:
        if cfg.input.edges_file:
            utils.load_edges(con, cfg.input.edges_file, cfg.input.table)

        store = EdgeStore(
            con,
            table=cfg.input.table,
            start_column=cfg.schema.start_column,
            end_column=cfg.schema.end_column,
            weight_column=cfg.schema.weight_column,
            geometry_column=cfg.schema.geometry_column or None,
        )
        processor = GraphQueryProcessor(
            store,
            orientation=q.orientation,
            radius=q.max_distance,
            workers=cfg.parallel.workers,
            check_interval=q.check_interval,
        )

        nodes = utils.read_nodes(cfg.input.nodes_file) if q.operation == "multi_reachable_edges" else None

        log_conf.log_section(logger, q.operation.upper())
        result = processor.run(q.operation, source=q.source, target=q.target, nodes=nodes, method=q.sp_method)

        if q.operation == "shortest_path" and result.empty:
            logger.info(f"Target {q.target} is unreachable from {q.source}")

        if cfg.output.result_file:
            output_file = str(Path(cfg.output.directory) / cfg.output.result_file)
            utils.save_output(con, result, output_file)
            logger.info(f"Saved {len(result):,} rows to: {output_file}")
        else:
            log_conf.log_frame(logger, result, q.operation)

        logger.info(f"Total time: {utils.format_time(time.time() - total_start)}")
        return result
    finally:
        if store is not None:
            store.close()
        con.close()


def normalize_profile(profile: str) -> str:
    """Normalize profile input to just the profile name."""
    # Handle full paths like "config/roads.yaml"
    if "/" in profile or "\\" in profile:
        profile = Path(profile).stem
    if profile.endswith(".yaml") or profile.endswith(".yml"):
        profile = Path(profile).stem
    return profile


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Shortest paths and reachability over an edge table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("profile", nargs="?", default="default",
                        help="Config profile name (e.g., 'roads')")
    parser.add_argument("--config", "-c", help="Alternative way to specify config profile")
    parser.add_argument("--list", "-l", action="store_true", help="List available config profiles")
    parser.add_argument("--operation", "-o", choices=OPERATIONS, help="Query to run")
    parser.add_argument("--source", "-s", type=int, help="Source vertex")
    parser.add_argument("--target", "-t", type=int, help="Target vertex (shortest_path)")
    parser.add_argument("--orientation", type=int, choices=[1, 2, 3],
                        help="1 directed, 2 directed and reversed, 3 undirected")
    parser.add_argument("--radius", "-r", type=float, help="Maximum cumulative distance")
    parser.add_argument("--method", "-m", choices=["LAZY", "PURE", "SCIPY"],
                        help="Distance method for shortest_distances")
    parser.add_argument("--edges", help="Edge file (CSV or Parquet), overrides the profile")
    parser.add_argument("--nodes", help="Vertex list with a 'source' column (multi_reachable_edges)")
    return parser


def apply_overrides(cfg, args):
    """Command line values win over the profile."""
    overrides = {
        "operation": args.operation,
        "source": args.source,
        "target": args.target,
        "orientation": args.orientation,
        "radius": args.radius,
        "sp_method": args.method,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(cfg.query, key, value)
    if args.edges:
        cfg.input.edges_file = str(Path(args.edges).resolve())
    if args.nodes:
        cfg.input.nodes_file = str(Path(args.nodes).resolve())
    return cfg


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.list:
        list_configs()
        return 0

    profile = normalize_profile(args.config if args.config else args.profile)

    print(f"Loading config: {profile}")
    try:
        cfg = load_config(profile)
    except (OSError, yaml.YAMLError) as e:
        print(f"Error loading config '{profile}': {e}")
        print("\nAvailable configs:")
        list_configs()
        return 1

    cfg = apply_overrides(cfg, args)

    try:
        run_query(cfg)
    except TopologyError as e:
        logger.error(f"Query failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
