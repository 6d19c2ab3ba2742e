"""
Configuration Loader for edge-topology queries

Loads YAML configuration files from the config/ folder, merging with defaults.
Usage:
    from edge_topology.config_loader import load_config
    cfg = load_config("roads")  # Loads config/roads.yaml merged with default.yaml
"""

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from edge_topology import config
from edge_topology.config import CONFIG_DIR, PROJECT_ROOT


@dataclass
class InputConfig:
    edges_file: str = ""
    nodes_file: str = ""       # vertex list for multi_reachable_edges
    table: str = config.EDGES_TABLE
    db_path: str = ":memory:"


@dataclass
class SchemaConfig:
    start_column: str = config.START_NODE
    end_column: str = config.END_NODE
    weight_column: str = config.WEIGHT
    geometry_column: str = ""  # empty = no geometry


@dataclass
class QueryConfig:
    operation: str = "shortest_path_length"  # shortest_path, shortest_path_length,
                                             # reachable_edges, multi_reachable_edges,
                                             # shortest_distances
    source: Optional[int] = None
    target: Optional[int] = None
    orientation: int = config.DIRECT   # 1 directed, 2 reversed, 3 undirected
    radius: Optional[float] = None     # None = unbounded
    sp_method: str = "LAZY"            # LAZY, PURE, SCIPY
    check_interval: int = config.CANCEL_CHECK_INTERVAL

    @property
    def max_distance(self) -> float:
        return math.inf if self.radius is None else float(self.radius)


@dataclass
class OutputConfig:
    directory: str = "output"
    result_file: str = ""  # empty = log a preview only


@dataclass
class DuckDBConfig:
    memory_limit: str = config.DUCKDB_MEMORY_LIMIT
    threads: Optional[int] = None


@dataclass
class LoggingConfig:
    level: str = config.LOG_LEVEL
    verbose: bool = config.VERBOSE


@dataclass
class ParallelConfig:
    workers: int = 1           # 1 = sequential, >1 = threaded multi-source


@dataclass
class Config:
    profile: str = "default"
    input: InputConfig = field(default_factory=InputConfig)
    schema: SchemaConfig = field(default_factory=SchemaConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    duckdb: DuckDBConfig = field(default_factory=DuckDBConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    parallel: ParallelConfig = field(default_factory=ParallelConfig)

    def resolve_paths(self):
        """Resolve template variables like {profile} in paths."""
        values = {"profile": self.profile, "operation": self.query.operation}

        self.input.edges_file = self.input.edges_file.format(**values)
        self.input.nodes_file = self.input.nodes_file.format(**values)
        self.output.result_file = self.output.result_file.format(**values)

        # Convert relative paths to absolute
        if self.input.edges_file and not os.path.isabs(self.input.edges_file):
            self.input.edges_file = str(PROJECT_ROOT / self.input.edges_file)
        if self.input.nodes_file and not os.path.isabs(self.input.nodes_file):
            self.input.nodes_file = str(PROJECT_ROOT / self.input.nodes_file)
        if not os.path.isabs(self.output.directory):
            self.output.directory = str(PROJECT_ROOT / self.output.directory)


SECTIONS = ("input", "schema", "query", "output", "duckdb", "logging", "parallel")


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml(path: Path) -> dict:
    """Load a YAML file."""
    if not path.exists():
        return {}
    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def dict_to_config(data: dict) -> Config:
    """Convert a dictionary to a Config dataclass. Unknown keys are ignored."""
    cfg = Config()
    for section in SECTIONS:
        target = getattr(cfg, section)
        for k, v in (data.get(section) or {}).items():
            if hasattr(target, k):
                setattr(target, k, v)
    return cfg


def load_config(profile: str = "default", config_dir: Path = CONFIG_DIR) -> Config:
    """
    Load configuration from a profile.

    Args:
        profile: Name of the config file (without .yaml extension)
                 e.g., "roads" loads config/roads.yaml
        config_dir: Folder holding default.yaml and the profiles

    Returns:
        Config object with all settings merged from default.yaml + profile.yaml

    Raises:
        FileNotFoundError: if a non-default profile has no YAML file
    """
    config_dir = Path(config_dir)
    default_data = load_yaml(config_dir / "default.yaml")

    if profile != "default":
        profile_path = config_dir / f"{profile}.yaml"
        if not profile_path.exists():
            raise FileNotFoundError(f"No config profile at {profile_path}")
        merged_data = deep_merge(default_data, load_yaml(profile_path))
    else:
        merged_data = default_data

    cfg = dict_to_config(merged_data)
    cfg.profile = profile
    cfg.resolve_paths()

    return cfg
