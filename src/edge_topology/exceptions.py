"""Custom exceptions for edge-topology."""


class TopologyError(Exception):
    """Base exception for graph queries over an edge table."""


class ConfigurationError(TopologyError):
    """Raised when the edge table lacks a required field or binding."""


class GraphError(TopologyError):
    """Raised when a query references something the graph does not have."""
