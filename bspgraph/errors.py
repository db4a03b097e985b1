"""Error taxonomy shared by the engine, the algorithms and the CLI."""

from __future__ import annotations


class BspGraphError(Exception):
    """Base class for every error raised by bspgraph."""


class ConfigurationError(BspGraphError, ValueError):
    """Invalid run parameters (iteration budget, damping factor, ...)."""


class InvalidSourceVertex(ConfigurationError):
    """Source vertex outside the graph's identifier space."""

    def __init__(self, source: object, num_vertices: int, message: str | None = None) -> None:
        self.source = source
        self.num_vertices = num_vertices
        super().__init__(
            message
            or f"invalid source vertex {source} (not in range [0, {num_vertices - 1}])"
        )


class GraphError(BspGraphError, ValueError):
    """Malformed topology or graph input."""


class InvariantError(BspGraphError, AssertionError):
    """A vertex program reached a state its contract rules out."""
