"""In-process BSP engine: graph container, vertex program contract, runtime."""

from __future__ import annotations

from .graph import Graph
from .program import RUN_TO_CONVERGENCE, ActivityPolicy, EdgeDirection, VertexProgram
from .runtime import (
    GraphSweep,
    ProgramContext,
    RunStats,
    graph_program_clear,
    graph_program_init,
    run_graph_program,
)

__all__ = [
    "ActivityPolicy",
    "EdgeDirection",
    "Graph",
    "GraphSweep",
    "ProgramContext",
    "RUN_TO_CONVERGENCE",
    "RunStats",
    "VertexProgram",
    "graph_program_clear",
    "graph_program_init",
    "run_graph_program",
]
