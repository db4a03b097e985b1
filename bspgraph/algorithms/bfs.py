"""Breadth-first search as a level-synchronous vertex program.

Superstep *k* expands the frontier at depth ``k``: only vertices whose depth
is ``k`` send, and an unvisited receiver takes depth ``k + 1``. The global
frontier depth advances every superstep whether or not anything changed.
"""

from __future__ import annotations

from ..engine import (
    RUN_TO_CONVERGENCE,
    ActivityPolicy,
    EdgeDirection,
    Graph,
    GraphSweep,
    ProgramContext,
    VertexProgram,
    run_graph_program,
)
from ..errors import InvalidSourceVertex

# Depth of vertices the search never reached (LDBC prints int64 max).
UNVISITED = 2**63 - 1


class BreadthFirstSearch(VertexProgram[int, int, int]):
    name = "bfs"
    direction = EdgeDirection.OUT_EDGES
    activity = ActivityPolicy.ACTIVE_ONLY

    def __init__(self) -> None:
        self.current_depth = 1

    def send_message(self, value: int) -> tuple[int, bool]:
        return value + 1, value == self.current_depth - 1

    def process_message(self, message: int, edge_weight: float, value: int) -> int:
        return message

    def reduce(self, total: int, partial: int) -> int:
        return min(total, partial)

    def apply(self, total: int, value: int) -> int:
        # First writer wins: a visited vertex never moves.
        if value == UNVISITED:
            return total
        return value

    def on_superstep_end(self, superstep: int, sweep: GraphSweep) -> None:
        self.current_depth += 1


def bfs(
    graph: Graph,
    source: int,
    context: ProgramContext | None = None,
    *,
    progress: bool = False,
) -> list[int]:
    """Return the BFS depth of every vertex from *source* (``UNVISITED`` if unreachable)."""
    if not 0 <= source < graph.num_vertices:
        raise InvalidSourceVertex(source, graph.num_vertices)

    graph.fill_properties(lambda v: UNVISITED)
    graph.set_property(source, 0)
    graph.set_all_inactive()
    graph.set_active(source)

    run_graph_program(BreadthFirstSearch(), graph, RUN_TO_CONVERGENCE, context, progress=progress)
    return graph.properties()
