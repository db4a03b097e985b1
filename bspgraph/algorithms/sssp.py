"""Single-source shortest paths by Bellman-Ford style relaxation.

Each vertex keeps its current and previous distance; it sends only when
the two differ, i.e. when the last superstep improved it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..engine import (
    RUN_TO_CONVERGENCE,
    ActivityPolicy,
    EdgeDirection,
    Graph,
    ProgramContext,
    VertexProgram,
    run_graph_program,
)
from ..errors import GraphError, InvalidSourceVertex

UNREACHABLE = math.inf


@dataclass(frozen=True)
class DistanceValue:
    curr: float = UNREACHABLE
    prev: float = UNREACHABLE


class SingleSourceShortestPaths(VertexProgram[float, float, DistanceValue]):
    name = "sssp"
    direction = EdgeDirection.OUT_EDGES
    activity = ActivityPolicy.ACTIVE_ONLY

    def send_message(self, value: DistanceValue) -> tuple[float, bool]:
        return value.curr, value.curr != value.prev

    def process_message(self, message: float, edge_weight: float, value: DistanceValue) -> float:
        return message + edge_weight

    def reduce(self, total: float, partial: float) -> float:
        return min(total, partial)

    def apply(self, total: float, value: DistanceValue) -> DistanceValue:
        return DistanceValue(curr=min(value.curr, total), prev=value.curr)


def sssp(
    graph: Graph,
    source: int,
    context: ProgramContext | None = None,
    *,
    progress: bool = False,
) -> list[float]:
    """Return shortest distances from *source* (``inf`` if unreachable).

    Edge weights must be non-negative.
    """
    if not 0 <= source < graph.num_vertices:
        raise InvalidSourceVertex(source, graph.num_vertices)
    if graph.min_weight() < 0:
        raise GraphError(
            f"SSSP requires non-negative edge weights (found {graph.min_weight()})"
        )

    graph.fill_properties(lambda v: DistanceValue())
    graph.set_property(source, DistanceValue(curr=0.0))
    graph.set_all_inactive()
    graph.set_active(source)

    run_graph_program(
        SingleSourceShortestPaths(), graph, RUN_TO_CONVERGENCE, context, progress=progress,
    )
    return [value.curr for value in graph.properties()]
