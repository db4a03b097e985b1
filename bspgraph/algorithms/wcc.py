"""Weakly connected components by minimum-label propagation."""

from __future__ import annotations

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


@dataclass(frozen=True)
class ComponentValue:
    curr: int
    prev: int = -1


class WeaklyConnectedComponents(VertexProgram[int, int, ComponentValue]):
    """Every vertex converges to the smallest vertex index in its component.

    Edges are followed in both directions, so direction is ignored.
    """

    name = "wcc"
    direction = EdgeDirection.ALL_EDGES
    activity = ActivityPolicy.ACTIVE_ONLY

    def send_message(self, value: ComponentValue) -> tuple[int, bool]:
        return value.curr, value.curr != value.prev

    def process_message(self, message: int, edge_weight: float, value: ComponentValue) -> int:
        return message

    def reduce(self, total: int, partial: int) -> int:
        return min(total, partial)

    def apply(self, total: int, value: ComponentValue) -> ComponentValue:
        return ComponentValue(curr=min(value.curr, total), prev=value.curr)


def wcc(
    graph: Graph,
    context: ProgramContext | None = None,
    *,
    progress: bool = False,
) -> list[int]:
    """Return the component label (minimum member index) of every vertex."""
    graph.fill_properties(lambda v: ComponentValue(curr=v))
    graph.set_all_active()

    run_graph_program(
        WeaklyConnectedComponents(), graph, RUN_TO_CONVERGENCE, context, progress=progress,
    )
    return [value.curr for value in graph.properties()]
