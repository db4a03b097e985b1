"""Local clustering coefficient.

Three single-superstep programs:

1. ``CollectOutNeighbors`` -- every vertex tells its in-neighbours about
   itself, so each vertex learns its out-neighbour set.
2. ``CollectInNeighbors`` -- the reverse, completing the full neighbour set.
3. ``CountTriangles`` -- every vertex ships its out-neighbour set to all
   neighbours; the receiver counts how many of the sender's out-neighbours
   are its own neighbours.

For a vertex with ``d`` distinct neighbours (self excluded) the coefficient
is ``links / (d * (d - 1))``, where ``links`` counts the directed edges among
those neighbours. Undirected graphs store both directions, so this is the
usual ``2T / (d * (d - 1))``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from ..config import DEFAULT_BITMAP_THRESHOLD
from ..engine import (
    ActivityPolicy,
    EdgeDirection,
    Graph,
    ProgramContext,
    VertexProgram,
    graph_program_clear,
    graph_program_init,
    run_graph_program,
)
from ..errors import ConfigurationError
from .neighbor_sets import EMPTY_SET, NeighborSet, intersection_size


@dataclass(frozen=True)
class LccValue:
    vertex: int
    out_neighbors: NeighborSet = field(default_factory=lambda: EMPTY_SET)
    all_neighbors: NeighborSet = field(default_factory=lambda: EMPTY_SET)
    triangles: int = 0
    coefficient: float = 0.0


@dataclass(frozen=True)
class NeighborMessage:
    vertex: int
    out_neighbors: NeighborSet


class _CollectNeighbors(VertexProgram[int, tuple, LccValue]):
    activity = ActivityPolicy.ALL_VERTICES

    def __init__(self, num_vertices: int, threshold: int = DEFAULT_BITMAP_THRESHOLD) -> None:
        self.num_vertices = num_vertices
        self.threshold = threshold

    def send_message(self, value: LccValue) -> tuple[int, bool]:
        return value.vertex, True

    def process_message(self, message: int, edge_weight: float, value: LccValue) -> tuple:
        return (message,)

    def reduce(self, total: tuple, partial: tuple) -> tuple:
        return total + partial

    def _neighbor_set(self, ids: tuple, value: LccValue) -> NeighborSet:
        return NeighborSet.build(
            (v for v in ids if v != value.vertex), self.num_vertices, self.threshold
        )


class CollectOutNeighbors(_CollectNeighbors):
    name = "lcc-out-neighbors"
    direction = EdgeDirection.IN_EDGES

    def apply(self, total: tuple, value: LccValue) -> LccValue:
        neighbors = self._neighbor_set(total, value)
        return replace(value, out_neighbors=neighbors, all_neighbors=neighbors)


class CollectInNeighbors(_CollectNeighbors):
    name = "lcc-in-neighbors"
    direction = EdgeDirection.OUT_EDGES

    def apply(self, total: tuple, value: LccValue) -> LccValue:
        incoming = [v for v in total if v != value.vertex]
        return replace(
            value,
            all_neighbors=value.out_neighbors.union(incoming, self.num_vertices, self.threshold),
        )


class CountTriangles(VertexProgram[NeighborMessage, dict, LccValue]):
    name = "lcc-triangles"
    direction = EdgeDirection.ALL_EDGES
    activity = ActivityPolicy.ALL_VERTICES

    def send_message(self, value: LccValue) -> tuple[NeighborMessage, bool]:
        return NeighborMessage(value.vertex, value.out_neighbors), True

    def process_message(
        self, message: NeighborMessage, edge_weight: float, value: LccValue
    ) -> dict[int, int]:
        if message.vertex == value.vertex:
            return {}
        return {message.vertex: intersection_size(message.out_neighbors, value.all_neighbors)}

    def reduce(self, total: dict[int, int], partial: dict[int, int]) -> dict[int, int]:
        # Keyed by sender: duplicate and reciprocal edges deliver the same count.
        total.update(partial)
        return total

    def apply(self, total: dict[int, int], value: LccValue) -> LccValue:
        triangles = sum(total.values())
        degree = len(value.all_neighbors)
        coefficient = triangles / (degree * (degree - 1)) if degree > 1 else 0.0
        return replace(value, triangles=triangles, coefficient=coefficient)


def lcc(
    graph: Graph,
    context: ProgramContext | None = None,
    *,
    bitmap_threshold: int = DEFAULT_BITMAP_THRESHOLD,
    progress: bool = False,
) -> list[float]:
    """Return the local clustering coefficient of every vertex."""
    if bitmap_threshold < 0:
        raise ConfigurationError(
            f"bitmap threshold must be non-negative, got {bitmap_threshold}"
        )

    n = graph.num_vertices
    triangles = CountTriangles()
    own_context = context is None
    if context is None:
        context = graph_program_init(triangles, graph)
    try:
        graph.fill_properties(lambda v: LccValue(vertex=v))
        graph.set_all_active()
        run_graph_program(
            CollectOutNeighbors(n, bitmap_threshold), graph, 1, context, progress=progress,
        )
        run_graph_program(
            CollectInNeighbors(n, bitmap_threshold), graph, 1, context, progress=progress,
        )
        run_graph_program(triangles, graph, 1, context, progress=progress)
    finally:
        if own_context:
            graph_program_clear(context)
    return [value.coefficient for value in graph.properties()]
