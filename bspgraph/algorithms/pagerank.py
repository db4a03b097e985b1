"""PageRank with dangling-mass redistribution.

Degrees are computed by two one-superstep programs before the main loop.
Vertices without out-edges ("dangling") do not send; their combined score
``D`` is spread evenly over every vertex, so the scores keep summing to 1::

    score(v) = (1 - d) / N + d * (sum(score(u) / out(u) for u -> v) + D / N)
"""

from __future__ import annotations

import operator
from dataclasses import dataclass, replace

from ..config import DEFAULT_PAGERANK_DAMPING, DEFAULT_PAGERANK_ITERATIONS
from ..engine import (
    ActivityPolicy,
    EdgeDirection,
    Graph,
    GraphSweep,
    ProgramContext,
    VertexProgram,
    graph_program_clear,
    graph_program_init,
    run_graph_program,
)
from ..errors import ConfigurationError


@dataclass(frozen=True)
class RankValue:
    score: float = 0.0
    out_degree: int = 0
    in_degree: int = 0


# ---------------------------------------------------------------------------
# Degree programs
# ---------------------------------------------------------------------------

class OutDegreeProgram(VertexProgram[int, int, RankValue]):
    """Every vertex sends 1 backwards along its in-edges; the sum is its source's out-degree."""

    name = "pagerank-out-degree"
    direction = EdgeDirection.IN_EDGES
    activity = ActivityPolicy.ALL_VERTICES

    def send_message(self, value: RankValue) -> tuple[int, bool]:
        return 1, True

    def process_message(self, message: int, edge_weight: float, value: RankValue) -> int:
        return message

    def reduce(self, total: int, partial: int) -> int:
        return total + partial

    def apply(self, total: int, value: RankValue) -> RankValue:
        return replace(value, out_degree=total)


class InDegreeProgram(OutDegreeProgram):
    name = "pagerank-in-degree"
    direction = EdgeDirection.OUT_EDGES

    def apply(self, total: int, value: RankValue) -> RankValue:
        return replace(value, in_degree=total)


# ---------------------------------------------------------------------------
# PageRank
# ---------------------------------------------------------------------------

class PageRankProgram(VertexProgram[float, float, RankValue]):
    name = "pagerank"
    direction = EdgeDirection.OUT_EDGES
    activity = ActivityPolicy.ALL_VERTICES

    def __init__(self, damping: float = DEFAULT_PAGERANK_DAMPING) -> None:
        self.damping = damping
        self.num_vertices = 0
        self.dangling_mass = 0.0

    def send_message(self, value: RankValue) -> tuple[float, bool]:
        if value.out_degree == 0:
            return 0.0, False
        return value.score / value.out_degree, True

    def process_message(self, message: float, edge_weight: float, value: RankValue) -> float:
        return message

    def reduce(self, total: float, partial: float) -> float:
        return total + partial

    def apply(self, total: float, value: RankValue) -> RankValue:
        n = self.num_vertices
        score = (1.0 - self.damping) / n + self.damping * (total + self.dangling_mass / n)
        return replace(value, score=score)

    def on_start(self, sweep: GraphSweep) -> None:
        self.num_vertices = n = sweep.num_vertices
        if n == 0:
            return
        initial = 1.0 / n

        def _init(v: int, value: RankValue) -> tuple[RankValue, float]:
            return replace(value, score=initial), initial if value.out_degree == 0 else 0.0

        self.dangling_mass = sweep.apply_reduce(_init, operator.add, 0.0)

    def on_superstep_end(self, superstep: int, sweep: GraphSweep) -> None:
        n = self.num_vertices
        if n == 0:
            return
        # Vertices nobody links to received no message this superstep.
        base = (1.0 - self.damping) / n + self.damping * self.dangling_mass / n

        def _correct(v: int, value: RankValue) -> tuple[RankValue, float]:
            if value.in_degree == 0:
                value = replace(value, score=base)
            return value, value.score if value.out_degree == 0 else 0.0

        self.dangling_mass = sweep.apply_reduce(_correct, operator.add, 0.0)


def pagerank(
    graph: Graph,
    iterations: int = DEFAULT_PAGERANK_ITERATIONS,
    damping: float = DEFAULT_PAGERANK_DAMPING,
    context: ProgramContext | None = None,
    *,
    progress: bool = False,
) -> list[float]:
    """Return the PageRank score of every vertex after *iterations* supersteps."""
    if iterations < 0:
        raise ConfigurationError(f"PageRank iteration count must be non-negative, got {iterations}")
    if not 0.0 <= damping <= 1.0:
        raise ConfigurationError(f"PageRank damping factor must be in [0, 1], got {damping}")

    program = PageRankProgram(damping)
    own_context = context is None
    if context is None:
        context = graph_program_init(program, graph)
    try:
        graph.fill_properties(lambda v: RankValue())
        graph.set_all_active()
        run_graph_program(OutDegreeProgram(), graph, 1, context, progress=progress)
        run_graph_program(InDegreeProgram(), graph, 1, context, progress=progress)
        run_graph_program(program, graph, iterations, context, progress=progress)
    finally:
        if own_context:
            graph_program_clear(context)
    return [value.score for value in graph.properties()]
