"""Reference BSP engine: runs vertex programs over a partitioned ``Graph``.

Every phase of a superstep fans out one task per partition on the context's
thread pool and joins all of them before the next phase starts, which is the
superstep barrier. Partition-local accumulators are merged in partition
order, so results only depend on the partition count, not on thread timing.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from tqdm import tqdm

from ..config import DEFAULT_WORKERS
from ..errors import BspGraphError
from .graph import Graph
from .program import RUN_TO_CONVERGENCE, ActivityPolicy, VertexProgram, describe

T = TypeVar("T")
P = TypeVar("P")


@dataclass
class RunStats:
    """Summary of one ``run_graph_program`` call."""

    program: str
    supersteps: int = 0
    messages: int = 0
    converged: bool = False
    elapsed_s: float = 0.0


# ---------------------------------------------------------------------------
# Program context (engine-managed resources)
# ---------------------------------------------------------------------------

class ProgramContext:
    """Thread pool and bookkeeping shared by the programs run on one graph.

    Created by ``graph_program_init`` and released by ``graph_program_clear``
    (or by leaving a ``with`` block).
    """

    def __init__(self, graph: Graph, workers: int | None = None) -> None:
        self.graph = graph
        self.workers = max(1, workers if workers is not None else DEFAULT_WORKERS)
        self._pool: ThreadPoolExecutor | None = None
        if self.workers > 1 and graph.num_partitions > 1:
            self._pool = ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="bsp-partition"
            )
        self.closed = False

    def map_partitions(self, fn: Callable[[int], T]) -> list[T]:
        """Run ``fn(p)`` for every partition and wait for all of them.

        Results come back in partition order.
        """
        if self.closed:
            raise BspGraphError("program context has been cleared")
        parts = range(self.graph.num_partitions)
        if self._pool is None:
            return [fn(p) for p in parts]
        futures = [self._pool.submit(fn, p) for p in parts]
        return [f.result() for f in futures]

    def close(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
        self.closed = True

    def __enter__(self) -> ProgramContext:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def graph_program_init(
    program: VertexProgram[Any, Any, Any],
    graph: Graph,
    workers: int | None = None,
) -> ProgramContext:
    """Allocate the engine resources *program* needs to run on *graph*."""
    return ProgramContext(graph, workers)


def graph_program_clear(context: ProgramContext) -> None:
    """Release the resources held by *context*."""
    context.close()


# ---------------------------------------------------------------------------
# Whole-graph pass
# ---------------------------------------------------------------------------

class GraphSweep:
    """Whole-graph apply/reduce pass handed to program hooks.

    Programs use it for global corrections (PageRank's dangling mass) instead
    of holding a reference to the graph.
    """

    def __init__(self, context: ProgramContext) -> None:
        self._context = context

    @property
    def num_vertices(self) -> int:
        return self._context.graph.num_vertices

    def apply_reduce(
        self,
        func: Callable[[int, Any], tuple[Any, P]],
        reduce: Callable[[P, P], P],
        initial: P,
    ) -> P:
        """Run ``func(v, value) -> (new_value, partial)`` over every vertex.

        Partials are reduced per partition, then across partitions after the
        barrier; *initial* must be the identity of *reduce*. New values are
        committed only once every partition has finished.
        """
        graph = self._context.graph
        snapshot = graph.properties()

        def _partition(p: int) -> tuple[list[tuple[int, Any]], P]:
            acc = initial
            staged: list[tuple[int, Any]] = []
            for v in graph.partition(p):
                new_value, partial = func(v, snapshot[v])
                if new_value is not snapshot[v]:
                    staged.append((v, new_value))
                acc = reduce(acc, partial)
            return staged, acc

        total = initial
        for staged, acc in self._context.map_partitions(_partition):
            for v, value in staged:
                graph.set_property(v, value)
            total = reduce(total, acc)
        return total


# ---------------------------------------------------------------------------
# Superstep
# ---------------------------------------------------------------------------

def _superstep(
    program: VertexProgram[Any, Any, Any],
    graph: Graph,
    context: ProgramContext,
) -> tuple[int, int]:
    """Execute one superstep. Returns ``(messages_sent, vertices_changed)``."""
    snapshot = graph.properties()
    send_all = program.activity is ActivityPolicy.ALL_VERTICES
    direction = program.direction
    num_parts = graph.num_partitions

    # Send + process, combined per destination inside each sending partition
    # and bucketed by the destination's owner.
    def _send(p: int) -> tuple[list[dict[int, Any]], int]:
        outbox: list[dict[int, Any]] = [{} for _ in range(num_parts)]
        sent = 0
        for v in graph.partition(p):
            if not send_all and not graph.is_active(v):
                continue
            message, should_send = program.send_message(snapshot[v])
            if not should_send:
                continue
            for dst, weight in graph.edges(v, direction):
                partial = program.process_message(message, weight, snapshot[dst])
                bucket = outbox[graph.owner(dst)]
                if dst in bucket:
                    bucket[dst] = program.reduce(bucket[dst], partial)
                else:
                    bucket[dst] = partial
                sent += 1
        return outbox, sent

    sent_results = context.map_partitions(_send)
    messages = sum(sent for _, sent in sent_results)
    outboxes = [outbox for outbox, _ in sent_results]

    # Merge in sender-partition order, then apply on the owning partition.
    def _apply(p: int) -> list[tuple[int, Any]]:
        totals: dict[int, Any] = {}
        for outbox in outboxes:
            for dst, partial in outbox[p].items():
                if dst in totals:
                    totals[dst] = program.reduce(totals[dst], partial)
                else:
                    totals[dst] = partial
        changed: list[tuple[int, Any]] = []
        for v in sorted(totals):
            new_value = program.apply(totals[v], snapshot[v])
            if new_value != snapshot[v]:
                changed.append((v, new_value))
        return changed

    changed_results = context.map_partitions(_apply)

    # Commit: writes become visible to the next superstep only.
    graph.set_all_inactive()
    num_changed = 0
    for changed in changed_results:
        for v, value in changed:
            graph.set_property(v, value)
            graph.set_active(v)
            num_changed += 1
    return messages, num_changed


def run_graph_program(
    program: VertexProgram[Any, Any, Any],
    graph: Graph,
    max_iterations: int = RUN_TO_CONVERGENCE,
    context: ProgramContext | None = None,
    *,
    progress: bool = False,
) -> RunStats:
    """Run *program* on *graph* for *max_iterations* supersteps.

    With ``RUN_TO_CONVERGENCE`` the run ends after the first superstep in
    which no vertex changed. ``ACTIVE_ONLY`` programs also end as soon as no
    vertex is active. After the run the graph's active flags hold the
    vertices changed by the last superstep.
    """
    own_context = context is None
    if context is None:
        context = graph_program_init(program, graph)
    elif context.graph is not graph:
        raise BspGraphError("program context was initialised for a different graph")

    stats = RunStats(program=describe(program))
    sweep = GraphSweep(context)
    t0 = time.perf_counter()
    bar = tqdm(
        total=max_iterations if max_iterations >= 0 else None,
        desc=stats.program,
        unit="superstep",
        disable=not progress,
        leave=False,
    )
    try:
        program.on_start(sweep)
        superstep = 0
        while max_iterations < 0 or superstep < max_iterations:
            if program.activity is ActivityPolicy.ACTIVE_ONLY and not graph.any_active():
                stats.converged = True
                break
            sent, changed = _superstep(program, graph, context)
            stats.messages += sent
            program.on_superstep_end(superstep, sweep)
            superstep += 1
            bar.update(1)
            if max_iterations < 0 and changed == 0:
                stats.converged = True
                break
        stats.supersteps = superstep
    finally:
        bar.close()
        if own_context:
            graph_program_clear(context)
    stats.elapsed_s = time.perf_counter() - t0
    return stats
