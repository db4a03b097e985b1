"""Community detection by (majority) label propagation.

Every superstep each vertex broadcasts its label along all of its edges and
adopts the most frequent label it observed, smallest label on ties. The
run uses a fixed iteration budget: label propagation may oscillate.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from typing import Iterable

from ..config import DEFAULT_CDLP_COUNT_OWN_LABEL
from ..engine import (
    ActivityPolicy,
    EdgeDirection,
    Graph,
    ProgramContext,
    VertexProgram,
    run_graph_program,
)
from ..errors import ConfigurationError, InvariantError


# ---------------------------------------------------------------------------
# Label histogram: empty | single label | hashed counts
# ---------------------------------------------------------------------------

class LabelHistogram(ABC):
    """Frequency accumulator over labels.

    Three variants: ``EmptyHistogram``, ``SingleLabel`` (one distinct label,
    no table allocated) and ``LabelCounts`` (a ``Counter``). ``add`` and
    ``merge`` return the histogram to keep using, promoting to the next
    variant when a second distinct label shows up.
    """

    __slots__ = ()

    @abstractmethod
    def add(self, label: int, count: int = 1) -> LabelHistogram:
        """Count *label* *count* more times."""

    @abstractmethod
    def items(self) -> Iterable[tuple[int, int]]:
        """``(label, count)`` pairs, one per distinct label."""

    def merge(self, other: LabelHistogram) -> LabelHistogram:
        result: LabelHistogram = self
        for label, count in other.items():
            result = result.add(label, count)
        return result

    @property
    def total(self) -> int:
        return sum(count for _, count in self.items())

    def __len__(self) -> int:
        """Number of distinct labels."""
        return sum(1 for _ in self.items())

    def majority(self) -> int:
        """Most frequent label, the smallest one among ties."""
        best_label: int | None = None
        best_count = 0
        for label, count in self.items():
            if count > best_count or (count == best_count and label < best_label):
                best_label, best_count = label, count
        if best_label is None:
            raise InvariantError("majority of an empty label histogram")
        return best_label

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LabelHistogram):
            return NotImplemented
        return dict(self.items()) == dict(other.items())


class EmptyHistogram(LabelHistogram):
    __slots__ = ()

    def add(self, label: int, count: int = 1) -> LabelHistogram:
        return SingleLabel(label, count)

    def items(self) -> Iterable[tuple[int, int]]:
        return ()

    def __repr__(self) -> str:
        return "EmptyHistogram()"


class SingleLabel(LabelHistogram):
    __slots__ = ("label", "count")

    def __init__(self, label: int, count: int = 1) -> None:
        self.label = label
        self.count = count

    def add(self, label: int, count: int = 1) -> LabelHistogram:
        if label == self.label:
            return SingleLabel(label, self.count + count)
        counts = LabelCounts()
        counts.counts[self.label] = self.count
        counts.counts[label] = count
        return counts

    def items(self) -> Iterable[tuple[int, int]]:
        return ((self.label, self.count),)

    def majority(self) -> int:
        return self.label

    def __repr__(self) -> str:
        return f"SingleLabel({self.label}, {self.count})"


class LabelCounts(LabelHistogram):
    __slots__ = ("counts",)

    def __init__(self, counts: Counter[int] | None = None) -> None:
        self.counts: Counter[int] = Counter(counts) if counts else Counter()

    def add(self, label: int, count: int = 1) -> LabelHistogram:
        self.counts[label] += count
        return self

    def items(self) -> Iterable[tuple[int, int]]:
        return self.counts.items()

    def __repr__(self) -> str:
        return f"LabelCounts({dict(self.counts)})"


EMPTY = EmptyHistogram()


# ---------------------------------------------------------------------------
# Vertex program
# ---------------------------------------------------------------------------

class CommunityDetection(VertexProgram[int, LabelHistogram, int]):
    name = "cdlp"
    direction = EdgeDirection.ALL_EDGES
    activity = ActivityPolicy.ALL_VERTICES

    def __init__(
        self,
        count_own_label: bool = DEFAULT_CDLP_COUNT_OWN_LABEL,
        direction: EdgeDirection = EdgeDirection.ALL_EDGES,
    ) -> None:
        self.count_own_label = count_own_label
        self.direction = direction

    def send_message(self, value: int) -> tuple[int, bool]:
        return value, True

    def process_message(self, message: int, edge_weight: float, value: int) -> LabelHistogram:
        return SingleLabel(message)

    def reduce(self, total: LabelHistogram, partial: LabelHistogram) -> LabelHistogram:
        # Fold the smaller side into the hashed one.
        if isinstance(partial, LabelCounts) and not isinstance(total, LabelCounts):
            total, partial = partial, total
        return total.merge(partial)

    def apply(self, total: LabelHistogram, value: int) -> int:
        if len(total) == 0:
            raise InvariantError("CDLP apply reached with an empty label histogram")
        if self.count_own_label:
            total = total.add(value)
        return total.majority()


def cdlp(
    graph: Graph,
    iterations: int,
    context: ProgramContext | None = None,
    *,
    count_own_label: bool = DEFAULT_CDLP_COUNT_OWN_LABEL,
    progress: bool = False,
) -> list[int]:
    """Return the community label of every vertex after *iterations* supersteps."""
    if iterations < 0:
        raise ConfigurationError(f"CDLP iteration count must be non-negative, got {iterations}")

    # Undirected graphs are stored symmetrically: out-edges already reach
    # every neighbour exactly once.
    direction = EdgeDirection.ALL_EDGES if graph.directed else EdgeDirection.OUT_EDGES
    graph.fill_properties(lambda v: v)
    graph.set_all_active()

    run_graph_program(
        CommunityDetection(count_own_label, direction), graph, iterations, context,
        progress=progress,
    )
    return graph.properties()
