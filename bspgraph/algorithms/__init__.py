"""Graph algorithms built on the BSP engine, plus a small dispatch registry."""

from __future__ import annotations

import enum
from typing import Any

from ..config import AlgorithmParameters
from ..engine import Graph, ProgramContext
from ..errors import ConfigurationError
from .bfs import UNVISITED, bfs
from .cdlp import cdlp
from .lcc import lcc
from .pagerank import pagerank
from .sssp import UNREACHABLE, sssp
from .wcc import wcc


class OutputKind(enum.Enum):
    """How a result column is printed."""

    DEPTH = "depth"          # int, UNVISITED for unreached
    DISTANCE = "distance"    # float, inf for unreached
    LABEL = "label"          # vertex index, printed as an external id
    SCORE = "score"          # float


class Algorithm(enum.Enum):
    BFS = "bfs"
    SSSP = "sssp"
    WCC = "wcc"
    PAGERANK = "pagerank"
    CDLP = "cdlp"
    LCC = "lcc"

    @property
    def output_kind(self) -> OutputKind:
        return _OUTPUT_KINDS[self]

    @property
    def ldbc_suffix(self) -> str:
        """Suffix of the LDBC reference output file (``<dataset>-<suffix>``)."""
        return "PR" if self is Algorithm.PAGERANK else self.value.upper()

    @classmethod
    def parse(cls, name: str) -> Algorithm:
        key = name.lower()
        if key == "pr":
            key = "pagerank"
        try:
            return cls(key)
        except ValueError:
            known = ", ".join(a.value for a in cls)
            raise ConfigurationError(f"unknown algorithm {name!r} (expected one of {known})") from None


_OUTPUT_KINDS = {
    Algorithm.BFS: OutputKind.DEPTH,
    Algorithm.SSSP: OutputKind.DISTANCE,
    Algorithm.WCC: OutputKind.LABEL,
    Algorithm.PAGERANK: OutputKind.SCORE,
    Algorithm.CDLP: OutputKind.LABEL,
    Algorithm.LCC: OutputKind.SCORE,
}


def _require_source(source: int | None, algorithm: Algorithm) -> int:
    if source is None:
        raise ConfigurationError(f"{algorithm.value} needs a source vertex")
    return source


def run_algorithm(
    kind: Algorithm,
    graph: Graph,
    params: AlgorithmParameters,
    context: ProgramContext | None = None,
    *,
    progress: bool = False,
) -> list[Any]:
    """Run *kind* on *graph* and return one value per vertex (internal order)."""
    params.validate()
    if kind is Algorithm.BFS:
        return bfs(graph, _require_source(params.bfs_source, kind), context, progress=progress)
    if kind is Algorithm.SSSP:
        return sssp(graph, _require_source(params.sssp_source, kind), context, progress=progress)
    if kind is Algorithm.WCC:
        return wcc(graph, context, progress=progress)
    if kind is Algorithm.PAGERANK:
        return pagerank(
            graph, params.pagerank_iterations, params.pagerank_damping, context,
            progress=progress,
        )
    if kind is Algorithm.CDLP:
        return cdlp(
            graph, params.cdlp_iterations, context,
            count_own_label=params.cdlp_count_own_label, progress=progress,
        )
    if kind is Algorithm.LCC:
        return lcc(graph, context, bitmap_threshold=params.bitmap_threshold, progress=progress)
    raise ConfigurationError(f"unsupported algorithm {kind!r}")


__all__ = [
    "Algorithm",
    "OutputKind",
    "UNREACHABLE",
    "UNVISITED",
    "bfs",
    "cdlp",
    "lcc",
    "pagerank",
    "run_algorithm",
    "sssp",
    "wcc",
]
