"""Defaults, dataset definitions and per-run algorithm parameters."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Callable, TypeVar

from .errors import ConfigurationError

T = TypeVar("T")

ALGORITHMS = ["bfs", "wcc", "pagerank", "cdlp", "lcc", "sssp"]

LDBC_DOWNLOAD_BASE = "https://datasets.ldbcouncil.org/graphalytics"

LDBC_DATASETS = {
    "example-directed": {
        "local": True,
        "directed": True,
    },
    "example-undirected": {
        "local": True,
        "directed": False,
    },
    "graph500-22": {
        "url": f"{LDBC_DOWNLOAD_BASE}/graph500-22.tar.zst",
        "directed": False,
    },
    "graph500-23": {
        "url": f"{LDBC_DOWNLOAD_BASE}/graph500-23.tar.zst",
        "directed": False,
    },
}

DEFAULT_RUNS = 10
DEFAULT_PAGERANK_ITERATIONS = 20
DEFAULT_PAGERANK_DAMPING = 0.85
DEFAULT_CDLP_ITERATIONS = 10
DEFAULT_CDLP_COUNT_OWN_LABEL = True

# Neighbour sets larger than this also get a dense presence bitmap.
DEFAULT_BITMAP_THRESHOLD = 1024

DEFAULT_WORKERS = int(os.environ.get("BSPGRAPH_THREADS", "1"))
DEFAULT_PARTITIONS = int(os.environ.get("BSPGRAPH_PARTITIONS", "1"))


def _read(props: dict[str, str], key: str, convert: Callable[[str], T], default: T) -> T:
    value = props.get(key)
    if value is None:
        return default
    try:
        return convert(value)
    except ValueError:
        raise ConfigurationError(f"bad value for {key}: {value!r}") from None


@dataclass(frozen=True)
class AlgorithmParameters:
    """Algorithm-specific parameters for one run.

    Source vertices are *internal* 0-based indices; translation from file
    ids happens in ``bspgraph.lib.ldbc``.
    """

    bfs_source: int | None = None
    sssp_source: int | None = None
    pagerank_iterations: int = DEFAULT_PAGERANK_ITERATIONS
    pagerank_damping: float = DEFAULT_PAGERANK_DAMPING
    cdlp_iterations: int = DEFAULT_CDLP_ITERATIONS
    cdlp_count_own_label: bool = DEFAULT_CDLP_COUNT_OWN_LABEL
    bitmap_threshold: int = DEFAULT_BITMAP_THRESHOLD

    @classmethod
    def from_properties(cls, props: dict[str, str], **overrides: object) -> AlgorithmParameters:
        """Read LDBC ``algorithms.*`` keys, then apply non-``None`` *overrides*.

        Source vertices read from *props* are left as external ids; callers
        translate them before running.
        """
        bfs_source = _read(props, "algorithms.bfs.source-vertex", int, None)
        params = cls(
            bfs_source=bfs_source,
            sssp_source=_read(props, "algorithms.sssp.source-vertex", int, bfs_source),
            pagerank_iterations=_read(
                props, "algorithms.pr.num-iterations", int, DEFAULT_PAGERANK_ITERATIONS,
            ),
            pagerank_damping=_read(
                props, "algorithms.pr.damping-factor", float, DEFAULT_PAGERANK_DAMPING,
            ),
            cdlp_iterations=_read(
                props, "algorithms.cdlp.max-iterations", int, DEFAULT_CDLP_ITERATIONS,
            ),
        )
        given = {k: v for k, v in overrides.items() if v is not None}
        return replace(params, **given) if given else params

    def validate(self) -> AlgorithmParameters:
        if self.pagerank_iterations < 0:
            raise ConfigurationError(
                f"PageRank iteration count must be non-negative, got {self.pagerank_iterations}"
            )
        if not 0.0 <= self.pagerank_damping <= 1.0:
            raise ConfigurationError(
                f"damping factor must be in [0, 1], got {self.pagerank_damping}"
            )
        if self.cdlp_iterations < 0:
            raise ConfigurationError(
                f"CDLP iteration count must be non-negative, got {self.cdlp_iterations}"
            )
        if self.bitmap_threshold < 0:
            raise ConfigurationError(
                f"bitmap threshold must be non-negative, got {self.bitmap_threshold}"
            )
        return self
