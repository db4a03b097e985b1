"""Graph container consumed by the BSP engine.

Topology is immutable and stored as two CSR structures (out-edges and
in-edges) over dense 0-based vertex indices. Each vertex carries one mutable
property slot, written by the engine at superstep boundaries, and an active
flag used by ``ActivityPolicy.ACTIVE_ONLY`` programs.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Sequence

import numpy as np

from ..errors import GraphError
from .program import EdgeDirection

EdgeTuple = Sequence[float]  # (src, dst) or (src, dst, weight)


def _build_csr(
    num_vertices: int,
    keys: np.ndarray,
    values: np.ndarray,
    weights: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Group ``values``/``weights`` by ``keys`` into (offsets, targets, weights)."""
    order = np.argsort(keys, kind="stable")
    counts = np.bincount(keys, minlength=num_vertices)
    offsets = np.zeros(num_vertices + 1, dtype=np.int64)
    np.cumsum(counts, out=offsets[1:])
    return offsets, values[order], weights[order]


class Graph:
    """Directed (or symmetrically stored undirected) graph with vertex properties.

    ``edges`` yields ``(src, dst)`` or ``(src, dst, weight)`` tuples over
    vertex indices ``[0, num_vertices)``. Missing weights default to 1.0.
    When *directed* is ``False`` every edge is stored in both directions
    (self-loops once).
    """

    def __init__(
        self,
        num_vertices: int,
        edges: Iterable[EdgeTuple] = (),
        *,
        directed: bool = True,
        num_partitions: int = 1,
    ) -> None:
        if num_vertices < 0:
            raise GraphError(f"vertex count must be non-negative, got {num_vertices}")
        if num_partitions < 1:
            raise GraphError(f"partition count must be positive, got {num_partitions}")

        self._n = num_vertices
        self.directed = directed
        self.num_partitions = min(num_partitions, max(num_vertices, 1))
        self._block = max(1, math.ceil(num_vertices / self.num_partitions))

        src_list: list[int] = []
        dst_list: list[int] = []
        weight_list: list[float] = []
        for edge in edges:
            if len(edge) == 2:
                src, dst = edge
                weight = 1.0
            elif len(edge) == 3:
                src, dst, weight = edge
            else:
                raise GraphError(f"bad edge (expected 2 or 3 fields): {edge!r}")
            src, dst = int(src), int(dst)
            if not (0 <= src < num_vertices and 0 <= dst < num_vertices):
                raise GraphError(
                    f"edge ({src}, {dst}) references a vertex outside [0, {num_vertices})"
                )
            src_list.append(src)
            dst_list.append(dst)
            weight_list.append(float(weight))
            if not directed and src != dst:
                src_list.append(dst)
                dst_list.append(src)
                weight_list.append(float(weight))

        src_arr = np.asarray(src_list, dtype=np.int64)
        dst_arr = np.asarray(dst_list, dtype=np.int64)
        weight_arr = np.asarray(weight_list, dtype=np.float64)

        self._out_offsets, self._out_targets, self._out_weights = _build_csr(
            num_vertices, src_arr, dst_arr, weight_arr
        )
        self._in_offsets, self._in_sources, self._in_weights = _build_csr(
            num_vertices, dst_arr, src_arr, weight_arr
        )

        self._properties: list[Any] = [None] * num_vertices
        self._active = np.zeros(num_vertices, dtype=bool)

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    @property
    def num_vertices(self) -> int:
        return self._n

    @property
    def num_edges(self) -> int:
        """Number of stored (directed) edges."""
        return int(self._out_targets.shape[0])

    def __len__(self) -> int:
        return self._n

    def out_degree(self, v: int) -> int:
        return int(self._out_offsets[v + 1] - self._out_offsets[v])

    def in_degree(self, v: int) -> int:
        return int(self._in_offsets[v + 1] - self._in_offsets[v])

    def out_edges(self, v: int) -> list[tuple[int, float]]:
        """``(dst, weight)`` pairs for every out-edge of *v*."""
        lo, hi = self._out_offsets[v], self._out_offsets[v + 1]
        return list(zip(self._out_targets[lo:hi].tolist(), self._out_weights[lo:hi].tolist()))

    def in_edges(self, v: int) -> list[tuple[int, float]]:
        """``(src, weight)`` pairs for every in-edge of *v*."""
        lo, hi = self._in_offsets[v], self._in_offsets[v + 1]
        return list(zip(self._in_sources[lo:hi].tolist(), self._in_weights[lo:hi].tolist()))

    def edges(self, v: int, direction: EdgeDirection) -> list[tuple[int, float]]:
        """Neighbours a message from *v* reaches when sent along *direction*."""
        if direction is EdgeDirection.OUT_EDGES:
            return self.out_edges(v)
        if direction is EdgeDirection.IN_EDGES:
            return self.in_edges(v)
        return self.out_edges(v) + self.in_edges(v)

    def min_weight(self) -> float:
        if self.num_edges == 0:
            return math.inf
        return float(self._out_weights.min())

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def get_property(self, v: int) -> Any:
        return self._properties[v]

    def set_property(self, v: int, value: Any) -> None:
        self._properties[v] = value

    def fill_properties(self, factory: Callable[[int], Any]) -> None:
        """Set every vertex's property to ``factory(v)``."""
        self._properties = [factory(v) for v in range(self._n)]

    def properties(self) -> list[Any]:
        """Snapshot (shallow copy) of all vertex properties."""
        return list(self._properties)

    # ------------------------------------------------------------------
    # Activity
    # ------------------------------------------------------------------

    def set_active(self, v: int) -> None:
        self._active[v] = True

    def set_inactive(self, v: int) -> None:
        self._active[v] = False

    def set_all_active(self) -> None:
        self._active[:] = True

    def set_all_inactive(self) -> None:
        self._active[:] = False

    def is_active(self, v: int) -> bool:
        return bool(self._active[v])

    def active_vertices(self) -> list[int]:
        return np.flatnonzero(self._active).tolist()

    def any_active(self) -> bool:
        return bool(self._active.any())

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    def owner(self, v: int) -> int:
        """Partition owning vertex *v* (contiguous block partitioning)."""
        return v // self._block

    def partition(self, p: int) -> range:
        """Vertices owned by partition *p*."""
        lo = p * self._block
        return range(min(lo, self._n), min(lo + self._block, self._n))

    def is_owner(self, v: int, p: int) -> bool:
        return self.owner(v) == p

    def __repr__(self) -> str:
        kind = "directed" if self.directed else "undirected"
        return f"<Graph {self._n} vertices, {self.num_edges} edges, {kind}>"
