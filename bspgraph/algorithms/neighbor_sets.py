"""Adaptive neighbour sets for triangle counting.

A ``NeighborSet`` is an immutable, sorted, duplicate-free ``int64`` array.
Sets larger than the bitmap threshold additionally carry a packed presence
bitmap over the whole vertex range, which turns intersection into one bit
probe per element of the other set.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from ..config import DEFAULT_BITMAP_THRESHOLD
from ..errors import ConfigurationError


def _as_ids(ids: Iterable[int] | np.ndarray) -> np.ndarray:
    if isinstance(ids, np.ndarray):
        return ids.astype(np.int64, copy=False)
    return np.fromiter(ids, dtype=np.int64)


class NeighborSet:
    __slots__ = ("ids", "bitmap")

    def __init__(self, ids: np.ndarray, bitmap: np.ndarray | None = None) -> None:
        self.ids = ids
        self.bitmap = bitmap

    @classmethod
    def build(
        cls,
        ids: Iterable[int] | np.ndarray,
        universe: int,
        threshold: int = DEFAULT_BITMAP_THRESHOLD,
    ) -> NeighborSet:
        """Sort and deduplicate *ids*; add a bitmap when there are more than *threshold*.

        *universe* is the number of vertices in the graph; every id must lie
        in ``[0, universe)``.
        """
        if threshold < 0:
            raise ConfigurationError(f"bitmap threshold must be non-negative, got {threshold}")
        arr = np.unique(_as_ids(ids))
        arr.setflags(write=False)
        bitmap = None
        if arr.size > threshold:
            present = np.zeros(universe, dtype=bool)
            present[arr] = True
            bitmap = np.packbits(present)
            bitmap.setflags(write=False)
        return cls(arr, bitmap)

    @property
    def has_bitmap(self) -> bool:
        return self.bitmap is not None

    def contains_many(self, ids: np.ndarray) -> np.ndarray:
        """Boolean mask: which of *ids* are members."""
        if self.bitmap is not None:
            # packbits stores the lowest index in the high bit of each byte.
            return ((self.bitmap[ids >> 3] >> (7 - (ids & 7))) & 1).astype(bool)
        return np.isin(ids, self.ids, assume_unique=True)

    def __contains__(self, v: int) -> bool:
        return bool(self.contains_many(np.asarray([v], dtype=np.int64))[0])

    def union(self, other: Iterable[int] | np.ndarray, universe: int,
              threshold: int = DEFAULT_BITMAP_THRESHOLD) -> NeighborSet:
        return NeighborSet.build(np.concatenate([self.ids, _as_ids(other)]), universe, threshold)

    def without(self, v: int) -> np.ndarray:
        return self.ids[self.ids != v]

    def __len__(self) -> int:
        return int(self.ids.size)

    def __iter__(self):
        return iter(self.ids.tolist())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NeighborSet):
            return NotImplemented
        return np.array_equal(self.ids, other.ids)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        kind = "bitmap" if self.bitmap is not None else "sorted"
        return f"NeighborSet({self.ids.tolist()}, {kind})"


EMPTY_SET = NeighborSet(np.empty(0, dtype=np.int64))
EMPTY_SET.ids.setflags(write=False)


def intersection_size(a: NeighborSet, b: NeighborSet) -> int:
    """Number of ids present in both *a* and *b*.

    Probes the bitmap of one side with the elements of the other when either
    carries one; otherwise intersects the two sorted arrays.
    """
    if len(a) == 0 or len(b) == 0:
        return 0
    if b.bitmap is not None:
        return int(np.count_nonzero(b.contains_many(a.ids)))
    if a.bitmap is not None:
        return int(np.count_nonzero(a.contains_many(b.ids)))
    return int(np.intersect1d(a.ids, b.ids, assume_unique=True).size)
