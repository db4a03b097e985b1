"""Sequential reference implementations used to validate engine output.

They work directly on adjacency dicts keyed by external vertex id and share
no code with the engine. Conventions match the vertex programs:

BFS and SSSP follow out-edges. WCC, CDLP and LCC look at both edge
directions. PageRank follows out-edges and spreads dangling mass evenly.
CDLP on a directed graph counts a neighbour once per edge in each
direction.
"""

from __future__ import annotations

import heapq
import math
from collections import Counter, deque

from ...lib.ldbc import LdbcDataset

# Sentinel for unreachable vertices (matches LDBC i64::MAX).
UNREACHABLE_INT = 2**63 - 1
UNREACHABLE_FLOAT = math.inf

WeightedAdjacency = dict[int, list[tuple[int, float]]]


# ---------------------------------------------------------------------------
# Adjacency builders
# ---------------------------------------------------------------------------

def stored_edges(ds: LdbcDataset) -> list[tuple[int, int, float]]:
    """Edges as the engine stores them: reversed copies added when undirected."""
    edges = list(ds.edges)
    if not ds.directed:
        edges.extend((dst, src, w) for src, dst, w in ds.edges if src != dst)
    return edges


def out_adjacency(ds: LdbcDataset) -> WeightedAdjacency:
    adj: WeightedAdjacency = {v: [] for v in ds.vertex_ids}
    for src, dst, w in stored_edges(ds):
        adj[src].append((dst, w))
    return adj


def in_adjacency(ds: LdbcDataset) -> dict[int, list[int]]:
    adj: dict[int, list[int]] = {v: [] for v in ds.vertex_ids}
    for src, dst, _w in stored_edges(ds):
        adj[dst].append(src)
    return adj


# ---------------------------------------------------------------------------
# Algorithms
# ---------------------------------------------------------------------------

def bfs(adj: WeightedAdjacency, source: int) -> dict[int, int]:
    """BFS returning ``{vertex_id: depth}``; unreachable is ``2**63 - 1``."""
    depths: dict[int, int] = {v: UNREACHABLE_INT for v in adj}
    if source not in adj:
        return depths
    depths[source] = 0
    queue: deque[int] = deque([source])
    while queue:
        node = queue.popleft()
        d = depths[node]
        for neighbor, _w in adj[node]:
            if depths[neighbor] == UNREACHABLE_INT:
                depths[neighbor] = d + 1
                queue.append(neighbor)
    return depths


def sssp(adj: WeightedAdjacency, source: int) -> dict[int, float]:
    """Dijkstra; unreachable vertices get ``math.inf``."""
    dist: dict[int, float] = {v: UNREACHABLE_FLOAT for v in adj}
    if source not in adj:
        return dist
    dist[source] = 0.0
    heap: list[tuple[float, int]] = [(0.0, source)]
    while heap:
        d, u = heapq.heappop(heap)
        if d > dist[u]:
            continue
        for v, w in adj[u]:
            nd = d + w
            if nd < dist[v]:
                dist[v] = nd
                heapq.heappush(heap, (nd, v))
    return dist


def wcc(out_adj: WeightedAdjacency, in_adj: dict[int, list[int]]) -> dict[int, int]:
    """Component label = smallest vertex id in the weakly connected component."""
    component: dict[int, int] = {}
    for start in sorted(out_adj):
        if start in component:
            continue
        # Ascending order: the first unvisited vertex is its component's minimum.
        component[start] = start
        queue: deque[int] = deque([start])
        while queue:
            node = queue.popleft()
            neighbors = [v for v, _w in out_adj[node]] + in_adj[node]
            for neighbor in neighbors:
                if neighbor not in component:
                    component[neighbor] = start
                    queue.append(neighbor)
    return component


def pagerank(
    out_adj: WeightedAdjacency,
    iterations: int = 20,
    damping: float = 0.85,
) -> dict[int, float]:
    """Power iteration with uniform redistribution of dangling mass."""
    n = len(out_adj)
    if n == 0:
        return {}
    rank: dict[int, float] = {v: 1.0 / n for v in out_adj}
    out_degree = {v: len(nbrs) for v, nbrs in out_adj.items()}

    for _ in range(iterations):
        dangling_sum = sum(rank[v] for v in out_adj if out_degree[v] == 0)
        incoming: dict[int, float] = {v: 0.0 for v in out_adj}
        for u, nbrs in out_adj.items():
            for v, _w in nbrs:
                incoming[v] += rank[u] / out_degree[u]
        rank = {
            v: (1.0 - damping) / n + damping * (incoming[v] + dangling_sum / n)
            for v in out_adj
        }
    return rank


def cdlp(
    out_adj: WeightedAdjacency,
    in_adj: dict[int, list[int]],
    iterations: int = 10,
    count_own_label: bool = True,
    directed: bool = True,
) -> dict[int, int]:
    """Label propagation: most frequent label among the neighbours.

    Directed graphs count in- and out-neighbours; undirected ones (whose
    adjacency is already symmetric) count each neighbour once. Ties go to
    the smallest label. Vertices without neighbours keep theirs.
    """
    label: dict[int, int] = {v: v for v in out_adj}
    for _ in range(iterations):
        new_label: dict[int, int] = {}
        for v in out_adj:
            neighbors = [u for u, _w in out_adj[v]]
            if directed:
                neighbors += in_adj[v]
            if not neighbors:
                new_label[v] = label[v]
                continue
            counts: Counter[int] = Counter(label[u] for u in neighbors)
            if count_own_label:
                counts[label[v]] += 1
            max_count = max(counts.values())
            new_label[v] = min(lbl for lbl, c in counts.items() if c == max_count)
        label = new_label
    return label


def lcc(out_adj: WeightedAdjacency, in_adj: dict[int, list[int]]) -> dict[int, float]:
    """Directed edges among the distinct neighbours over ``d * (d - 1)``."""
    out_sets = {v: {u for u, _w in nbrs if u != v} for v, nbrs in out_adj.items()}
    coefficients: dict[int, float] = {}
    for v in out_adj:
        neighbors = out_sets[v] | {u for u in in_adj[v] if u != v}
        d = len(neighbors)
        if d < 2:
            coefficients[v] = 0.0
            continue
        links = sum(len(out_sets[u] & neighbors) for u in neighbors)
        coefficients[v] = links / (d * (d - 1))
    return coefficients
