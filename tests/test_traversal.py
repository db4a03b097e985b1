"""Tests for BFS, SSSP and WCC."""

from __future__ import annotations

import math
import random
import unittest

from bspgraph.algorithms import UNREACHABLE, UNVISITED, bfs, sssp, wcc
from bspgraph.algorithms.bfs import BreadthFirstSearch
from bspgraph.algorithms.sssp import SingleSourceShortestPaths
from bspgraph.algorithms.wcc import WeaklyConnectedComponents
from bspgraph.benchmarks.graphalytics import oracle
from bspgraph.engine import RUN_TO_CONVERGENCE, Graph, ProgramContext, run_graph_program
from bspgraph.errors import ConfigurationError, GraphError, InvalidSourceVertex
from bspgraph.lib.ldbc import build_dataset


def random_edges(n: int, m: int, seed: int, weighted: bool = False) -> list[tuple]:
    rng = random.Random(seed)
    edges = []
    for _ in range(m):
        src, dst = rng.randrange(n), rng.randrange(n)
        edges.append((src, dst, round(rng.uniform(0.5, 10.0), 3)) if weighted else (src, dst))
    return edges


# ======================================================================
# BFS
# ======================================================================

class TestBfs(unittest.TestCase):
    def setUp(self):
        # 5 is isolated
        self.graph = Graph(6, [(0, 1), (0, 2), (1, 3), (2, 3), (3, 4)])

    def test_depths(self):
        self.assertEqual(bfs(self.graph, 0), [0, 1, 1, 2, 3, UNVISITED])

    def test_follows_out_edges_only(self):
        self.assertEqual(
            bfs(self.graph, 3), [UNVISITED, UNVISITED, UNVISITED, 0, 1, UNVISITED],
        )

    def test_unvisited_is_int64_max(self):
        self.assertEqual(UNVISITED, 9223372036854775807)

    def test_source_out_of_range(self):
        for source in (-1, 6):
            with self.assertRaises(InvalidSourceVertex) as ctx:
                bfs(self.graph, source)
            self.assertIn("[0, 5]", str(ctx.exception))
            self.assertIsInstance(ctx.exception, ConfigurationError)

    def test_matches_queue_bfs_on_random_graph(self):
        edges = random_edges(60, 150, seed=1)
        ds = build_dataset("random", list(range(60)), [(s, d, 1.0) for s, d in edges])
        expected = oracle.bfs(oracle.out_adjacency(ds), 0)
        for parts in (1, 4):
            g = Graph(60, edges, num_partitions=parts)
            with ProgramContext(g, workers=parts) as ctx:
                self.assertEqual(bfs(g, 0, ctx), [expected[v] for v in range(60)])


# ======================================================================
# SSSP
# ======================================================================

class TestSssp(unittest.TestCase):
    def setUp(self):
        self.graph = Graph(6, [
            (0, 1, 4.0), (0, 2, 1.0), (2, 1, 2.0),
            (1, 3, 1.0), (2, 3, 5.0), (3, 4, 3.0),
        ])

    def test_weighted_dag(self):
        self.assertEqual(sssp(self.graph, 0), [0.0, 3.0, 1.0, 4.0, 7.0, UNREACHABLE])

    def test_unreachable_is_infinite(self):
        dist = sssp(self.graph, 4)
        self.assertEqual(dist[4], 0.0)
        self.assertTrue(all(math.isinf(d) for i, d in enumerate(dist) if i != 4))

    def test_negative_weight_rejected(self):
        g = Graph(2, [(0, 1, -1.0)])
        with self.assertRaises(GraphError):
            sssp(g, 0)

    def test_invalid_source(self):
        with self.assertRaises(InvalidSourceVertex):
            sssp(self.graph, 17)

    def test_parallel_edges_take_minimum(self):
        g = Graph(2, [(0, 1, 5.0), (0, 1, 2.0)])
        self.assertEqual(sssp(g, 0), [0.0, 2.0])

    def test_matches_dijkstra_on_random_graph(self):
        edges = random_edges(50, 200, seed=2, weighted=True)
        ds = build_dataset("random", list(range(50)), edges)
        expected = oracle.sssp(oracle.out_adjacency(ds), 3)
        for parts in (1, 3):
            g = Graph(50, edges, num_partitions=parts)
            with ProgramContext(g, workers=2) as ctx:
                got = sssp(g, 3, ctx)
            for v in range(50):
                if math.isinf(expected[v]):
                    self.assertTrue(math.isinf(got[v]))
                else:
                    self.assertAlmostEqual(got[v], expected[v], places=9)


# ======================================================================
# WCC
# ======================================================================

class TestWcc(unittest.TestCase):
    def test_minimum_id_labels(self):
        g = Graph(6, [(1, 0), (2, 1), (4, 3)])
        self.assertEqual(wcc(g), [0, 0, 0, 3, 3, 5])

    def test_direction_ignored(self):
        directed = Graph(4, [(3, 2), (2, 1), (1, 0)])
        undirected = Graph(4, [(3, 2), (2, 1), (1, 0)], directed=False)
        self.assertEqual(wcc(directed), [0, 0, 0, 0])
        self.assertEqual(wcc(undirected), [0, 0, 0, 0])

    def test_same_label_iff_same_component(self):
        edges = random_edges(80, 60, seed=3)
        ds = build_dataset("random", list(range(80)), [(s, d, 1.0) for s, d in edges])
        expected = oracle.wcc(oracle.out_adjacency(ds), oracle.in_adjacency(ds))
        for parts in (1, 5):
            g = Graph(80, edges, num_partitions=parts)
            with ProgramContext(g, workers=parts) as ctx:
                self.assertEqual(wcc(g, ctx), [expected[v] for v in range(80)])

    def test_empty_graph(self):
        self.assertEqual(wcc(Graph(0)), [])


# ======================================================================
# Re-running from a converged state
# ======================================================================

class TestRerunFromConvergedState(unittest.TestCase):
    """A second run, started from the first run's output with every vertex
    active, leaves every value where it is."""

    def _rerun(self, program, graph, parts):
        graph.set_all_active()
        with ProgramContext(graph, workers=parts) as ctx:
            run_graph_program(program, graph, RUN_TO_CONVERGENCE, ctx)

    def test_bfs(self):
        edges = random_edges(50, 120, seed=21)
        for parts in (1, 3):
            g = Graph(50, edges, num_partitions=parts)
            first = bfs(g, 0)
            self._rerun(BreadthFirstSearch(), g, parts)
            self.assertEqual(g.properties(), first)

    def test_sssp(self):
        edges = random_edges(50, 200, seed=22, weighted=True)
        for parts in (1, 3):
            g = Graph(50, edges, num_partitions=parts)
            first = sssp(g, 4)
            self._rerun(SingleSourceShortestPaths(), g, parts)
            self.assertEqual([value.curr for value in g.properties()], first)

    def test_wcc(self):
        edges = random_edges(60, 40, seed=23)
        for parts in (1, 3):
            g = Graph(60, edges, num_partitions=parts)
            first = wcc(g)
            self._rerun(WeaklyConnectedComponents(), g, parts)
            self.assertEqual([value.curr for value in g.properties()], first)


if __name__ == "__main__":
    unittest.main()
