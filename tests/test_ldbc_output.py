"""Tests for the LDBC dataset loader and the result writer."""

from __future__ import annotations

import io
import math
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from bspgraph.algorithms import UNVISITED, OutputKind, bfs, wcc
from bspgraph.config import AlgorithmParameters
from bspgraph.errors import GraphError, InvalidSourceVertex
from bspgraph.lib.ldbc import (
    build_dataset,
    load_dataset,
    load_edges,
    load_properties,
    load_reference,
    load_vertices,
)
from bspgraph.lib.output import format_value, write_output


def write_dataset(root: Path, name: str, vertices: str | None, edges: str,
                  properties: str | None = None) -> Path:
    d = root / name
    d.mkdir()
    if vertices is not None:
        (d / f"{name}.v").write_text(vertices)
    (d / f"{name}.e").write_text(edges)
    if properties is not None:
        (d / f"{name}.properties").write_text(properties)
    return d


# ======================================================================
# Parsers
# ======================================================================

class TestParsers(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name)

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_properties_skip_comments(self):
        p = self.root / "g.properties"
        p.write_text("# comment\n\ngraph.g.directed = false\nkey=a=b\n")
        self.assertEqual(load_properties(p), {"graph.g.directed": "false", "key": "a=b"})

    def test_vertices(self):
        p = self.root / "g.v"
        p.write_text("3\n\n1\n2\n")
        self.assertEqual(load_vertices(p), [3, 1, 2])

    def test_bad_vertex_reports_line(self):
        p = self.root / "g.v"
        p.write_text("1\nabc\n")
        with self.assertRaises(GraphError) as ctx:
            load_vertices(p)
        self.assertIn(":2:", str(ctx.exception))

    def test_edges_default_weight(self):
        p = self.root / "g.e"
        p.write_text("1 2\n2 3 0.5\n")
        self.assertEqual(load_edges(p), [(1, 2, 1.0), (2, 3, 0.5)])

    def test_bad_edge_lines(self):
        for text in ("1\n", "1 2 3 4\n", "1 x\n"):
            p = self.root / "g.e"
            p.write_text(text)
            with self.assertRaises(GraphError):
                load_edges(p)

    def test_reference(self):
        p = self.root / "g-BFS"
        p.write_text("1 0\n2 9223372036854775807\n")
        self.assertEqual(load_reference(p), {1: "0", 2: "9223372036854775807"})


# ======================================================================
# Datasets and id translation
# ======================================================================

class TestDataset(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name)

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_ids_translated_in_ascending_order(self):
        ds = build_dataset("g", [30, 10, 40, 20], [(10, 20, 1.0), (20, 30, 1.0)])
        self.assertEqual(ds.vertex_ids, [10, 20, 30, 40])
        self.assertEqual(ds.index_of(30), 2)
        self.assertEqual(ds.external_id(3), 40)
        self.assertEqual(bfs(ds.graph(), ds.index_of(10)), [0, 1, 2, UNVISITED])

    def test_labels_are_internal_indices(self):
        ds = build_dataset("g", [7, 5, 9], [(9, 7, 1.0)])
        self.assertEqual(wcc(ds.graph()), [0, 1, 1])

    def test_unknown_source(self):
        ds = build_dataset("g", [1, 2], [])
        with self.assertRaises(InvalidSourceVertex) as ctx:
            ds.index_of(3)
        self.assertIn("not a vertex of g", str(ctx.exception))

    def test_edge_to_unknown_vertex(self):
        with self.assertRaises(GraphError) as ctx:
            build_dataset("g", [1, 2], [(1, 5, 1.0)])
        self.assertIn("vertex id 5 is unknown", str(ctx.exception))

    def test_duplicate_vertex(self):
        with self.assertRaises(GraphError):
            build_dataset("g", [1, 2, 1], [])

    def test_vertices_inferred_from_edges(self):
        ds = build_dataset("g", None, [(8, 3, 1.0)])
        self.assertEqual(ds.vertex_ids, [3, 8])

    def test_load_directory_with_ldbc_properties(self):
        d = write_dataset(
            self.root, "tiny", "30\n10\n40\n20\n", "10 20\n20 30 2.5\n",
            "graph.tiny.directed = false\n"
            "graph.tiny.meta.vertices = 4\n"
            "graph.tiny.meta.edges = 2\n"
            "graph.tiny.bfs.source-vertex = 10\n"
            "graph.tiny.pr.num-iterations = 7\n",
        )
        ds = load_dataset(d)
        self.assertEqual(ds.name, "tiny")
        self.assertFalse(ds.directed)
        self.assertEqual(ds.num_vertices, 4)
        self.assertEqual(ds.num_edges, 2)
        params = AlgorithmParameters.from_properties(ds.properties)
        self.assertEqual(params.bfs_source, 10)
        self.assertEqual(params.sssp_source, 10)
        self.assertEqual(params.pagerank_iterations, 7)

    def test_load_edge_file_path(self):
        write_dataset(self.root, "g", None, "1 2\n")
        ds = load_dataset(self.root / "g" / "g.e")
        self.assertEqual(ds.vertex_ids, [1, 2])
        self.assertTrue(ds.directed)

    def test_directed_override(self):
        d = write_dataset(self.root, "g", "1\n2\n", "1 2\n", "graph.directed = true\n")
        self.assertFalse(load_dataset(d, directed=False).directed)

    def test_missing_edge_file(self):
        with self.assertRaises(GraphError):
            load_dataset(self.root / "absent")

    def test_count_mismatch(self):
        d = write_dataset(self.root, "g", "1\n2\n", "1 2\n", "meta.vertices = 3\n")
        with self.assertRaises(GraphError):
            load_dataset(d)

    def test_malformed_count(self):
        d = write_dataset(self.root, "g", "1\n2\n", "1 2\n", "graph.g.meta.edges = many\n")
        with self.assertRaises(GraphError) as ctx:
            load_dataset(d)
        self.assertIn("meta.edges", str(ctx.exception))


# ======================================================================
# Output
# ======================================================================

class TestOutput(unittest.TestCase):
    def test_format_value(self):
        self.assertEqual(format_value(OutputKind.LABEL, 1, [10, 20]), "20")
        self.assertEqual(format_value(OutputKind.DEPTH, 3), "3")
        self.assertEqual(format_value(OutputKind.DEPTH, UNVISITED), "9223372036854775807")
        self.assertEqual(format_value(OutputKind.DISTANCE, math.inf), "infinity")
        self.assertEqual(format_value(OutputKind.DISTANCE, 2.5), "2.5")
        self.assertEqual(format_value(OutputKind.SCORE, 0.25), "0.25")

    def test_write_file(self):
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "out" / "result.txt"
            count = write_output(path, [10, 20], [1, 0], OutputKind.LABEL)
            self.assertEqual(count, 2)
            self.assertEqual(path.read_text(), "10 20\n20 10\n")

    def test_write_stdout(self):
        buf = io.StringIO()
        with redirect_stdout(buf):
            write_output("-", [1, 2], [0.5, math.inf], OutputKind.DISTANCE)
        self.assertEqual(buf.getvalue(), "1 0.5\n2 infinity\n")

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            write_output(None, [1, 2], [0], OutputKind.DEPTH)


if __name__ == "__main__":
    unittest.main()
