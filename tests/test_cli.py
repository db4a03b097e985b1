"""Tests for the ``bspgraph`` command line."""

from __future__ import annotations

import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from bspgraph.run import main

UNVISITED = "9223372036854775807"


def make_dataset(root: Path, name: str = "tiny", directed: bool = True) -> Path:
    d = root / name
    d.mkdir()
    (d / f"{name}.v").write_text("1\n2\n3\n4\n5\n")
    (d / f"{name}.e").write_text("1 2 1.5\n2 3 1.0\n1 3 4.0\n4 5 2.0\n")
    (d / f"{name}.properties").write_text(
        f"graph.{name}.directed = {'true' if directed else 'false'}\n"
        f"graph.{name}.meta.vertices = 5\n"
        f"graph.{name}.meta.edges = 4\n"
        f"graph.{name}.bfs.source-vertex = 1\n"
    )
    return d


def run_cli(*argv: str) -> tuple[str, str]:
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        main(list(argv))
    return out.getvalue(), err.getvalue()


# ======================================================================
# Algorithm subcommands
# ======================================================================

class TestAlgorithmCommands(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name)
        self.dataset = make_dataset(self.root)

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_bfs_to_file(self):
        out = self.root / "bfs.txt"
        stdout, stderr = run_cli("bfs", str(self.dataset), "1", str(out))
        self.assertEqual(
            out.read_text(), f"1 0\n2 1\n3 1\n4 {UNVISITED}\n5 {UNVISITED}\n",
        )
        self.assertIn("Wrote 5 lines", stdout)
        self.assertIn("Timing results:", stderr)
        self.assertIn(" - run algorithm:", stderr)

    def test_sssp_partitioned(self):
        out = self.root / "sssp.txt"
        run_cli("sssp", str(self.dataset), "1", str(out), "--threads", "2", "--partitions", "3")
        self.assertEqual(
            out.read_text(), "1 0.0\n2 1.5\n3 2.5\n4 infinity\n5 infinity\n",
        )

    def test_wcc_to_stdout(self):
        stdout, stderr = run_cli("wcc", str(self.dataset), "--no-timing")
        self.assertEqual(stdout, "1 1\n2 1\n3 1\n4 4\n5 4\n")
        self.assertIn("Loading graph", stderr)
        self.assertNotIn("Timing results:", stderr)

    def test_edge_file_path_and_undirected_flag(self):
        stdout, _ = run_cli(
            "cdlp", str(self.dataset / "tiny.e"), "3", "-", "--undirected", "--no-timing",
        )
        self.assertEqual(len(stdout.splitlines()), 5)

    def test_pagerank_scores_sum_to_one(self):
        stdout, _ = run_cli("pagerank", str(self.dataset), "10", "0.85", "--no-timing")
        scores = [float(line.split()[1]) for line in stdout.splitlines()]
        self.assertAlmostEqual(sum(scores), 1.0)

    def test_lcc(self):
        stdout, _ = run_cli(
            "lcc", str(self.dataset), "--undirected", "--bitmap-threshold", "0", "--no-timing",
        )
        values = {line.split()[0]: float(line.split()[1]) for line in stdout.splitlines()}
        self.assertEqual(values, {"1": 1.0, "2": 1.0, "3": 1.0, "4": 0.0, "5": 0.0})

    def test_invalid_source_exits_without_output(self):
        out = self.root / "bfs.txt"
        with self.assertRaises(SystemExit) as ctx:
            run_cli("bfs", str(self.dataset), "99", str(out))
        self.assertEqual(ctx.exception.code, 1)
        self.assertFalse(out.exists())

    def test_invalid_damping_exits(self):
        with self.assertRaises(SystemExit) as ctx:
            run_cli("pagerank", str(self.dataset), "5", "1.5")
        self.assertEqual(ctx.exception.code, 1)

    def test_missing_graph_exits(self):
        with self.assertRaises(SystemExit) as ctx:
            run_cli("wcc", str(self.root / "nope"))
        self.assertEqual(ctx.exception.code, 1)

    def test_malformed_properties_exit_with_diagnostic(self):
        props = self.dataset / "tiny.properties"
        props.write_text(props.read_text() + "graph.tiny.pr.num-iterations = abc\n")
        out = self.root / "wcc.txt"
        err = io.StringIO()
        with self.assertRaises(SystemExit) as ctx:
            with redirect_stdout(io.StringIO()), redirect_stderr(err):
                main(["wcc", str(self.dataset), str(out)])
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("ERROR: bad value for algorithms.pr.num-iterations: 'abc'", err.getvalue())
        self.assertFalse(out.exists())

    def test_version(self):
        with self.assertRaises(SystemExit) as ctx:
            run_cli("--version")
        self.assertEqual(ctx.exception.code, 0)


# ======================================================================
# Benchmark and report subcommands
# ======================================================================

class TestBenchmarkCommands(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name)
        (self.root / "data").mkdir()
        make_dataset(self.root / "data")
        self.results = self.root / "results"

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_graphalytics_then_report(self):
        run_cli(
            "--output-dir", str(self.results),
            "graphalytics", "--dataset", "tiny", "--data-dir", str(self.root / "data"),
            "--runs", "2", "--algorithm", "bfs", "wcc",
        )
        files = list(self.results.glob("graphalytics-*.json"))
        self.assertEqual(len(files), 1)
        data = json.loads(files[0].read_text())
        self.assertEqual(len(data["results"]), 2)
        self.assertTrue(all(r["validation"]["passed"] for r in data["results"]))

        stdout, _ = run_cli("--output-dir", str(self.results), "report")
        self.assertIn("## GRAPHALYTICS", stdout)
        self.assertIn("PASS", stdout)

    def test_missing_dataset_exits(self):
        with self.assertRaises(SystemExit) as ctx:
            run_cli(
                "graphalytics", "--dataset", "absent", "--data-dir", str(self.root / "data"),
            )
        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
