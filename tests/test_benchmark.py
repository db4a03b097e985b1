"""Tests for result validation, the Graphalytics runner, recording and reports."""

from __future__ import annotations

import argparse
import json
import math
import tempfile
import unittest
from pathlib import Path

from bspgraph.algorithms import Algorithm
from bspgraph.benchmarks import get_benchmarks
from bspgraph.benchmarks.graphalytics.runner import (
    GraphalyticsBenchmark,
    _percentile,
    resolve_parameters,
)
from bspgraph.benchmarks.graphalytics.validation import (
    validate,
    validate_epsilon,
    validate_exact,
    validate_partition,
)
from bspgraph.lib.ldbc import load_dataset
from bspgraph.lib.recorder import ResultRecorder
from bspgraph.lib.report import generate_latex, generate_markdown, load_reports
from bspgraph.lib.schema import BenchmarkResult
from bspgraph.lib.system_info import capture_hardware, git_state

INT64_MAX = 9223372036854775807


# ======================================================================
# Validators
# ======================================================================

class TestValidators(unittest.TestCase):
    def test_exact(self):
        ok, details = validate_exact({1: 0, 2: 1}, {1: "0", 2: "1"})
        self.assertTrue(ok)
        self.assertEqual(details, [])
        ok, details = validate_exact({1: 0, 2: 2}, {1: "0", 2: "1", 3: "1"})
        self.assertFalse(ok)
        self.assertEqual(len(details), 2)

    def test_mismatches_are_capped(self):
        ref = {v: 0 for v in range(50)}
        ok, details = validate_exact({v: 1 for v in range(50)}, ref)
        self.assertFalse(ok)
        self.assertEqual(len(details), 10)

    def test_partition_ignores_label_values(self):
        ref = {1: "1", 2: "1", 3: "3"}
        self.assertTrue(validate_partition({1: 7, 2: 7, 3: 9}, ref)[0])
        # split
        self.assertFalse(validate_partition({1: 7, 2: 8, 3: 9}, ref)[0])
        # merge
        self.assertFalse(validate_partition({1: 7, 2: 7, 3: 7}, ref)[0])

    def test_epsilon(self):
        self.assertTrue(validate_epsilon({1: 0.5}, {1: "0.5000001"})[0])
        self.assertFalse(validate_epsilon({1: 0.5}, {1: "0.51"})[0])

    def test_epsilon_unreachable_forms(self):
        self.assertTrue(validate_epsilon({1: math.inf}, {1: "infinity"})[0])
        self.assertTrue(validate_epsilon({1: math.inf}, {1: str(INT64_MAX)})[0])
        self.assertFalse(validate_epsilon({1: 3.0}, {1: "infinity"})[0])

    def test_dispatch(self):
        ref = {1: "1", 2: "1"}
        self.assertTrue(validate(Algorithm.WCC, {1: 2, 2: 2}, ref)[0])
        self.assertFalse(validate(Algorithm.CDLP, {1: 2, 2: 2}, ref)[0])


# ======================================================================
# Runner
# ======================================================================

def make_dataset(root: Path, name: str = "tiny") -> Path:
    d = root / name
    d.mkdir()
    (d / f"{name}.v").write_text("10\n20\n30\n40\n50\n")
    (d / f"{name}.e").write_text("10 20 1.5\n20 30 1.0\n10 30 4.0\n40 50 2.0\n30 10 0.5\n")
    (d / f"{name}.properties").write_text(
        f"graph.{name}.directed = true\n"
        f"graph.{name}.bfs.source-vertex = 10\n"
        f"graph.{name}.pr.num-iterations = 5\n"
        f"graph.{name}.cdlp.max-iterations = 3\n"
    )
    return d


def bench_args(data_dir: Path, *extra: str) -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    GraphalyticsBenchmark().register_args(parser)
    return parser.parse_args(["--dataset", "tiny", "--data-dir", str(data_dir), *extra])


class TestGraphalyticsRunner(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name)
        self.dataset = make_dataset(self.root)

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_registry(self):
        self.assertIs(get_benchmarks()["graphalytics"], GraphalyticsBenchmark)

    def test_percentile(self):
        vals = [1.0, 2.0, 3.0, 4.0]
        self.assertEqual(_percentile(vals, 50), 2.0)
        self.assertEqual(_percentile(vals, 99), 4.0)
        self.assertEqual(_percentile([], 50), 0.0)

    def test_resolve_parameters(self):
        ds = load_dataset(self.dataset)
        params = resolve_parameters(ds, bench_args(self.root))
        self.assertEqual(params.bfs_source, 0)
        self.assertEqual(params.pagerank_iterations, 5)
        self.assertFalse(params.cdlp_count_own_label)
        params = resolve_parameters(ds, bench_args(self.root, "--source", "40", "--count-own-label"))
        self.assertEqual(params.sssp_source, 3)
        self.assertTrue(params.cdlp_count_own_label)

    def test_all_algorithms_validate_against_oracle(self):
        args = bench_args(self.root, "--runs", "2", "--threads", "2", "--partitions", "2")
        bench = GraphalyticsBenchmark()
        self.assertTrue(bench.validate(args))
        results = bench.run(args)
        self.assertEqual(
            [r.parameters["algorithm"] for r in results],
            ["bfs", "wcc", "pagerank", "cdlp", "lcc", "sssp"],
        )
        for r in results:
            self.assertTrue(r.validation["passed"], r.benchmark)
            self.assertEqual(r.validation["against"], "oracle")
            self.assertEqual(r.metrics["runs"], 2)
            self.assertGreater(r.metrics["evps"], 0)
            self.assertTrue(r.benchmark.startswith(f"graphalytics/{r.parameters['algorithm']}/tiny/"))

    def test_reference_file_preferred(self):
        (self.dataset / "tiny-BFS").write_text(f"10 0\n20 1\n30 1\n40 {INT64_MAX}\n50 {INT64_MAX}\n")
        # wrong on purpose: 40 and 50 are a separate component
        (self.dataset / "tiny-WCC").write_text("10 10\n20 10\n30 10\n40 10\n50 10\n")
        results = GraphalyticsBenchmark().run(
            bench_args(self.root, "--runs", "1", "--algorithm", "bfs", "wcc"),
        )
        bfs_result, wcc_result = results
        self.assertEqual(bfs_result.validation["against"], "reference")
        self.assertTrue(bfs_result.validation["passed"])
        self.assertEqual(wcc_result.validation["against"], "reference")
        self.assertFalse(wcc_result.validation["passed"])

    def test_no_validate(self):
        results = GraphalyticsBenchmark().run(
            bench_args(self.root, "--runs", "1", "--algorithm", "lcc", "--no-validate"),
        )
        self.assertIsNone(results[0].validation)

    def test_missing_dataset(self):
        args = bench_args(self.root / "elsewhere")
        self.assertFalse(GraphalyticsBenchmark().validate(args))


# ======================================================================
# Recorder and report
# ======================================================================

class TestRecorderAndReport(unittest.TestCase):
    def _result(self, name: str, passed: bool | None) -> BenchmarkResult:
        return BenchmarkResult(
            benchmark=f"graphalytics/{name}/tiny/5V-5E",
            category="graphalytics",
            parameters={"algorithm": name},
            metrics={"avg_ms": 1.25, "evps": 12000.0, "runs": 3},
            validation=None if passed is None else {"passed": passed},
        )

    def test_save_and_report(self):
        with tempfile.TemporaryDirectory() as d:
            recorder = ResultRecorder(category="graphalytics", workers=2)
            recorder.record(self._result("bfs", True))
            recorder.record(self._result("wcc", None))
            path = recorder.save(d)
            self.assertEqual(list(Path(d).glob("*.tmp")), [])

            data = json.loads(path.read_text())
            self.assertEqual(data["metadata"]["engine"], "bspgraph")
            self.assertEqual(data["metadata"]["workers"], 2)
            self.assertNotIn("validation", data["results"][1])

            reports = load_reports(Path(d))
            self.assertEqual(len(reports), 1)
            md = generate_markdown(reports)
            self.assertIn("| Benchmark | avg_ms | evps | runs | Valid |", md)
            self.assertIn("PASS", md)
            latex = generate_latex(reports)
            self.assertIn(r"\begin{tabular}", latex)
            self.assertIn(r"avg\_ms", latex)

    def test_host_metadata(self):
        hw = capture_hardware()
        self.assertGreaterEqual(hw.cores, 1)
        self.assertGreaterEqual(hw.ram_gb, 0.0)
        self.assertTrue(hw.cpu)
        commit, branch, dirty = git_state()
        if commit is None:
            self.assertEqual((branch, dirty), (None, None))
        else:
            self.assertIsInstance(dirty, bool)

    def test_unreadable_files_skipped(self):
        with tempfile.TemporaryDirectory() as d:
            (Path(d) / "broken.json").write_text("{not json")
            (Path(d) / "other.json").write_text("[1, 2]")
            self.assertEqual(load_reports(Path(d)), [])


if __name__ == "__main__":
    unittest.main()
