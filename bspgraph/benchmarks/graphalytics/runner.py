"""LDBC Graphalytics benchmark runner -- times the BSP engine on LDBC datasets.

Every algorithm runs ``--runs`` times on one loaded graph. The last result
is validated against the dataset's reference output (``<name>-<ALG>``) or,
when the dataset ships none, against the sequential implementations in
``oracle``.
"""

from __future__ import annotations

import argparse
import math
import time
from pathlib import Path
from typing import Any

from ...algorithms import Algorithm, OutputKind, run_algorithm
from ...config import (
    ALGORITHMS,
    DEFAULT_PARTITIONS,
    DEFAULT_RUNS,
    DEFAULT_WORKERS,
    LDBC_DATASETS,
    AlgorithmParameters,
)
from ...engine import Graph, ProgramContext
from ...lib.ldbc import LdbcDataset, load_dataset, load_reference
from ...lib.schema import BenchmarkResult
from ..base import BaseBenchmark
from . import oracle
from .validation import validate

DEFAULT_DATA_DIR = Path("datasets") / "graphalytics"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _percentile(sorted_vals: list[float], p: float) -> float:
    """Return the *p*-th percentile from a pre-sorted list."""
    n = len(sorted_vals)
    if n == 0:
        return 0.0
    idx = min(max(math.ceil(p / 100.0 * n) - 1, 0), n - 1)
    return sorted_vals[idx]


def _fmt_num(n: int | float) -> str:
    """Format a number with thousands separators."""
    return f"{int(n):,}"


def to_external(ds: LdbcDataset, algorithm: Algorithm, values: list[Any]) -> dict[int, Any]:
    """Key engine output by external id; labels are translated as well."""
    ids = ds.vertex_ids
    if algorithm.output_kind is OutputKind.LABEL:
        return {ids[i]: ids[label] for i, label in enumerate(values)}
    return dict(zip(ids, values))


def oracle_result(ds: LdbcDataset, algorithm: Algorithm, params: AlgorithmParameters) -> dict[int, Any]:
    """Expected output from the sequential implementations, keyed by external id."""
    out_adj = oracle.out_adjacency(ds)
    if algorithm is Algorithm.BFS:
        return oracle.bfs(out_adj, ds.external_id(params.bfs_source))
    if algorithm is Algorithm.SSSP:
        return oracle.sssp(out_adj, ds.external_id(params.sssp_source))
    if algorithm is Algorithm.PAGERANK:
        return oracle.pagerank(out_adj, params.pagerank_iterations, params.pagerank_damping)
    in_adj = oracle.in_adjacency(ds)
    if algorithm is Algorithm.WCC:
        return oracle.wcc(out_adj, in_adj)
    if algorithm is Algorithm.CDLP:
        return oracle.cdlp(
            out_adj, in_adj, params.cdlp_iterations, params.cdlp_count_own_label,
            directed=ds.directed,
        )
    return oracle.lcc(out_adj, in_adj)


def resolve_parameters(ds: LdbcDataset, args: argparse.Namespace) -> AlgorithmParameters:
    """Dataset properties overridden by command-line flags; sources made internal."""
    params = AlgorithmParameters.from_properties(
        ds.properties,
        cdlp_count_own_label=getattr(args, "count_own_label", None),
    )
    bfs_source = args.source if args.source is not None else params.bfs_source
    sssp_source = args.source if args.source is not None else params.sssp_source
    if bfs_source is None:
        bfs_source = ds.vertex_ids[0] if ds.vertex_ids else 0
    if sssp_source is None:
        sssp_source = bfs_source
    return AlgorithmParameters(
        bfs_source=ds.index_of(bfs_source),
        sssp_source=ds.index_of(sssp_source),
        pagerank_iterations=params.pagerank_iterations,
        pagerank_damping=params.pagerank_damping,
        cdlp_iterations=params.cdlp_iterations,
        cdlp_count_own_label=params.cdlp_count_own_label,
        bitmap_threshold=params.bitmap_threshold,
    ).validate()


# ---------------------------------------------------------------------------
# Benchmark class
# ---------------------------------------------------------------------------

class GraphalyticsBenchmark(BaseBenchmark):
    """LDBC Graphalytics benchmark suite."""

    name = "graphalytics"

    def register_args(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--algorithm", nargs="+", default=ALGORITHMS,
            choices=ALGORITHMS,
            help=f"Algorithm(s) to run (default: all {len(ALGORITHMS)})",
        )
        parser.add_argument(
            "--dataset", default="example-directed",
            help=f"LDBC dataset name (known: {', '.join(LDBC_DATASETS)})",
        )
        parser.add_argument(
            "--runs", type=int, default=DEFAULT_RUNS,
            help=f"Number of timed runs per algorithm (default: {DEFAULT_RUNS})",
        )
        parser.add_argument(
            "--data-dir", type=str, default=str(DEFAULT_DATA_DIR),
            help="Directory containing LDBC dataset directories",
        )
        parser.add_argument(
            "--source", type=int, default=None,
            help="BFS/SSSP source vertex, external id (default: from dataset properties)",
        )
        parser.add_argument(
            "--threads", type=int, default=DEFAULT_WORKERS,
            help=f"Worker threads (default: {DEFAULT_WORKERS})",
        )
        parser.add_argument(
            "--partitions", type=int, default=DEFAULT_PARTITIONS,
            help=f"Graph partitions (default: {DEFAULT_PARTITIONS})",
        )
        parser.add_argument(
            "--count-own-label", dest="count_own_label", action="store_true", default=False,
            help="CDLP: count a vertex's own label (LDBC reference output does not)",
        )
        parser.add_argument(
            "--progress", action="store_true",
            help="Show per-superstep progress bars",
        )
        parser.add_argument(
            "--validate", dest="do_validate", action="store_true", default=True,
            help="Enable result validation (default)",
        )
        parser.add_argument(
            "--no-validate", dest="do_validate", action="store_false",
            help="Disable result validation",
        )

    def download(self, args: argparse.Namespace) -> None:
        dataset_name = getattr(args, "dataset", "example-directed")
        data_dir = Path(getattr(args, "data_dir", str(DEFAULT_DATA_DIR)))
        ds_info = LDBC_DATASETS.get(dataset_name)
        if ds_info is None:
            print(f"Unknown dataset: {dataset_name}")
            return

        if ds_info.get("local"):
            print(f"Dataset '{dataset_name}' is a local example dataset.")
            print(f"Ensure it exists at: {data_dir / dataset_name}")
            return

        url = ds_info["url"]
        print("Download the dataset archive from:")
        print(f"  {url}")
        print()
        print("Then extract with:")
        print(f"  zstd -d {dataset_name}.tar.zst && tar xf {dataset_name}.tar")
        print()
        print(f"Place the extracted directory at: {data_dir / dataset_name}")

    def validate(self, args: argparse.Namespace) -> bool:
        path = Path(args.data_dir) / args.dataset
        if not path.exists():
            print(f"Dataset not found: {path}")
            return False
        return True

    def run(self, args: argparse.Namespace) -> list[BenchmarkResult]:
        dataset_name = args.dataset
        data_dir = Path(args.data_dir) / dataset_name
        num_runs = max(1, args.runs)

        print(f"Loading LDBC dataset: {dataset_name} from {data_dir}")
        t0 = time.perf_counter()
        ds = load_dataset(data_dir)
        graph = ds.graph(num_partitions=args.partitions)
        load_time = time.perf_counter() - t0
        num_v, num_e = ds.num_vertices, ds.num_edges
        print(
            f"  {_fmt_num(num_v)} vertices, {_fmt_num(num_e)} edges, "
            f"{'directed' if ds.directed else 'undirected'}"
        )
        print(f"  Load time: {load_time:.3f}s")

        params = resolve_parameters(ds, args)
        print(f"  BFS source: {ds.external_id(params.bfs_source)}")
        print(f"  SSSP source: {ds.external_id(params.sssp_source)}")
        print(f"  Threads: {args.threads}, partitions: {graph.num_partitions}")

        results: list[BenchmarkResult] = []
        with ProgramContext(graph, workers=args.threads) as context:
            for alg_name in args.algorithm:
                algorithm = Algorithm.parse(alg_name)
                result = self._run_algorithm(
                    ds, graph, context, algorithm, params, num_runs, args,
                )
                result.metrics["load_time_s"] = round(load_time, 3)
                results.append(result)

        print(f"\n{'='*60}")
        print(f"  Graphalytics benchmark complete: {len(results)} algorithm(s)")
        print(f"{'='*60}\n")
        return results

    def _run_algorithm(
        self,
        ds: LdbcDataset,
        graph: Graph,
        context: ProgramContext,
        algorithm: Algorithm,
        params: AlgorithmParameters,
        num_runs: int,
        args: argparse.Namespace,
    ) -> BenchmarkResult:
        num_v, num_e = ds.num_vertices, ds.num_edges
        print(f"\n{'='*60}")
        print(f"  Algorithm: {algorithm.value.upper()} ({num_runs} runs)")
        print(f"{'='*60}")

        run_times: list[float] = []
        values: list[Any] = []
        for run_idx in range(num_runs):
            t_start = time.perf_counter()
            values = run_algorithm(algorithm, graph, params, context, progress=args.progress)
            elapsed = time.perf_counter() - t_start
            run_times.append(elapsed)
            if run_idx == 0:
                evps = (num_v + num_e) / elapsed if elapsed > 0 else 0
                print(f"  Run 1: {elapsed*1000:.3f}ms (EVPS: {_fmt_num(evps)})")

        validation: dict[str, object] | None = None
        if args.do_validate:
            validation = self._validate(ds, algorithm, params, values)

        sorted_times = sorted(run_times)
        avg_time = sum(sorted_times) / len(sorted_times)
        p50 = _percentile(sorted_times, 50)
        p95 = _percentile(sorted_times, 95)
        p99 = _percentile(sorted_times, 99)
        min_time = sorted_times[0]
        max_time = sorted_times[-1]
        # EVPS = (vertices + edges) per second
        evps = (num_v + num_e) / avg_time if avg_time > 0 else 0

        print(f"\n  --- {algorithm.value.upper()} Summary ({len(run_times)} runs) ---")
        print(f"  avg:  {avg_time*1000:.3f}ms")
        print(f"  p50:  {p50*1000:.3f}ms")
        print(f"  p95:  {p95*1000:.3f}ms")
        print(f"  p99:  {p99*1000:.3f}ms")
        print(f"  min:  {min_time*1000:.3f}ms")
        print(f"  max:  {max_time*1000:.3f}ms")
        print(f"  EVPS: {_fmt_num(evps)}")

        metrics: dict[str, object] = {
            "evps": evps,
            "avg_ms": round(avg_time * 1000, 3),
            "p50_ms": round(p50 * 1000, 3),
            "p95_ms": round(p95 * 1000, 3),
            "p99_ms": round(p99 * 1000, 3),
            "min_ms": round(min_time * 1000, 3),
            "max_ms": round(max_time * 1000, 3),
            "runs": len(run_times),
        }

        parameters: dict[str, object] = {
            "dataset": ds.name,
            "algorithm": algorithm.value,
            "vertices": num_v,
            "edges": num_e,
            "directed": ds.directed,
            "threads": context.workers,
            "partitions": graph.num_partitions,
        }
        if algorithm is Algorithm.BFS:
            parameters["source"] = ds.external_id(params.bfs_source)
        elif algorithm is Algorithm.SSSP:
            parameters["source"] = ds.external_id(params.sssp_source)
        elif algorithm is Algorithm.PAGERANK:
            parameters["iterations"] = params.pagerank_iterations
            parameters["damping"] = params.pagerank_damping
        elif algorithm is Algorithm.CDLP:
            parameters["iterations"] = params.cdlp_iterations
            parameters["count_own_label"] = params.cdlp_count_own_label

        return BenchmarkResult(
            benchmark=f"graphalytics/{algorithm.value}/{ds.name}/{num_v}V-{num_e}E",
            category="graphalytics",
            parameters=parameters,
            metrics=metrics,
            validation=validation,
        )

    def _validate(
        self,
        ds: LdbcDataset,
        algorithm: Algorithm,
        params: AlgorithmParameters,
        values: list[Any],
    ) -> dict[str, object]:
        result = to_external(ds, algorithm, values)
        ref_name = f"{ds.name}-{algorithm.ldbc_suffix}"
        ref_path = ds.data_dir / ref_name if ds.data_dir is not None else None
        if ref_path is not None and ref_path.exists():
            reference: dict[int, Any] = load_reference(ref_path)
            source = "reference"
        else:
            reference = oracle_result(ds, algorithm, params)
            source = "oracle"

        ok, details = validate(algorithm, result, reference)
        if ok:
            print(f"  Validation ({source}): PASS ({len(reference)} vertices checked)")
        else:
            print(f"  Validation ({source}): FAIL")
            for d in details:
                print(d)
        return {"passed": ok, "against": source, "vertices": len(reference)}
