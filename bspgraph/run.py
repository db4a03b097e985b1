"""Command-line entry point.

Usage:
    bspgraph bfs graphs/example-directed 1 out.txt
    bspgraph sssp graphs/example-directed.e 1
    bspgraph wcc graphs/example-undirected --threads 4 --partitions 8
    bspgraph pagerank graphs/example-directed 20 0.85 out.txt
    bspgraph cdlp graphs/example-directed 10 --exclude-own-label
    bspgraph lcc graphs/example-undirected --bitmap-threshold 256
    bspgraph graphalytics --dataset example-directed --runs 5
    bspgraph report --format latex
"""

from __future__ import annotations

import argparse
import sys
from typing import TextIO

from . import __version__
from .algorithms import Algorithm, run_algorithm
from .benchmarks import get_benchmarks
from .benchmarks.base import BaseBenchmark
from .config import (
    DEFAULT_BITMAP_THRESHOLD,
    DEFAULT_PAGERANK_DAMPING,
    DEFAULT_PARTITIONS,
    DEFAULT_WORKERS,
    AlgorithmParameters,
)
from .engine import ProgramContext
from .errors import BspGraphError
from .lib import report as report_mod
from .lib.ldbc import LdbcDataset, load_dataset
from .lib.output import write_output
from .lib.recorder import ResultRecorder
from .lib.timer import PhaseTimer


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def _common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("graph", help="LDBC dataset directory or .e edge file")
    parser.add_argument(
        "--threads", type=int, default=DEFAULT_WORKERS,
        help=f"Worker threads (default: {DEFAULT_WORKERS}, env BSPGRAPH_THREADS)",
    )
    parser.add_argument(
        "--partitions", type=int, default=DEFAULT_PARTITIONS,
        help=f"Graph partitions (default: {DEFAULT_PARTITIONS}, env BSPGRAPH_PARTITIONS)",
    )
    direction = parser.add_mutually_exclusive_group()
    direction.add_argument(
        "--directed", dest="directed", action="store_const", const=True, default=None,
        help="Treat the graph as directed (default: from .properties, else directed)",
    )
    direction.add_argument(
        "--undirected", dest="directed", action="store_const", const=False,
        help="Treat the graph as undirected",
    )
    parser.add_argument(
        "--progress", action="store_true", help="Show per-superstep progress bars",
    )
    parser.add_argument(
        "--no-timing", dest="timing", action="store_false",
        help="Do not print phase timings to stderr",
    )


def _output_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "output", nargs="?", default=None,
        help="Output file ('-' or omitted: stdout)",
    )


def _register_algorithms(subparsers: argparse._SubParsersAction) -> None:
    sub = subparsers.add_parser("bfs", help="Breadth-first search depths")
    _common_args(sub)
    sub.add_argument("source", type=int, help="Source vertex (id as in the input)")
    _output_arg(sub)

    sub = subparsers.add_parser("sssp", help="Single-source shortest paths")
    _common_args(sub)
    sub.add_argument("source", type=int, help="Source vertex (id as in the input)")
    _output_arg(sub)

    sub = subparsers.add_parser("wcc", help="Weakly connected components")
    _common_args(sub)
    _output_arg(sub)

    sub = subparsers.add_parser("pagerank", help="PageRank")
    _common_args(sub)
    sub.add_argument("iterations", type=int, help="Number of iterations")
    sub.add_argument(
        "damping", type=float, nargs="?", default=DEFAULT_PAGERANK_DAMPING,
        help=f"Damping factor (default: {DEFAULT_PAGERANK_DAMPING})",
    )
    _output_arg(sub)

    sub = subparsers.add_parser("cdlp", help="Community detection by label propagation")
    _common_args(sub)
    sub.add_argument("iterations", type=int, help="Number of iterations")
    sub.add_argument(
        "--exclude-own-label", dest="count_own_label", action="store_false",
        help="Do not count a vertex's own label (LDBC reference behaviour)",
    )
    _output_arg(sub)

    sub = subparsers.add_parser("lcc", help="Local clustering coefficient")
    _common_args(sub)
    sub.add_argument(
        "--bitmap-threshold", type=int, default=DEFAULT_BITMAP_THRESHOLD,
        help=f"Neighbour sets larger than this get a bitmap (default: {DEFAULT_BITMAP_THRESHOLD})",
    )
    _output_arg(sub)


def build_parser() -> tuple[argparse.ArgumentParser, dict[str, BaseBenchmark]]:
    parser = argparse.ArgumentParser(
        prog="bspgraph",
        description="Vertex-centric BSP graph analytics",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--output-dir", type=str, default="results",
        help="Directory for benchmark result JSON files (default: results/)",
    )
    subparsers = parser.add_subparsers(dest="command")
    _register_algorithms(subparsers)

    bench_instances: dict[str, BaseBenchmark] = {}
    for name, cls in sorted(get_benchmarks().items()):
        sub = subparsers.add_parser(name, help=f"Run {name} benchmarks")
        instance = cls()
        instance.register_args(sub)
        bench_instances[name] = instance

    report_parser = subparsers.add_parser("report", help="Generate benchmark reports")
    report_mod.register_args(report_parser)
    return parser, bench_instances


# ---------------------------------------------------------------------------
# Algorithm commands
# ---------------------------------------------------------------------------

def _parameters(algorithm: Algorithm, ds: LdbcDataset, args: argparse.Namespace) -> AlgorithmParameters:
    """Command-line values layered over the dataset's ``.properties``."""
    overrides: dict[str, object] = {}
    if algorithm is Algorithm.BFS:
        overrides["bfs_source"] = ds.index_of(args.source)
    elif algorithm is Algorithm.SSSP:
        overrides["sssp_source"] = ds.index_of(args.source)
    elif algorithm is Algorithm.PAGERANK:
        overrides["pagerank_iterations"] = args.iterations
        overrides["pagerank_damping"] = args.damping
    elif algorithm is Algorithm.CDLP:
        overrides["cdlp_iterations"] = args.iterations
        overrides["cdlp_count_own_label"] = args.count_own_label
    elif algorithm is Algorithm.LCC:
        overrides["bitmap_threshold"] = args.bitmap_threshold
    return AlgorithmParameters.from_properties(ds.properties, **overrides).validate()


def run_command(algorithm: Algorithm, args: argparse.Namespace) -> None:
    """Load, run, and write one algorithm; exits with status 1 on failure.

    Output is written only after the run succeeded.
    """
    to_stdout = args.output is None or args.output == "-"
    log: TextIO = sys.stderr if to_stdout else sys.stdout
    timer = PhaseTimer(enabled=args.timing)
    timer.start()

    try:
        print(f"Loading graph from {args.graph}", file=log)
        ds = load_dataset(args.graph, directed=args.directed)
        params = _parameters(algorithm, ds, args)
        graph = ds.graph(num_partitions=args.partitions)
        print(
            f"  {ds.num_vertices:,} vertices, {ds.num_edges:,} edges, "
            f"{'directed' if graph.directed else 'undirected'}",
            file=log,
        )
        timer.next("load graph")

        with ProgramContext(graph, workers=args.threads) as context:
            timer.next("initialize engine")
            print(f"Running {algorithm.value}", file=log)
            values = run_algorithm(algorithm, graph, params, context, progress=args.progress)
            timer.next("run algorithm")
        timer.next("deinitialize engine")
    except BspGraphError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        count = write_output(args.output, ds.vertex_ids, values, algorithm.output_kind)
    except OSError as e:
        print(f"ERROR: cannot write output: {e}", file=sys.stderr)
        sys.exit(1)
    timer.next("print output")
    if not to_stdout:
        print(f"Wrote {count:,} lines to {args.output}", file=log)
    timer.end()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    parser, bench_instances = build_parser()
    parsed = parser.parse_args(argv)

    if parsed.command is None:
        parser.print_help()
        return

    if parsed.command in {a.value for a in Algorithm}:
        run_command(Algorithm(parsed.command), parsed)
        return

    if parsed.command == "report":
        if parsed.results_dir == str(report_mod.DEFAULT_RESULTS_DIR):
            parsed.results_dir = parsed.output_dir
        report_mod.run_report(parsed)
        return

    bench = bench_instances.get(parsed.command)
    if bench is None:
        parser.print_help()
        return

    if not bench.validate(parsed):
        print(f"Validation failed for {parsed.command}. Check prerequisites.")
        bench.download(parsed)
        sys.exit(1)

    try:
        results = bench.run(parsed)
    except (BspGraphError, OSError) as e:
        print(f"\nERROR running {parsed.command}: {e}", file=sys.stderr)
        sys.exit(1)

    if results:
        recorder = ResultRecorder(category=parsed.command, workers=parsed.threads)
        for r in results:
            recorder.record(r)
        recorder.save(parsed.output_dir)


if __name__ == "__main__":
    main()
