"""Report generator: reads result JSONs and produces Markdown / LaTeX tables."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

DEFAULT_RESULTS_DIR = Path("results")

# Columns shown first, in this order; any other metric follows alphabetically.
_PREFERRED_COLUMNS = ["avg_ms", "p50_ms", "p95_ms", "p99_ms", "min_ms", "max_ms", "evps"]


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format", choices=["markdown", "latex"], default="markdown",
        help="Output format (default: markdown)",
    )
    parser.add_argument(
        "--bench", nargs="*", default=None,
        help="Filter to specific benchmark categories",
    )
    parser.add_argument(
        "--results-dir", type=str, default=str(DEFAULT_RESULTS_DIR),
        help="Directory containing result JSON files (default: results/)",
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Write output to file instead of stdout",
    )


def run_report(args: argparse.Namespace) -> None:
    results_dir = Path(args.results_dir)
    if not results_dir.exists():
        print(f"No results directory found at {results_dir}")
        return

    reports = load_reports(results_dir)
    if args.bench:
        reports = [r for r in reports if report_category(r) in args.bench]

    if not reports:
        print("No result files found.")
        return

    if args.format == "latex":
        output = generate_latex(reports)
    else:
        output = generate_markdown(reports)

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(output)
        print(f"Report written to {args.output}")
    else:
        print(output)


def load_reports(results_dir: Path) -> list[dict]:
    reports = []
    for path in sorted(results_dir.glob("*.json")):
        try:
            with open(path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            continue
        if isinstance(data, dict) and "results" in data:
            reports.append(data)
    return reports


def report_category(report: dict) -> str:
    results = report.get("results", [])
    if results:
        return results[0].get("category", "unknown")
    return "unknown"


# -------------------------------------------------------------------
# Internals
# -------------------------------------------------------------------

def _format_metric(value: object) -> str:
    """Format a single metric value for display."""
    if value is None or value == "":
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float):
        if abs(value) >= 1000:
            return f"{value:,.1f}"
        if abs(value) >= 1:
            return f"{value:.4f}"
        return f"{value:.6f}"
    if isinstance(value, int):
        return f"{value:,}"
    return str(value)


def _collect_columns(results: list[dict]) -> list[str]:
    """Metric columns from ALL results, preferred ones first."""
    all_cols: set[str] = set()
    for res in results:
        all_cols.update(res.get("metrics", {}).keys())
    first = [c for c in _PREFERRED_COLUMNS if c in all_cols]
    return first + sorted(all_cols - set(first))


def _validation_cell(res: dict) -> str:
    validation = res.get("validation")
    if not validation:
        return ""
    return "PASS" if validation.get("passed") else "FAIL"


def _by_category(reports: list[dict]) -> dict[str, list[dict]]:
    grouped: dict[str, list[dict]] = {}
    for r in reports:
        grouped.setdefault(report_category(r), []).append(r)
    return grouped


def generate_markdown(reports: list[dict]) -> str:
    lines = ["# Benchmark Results\n"]

    for category, cat_reports in sorted(_by_category(reports).items()):
        lines.append(f"## {category.upper()}\n")
        for report in cat_reports:
            results = report.get("results", [])
            meta = report.get("metadata", {})
            ts = meta.get("timestamp", "unknown")
            version = meta.get("engine_version", "?")
            workers = meta.get("workers", 1)
            lines.append(f"*Run: {ts} | bspgraph {version} | {workers} worker(s)*\n")

            cols = _collect_columns(results)
            if not cols:
                continue

            header = "| Benchmark | " + " | ".join(cols) + " | Valid |"
            sep = "|---|" + "|".join("---:" for _ in cols) + "|:---:|"
            lines.append(header)
            lines.append(sep)
            for res in results:
                name = res.get("benchmark", "?")
                m = res.get("metrics", {})
                vals = " | ".join(_format_metric(m.get(c, "")) for c in cols)
                lines.append(f"| {name} | {vals} | {_validation_cell(res)} |")
            lines.append("")
    return "\n".join(lines)


def _escape_latex(s: str) -> str:
    """Escape LaTeX special characters."""
    for char in ("\\", "&", "%", "$", "#", "_", "{", "}", "~", "^"):
        s = s.replace(char, f"\\{char}")
    return s


def generate_latex(reports: list[dict]) -> str:
    lines = []

    for category, cat_reports in sorted(_by_category(reports).items()):
        lines.append(f"% ---- {category.upper()} ----")

        for report in cat_reports:
            results = report.get("results", [])
            cols = _collect_columns(results)
            if not cols:
                continue

            col_spec = "l" + "c" * len(cols)
            lines.append(r"\begin{table}[t]")
            lines.append(r"\centering")
            lines.append(f"\\caption{{{_escape_latex(category.upper())} Benchmark Results}}")
            lines.append(f"\\begin{{tabular}}{{{col_spec}}}")
            lines.append(r"\toprule")
            header = "Benchmark & " + " & ".join(_escape_latex(c) for c in cols) + r" \\"
            lines.append(header)
            lines.append(r"\midrule")
            for res in results:
                name = _escape_latex(res.get("benchmark", "?"))
                m = res.get("metrics", {})
                vals = " & ".join(_format_metric(m.get(c, "")) for c in cols)
                lines.append(f"{name} & {vals} \\\\")
            lines.append(r"\bottomrule")
            lines.append(r"\end{tabular}")
            lines.append(r"\end{table}")
            lines.append("")

    return "\n".join(lines)
