"""Report generator: reads result JSONs and produces Markdown / LaTeX tables."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Parameters shown next to the benchmark name, in this order.
PARAMETER_COLUMNS = ("store", "thread_count", "zipf_theta", "update_ratio", "operation_count")

_LATEX_ESCAPES = {
    "\\": r"\textbackslash{}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
    **{c: "\\" + c for c in "&%$#_{}"},
}


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format", choices=["markdown", "latex"], default="markdown",
        help="Output format (default: markdown)",
    )
    parser.add_argument(
        "--bench", nargs="*", default=None,
        help="Filter to specific benchmark suites",
    )
    parser.add_argument(
        "--results-dir", type=str, default=None,
        help="Directory containing result JSON files (default: --output-dir)",
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
        reports = [r for r in reports if _report_category(r) in args.bench]

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
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("skipping %s: %s", path, e)
            continue
        if isinstance(data, dict) and data.get("results"):
            reports.append(data)
    return reports


def generate_markdown(reports: list[dict]) -> str:
    lines = ["# Benchmark Results\n"]

    for category, cat_reports in _by_category(reports):
        lines.append(f"## {category.upper()}\n")
        for report in cat_reports:
            meta = report.get("metadata", {})
            ts = meta.get("timestamp", "unknown")
            cpu = meta.get("hardware", {}).get("cpu", "?")
            lines.append(f"*Run: {ts} | CPU: {cpu}*\n")

            results = report["results"]
            params = _collect_parameters(results)
            cols = _collect_columns(results)
            header = "| Benchmark | " + " | ".join(params + cols) + " |"
            sep = "|---|" + "".join("---|" for _ in params) + "".join("---:|" for _ in cols)
            lines.append(header)
            lines.append(sep)
            for res in results:
                name = res.get("benchmark", "?")
                lines.append(f"| {name} | " + " | ".join(_row(res, params, cols)) + " |")
            lines.append("")
    return "\n".join(lines)


def generate_latex(reports: list[dict]) -> str:
    lines = []

    for category, cat_reports in _by_category(reports):
        lines.append(f"% ---- {category.upper()} ----")
        for report in cat_reports:
            results = report["results"]
            params = _collect_parameters(results)
            cols = _collect_columns(results)

            col_spec = "l" * (1 + len(params)) + "r" * len(cols)
            lines.append(r"\begin{table}[t]")
            lines.append(r"\centering")
            lines.append(f"\\caption{{{_escape_latex(category.upper())} Benchmark Results}}")
            lines.append(f"\\begin{{tabular}}{{{col_spec}}}")
            lines.append(r"\toprule")
            header = " & ".join(_escape_latex(c) for c in ["Benchmark", *params, *cols])
            lines.append(header + r" \\")
            lines.append(r"\midrule")
            for res in results:
                cells = [res.get("benchmark", "?"), *_row(res, params, cols)]
                lines.append(" & ".join(_escape_latex(c) for c in cells) + r" \\")
            lines.append(r"\bottomrule")
            lines.append(r"\end{tabular}")
            lines.append(r"\end{table}")
            lines.append("")

    return "\n".join(lines)


# -------------------------------------------------------------------
# Internals
# -------------------------------------------------------------------

def _report_category(report: dict) -> str:
    results = report.get("results", [])
    if results:
        return results[0].get("category", "unknown")
    return "unknown"


def _by_category(reports: list[dict]) -> list[tuple[str, list[dict]]]:
    by_category: dict[str, list[dict]] = {}
    for r in reports:
        by_category.setdefault(_report_category(r), []).append(r)
    return sorted(by_category.items())


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
            return f"{value:.3f}"
        return f"{value:.4f}"
    if isinstance(value, int):
        return f"{value:,}"
    return str(value)


def _collect_parameters(results: list[dict]) -> list[str]:
    present = set()
    for res in results:
        present.update(res.get("parameters", {}).keys())
    return [p for p in PARAMETER_COLUMNS if p in present]


def _collect_columns(results: list[dict]) -> list[str]:
    """Scalar metric columns across ALL results; list-valued metrics are skipped."""
    all_cols: set[str] = set()
    for res in results:
        for key, value in res.get("metrics", {}).items():
            if not isinstance(value, (list, dict)):
                all_cols.add(key)
    return sorted(all_cols)


def _row(res: dict, params: list[str], cols: list[str]) -> list[str]:
    p = res.get("parameters", {})
    m = res.get("metrics", {})
    return [_format_metric(p.get(c, "")) for c in params] + \
        [_format_metric(m.get(c, "")) for c in cols]


def _escape_latex(s: str) -> str:
    """Escape LaTeX special characters."""
    return "".join(_LATEX_ESCAPES.get(c, c) for c in s)
