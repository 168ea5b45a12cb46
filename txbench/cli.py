"""Unified CLI with subcommands for all benchmark suites.

Usage:
    python run.py ycsb --thread_count 4 --zipf_theta 0.9 --update_ratio 0.5 --duration 30
    python run.py ycsb --store sqlite --db-path /tmp/txbench --operation_count 10
    python run.py report --format latex
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import report as report_mod
from .benchmarks import get_benchmarks
from .benchmarks.base import BaseBenchmark, BenchmarkAborted
from .recorder import ResultRecorder

def build_parser() -> tuple[argparse.ArgumentParser, dict[str, BaseBenchmark]]:
    parser = argparse.ArgumentParser(
        prog="txbench",
        description="Concurrent transactional benchmarks for key-value stores",
    )
    parser.add_argument(
        "--output-dir", type=str, default=str(Path.cwd() / "results"),
        help="Directory for result JSON files (default: ./results)",
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # Register each benchmark as a subcommand
    bench_instances: dict[str, BaseBenchmark] = {}
    for name, cls in sorted(get_benchmarks().items()):
        sub = subparsers.add_parser(name, help=f"Run {name} benchmarks")
        instance = cls()
        instance.register_args(sub)
        bench_instances[name] = instance

    report_parser = subparsers.add_parser("report", help="Generate benchmark reports")
    report_mod.register_args(report_parser)

    return parser, bench_instances


def main(argv: list[str] | None = None) -> None:
    parser, bench_instances = build_parser()
    parsed = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, parsed.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if parsed.command is None:
        parser.print_help(sys.stderr)
        sys.exit(1)

    if parsed.command == "report":
        if parsed.results_dir is None:
            parsed.results_dir = parsed.output_dir
        report_mod.run_report(parsed)
        return

    bench = bench_instances[parsed.command]

    # Configuration errors: usage + message on stderr, exit status 2.
    error = bench.validate(parsed)
    if error:
        parser.error(f"{parsed.command}: {error}")

    try:
        results = bench.run(parsed)
    except BenchmarkAborted as e:
        print(f"\nABORTED {parsed.command}: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"\nERROR running {parsed.command}: {e}", file=sys.stderr)
        sys.exit(1)

    if results:
        recorder = ResultRecorder(category=parsed.command, store_backend=getattr(parsed, "store", None))
        for r in results:
            recorder.record(r)
        recorder.save(parsed.output_dir)
