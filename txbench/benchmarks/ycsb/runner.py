"""YCSB transactional benchmark -- multi-threaded, duration-bounded throughput.

Each worker thread repeatedly runs a transaction of ``operation_count``
point reads/updates on Zipfian-chosen keys and commits it. The run lasts
``duration`` seconds of wall clock; throughput is committed transactions
per second over that window.
"""

from __future__ import annotations

import argparse
import contextlib
import tempfile

from ...schema import BenchmarkResult
from ...store import STORE_KINDS, open_store
from ..base import BaseBenchmark
from .config import (
    DEFAULT_BASE_TABLE_SIZE,
    DEFAULT_DURATION_S,
    DEFAULT_OPERATION_COUNT,
    DEFAULT_SCALE_FACTOR,
    DEFAULT_THREAD_COUNT,
    DEFAULT_UPDATE_RATIO,
    DEFAULT_ZIPF_THETA,
)
from .coordinator import AggregateResult, populate, run_workload
from .workloads import YcsbConfig


class YcsbBenchmark(BaseBenchmark):
    name = "ycsb"

    # ---- CLI registration -------------------------------------------------

    def register_args(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "-t", "--thread_count", "--thread-count",
            dest="thread_count", type=int, default=DEFAULT_THREAD_COUNT,
            help=f"Number of worker threads (default: {DEFAULT_THREAD_COUNT})",
        )
        parser.add_argument(
            "-k", "--scale_factor", "--scale-factor",
            dest="scale_factor", type=float, default=DEFAULT_SCALE_FACTOR,
            help=f"Table size multiplier over {DEFAULT_BASE_TABLE_SIZE} keys "
                 f"(default: {DEFAULT_SCALE_FACTOR:g})",
        )
        parser.add_argument(
            "-z", "--zipf_theta", "--zipf-theta",
            dest="zipf_theta", type=float, default=DEFAULT_ZIPF_THETA,
            help=f"Zipfian skew in [0, 1); 0 is uniform (default: {DEFAULT_ZIPF_THETA:g})",
        )
        parser.add_argument(
            "-o", "--operation_count", "--operation-count",
            dest="operation_count", type=int, default=DEFAULT_OPERATION_COUNT,
            help=f"Operations per transaction (default: {DEFAULT_OPERATION_COUNT})",
        )
        parser.add_argument(
            "-u", "--update_ratio", "--update-ratio",
            dest="update_ratio", type=float, default=DEFAULT_UPDATE_RATIO,
            help=f"Fraction of operations that are updates (default: {DEFAULT_UPDATE_RATIO:g})",
        )
        parser.add_argument(
            "-d", "--duration",
            type=float, default=DEFAULT_DURATION_S,
            help=f"Measurement window in seconds (default: {DEFAULT_DURATION_S:g})",
        )
        parser.add_argument(
            "--seed", type=int, default=None,
            help="Base random seed; worker i uses seed+i (default: time based)",
        )
        parser.add_argument(
            "--store", choices=STORE_KINDS, default="memory",
            help="Store backend to benchmark (default: memory)",
        )
        parser.add_argument(
            "--db-path", type=str, default=None,
            help="Database location for on-disk stores (default: a temporary "
                 "directory removed after the run)",
        )
        parser.add_argument(
            "--no-progress", action="store_true",
            help="Hide the population progress bar",
        )

    # ---- Validate ---------------------------------------------------------

    def validate(self, args: argparse.Namespace) -> str | None:
        try:
            self.config_from_args(args)
        except ValueError as e:
            return str(e)
        return None

    @staticmethod
    def config_from_args(args: argparse.Namespace) -> YcsbConfig:
        return YcsbConfig(
            base_size=DEFAULT_BASE_TABLE_SIZE,
            scale_factor=args.scale_factor,
            zipf_theta=args.zipf_theta,
            operation_count=args.operation_count,
            update_ratio=args.update_ratio,
            thread_count=args.thread_count,
            duration=args.duration,
            seed=args.seed,
        )

    # ---- Run --------------------------------------------------------------

    def run(self, args: argparse.Namespace) -> list[BenchmarkResult]:
        config = self.config_from_args(args)

        print(f"\n{'='*60}")
        print(f"  YCSB transactional: {config.thread_count} thread(s) x {config.duration:g}s"
              f"  store={args.store}")
        print(f"  table_size={config.table_size}  operation_count={config.operation_count}  "
              f"update_ratio={config.update_ratio:g}  zipf_theta={config.zipf_theta:g}")
        print(f"{'='*60}")

        with contextlib.ExitStack() as stack:
            db_path = args.db_path
            if db_path is None and args.store != "memory":
                db_path = stack.enter_context(tempfile.TemporaryDirectory(prefix="txbench-"))
            store = stack.enter_context(open_store(args.store, db_path))

            populate(store, config, progress=not args.no_progress)
            print("  Running transactions...")
            result = run_workload(store, config)

        self._print_summary(result)
        return [self._to_benchmark_result(config, args.store, result)]

    # ---- Helpers ----------------------------------------------------------

    @staticmethod
    def _to_benchmark_result(
        config: YcsbConfig, store_kind: str, result: AggregateResult,
    ) -> BenchmarkResult:
        label = (f"t{config.thread_count}-z{config.zipf_theta:g}"
                 f"-u{config.update_ratio:g}-o{config.operation_count}")
        return BenchmarkResult(
            benchmark=f"ycsb/{label}/{store_kind}",
            category="ycsb",
            parameters={
                "store": store_kind,
                "table_size": config.table_size,
                "scale_factor": config.scale_factor,
                "zipf_theta": config.zipf_theta,
                "operation_count": config.operation_count,
                "update_ratio": config.update_ratio,
                "thread_count": config.thread_count,
                "duration_s": config.duration,
                "seed": config.seed,
            },
            metrics={
                "total_commits": result.total_commits,
                "aggregate_tps": round(result.aggregate_tps, 1),
                "per_worker_tps": round(result.per_worker_tps, 1),
                "per_worker_commits": result.per_worker_commits,
                "reads": result.reads,
                "writes": result.writes,
                "write_fraction": round(result.write_fraction, 4),
                "elapsed_s": round(result.elapsed_s, 3),
            },
        )

    @staticmethod
    def _print_summary(result: AggregateResult) -> None:
        print(f"\n  {'--- Results ---':^50}")
        print(f"  Commits:     {result.total_commits:,}  "
              f"(reads={result.reads:,}  writes={result.writes:,})")
        print(f"  Elapsed:     {result.elapsed_s:.3f}s")
        print(f"  Throughput:  {result.aggregate_tps / 1000:.3f} K tps")
        print(f"  Per thread:  {result.per_worker_tps / 1000:.3f} K tps")
        print(f"{'='*60}\n")
