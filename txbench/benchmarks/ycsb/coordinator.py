"""Table population and the timed multi-threaded run."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field

from tqdm import tqdm

from ...store import Store
from ..base import BenchmarkAborted
from .config import POPULATE_BATCH_SIZE, POPULATE_VALUE
from .worker import Worker
from .workloads import YcsbConfig, format_key

logger = logging.getLogger(__name__)


@dataclass
class AggregateResult:
    total_commits: int
    aggregate_tps: float
    per_worker_tps: float
    per_worker_commits: list[int] = field(default_factory=list)
    reads: int = 0
    writes: int = 0
    elapsed_s: float = 0.0

    @property
    def write_fraction(self) -> float:
        ops = self.reads + self.writes
        return self.writes / ops if ops else 0.0


def populate(
    store: Store,
    config: YcsbConfig,
    batch_size: int = POPULATE_BATCH_SIZE,
    progress: bool = True,
) -> None:
    """Insert keys ``0 .. table_size-1`` so every sampled key exists."""
    table_size = config.table_size
    with tqdm(total=table_size, desc="Populating", unit="key", disable=not progress) as bar:
        for batch_start in range(0, table_size, batch_size):
            batch_end = min(batch_start + batch_size, table_size)
            txn = store.begin_transaction()
            try:
                for i in range(batch_start, batch_end):
                    txn.put(format_key(i), POPULATE_VALUE)
                txn.commit()
            except Exception:
                txn.rollback()
                raise
            bar.update(batch_end - batch_start)
    logger.info("populated %d keys", table_size)


def run_workload(store: Store, config: YcsbConfig) -> AggregateResult:
    """Run ``thread_count`` workers for ``duration`` seconds and aggregate.

    Raises :class:`BenchmarkAborted` if any worker failed; the remaining
    workers are stopped as soon as the first failure is reported.
    """
    stop_event = threading.Event()
    abort_event = threading.Event()
    workers = [
        Worker(i, store, config, stop_event, abort_event)
        for i in range(config.thread_count)
    ]

    logger.info(
        "starting %d worker(s) for %.1fs (table=%d, ops/txn=%d, update_ratio=%.2f, theta=%.2f)",
        config.thread_count, config.duration, config.table_size,
        config.operation_count, config.update_ratio, config.zipf_theta,
    )
    start = time.perf_counter()
    try:
        for w in workers:
            w.start()
        if abort_event.wait(timeout=config.duration):
            logger.warning("worker failure reported, stopping early")
    finally:
        stop_event.set()
        # Only threads that were actually started can be joined.
        for w in workers:
            if w.ident is not None:
                w.join()
    elapsed = time.perf_counter() - start

    # Counters are only read after join(), once each worker is done.
    failures = [w.error for w in workers if w.error is not None]
    if failures:
        raise BenchmarkAborted(failures)

    per_worker_commits = [w.commits for w in workers]
    total_commits = sum(per_worker_commits)
    aggregate_tps = total_commits / config.duration
    result = AggregateResult(
        total_commits=total_commits,
        aggregate_tps=aggregate_tps,
        per_worker_tps=aggregate_tps / config.thread_count,
        per_worker_commits=per_worker_commits,
        reads=sum(w.reads for w in workers),
        writes=sum(w.writes for w in workers),
        elapsed_s=elapsed,
    )
    logger.info(
        "run finished: %d commits in %.3fs (overrun %.3fs)",
        total_commits, elapsed, elapsed - config.duration,
    )
    return result
