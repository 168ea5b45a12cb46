"""Worker thread: issues transactions against the store until told to stop."""

from __future__ import annotations

import enum
import logging
import threading

from ...store import Store, StoreError
from .config import UPDATE_VALUE
from .workloads import FastRandom, YcsbConfig, ZipfianGenerator, format_key


class WorkerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    DONE = "done"


class WorkerAborted(Exception):
    """A store operation failed inside a worker; the run is invalid."""

    def __init__(self, worker_id: int, operation: str, key: str | None, cause: BaseException):
        self.worker_id = worker_id
        self.operation = operation
        self.key = key
        self.cause = cause
        where = f" key={key!r}" if key is not None else ""
        super().__init__(f"worker {worker_id}: {operation}{where} failed: {cause}")


class Worker(threading.Thread):
    """Runs transactions of ``operation_count`` point reads/updates.

    The stop event is polled only between transactions, so a transaction
    is never abandoned half-way. ``commits``, ``reads`` and ``writes`` are
    written by this thread alone; readers must ``join()`` it first.
    """

    def __init__(
        self,
        worker_id: int,
        store: Store,
        config: YcsbConfig,
        stop_event: threading.Event,
        abort_event: threading.Event | None = None,
    ) -> None:
        super().__init__(name=f"ycsb-worker-{worker_id}")
        self.worker_id = worker_id
        self.store = store
        self.config = config
        self.stop_event = stop_event
        self.abort_event = abort_event

        self.state = WorkerState.IDLE
        self.commits = 0
        self.reads = 0
        self.writes = 0
        self.error: WorkerAborted | None = None

        self.logger = logging.getLogger(f"txbench.ycsb.worker.{worker_id}")

    def run(self) -> None:
        self.state = WorkerState.RUNNING
        rng = FastRandom(self.config.worker_seed(self.worker_id))
        zipf = ZipfianGenerator(self.config.table_size, self.config.zipf_theta, rng)
        self.logger.debug("started (seed=%s)", rng.seed)
        try:
            while not self.stop_event.is_set():
                self._run_transaction(zipf, rng)
            self.state = WorkerState.STOPPING
        except WorkerAborted as e:
            self.error = e
            self.logger.error("aborting run: %s", e)
            if self.abort_event is not None:
                self.abort_event.set()
        finally:
            self.state = WorkerState.DONE
            self.logger.debug(
                "finished: %d commits (%d reads, %d writes)",
                self.commits, self.reads, self.writes,
            )

    def _run_transaction(self, zipf: ZipfianGenerator, rng: FastRandom) -> None:
        update_ratio = self.config.update_ratio
        try:
            txn = self.store.begin_transaction()
        except Exception as e:
            raise WorkerAborted(self.worker_id, "begin", None, e) from e

        reads = writes = 0
        op, key = "begin", None
        try:
            for _ in range(self.config.operation_count):
                key = format_key(zipf.next() - 1)
                if rng.next_uniform() < update_ratio:
                    op = "put"
                    txn.put(key, UPDATE_VALUE)
                    writes += 1
                else:
                    op = "get"
                    if txn.get(key) is None:
                        raise StoreError("key not found")
                    reads += 1
            op, key = "commit", None
            txn.commit()
        except Exception as e:
            txn.rollback()
            raise WorkerAborted(self.worker_id, op, key, e) from e

        self.commits += 1
        self.reads += reads
        self.writes += writes
