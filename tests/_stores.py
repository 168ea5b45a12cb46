"""Instrumented store wrapper shared by the benchmark tests."""

from __future__ import annotations

import threading
import time

from txbench.store import MemoryStore, Store, StoreError, Transaction


class TapTransaction(Transaction):
    def __init__(self, tap: TapStore, inner: Transaction) -> None:
        self._tap = tap
        self._inner = inner
        self._keys: list[str] = []

    def get(self, key: str) -> str | None:
        self._tap._maybe_fail("get")
        self._keys.append(key)
        self._tap._record_op(key, write=False)
        return self._inner.get(key)

    def put(self, key: str, value: str) -> None:
        self._tap._maybe_fail("put")
        self._keys.append(key)
        self._tap._record_op(key, write=True)
        self._inner.put(key, value)

    def commit(self) -> None:
        if self._tap.commit_delay:
            time.sleep(self._tap.commit_delay)
        self._tap._maybe_fail("commit")
        self._inner.commit()
        self._tap._record_commit(self._keys)

    def rollback(self) -> None:
        with self._tap._lock:
            self._tap.rollbacks += 1
        self._inner.rollback()


class TapStore(Store):
    """Wraps a store and independently observes every transaction.

    * ``commits`` counts successful commits seen by the store itself.
    * ``fail_on`` makes the named operation ("get", "put" or "commit") raise.
    * ``stop_after``/``stop_event`` set the event once that many commits
      have happened, which bounds a worker run by transaction count.
    """

    def __init__(
        self,
        inner: Store | None = None,
        *,
        commit_delay: float = 0.0,
        fail_on: str | None = None,
        stop_after: int | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.inner = inner if inner is not None else MemoryStore()
        self.commit_delay = commit_delay
        self.fail_on = fail_on
        self.stop_after = stop_after
        self.stop_event = stop_event

        self._lock = threading.Lock()
        self.commits = 0
        self.rollbacks = 0
        self.reads = 0
        self.writes = 0
        self.keys: set[str] = set()
        self.begin_times: list[float] = []
        self.committed_keys: dict[int, list[list[str]]] = {}

    def begin_transaction(self) -> TapTransaction:
        with self._lock:
            self.begin_times.append(time.perf_counter())
        return TapTransaction(self, self.inner.begin_transaction())

    def get(self, key: str) -> str | None:
        return self.inner.get(key)

    def put(self, key: str, value: str) -> None:
        self.inner.put(key, value)

    def close(self) -> None:
        self.inner.close()

    def _maybe_fail(self, op: str) -> None:
        if self.fail_on == op:
            raise StoreError(f"injected {op} failure")

    def _record_op(self, key: str, write: bool) -> None:
        with self._lock:
            self.keys.add(key)
            if write:
                self.writes += 1
            else:
                self.reads += 1

    def _record_commit(self, keys: list[str]) -> None:
        with self._lock:
            self.commits += 1
            self.committed_keys.setdefault(threading.get_ident(), []).append(keys)
            if self.stop_after is not None and self.commits >= self.stop_after:
                self.stop_event.set()


def populated_store(table_size: int, **kwargs) -> TapStore:
    """A TapStore over a MemoryStore holding keys ``0 .. table_size-1``."""
    inner = MemoryStore()
    for i in range(table_size):
        inner.put(str(i), "a")
    return TapStore(inner, **kwargs)
