"""Transactional key-value stores the benchmarks drive.

The benchmark core only needs a small surface: begin a transaction, read and
write string keys inside it, commit. Two backends implement it:

* ``memory`` -- an in-process dict. Writes are buffered per transaction and
  applied atomically under the store lock on commit.
* ``sqlite`` -- an on-disk SQLite database accessed through ``apsw``, one
  connection per thread, WAL journal, ``BEGIN IMMEDIATE`` transactions.

Store failures are reported by raising :class:`StoreError`.
"""

from __future__ import annotations

import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path

import apsw

logger = logging.getLogger(__name__)

STORE_KINDS = ("memory", "sqlite")

# Milliseconds a sqlite writer waits on a locked database before failing.
SQLITE_BUSY_TIMEOUT_MS = 30_000


class StoreError(Exception):
    """A store operation (open, get, put, commit) failed."""


class Transaction(ABC):
    """A batch of reads and writes applied atomically on :meth:`commit`."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value for *key*, or None if it does not exist."""

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """Write *value* under *key*."""

    @abstractmethod
    def commit(self) -> None:
        """Apply every write of this transaction. Raises StoreError on failure."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard this transaction. Safe to call on a finished transaction."""


class Store(ABC):
    """A transactional key-value store shared by all benchmark workers."""

    kind: str = ""

    @abstractmethod
    def begin_transaction(self) -> Transaction:
        """Start a new transaction."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Read *key* outside of any transaction."""

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """Write *key* outside of any transaction."""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


# ======================================================================
# In-memory backend
# ======================================================================

class MemoryTransaction(Transaction):
    def __init__(self, store: MemoryStore) -> None:
        self._store = store
        self._writes: dict[str, str] = {}
        self._finished = False

    def _check_open(self) -> None:
        if self._finished:
            raise StoreError("transaction already finished")

    def get(self, key: str) -> str | None:
        self._check_open()
        # Read-your-writes, then the committed state.
        if key in self._writes:
            return self._writes[key]
        return self._store.get(key)

    def put(self, key: str, value: str) -> None:
        self._check_open()
        self._writes[key] = value

    def commit(self) -> None:
        self._check_open()
        self._finished = True
        self._store._apply(self._writes)

    def rollback(self) -> None:
        self._finished = True
        self._writes.clear()


class MemoryStore(Store):
    """Dict-backed store; the lock only guards the committed data."""

    kind = "memory"

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()
        self._closed = False

    def begin_transaction(self) -> MemoryTransaction:
        if self._closed:
            raise StoreError("store is closed")
        return MemoryTransaction(self)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._apply({key: value})

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def _apply(self, writes: dict[str, str]) -> None:
        with self._lock:
            if self._closed:
                raise StoreError("store is closed")
            self._data.update(writes)

    def close(self) -> None:
        with self._lock:
            self._closed = True


# ======================================================================
# SQLite backend (apsw)
# ======================================================================

class SqliteTransaction(Transaction):
    def __init__(self, conn: apsw.Connection) -> None:
        self._conn = conn
        self._finished = False
        try:
            # IMMEDIATE takes the write lock up front so two read-then-write
            # transactions can never deadlock on lock upgrade.
            conn.execute("BEGIN IMMEDIATE")
        except apsw.Error as e:
            raise StoreError(f"begin failed: {e}") from e

    def get(self, key: str) -> str | None:
        try:
            row = self._conn.execute("SELECT v FROM kv WHERE k = ?", (key,)).fetchone()
        except apsw.Error as e:
            raise StoreError(f"get {key!r} failed: {e}") from e
        return None if row is None else row[0]

    def put(self, key: str, value: str) -> None:
        try:
            self._conn.execute(
                "INSERT INTO kv (k, v) VALUES (?, ?) "
                "ON CONFLICT(k) DO UPDATE SET v = excluded.v",
                (key, value),
            )
        except apsw.Error as e:
            raise StoreError(f"put {key!r} failed: {e}") from e

    def commit(self) -> None:
        if self._finished:
            raise StoreError("transaction already finished")
        try:
            self._conn.execute("COMMIT")
        except apsw.Error as e:
            # Left open so the caller's rollback() can release the lock.
            raise StoreError(f"commit failed: {e}") from e
        self._finished = True

    def rollback(self) -> None:
        if self._finished:
            return
        self._finished = True
        try:
            self._conn.execute("ROLLBACK")
        except apsw.Error as e:
            # Nothing left to undo if SQLite already rolled back on error.
            logger.debug("rollback ignored: %s", e)


class SqliteStore(Store):
    """SQLite database file with a single ``kv`` table.

    apsw connections are opened lazily, one per calling thread, so workers
    never share a connection; SQLite itself arbitrates between them.
    """

    kind = "sqlite"

    def __init__(self, path: str | os.PathLike, *, create_if_missing: bool = True) -> None:
        self.path = str(path)
        if not create_if_missing and not Path(self.path).exists():
            raise StoreError(f"database does not exist: {self.path}")
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        self._conns: list[apsw.Connection] = []
        self._conns_lock = threading.Lock()
        self._closed = False

        conn = self._connection()
        try:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")
            conn.execute("CREATE TABLE IF NOT EXISTS kv (k TEXT PRIMARY KEY, v TEXT NOT NULL)")
        except apsw.Error as e:
            self.close()
            raise StoreError(f"cannot initialise {self.path}: {e}") from e

    def _connection(self) -> apsw.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn
        if self._closed:
            raise StoreError("store is closed")
        try:
            conn = apsw.Connection(self.path)
            conn.setbusytimeout(SQLITE_BUSY_TIMEOUT_MS)
        except apsw.Error as e:
            raise StoreError(f"cannot open {self.path}: {e}") from e
        self._local.conn = conn
        with self._conns_lock:
            self._conns.append(conn)
        logger.debug("opened sqlite connection #%d on %s", len(self._conns), self.path)
        return conn

    def begin_transaction(self) -> SqliteTransaction:
        return SqliteTransaction(self._connection())

    def get(self, key: str) -> str | None:
        try:
            row = self._connection().execute("SELECT v FROM kv WHERE k = ?", (key,)).fetchone()
        except apsw.Error as e:
            raise StoreError(f"get {key!r} failed: {e}") from e
        return None if row is None else row[0]

    def put(self, key: str, value: str) -> None:
        txn = self.begin_transaction()
        try:
            txn.put(key, value)
            txn.commit()
        except StoreError:
            txn.rollback()
            raise

    def close(self) -> None:
        with self._conns_lock:
            self._closed = True
            conns, self._conns = self._conns, []
        for conn in conns:
            try:
                conn.close()
            except apsw.Error as e:
                logger.warning("error closing sqlite connection: %s", e)


# ======================================================================
# Factory
# ======================================================================

def open_store(
    kind: str = "memory",
    path: str | os.PathLike | None = None,
    *,
    create_if_missing: bool = True,
) -> Store:
    """Open a store backend by name.

    *path* is required for on-disk backends; for ``sqlite`` it may name a
    directory, in which case the database file ``txbench.db`` is created
    inside it.
    """
    if kind == "memory":
        return MemoryStore()
    if kind == "sqlite":
        if path is None:
            raise ValueError("sqlite store requires a path")
        db_path = Path(path)
        if db_path.is_dir():
            db_path = db_path / "txbench.db"
        return SqliteStore(db_path, create_if_missing=create_if_missing)
    raise ValueError(f"Unknown store: {kind} (choose from {', '.join(STORE_KINDS)})")
