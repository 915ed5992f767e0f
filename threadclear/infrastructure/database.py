"""Pooled SQLite access for the insight store.

All insight tables live in one SQLite file, threadclear/data/threadclear.db,
unless THREADCLEAR_DB_PATH points elsewhere. Everything that touches the
database goes through this module:

- get_db_connection / db_transaction: borrow a pooled connection
- retry_on_db_lock: back off and retry writes that hit SQLITE_BUSY
- init_database / validate_schema: idempotent setup and startup checks
- get_pool_stats: pool usage for /health/db
"""

from __future__ import annotations

import atexit
import os
import random
import sqlite3
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from functools import lru_cache, wraps
from pathlib import Path
from queue import Empty, Full, Queue
from threading import Lock
from typing import Any, TypeVar

from threadclear.config import (
    DB_CONNECT_TIMEOUT,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_RETRY_BASE_DELAY,
    DB_RETRY_JITTER,
    DB_RETRY_MAX,
    DB_RETRY_MAX_DELAY,
    DB_TEMP_CONN_MAX,
)
from threadclear.observability.logging import get_logger
from threadclear.observability.telemetry import counter, log_event

F = TypeVar("F", bound=Callable[..., Any])

DB_PATH = Path(__file__).parent.parent / "data" / "threadclear.db"

_LOCK_MARKERS = ("locked", "busy")

logger = get_logger(__name__)


def _is_lock_error(error: sqlite3.OperationalError) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _LOCK_MARKERS)


def _backoff(attempt: int, base_delay: float, max_delay: float) -> float:
    delay = min(base_delay * (2**attempt), max_delay)
    return delay + random.uniform(0, delay * DB_RETRY_JITTER)


def retry_on_db_lock(
    max_retries: int = DB_RETRY_MAX,
    base_delay: float = DB_RETRY_BASE_DELAY,
    max_delay: float = DB_RETRY_MAX_DELAY,
) -> Callable[[F], F]:
    """
    Retry a write when SQLite reports the database as locked or busy.

    Waits with exponential backoff plus jitter between attempts. Any other
    OperationalError, and the last lock error once retries run out, propagates.

    Usage:
        @staticmethod
        @retry_on_db_lock()
        def save(insight):
            with db_transaction() as conn:
                ...

    Side Effects:
        - Sleeps between attempts
        - Increments database.lock_retry_exhausted when giving up
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except sqlite3.OperationalError as e:
                    if not _is_lock_error(e):
                        raise
                    if attempt >= max_retries:
                        logger.error("Gave up on locked database after %d retries: %s", max_retries, e)
                        counter("database.lock_retry_exhausted")
                        raise

                    wait = _backoff(attempt, base_delay, max_delay)
                    attempt += 1
                    logger.warning(
                        "%s hit a locked database (retry %d/%d in %.2fs)",
                        func.__name__,
                        attempt,
                        max_retries,
                        wait,
                    )
                    time.sleep(wait)

        return wrapper  # type: ignore[return-value]

    return decorator


class DatabaseConnectionPool:
    """
    Fixed-size pool of SQLite connections shared across request threads.

    When every pooled connection is checked out, up to DB_TEMP_CONN_MAX
    overflow connections are opened; they are closed instead of pooled when
    returned.
    """

    def __init__(self, db_path: Path, pool_size: int = DB_POOL_SIZE):
        self.db_path = db_path
        self.pool_size = pool_size
        self.pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self.lock = Lock()
        self.closed = False
        self.temp_conn_max = DB_TEMP_CONN_MAX
        self._overflow: set[int] = set()

        for _ in range(pool_size):
            try:
                self.pool.put(self._open())
            except (sqlite3.Error, RuntimeError) as e:
                logger.warning("Could not open pooled connection to %s: %s", db_path, e)

        atexit.register(self.close_all)

    @property
    def temp_conn_count(self) -> int:
        return len(self._overflow)

    def _open(self) -> sqlite3.Connection:
        """
        Open and configure one connection (WAL, NORMAL sync, foreign keys).

        Raises:
            RuntimeError: If SQLite's quick integrity check fails
        """
        conn = sqlite3.connect(str(self.db_path), timeout=DB_CONNECT_TIMEOUT, check_same_thread=False)

        try:
            (status,) = conn.execute("PRAGMA quick_check(1)").fetchone()
        except sqlite3.DatabaseError as e:
            conn.close()
            self._report_corruption(str(e))
            raise RuntimeError(f"Database corruption detected: {e}") from e
        if status != "ok":
            conn.close()
            self._report_corruption(status)
            raise RuntimeError(f"Database corruption detected: {status}")

        for pragma in ("journal_mode=WAL", "synchronous=NORMAL", "foreign_keys=ON"):
            conn.execute(f"PRAGMA {pragma}")
        conn.row_factory = sqlite3.Row
        return conn

    def _report_corruption(self, detail: str) -> None:
        logger.critical("Integrity check failed for %s: %s", self.db_path, detail)
        counter("database.corruption_detected")

    def get_connection(self) -> sqlite3.Connection:
        """
        Borrow a connection, opening an overflow one if the pool stays empty.

        Raises:
            RuntimeError: If the pool is closed or the overflow limit is reached
        """
        if self.closed:
            raise RuntimeError("Connection pool has been closed")

        try:
            return self.pool.get(timeout=DB_POOL_TIMEOUT)
        except Empty:
            return self._open_overflow()

    def _open_overflow(self) -> sqlite3.Connection:
        with self.lock:
            in_use = len(self._overflow)
            if in_use >= self.temp_conn_max:
                logger.critical(
                    "Pool exhausted with %d/%d overflow connections open (pool_size=%d)",
                    in_use,
                    self.temp_conn_max,
                    self.pool_size,
                )
                raise RuntimeError(
                    f"Database connection pool exhausted (pool_size={self.pool_size}, "
                    f"overflow limit={self.temp_conn_max})"
                )

            conn = self._open()
            self._overflow.add(id(conn))
            in_use += 1

        logger.error("Pool exhausted; opened overflow connection %d/%d", in_use, self.temp_conn_max)
        log_event("database.pool_exhausted", pool_size=self.pool_size, overflow=in_use)
        return conn

    def return_connection(self, conn: sqlite3.Connection) -> None:
        with self.lock:
            overflow = id(conn) in self._overflow
            self._overflow.discard(id(conn))

        if overflow or self.closed:
            conn.close()
            return

        try:
            self.pool.put_nowait(conn)
        except Full:
            logger.warning("Pool already full; closing returned connection")
            conn.close()

    def close_all(self) -> None:
        self.closed = True
        while True:
            try:
                self.pool.get_nowait().close()
            except Empty:
                break


@lru_cache(maxsize=1)
def get_pool() -> DatabaseConnectionPool:
    """Process-wide pool for get_db_path(), created on first use."""
    return DatabaseConnectionPool(get_db_path(), pool_size=DB_POOL_SIZE)


def reset_pool() -> None:
    """Close the process-wide pool so the next caller opens a fresh one."""
    if get_pool.cache_info().currsize:
        get_pool().close_all()
    get_pool.cache_clear()


def get_db_path() -> Path:
    env_path = os.getenv("THREADCLEAR_DB_PATH")
    return Path(env_path) if env_path else DB_PATH


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Borrow a pooled connection for the duration of the block.

    Raises:
        FileNotFoundError: If init_database() has not created the file yet
    """
    db_path = get_db_path()
    if not db_path.exists():
        raise FileNotFoundError(f"Database not found: {db_path}\nRun init_database() first")

    pool = get_pool()
    conn = pool.get_connection()
    try:
        yield conn
    finally:
        pool.return_connection(conn)


@contextmanager
def db_transaction() -> Generator[sqlite3.Connection, None, None]:
    """Pooled connection that commits on success and rolls back on any error."""
    with get_db_connection() as conn:
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        conn.commit()


def validate_schema() -> bool:
    """
    Check that the insight tables and their key columns exist.

    Raises:
        ValueError: If a table or column is missing
    """
    from threadclear.infrastructure.database_schema import validate_schema as _validate_schema

    with get_db_connection() as conn:
        return _validate_schema(conn)


def get_pool_stats() -> dict[str, Any]:
    pool = get_pool()
    available = pool.pool.qsize()
    in_use = pool.pool_size - available
    usage_percent = (in_use / pool.pool_size) * 100 if pool.pool_size else 0

    return {
        "pool_size": pool.pool_size,
        "available": available,
        "in_use": in_use,
        "overflow": pool.temp_conn_count,
        "usage_percent": round(usage_percent, 1),
        "closed": pool.closed,
    }


def init_database() -> None:
    """
    Create the insight tables and indexes if missing (idempotent).

    Side Effects:
        - Creates the database file and its parent directory if needed
    """
    from threadclear.infrastructure.database_schema import init_database as _init_database

    _init_database(get_db_path())
