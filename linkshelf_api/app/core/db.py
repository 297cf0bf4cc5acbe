"""
SQLite database integration, connection pool and migrations.

A ``Database`` is built once at application startup and stored on
``app.state``.  It owns a bounded ``ConnectionPool``; services borrow a
connection for the duration of one operation through
``Database.connection()``, which commits on success, rolls back on
error and always returns the connection to the pool.

The services are ``async`` but call ``sqlite3`` directly, so under
uvicorn's event loop one request at a time holds a connection.  The
pool bound and its timeout only come into play when the services are
called from several threads (sync endpoints, a threaded server or
scripts sharing a ``Database``).

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.  It runs
from the startup hook, so request handlers can assume the schema
exists.
"""

import logging
import os
import queue
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from fastapi import Request

from .config import Settings
from .errors import BadRequest, ServerError

logger = logging.getLogger(__name__)

# SQLite stores INTEGER PRIMARY KEY values as signed 64-bit integers.
MAX_ROWID = 2 ** 63 - 1


def valid_rowid(value: int) -> bool:
    """True if ``value`` can be an id in an AUTOINCREMENT table."""
    return 1 <= value <= MAX_ROWID


def ensure_bindable(**values: Optional[str]) -> None:
    """Reject text SQLite cannot store.

    JSON allows lone surrogates (``"\\ud800"``), which have no UTF-8
    encoding.  Raises ``BadRequest`` naming the first offending field.
    """
    for name, value in values.items():
        if value is None:
            continue
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise BadRequest(f"invalid {name}")


MIGRATIONS: List[Tuple[int, str]] = [
    # Migration 1: initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS app_users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            display_name TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        -- owner references app_users.email but is not a foreign key:
        -- links outlive the account that created them.
        CREATE TABLE IF NOT EXISTS custom_links (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            category TEXT NOT NULL,
            label TEXT NOT NULL,
            url TEXT NOT NULL,
            owner TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
    # Migration 2: indices for the listing query
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_custom_links_category ON custom_links(category);
        CREATE INDEX IF NOT EXISTS idx_custom_links_created_at ON custom_links(created_at, id);
        """,
    ),
]


def resolve_database_path(database_url: str) -> str:
    """Turn ``DATABASE_URL`` into a filesystem path.

    Accepts a bare path or a ``sqlite:///`` URL.  Relative paths are
    resolved against the project root.
    """
    path = database_url
    if path.startswith("sqlite:///"):
        path = path[len("sqlite:///"):]
    if path == ":memory:" or os.path.isabs(path):
        return path
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / path).resolve())


class ConnectionPool:
    """A bounded pool of SQLite connections.

    Connections are opened lazily up to ``size`` and handed out LIFO so
    a quiet service keeps reusing the same few connections.  ``acquire``
    waits at most ``timeout`` seconds for a free connection.
    """

    def __init__(self, path: str, size: int = 5, timeout: float = 10.0) -> None:
        if size < 1:
            raise ValueError("pool size must be at least 1")
        self.path = path
        self.size = size
        self.timeout = timeout
        self._idle: "queue.LifoQueue[sqlite3.Connection]" = queue.LifoQueue(maxsize=size)
        self._opened = 0
        self._lock = threading.Lock()
        self._closed = False

    def _connect(self) -> sqlite3.Connection:
        # The driver's busy timeout doubles as the connect timeout.
        conn = sqlite3.connect(self.path, timeout=self.timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _checkout(self) -> sqlite3.Connection:
        if self._closed:
            raise ServerError("database pool is closed")
        try:
            return self._idle.get_nowait()
        except queue.Empty:
            pass
        with self._lock:
            if self._opened < self.size:
                self._opened += 1
                try:
                    return self._connect()
                except sqlite3.Error:
                    self._opened -= 1
                    logger.exception("Could not open database connection to %s", self.path)
                    raise ServerError()
        try:
            return self._idle.get(timeout=self.timeout)
        except queue.Empty:
            logger.error("Timed out after %.1fs waiting for a database connection", self.timeout)
            raise ServerError("database busy")

    def _checkin(self, conn: sqlite3.Connection) -> None:
        if self._closed:
            conn.close()
            with self._lock:
                self._opened -= 1
            return
        self._idle.put_nowait(conn)

    @contextmanager
    def acquire(self) -> Iterator[sqlite3.Connection]:
        """Borrow a connection; commit on success, roll back on error."""
        conn = self._checkout()
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._checkin(conn)

    def close(self) -> None:
        """Close idle connections and refuse further checkouts."""
        self._closed = True
        while True:
            try:
                conn = self._idle.get_nowait()
            except queue.Empty:
                break
            conn.close()
            with self._lock:
                self._opened -= 1


class Database:
    """Owner of the connection pool and the schema."""

    def __init__(self, path: str, pool_size: int = 5, pool_timeout: float = 10.0) -> None:
        self.path = path
        self.pool = ConnectionPool(path, size=pool_size, timeout=pool_timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            resolve_database_path(settings.database_url),
            pool_size=settings.pool_size,
            pool_timeout=settings.pool_timeout,
        )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Scoped connection; driver errors surface as ``ServerError``."""
        try:
            with self.pool.acquire() as conn:
                yield conn
        except sqlite3.Error:
            logger.exception("Database operation failed")
            raise ServerError()

    def ping(self) -> str:
        """Run a trivial query and return the database's current time."""
        with self.connection() as conn:
            row = conn.execute("SELECT CURRENT_TIMESTAMP AS current_time").fetchone()
            return row["current_time"]

    def init_db(self, migrations: Optional[List[Tuple[int, str]]] = None) -> int:
        """Apply pending migrations and return the resulting schema version."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
            row = cursor.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0

            for version, sql in migrations if migrations is not None else MIGRATIONS:
                if version > current_version:
                    logger.info("Applying migration %s", version)
                    cursor.executescript(sql)
                    cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                    current_version = version
            return current_version

    def close(self) -> None:
        self.pool.close()


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the application's ``Database``."""
    return request.app.state.db
