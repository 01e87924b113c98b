"""SQLite-backed persistence for shortened URLs."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Protocol

from goshort.errors import NotFoundError
from goshort.models import URL, CreateParams, Storage

logger = logging.getLogger(__name__)

TIME_LAYOUT = "%Y-%m-%d %H:%M:%S"
CLEANUP_INTERVAL = 3600.0
CLEANUP_BATCH_SIZE = 1000

_COLUMNS = (
    "id, short_code, original_url, is_custom, created_at, "
    "expires_at, click_count, title, description"
)

_MIGRATIONS = (
    """
    CREATE TABLE IF NOT EXISTS urls (
        id           INTEGER PRIMARY KEY AUTOINCREMENT,
        short_code   TEXT    NOT NULL UNIQUE,
        original_url TEXT    NOT NULL,
        is_custom    INTEGER NOT NULL DEFAULT 0,
        created_at   TEXT    NOT NULL DEFAULT (datetime('now')),
        expires_at   TEXT,
        click_count  INTEGER NOT NULL DEFAULT 0
    );
    CREATE INDEX IF NOT EXISTS idx_urls_expires_at ON urls (expires_at);
    CREATE TABLE IF NOT EXISTS counter (
        id    INTEGER PRIMARY KEY CHECK (id = 1),
        value INTEGER NOT NULL
    );
    INSERT OR IGNORE INTO counter (id, value) VALUES (1, 0);
    """,
    """
    ALTER TABLE urls ADD COLUMN title TEXT NOT NULL DEFAULT '';
    ALTER TABLE urls ADD COLUMN description TEXT NOT NULL DEFAULT '';
    """,
)


def format_time(value: datetime) -> str:
    """Render a datetime as the UTC text form stored in the database."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIME_LAYOUT)


def parse_time(value: str) -> datetime:
    """Parse the stored UTC text form into an aware datetime."""
    try:
        parsed = datetime.strptime(value, TIME_LAYOUT)
    except (TypeError, ValueError) as exc:
        raise ValueError(f'parse time "{value}": {exc}') from exc
    return parsed.replace(tzinfo=timezone.utc)


def _to_url(row: tuple) -> URL:
    try:
        created_at = parse_time(row[4])
    except ValueError as exc:
        raise ValueError(f"decode created_at: {exc}") from exc
    try:
        expires_at = parse_time(row[5]) if row[5] is not None else None
    except ValueError as exc:
        raise ValueError(f"decode expires_at: {exc}") from exc
    return URL(
        id=row[0],
        short_code=row[1],
        original_url=row[2],
        is_custom=bool(row[3]),
        created_at=created_at,
        expires_at=expires_at,
        click_count=row[6],
        title=row[7],
        description=row[8],
    )


class SQLiteStorage:
    """Storage backed by one SQLite connection; safe to share between threads."""

    def __init__(self, dsn: str) -> None:
        self._conn = sqlite3.connect(dsn, check_same_thread=False, isolation_level=None)
        self._lock = threading.RLock()
        try:
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._migrate()
        except Exception:
            self._conn.close()
            raise

    def _migrate(self) -> None:
        version = self._conn.execute("PRAGMA user_version").fetchone()[0]
        for number, script in enumerate(_MIGRATIONS[version:], start=version + 1):
            self._conn.executescript(
                f"BEGIN;\n{script}\nPRAGMA user_version = {number};\nCOMMIT;"
            )

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                yield self._conn
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            self._conn.execute("COMMIT")

    def close(self) -> None:
        """Release the database connection."""
        self._conn.close()

    def __enter__(self) -> SQLiteStorage:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _select_one(self, conn: sqlite3.Connection, where: str, arg: object) -> tuple | None:
        return conn.execute(f"SELECT {_COLUMNS} FROM urls WHERE {where}", (arg,)).fetchone()

    def create_url(self, params: CreateParams) -> URL:
        """Insert a record and return the stored row."""
        expires = format_time(params.expires_at) if params.expires_at is not None else None
        with self._transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO urls (short_code, original_url, is_custom, expires_at, "
                "title, description) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    params.short_code,
                    params.original_url,
                    int(params.is_custom),
                    expires,
                    params.title,
                    params.description,
                ),
            )
            row = self._select_one(conn, "id = ?", cursor.lastrowid)
        return _to_url(row)

    def get_by_code(self, code: str) -> URL:
        """Return the record for code, raising NotFoundError if missing."""
        with self._lock:
            row = self._select_one(self._conn, "short_code = ?", code)
        if row is None:
            raise NotFoundError(f'get by code "{code}": not found')
        return _to_url(row)

    def delete_by_code(self, code: str) -> None:
        """Delete the record for code, raising NotFoundError if missing."""
        with self._lock:
            cursor = self._conn.execute("DELETE FROM urls WHERE short_code = ?", (code,))
        if cursor.rowcount == 0:
            raise NotFoundError(f'delete by code "{code}": not found')

    def list_urls(self, limit: int, offset: int) -> list[URL]:
        """Return a page of records, most recently created first."""
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM urls ORDER BY id DESC LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
        return [_to_url(row) for row in rows]

    def count_urls(self) -> int:
        """Return the number of stored records."""
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM urls").fetchone()[0]

    def increment_clicks(self, code: str) -> None:
        """Add one to the click counter of code, raising NotFoundError if missing."""
        with self._lock:
            cursor = self._conn.execute(
                "UPDATE urls SET click_count = click_count + 1 WHERE short_code = ?", (code,)
            )
        if cursor.rowcount == 0:
            raise NotFoundError(f'increment clicks "{code}": not found')

    def delete_expired(self, batch_size: int) -> int:
        """Delete up to batch_size expired records and return how many went."""
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM urls WHERE id IN (SELECT id FROM urls "
                "WHERE expires_at IS NOT NULL AND expires_at < datetime('now') LIMIT ?)",
                (batch_size,),
            )
        return cursor.rowcount

    def get_counter(self) -> int:
        """Return the current value of the global id counter."""
        with self._lock:
            return self._conn.execute("SELECT value FROM counter WHERE id = 1").fetchone()[0]

    def increment_counter(self) -> int:
        """Increment the global id counter and return its new value."""
        with self._transaction() as conn:
            conn.execute("UPDATE counter SET value = value + 1 WHERE id = 1")
            return conn.execute("SELECT value FROM counter WHERE id = 1").fetchone()[0]

    def update_expiry(self, code: str, expires_at: datetime | None) -> URL:
        """Set or clear the expiry of code, raising NotFoundError if missing."""
        expires = format_time(expires_at) if expires_at is not None else None
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE urls SET expires_at = ? WHERE short_code = ?", (expires, code)
            )
            row = self._select_one(conn, "short_code = ?", code) if cursor.rowcount else None
        if row is None:
            raise NotFoundError(f'update expiry "{code}": not found')
        return _to_url(row)


class _StopSignal(Protocol):
    def wait(self, timeout: float | None = None) -> bool: ...


def run_cleanup_job(
    store: Storage, stop_event: _StopSignal, interval: float = CLEANUP_INTERVAL
) -> int:
    """Delete expired URLs every interval seconds until stop_event is set.

    Returns the total number of records deleted.
    """
    total = 0
    while not stop_event.wait(interval):
        try:
            deleted = store.delete_expired(CLEANUP_BATCH_SIZE)
        except Exception:
            logger.exception("cleanup failed")
            continue
        if deleted > 0:
            logger.info("cleanup completed: deleted %d", deleted)
            total += deleted
    logger.info("cleanup job stopped")
    return total