from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, ContextManager, Generator, Iterator, Optional, Sequence, Tuple

from .errors import StoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Tables:
    buckets: str = "buckets"
    entries: str = "entries"


_T = _Tables()


class Bucket:
    """
    A named collection of byte keys inside one transaction.

    Keys are compared as unsigned byte strings, so iteration yields them in
    lexicographic order. Each bucket carries its own persistent sequence.
    """

    def __init__(self, tx: "Transaction", name: str) -> None:
        self._tx = tx
        self.name = name

    def get(self, key: bytes) -> Optional[bytes]:
        row = self._tx._fetchone(
            f"SELECT value FROM {_T.entries} WHERE bucket = ? AND key = ?", (self.name, key)
        )
        return None if row is None else bytes(row[0])

    def put(self, key: bytes, value: bytes) -> None:
        self._tx._require_writable()
        if not key:
            raise StoreError("key required")
        self._tx._execute(
            f"INSERT OR REPLACE INTO {_T.entries} (bucket, key, value) VALUES (?, ?, ?)",
            (self.name, key, value),
        )

    def delete(self, key: bytes) -> None:
        """Remove a key. Removing an absent key does nothing."""
        self._tx._require_writable()
        self._tx._execute(
            f"DELETE FROM {_T.entries} WHERE bucket = ? AND key = ?", (self.name, key)
        )

    def sequence(self) -> int:
        row = self._tx._fetchone(f"SELECT sequence FROM {_T.buckets} WHERE name = ?", (self.name,))
        if row is None:
            raise StoreError(f"bucket {self.name!r} no longer exists")
        return int(row[0])

    def next_sequence(self) -> int:
        """
        Increment and return the bucket sequence.

        The increment is part of the surrounding write transaction: it is
        discarded if the transaction rolls back.
        """
        self._tx._require_writable()
        self._tx._execute(
            f"UPDATE {_T.buckets} SET sequence = sequence + 1 WHERE name = ?", (self.name,)
        )
        return self.sequence()

    def __len__(self) -> int:
        row = self._tx._fetchone(f"SELECT COUNT(*) FROM {_T.entries} WHERE bucket = ?", (self.name,))
        return int(row[0]) if row else 0

    def __iter__(self) -> Iterator[Tuple[bytes, bytes]]:
        rows = self._tx._fetchall(
            f"SELECT key, value FROM {_T.entries} WHERE bucket = ? ORDER BY key ASC", (self.name,)
        )
        for key, value in rows:
            yield bytes(key), bytes(value)


class Transaction:
    """
    A read-only or read/write transaction handed out by `Database.view` and
    `Database.update`. It is only usable inside its `with` block.
    """

    def __init__(self, conn: sqlite3.Connection, writable: bool) -> None:
        self._conn = conn
        self.writable = writable
        self.closed = False

    def bucket(self, name: str) -> Optional[Bucket]:
        """Return the named bucket, or None if it does not exist."""
        row = self._fetchone(f"SELECT 1 FROM {_T.buckets} WHERE name = ?", (name,))
        return None if row is None else Bucket(self, name)

    def create_bucket_if_not_exists(self, name: str) -> Bucket:
        self._require_writable()
        if not name:
            raise StoreError("bucket name required")
        self._execute(f"INSERT OR IGNORE INTO {_T.buckets} (name, sequence) VALUES (?, 0)", (name,))
        return Bucket(self, name)

    def _require_writable(self) -> None:
        if not self.writable:
            raise StoreError("transaction is read-only")

    def _cursor(self, sql: str, params: Sequence[Any]) -> sqlite3.Cursor:
        if self.closed:
            raise StoreError("transaction is closed")
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        self._cursor(sql, params)

    def _fetchone(self, sql: str, params: Sequence[Any] = ()) -> Optional[tuple]:
        cur = self._cursor(sql, params)
        try:
            return cur.fetchone()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    def _fetchall(self, sql: str, params: Sequence[Any] = ()) -> list:
        cur = self._cursor(sql, params)
        try:
            return cur.fetchall()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e


class Database:
    """
    Embedded bucketed key-value store kept in a single SQLite file.

    Writers are serialized by `BEGIN IMMEDIATE`; readers run in WAL mode and
    see a consistent snapshot that concurrent writers do not disturb.
    """

    def __init__(self, path: str, timeout: float = 5.0) -> None:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        except OSError as e:
            raise StoreError(f"cannot open {path}: {e}") from e
        self.path = path
        self.timeout = timeout
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self.path, timeout=self.timeout, isolation_level=None)
        except sqlite3.Error as e:
            raise StoreError(f"cannot open {self.path}: {e}") from e
        try:
            yield conn
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            try:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {_T.buckets} (
                        name TEXT PRIMARY KEY,
                        sequence INTEGER NOT NULL DEFAULT 0
                    )
                    """
                )
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {_T.entries} (
                        bucket TEXT NOT NULL REFERENCES {_T.buckets}(name),
                        key BLOB NOT NULL,
                        value BLOB NOT NULL,
                        PRIMARY KEY (bucket, key)
                    ) WITHOUT ROWID
                    """
                )
            except sqlite3.Error as e:
                raise StoreError(f"cannot initialize {self.path}: {e}") from e
        logger.debug("opened database %s", self.path)

    @contextmanager
    def _transaction(self, writable: bool) -> Generator[Transaction, None, None]:
        with self._conn() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE" if writable else "BEGIN")
            except sqlite3.Error as e:
                raise StoreError(f"cannot begin transaction: {e}") from e
            tx = Transaction(conn, writable)
            try:
                yield tx
            except BaseException:
                tx.closed = True
                conn.rollback()
                logger.debug("rolled back %s transaction", "write" if writable else "read")
                raise
            tx.closed = True
            if not writable:
                conn.rollback()
                return
            try:
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreError(f"commit failed: {e}") from e

    # PUBLIC_INTERFACE
    def update(self) -> ContextManager[Transaction]:
        """
        Open a read/write transaction.

        Usage:
            with db.update() as tx:
                tx.create_bucket_if_not_exists("todos").put(key, value)

        The transaction commits when the block exits normally and rolls back
        when it raises; the exception propagates to the caller.
        """
        return self._transaction(writable=True)

    # PUBLIC_INTERFACE
    def view(self) -> ContextManager[Transaction]:
        """Open a read-only snapshot transaction."""
        return self._transaction(writable=False)
