"""SQLite connection primitives for the ledger DB layer.

This module owns connection creation, low-level SQLite runtime pragmas and
the two transaction shapes every repository uses, so repository code can stay
focused on queries and transaction intent.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


def get_db_path() -> Path:
    """Resolve the absolute SQLite database path from runtime configuration."""
    from rummy_ledger.config import config

    return config.database.absolute_path


def configure_connection(connection: sqlite3.Connection) -> sqlite3.Connection:
    """Apply connection-level SQLite pragmas required by the application.

    Notes:
        - ``foreign_keys=ON`` is required because SQLite does not enforce
          foreign-key constraints by default.
        - ``busy_timeout`` bounds how long a writer waits for the database
          write lock before SQLite reports ``database is locked``.
    """
    from rummy_ledger.config import config

    connection.execute("PRAGMA foreign_keys = ON")
    connection.execute(f"PRAGMA busy_timeout = {int(config.database.busy_timeout_ms)}")
    return connection


def get_connection() -> sqlite3.Connection:
    """Create and configure a new SQLite connection."""
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(str(db_path))
    return configure_connection(connection)


def is_lock_contention(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` is SQLite reporting a held write lock."""
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    message = str(exc).lower()
    return "database is locked" in message or "database is busy" in message


@contextmanager
def connection_scope(*, write: bool = False) -> Iterator[sqlite3.Connection]:
    """Yield a configured connection with guaranteed cleanup semantics.

    Args:
        write: When True, commit on success and rollback on exceptions.

    Behavior:
        - Always closes the connection in ``finally``.
        - For write scopes, commits at the end of a successful block.
        - For write scopes, attempts rollback before re-raising failures.
    """
    connection = get_connection()
    try:
        yield connection
        if write:
            connection.commit()
    except BaseException:
        if write:
            try:
                connection.rollback()
            except sqlite3.Error:
                pass
        raise
    finally:
        connection.close()


@contextmanager
def transaction_scope() -> Iterator[sqlite3.Cursor]:
    """Yield a cursor inside a ``BEGIN IMMEDIATE`` write transaction.

    ``IMMEDIATE`` takes the database write lock up front, so every statement
    in the block sees a state no concurrent writer can change before commit.
    Any exception, including ``KeyboardInterrupt``, rolls the whole block
    back.
    """
    connection = get_connection()
    try:
        cursor = connection.cursor()
        cursor.execute("BEGIN IMMEDIATE")
        yield cursor
        connection.commit()
    except BaseException:
        try:
            connection.rollback()
        except sqlite3.Error:
            pass
        raise
    finally:
        connection.close()
