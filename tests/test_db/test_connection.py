"""Tests for ``rummy_ledger.db.connection`` transaction shapes."""

from __future__ import annotations

import sqlite3

import pytest

from rummy_ledger.db import connection as db_connection
from rummy_ledger.db.connection import (
    connection_scope,
    is_lock_contention,
    transaction_scope,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "exc, expected",
    [
        (sqlite3.OperationalError("database is locked"), True),
        (sqlite3.OperationalError("database is busy"), True),
        (sqlite3.OperationalError("no such table: user"), False),
        (sqlite3.IntegrityError("database is locked"), False),
        (RuntimeError("database is locked"), False),
    ],
)
def test_is_lock_contention(exc, expected):
    assert is_lock_contention(exc) is expected


@pytest.mark.db
def test_connection_applies_pragmas(test_db):
    from rummy_ledger.config import config

    with connection_scope() as conn:
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        busy = conn.execute("PRAGMA busy_timeout").fetchone()[0]
    assert busy == config.database.busy_timeout_ms


@pytest.mark.db
def test_transaction_scope_commits(test_db):
    with transaction_scope() as cursor:
        assert cursor.connection.in_transaction
        cursor.execute("INSERT INTO game (game_metadata) VALUES ('{}')")

    with connection_scope() as conn:
        assert conn.execute("SELECT COUNT(*) FROM game").fetchone()[0] == 1


@pytest.mark.db
def test_transaction_scope_rolls_back_on_error(test_db):
    with pytest.raises(RuntimeError, match="boom"):
        with transaction_scope() as cursor:
            cursor.execute("INSERT INTO game (game_metadata) VALUES ('{}')")
            raise RuntimeError("boom")

    with connection_scope() as conn:
        assert conn.execute("SELECT COUNT(*) FROM game").fetchone()[0] == 0


@pytest.mark.db
def test_write_lock_held_by_other_connection_reports_locked(test_db, monkeypatch):
    from rummy_ledger.config import config

    monkeypatch.setattr(config.database, "busy_timeout_ms", 50)
    holder = db_connection.get_connection()
    holder.execute("BEGIN IMMEDIATE")
    try:
        with pytest.raises(sqlite3.OperationalError) as excinfo:
            with transaction_scope():
                pass
        assert is_lock_contention(excinfo.value)
    finally:
        holder.rollback()
        holder.close()
