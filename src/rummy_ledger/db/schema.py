"""Schema creation and invariant trigger wiring for the SQLite backend.

The schema layer is isolated from repository code so schema changes are
reviewable without wading through query logic. Beyond tables and indexes it
installs three families of triggers:

- ``updated_at`` stamping, applied uniformly to every mutable table by
  :func:`install_updated_at_trigger`.
- Append-only guards on ``economy_log`` and ``game_action``.
- Immutability of recorded round results on ``game_round``.

These protect integrity for both Python repository paths and direct SQL
writes.
"""

from __future__ import annotations

import logging
import sqlite3

from rummy_ledger.db.connection import get_connection

logger = logging.getLogger(__name__)

# Table name -> primary key column, for every table whose rows may be updated.
UPDATED_AT_TABLES: dict[str, str] = {
    "user": "user_id",
    "game": "game_id",
    "game_round": "round_id",
}

APPEND_ONLY_TABLES = ("economy_log", "game_action")

TABLE_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS "user" (
        user_id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL COLLATE NOCASE UNIQUE,
        email TEXT NOT NULL COLLATE NOCASE UNIQUE,
        bio TEXT NOT NULL DEFAULT '',
        image TEXT,
        coins INTEGER NOT NULL DEFAULT 0 CHECK (typeof(coins) = 'integer'),
        password_hash TEXT NOT NULL,
        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS game (
        game_id INTEGER PRIMARY KEY AUTOINCREMENT,
        game_metadata TEXT NOT NULL CHECK (json_valid(game_metadata)),
        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS game_round (
        round_id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES "user"(user_id) ON DELETE RESTRICT,
        game_id INTEGER NOT NULL REFERENCES game(game_id) ON DELETE RESTRICT,
        points INTEGER NOT NULL,
        placing INTEGER NOT NULL CHECK (placing = -1 OR placing >= 1),
        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS game_action (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        action_id TEXT NOT NULL UNIQUE,
        user_id INTEGER NOT NULL REFERENCES "user"(user_id) ON DELETE RESTRICT,
        game_id INTEGER NOT NULL REFERENCES game(game_id) ON DELETE RESTRICT,
        action_type TEXT NOT NULL CHECK (length(trim(action_type)) > 0),
        action_metadata TEXT CHECK (action_metadata IS NULL OR json_valid(action_metadata)),
        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS economy_log (
        log_id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES "user"(user_id) ON DELETE RESTRICT,
        log_event TEXT NOT NULL CHECK (length(trim(log_event)) > 0),
        coins_change INTEGER NOT NULL,
        balance_after INTEGER NOT NULL,
        prev_checksum TEXT,
        checksum TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
)

# Every read accessor orders by the primary key within one user or game.
INDEX_STATEMENTS = (
    "CREATE INDEX IF NOT EXISTS idx_economy_log_user ON economy_log(user_id, log_id)",
    "CREATE INDEX IF NOT EXISTS idx_game_action_game ON game_action(game_id, seq)",
    "CREATE INDEX IF NOT EXISTS idx_game_action_user ON game_action(user_id, seq)",
    "CREATE INDEX IF NOT EXISTS idx_game_round_game ON game_round(game_id, round_id)",
    "CREATE INDEX IF NOT EXISTS idx_game_round_user ON game_round(user_id, round_id)",
)


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def install_updated_at_trigger(cursor: sqlite3.Cursor, table: str, pk_column: str) -> None:
    """Stamp ``updated_at`` whenever a row of ``table`` is updated.

    The trigger only fires when the statement did not set ``updated_at``
    itself, so its own ``UPDATE`` does not re-enter. SQLite leaves
    ``recursive_triggers`` off by default, which also prevents re-entry.
    """
    trigger_name = f"set_{table}_updated_at"
    cursor.execute(f"DROP TRIGGER IF EXISTS {trigger_name}")
    cursor.execute(f"""
        CREATE TRIGGER {trigger_name}
        AFTER UPDATE ON {_quote(table)}
        FOR EACH ROW
        WHEN NEW.updated_at IS OLD.updated_at
        BEGIN
            UPDATE {_quote(table)}
            SET updated_at = CURRENT_TIMESTAMP
            WHERE {pk_column} = NEW.{pk_column};
        END;
    """)


def install_append_only_triggers(cursor: sqlite3.Cursor, table: str) -> None:
    """Reject every UPDATE and DELETE against ``table``."""
    for event in ("UPDATE", "DELETE"):
        trigger_name = f"forbid_{table}_{event.lower()}"
        cursor.execute(f"DROP TRIGGER IF EXISTS {trigger_name}")
        cursor.execute(f"""
            CREATE TRIGGER {trigger_name}
            BEFORE {event} ON {_quote(table)}
            BEGIN
                SELECT RAISE(ABORT, '{table} is append-only');
            END;
        """)


def install_round_immutability_trigger(cursor: sqlite3.Cursor) -> None:
    """Freeze the recorded result columns of ``game_round``.

    Only the bookkeeping ``updated_at`` column stays writable.
    """
    cursor.execute("DROP TRIGGER IF EXISTS forbid_game_round_result_update")
    cursor.execute("""
        CREATE TRIGGER forbid_game_round_result_update
        BEFORE UPDATE OF user_id, game_id, points, placing ON game_round
        BEGIN
            SELECT RAISE(ABORT, 'game_round results are immutable');
        END;
    """)


def init_database() -> None:
    """Initialize the SQLite database schema and invariant triggers.

    Behavior:
    - Switches the database to WAL journaling so readers never block the
      single writer.
    - Creates required tables and indexes if missing.
    - (Re)installs the updated_at, append-only and immutability triggers.

    Safe to call repeatedly.
    """
    conn = get_connection()
    try:
        conn.execute("PRAGMA journal_mode = WAL")
        cursor = conn.cursor()
        for statement in TABLE_STATEMENTS:
            cursor.execute(statement)
        for statement in INDEX_STATEMENTS:
            cursor.execute(statement)

        for table, pk_column in UPDATED_AT_TABLES.items():
            install_updated_at_trigger(cursor, table, pk_column)
        for table in APPEND_ONLY_TABLES:
            install_append_only_triggers(cursor, table)
        install_round_immutability_trigger(cursor)

        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    logger.info("Database schema initialized")
