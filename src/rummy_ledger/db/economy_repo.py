"""Economy log repository: the ledger store behind every coin balance.

The economy log is the authoritative record of balance changes. For every
user, ``"user".coins`` must equal the sum of that user's ``coins_change``
values at any quiescent point.

Write surface
-------------
:func:`append_entry` is the only mutation, and it runs on the cursor of a
write transaction the caller already holds. The balance authority is the
only caller: it updates the balance and appends the entry in one transaction.
There is no update or delete, and the schema rejects both.

Read surface
------------
:func:`list_for_user` and :func:`iter_for_user` return entries in ``log_id``
order. Writers are serialised by SQLite's write lock, so ``log_id`` order is
commit order and therefore creation order.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from datetime import UTC, datetime

from rummy_ledger.db.connection import connection_scope
from rummy_ledger.db.errors import raise_read_error
from rummy_ledger.db.paging import keyset_clause, resolve_page_size
from rummy_ledger.db.types import EconomyLogEntry
from rummy_ledger.ledger.checksum import compute_checksum, entry_body

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = (
    "log_id, user_id, log_event, coins_change, balance_after, "
    "prev_checksum, checksum, created_at"
)


def _row_to_entry(row: tuple) -> EconomyLogEntry:
    return EconomyLogEntry(
        log_id=int(row[0]),
        user_id=int(row[1]),
        log_event=row[2],
        coins_change=int(row[3]),
        balance_after=int(row[4]),
        prev_checksum=row[5],
        checksum=row[6],
        created_at=row[7],
    )


def append_entry(
    cursor: sqlite3.Cursor,
    *,
    user_id: int,
    reason: str,
    coins_change: int,
    balance_after: int,
) -> int:
    """Append one entry inside the caller's open write transaction.

    The previous checksum is read on the same cursor, so under the
    transaction's write lock no other entry for the user can slip in between.

    Returns:
        The new entry's ``log_id``.

    Raises:
        RuntimeError: If the cursor's connection has no open transaction.
    """
    if not cursor.connection.in_transaction:
        raise RuntimeError("append_entry must run inside an open write transaction")

    cursor.execute(
        """
        SELECT checksum
        FROM economy_log
        WHERE user_id = ?
        ORDER BY log_id DESC
        LIMIT 1
        """,
        (user_id,),
    )
    row = cursor.fetchone()
    prev_checksum = row[0] if row else None

    created_at = datetime.now(UTC).isoformat()
    checksum = compute_checksum(
        entry_body(
            user_id=user_id,
            log_event=reason,
            coins_change=coins_change,
            balance_after=balance_after,
            created_at=created_at,
            prev_checksum=prev_checksum,
        )
    )

    cursor.execute(
        """
        INSERT INTO economy_log
            (user_id, log_event, coins_change, balance_after,
             prev_checksum, checksum, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (user_id, reason, coins_change, balance_after, prev_checksum, checksum, created_at),
    )
    log_id = cursor.lastrowid
    if log_id is None:
        raise ValueError("Failed to create economy_log entry.")
    return int(log_id)


def get_entry(log_id: int) -> EconomyLogEntry | None:
    """Return one entry by ``log_id`` or ``None`` if missing."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM economy_log WHERE log_id = ?",  # nosec B608
                (log_id,),
            )
            row = cursor.fetchone()
        return _row_to_entry(row) if row else None
    except Exception as exc:
        raise_read_error("economy.get_entry", exc, details=f"log_id={log_id}")


def list_for_user(
    user_id: int,
    *,
    after_id: int | None = None,
    limit: int | None = None,
) -> list[EconomyLogEntry]:
    """Return a user's entries in creation order, resuming after ``after_id``.

    Pass the ``log_id`` of the last entry of one page as ``after_id`` to fetch
    the next page. An empty list means the reader is caught up.
    """
    page_size = resolve_page_size(limit)
    keyset, keyset_params = keyset_clause("log_id", after_id)
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM economy_log
                WHERE user_id = ?{keyset}
                ORDER BY log_id
                LIMIT ?
                """,  # nosec B608
                (user_id, *keyset_params, page_size),
            )
            rows = cursor.fetchall()
        return [_row_to_entry(row) for row in rows]
    except Exception as exc:
        raise_read_error("economy.list_for_user", exc, details=f"user_id={user_id}")


def iter_for_user(user_id: int, *, page_size: int | None = None) -> Iterator[EconomyLogEntry]:
    """Yield every entry for ``user_id`` in creation order, page by page."""
    after_id: int | None = None
    while True:
        page = list_for_user(user_id, after_id=after_id, limit=page_size)
        if not page:
            return
        yield from page
        after_id = page[-1].log_id


def sum_for_user(user_id: int) -> int:
    """Return the sum of ``coins_change`` over a user's entries (0 if none)."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COALESCE(SUM(coins_change), 0) FROM economy_log WHERE user_id = ?",
                (user_id,),
            )
            (total,) = cursor.fetchone()
        return int(total)
    except Exception as exc:
        raise_read_error("economy.sum_for_user", exc, details=f"user_id={user_id}")


def count_for_user(user_id: int) -> int:
    """Return how many entries a user has."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM economy_log WHERE user_id = ?", (user_id,))
            (count,) = cursor.fetchone()
        return int(count)
    except Exception as exc:
        raise_read_error("economy.count_for_user", exc, details=f"user_id={user_id}")


def balance_and_ledger_sum(user_id: int) -> tuple[int, int] | None:
    """Return ``(coins, ledger_sum)`` for one user from a single snapshot.

    Both values come from one statement, so a concurrent writer can never be
    observed half-applied. Returns ``None`` when the user does not exist.
    """
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT u.coins,
                       COALESCE((SELECT SUM(e.coins_change)
                                 FROM economy_log e
                                 WHERE e.user_id = u.user_id), 0)
                FROM "user" u
                WHERE u.user_id = ?
                """,
                (user_id,),
            )
            row = cursor.fetchone()
        return (int(row[0]), int(row[1])) if row else None
    except Exception as exc:
        raise_read_error("economy.balance_and_ledger_sum", exc, details=f"user_id={user_id}")


def balances_and_ledger_sums() -> list[tuple[int, int, int]]:
    """Return ``(user_id, coins, ledger_sum)`` for every user from one snapshot."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT u.user_id,
                       u.coins,
                       COALESCE(SUM(e.coins_change), 0)
                FROM "user" u
                LEFT JOIN economy_log e ON e.user_id = u.user_id
                GROUP BY u.user_id, u.coins
                ORDER BY u.user_id
                """)
            rows = cursor.fetchall()
        return [(int(row[0]), int(row[1]), int(row[2])) for row in rows]
    except Exception as exc:
        raise_read_error("economy.balances_and_ledger_sums", exc)
