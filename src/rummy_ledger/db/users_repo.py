"""User account repository operations for the SQLite backend.

Account management (registration, credentials, profile edits) belongs to an
external layer. This module only provides what the ledger core needs from it:
row creation, lookup and existence checks. There is no function
here that writes ``coins``; the balance authority in
:mod:`rummy_ledger.ledger.authority` is the only code path that does.
"""

from __future__ import annotations

import sqlite3

from rummy_ledger.db.connection import connection_scope
from rummy_ledger.db.errors import RecordNotFoundError, raise_read_error, raise_write_error
from rummy_ledger.db.types import User

_USER_COLUMNS = "user_id, username, email, bio, image, coins, created_at, updated_at"


def _row_to_user(row: tuple) -> User:
    return User(
        user_id=int(row[0]),
        username=row[1],
        email=row[2],
        bio=row[3],
        image=row[4],
        coins=int(row[5]),
        created_at=row[6],
        updated_at=row[7],
    )


def create_user(
    username: str,
    email: str,
    *,
    password_hash: str = "",
    bio: str = "",
    image: str | None = None,
) -> int | None:
    """Create a user row with a zero balance.

    Args:
        username: Unique (case-insensitive) username.
        email: Unique (case-insensitive) email.
        password_hash: Opaque credential material produced by the auth layer.
        bio: Optional profile text.
        image: Optional avatar reference.

    Returns:
        The new ``user_id``, or ``None`` when the username or email is taken.
    """
    try:
        with connection_scope(write=True) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO "user" (username, email, bio, image, password_hash)
                VALUES (?, ?, ?, ?, ?)
                """,
                (username, email, bio, image, password_hash),
            )
            user_id = cursor.lastrowid
        if user_id is None:
            raise ValueError("Failed to create user.")
        return int(user_id)
    except sqlite3.IntegrityError:
        return None
    except Exception as exc:
        raise_write_error("users.create_user", exc, details=f"username={username!r}")


def get_user(user_id: int) -> User | None:
    """Return the user row for ``user_id`` or ``None`` if missing."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {_USER_COLUMNS} FROM "user" WHERE user_id = ?', (user_id,))
            row = cursor.fetchone()
        return _row_to_user(row) if row else None
    except Exception as exc:
        raise_read_error("users.get_user", exc, details=f"user_id={user_id}")


def get_user_by_username(username: str) -> User | None:
    """Return the user row for ``username`` (case-insensitive) or ``None``."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {_USER_COLUMNS} FROM "user" WHERE username = ?', (username,))
            row = cursor.fetchone()
        return _row_to_user(row) if row else None
    except Exception as exc:
        raise_read_error("users.get_user_by_username", exc, details=f"username={username!r}")


def user_exists(user_id: int) -> bool:
    """Return ``True`` when a user row exists."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT 1 FROM "user" WHERE user_id = ?', (user_id,))
            return cursor.fetchone() is not None
    except Exception as exc:
        raise_read_error("users.user_exists", exc, details=f"user_id={user_id}")


def list_user_ids() -> list[int]:
    """Return every user id in ascending order."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT user_id FROM "user" ORDER BY user_id')
            return [int(row[0]) for row in cursor.fetchall()]
    except Exception as exc:
        raise_read_error("users.list_user_ids", exc)


def ensure_user(cursor: sqlite3.Cursor, user_id: int) -> None:
    """Raise :class:`RecordNotFoundError` unless ``user_id`` exists.

    Runs on the caller's cursor so the check shares its transaction.
    """
    cursor.execute('SELECT 1 FROM "user" WHERE user_id = ?', (user_id,))
    if cursor.fetchone() is None:
        raise RecordNotFoundError("user", user_id)
