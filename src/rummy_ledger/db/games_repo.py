"""Game repository operations for the SQLite backend.

A game row is an identifier plus opaque variant/settings metadata. Only the
metadata may change after creation; ``updated_at`` is stamped by the schema
trigger, not here.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any

from rummy_ledger.db.connection import connection_scope
from rummy_ledger.db.errors import RecordNotFoundError, raise_read_error, raise_write_error
from rummy_ledger.db.types import Game
from rummy_ledger.models import GameMetadataRequest, validate_request


def _row_to_game(row: tuple) -> Game:
    return Game(
        game_id=int(row[0]),
        game_metadata=json.loads(row[1]),
        created_at=row[2],
        updated_at=row[3],
    )


def create_game(metadata: dict[str, Any]) -> int:
    """Create a game row and return its ``game_id``.

    Raises:
        InvalidArgumentError: If ``metadata`` is not a JSON object.
    """
    request = validate_request(GameMetadataRequest, game_metadata=metadata)
    payload = json.dumps(request.game_metadata, sort_keys=True)
    try:
        with connection_scope(write=True) as conn:
            cursor = conn.cursor()
            cursor.execute("INSERT INTO game (game_metadata) VALUES (?)", (payload,))
            game_id = cursor.lastrowid
        if game_id is None:
            raise ValueError("Failed to create game.")
        return int(game_id)
    except Exception as exc:
        raise_write_error("games.create_game", exc)


def get_game(game_id: int) -> Game | None:
    """Return the game row or ``None`` if missing."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT game_id, game_metadata, created_at, updated_at
                FROM game
                WHERE game_id = ?
                """,
                (game_id,),
            )
            row = cursor.fetchone()
        return _row_to_game(row) if row else None
    except Exception as exc:
        raise_read_error("games.get_game", exc, details=f"game_id={game_id}")


def game_exists(game_id: int) -> bool:
    """Return ``True`` when a game row exists."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1 FROM game WHERE game_id = ?", (game_id,))
            return cursor.fetchone() is not None
    except Exception as exc:
        raise_read_error("games.game_exists", exc, details=f"game_id={game_id}")


def update_game_metadata(game_id: int, metadata: dict[str, Any]) -> bool:
    """Replace a game's metadata.

    Returns:
        ``True`` when a row was updated, ``False`` when the game is missing.
    """
    request = validate_request(GameMetadataRequest, game_metadata=metadata)
    payload = json.dumps(request.game_metadata, sort_keys=True)
    try:
        with connection_scope(write=True) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE game SET game_metadata = ? WHERE game_id = ?",
                (payload, game_id),
            )
            return cursor.rowcount > 0
    except Exception as exc:
        raise_write_error("games.update_game_metadata", exc, details=f"game_id={game_id}")


def ensure_game(cursor: sqlite3.Cursor, game_id: int) -> None:
    """Raise :class:`RecordNotFoundError` unless ``game_id`` exists.

    Runs on the caller's cursor so the check shares its transaction.
    """
    cursor.execute("SELECT 1 FROM game WHERE game_id = ?", (game_id,))
    if cursor.fetchone() is None:
        raise RecordNotFoundError("game", game_id)
