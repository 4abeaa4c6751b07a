"""Game action audit trail for the SQLite backend.

The trail exists to reconstruct what happened in a game, and in what order,
for dispute resolution, anti-cheat investigation and debugging. It is
append-only: this module exposes no update or delete, and the schema rejects
both at the SQL level.

Ordering uses the ``seq`` column (SQLite ``AUTOINCREMENT``), which never
reuses or decreases values, so insertion order is exactly ``seq`` order. The
public ``action_id`` is a UUID so identifiers can be minted without a
round-trip and shared outside the database.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from rummy_ledger.db.connection import connection_scope, transaction_scope
from rummy_ledger.db.errors import raise_read_error, raise_write_error
from rummy_ledger.db.games_repo import ensure_game
from rummy_ledger.db.paging import keyset_clause, resolve_page_size
from rummy_ledger.db.types import GameAction
from rummy_ledger.db.users_repo import ensure_user
from rummy_ledger.models import GameActionRequest, validate_request

logger = logging.getLogger(__name__)

_ACTION_COLUMNS = (
    "action_id, seq, user_id, game_id, action_type, action_metadata, created_at"
)


def _row_to_action(row: tuple) -> GameAction:
    return GameAction(
        action_id=row[0],
        seq=int(row[1]),
        user_id=int(row[2]),
        game_id=int(row[3]),
        action_type=row[4],
        action_metadata=json.loads(row[5]) if row[5] is not None else None,
        created_at=row[6],
    )


def record_action(
    user_id: int,
    game_id: int,
    action_type: str,
    metadata: Any = None,
) -> str:
    """Append one action to the audit trail and return its ``action_id``.

    Args:
        user_id: Acting user.
        game_id: Game the action happened in.
        action_type: Non-empty type tag chosen by the game-logic layer.
        metadata: Optional JSON-serialisable payload.

    Raises:
        InvalidArgumentError: Empty ``action_type`` or non-JSON metadata.
        RecordNotFoundError: ``user_id`` or ``game_id`` does not exist.
        DatabaseConflictError: The write lock could not be acquired in time.
        DatabaseWriteError: Any other storage failure.
    """
    request = validate_request(
        GameActionRequest,
        user_id=user_id,
        game_id=game_id,
        action_type=action_type,
        action_metadata=metadata,
    )
    payload = (
        json.dumps(request.action_metadata, sort_keys=True)
        if request.action_metadata is not None
        else None
    )
    action_id = uuid.uuid4().hex

    try:
        with transaction_scope() as cursor:
            ensure_user(cursor, request.user_id)
            ensure_game(cursor, request.game_id)
            cursor.execute(
                """
                INSERT INTO game_action
                    (action_id, user_id, game_id, action_type, action_metadata)
                VALUES (?, ?, ?, ?, ?)
                """,
                (action_id, request.user_id, request.game_id, request.action_type, payload),
            )
    except Exception as exc:
        raise_write_error(
            "actions.record_action",
            exc,
            details=f"user_id={user_id} game_id={game_id} action_type={action_type!r}",
        )

    logger.debug(
        "actions: appended %r action %s game=%s user=%s",
        request.action_type,
        action_id,
        request.game_id,
        request.user_id,
    )
    return action_id


def get_action(action_id: str) -> GameAction | None:
    """Return one action by its ``action_id`` or ``None`` if missing."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_ACTION_COLUMNS} FROM game_action WHERE action_id = ?",  # nosec B608
                (action_id,),
            )
            row = cursor.fetchone()
        return _row_to_action(row) if row else None
    except Exception as exc:
        raise_read_error("actions.get_action", exc, details=f"action_id={action_id!r}")


def _list_actions(
    operation: str,
    column: str,
    value: int,
    after_seq: int | None,
    limit: int | None,
) -> list[GameAction]:
    page_size = resolve_page_size(limit)
    keyset, keyset_params = keyset_clause("seq", after_seq)
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_ACTION_COLUMNS}
                FROM game_action
                WHERE {column} = ?{keyset}
                ORDER BY seq
                LIMIT ?
                """,  # nosec B608
                (value, *keyset_params, page_size),
            )
            rows = cursor.fetchall()
        return [_row_to_action(row) for row in rows]
    except Exception as exc:
        raise_read_error(operation, exc, details=f"{column}={value}")


def list_actions_for_game(
    game_id: int,
    *,
    after_seq: int | None = None,
    limit: int | None = None,
) -> list[GameAction]:
    """Return a game's actions in insertion order, resuming after ``after_seq``."""
    return _list_actions("actions.list_actions_for_game", "game_id", game_id, after_seq, limit)


def list_actions_for_user(
    user_id: int,
    *,
    after_seq: int | None = None,
    limit: int | None = None,
) -> list[GameAction]:
    """Return a user's actions in insertion order, resuming after ``after_seq``."""
    return _list_actions("actions.list_actions_for_user", "user_id", user_id, after_seq, limit)
