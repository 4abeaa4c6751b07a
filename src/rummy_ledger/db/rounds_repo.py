"""Round result repository operations for the SQLite backend.

A round row records one user's outcome in one game instance. Rows are never
edited through this module: a correction is a new, compensating record. The
schema backs this with a trigger that rejects updates of the result columns
and a ``CHECK`` constraint on the placing domain.
"""

from __future__ import annotations

import logging

from rummy_ledger.db.connection import connection_scope, transaction_scope
from rummy_ledger.db.errors import raise_read_error, raise_write_error
from rummy_ledger.db.games_repo import ensure_game
from rummy_ledger.db.paging import keyset_clause, resolve_page_size
from rummy_ledger.db.types import GameRound
from rummy_ledger.db.users_repo import ensure_user
from rummy_ledger.models import RoundResultRequest, validate_request

logger = logging.getLogger(__name__)

_ROUND_COLUMNS = "round_id, user_id, game_id, points, placing, created_at, updated_at"


def _row_to_round(row: tuple) -> GameRound:
    return GameRound(
        round_id=int(row[0]),
        user_id=int(row[1]),
        game_id=int(row[2]),
        points=int(row[3]),
        placing=int(row[4]),
        created_at=row[5],
        updated_at=row[6],
    )


def record_round(user_id: int, game_id: int, points: int, placing: int) -> int:
    """Record a user's result for a game and return the new ``round_id``.

    Args:
        user_id: Player who took part.
        game_id: Game instance the round belongs to.
        points: Signed score.
        placing: ``-1`` for did-not-finish, otherwise a rank >= 1.

    Raises:
        InvalidArgumentError: ``placing`` outside its domain or malformed ids.
        RecordNotFoundError: ``user_id`` or ``game_id`` does not exist.
        DatabaseConflictError: The write lock could not be acquired in time.
        DatabaseWriteError: Any other storage failure.
    """
    request = validate_request(
        RoundResultRequest,
        user_id=user_id,
        game_id=game_id,
        points=points,
        placing=placing,
    )
    try:
        with transaction_scope() as cursor:
            ensure_user(cursor, request.user_id)
            ensure_game(cursor, request.game_id)
            cursor.execute(
                """
                INSERT INTO game_round (user_id, game_id, points, placing)
                VALUES (?, ?, ?, ?)
                """,
                (request.user_id, request.game_id, request.points, request.placing),
            )
            round_id = cursor.lastrowid
            if round_id is None:
                raise ValueError("Failed to create game_round.")
    except Exception as exc:
        raise_write_error(
            "rounds.record_round",
            exc,
            details=f"user_id={user_id} game_id={game_id}",
        )

    logger.debug(
        "rounds: recorded round %s user=%s game=%s placing=%s",
        round_id,
        request.user_id,
        request.game_id,
        request.placing,
    )
    return int(round_id)


def get_round(round_id: int) -> GameRound | None:
    """Return a round row or ``None`` if missing."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_ROUND_COLUMNS} FROM game_round WHERE round_id = ?",  # nosec B608
                (round_id,),
            )
            row = cursor.fetchone()
        return _row_to_round(row) if row else None
    except Exception as exc:
        raise_read_error("rounds.get_round", exc, details=f"round_id={round_id}")


def list_rounds_for_game(
    game_id: int,
    *,
    after_id: int | None = None,
    limit: int | None = None,
) -> list[GameRound]:
    """Return a game's rounds in recording order, resuming after ``after_id``."""
    page_size = resolve_page_size(limit)
    keyset, keyset_params = keyset_clause("round_id", after_id)
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_ROUND_COLUMNS}
                FROM game_round
                WHERE game_id = ?{keyset}
                ORDER BY round_id
                LIMIT ?
                """,  # nosec B608
                (game_id, *keyset_params, page_size),
            )
            rows = cursor.fetchall()
        return [_row_to_round(row) for row in rows]
    except Exception as exc:
        raise_read_error("rounds.list_rounds_for_game", exc, details=f"game_id={game_id}")


def list_rounds_for_user(
    user_id: int,
    *,
    after_id: int | None = None,
    limit: int | None = None,
) -> list[GameRound]:
    """Return a user's rounds in recording order, resuming after ``after_id``."""
    page_size = resolve_page_size(limit)
    keyset, keyset_params = keyset_clause("round_id", after_id)
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_ROUND_COLUMNS}
                FROM game_round
                WHERE user_id = ?{keyset}
                ORDER BY round_id
                LIMIT ?
                """,  # nosec B608
                (user_id, *keyset_params, page_size),
            )
            rows = cursor.fetchall()
        return [_row_to_round(row) for row in rows]
    except Exception as exc:
        raise_read_error("rounds.list_rounds_for_user", exc, details=f"user_id={user_id}")
