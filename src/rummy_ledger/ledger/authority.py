"""Balance authority: the single gateway for coin balance changes.

Every change to ``"user".coins`` goes through :func:`apply_coin_delta`. No
other module in the package issues a write to that column, so the invariant

    coins == sum(coins_change over the user's economy log entries)

can only be broken from outside the package, and
:mod:`rummy_ledger.ledger.reconcile` detects it when it is.

Transaction shape
-----------------
One ``BEGIN IMMEDIATE`` transaction holds, in order:

1. ``UPDATE "user" SET coins = coins + ? ... RETURNING coins``: the new
   balance is computed by SQLite from the stored value in the same statement
   that writes it, so there is no read-then-write window to lose an update in.
2. The economy log append, on the same cursor.

Both commit together or neither does. Concurrent callers queue on SQLite's
write lock for up to ``database.busy_timeout_ms``; a caller still waiting
after that gets :exc:`DatabaseConflictError` with nothing applied.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from rummy_ledger.db import economy_repo
from rummy_ledger.db.connection import connection_scope, transaction_scope
from rummy_ledger.db.errors import (
    DatabaseConflictError,
    InvalidArgumentError,
    RecordNotFoundError,
    raise_read_error,
    raise_write_error,
)
from rummy_ledger.db.users_repo import ensure_user
from rummy_ledger.models import INT64_MAX, INT64_MIN, CoinDeltaRequest, validate_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CoinDeltaResult:
    """Outcome of a committed balance change.

    Attributes:
        new_balance: The user's balance after the change.
        entry_id: ``log_id`` of the economy log entry recording it.
    """

    new_balance: int
    entry_id: int


def apply_coin_delta(user_id: int, delta: int, reason: str) -> CoinDeltaResult:
    """Apply a signed coin change to a user and record it in the economy log.

    A zero ``delta`` is legal and still produces an entry, which documents a
    reason without changing the balance.

    Args:
        user_id: User whose balance changes.
        delta: Signed change in coins.
        reason: Non-empty reason stored with the entry.

    Returns:
        The committed balance and the new entry's id.

    Raises:
        InvalidArgumentError: Empty reason, malformed ids, or a balance that
            would leave the signed 64-bit range.
        RecordNotFoundError: ``user_id`` does not exist.
        DatabaseConflictError: The write lock was not acquired within the busy
            timeout. Nothing was applied; retry the whole call.
        DatabaseWriteError: Any other storage failure. Nothing was applied.

    Example::

        result = apply_coin_delta(user_id, +50, "round win")
        logger.info("balance now %s (entry %s)", result.new_balance, result.entry_id)
    """
    request = validate_request(CoinDeltaRequest, user_id=user_id, delta=delta, reason=reason)

    try:
        with transaction_scope() as cursor:
            cursor.execute(
                """
                UPDATE "user"
                SET coins = coins + :delta
                WHERE user_id = :user_id
                  AND (:delta <= 0 OR coins <= :int64_max - :delta)
                  AND (:delta >= 0 OR coins >= :int64_min - :delta)
                RETURNING coins
                """,
                {
                    "delta": request.delta,
                    "user_id": request.user_id,
                    "int64_max": INT64_MAX,
                    "int64_min": INT64_MIN,
                },
            )
            row = cursor.fetchone()
            if row is None:
                ensure_user(cursor, request.user_id)
                raise InvalidArgumentError(
                    f"balance of user {request.user_id} would overflow with delta {request.delta}"
                )
            new_balance = int(row[0])

            entry_id = economy_repo.append_entry(
                cursor,
                user_id=request.user_id,
                reason=request.reason,
                coins_change=request.delta,
                balance_after=new_balance,
            )
    except Exception as exc:
        raise_write_error("ledger.apply_coin_delta", exc, details=f"user_id={user_id}")

    logger.debug(
        "ledger: user %s %+d coins (%s) -> balance %s, entry %s",
        request.user_id,
        request.delta,
        request.reason,
        new_balance,
        entry_id,
    )
    return CoinDeltaResult(new_balance=new_balance, entry_id=entry_id)


def apply_coin_delta_with_retry(
    user_id: int,
    delta: int,
    reason: str,
    *,
    max_retries: int | None = None,
    backoff_ms: int | None = None,
) -> CoinDeltaResult:
    """Call :func:`apply_coin_delta`, retrying only on write-lock conflicts.

    Conflicts are safe to retry because a conflicting call applied nothing.
    Every other error is raised on the first occurrence.

    Args:
        max_retries: Extra attempts after the first; defaults to
            ``ledger.max_conflict_retries``.
        backoff_ms: Base sleep between attempts, multiplied by the attempt
            number; defaults to ``ledger.retry_backoff_ms``.

    Raises:
        DatabaseConflictError: The last attempt still conflicted.
    """
    from rummy_ledger.config import config

    if max_retries is None:
        max_retries = config.ledger.max_conflict_retries
    if backoff_ms is None:
        backoff_ms = config.ledger.retry_backoff_ms

    attempt = 0
    while True:
        attempt += 1
        try:
            return apply_coin_delta(user_id, delta, reason)
        except DatabaseConflictError:
            if attempt > max_retries:
                logger.warning(
                    "ledger: giving up on user %s after %d conflicting attempts",
                    user_id,
                    attempt,
                )
                raise
            logger.warning(
                "ledger: write conflict for user %s (attempt %d/%d), retrying",
                user_id,
                attempt,
                max_retries + 1,
            )
            time.sleep(backoff_ms * attempt / 1000)


def get_balance(user_id: int) -> int:
    """Return a user's current coin balance.

    Raises:
        RecordNotFoundError: ``user_id`` does not exist.
    """
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT coins FROM "user" WHERE user_id = ?', (user_id,))
            row = cursor.fetchone()
    except Exception as exc:
        raise_read_error("ledger.get_balance", exc, details=f"user_id={user_id}")
    if row is None:
        raise RecordNotFoundError("user", user_id)
    return int(row[0])
