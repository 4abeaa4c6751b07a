"""Reconciliation of stored balances against the economy log.

The stored ``coins`` column is a cached value; the economy log is its source
of truth. Reconciliation recomputes the sum of each user's entries and
compares it with the stored balance. Any difference (``drift``) means the
balance was written outside the balance authority, or entries were removed
behind the append-only triggers.

Intended for the test suite and for an operational audit job
(``rummy-ledger reconcile``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rummy_ledger.db import economy_repo
from rummy_ledger.db.errors import RecordNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """Stored balance versus ledger sum for one user.

    Attributes:
        user_id: User checked.
        balance: Stored ``coins`` value.
        ledger_sum: Sum of the user's ``coins_change`` values.
    """

    user_id: int
    balance: int
    ledger_sum: int

    @property
    def drift(self) -> int:
        return self.balance - self.ledger_sum

    @property
    def is_consistent(self) -> bool:
        return self.drift == 0


def reconcile_user(user_id: int) -> ReconciliationResult:
    """Compare one user's stored balance with their ledger sum.

    Raises:
        RecordNotFoundError: ``user_id`` does not exist.
    """
    values = economy_repo.balance_and_ledger_sum(user_id)
    if values is None:
        raise RecordNotFoundError("user", user_id)
    balance, ledger_sum = values
    result = ReconciliationResult(user_id=user_id, balance=balance, ledger_sum=ledger_sum)
    if not result.is_consistent:
        logger.warning(
            "reconcile: user %s balance %s != ledger sum %s (drift %+d)",
            user_id,
            balance,
            ledger_sum,
            result.drift,
        )
    return result


def reconcile_all() -> list[ReconciliationResult]:
    """Reconcile every user; returns one result per user, consistent or not."""
    results = [
        ReconciliationResult(user_id=user_id, balance=balance, ledger_sum=ledger_sum)
        for user_id, balance, ledger_sum in economy_repo.balances_and_ledger_sums()
    ]
    drifted = [result for result in results if not result.is_consistent]
    for result in drifted:
        logger.warning(
            "reconcile: user %s balance %s != ledger sum %s (drift %+d)",
            result.user_id,
            result.balance,
            result.ledger_sum,
            result.drift,
        )
    logger.info("reconcile: checked %d users, %d drifted", len(results), len(drifted))
    return results
