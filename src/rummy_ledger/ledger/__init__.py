"""Ledger package: balance authority, hash chain and reconciliation.

The economy log in the database is the **authoritative record** of every
coin balance change; ``"user".coins`` is a cached value derived from it.

Public surface
--------------
- :func:`apply_coin_delta`            - the only way to change a balance.
- :func:`apply_coin_delta_with_retry` - the same, retrying write conflicts.
- :func:`get_balance`                 - read a user's stored balance.
- :func:`verify_user_ledger`          - replay and check a user's hash chain.
- :func:`reconcile_user` / :func:`reconcile_all` - balance vs ledger sum.

Usage example
-------------
::

    from rummy_ledger.ledger import apply_coin_delta_with_retry

    result = apply_coin_delta_with_retry(user_id, -20, "entry fee")
    print(result.new_balance, result.entry_id)
"""

from rummy_ledger.ledger.authority import (
    CoinDeltaResult,
    apply_coin_delta,
    apply_coin_delta_with_retry,
    get_balance,
)
from rummy_ledger.ledger.checksum import LedgerVerifyResult, verify_user_ledger
from rummy_ledger.ledger.reconcile import ReconciliationResult, reconcile_all, reconcile_user

__all__ = [
    "CoinDeltaResult",
    "LedgerVerifyResult",
    "ReconciliationResult",
    "apply_coin_delta",
    "apply_coin_delta_with_retry",
    "get_balance",
    "reconcile_all",
    "reconcile_user",
    "verify_user_ledger",
]
