"""Per-user hash chain over economy log entries.

Each entry embeds a SHA-256 checksum of its own body, and the body includes
the checksum of the same user's previous entry::

    {
      "user_id":       42,
      "log_event":     "round win",
      "coins_change":  50,
      "balance_after": 50,
      "created_at":    "2026-10-18T14:23:01.452345+00:00",
      "prev_checksum": null
    }

The checksum is computed over the JSON serialisation of that body with
``sort_keys=True``, so it is reproducible regardless of dict ordering. Editing
any field of any entry, removing an entry, or reordering entries breaks either
that entry's checksum or the next entry's ``prev_checksum`` link, which
:func:`verify_user_ledger` reports.

The chain detects tampering performed outside this package (the append-only
triggers already block it through SQLite unless they are dropped). It does
not prevent it.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Literal

from rummy_ledger.db.types import EconomyLogEntry

logger = logging.getLogger(__name__)

CHECKSUM_PREFIX = "sha256:"


@dataclass(frozen=True)
class LedgerVerifyResult:
    """Result of a ledger integrity check performed by :func:`verify_user_ledger`.

    Attributes:
        status: One of:
            - ``"ok"``      - every entry verified.
            - ``"empty"``   - the user has no entries.
            - ``"corrupt"`` - a checksum, chain link or running balance is wrong.
        last_entry_id: ``log_id`` of the last verified entry; on ``"corrupt"``
            the last entry that verified before the failure (``None`` if the
            first entry failed).
        entries_checked: Number of entries that verified.
        error_detail: Human-readable failure reason, ``None`` unless corrupt.
    """

    status: Literal["ok", "empty", "corrupt"]
    last_entry_id: int | None
    entries_checked: int
    error_detail: str | None


def entry_body(
    *,
    user_id: int,
    log_event: str,
    coins_change: int,
    balance_after: int,
    created_at: str,
    prev_checksum: str | None,
) -> dict:
    """Assemble the checksummed body of an economy log entry."""
    return {
        "user_id": user_id,
        "log_event": log_event,
        "coins_change": coins_change,
        "balance_after": balance_after,
        "created_at": created_at,
        "prev_checksum": prev_checksum,
    }


def compute_checksum(body: dict) -> str:
    """Return ``sha256:<hex>`` over the canonical JSON serialisation of ``body``."""
    canonical = json.dumps(body, ensure_ascii=False, sort_keys=True)
    return CHECKSUM_PREFIX + hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def entry_checksum(entry: EconomyLogEntry) -> str:
    """Recompute the checksum a stored entry should carry."""
    return compute_checksum(
        entry_body(
            user_id=entry.user_id,
            log_event=entry.log_event,
            coins_change=entry.coins_change,
            balance_after=entry.balance_after,
            created_at=entry.created_at,
            prev_checksum=entry.prev_checksum,
        )
    )


def verify_user_ledger(user_id: int) -> LedgerVerifyResult:
    """Replay a user's whole economy log and verify the hash chain.

    For every entry, in ``log_id`` order, three assertions are made:

    1. The stored checksum matches the recomputed one.
    2. ``prev_checksum`` equals the previous entry's checksum (``None`` for
       the first entry).
    3. ``balance_after`` equals the running sum of ``coins_change``.

    Example::

        result = verify_user_ledger(user_id)
        if result.status == "corrupt":
            logger.error("Ledger integrity failure for user %s: %s", user_id, result.error_detail)
    """
    from rummy_ledger.db import economy_repo

    previous_checksum: str | None = None
    running_sum = 0
    checked = 0
    last_entry_id: int | None = None

    for entry in economy_repo.iter_for_user(user_id):
        failure: str | None = None
        expected = entry_checksum(entry)
        running_sum += entry.coins_change

        if entry.checksum != expected:
            failure = (
                f"Checksum mismatch on entry {entry.log_id}. "
                f"Recorded: {entry.checksum!r}. Expected: {expected!r}."
            )
        elif entry.prev_checksum != previous_checksum:
            failure = (
                f"Broken chain at entry {entry.log_id}: prev_checksum "
                f"{entry.prev_checksum!r} does not match {previous_checksum!r}."
            )
        elif entry.balance_after != running_sum:
            failure = (
                f"Running balance mismatch at entry {entry.log_id}: "
                f"balance_after={entry.balance_after}, sum of changes={running_sum}."
            )

        if failure is not None:
            logger.error("ledger: user %s chain corrupt: %s", user_id, failure)
            return LedgerVerifyResult(
                status="corrupt",
                last_entry_id=last_entry_id,
                entries_checked=checked,
                error_detail=failure,
            )

        previous_checksum = entry.checksum
        last_entry_id = entry.log_id
        checked += 1

    if checked == 0:
        return LedgerVerifyResult(
            status="empty", last_entry_id=None, entries_checked=0, error_detail=None
        )
    return LedgerVerifyResult(
        status="ok", last_entry_id=last_entry_id, entries_checked=checked, error_detail=None
    )
