"""Tests for balance reconciliation in ``rummy_ledger.ledger.reconcile``."""

from __future__ import annotations

import logging

import pytest

from rummy_ledger.db.connection import get_connection
from rummy_ledger.db.errors import RecordNotFoundError
from rummy_ledger.ledger import (
    ReconciliationResult,
    apply_coin_delta,
    reconcile_all,
    reconcile_user,
)


def _bypass_authority(user_id: int, coins: int) -> None:
    conn = get_connection()
    try:
        conn.execute('UPDATE "user" SET coins = ? WHERE user_id = ?', (coins, user_id))
        conn.commit()
    finally:
        conn.close()


@pytest.mark.unit
def test_drift_properties():
    assert ReconciliationResult(user_id=1, balance=10, ledger_sum=10).is_consistent
    drifted = ReconciliationResult(user_id=1, balance=15, ledger_sum=10)
    assert drifted.drift == 5
    assert not drifted.is_consistent


@pytest.mark.db
def test_consistent_after_authority_writes(user_id):
    apply_coin_delta(user_id, 50, "round win")
    apply_coin_delta(user_id, -20, "entry fee")

    result = reconcile_user(user_id)
    assert result == ReconciliationResult(user_id=user_id, balance=30, ledger_sum=30)


@pytest.mark.db
def test_new_user_is_consistent(user_id):
    assert reconcile_user(user_id).is_consistent


@pytest.mark.db
def test_out_of_band_write_is_reported(user_id, other_user_id, caplog):
    apply_coin_delta(user_id, 10, "win")
    _bypass_authority(user_id, 25)

    with caplog.at_level(logging.WARNING, logger="rummy_ledger.ledger.reconcile"):
        result = reconcile_user(user_id)

    assert result.drift == 15
    assert "drift +15" in caplog.text

    by_user = {r.user_id: r for r in reconcile_all()}
    assert not by_user[user_id].is_consistent
    assert by_user[other_user_id].is_consistent


@pytest.mark.db
def test_unknown_user(test_db):
    with pytest.raises(RecordNotFoundError):
        reconcile_user(999)


@pytest.mark.db
def test_reconcile_all_empty_database(test_db):
    assert reconcile_all() == []
