"""Tests for request validation in rummy_ledger.models."""

import pytest

from rummy_ledger.db.errors import InvalidArgumentError
from rummy_ledger.models import (
    INT64_MAX,
    CoinDeltaRequest,
    GameActionRequest,
    GameMetadataRequest,
    RoundResultRequest,
    validate_request,
)


@pytest.mark.unit
def test_coin_delta_request_valid():
    request = validate_request(CoinDeltaRequest, user_id=1, delta=-5, reason="fee")
    assert (request.user_id, request.delta, request.reason) == (1, -5, "fee")


@pytest.mark.unit
@pytest.mark.parametrize(
    "values",
    [
        {"user_id": 2**63, "delta": 1, "reason": "x"},
        {"user_id": 1, "delta": INT64_MAX + 1, "reason": "x"},
        {"user_id": 1, "delta": "1", "reason": "x"},
        {"user_id": 1, "delta": 1, "reason": ""},
    ],
)
def test_coin_delta_request_invalid(values):
    with pytest.raises(InvalidArgumentError):
        validate_request(CoinDeltaRequest, **values)


@pytest.mark.unit
def test_error_message_names_the_field():
    with pytest.raises(InvalidArgumentError) as excinfo:
        validate_request(RoundResultRequest, user_id=1, game_id=1, points=0, placing=0)
    message = str(excinfo.value)
    assert message.startswith("placing:")
    assert "did not finish" in message


@pytest.mark.unit
def test_game_action_metadata_accepts_json_values():
    for metadata in (None, 3, "x", [1, 2], {"nested": {"ok": True}}):
        request = validate_request(
            GameActionRequest, user_id=1, game_id=1, action_type="draw", action_metadata=metadata
        )
        assert request.action_metadata == metadata


@pytest.mark.unit
def test_non_positive_ids_are_left_to_the_store():
    request = validate_request(CoinDeltaRequest, user_id=0, delta=1, reason="x")
    assert request.user_id == 0


@pytest.mark.unit
@pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_floats_rejected_in_metadata(bad):
    with pytest.raises(InvalidArgumentError, match="NaN or Infinity"):
        validate_request(
            GameActionRequest, user_id=1, game_id=1, action_type="draw", action_metadata={"x": bad}
        )
    with pytest.raises(InvalidArgumentError, match="NaN or Infinity"):
        validate_request(GameMetadataRequest, game_metadata={"settings": [bad]})
