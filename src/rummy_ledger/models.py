"""
Pydantic models for ledger write requests.

Every write operation validates its arguments through one of these models
before opening a transaction, so malformed input never reaches SQLite:

1. CoinDeltaRequest: balance authority input
2. RoundResultRequest: round recorder input
3. GameActionRequest: audit trail input
4. GameMetadataRequest: game creation/metadata update input

Validation failures surface as
:class:`~rummy_ledger.db.errors.InvalidArgumentError` via
:func:`validate_request`.
"""

import json
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, Field, JsonValue, StrictInt, ValidationError, field_validator

from rummy_ledger.db.errors import InvalidArgumentError

# SQLite INTEGER storage is a signed 64-bit value.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Placing value recorded for a player who did not finish the round.
DNF_PLACING = -1

Int64 = Annotated[StrictInt, Field(ge=INT64_MIN, le=INT64_MAX)]
# Any stored id is an int64; ids with no row surface as RecordNotFoundError.
RowId = Int64

ModelT = TypeVar("ModelT", bound=BaseModel)


def _require_text(value: str, field_name: str) -> str:
    if not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return value


def _require_strict_json(value: Any, field_name: str) -> Any:
    try:
        json.dumps(value, allow_nan=False)
    except ValueError as exc:
        raise ValueError(f"{field_name} must not contain NaN or Infinity") from exc
    return value


class CoinDeltaRequest(BaseModel):
    """
    Request to change a user's coin balance.

    Attributes:
        user_id: Target user
        delta: Signed change; zero is allowed and still audited
        reason: Non-empty reason stored in the economy log
    """

    user_id: RowId
    delta: Int64
    reason: str

    @field_validator("reason")
    @classmethod
    def _reason_not_blank(cls, value: str) -> str:
        return _require_text(value, "reason")


class RoundResultRequest(BaseModel):
    """
    Request to record one user's result in one game.

    Attributes:
        user_id: Player
        game_id: Game instance
        points: Signed score for the round
        placing: ``-1`` (did not finish) or a rank >= 1
    """

    user_id: RowId
    game_id: RowId
    points: Int64
    placing: StrictInt

    @field_validator("placing")
    @classmethod
    def _placing_in_domain(cls, value: int) -> int:
        if value != DNF_PLACING and value < 1:
            raise ValueError("placing must be -1 (did not finish) or >= 1")
        return value


class GameActionRequest(BaseModel):
    """
    Request to append one game action to the audit trail.

    The set of legal action types belongs to the calling game-logic layer;
    only emptiness is rejected here.
    """

    user_id: RowId
    game_id: RowId
    action_type: str
    action_metadata: JsonValue = None

    @field_validator("action_type")
    @classmethod
    def _action_type_not_blank(cls, value: str) -> str:
        return _require_text(value, "action_type")

    @field_validator("action_metadata")
    @classmethod
    def _metadata_strict_json(cls, value: JsonValue) -> JsonValue:
        return _require_strict_json(value, "action_metadata")


class GameMetadataRequest(BaseModel):
    """Variant name and settings of a game, stored as a JSON object."""

    game_metadata: dict[str, JsonValue]

    @field_validator("game_metadata")
    @classmethod
    def _metadata_strict_json(cls, value: dict[str, JsonValue]) -> dict[str, JsonValue]:
        return _require_strict_json(value, "game_metadata")


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "request"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def validate_request(model: type[ModelT], **values: Any) -> ModelT:
    """Build ``model`` from ``values`` or raise :class:`InvalidArgumentError`."""
    try:
        return model(**values)
    except ValidationError as exc:
        raise InvalidArgumentError(_format_validation_error(exc)) from exc
