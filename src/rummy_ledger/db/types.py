"""Shared DB-layer dataclasses for repository contracts.

Rows are returned as frozen dataclasses so callers cannot mistake a read model
for a handle that writes back to the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class User:
    """
    A user row as seen by the ledger core.

    Attributes:
        user_id: Primary key.
        username: Case-insensitively unique display name.
        email: Case-insensitively unique email address.
        bio: Free-form profile text.
        image: Optional avatar reference.
        coins: Current balance. Only the balance authority writes it.
        created_at: Row creation timestamp.
        updated_at: Last modification timestamp, ``None`` if never updated.
    """

    user_id: int
    username: str
    email: str
    bio: str
    image: str | None
    coins: int
    created_at: str
    updated_at: str | None


@dataclass(frozen=True, slots=True)
class Game:
    """A game instance with its variant/settings metadata."""

    game_id: int
    game_metadata: dict[str, Any]
    created_at: str
    updated_at: str | None


@dataclass(frozen=True, slots=True)
class GameRound:
    """
    One user's result in one game instance.

    Attributes:
        placing: ``-1`` for did-not-finish, otherwise the finishing rank (>= 1).
    """

    round_id: int
    user_id: int
    game_id: int
    points: int
    placing: int
    created_at: str
    updated_at: str | None

    @property
    def did_not_finish(self) -> bool:
        return self.placing == -1


@dataclass(frozen=True, slots=True)
class GameAction:
    """
    One append-only audit event of in-game activity.

    Attributes:
        action_id: UUID hex identifier.
        seq: Insertion sequence; strictly increasing across the table and the
            ordering/pagination key for every listing.
    """

    action_id: str
    seq: int
    user_id: int
    game_id: int
    action_type: str
    action_metadata: Any
    created_at: str


@dataclass(frozen=True, slots=True)
class EconomyLogEntry:
    """
    One append-only coin balance change.

    Attributes:
        log_id: Primary key; strictly increasing in commit order.
        log_event: Reason for the change.
        coins_change: Signed delta that was applied.
        balance_after: The user's balance immediately after this entry.
        prev_checksum: Checksum of the user's previous entry (``None`` for the
            first one).
        checksum: ``sha256:<hex>`` digest over this entry's body.
        created_at: ISO-8601 UTC timestamp, part of the checksummed body.
    """

    log_id: int
    user_id: int
    log_event: str
    coins_change: int
    balance_after: int
    prev_checksum: str | None
    checksum: str
    created_at: str
