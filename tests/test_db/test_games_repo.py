"""Focused tests for ``rummy_ledger.db.games_repo``."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from rummy_ledger.db import connection as db_connection
from rummy_ledger.db import games_repo
from rummy_ledger.db.errors import DatabaseReadError, InvalidArgumentError
from tests.constants import TEST_GAME_METADATA


@pytest.mark.db
def test_create_and_get_game(game_id):
    game = games_repo.get_game(game_id)
    assert game is not None
    assert game.game_metadata == TEST_GAME_METADATA
    assert game.updated_at is None
    assert games_repo.game_exists(game_id)


@pytest.mark.db
def test_update_game_metadata_stamps_updated_at(game_id):
    assert games_repo.update_game_metadata(game_id, {"variant": "rummy500"}) is True

    game = games_repo.get_game(game_id)
    assert game.game_metadata == {"variant": "rummy500"}
    assert game.updated_at is not None


@pytest.mark.db
def test_update_missing_game_returns_false(test_db):
    assert games_repo.update_game_metadata(999, {}) is False
    assert games_repo.get_game(999) is None
    assert not games_repo.game_exists(999)


@pytest.mark.unit
@pytest.mark.parametrize("metadata", [["not", "an", "object"], "gin", None])
def test_create_game_rejects_non_object_metadata(metadata):
    with pytest.raises(InvalidArgumentError):
        games_repo.create_game(metadata)


@pytest.mark.unit
def test_games_repo_read_paths_raise_typed_errors_on_connection_failure():
    with patch.object(db_connection, "get_connection", side_effect=Exception("db boom")):
        with pytest.raises(DatabaseReadError):
            games_repo.get_game(1)
        with pytest.raises(DatabaseReadError):
            games_repo.game_exists(1)


@pytest.mark.db
def test_create_game_rejects_non_finite_metadata(test_db):
    with pytest.raises(InvalidArgumentError, match="NaN or Infinity"):
        games_repo.create_game({"stake": float("nan")})
