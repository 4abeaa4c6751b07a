"""Tests for the game action audit trail in ``rummy_ledger.db.actions_repo``."""

from __future__ import annotations

import pytest

from rummy_ledger.db import actions_repo
from rummy_ledger.db.errors import InvalidArgumentError, RecordNotFoundError


@pytest.mark.db
def test_record_action_round_trip(user_id, game_id):
    action_id = actions_repo.record_action(
        user_id, game_id, "meld", {"cards": ["7H", "7S", "7D"]}
    )

    action = actions_repo.get_action(action_id)
    assert action is not None
    assert action.action_type == "meld"
    assert action.action_metadata == {"cards": ["7H", "7S", "7D"]}
    assert (action.user_id, action.game_id) == (user_id, game_id)


@pytest.mark.db
def test_record_action_without_metadata(user_id, game_id):
    action_id = actions_repo.record_action(user_id, game_id, "draw")
    assert actions_repo.get_action(action_id).action_metadata is None


@pytest.mark.db
def test_actions_listed_in_insertion_order(user_id, other_user_id, game_id):
    types = ["draw", "discard", "draw", "meld", "knock"]
    ids = [
        actions_repo.record_action(user_id if i % 2 == 0 else other_user_id, game_id, kind)
        for i, kind in enumerate(types)
    ]

    actions = actions_repo.list_actions_for_game(game_id)
    assert [a.action_id for a in actions] == ids
    assert [a.action_type for a in actions] == types
    assert [a.seq for a in actions] == sorted(a.seq for a in actions)

    mine = actions_repo.list_actions_for_user(user_id)
    assert [a.action_id for a in mine] == [ids[0], ids[2], ids[4]]


@pytest.mark.db
def test_actions_resume_after_seq(user_id, game_id):
    for kind in ("draw", "discard", "draw"):
        actions_repo.record_action(user_id, game_id, kind)

    first_page = actions_repo.list_actions_for_game(game_id, limit=2)
    rest = actions_repo.list_actions_for_game(game_id, after_seq=first_page[-1].seq)

    assert len(first_page) == 2
    assert [a.action_type for a in rest] == ["draw"]
    assert actions_repo.list_actions_for_game(game_id, after_seq=rest[-1].seq) == []


@pytest.mark.db
@pytest.mark.parametrize("action_type", ["", "   "])
def test_record_action_rejects_empty_type(user_id, game_id, action_type):
    with pytest.raises(InvalidArgumentError, match="action_type"):
        actions_repo.record_action(user_id, game_id, action_type)
    assert actions_repo.list_actions_for_game(game_id) == []


@pytest.mark.db
def test_record_action_unknown_references(user_id, game_id):
    with pytest.raises(RecordNotFoundError):
        actions_repo.record_action(999, game_id, "draw")
    with pytest.raises(RecordNotFoundError):
        actions_repo.record_action(user_id, 999, "draw")


@pytest.mark.unit
def test_record_action_rejects_non_json_metadata():
    with pytest.raises(InvalidArgumentError):
        actions_repo.record_action(1, 1, "draw", {"when": object()})


@pytest.mark.db
@pytest.mark.parametrize("bad", [float("nan"), float("inf")])
def test_record_action_rejects_non_finite_metadata(user_id, game_id, bad):
    with pytest.raises(InvalidArgumentError, match="NaN or Infinity"):
        actions_repo.record_action(user_id, game_id, "draw", {"score": bad})
    assert actions_repo.list_actions_for_game(game_id) == []
