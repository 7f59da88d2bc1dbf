import pytest

from imposter.game.models import SKIP_VOTE, Phase, Player, Room
from imposter.game.rules import CREW, IMPOSTER, crew_remaining, evaluate_round, tally_votes


def _room(count=4, current_round=1, max_rounds=3, min_players=1, imposter="p0"):
    return Room(
        code="ABCDEF",
        host_id="p0",
        players=[Player(id=f"p{i}", nickname=f"P{i}", is_host=(i == 0)) for i in range(count)],
        phase=Phase.VOTING,
        current_round=current_round,
        max_rounds=max_rounds,
        min_players_for_imposter_win=min_players,
        imposter_id=imposter,
    )


def _eliminate(room, player_id):
    room.get_player(player_id).eliminated = True
    return player_id


@pytest.mark.parametrize(
    "votes, expected",
    [
        ({"a": "x", "b": "x", "c": "y"}, "x"),
        ({"a": "x", "b": "y"}, None),
        ({"a": "x", "b": "y", "c": "z"}, None),
        ({"a": SKIP_VOTE, "b": SKIP_VOTE, "c": "x"}, None),
        ({"a": SKIP_VOTE, "b": "x"}, None),
        ({"a": SKIP_VOTE, "b": "x", "c": "x"}, "x"),
        ({}, None),
    ],
)
def test_tally_votes(votes, expected):
    assert tally_votes(votes) == expected


def test_no_elimination_on_last_round_is_imposter_win():
    room = _room(current_round=3, max_rounds=3)
    outcome = evaluate_round(room, None)
    assert outcome.winner == IMPOSTER
    assert outcome.game_over


def test_no_elimination_with_rounds_left_continues():
    outcome = evaluate_round(_room(current_round=1, max_rounds=3), None)
    assert not outcome.game_over


def test_crew_below_threshold_wins_for_imposter_before_rounds_run_out():
    room = _room(count=4, current_round=1, max_rounds=10, min_players=2)
    outcome = evaluate_round(room, _eliminate(room, "p1"))
    # p2 and p3 remain as crew: 2 <= 2
    assert crew_remaining(room) == 2
    assert outcome.winner == IMPOSTER
    assert "Too few" in outcome.reason


def test_imposter_voted_out_is_crew_win():
    room = _room(current_round=3, max_rounds=3)
    outcome = evaluate_round(room, _eliminate(room, "p0"))
    assert outcome.winner == CREW


def test_wrong_elimination_on_last_round_is_imposter_win():
    room = _room(count=5, current_round=2, max_rounds=2, min_players=1)
    outcome = evaluate_round(room, _eliminate(room, "p1"))
    assert outcome.winner == IMPOSTER
    assert "every round" in outcome.reason


def test_wrong_elimination_with_rounds_left_continues():
    room = _room(count=5, current_round=1, max_rounds=3, min_players=1)
    outcome = evaluate_round(room, _eliminate(room, "p1"))
    assert outcome.winner is None
