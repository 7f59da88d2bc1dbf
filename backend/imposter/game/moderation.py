from __future__ import annotations

import math

from .errors import GameError
from .models import Room


def kick_votes_needed(player_count: int) -> int:
    return max(1, math.ceil(player_count / 2))


def add_kick_vote(room: Room, voter_id: str, target_id: str) -> tuple[int, int, bool]:
    """Returns (votes_count, votes_needed, threshold_reached).

    Repeat votes by the same voter are not double counted.
    """
    if room.get_player(voter_id) is None:
        raise GameError("not_in_room", "You are not in this room")
    if voter_id == target_id:
        raise GameError("invalid_target", "You cannot vote to kick yourself")

    target = room.get_player(target_id)
    if target is None:
        raise GameError("invalid_target", "That player is not in this room")
    if target.is_host:
        raise GameError("invalid_target", "The host cannot be kicked")

    voters = room.kick_votes.setdefault(target_id, set())
    voters.add(voter_id)

    needed = kick_votes_needed(len(room.players))
    votes = len(voters)
    return votes, needed, votes >= needed


def discard_kick_votes(room: Room, player_id: str) -> None:
    """Forget every kick vote cast by or against a departing player."""
    room.kick_votes.pop(player_id, None)
    for target_id in list(room.kick_votes):
        voters = room.kick_votes[target_id]
        voters.discard(player_id)
        if not voters:
            del room.kick_votes[target_id]
