"""Vote tallying and win-condition evaluation.

Kept free of I/O so the service can resolve a round in one step and the
rules can be checked in isolation.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Mapping

from .models import SKIP_VOTE, Room

CREW = "crew"
IMPOSTER = "imposter"


@dataclass(frozen=True)
class RoundOutcome:
    """Result of a resolved vote. ``winner`` is None when play continues."""

    winner: str | None = None
    reason: str | None = None

    @property
    def game_over(self) -> bool:
        return self.winner is not None


def tally_votes(votes: Mapping[str, str]) -> str | None:
    """Return the voted-out player id, or None for a tie or a skip majority.

    The skip sentinel is tallied like any other option, so it can tie with
    or beat a real target.
    """
    counts = Counter(votes.values())
    if not counts:
        return None

    top = max(counts.values())
    leaders = [target for target, count in counts.items() if count == top]
    if len(leaders) != 1 or leaders[0] == SKIP_VOTE:
        return None
    return leaders[0]


def crew_remaining(room: Room) -> int:
    return sum(1 for p in room.players if not p.eliminated and p.id != room.imposter_id)


def evaluate_round(room: Room, eliminated_id: str | None) -> RoundOutcome:
    """Apply the win conditions in precedence order.

    Must be called after ``eliminated_id`` (if any) has been marked
    eliminated on the room.
    """
    rounds_exhausted = room.current_round >= room.max_rounds

    if eliminated_id is None:
        if rounds_exhausted:
            return RoundOutcome(IMPOSTER, "The crew ran out of rounds without voting anyone out")
        return RoundOutcome()

    if eliminated_id != room.imposter_id and crew_remaining(room) <= room.min_players_for_imposter_win:
        return RoundOutcome(IMPOSTER, "Too few crew members remain to catch the imposter")
    if eliminated_id == room.imposter_id:
        return RoundOutcome(CREW, "The imposter was voted out")
    if rounds_exhausted:
        return RoundOutcome(IMPOSTER, "The imposter survived every round")
    return RoundOutcome()
