from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


SKIP_VOTE = "skip"
SKIPPED_LABEL = "No one (votes skipped)"
TIMEOUT_DESCRIPTION = "[Time ran out]"


class Phase(str, Enum):
    LOBBY = "lobby"
    DESCRIBING = "describing"
    VOTING = "voting"


@dataclass
class Player:
    id: str
    nickname: str
    is_host: bool = False
    ready: bool = False
    eliminated: bool = False

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "nickname": self.nickname,
            "isHost": self.is_host,
            "ready": self.ready,
            "eliminated": self.eliminated,
        }


@dataclass
class Description:
    player_id: str
    nickname: str
    text: str

    def to_public(self) -> dict:
        return {"playerId": self.player_id, "player": self.nickname, "description": self.text}


@dataclass
class Room:
    code: str
    host_id: str
    players: list[Player] = field(default_factory=list)
    is_private: bool = False
    max_rounds: int = 3
    min_players_for_imposter_win: int = 1
    phase: Phase = Phase.LOBBY
    current_round: int = 0
    turn_order: list[str] = field(default_factory=list)
    turn_cursor: int = 0
    word: str | None = None
    imposter_word: str | None = None
    imposter_id: str | None = None
    descriptions: list[Description] = field(default_factory=list)
    votes: dict[str, str] = field(default_factory=dict)
    kick_votes: dict[str, set[str]] = field(default_factory=dict)
    chat_history: list[dict] = field(default_factory=list)
    # Set by the service; holds the room's TurnTimer
    turn_timer: Any = None

    @property
    def game_started(self) -> bool:
        return self.phase != Phase.LOBBY

    def get_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def active_players(self) -> list[Player]:
        return [p for p in self.players if not p.eliminated]

    def current_turn_player(self) -> Player | None:
        if self.phase != Phase.DESCRIBING:
            return None
        if self.turn_cursor >= len(self.turn_order):
            return None
        return self.get_player(self.turn_order[self.turn_cursor])

    def roster(self) -> list[dict]:
        return [p.to_public() for p in self.players]

    def settings(self) -> dict:
        return {
            "maxRounds": self.max_rounds,
            "minPlayersForImposterWin": self.min_players_for_imposter_win,
            "isPrivate": self.is_private,
        }

    def public_state(self) -> dict:
        # Never includes the words or the imposter.
        current = self.current_turn_player()
        return {
            "code": self.code,
            "hostId": self.host_id,
            "phase": self.phase.value,
            "gameStarted": self.game_started,
            "currentRound": self.current_round,
            "currentTurnPlayerId": current.id if current else None,
            "players": self.roster(),
            "descriptions": [d.to_public() for d in self.descriptions],
            "votesCast": len(self.votes),
            **self.settings(),
        }
