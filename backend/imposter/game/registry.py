from __future__ import annotations

import logging
import random
import string
from threading import RLock

from .models import Phase, Player, Room

logger = logging.getLogger(__name__)


CODE_ALPHABET = string.ascii_uppercase + string.digits
_MAX_ATTEMPTS_PER_LENGTH = 20


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


class RoomRegistry:
    def __init__(
        self,
        code_length: int = 6,
        default_max_rounds: int = 3,
        default_min_players_for_imposter_win: int = 1,
        rng: random.Random | None = None,
    ) -> None:
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._code_length = code_length
        self._default_max_rounds = default_max_rounds
        self._default_min_players = default_min_players_for_imposter_win
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code: str) -> bool:
        with self._lock:
            return normalize_code(code) in self._rooms

    def _generate_code(self) -> str:
        length = self._code_length
        while True:
            for _ in range(_MAX_ATTEMPTS_PER_LENGTH):
                code = "".join(self._rng.choice(CODE_ALPHABET) for _ in range(length))
                if code not in self._rooms:
                    return code
            length += 1

    def create(self, host_id: str, nickname: str) -> Room:
        with self._lock:
            code = self._generate_code()
            room = Room(
                code=code,
                host_id=host_id,
                players=[Player(id=host_id, nickname=nickname, is_host=True)],
                max_rounds=self._default_max_rounds,
                min_players_for_imposter_win=self._default_min_players,
            )
            self._rooms[code] = room
            logger.info("[room-create] code=%s host=%s", code, host_id)
            return room

    def get(self, code: str) -> Room | None:
        with self._lock:
            return self._rooms.get(normalize_code(code))

    def remove(self, code: str) -> bool:
        with self._lock:
            room = self._rooms.pop(normalize_code(code), None)
            if room is None:
                return False
            logger.info("[room-remove] code=%s", room.code)
            return True

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def find_by_player(self, player_id: str) -> Room | None:
        with self._lock:
            for room in self._rooms.values():
                if room.get_player(player_id) is not None:
                    return room
            return None

    def list_public_joinable(self) -> list[dict]:
        with self._lock:
            lobbies = []
            for room in self._rooms.values():
                if room.is_private or room.phase != Phase.LOBBY:
                    continue
                host = room.get_player(room.host_id)
                lobbies.append(
                    {
                        "code": room.code,
                        "playerCount": len(room.players),
                        "maxRounds": room.max_rounds,
                        "host": host.nickname if host else None,
                    }
                )
            return lobbies
