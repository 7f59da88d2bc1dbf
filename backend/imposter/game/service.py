from __future__ import annotations

import logging
import random
import time
from functools import partial
from threading import RLock
from typing import Any, Callable, Mapping, Protocol

from ..config import Config
from ..realtime import events
from .errors import GameError, RoomNotFound
from .models import (
    SKIP_VOTE,
    SKIPPED_LABEL,
    TIMEOUT_DESCRIPTION,
    Description,
    Phase,
    Player,
    Room,
)
from .moderation import add_kick_vote, discard_kick_votes
from .registry import RoomRegistry
from .rules import RoundOutcome, evaluate_round, tally_votes
from .timer import TurnTimer
from .words import WordCatalog

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class Emitter(Protocol):
    def emit(self, event: str, payload: dict, to: str) -> None: ...

    def enter_room(self, sid: str, room_code: str) -> None: ...

    def leave_room(self, sid: str, room_code: str) -> None: ...


def _int_setting(raw: Any, name: str, low: int, high: int) -> int:
    if isinstance(raw, bool):
        raise GameError("invalid_settings", f"{name} must be a number")
    if isinstance(raw, float) and not raw.is_integer():
        raise GameError("invalid_settings", f"{name} must be a whole number")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise GameError("invalid_settings", f"{name} must be a number") from None
    if value < low or value > high:
        raise GameError("invalid_settings", f"{name} must be between {low} and {high}")
    return value


class GameService:
    """Authoritative state machine for every room.

    Every public method and every timer tick runs under one re-entrant lock,
    so a transition always completes before the next event is looked at.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        catalog: WordCatalog,
        emitter: Emitter,
        config: Mapping[str, Any] | None = None,
        rng: random.Random | None = None,
        spawn: Callable | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        cfg = config or {}

        def _get(key: str) -> Any:
            return cfg.get(key, getattr(Config, key))

        self.registry = registry
        self.catalog = catalog
        self.emitter = emitter
        self.rng = rng or random.Random()
        self.turn_duration = int(_get("TURN_DURATION_SEC"))
        self.min_players = int(_get("MIN_PLAYERS"))
        self.max_players = int(_get("MAX_PLAYERS_PER_ROOM"))
        self.description_max_chars = int(_get("DESCRIPTION_MAX_CHARS"))
        self.chat_max_chars = int(_get("CHAT_MAX_CHARS"))
        self.chat_history_limit = int(_get("CHAT_HISTORY_LIMIT"))
        self._spawn = spawn
        self._sleep = sleep
        self._lock = RLock()

    # ---- lookups ----

    def _require_room(self, code: str) -> Room:
        room = self.registry.get(code)
        if room is None:
            raise RoomNotFound(code)
        return room

    @staticmethod
    def _require_player(room: Room, sid: str) -> Player:
        player = room.get_player(sid)
        if player is None:
            raise GameError("not_in_room", "You are not in this room")
        return player

    def _require_host(self, room: Room, sid: str) -> Player:
        player = self._require_player(room, sid)
        if room.host_id != sid:
            raise GameError("only_host", "Only the host can do that")
        return player

    @staticmethod
    def _require_lobby(room: Room) -> None:
        if room.phase != Phase.LOBBY:
            raise GameError("game_in_progress", "Game already in progress")

    def _broadcast(self, room: Room, event: str, payload: dict) -> None:
        self.emitter.emit(event, {"roomCode": room.code, **payload}, to=room.code)

    def _send(self, sid: str, room: Room, event: str, payload: dict) -> None:
        self.emitter.emit(event, {"roomCode": room.code, **payload}, to=sid)

    # ---- lobby ----

    def create_room(self, sid: str, nickname: str) -> Room:
        with self._lock:
            if self.registry.find_by_player(sid) is not None:
                raise GameError("already_in_room", "Leave your current room first")

            room = self.registry.create(sid, nickname)
            room.turn_timer = TurnTimer(
                on_tick=partial(self._on_turn_tick, room.code),
                on_expire=partial(self._on_turn_timeout, room.code),
                spawn=self._spawn,
                sleep=self._sleep,
                lock=self._lock,
            )
            self.emitter.enter_room(sid, room.code)
            self._send(
                sid,
                room,
                events.ROOM_CREATED,
                {"hostId": room.host_id, "players": room.roster(), **room.settings()},
            )
            return room

    def join_room(self, sid: str, code: str, nickname: str) -> Room:
        with self._lock:
            room = self._require_room(code)
            if room.get_player(sid) is not None:
                raise GameError("already_in_room", "You are already in this room")
            if self.registry.find_by_player(sid) is not None:
                raise GameError("already_in_room", "Leave your current room first")
            self._require_lobby(room)
            if len(room.players) >= self.max_players:
                raise GameError("room_full", "Room is full")

            player = Player(id=sid, nickname=nickname)
            room.players.append(player)
            self.emitter.enter_room(sid, room.code)
            logger.info("[room-join] code=%s player=%s players=%d", room.code, sid, len(room.players))

            self._send(
                sid,
                room,
                events.ROOM_JOINED,
                {
                    "hostId": room.host_id,
                    "players": room.roster(),
                    "chatHistory": list(room.chat_history),
                    **room.settings(),
                },
            )
            self._broadcast(room, events.PLAYER_JOINED, {"player": player.to_public(), "players": room.roster()})
            return room

    def toggle_ready(self, sid: str, code: str) -> bool:
        with self._lock:
            room = self._require_room(code)
            player = self._require_player(room, sid)
            self._require_lobby(room)
            if player.is_host:
                raise GameError("host_exempt", "The host does not need to ready up")

            player.ready = not player.ready
            self._broadcast(
                room,
                events.PLAYER_READY_UPDATE,
                {"playerId": sid, "ready": player.ready, "players": room.roster()},
            )
            return player.ready

    def update_settings(self, sid: str, code: str, settings: Mapping[str, Any]) -> dict:
        with self._lock:
            room = self._require_room(code)
            self._require_host(room, sid)
            self._require_lobby(room)

            # Validate everything before touching the room.
            updates: dict[str, Any] = {}
            if settings.get("maxRounds") is not None:
                updates["max_rounds"] = _int_setting(settings["maxRounds"], "maxRounds", 1, 10)
            if settings.get("minPlayersForImposterWin") is not None:
                updates["min_players_for_imposter_win"] = _int_setting(
                    settings["minPlayersForImposterWin"], "minPlayersForImposterWin", 1, 5
                )
            if settings.get("isPrivate") is not None:
                if not isinstance(settings["isPrivate"], bool):
                    raise GameError("invalid_settings", "isPrivate must be true or false")
                updates["is_private"] = settings["isPrivate"]
            if not updates:
                raise GameError("invalid_settings", "No settings to update")

            for attr, value in updates.items():
                setattr(room, attr, value)

            self._broadcast(room, events.ROOM_SETTINGS_UPDATED, room.settings())
            return room.settings()

    def public_lobbies(self, sid: str) -> list[dict]:
        with self._lock:
            lobbies = self.registry.list_public_joinable()
            self.emitter.emit(events.PUBLIC_LOBBIES, {"lobbies": lobbies}, to=sid)
            return lobbies

    def lobby_chat(self, sid: str, code: str, text: str) -> dict:
        with self._lock:
            room = self._require_room(code)
            player = self._require_player(room, sid)
            if room.phase != Phase.LOBBY:
                raise GameError("chat_closed", "Lobby chat is closed while a game is running")

            t = (text or "").strip()
            if not t:
                raise GameError("invalid_message", "Message cannot be empty")
            if len(t) > self.chat_max_chars:
                raise GameError("message_too_long", f"Messages are limited to {self.chat_max_chars} characters")

            entry = {"playerId": sid, "nickname": player.nickname, "text": t, "timestamp": now_ms()}
            room.chat_history.append(entry)
            if len(room.chat_history) > self.chat_history_limit:
                room.chat_history = room.chat_history[-self.chat_history_limit :]

            self._broadcast(room, events.LOBBY_CHAT_MESSAGE, entry)
            return entry

    # ---- departures ----

    def leave_room(self, sid: str, code: str) -> bool:
        with self._lock:
            room = self._require_room(code)
            if room.get_player(sid) is None:
                return False

            self.emitter.leave_room(sid, room.code)
            self._remove_player(room, sid, events.PLAYER_LEFT)
            return True

    def disconnect(self, sid: str) -> bool:
        with self._lock:
            room = self.registry.find_by_player(sid)
            if room is None:
                return False

            logger.info("[disconnect] code=%s player=%s", room.code, sid)
            self._remove_player(room, sid, events.PLAYER_LEFT)
            return True

    def vote_kick(self, sid: str, code: str, target_id: str) -> bool:
        with self._lock:
            room = self._require_room(code)
            votes, needed, reached = add_kick_vote(room, sid, target_id)
            if not reached:
                self._broadcast(
                    room,
                    events.KICK_VOTE_RECORDED,
                    {"targetId": target_id, "votes": votes, "needed": needed},
                )
                return False

            room.kick_votes.pop(target_id, None)
            logger.info("[kick] code=%s target=%s votes=%d needed=%d", room.code, target_id, votes, needed)
            self._send(target_id, room, events.KICKED, {"reason": "You were removed by a vote of the other players"})
            self.emitter.leave_room(target_id, room.code)
            self._remove_player(room, target_id, events.PLAYER_KICKED)
            return True

    def _remove_player(self, room: Room, sid: str, event: str) -> None:
        player = room.get_player(sid)
        if player is None:
            return

        room.players.remove(player)
        room.votes.pop(sid, None)
        discard_kick_votes(room, sid)

        if not room.players:
            room.turn_timer.disarm()
            self.registry.remove(room.code)
            return

        host_changed = False
        if room.host_id == sid:
            new_host = room.players[0]
            new_host.is_host = True
            room.host_id = new_host.id
            host_changed = True

        self._broadcast(
            room,
            event,
            {"playerId": sid, "nickname": player.nickname, "hostId": room.host_id, "players": room.roster()},
        )
        if host_changed:
            new_host = room.get_player(room.host_id)
            logger.info("[host-change] code=%s host=%s", room.code, room.host_id)
            self._broadcast(room, events.HOST_CHANGED, {"hostId": new_host.id, "nickname": new_host.nickname})

        if room.game_started:
            self._handle_mid_game_departure(room, player)

    def _handle_mid_game_departure(self, room: Room, player: Player) -> None:
        if player.id == room.imposter_id:
            self._abort_game(room, "The imposter left the game")
            return
        if len(room.active_players()) < self.min_players:
            self._abort_game(room, "Not enough players left to continue")
            return

        if room.phase == Phase.DESCRIBING:
            on_turn = room.turn_cursor < len(room.turn_order) and room.turn_order[room.turn_cursor] == player.id
            if on_turn:
                room.turn_timer.disarm()
                room.turn_cursor += 1
                self._continue_describing(room)
        elif room.phase == Phase.VOTING:
            for voter_id, target in room.votes.items():
                if target == player.id:
                    room.votes[voter_id] = SKIP_VOTE
            self._maybe_resolve_votes(room)

    def _abort_game(self, room: Room, reason: str) -> None:
        logger.info("[game-abort] code=%s reason=%s", room.code, reason)
        self._reset_to_lobby(room)
        self._broadcast(room, events.GAME_ENDED, {"reason": reason, "players": room.roster()})

    # ---- game ----

    def start_game(self, sid: str, code: str) -> None:
        with self._lock:
            room = self._require_room(code)
            self._require_host(room, sid)
            self._require_lobby(room)
            if len(room.players) < self.min_players:
                raise GameError("not_enough_players", f"Need at least {self.min_players} players to start")
            not_ready = [p.nickname for p in room.players if not p.is_host and not p.ready]
            if not_ready:
                raise GameError("players_not_ready", "Waiting for players to ready up: " + ", ".join(not_ready))

            for p in room.players:
                p.eliminated = False
                p.ready = False
            room.word, room.imposter_word = self.catalog.next_word()
            room.imposter_id = self.rng.choice(room.players).id
            room.current_round = 1
            room.descriptions = []
            room.votes = {}
            room.kick_votes = {}
            room.chat_history = []
            room.phase = Phase.DESCRIBING
            self._shuffle_turn_order(room)

            logger.info("[game-start] code=%s players=%d rounds=%d", room.code, len(room.players), room.max_rounds)
            logger.debug("[game-secret] code=%s word=%s imposter=%s", room.code, room.word, room.imposter_id)

            turn = self._turn_info(room)
            for p in room.players:
                word = room.imposter_word if p.id == room.imposter_id else room.word
                self._send(
                    p.id,
                    room,
                    events.GAME_STARTED,
                    {
                        "word": word,
                        "currentRound": room.current_round,
                        "maxRounds": room.max_rounds,
                        "players": room.roster(),
                        **turn,
                    },
                )
            self._arm_turn_timer(room)

    def submit_description(self, sid: str, code: str, text: str) -> bool:
        with self._lock:
            room = self._require_room(code)
            self._require_player(room, sid)
            if room.phase != Phase.DESCRIBING:
                raise GameError("not_describing", "Descriptions are not being collected right now")

            current = room.current_turn_player()
            if current is None or current.id != sid:
                # Out-of-turn submissions are a client desync; the next broadcast fixes it.
                logger.debug("[describe-ignored] code=%s player=%s", room.code, sid)
                return False

            t = (text or "").strip()
            if not t:
                raise GameError("invalid_description", "Description cannot be empty")
            if len(t) > self.description_max_chars:
                raise GameError(
                    "description_too_long",
                    f"Descriptions are limited to {self.description_max_chars} characters",
                )

            self._record_description(room, current, t)
            return True

    def submit_vote(self, sid: str, code: str, target: str) -> None:
        with self._lock:
            room = self._require_room(code)
            voter = self._require_player(room, sid)
            if room.phase != Phase.VOTING:
                raise GameError("not_voting", "Voting is not open")
            if voter.eliminated:
                raise GameError("eliminated", "Eliminated players cannot vote")
            if target != SKIP_VOTE:
                chosen = room.get_player(target)
                if chosen is None or chosen.eliminated:
                    raise GameError("invalid_target", "You cannot vote for that player")

            room.votes[sid] = target
            self._broadcast(
                room,
                events.PLAYER_VOTED,
                {"playerId": sid, "votesCast": len(room.votes), "votesNeeded": len(room.active_players())},
            )
            self._maybe_resolve_votes(room)

    # ---- turn handling ----

    def _shuffle_turn_order(self, room: Room) -> None:
        order = [p.id for p in room.players]
        self.rng.shuffle(order)
        room.turn_order = order
        room.turn_cursor = 0
        self._skip_unavailable_turns(room)

    @staticmethod
    def _skip_unavailable_turns(room: Room) -> None:
        while room.turn_cursor < len(room.turn_order):
            player = room.get_player(room.turn_order[room.turn_cursor])
            if player is not None and not player.eliminated:
                return
            room.turn_cursor += 1

    def _turn_info(self, room: Room) -> dict:
        current = room.current_turn_player()
        return {
            "currentTurnPlayerId": current.id if current else None,
            "currentTurnPlayer": current.nickname if current else None,
            "turnDuration": self.turn_duration,
        }

    def _arm_turn_timer(self, room: Room) -> None:
        current = room.current_turn_player()
        if current is not None:
            room.turn_timer.arm(self.turn_duration, current.id)

    def _record_description(self, room: Room, player: Player, text: str) -> None:
        room.turn_timer.disarm()
        room.descriptions.append(Description(player_id=player.id, nickname=player.nickname, text=text))
        room.turn_cursor += 1
        self._continue_describing(room)

    def _continue_describing(self, room: Room) -> None:
        self._skip_unavailable_turns(room)
        if room.turn_cursor < len(room.turn_order):
            self._broadcast(
                room,
                events.NEXT_TURN,
                {
                    "currentRound": room.current_round,
                    "descriptions": [d.to_public() for d in room.descriptions],
                    **self._turn_info(room),
                },
            )
            self._arm_turn_timer(room)
            return

        self._start_voting(room)

    def _start_voting(self, room: Room) -> None:
        room.turn_timer.disarm()
        room.phase = Phase.VOTING
        room.votes = {}
        logger.info("[voting-open] code=%s round=%d", room.code, room.current_round)
        self._broadcast(
            room,
            events.START_VOTING,
            {
                "currentRound": room.current_round,
                "descriptions": [d.to_public() for d in room.descriptions],
                "players": [p.to_public() for p in room.active_players()],
            },
        )

    def _on_turn_tick(self, code: str, remaining: int, player_id: str | None) -> None:
        room = self.registry.get(code)
        if room is None:
            return
        self._broadcast(room, events.TURN_TIMER_UPDATE, {"timeLeft": remaining, "playerId": player_id})

    def _on_turn_timeout(self, code: str, player_id: str | None) -> None:
        with self._lock:
            room = self.registry.get(code)
            if room is None or room.phase != Phase.DESCRIBING:
                return
            current = room.current_turn_player()
            if current is None or current.id != player_id:
                return

            logger.info("[turn-timeout] code=%s player=%s", code, player_id)
            self._record_description(room, current, TIMEOUT_DESCRIPTION)

    # ---- resolution ----

    def _maybe_resolve_votes(self, room: Room) -> None:
        if room.phase != Phase.VOTING:
            return
        if len(room.votes) < len(room.active_players()):
            return
        self._resolve_round(room)

    def _resolve_round(self, room: Room) -> None:
        voted_out_id = tally_votes(room.votes)
        voted_out = room.get_player(voted_out_id) if voted_out_id else None
        if voted_out is not None:
            voted_out.eliminated = True

        outcome = evaluate_round(room, voted_out.id if voted_out else None)
        label = voted_out.nickname if voted_out else SKIPPED_LABEL
        logger.info(
            "[round-resolve] code=%s round=%d voted_out=%s winner=%s",
            room.code,
            room.current_round,
            voted_out.id if voted_out else None,
            outcome.winner,
        )

        if outcome.game_over:
            self._finish_game(room, outcome, label)
        else:
            self._advance_round(room, voted_out, label)

    def _advance_round(self, room: Room, voted_out: Player | None, label: str) -> None:
        room.current_round += 1
        room.descriptions = []
        room.votes = {}
        room.phase = Phase.DESCRIBING
        self._shuffle_turn_order(room)

        self._broadcast(
            room,
            events.NEXT_ROUND,
            {
                "currentRound": room.current_round,
                "maxRounds": room.max_rounds,
                "votedOut": label,
                "votedOutId": voted_out.id if voted_out else None,
                "players": room.roster(),
                **self._turn_info(room),
            },
        )
        self._arm_turn_timer(room)

    def _finish_game(self, room: Room, outcome: RoundOutcome, label: str) -> None:
        imposter = room.get_player(room.imposter_id)
        payload = {
            "winner": outcome.winner,
            "imposter": imposter.nickname if imposter else None,
            "imposterId": room.imposter_id,
            "word": room.word,
            "imposterWord": room.imposter_word,
            "votedOut": label,
            "reason": outcome.reason,
            "players": room.roster(),
        }
        logger.info("[game-over] code=%s winner=%s", room.code, outcome.winner)
        self._reset_to_lobby(room)
        self._broadcast(room, events.GAME_OVER, payload)

    @staticmethod
    def _reset_to_lobby(room: Room) -> None:
        room.turn_timer.disarm()
        room.phase = Phase.LOBBY
        room.current_round = 0
        room.turn_order = []
        room.turn_cursor = 0
        room.descriptions = []
        room.votes = {}
        room.word = None
        room.imposter_word = None
        room.imposter_id = None
        for p in room.players:
            p.eliminated = False
            p.ready = False
