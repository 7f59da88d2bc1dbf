import os
import random
import sys
from collections import defaultdict

import pytest

# Ensure the backend root (containing the `imposter` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from imposter.config import Config
from imposter.game.models import Phase
from imposter.game.registry import RoomRegistry
from imposter.game.service import GameService
from imposter.game.words import DEFAULT_WORD_PAIRS, WordCatalog
from imposter.server import create_app

NAMES = ["Alice", "Bob", "Cara", "Dan", "Eve", "Finn", "Gus", "Hana"]


class RecordingEmitter:
    """Stands in for Socket.IO: keeps every emit along with who would have received it."""

    def __init__(self):
        self.sent = []
        self.rooms = defaultdict(set)

    def emit(self, event, payload, to):
        recipients = set(self.rooms[to]) if to in self.rooms else {to}
        self.sent.append({"event": event, "payload": payload, "to": to, "recipients": recipients})

    def enter_room(self, sid, room_code):
        self.rooms[room_code].add(sid)

    def leave_room(self, sid, room_code):
        self.rooms[room_code].discard(sid)

    def payloads(self, event):
        return [m["payload"] for m in self.sent if m["event"] == event]

    def received(self, sid, event=None):
        return [
            m["payload"]
            for m in self.sent
            if sid in m["recipients"] and (event is None or m["event"] == event)
        ]

    def clear(self):
        self.sent.clear()


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SOCKETIO_ASYNC_MODE = "threading"
    TRUST_PROXY_HEADERS = False


@pytest.fixture()
def emitter():
    return RecordingEmitter()


@pytest.fixture()
def service_config():
    return {"TURN_DURATION_SEC": 5}


@pytest.fixture()
def service(emitter, service_config):
    return GameService(
        registry=RoomRegistry(rng=random.Random(1)),
        catalog=WordCatalog(DEFAULT_WORD_PAIRS, rng=random.Random(2)),
        emitter=emitter,
        config=service_config,
        rng=random.Random(3),
    )


@pytest.fixture()
def make_lobby(service):
    def _make(count=3):
        room = service.create_room("p0", NAMES[0])
        for i in range(1, count):
            service.join_room(f"p{i}", room.code, NAMES[i])
        return room

    return _make


@pytest.fixture()
def start_game(service):
    def _start(room, max_rounds=None, min_players=None):
        settings = {}
        if max_rounds is not None:
            settings["maxRounds"] = max_rounds
        if min_players is not None:
            settings["minPlayersForImposterWin"] = min_players
        if settings:
            service.update_settings(room.host_id, room.code, settings)
        for p in room.players:
            if not p.is_host and not p.ready:
                service.toggle_ready(p.id, room.code)
        service.start_game(room.host_id, room.code)
        return room

    return _start


@pytest.fixture()
def describe_round(service):
    def _describe(room):
        order = []
        while room.phase == Phase.DESCRIBING:
            current = room.current_turn_player()
            order.append(current.id)
            assert service.submit_description(current.id, room.code, f"clue from {current.nickname}")
        return order

    return _describe


@pytest.fixture()
def vote_all(service):
    def _vote(room, choose):
        """Every active player votes for ``choose(voter_id)``."""
        for p in list(room.active_players()):
            if room.phase != Phase.VOTING:
                break
            service.submit_vote(p.id, room.code, choose(p.id))

    return _vote


@pytest.fixture()
def app_and_socketio():
    return create_app(TestConfig)


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(app_and_socketio):
    app, socketio = app_and_socketio
    clients = []

    def _make():
        test_client = socketio.test_client(app, flask_test_client=app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for c in clients:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass
