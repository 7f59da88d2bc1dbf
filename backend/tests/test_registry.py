import random

from imposter.game.models import Phase
from imposter.game.registry import CODE_ALPHABET, RoomRegistry


def test_create_room_with_single_host():
    registry = RoomRegistry(rng=random.Random(0))
    room = registry.create("sid-1", "Alice")

    assert len(room.code) == 6
    assert all(ch in CODE_ALPHABET for ch in room.code)
    assert room.phase == Phase.LOBBY
    assert room.current_round == 0
    assert room.host_id == "sid-1"
    assert [(p.id, p.is_host) for p in room.players] == [("sid-1", True)]
    assert len(registry) == 1


def test_get_is_case_insensitive_and_remove():
    registry = RoomRegistry(rng=random.Random(0))
    room = registry.create("sid-1", "Alice")

    assert registry.get(room.code.lower()) is room
    assert registry.get("ZZZZZZZ") is None
    assert registry.remove(room.code)
    assert not registry.remove(room.code)
    assert registry.get(room.code) is None


def test_codes_stay_unique_when_short_codes_collide():
    registry = RoomRegistry(code_length=1, rng=random.Random(5))
    codes = [registry.create(f"sid-{i}", "P").code for i in range(60)]

    assert len(set(codes)) == 60
    # Only 36 one-character codes exist, so longer codes must have been issued.
    assert any(len(c) > 1 for c in codes)


def test_public_lobbies_skip_private_and_started_rooms():
    registry = RoomRegistry(rng=random.Random(0))
    open_room = registry.create("a", "Alice")
    private_room = registry.create("b", "Bob")
    private_room.is_private = True
    busy_room = registry.create("c", "Cara")
    busy_room.phase = Phase.DESCRIBING

    lobbies = registry.list_public_joinable()
    assert lobbies == [
        {"code": open_room.code, "playerCount": 1, "maxRounds": 3, "host": "Alice"}
    ]


def test_find_by_player():
    registry = RoomRegistry(rng=random.Random(0))
    room = registry.create("a", "Alice")

    assert registry.find_by_player("a") is room
    assert registry.find_by_player("b") is None
