def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.get_json() == {"ok": True, "rooms": 0}


def test_list_public_lobbies(client, sio_factory):
    host = sio_factory()
    code = host.emit("createRoom", {"nickname": "Alice"}, callback=True)["roomCode"]

    res = client.get("/api/rooms")
    assert res.status_code == 200
    assert res.get_json()["lobbies"] == [{"code": code, "playerCount": 1, "maxRounds": 3, "host": "Alice"}]


def test_room_state_hides_secrets(client, sio_factory):
    host = sio_factory()
    code = host.emit("createRoom", {"nickname": "Alice"}, callback=True)["roomCode"]
    guests = []
    for name in ("Bob", "Cara"):
        g = sio_factory()
        g.emit("joinRoom", {"roomCode": code, "nickname": name}, callback=True)
        g.emit("toggleReady", {"roomCode": code}, callback=True)
        guests.append(g)
    host.emit("startGame", {"roomCode": code}, callback=True)

    res = client.get(f"/api/rooms/{code.lower()}")
    assert res.status_code == 200
    state = res.get_json()
    assert state["code"] == code
    assert state["phase"] == "describing"
    assert state["currentRound"] == 1
    assert len(state["players"]) == 3
    for key in ("word", "imposterWord", "imposterId"):
        assert key not in state


def test_unknown_room_state(client):
    res = client.get("/api/rooms/NOPE12")
    assert res.status_code == 404
    assert res.get_json() == {"error": "room_not_found"}
