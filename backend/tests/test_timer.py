from imposter.game.timer import TurnTimer


class _Recorder:
    def __init__(self):
        self.ticks = []
        self.expired = []
        self.spawned = []

    def on_tick(self, remaining, player_id):
        self.ticks.append((remaining, player_id))

    def on_expire(self, player_id):
        self.expired.append(player_id)

    def spawn(self, fn, *args):
        self.spawned.append((fn, args))


def _timer(rec, spawn=None):
    return TurnTimer(rec.on_tick, rec.on_expire, spawn=spawn, sleep=lambda _: None)


def test_tick_counts_down_and_expires_once():
    rec = _Recorder()
    timer = _timer(rec)
    timer.arm(3, "p1")
    assert timer.active

    for _ in range(5):
        timer.tick()

    assert rec.ticks == [(2, "p1"), (1, "p1"), (0, "p1")]
    assert rec.expired == ["p1"]
    assert not timer.active


def test_disarm_is_idempotent_and_stops_expiry():
    rec = _Recorder()
    timer = _timer(rec)
    timer.arm(1, "p1")
    timer.disarm()
    timer.disarm()
    timer.tick()

    assert rec.ticks == []
    assert rec.expired == []


def test_rearm_replaces_previous_countdown():
    rec = _Recorder()
    timer = _timer(rec)
    timer.arm(1, "p1")
    timer.arm(2, "p2")
    timer.tick()
    timer.tick()

    assert rec.expired == ["p2"]


def test_stale_background_countdown_exits_without_firing():
    rec = _Recorder()
    timer = _timer(rec, spawn=rec.spawn)
    timer.arm(1, "p1")
    timer.arm(1, "p2")
    assert len(rec.spawned) == 2

    stale_fn, stale_args = rec.spawned[0]
    stale_fn(*stale_args)
    assert rec.expired == []

    live_fn, live_args = rec.spawned[1]
    live_fn(*live_args)
    assert rec.expired == ["p2"]
    assert not timer.active
