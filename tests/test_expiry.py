from roomrelay.core.expiry import RoomExpiryScheduler

from conftest import NOW, ManualTimers


def _scheduler():
    fired = []
    timers = ManualTimers()
    scheduler = RoomExpiryScheduler(lambda room, token: fired.append((room, token)), timer_factory=timers, clock=lambda: NOW)
    return scheduler, timers, fired


def test_arm_schedules_until_expiry():
    scheduler, timers, _ = _scheduler()
    delay = scheduler.arm("Pop", NOW * 1000 + 5000)
    assert delay == 5.0
    assert timers.last.delay == 5.0
    assert timers.last.started and timers.last.daemon
    assert scheduler.is_armed("Pop")


def test_past_expiry_fires_immediately():
    scheduler, timers, _ = _scheduler()
    assert scheduler.arm("Pop", NOW * 1000 - 5000) == 0.0


def test_rearm_cancels_previous_timer():
    scheduler, timers, fired = _scheduler()
    scheduler.arm("Pop", NOW * 1000 + 5000)
    first = timers.last
    scheduler.arm("Pop", NOW * 1000 + 9000)
    assert first.cancelled
    first.fire()
    assert fired == []


def test_claim_accepts_only_current_token():
    scheduler, timers, fired = _scheduler()
    scheduler.arm("Pop", NOW * 1000 + 5000)
    stale_token = timers.last.args[1]
    scheduler.arm("Pop", NOW * 1000 + 9000)
    assert scheduler.claim("Pop", stale_token) is False
    current = timers.last.args[1]
    assert scheduler.claim("Pop", current) is True
    assert not scheduler.is_armed("Pop")
    assert scheduler.claim("Pop", current) is False


def test_disarm():
    scheduler, timers, _ = _scheduler()
    assert scheduler.disarm("Pop") is False
    scheduler.arm("Pop", NOW * 1000 + 5000)
    assert scheduler.disarm("Pop") is True
    assert timers.last.cancelled
