import threading
import time

import pytest

from roomrelay.core.coordinator import Coordinator
from roomrelay.core.errors import UsernameTaken

from conftest import FakeTransport

THREADS = 16


def _run(workers, timeout=10):
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout)
        assert not worker.is_alive()


@pytest.fixture
def live_coordinator():
    transport = FakeTransport()
    coordinator = Coordinator(transport)
    yield coordinator, transport
    coordinator.shutdown()


def test_concurrent_claims_on_one_username(live_coordinator):
    coordinator, transport = live_coordinator
    barrier = threading.Barrier(THREADS)
    winners, losers = [], []

    def claim(sid):
        barrier.wait()
        try:
            coordinator.join(sid, "alice", room="General")
        except UsernameTaken:
            losers.append(sid)
        else:
            winners.append(sid)

    _run([threading.Thread(target=claim, args=(f"sid-{i}",)) for i in range(THREADS)])

    assert len(winners) == 1
    assert len(losers) == THREADS - 1
    assert coordinator.resolve("alice") == winners[0]
    assert coordinator.online_users("General") == ["alice"]
    assert len(transport.events("onlineUsers", to="General")) == 1


def test_expiry_timer_races_with_joins_and_disconnects(live_coordinator):
    coordinator, transport = live_coordinator
    coordinator.create_room("Flash", expiry=time.time() * 1000 + 50)
    barrier = threading.Barrier(THREADS)
    deadline = time.monotonic() + 5

    def churn(index):
        sid, name = f"sid-{index}", f"user{index}"
        barrier.wait()
        rounds_after_expiry = 0
        while rounds_after_expiry < 20 and time.monotonic() < deadline:
            coordinator.join(sid, name, room="Flash")
            coordinator.disconnect(sid)
            if not coordinator.expiry_armed("Flash"):
                rounds_after_expiry += 1

    _run([threading.Thread(target=churn, args=(i,)) for i in range(THREADS)])

    assert not coordinator.expiry_armed("Flash")
    assert len(transport.events("roomExpiry", to="Flash")) == 1
    assert "Flash" not in coordinator.catalog()
    assert coordinator.online_users("Flash") == []
    for index in range(THREADS):
        assert coordinator.resolve(f"user{index}") is None

    # every presence broadcast lists each member at most once and only online-joined names
    for emission in transport.events("onlineUsers", to="Flash"):
        members = emission.args[0]
        assert len(members) == len(set(members))
        assert set(members) <= {f"user{i}" for i in range(THREADS)}
