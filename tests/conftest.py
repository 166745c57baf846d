from collections import defaultdict, namedtuple

import pytest

from roomrelay import create_app
from roomrelay.core.coordinator import Coordinator

Emission = namedtuple("Emission", "event args to skip_sid recipients")

NOW = 1_700_000_000.0


class FakeTransport:
    """Records emissions and resolves who would have received each one."""

    def __init__(self):
        self.emitted = []
        self.rooms = defaultdict(set)

    def emit(self, event, *args, to=None, skip_sid=None):
        if to is None:
            recipients = None
        elif to in self.rooms:
            recipients = set(self.rooms[to])
        else:
            recipients = {to}
        if recipients is not None and skip_sid is not None:
            recipients.discard(skip_sid)
        self.emitted.append(Emission(event, args, to, skip_sid, recipients))

    def enter_room(self, sid, room):
        self.rooms[room].add(sid)

    def leave_room(self, sid, room):
        self.rooms[room].discard(sid)

    def close_room(self, room):
        self.rooms.pop(room, None)

    def events(self, name, to=None):
        return [e for e in self.emitted if e.event == name and (to is None or e.to == to)]

    def received(self, sid, name=None):
        return [
            e
            for e in self.emitted
            if (e.recipients is None or sid in e.recipients) and (name is None or e.event == name)
        ]

    def texts(self, room):
        return [e.args[0]["text"] for e in self.events("message", to=room) if e.args[0].get("username") == "System"]

    def clear(self):
        self.emitted.clear()


class ManualTimer:
    def __init__(self, delay, function, args=()):
        self.delay = delay
        self.function = function
        self.args = args
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args)


class ManualTimers:
    def __init__(self):
        self.created = []

    def __call__(self, delay, function, args=()):
        timer = ManualTimer(delay, function, args)
        self.created.append(timer)
        return timer

    @property
    def last(self):
        return self.created[-1]


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def timers():
    return ManualTimers()


@pytest.fixture
def coordinator(transport, timers):
    coordinator = Coordinator(transport, timer_factory=timers, clock=lambda: NOW)
    yield coordinator
    coordinator.shutdown()


@pytest.fixture
def app():
    app = create_app({"TESTING": True})
    yield app
    app.extensions["roomrelay"].shutdown()
