import logging
import threading
import time
from typing import Callable, Dict, Tuple

from roomrelay.utils.time import seconds_until

logger = logging.getLogger(__name__)


class RoomExpiryScheduler:
    """One cancellable timer per public room.

    Each armed timer carries a token. ``on_expire(room, token)`` is called from
    the timer thread and must call :meth:`claim` before acting, so a timer that
    was disarmed or replaced after it started firing does nothing.
    """

    def __init__(self, on_expire: Callable[[str, object], None], timer_factory=threading.Timer, clock=time.time):
        self._on_expire = on_expire
        self._timer_factory = timer_factory
        self._clock = clock
        self._timers: Dict[str, Tuple[object, object]] = {}

    def arm(self, room: str, expiry_ms: float) -> float:
        self.disarm(room)
        delay = seconds_until(expiry_ms, self._clock())
        token = object()
        timer = self._timer_factory(delay, self._on_expire, args=(room, token))
        timer.daemon = True
        self._timers[room] = (timer, token)
        timer.start()
        logger.info("Room %s expires in %.1fs", room, delay)
        return delay

    def disarm(self, room: str) -> bool:
        entry = self._timers.pop(room, None)
        if entry is None:
            return False
        entry[0].cancel()
        return True

    def claim(self, room: str, token) -> bool:
        entry = self._timers.get(room)
        if entry is None or entry[1] is not token:
            return False
        del self._timers[room]
        return True

    def is_armed(self, room: str) -> bool:
        return room in self._timers

    def cancel_all(self):
        for room in list(self._timers):
            self.disarm(room)
