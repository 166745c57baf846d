import time
from datetime import datetime


def now_ms() -> int:
    return int(time.time() * 1000)


def clock_time(dt=None) -> str:
    """Wall-clock time of day in the ``3:04:05 PM`` form clients display."""
    dt = dt or datetime.now()
    hour = dt.hour % 12 or 12
    return f"{hour}:{dt.minute:02d}:{dt.second:02d} {'AM' if dt.hour < 12 else 'PM'}"


def seconds_until(epoch_ms, now=None) -> float:
    now = time.time() if now is None else now
    return max(0.0, epoch_ms / 1000.0 - now)
