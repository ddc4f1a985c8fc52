"""Timestamp and clock utilities.

Generators take a clock as a zero-argument callable returning an integer
count of time units since the Unix epoch. ``now_millis`` and ``now_seconds``
are the system clocks; ``FixedClock`` is a settable clock for tests and
replays.
"""

import threading
import time
from datetime import datetime, timezone


def now_micros():
    """Current time in microseconds since Unix epoch."""
    return time.time_ns() // 1_000


def now_millis():
    """Current time in milliseconds since Unix epoch."""
    return time.time_ns() // 1_000_000


def now_seconds():
    """Current time in whole seconds since Unix epoch."""
    return time.time_ns() // 1_000_000_000


def format_timestamp(epoch_us=None):
    """Format timestamp as ISO 8601 with microseconds."""
    if epoch_us is None:
        epoch_us = now_micros()

    dt = datetime.fromtimestamp(epoch_us / 1_000_000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z"


def to_datetime(value, unit=1000):
    """Convert a Unix time count to an aware UTC datetime.

    ``unit`` is the number of ticks per second (1000 for milliseconds,
    1 for seconds).
    """
    seconds, ticks = divmod(value, unit)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(
        microsecond=ticks * 1_000_000 // unit
    )


def to_epoch_units(value, unit=1000):
    """Unix time count for an int or an aware datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        delta = value - _UNIX_EPOCH
        return (delta.days * 86_400 + delta.seconds) * unit + delta.microseconds * unit // 1_000_000
    return int(value)


_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class FixedClock:
    """A clock that only moves when told to."""

    __slots__ = ("_value", "_lock")

    def __init__(self, value=0):
        self._value = value
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            return self._value

    def set(self, value):
        with self._lock:
            self._value = value

    def advance(self, delta=1):
        with self._lock:
            self._value += delta
            return self._value
