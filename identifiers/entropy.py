"""Random sources feeding the generators.

Every source exposes ``bits(count)`` returning a non-negative integer below
``2**count`` and ``bytes(length)`` returning ``length`` random bytes.
"""

import random
import secrets
import threading

from core.errors import ConfigurationError


class SecureRandomSource:
    """CSPRNG-backed source (``secrets``). Safe to share between threads."""

    __slots__ = ()

    def bits(self, count):
        if count <= 0:
            return 0
        return secrets.randbits(count)

    def bytes(self, length):
        return secrets.token_bytes(length)


class SeededRandomSource:
    """Reproducible source backed by ``random.Random``."""

    __slots__ = ("_random", "_lock")

    def __init__(self, seed=None):
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def bits(self, count):
        if count <= 0:
            return 0
        with self._lock:
            return self._random.getrandbits(count)

    def bytes(self, length):
        with self._lock:
            return self._random.getrandbits(length * 8).to_bytes(length, "big") if length else b""


class SequenceRandomSource:
    """Deterministic source replaying a fixed list of integers.

    Each draw consumes the next value (cycling) and masks it to the
    requested width; ``bytes`` packs the masked value big-endian.
    """

    __slots__ = ("_values", "_index", "_lock")

    def __init__(self, values):
        self._values = list(values)
        if not self._values:
            raise ConfigurationError("SequenceRandomSource needs at least one value", setting="values")
        self._index = 0
        self._lock = threading.Lock()

    def _next(self):
        with self._lock:
            value = self._values[self._index % len(self._values)]
            self._index += 1
            return value

    def bits(self, count):
        if count <= 0:
            return 0
        return self._next() & ((1 << count) - 1)

    def bytes(self, length):
        return self.bits(length * 8).to_bytes(length, "big")
