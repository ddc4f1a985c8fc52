"""ULID: 128-bit lexicographically sortable identifiers.

48 bits of Unix milliseconds followed by 80 random bits, written as 26
Crockford Base32 characters. The monotonic generator increments the random
field inside one millisecond and carries into the time field on overflow.
"""

import hashlib
import uuid

from core.errors import FormatError
from identifiers.base import SortableId
from identifiers.codec import Base32Codec
from identifiers.generator import FastGenerator, MonotonicGenerator, RegressionPolicy, TailReset
from identifiers.layout import BitLayout
from utils.timestamp import now_millis, to_epoch_units

ULID_CHARS = 26
ULID_BYTES = 16
TIME_CHARS = 10
RANDOM_CHARS = 16
TIME_BYTES = 6
RANDOM_BYTES = 10
ULID_CLOCK_DRIFT_TOLERANCE = 10_000  # ms

ULID_LAYOUT = BitLayout(128, RANDOM_BYTES * 8)


class Ulid(SortableId):
    __slots__ = ()

    LAYOUT = ULID_LAYOUT
    CODEC = Base32Codec(128, name="ULID")
    FORMAT = "ULID"
    EPOCH = 0

    MIN = None
    MAX = None

    @classmethod
    def from_time_and_bytes(cls, time, random_bytes):
        """Compose from Unix milliseconds (or a datetime) and 10 random bytes."""
        if not isinstance(random_bytes, (bytes, bytearray)) or len(random_bytes) != RANDOM_BYTES:
            raise FormatError(f"ULID random component must be {RANDOM_BYTES} bytes",
                              value=random_bytes, format=cls.FORMAT)
        return cls.from_parts(to_epoch_units(time), int.from_bytes(random_bytes, "big"))

    @classmethod
    def from_hash(cls, time, data):
        """Deterministic ULID: the random field is the SHA-256 prefix of ``data``."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls.from_time_and_bytes(time, hashlib.sha256(data).digest()[:RANDOM_BYTES])

    @classmethod
    def from_uuid(cls, value):
        return cls(value.int)

    @classmethod
    def min_for(cls, time):
        """Smallest ULID of a millisecond, for range queries."""
        return cls.from_parts(to_epoch_units(time), 0)

    @classmethod
    def max_for(cls, time):
        return cls.from_parts(to_epoch_units(time), ULID_LAYOUT.random_mask)

    @classmethod
    def time_of(cls, text):
        """Unix milliseconds encoded in a ULID string."""
        return cls.parse(text).timestamp

    @property
    def random_bytes(self):
        return self.random_component.to_bytes(RANDOM_BYTES, "big")

    def with_time(self, time):
        """Same random field, different millisecond."""
        return type(self).from_parts(to_epoch_units(time), self.random_component)

    def to_string(self, lowercase=False):
        return self.CODEC.encode(self.number, lowercase=lowercase)

    def lower(self):
        return self.to_string(lowercase=True)

    def to_uuid(self):
        return uuid.UUID(int=self.number)

    def to_rfc4122(self):
        """Force UUID version 4 and variant 2 bits. The result no longer sorts by time."""
        return type(self)(self.to_uuid_v4().int)

    def to_uuid_v4(self):
        return uuid.UUID(int=self.number, version=4)


Ulid.MIN = Ulid(0)
Ulid.MAX = Ulid(ULID_LAYOUT.value_mask)


def new_ulid_generator(clock=None, random_source=None, drift_tolerance=ULID_CLOCK_DRIFT_TOLERANCE,
                       regression_policy=RegressionPolicy.STALL):
    """Monotonic ULID generator."""
    return MonotonicGenerator(
        ULID_LAYOUT, Ulid, clock or now_millis, random_source,
        drift_tolerance=drift_tolerance,
        reset=TailReset.RANDOM,
        regression_policy=regression_policy,
    )


def new_fast_ulid_generator(clock=None, random_source=None):
    return FastGenerator(ULID_LAYOUT, Ulid, clock or now_millis, random_source)


_fast = new_fast_ulid_generator()


def fast_ulid():
    """80 fresh random bits on every call. No ordering inside a millisecond."""
    return _fast.generate()
