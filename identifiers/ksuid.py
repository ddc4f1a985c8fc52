"""KSUID: K-sortable unique identifiers.

Format: 4 bytes timestamp + 16 bytes payload = 27 char base62 string. The
timestamp counts seconds since the KSUID epoch (1400000000, 2014-05-13).
"""

from core.errors import FormatError
from identifiers.base import SortableId
from identifiers.codec import RadixCodec
from identifiers.generator import FastGenerator, MonotonicGenerator, RegressionPolicy, TailReset
from identifiers.layout import BitLayout
from utils.timestamp import now_seconds

KSUID_EPOCH = 1400000000
TIMESTAMP_BYTES = 4
PAYLOAD_BYTES = 16
TOTAL_BYTES = TIMESTAMP_BYTES + PAYLOAD_BYTES
KSUID_CHARS = 27
KSUID_CLOCK_DRIFT_TOLERANCE = 10  # seconds

KSUID_LAYOUT = BitLayout(TOTAL_BYTES * 8, PAYLOAD_BYTES * 8)


class Ksuid(SortableId):
    """20-byte KSUID. ``from_bytes`` pads or trims instead of rejecting."""

    __slots__ = ()

    LAYOUT = KSUID_LAYOUT
    CODEC = RadixCodec(62, KSUID_LAYOUT.total_bits, name="KSUID")
    FORMAT = "KSUID"
    EPOCH = KSUID_EPOCH
    UNITS_PER_SECOND = 1
    STRICT_BYTES = False

    @classmethod
    def from_payload(cls, time_component, payload):
        """Compose from seconds since the KSUID epoch and a 16-byte payload."""
        if not isinstance(payload, (bytes, bytearray)) or len(payload) != PAYLOAD_BYTES:
            raise FormatError(f"payload must be {PAYLOAD_BYTES} bytes", value=payload, format=cls.FORMAT)
        return cls.from_parts(time_component, int.from_bytes(payload, "big"))

    @property
    def payload(self):
        return self.random_component.to_bytes(PAYLOAD_BYTES, "big")

    def to_log_string(self):
        return (f"Ksuid[string = {self}, timestamp = {self.time_component}, "
                f"payload = {self.payload.hex()}, bytes = {self.hex()}]")


def new_ksuid_generator(monotonic=False, clock=None, random_source=None,
                        drift_tolerance=KSUID_CLOCK_DRIFT_TOLERANCE, regression_policy=RegressionPolicy.STALL):
    """KSUID generator; random payloads unless ``monotonic`` is set."""
    if not monotonic:
        return FastGenerator(KSUID_LAYOUT, Ksuid, clock or now_seconds, random_source, epoch=KSUID_EPOCH)
    return MonotonicGenerator(
        KSUID_LAYOUT, Ksuid, clock or now_seconds, random_source,
        epoch=KSUID_EPOCH,
        drift_tolerance=drift_tolerance,
        reset=TailReset.RANDOM,
        regression_policy=regression_policy,
    )


_fast = new_ksuid_generator()


def fast_ksuid():
    """Generate a KSUID with a fresh random payload."""
    return _fast.generate()


def generate_ksuid():
    """Generate a 27-character sortable unique ID."""
    return str(fast_ksuid())
