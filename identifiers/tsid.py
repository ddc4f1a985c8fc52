"""TSID: 64-bit time-sorted identifiers.

Layout: 42 bits of milliseconds since 2020-01-01T00:00:00Z, then a 22-bit
random field made of an optional node id (0 to 20 bits) and a counter. The
canonical string is 13 Crockford Base32 characters.
"""

import functools
import os
import re

from core.errors import FormatError
from identifiers.base import SortableId
from identifiers.codec import Base32Codec, RadixCodec
from identifiers.entropy import SecureRandomSource
from identifiers.generator import FastGenerator, MonotonicGenerator, RegressionPolicy, TailReset
from identifiers.layout import BitLayout, node_bits_for
from utils.timestamp import now_millis, to_datetime, to_epoch_units

TSID_BYTES = 8
TSID_CHARS = 13
TSID_EPOCH = 1577836800000  # 2020-01-01T00:00:00Z
RANDOM_BITS = 22
RANDOM_MASK = (1 << RANDOM_BITS) - 1
TSID_CLOCK_DRIFT_TOLERANCE = 10_000  # ms

NODE_BITS_256 = 8
NODE_BITS_1024 = 10
NODE_BITS_4096 = 12
DEFAULT_NODE_BITS = NODE_BITS_1024

NODE_ENV = "TSID_NODE"
NODE_COUNT_ENV = "TSID_NODE_COUNT"

TSID_LAYOUT = BitLayout(64, RANDOM_BITS)

_DECIMAL = re.compile(r"-?[0-9]+")


@functools.lru_cache(maxsize=None)
def _radix_codec(base):
    return RadixCodec(base, 64, name=f"base-{base} TSID")


class Tsid(SortableId):
    __slots__ = ()

    LAYOUT = TSID_LAYOUT
    CODEC = Base32Codec(64, name="TSID")
    FORMAT = "TSID"
    EPOCH = TSID_EPOCH

    @classmethod
    def from_number_string(cls, text):
        """Parse the decimal form, signed or unsigned."""
        if not isinstance(text, str) or not _DECIMAL.fullmatch(text):
            raise FormatError(f"Invalid numeric TSID: {text!r}", value=text, format=cls.FORMAT)
        number = int(text)
        if not -(1 << 63) <= number <= TSID_LAYOUT.value_mask:
            raise FormatError(f"Numeric TSID out of 64-bit range: {text}", value=text, format=cls.FORMAT)
        return cls.from_signed(number)

    @classmethod
    def decode(cls, text, base):
        """Parse the fixed-length base-N form (2 <= base <= 62)."""
        return cls(_radix_codec(base).decode(text))

    def encode(self, base):
        return _radix_codec(base).encode(self.number)

    def to_string(self, lowercase=False):
        return self.CODEC.encode(self.number, lowercase=lowercase)

    def get_timestamp(self, custom_epoch):
        """Unix milliseconds, for TSIDs generated with a custom epoch."""
        return self.time_component + to_epoch_units(custom_epoch)

    def get_instant(self, custom_epoch):
        return to_datetime(self.get_timestamp(custom_epoch))


# Decimal or 0x/0o/0b prefixed. Unparseable values count as unset.
def env_int(name):
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return int(raw.strip(), 0)
    except ValueError:
        return None


def resolve_node_bits(node_bits=None, node_count=None):
    """Explicit bits, else ceil(log2(node count)), else the 1024-node default."""
    if node_bits is not None:
        return node_bits
    if node_count is None:
        node_count = env_int(NODE_COUNT_ENV)
    if node_count is not None:
        return node_bits_for(node_count)
    return DEFAULT_NODE_BITS


def resolve_node(node, node_bits, random_source):
    """Explicit node, else ``TSID_NODE``, else a random node in range."""
    if node is not None:
        return node
    node = env_int(NODE_ENV)
    if node is not None:
        return node
    return random_source.bits(node_bits)


def new_tsid_generator(node=None, node_bits=None, node_count=None, epoch=TSID_EPOCH, clock=None,
                       random_source=None, drift_tolerance=TSID_CLOCK_DRIFT_TOLERANCE,
                       regression_policy=RegressionPolicy.STALL):
    """Monotonic TSID generator.

    Node ids outside the configured width are folded in by modulo, so two
    generators with node ids that fold together will collide. Keeping node ids
    distinct is the deployment's job.
    """
    random_source = random_source or SecureRandomSource()
    layout = BitLayout(64, RANDOM_BITS, resolve_node_bits(node_bits, node_count))
    return MonotonicGenerator(
        layout, Tsid, clock or now_millis, random_source,
        node=resolve_node(node, layout.node_bits, random_source),
        epoch=to_epoch_units(epoch),
        drift_tolerance=drift_tolerance,
        reset=TailReset.RANDOM,
        regression_policy=regression_policy,
    )


def new_tsid_generator_256(node=None, **kwargs):
    return new_tsid_generator(node=node, node_bits=NODE_BITS_256, **kwargs)


def new_tsid_generator_1024(node=None, **kwargs):
    return new_tsid_generator(node=node, node_bits=NODE_BITS_1024, **kwargs)


def new_tsid_generator_4096(node=None, **kwargs):
    return new_tsid_generator(node=node, node_bits=NODE_BITS_4096, **kwargs)


def new_fast_tsid_generator(clock=None, random_source=None, epoch=TSID_EPOCH):
    """Counter-tailed TSIDs, up to 2**22 per millisecond, no node, no ordering."""
    return FastGenerator(TSID_LAYOUT, Tsid, clock or now_millis, random_source,
                         epoch=to_epoch_units(epoch), counter=True)


# Process-wide counter for fast_tsid(); seeded randomly at import.
_fast = new_fast_tsid_generator()


def fast_tsid():
    """Quick TSID for log correlation and similar.

    Ignores ``TSID_NODE``: separate processes calling this can collide.
    """
    return _fast.generate()
