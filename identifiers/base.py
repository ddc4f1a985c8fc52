"""Immutable value type shared by the identifier formats."""

import functools

from core.errors import BoundaryError, FormatError
from identifiers.codec import pack, unpack
from utils.timestamp import to_datetime


@functools.total_ordering
class SortableId:
    """A fixed-width unsigned integer split into time and random fields.

    Subclasses set ``LAYOUT`` (a ``BitLayout``), ``CODEC`` (string codec),
    ``FORMAT`` (display name), ``EPOCH`` (Unix time, in the format's units, of
    time field zero) and ``UNITS_PER_SECOND``.

    Ordering compares the time field first and the random field second, both
    as unsigned integers. That is the same order as the big-endian bytes and
    as the fixed-length strings.
    """

    __slots__ = ("_value",)

    LAYOUT = None
    CODEC = None
    FORMAT = "id"
    EPOCH = 0
    UNITS_PER_SECOND = 1000
    STRICT_BYTES = True

    def __init__(self, value):
        if isinstance(value, bool) or not isinstance(value, int):
            raise FormatError(f"{self.FORMAT} value must be an int, got {type(value).__name__}",
                              value=value, format=self.FORMAT)
        if not 0 <= value <= self.LAYOUT.value_mask:
            raise FormatError(f"{self.FORMAT} value does not fit {self.LAYOUT.total_bits} unsigned bits",
                              value=str(value), format=self.FORMAT)
        object.__setattr__(self, "_value", value)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __reduce__(self):
        return type(self), (self._value,)

    # -- construction --------------------------------------------------------

    @classmethod
    def parse(cls, text):
        """Decode the canonical string form. Raises ``FormatError``."""
        return cls(cls.CODEC.decode(text))

    @classmethod
    def is_valid(cls, text):
        return cls.CODEC.is_valid(text)

    @classmethod
    def from_bytes(cls, data):
        return cls(unpack(data, cls.LAYOUT.byte_length, strict=cls.STRICT_BYTES, name=cls.FORMAT))

    @classmethod
    def from_signed(cls, number):
        """Accept a two's complement signed integer of the layout's width."""
        return cls(number & cls.LAYOUT.value_mask)

    @classmethod
    def from_parts(cls, time, random=0):
        """Compose from a time field value and a random field value."""
        layout = cls.LAYOUT
        if not 0 <= time <= layout.time_mask:
            raise FormatError(f"Invalid {cls.FORMAT} time value: {time}", value=str(time), format=cls.FORMAT)
        if not 0 <= random <= layout.random_mask:
            raise FormatError(f"Invalid {cls.FORMAT} random value", value=str(random), format=cls.FORMAT)
        return cls((time << layout.time_shift) | random)

    # -- decomposition -------------------------------------------------------

    @property
    def number(self):
        return self._value

    @property
    def time_component(self):
        """Time units since the format's epoch."""
        return self.LAYOUT.extract_time(self._value)

    @property
    def random_component(self):
        return self.LAYOUT.extract_random(self._value)

    @property
    def timestamp(self):
        """Time units since the Unix epoch."""
        return self.time_component + self.EPOCH

    @property
    def instant(self):
        return to_datetime(self.timestamp, self.UNITS_PER_SECOND)

    def __iter__(self):
        # time, random = some_id
        yield self.time_component
        yield self.random_component

    def to_signed(self):
        bits = self.LAYOUT.total_bits
        if self._value >> (bits - 1):
            return self._value - (1 << bits)
        return self._value

    def to_bytes(self):
        return pack(self._value, self.LAYOUT.byte_length)

    def hex(self):
        return self.to_bytes().hex()

    # -- arithmetic ----------------------------------------------------------

    def increment(self):
        """Next value; the random field carries into the time field."""
        if self._value == self.LAYOUT.value_mask:
            raise BoundaryError(f"Cannot increment the maximum {self.FORMAT}", format=self.FORMAT)
        return type(self)(self._value + 1)

    def decrement(self):
        if self._value == 0:
            raise BoundaryError(f"Cannot decrement the minimum {self.FORMAT}", format=self.FORMAT)
        return type(self)(self._value - 1)

    # -- ordering and identity -----------------------------------------------

    def sort_key(self):
        return self.time_component, self.random_component

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._value == other._value

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __hash__(self):
        return hash((self.FORMAT, self._value))

    def __int__(self):
        return self._value

    def __str__(self):
        return self.CODEC.encode(self._value)

    def __repr__(self):
        return f"{type(self).__name__}('{self}')"
