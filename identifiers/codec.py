"""Stateless string and byte codecs for fixed-width identifiers.

``Base32Codec`` encodes 5 bits per symbol, most significant group first, over
Crockford's alphabet. Decoding is case-insensitive and folds the ambiguous
letters ``O`` to ``0`` and ``I``/``L`` to ``1``. When the symbol count carries
more bits than the value (13 symbols = 65 bits for a 64-bit value), the
leading symbol must keep those surplus high bits clear.

``RadixCodec`` encodes by repeated division in any base from 2 to 62 over
``0-9A-Za-z`` and rejects decoded values wider than the layout.

Both produce fixed-length strings whose ordering under the alphabet's
character order matches numeric ordering.
"""

from core.errors import ConfigurationError, FormatError

CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
BASE62_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

_FOLDED = {"O": "0", "I": "1", "L": "1"}


def _build_table(alphabet):
    table = {}
    for value, char in enumerate(alphabet):
        table[char.upper()] = value
        table[char.lower()] = value
    for char, target in _FOLDED.items():
        if char not in table and target in table:
            table[char] = table[target]
            table[char.lower()] = table[target]
    return table


_CROCKFORD_TABLE = _build_table(CROCKFORD_ALPHABET)


class Base32Codec:
    __slots__ = ("total_bits", "length", "name", "_upper", "_lower", "_table", "_overflow_mask", "_value_mask")

    def __init__(self, total_bits, name="base32", alphabet=CROCKFORD_ALPHABET):
        if len(alphabet) != 32 or len(set(alphabet.upper())) != 32:
            raise ConfigurationError("Base32 alphabet needs 32 distinct case-insensitive symbols",
                                     setting="alphabet")
        self.total_bits = total_bits
        self.name = name
        self.length = -(-total_bits // 5)
        self._upper = alphabet.upper()
        self._lower = alphabet.lower()
        self._table = _CROCKFORD_TABLE if alphabet == CROCKFORD_ALPHABET else _build_table(alphabet)
        surplus = self.length * 5 - total_bits
        self._overflow_mask = ((1 << surplus) - 1) << (5 - surplus)
        self._value_mask = (1 << total_bits) - 1

    def encode(self, value, lowercase=False):
        if not 0 <= value <= self._value_mask:
            raise FormatError(f"Value does not fit {self.total_bits} bits", value=str(value), format=self.name)
        alphabet = self._lower if lowercase else self._upper
        return "".join(alphabet[(value >> shift) & 31]
                       for shift in range((self.length - 1) * 5, -1, -5))

    def decode(self, text):
        if not isinstance(text, str):
            raise FormatError(f"Invalid {self.name}: expected a string", value=text, format=self.name)
        if len(text) != self.length:
            raise FormatError(f"Invalid {self.name} length {len(text)}, expected {self.length}: \"{text}\"",
                              value=text, format=self.name)
        value = 0
        for char in text:
            symbol = self._table.get(char)
            if symbol is None:
                raise FormatError(f"Invalid {self.name} character {char!r}: \"{text}\"",
                                  value=text, format=self.name)
            value = (value << 5) | symbol
        if value >> self.total_bits:
            raise FormatError(f"Invalid {self.name} (overflow): \"{text}\"", value=text, format=self.name)
        return value

    def is_valid(self, text):
        """Cheap validity check without building an error."""
        if not isinstance(text, str) or len(text) != self.length:
            return False
        if self._table.get(text[0], 0) & self._overflow_mask:
            return False
        return all(char in self._table for char in text)


class RadixCodec:
    __slots__ = ("base", "total_bits", "length", "name", "_alphabet", "_table", "_value_mask")

    def __init__(self, base, total_bits, name=None):
        if not 2 <= base <= len(BASE62_ALPHABET):
            raise ConfigurationError(f"Invalid base: {base}", setting="base")
        self.base = base
        self.total_bits = total_bits
        self.name = name or f"base-{base}"
        self._alphabet = BASE62_ALPHABET[:base]
        self._table = {char: value for value, char in enumerate(self._alphabet)}
        self._value_mask = (1 << total_bits) - 1
        length = 1
        while base ** length <= self._value_mask:
            length += 1
        self.length = length

    def encode(self, value):
        if not 0 <= value <= self._value_mask:
            raise FormatError(f"Value does not fit {self.total_bits} bits", value=str(value), format=self.name)
        chars = []
        for _ in range(self.length):
            value, remainder = divmod(value, self.base)
            chars.append(self._alphabet[remainder])
        return "".join(reversed(chars))

    def decode(self, text):
        if not isinstance(text, str):
            raise FormatError(f"Invalid {self.name}: expected a string", value=text, format=self.name)
        if len(text) != self.length:
            raise FormatError(f"Invalid {self.name} length {len(text)}, expected {self.length}: \"{text}\"",
                              value=text, format=self.name)
        value = 0
        for char in text:
            digit = self._table.get(char)
            if digit is None:
                raise FormatError(f"Invalid {self.name} character {char!r}: \"{text}\"",
                                  value=text, format=self.name)
            value = value * self.base + digit
        if value > self._value_mask:
            raise FormatError(f"Invalid {self.name} value (overflow): \"{text}\"", value=text, format=self.name)
        return value

    def is_valid(self, text):
        try:
            self.decode(text)
        except FormatError:
            return False
        return True


def pack(value, length):
    """Big-endian, fixed-length bytes for an unsigned value."""
    return value.to_bytes(length, "big")


def unpack(data, length, strict=True, name="bytes"):
    """Unsigned value from big-endian bytes.

    Strict mode rejects any other length. Lenient mode left-pads short input
    with zeros and keeps the trailing ``length`` bytes of long input.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise FormatError(f"Invalid {name}: expected bytes", value=data, format=name)
    data = bytes(data)
    if len(data) != length:
        if strict:
            raise FormatError(f"{name} must be {length} bytes long, got {len(data)}",
                              value=data.hex(), format=name)
        data = data[-length:].rjust(length, b"\x00")
    return int.from_bytes(data, "big")
