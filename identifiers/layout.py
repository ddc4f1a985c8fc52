"""Bit layouts for time-sortable identifiers.

A layout splits a fixed-width unsigned integer into three fields, most
significant first::

    | time | node | counter |
           \\_ random field _/

The node field is optional (zero width) and lives in the high bits of the
random field. Layouts are immutable and shared freely between threads.
"""

from core.errors import ConfigurationError

MAX_NODE_BITS = 20


class BitLayout:
    __slots__ = ("total_bits", "time_bits", "node_bits", "counter_bits",
                 "random_bits", "time_mask", "node_mask", "counter_mask",
                 "random_mask", "value_mask", "time_shift", "node_shift")

    def __init__(self, total_bits, random_bits, node_bits=0, max_node_bits=MAX_NODE_BITS):
        if total_bits <= 0 or total_bits % 8:
            raise ConfigurationError(f"Total width must be a positive multiple of 8: {total_bits}",
                                     setting="total_bits")
        if not 0 < random_bits < total_bits:
            raise ConfigurationError(f"Random field width out of range [1, {total_bits - 1}]: {random_bits}",
                                     setting="random_bits")
        limit = min(max_node_bits, random_bits)
        if not 0 <= node_bits <= limit:
            raise ConfigurationError(f"Node bits out of range [0, {limit}]: {node_bits}", setting="node_bits")

        self.total_bits = total_bits
        self.random_bits = random_bits
        self.node_bits = node_bits
        self.counter_bits = random_bits - node_bits
        self.time_bits = total_bits - random_bits

        self.time_shift = random_bits
        self.node_shift = self.counter_bits
        self.time_mask = (1 << self.time_bits) - 1
        self.node_mask = (1 << node_bits) - 1
        self.counter_mask = (1 << self.counter_bits) - 1
        self.random_mask = (1 << random_bits) - 1
        self.value_mask = (1 << total_bits) - 1

    @classmethod
    def for_node_count(cls, total_bits, random_bits, node_count, max_node_bits=MAX_NODE_BITS):
        """Layout with enough node bits for ``node_count`` instances."""
        return cls(total_bits, random_bits, node_bits_for(node_count), max_node_bits)

    @property
    def byte_length(self):
        return self.total_bits // 8

    def compose(self, time, node=0, counter=0):
        """Pack the three fields into one integer. Fields are masked to width."""
        return (((time & self.time_mask) << self.time_shift)
                | ((node & self.node_mask) << self.node_shift)
                | (counter & self.counter_mask))

    def extract_time(self, value):
        return (value >> self.time_shift) & self.time_mask

    def extract_node(self, value):
        return (value >> self.node_shift) & self.node_mask

    def extract_counter(self, value):
        return value & self.counter_mask

    def extract_random(self, value):
        """Node and counter together, as one unsigned integer."""
        return value & self.random_mask

    def fold_node(self, node):
        """Bring an out-of-range node id into range by modulo."""
        return node % (self.node_mask + 1)

    def __eq__(self, other):
        if not isinstance(other, BitLayout):
            return NotImplemented
        return (self.total_bits, self.random_bits, self.node_bits) == \
            (other.total_bits, other.random_bits, other.node_bits)

    def __hash__(self):
        return hash((self.total_bits, self.random_bits, self.node_bits))

    def __repr__(self):
        return (f"BitLayout(time={self.time_bits}, node={self.node_bits}, "
                f"counter={self.counter_bits})")


def node_bits_for(node_count):
    """Bits needed to address ``node_count`` nodes: ``ceil(log2(node_count))``."""
    if node_count is None or node_count < 1:
        raise ConfigurationError(f"Node count must be a positive integer: {node_count}", setting="node_count")
    return (node_count - 1).bit_length()
