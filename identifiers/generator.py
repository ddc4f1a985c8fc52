"""Identifier generators.

``MonotonicGenerator`` keeps the last time value and a counter tail behind a
single lock. Every call reads the clock and then takes one of two paths:

* advance: the clock moved past the last time. Record it and reset the tail
  (fresh random draw or zero).
* stall: the clock equals the last time, or sits behind it by no more than
  the drift tolerance. Increment the tail. When the tail overflows its width
  it wraps to zero and the carry bumps the time by one unit.

A clock that regressed beyond the tolerance is handled by the regression
policy. Both policies still produce a value above the previous one. A run of
regressed calls logs one warning, on its first call.

``FastGenerator`` skips all of that and composes the current time with a
fresh random tail (or a process counter, behind its own small lock). It keeps
no last-time state and gives no ordering guarantee within one time unit.
"""

import itertools
import threading
from enum import Enum

from core.errors import BoundaryError, ConfigurationError
from identifiers.entropy import SecureRandomSource
from internal.logging import get_logger


class RegressionPolicy(Enum):
    STALL = "stall"        # keep the last time, take the stall path
    ADVANCE = "advance"    # last time + 1 unit, fresh tail


class TailReset(Enum):
    RANDOM = "random"
    ZERO = "zero"


def _time_field(layout, time, epoch, format):
    field = time - epoch
    if not 0 <= field <= layout.time_mask:
        raise BoundaryError(f"Clock value {time} is outside the {format} time range", format=format)
    return field


class MonotonicGenerator:
    """Strictly increasing identifiers from one generator instance."""

    def __init__(self, layout, factory, clock, random_source=None, node=0, epoch=0,
                 drift_tolerance=0, reset=TailReset.RANDOM, regression_policy=RegressionPolicy.STALL):
        if drift_tolerance is None or drift_tolerance < 0:
            raise ConfigurationError(f"Drift tolerance must be >= 0: {drift_tolerance}", setting="drift_tolerance")
        self.layout = layout
        self.factory = factory
        self.format = getattr(factory, "FORMAT", "id")
        self.epoch = epoch
        self.drift_tolerance = drift_tolerance
        self.reset = TailReset(reset)
        self.regression_policy = RegressionPolicy(regression_policy)
        self._clock = clock
        self._random = random_source or SecureRandomSource()

        self.node = layout.fold_node(node)
        if self.node != node:
            get_logger().warn("node folded into range", format=self.format, node=node,
                              folded=self.node, node_bits=layout.node_bits)

        self._lock = threading.Lock()
        with self._lock:
            self._last_time = clock()
            self._counter = self._fresh_tail()
            self._generated = 0
            self._stalls = 0
            self._overflows = 0
            self._regressions = 0
            self._regressing = False

        get_logger().debug("generator ready", format=self.format, mode="monotonic", node=self.node,
                           node_bits=layout.node_bits, counter_bits=layout.counter_bits)

    def _fresh_tail(self):
        if self.reset is TailReset.ZERO:
            return 0
        return self._random.bits(self.layout.counter_bits)

    def _stall(self):
        self._stalls += 1
        self._counter += 1
        if self._counter > self.layout.counter_mask:
            self._counter = 0
            self._last_time += 1
            self._overflows += 1

    def generate(self):
        regressed_from = None
        with self._lock:
            now = self._clock()
            last = self._last_time
            if now > last:
                self._last_time = now
                self._counter = self._fresh_tail()
                self._regressing = False
            elif now >= last - self.drift_tolerance:
                self._stall()
                self._regressing = False
            else:
                self._regressions += 1
                # Warn once per run of regressed calls
                if not self._regressing:
                    regressed_from = now
                self._regressing = True
                if self.regression_policy is RegressionPolicy.ADVANCE:
                    self._last_time = last + 1
                    self._counter = self._fresh_tail()
                else:
                    self._stall()
            time = _time_field(self.layout, self._last_time, self.epoch, self.format)
            value = self.layout.compose(time, self.node, self._counter)
            self._generated += 1

        if regressed_from is not None:
            get_logger().warn("clock regressed beyond drift tolerance", format=self.format,
                              clock=regressed_from, last=last, tolerance=self.drift_tolerance,
                              policy=self.regression_policy.value)
        return self.factory(value)

    __call__ = generate

    @property
    def last_time(self):
        with self._lock:
            return self._last_time

    def get_stats(self):
        with self._lock:
            return {
                "format": self.format,
                "mode": "monotonic",
                "node": self.node,
                "last_time": self._last_time,
                "generated": self._generated,
                "stalls": self._stalls,
                "overflows": self._overflows,
                "regressions": self._regressions,
            }


class FastGenerator:
    """Unordered identifiers: current time plus a fresh tail on every call."""

    def __init__(self, layout, factory, clock, random_source=None, node=0, epoch=0, counter=False):
        self.layout = layout
        self.factory = factory
        self.format = getattr(factory, "FORMAT", "id")
        self.epoch = epoch
        self.node = layout.fold_node(node)
        self._clock = clock
        self._random = random_source or SecureRandomSource()
        self._counter = itertools.count(self._random.bits(layout.counter_bits)) if counter else None
        # Free-threaded builds make no promise about next() on a shared count
        self._counter_lock = threading.Lock()

    def generate(self):
        time = _time_field(self.layout, self._clock(), self.epoch, self.format)
        if self._counter is not None:
            with self._counter_lock:
                tail = next(self._counter)
        else:
            tail = self._random.bits(self.layout.counter_bits)
        return self.factory(self.layout.compose(time, self.node, tail))

    __call__ = generate

    def get_stats(self):
        return {"format": self.format, "mode": "fast", "node": self.node}
