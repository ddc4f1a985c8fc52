"""Unit tests for the monotonic and fast generators."""

import io
import json
import threading

import pytest

from core.errors import BoundaryError, ConfigurationError
from identifiers.entropy import SequenceRandomSource
from identifiers.generator import FastGenerator, MonotonicGenerator, RegressionPolicy, TailReset
from identifiers.layout import BitLayout
from identifiers.tsid import TSID_EPOCH, TSID_LAYOUT, Tsid
from internal.logging import LogLevel, StructuredLogger
from utils.timestamp import FixedClock, now_millis

T = TSID_EPOCH + 1_000_000


def small_generator(clock, **kwargs):
    """12 time bits, 4 counter bits, raw int values."""
    kwargs.setdefault("random_source", SequenceRandomSource([0]))
    return MonotonicGenerator(BitLayout(16, 4), int, clock, **kwargs)


class TestMonotonicGenerator:
    """Tests for the advance and stall paths."""

    def test_concrete_counter_overflow(self):
        """A full 22-bit counter wraps to zero and carries one millisecond."""
        clock = FixedClock(T - 1)
        generator = MonotonicGenerator(TSID_LAYOUT, Tsid, clock, SequenceRandomSource([0x3FFFFF]),
                                       epoch=TSID_EPOCH)
        clock.set(T)
        first = generator.generate()
        second = generator.generate()

        assert first.time_component == T - TSID_EPOCH
        assert second.time_component - first.time_component == 1
        assert first.random_component == 0x3FFFFF
        assert second.random_component == 0x000000
        assert first < second

    def test_advance_resets_tail(self):
        """A later clock value takes a fresh tail."""
        clock = FixedClock(100)
        generator = small_generator(clock, random_source=SequenceRandomSource([3, 9]))
        clock.set(101)
        value = generator.generate()
        assert value == (101 << 4) | 9

    def test_zero_reset(self):
        """ZERO reset starts every time unit at counter 0."""
        clock = FixedClock(100)
        generator = small_generator(clock, reset=TailReset.ZERO, random_source=SequenceRandomSource([7]))
        clock.set(101)
        assert generator.generate() == 101 << 4

    def test_stall_increments(self):
        """Calls inside one time unit count up."""
        clock = FixedClock(100)
        generator = small_generator(clock, reset=TailReset.ZERO)
        values = [generator.generate() for _ in range(3)]
        assert values == [(100 << 4) | 1, (100 << 4) | 2, (100 << 4) | 3]

    def test_repeated_overflow_carries(self):
        """Each counter wrap advances the time field by exactly one."""
        clock = FixedClock(100)
        generator = small_generator(clock, reset=TailReset.ZERO)
        values = [generator.generate() for _ in range(48)]

        assert values == sorted(set(values))
        assert values[-1] >> 4 == 103
        assert values[-1] & 0xF == 0
        assert generator.get_stats()["overflows"] == 3
        assert generator.last_time == 103

    def test_clock_catches_up_after_carry(self):
        """Once the clock passes the carried time, it takes over again."""
        clock = FixedClock(100)
        generator = small_generator(clock, reset=TailReset.ZERO)
        for _ in range(16):
            generator.generate()
        assert generator.last_time == 101
        clock.set(105)
        assert generator.generate() >> 4 == 105

    def test_drift_within_tolerance_stalls(self):
        """A small backward step is a stall, not a regression."""
        clock = FixedClock(1000)
        generator = small_generator(clock, drift_tolerance=10)
        first = generator.generate()
        clock.set(995)
        second = generator.generate()
        assert second > first
        assert second >> 4 == 1000
        assert generator.get_stats()["regressions"] == 0

    def test_regression_stall_policy(self):
        """A large backward jump keeps the last time by default."""
        clock = FixedClock(1000)
        generator = small_generator(clock, drift_tolerance=10)
        first = generator.generate()
        clock.set(500)
        second = generator.generate()
        assert second > first
        assert second >> 4 == 1000
        assert generator.get_stats()["regressions"] == 1

    def test_regression_advance_policy(self):
        """ADVANCE moves one unit past the last time with a fresh tail."""
        clock = FixedClock(1000)
        generator = small_generator(clock, drift_tolerance=10, regression_policy=RegressionPolicy.ADVANCE,
                                    random_source=SequenceRandomSource([5]))
        first = generator.generate()
        clock.set(500)
        second = generator.generate()
        assert second > first
        assert second == (1001 << 4) | 5
        assert generator.get_stats()["regressions"] == 1

    def test_regression_warns_once_per_run(self, monkeypatch):
        """A clock stuck behind logs one warning until it recovers."""
        stream = io.StringIO()
        monkeypatch.setattr("internal.logging._logger", StructuredLogger(LogLevel.WARN, stream))
        clock = FixedClock(1000)
        generator = small_generator(clock, drift_tolerance=10)

        clock.set(500)
        for _ in range(5):
            generator.generate()
        clock.set(1000)
        generator.generate()
        clock.set(400)
        generator.generate()

        records = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert [r["msg"] for r in records] == ["clock regressed beyond drift tolerance"] * 2
        assert [r["clock"] for r in records] == [500, 400]
        assert generator.get_stats()["regressions"] == 6

    def test_policy_accepts_string(self):
        """Policies can be given by value."""
        generator = small_generator(FixedClock(1), regression_policy="advance")
        assert generator.regression_policy is RegressionPolicy.ADVANCE

    def test_negative_tolerance_rejected(self):
        """Drift tolerance must be non-negative."""
        with pytest.raises(ConfigurationError):
            small_generator(FixedClock(1), drift_tolerance=-1)

    def test_clock_before_epoch(self):
        """Times before the epoch do not fit the time field."""
        generator = MonotonicGenerator(TSID_LAYOUT, Tsid, FixedClock(TSID_EPOCH - 1), epoch=TSID_EPOCH)
        with pytest.raises(BoundaryError):
            generator.generate()

    def test_node_is_folded(self):
        """Node ids wider than the field fold into range."""
        layout = BitLayout(64, 22, node_bits=8)
        generator = MonotonicGenerator(layout, Tsid, FixedClock(T), node=0x1FF, epoch=TSID_EPOCH)
        assert generator.node == 0xFF
        assert layout.extract_node(generator.generate().number) == 0xFF

    def test_stats(self):
        """Stats report counts for each path."""
        clock = FixedClock(100)
        generator = small_generator(clock)
        generator.generate()
        clock.advance()
        generator.generate()
        stats = generator.get_stats()
        assert stats["mode"] == "monotonic"
        assert stats["generated"] == 2
        assert stats["stalls"] == 1
        assert stats["last_time"] == 101

    def test_callable(self):
        """Generators can be called directly."""
        generator = small_generator(FixedClock(100))
        assert generator() < generator()

    def test_monotonic_under_real_clock(self):
        """Sequential calls on the system clock strictly increase."""
        generator = MonotonicGenerator(TSID_LAYOUT, Tsid, now_millis, epoch=TSID_EPOCH, drift_tolerance=10_000)
        values = [generator.generate() for _ in range(5000)]
        assert all(a < b for a, b in zip(values, values[1:]))
        assert [str(v) for v in values] == sorted(str(v) for v in values)

    def test_concurrent_callers(self):
        """Threads sharing one generator never see duplicates or reordering."""
        generator = MonotonicGenerator(TSID_LAYOUT, Tsid, now_millis, epoch=TSID_EPOCH, drift_tolerance=10_000)
        results = [[] for _ in range(8)]
        barrier = threading.Barrier(len(results))

        def worker(out):
            barrier.wait()
            for _ in range(1000):
                out.append(generator.generate())

        threads = [threading.Thread(target=worker, args=(out,)) for out in results]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        merged = [value for out in results for value in out]
        assert len(set(merged)) == len(merged) == 8000
        for out in results:
            assert all(a < b for a, b in zip(out, out[1:]))
        assert generator.get_stats()["generated"] == 8000


class TestFastGenerator:
    """Tests for the unordered fast path."""

    def test_random_tail(self):
        """Each call draws a fresh tail."""
        generator = FastGenerator(BitLayout(16, 4), int, FixedClock(7), SequenceRandomSource([3, 1, 2]))
        assert [generator.generate() for _ in range(3)] == [(7 << 4) | 3, (7 << 4) | 1, (7 << 4) | 2]

    def test_counter_tail(self):
        """Counter mode counts up from a random seed, masked to width."""
        generator = FastGenerator(BitLayout(16, 4), int, FixedClock(7), SequenceRandomSource([14]), counter=True)
        assert [generator.generate() & 0xF for _ in range(3)] == [14, 15, 0]

    def test_counter_shared_across_threads(self):
        """Threads drawing from one counter never get the same tail."""
        generator = FastGenerator(TSID_LAYOUT, Tsid, FixedClock(T), SequenceRandomSource([0]),
                                  epoch=TSID_EPOCH, counter=True)
        results = [[] for _ in range(8)]
        barrier = threading.Barrier(len(results))

        def worker(out):
            barrier.wait()
            for _ in range(1000):
                out.append(generator.generate())

        threads = [threading.Thread(target=worker, args=(out,)) for out in results]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        tails = sorted(value.random_component for out in results for value in out)
        assert tails == list(range(8000))

    def test_stats(self):
        """Fast generators report their mode."""
        generator = FastGenerator(TSID_LAYOUT, Tsid, FixedClock(T), epoch=TSID_EPOCH)
        assert generator.get_stats()["mode"] == "fast"
        assert generator.generate().time_component == T - TSID_EPOCH
