"""
Unit tests for SampleBuffer correctness.

These tests verify the core invariants of the sliding window:
1. Length never exceeds capacity; the oldest samples are evicted first
2. Invalid input (NaN appends, short replacements, None) is absorbed
3. Snapshots are independent, read-only float32 copies
4. Threshold notifications are edge-triggered and delivered outside the lock
5. Thread safety under concurrent appends
"""
from __future__ import annotations

import math
import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from sparkline.core.detection.threshold import ThresholdState
from sparkline.core.sample_buffer import SampleBuffer
from sparkline.shared.models import DEFAULT_CAPACITY, MAX_CAPACITY, MIN_CAPACITY


class TestCapacity:
    """Capacity configuration and FIFO eviction."""

    def test_default_capacity(self):
        assert SampleBuffer().capacity == DEFAULT_CAPACITY == 50

    @pytest.mark.parametrize(
        "requested, expected",
        [(0, MIN_CAPACITY), (5, MIN_CAPACITY), (10, 10), (500, 500), (1000, 1000), (5000, MAX_CAPACITY)],
    )
    def test_capacity_is_clamped(self, requested, expected):
        assert SampleBuffer(requested).capacity == expected
        buf = SampleBuffer()
        assert buf.set_capacity(requested) == expected
        assert buf.capacity == expected

    def test_append_evicts_oldest(self):
        """When full, appending drops the oldest sample."""
        buf = SampleBuffer(10)
        for v in range(12):
            buf.append(v)

        np.testing.assert_array_equal(buf.snapshot(), np.arange(2, 12, dtype=np.float32))

    def test_capacity_decrease_evicts_immediately(self):
        buf = SampleBuffer(20)
        buf.extend(range(20))

        buf.set_capacity(10)

        assert len(buf) == 10
        np.testing.assert_array_equal(buf.snapshot(), np.arange(10, 20, dtype=np.float32))

    def test_capacity_increase_keeps_contents(self):
        buf = SampleBuffer(10)
        buf.extend(range(10))

        buf.set_capacity(20)
        buf.extend(range(10, 15))

        np.testing.assert_array_equal(buf.snapshot(), np.arange(15, dtype=np.float32))


class TestAppend:
    """Single and bulk appends."""

    def test_append_nan_is_ignored(self):
        """Appending NaN leaves length and contents unchanged."""
        buf = SampleBuffer()
        buf.append(1.0)
        before = buf.snapshot()

        assert buf.append(float("nan")) is False

        np.testing.assert_array_equal(buf.snapshot(), before)

    def test_append_nan_to_empty_buffer(self):
        buf = SampleBuffer()
        buf.append(float("nan"))
        assert len(buf) == 0

    def test_append_accepts_infinity(self):
        buf = SampleBuffer()
        assert buf.append(float("inf")) is True
        assert buf.append(float("-inf")) is True
        snap = buf.snapshot()
        assert snap[0] == np.inf
        assert snap[1] == -np.inf

    def test_extend_none_or_empty_is_noop(self):
        buf = SampleBuffer()
        buf.append(3.0)

        assert buf.extend(None) == 0
        assert buf.extend([]) == 0
        np.testing.assert_array_equal(buf.snapshot(), [3.0])

    def test_extend_drops_nan_and_keeps_order(self):
        buf = SampleBuffer()
        added = buf.extend([1.0, float("nan"), 2.0, float("nan"), 3.0])

        assert added == 3
        np.testing.assert_array_equal(buf.snapshot(), [1.0, 2.0, 3.0])

    def test_extend_larger_than_capacity_keeps_most_recent(self):
        buf = SampleBuffer(10)
        buf.extend([100.0, 101.0])

        buf.extend(range(25))

        np.testing.assert_array_equal(buf.snapshot(), np.arange(15, 25, dtype=np.float32))

    def test_extend_accepts_numpy_arrays(self):
        buf = SampleBuffer()
        buf.extend(np.array([1.5, 2.5], dtype=np.float64))
        np.testing.assert_array_almost_equal(buf.snapshot(), [1.5, 2.5])

    def test_extend_rejects_2d_input(self):
        buf = SampleBuffer()
        with pytest.raises(ValueError):
            buf.extend(np.zeros((2, 3)))


class TestReplace:
    """Replace-all semantics."""

    @pytest.mark.parametrize("values", [None, [], [1.0], np.array([7.0])])
    def test_short_replace_is_noop(self, values):
        """Replacing with fewer than two samples leaves the window unchanged."""
        buf = SampleBuffer()
        buf.extend([1.0, 2.0, 3.0])
        before = buf.snapshot()

        assert buf.replace(values) is False

        np.testing.assert_array_equal(buf.snapshot(), before)

    def test_replace_swaps_contents(self):
        buf = SampleBuffer()
        buf.extend([1.0, 2.0, 3.0])

        assert buf.replace([9.0, 8.0]) is True

        np.testing.assert_array_equal(buf.snapshot(), [9.0, 8.0])

    def test_replace_keeps_trailing_capacity_window(self):
        """Oversized input keeps the most recent `capacity` values."""
        buf = SampleBuffer(10)
        buf.replace(list(range(25)))
        np.testing.assert_array_equal(buf.snapshot(), np.arange(15, 25, dtype=np.float32))

    def test_replace_does_not_filter_nan(self):
        buf = SampleBuffer()
        buf.replace([1.0, float("nan"), 3.0])

        snap = buf.snapshot()
        assert snap.size == 3
        assert math.isnan(snap[1])


class TestSnapshot:
    """Snapshot isolation."""

    def test_snapshot_is_float32_and_read_only(self):
        buf = SampleBuffer()
        buf.extend([1.0, 2.0])
        snap = buf.snapshot()

        assert snap.dtype == np.float32
        assert not snap.flags.writeable
        with pytest.raises(ValueError):
            snap[0] = 5.0

    def test_snapshot_is_not_affected_by_later_mutation(self):
        buf = SampleBuffer()
        buf.extend([1.0, 2.0])
        snap = buf.snapshot()

        buf.append(3.0)
        buf.replace([7.0, 8.0])

        np.testing.assert_array_equal(snap, [1.0, 2.0])

    def test_consecutive_snapshots_are_identical(self):
        buf = SampleBuffer()
        buf.extend([4.0, 5.0, 6.0])
        np.testing.assert_array_equal(buf.snapshot(), buf.snapshot())

    def test_empty_snapshot(self):
        snap = SampleBuffer().snapshot()
        assert snap.shape == (0,)
        assert snap.dtype == np.float32

    def test_clear(self):
        buf = SampleBuffer()
        buf.extend([1.0, 2.0])
        buf.clear()
        assert len(buf) == 0


class TestThresholdNotifications:
    """Edge-triggered threshold notifications."""

    def test_fires_once_with_threshold_value(self):
        buf = SampleBuffer(threshold=10.0)
        events = []
        buf.subscribe(events.append)

        buf.append(5.0)
        buf.append(15.0)
        buf.append(20.0)

        assert events == [10.0]
        assert buf.state is ThresholdState.FIRED

    def test_fires_again_after_excursion_ends(self):
        """A new event requires every qualifying sample to leave the window first."""
        buf = SampleBuffer(10, threshold=10.0)
        events = []
        buf.subscribe(events.append)

        buf.append(15.0)
        buf.extend([1.0] * 9)
        assert buf.state is ThresholdState.FIRED

        buf.append(1.0)  # evicts the 15
        assert buf.state is ThresholdState.ARMED
        assert events == [10.0]

        buf.append(12.0)
        assert events == [10.0, 10.0]

    def test_unset_threshold_never_fires(self):
        buf = SampleBuffer()
        events = []
        buf.subscribe(events.append)

        buf.extend([1e9, 2e9])

        assert events == []
        assert buf.state is ThresholdState.ARMED
        assert math.isnan(buf.threshold)

    def test_replace_and_capacity_changes_reevaluate(self):
        buf = SampleBuffer(20, threshold=50.0)
        events = []
        buf.subscribe(events.append)

        buf.replace([60.0] + [1.0] * 15)
        assert events == [50.0]

        buf.set_capacity(10)  # evicts the 60
        assert buf.state is ThresholdState.ARMED

        buf.replace([1.0, 55.0])
        assert events == [50.0, 50.0]

    def test_changing_threshold_rearms(self):
        buf = SampleBuffer(threshold=10.0)
        events = []
        buf.subscribe(events.append)

        buf.append(15.0)
        buf.set_threshold(12.0)
        assert buf.state is ThresholdState.ARMED

        buf.append(1.0)
        assert events == [10.0, 12.0]

    def test_nan_append_does_not_evaluate(self):
        buf = SampleBuffer(threshold=10.0)
        events = []
        buf.subscribe(events.append)

        buf.append(float("nan"))
        buf.extend([float("nan")])

        assert events == []

    def test_unsubscribe(self):
        buf = SampleBuffer(threshold=1.0)
        events = []
        unsubscribe = buf.subscribe(events.append)
        unsubscribe()

        buf.append(5.0)

        assert events == []

    def test_failing_subscriber_does_not_break_mutation(self):
        buf = SampleBuffer(threshold=1.0)
        events = []

        def bad(_value):
            raise RuntimeError("boom")

        buf.subscribe(bad)
        buf.subscribe(events.append)

        assert buf.append(5.0) is True
        assert events == [1.0]
        assert len(buf) == 1

    def test_subscriber_may_call_back_into_buffer(self):
        """Notifications run after the lock is released, so re-entry cannot deadlock."""
        buf = SampleBuffer(threshold=1.0)
        seen = []
        buf.subscribe(lambda _value: seen.append(buf.snapshot().tolist()))

        buf.append(5.0)

        assert seen == [[5.0]]


class TestConcurrency:
    """Stress tests for concurrent mutation."""

    def test_concurrent_appends_respect_capacity(self):
        """10 threads x 1000 appends never exceed capacity or corrupt values."""
        buf = SampleBuffer(1000)
        n_threads, per_thread = 10, 1000

        def writer(thread_id: int) -> None:
            for j in range(per_thread):
                buf.append(thread_id * per_thread + j)

        with ThreadPoolExecutor(max_workers=n_threads) as pool:
            list(pool.map(writer, range(n_threads)))

        snap = buf.snapshot()
        assert len(snap) == 1000
        assert snap.min() >= 0
        assert snap.max() < n_threads * per_thread
        # No duplicates, and each writer's samples keep their relative order.
        assert len(np.unique(snap)) == len(snap)
        for thread_id in range(n_threads):
            mine = snap[(snap >= thread_id * per_thread) & (snap < (thread_id + 1) * per_thread)]
            assert np.all(np.diff(mine) > 0)

    def test_snapshots_during_writes_are_consistent(self):
        buf = SampleBuffer(100)
        stop = threading.Event()
        errors = []

        def reader() -> None:
            while not stop.is_set():
                snap = buf.snapshot()
                if snap.size > 100:
                    errors.append(snap.size)

        t = threading.Thread(target=reader)
        t.start()
        try:
            for i in range(5000):
                if i % 7 == 0:
                    buf.extend(np.arange(i, i + 30))
                else:
                    buf.append(i)
        finally:
            stop.set()
            t.join()

        assert errors == []
        assert len(buf) == 100
