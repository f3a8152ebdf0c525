"""
Tests for BoundedTimeSeries.

============================================================
PURPOSE
============================================================
Covers ordering, dedup-by-time, front eviction and the
newest-first read projections of the bounded history.

============================================================
"""

import random
from dataclasses import dataclass

import pytest

from ledger.history import AddOutcome, BoundedTimeSeries


# ============================================================
# FIXTURES
# ============================================================

@dataclass(frozen=True)
class DummyItem:
    """Minimal time-carrying item."""
    value: int
    update_time: int

    def time(self) -> int:
        return self.update_time

    def to_dict(self):
        return {"value": self.value, "update_time": self.update_time}

    @classmethod
    def from_dict(cls, raw):
        return cls(raw["value"], raw["update_time"])


def values(series):
    """Stored values, oldest first."""
    return [item.value for item in series]


def times(series):
    return [item.time() for item in series]


@pytest.fixture
def full_series():
    """Capacity-5 series built from out-of-order times, then pushed over capacity."""
    series = BoundedTimeSeries(capacity=5)
    series.add(DummyItem(100, 1))
    series.add(DummyItem(200, 2))
    series.add(DummyItem(300, 4))
    series.add(DummyItem(400, 5))
    series.add(DummyItem(500, 3))
    series.add(DummyItem(600, 6))
    return series


# ============================================================
# INSERTION TESTS
# ============================================================

class TestAdd:
    """Tests for add()."""

    def test_out_of_order_insert_is_sorted(self):
        """Test times [1,2,4,5,3] end up ascending."""
        series = BoundedTimeSeries(capacity=5)
        for value, time in [(100, 1), (200, 2), (300, 4), (400, 5), (500, 3)]:
            assert series.add(DummyItem(value, time)) is AddOutcome.INSERTED

        assert times(series) == [1, 2, 3, 4, 5]
        assert values(series) == [100, 200, 500, 300, 400]

    def test_new_item_over_capacity_evicts_oldest(self, full_series):
        """Test adding time 6 to a full series drops time 1."""
        assert times(full_series) == [2, 3, 4, 5, 6]
        assert values(full_series) == [200, 500, 300, 400, 600]

    def test_eviction_outcome_reported(self):
        """Test the outcome of an add that pushes out the oldest item."""
        series = BoundedTimeSeries(capacity=2)
        series.add(DummyItem(1, 1))
        series.add(DummyItem(2, 2))

        assert series.add(DummyItem(3, 3)) is AddOutcome.EVICTED_OLDEST
        assert times(series) == [2, 3]

    def test_older_than_full_window_is_dropped(self, full_series):
        """Test an item older than everything in a full series is a no-op."""
        before = values(full_series)

        outcome = full_series.add(DummyItem(700, 0))

        assert outcome is AddOutcome.DROPPED
        assert values(full_series) == before
        assert len(full_series) == 5

    def test_older_item_kept_when_not_full(self):
        """Test a backfilled item is kept while there is room."""
        series = BoundedTimeSeries(capacity=3)
        series.add(DummyItem(5, 5))

        assert series.add(DummyItem(1, 1)) is AddOutcome.INSERTED
        assert times(series) == [1, 5]

    def test_same_time_replaces_in_place(self, full_series):
        """Test a duplicate time replaces the stored item without eviction."""
        outcome = full_series.add(DummyItem(800, 2))

        assert outcome is AddOutcome.REPLACED
        assert values(full_series) == [800, 500, 300, 400, 600]
        assert len(full_series) == 5

    def test_replace_in_middle_keeps_length(self):
        """Test replacing an interior item."""
        series = BoundedTimeSeries(capacity=10)
        for time in (1, 2, 3):
            series.add(DummyItem(time * 10, time))

        series.add(DummyItem(99, 2))

        assert values(series) == [10, 99, 30]

    def test_capacity_one_keeps_newest(self):
        """Test a single-slot series."""
        series = BoundedTimeSeries(capacity=1)
        series.add(DummyItem(1, 10))
        series.add(DummyItem(2, 20))
        series.add(DummyItem(3, 5))

        assert values(series) == [2]

    def test_random_distinct_times_stay_sorted_and_bounded(self):
        """Test arbitrary distinct insert orders keep the invariants."""
        rng = random.Random(1234)
        for _ in range(50):
            capacity = rng.randint(1, 12)
            arrivals = rng.sample(range(1000), rng.randint(0, 40))
            series = BoundedTimeSeries(capacity=capacity)

            for time in arrivals:
                series.add(DummyItem(time, time))
                stored = times(series)
                assert len(stored) <= capacity
                assert all(a < b for a, b in zip(stored, stored[1:]))

    def test_in_order_arrivals_keep_latest_window(self):
        """Test ascending arrivals retain exactly the newest capacity items."""
        series = BoundedTimeSeries(capacity=4)
        for time in range(10):
            series.add(DummyItem(time, time))

        assert times(series) == [6, 7, 8, 9]


# ============================================================
# READ TESTS
# ============================================================

class TestReads:
    """Tests for the newest-first projections."""

    def test_empty_series(self):
        """Test reads on an empty series."""
        series = BoundedTimeSeries()

        assert series.capacity == 100
        assert series.get_latest() is None
        assert series.get_latest_range(3) == []
        assert series.get_all() == []

    def test_get_latest(self, full_series):
        """Test the newest item is returned."""
        full_series.add(DummyItem(800, 2))
        assert full_series.get_latest().value == 600

    def test_get_latest_range(self, full_series):
        """Test the n most recent items, newest first."""
        full_series.add(DummyItem(800, 2))

        assert [i.value for i in full_series.get_latest_range(3)] == [600, 400, 300]

    def test_get_latest_range_beyond_length(self, full_series):
        """Test n larger than the series returns everything."""
        assert full_series.get_latest_range(50) == full_series.get_all()

    def test_get_latest_range_zero(self, full_series):
        assert full_series.get_latest_range(0) == []

    def test_get_latest_range_is_prefix_of_get_all(self, full_series):
        """Test every range is a prefix of get_all()."""
        everything = full_series.get_all()
        for n in range(len(everything) + 2):
            assert full_series.get_latest_range(n) == everything[:n]

    def test_get_all(self, full_series):
        """Test all items, newest first."""
        full_series.add(DummyItem(800, 2))

        assert [i.value for i in full_series.get_all()] == [600, 400, 300, 500, 800]

    def test_reads_do_not_mutate(self, full_series):
        """Test projections return copies."""
        full_series.get_all().clear()
        full_series.get_latest_range(2).clear()

        assert len(full_series) == 5


# ============================================================
# SERIALIZATION TESTS
# ============================================================

class TestSerialization:
    """Tests for the stored form."""

    def test_round_trip_keeps_capacity_and_order(self, full_series):
        """Test to_dict/from_dict preserve the series."""
        raw = full_series.to_dict(DummyItem.to_dict)
        restored = BoundedTimeSeries.from_dict(raw, DummyItem.from_dict)

        assert raw["capacity"] == 5
        assert restored.capacity == 5
        assert values(restored) == values(full_series)

    def test_unsorted_payload_rejected(self):
        """Test a stored payload that breaks ordering is refused."""
        raw = {
            "capacity": 5,
            "items": [
                {"value": 1, "update_time": 3},
                {"value": 2, "update_time": 3},
            ],
        }

        with pytest.raises(ValueError):
            BoundedTimeSeries.from_dict(raw, DummyItem.from_dict)
