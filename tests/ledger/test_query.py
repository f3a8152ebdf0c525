"""
Tests for QueryView.

============================================================
PURPOSE
============================================================
1. Latest / historical metric lookups
2. Latest / historical rate lookups per rate kind
3. Request validation (params, limit)

============================================================
"""

from decimal import Decimal

import pytest

from core.exceptions import InvalidRequestError, NotFoundError
from ledger.dispatcher import PostDispatcher
from ledger.models import MetricType, RateKind
from ledger.query import QueryView
from tests.ledger.factories import make_rate_metric, submit


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def dispatcher(session):
    return PostDispatcher.from_session(session)


@pytest.fixture
def view(session):
    return QueryView.from_session(session)


# ============================================================
# METRIC QUERY TESTS
# ============================================================

class TestMetricQueries:
    """Tests for metric lookups."""

    def test_latest_after_out_of_order_posts(self, dispatcher, view):
        """Test the newest time wins regardless of arrival order."""
        submit(dispatcher, make_rate_metric("k", "1", 5))
        submit(dispatcher, make_rate_metric("k", "2", 3))
        submit(dispatcher, make_rate_metric("k", "3", 7))

        assert view.latest_metric("k").value == "3"
        assert [m.update_time for m in view.historical_metrics("k")] == [7, 5, 3]

    def test_historical_limit(self, dispatcher, view):
        """Test limit caps the newest-first list."""
        for time in range(1, 6):
            submit(dispatcher, make_rate_metric("k", str(time), time))

        assert [m.update_time for m in view.historical_metrics("k", 2)] == [5, 4]
        assert view.historical_metrics("k", 0) == []
        assert len(view.historical_metrics("k", 99)) == 5

    def test_unknown_key(self, view):
        with pytest.raises(NotFoundError) as exc_info:
            view.latest_metric("nope")

        assert exc_info.value.key == "nope"
        with pytest.raises(NotFoundError):
            view.historical_metrics("nope")

    def test_all_latest_empty(self, view):
        assert view.all_latest_metrics() == []

    def test_all_latest_ordered_by_code_point(self, dispatcher, view):
        """Test uppercase keys sort before lowercase ones."""
        for key in ("b", "a", "B"):
            dispatcher.submit(key, "v", MetricType.other("x"), 1, 1)

        assert [m.key for m in view.all_latest_metrics()] == ["B", "a", "b"]

    @pytest.mark.parametrize("limit", [-1, 1.5, True, "2"])
    def test_invalid_limit(self, dispatcher, view, limit):
        submit(dispatcher, make_rate_metric("k", "1", 1))

        with pytest.raises(InvalidRequestError):
            view.historical_metrics("k", limit)


# ============================================================
# RATE QUERY TESTS
# ============================================================

class TestRateQueries:
    """Tests for rate lookups."""

    def test_latest_rate_with_params_none(self, dispatcher, view):
        """Test the latest redemption rate after a single post."""
        submit(dispatcher, make_rate_metric("k", "1.02", 10, denom="stuosmo"))

        record = view.latest_rate(RateKind.REDEMPTION, "stuosmo", None)

        assert record.rate == Decimal("1.02")
        assert record.update_time == 10
        assert record.to_response() == {"redemption_rate": "1.02", "update_time": 10}

    def test_params_must_be_none(self, dispatcher, view):
        """Test any params value is refused."""
        submit(dispatcher, make_rate_metric("k", "1.02", 10, denom="stuosmo"))

        with pytest.raises(InvalidRequestError) as exc_info:
            view.latest_rate(RateKind.REDEMPTION, "stuosmo", {"twap": 10})

        assert str(exc_info.value) == "invalid query request - params must be None"
        with pytest.raises(InvalidRequestError):
            view.historical_rates(RateKind.REDEMPTION, "stuosmo", params=b"")

    def test_historical_rates(self, dispatcher, view):
        """Test three rates come back newest first, and limit applies."""
        submit(dispatcher, make_rate_metric("stuosmo_rr", "1.1", 1, denom="stuosmo"))
        submit(dispatcher, make_rate_metric("stuosmo_rr", "1.2", 2, denom="stuosmo"))
        submit(dispatcher, make_rate_metric("stuosmo_rr", "1.3", 3, denom="stuosmo"))

        rates = view.historical_rates(RateKind.REDEMPTION, "stuosmo")
        limited = view.historical_rates(RateKind.REDEMPTION, "stuosmo", limit=2)

        assert [r.rate for r in rates] == [Decimal("1.3"), Decimal("1.2"), Decimal("1.1")]
        assert limited == rates[:2]

    def test_rate_kinds_are_separate(self, dispatcher, view):
        """Test the same denom has independent redemption and purchase histories."""
        submit(dispatcher, make_rate_metric("rr", "1.1", 1, denom="milkTIA"))
        submit(dispatcher, make_rate_metric("pr", "0.9", 2, denom="milkTIA",
                                            metric_type=MetricType.purchase_rate()))

        assert view.latest_rate(RateKind.REDEMPTION, "milkTIA").rate == Decimal("1.1")
        assert view.latest_rate(RateKind.PURCHASE, "milkTIA").rate == Decimal("0.9")

    def test_unknown_denom(self, view):
        with pytest.raises(NotFoundError) as exc_info:
            view.latest_rate(RateKind.PURCHASE, "ustrd")

        assert exc_info.value.store == "purchase_rate"
        with pytest.raises(NotFoundError):
            view.historical_rates(RateKind.PURCHASE, "ustrd")
