"""Tests for the delivery estimators and the estimator factory."""

import pytest

from storefront.delivery import get_estimator, reset_estimator, set_estimator
from storefront.delivery.distance_adapter import DistanceEstimator, haversine_km
from storefront.delivery.fake_adapter import FakeEstimator
from storefront.delivery.port import Coordinates

CAPE_TOWN = Coordinates(-33.9249, 18.4241)
STELLENBOSCH = Coordinates(-33.9321, 18.8602)


class TestCoordinates:
    def test_latitude_range(self):
        with pytest.raises(ValueError):
            Coordinates(91.0, 0.0)

    def test_longitude_range(self):
        with pytest.raises(ValueError):
            Coordinates(0.0, -181.0)


class TestHaversine:
    def test_same_point(self):
        assert haversine_km(CAPE_TOWN, CAPE_TOWN) == 0

    def test_known_distance(self):
        assert haversine_km(CAPE_TOWN, STELLENBOSCH) == pytest.approx(40.3, abs=0.5)

    def test_symmetric(self):
        assert haversine_km(CAPE_TOWN, STELLENBOSCH) == pytest.approx(haversine_km(STELLENBOSCH, CAPE_TOWN))


class TestDistanceEstimator:
    def test_quote_for_same_point(self):
        quote = DistanceEstimator().estimate(CAPE_TOWN, CAPE_TOWN)

        assert quote.cost == 10.0
        assert quote.estimated_time_minutes == 5
        assert quote.distance_km == 0.0

    def test_quote_grows_with_distance(self):
        quote = DistanceEstimator().estimate(CAPE_TOWN, STELLENBOSCH)
        distance = haversine_km(CAPE_TOWN, STELLENBOSCH)

        assert quote.cost == round(10 + distance * 8, 2)
        assert quote.estimated_time_minutes == round(5 + distance * 2)
        assert quote.distance_km == round(distance, 1)

    def test_custom_rates(self):
        estimator = DistanceEstimator(base_cost=0, cost_per_km=1, base_minutes=0, minutes_per_km=1)
        quote = estimator.estimate(CAPE_TOWN, STELLENBOSCH)

        assert quote.cost == round(haversine_km(CAPE_TOWN, STELLENBOSCH), 2)


class TestFakeEstimator:
    def test_fixed_quote(self):
        estimator = FakeEstimator(cost=4.0, minutes=12)
        quote = estimator.estimate(CAPE_TOWN, STELLENBOSCH)

        assert quote.cost == 4.0
        assert quote.estimated_time_minutes == 12
        assert estimator.requests == [(CAPE_TOWN, STELLENBOSCH)]

    def test_configure(self):
        estimator = FakeEstimator()
        estimator.configure(cost=1.0, minutes=3)

        assert estimator.estimate(CAPE_TOWN, CAPE_TOWN).cost == 1.0


class TestEstimatorFactory:
    def test_distance_by_default(self, monkeypatch):
        monkeypatch.delenv("DELIVERY_ESTIMATOR", raising=False)
        reset_estimator()

        assert isinstance(get_estimator(), DistanceEstimator)

    def test_fake_from_environment(self, monkeypatch):
        monkeypatch.setenv("DELIVERY_ESTIMATOR", "fake")
        reset_estimator()

        assert isinstance(get_estimator(), FakeEstimator)

    def test_unknown_adapter(self, monkeypatch):
        monkeypatch.setenv("DELIVERY_ESTIMATOR", "teleport")
        reset_estimator()

        with pytest.raises(ValueError):
            get_estimator()

    def test_set_and_reset(self):
        estimator = FakeEstimator()
        set_estimator(estimator)

        assert get_estimator() is estimator
        reset_estimator()
        assert get_estimator() is not estimator

    def test_singleton(self):
        assert get_estimator() is get_estimator()
