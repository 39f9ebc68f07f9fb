"""Delivery estimator factory.

Provides get_estimator() / set_estimator() to swap implementations. The
distance-based estimator is the default; select another adapter through the
DELIVERY_ESTIMATOR environment variable.
"""

import os

from storefront.delivery.port import DeliveryEstimator

_current_estimator: DeliveryEstimator | None = None


def get_estimator() -> DeliveryEstimator:
    """Return the current delivery estimator (singleton)."""
    global _current_estimator
    if _current_estimator is None:
        adapter = os.environ.get("DELIVERY_ESTIMATOR", "distance")
        if adapter == "distance":
            from storefront.delivery.distance_adapter import DistanceEstimator

            _current_estimator = DistanceEstimator()
        elif adapter == "fake":
            from storefront.delivery.fake_adapter import FakeEstimator

            _current_estimator = FakeEstimator()
        else:
            raise ValueError(f"Unknown delivery estimator: {adapter}")
    return _current_estimator


def set_estimator(estimator: DeliveryEstimator) -> None:
    """Override the active delivery estimator (useful for tests)."""
    global _current_estimator
    _current_estimator = estimator


def reset_estimator() -> None:
    """Reset to the default estimator."""
    global _current_estimator
    _current_estimator = None
