"""Delivery estimator port (abstract interface).

Checkout asks the estimator for the cost and duration of getting an order
from the vendor to the customer. Adapters range from the distance-based
placeholder used by default to a courier service integration.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude {self.latitude} is out of range")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude {self.longitude} is out of range")


@dataclass(frozen=True)
class DeliveryQuote:
    """Estimated delivery cost and duration."""

    cost: float
    estimated_time_minutes: int
    distance_km: float


class DeliveryEstimator(ABC):
    """Abstract delivery cost estimator."""

    @abstractmethod
    def estimate(self, vendor_location: Coordinates, customer_location: Coordinates) -> DeliveryQuote:
        """Quote a delivery between two points."""
        ...
