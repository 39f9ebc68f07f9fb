"""Fake delivery estimator — fixed quote for testing and development."""

from storefront.delivery.port import Coordinates, DeliveryEstimator, DeliveryQuote


class FakeEstimator(DeliveryEstimator):
    """Quotes the same cost and duration for every trip."""

    def __init__(self, cost: float = 5.0, minutes: int = 30, distance_km: float = 2.0):
        self.configure(cost, minutes, distance_km)
        self.requests: list[tuple[Coordinates, Coordinates]] = []

    def configure(self, cost: float = 5.0, minutes: int = 30, distance_km: float = 2.0):
        """Configure the quote returned by the fake estimator."""
        self.quote = DeliveryQuote(cost=cost, estimated_time_minutes=minutes, distance_km=distance_km)

    def estimate(self, vendor_location: Coordinates, customer_location: Coordinates) -> DeliveryQuote:
        self.requests.append((vendor_location, customer_location))
        return self.quote
