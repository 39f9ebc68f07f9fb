"""Distance-based delivery estimator.

Prices a bike delivery from the great-circle (haversine) distance between
vendor and customer: a base fee plus a per-kilometre rate, and a fixed
handover time plus a per-kilometre riding time. Stands in for a courier
service quote when none is configured.
"""

import math

from storefront.delivery.port import Coordinates, DeliveryEstimator, DeliveryQuote

EARTH_RADIUS_KM = 6371.0


def haversine_km(origin: Coordinates, destination: Coordinates) -> float:
    """Great-circle distance between two points, in kilometres."""
    d_lat = math.radians(destination.latitude - origin.latitude)
    d_lon = math.radians(destination.longitude - origin.longitude)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.latitude))
        * math.cos(math.radians(destination.latitude))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class DistanceEstimator(DeliveryEstimator):
    def __init__(
        self,
        base_cost: float = 10.0,
        cost_per_km: float = 8.0,
        base_minutes: float = 5.0,
        minutes_per_km: float = 2.0,
    ) -> None:
        self.base_cost = base_cost
        self.cost_per_km = cost_per_km
        self.base_minutes = base_minutes
        self.minutes_per_km = minutes_per_km

    def estimate(self, vendor_location: Coordinates, customer_location: Coordinates) -> DeliveryQuote:
        distance = haversine_km(vendor_location, customer_location)
        return DeliveryQuote(
            cost=round(self.base_cost + distance * self.cost_per_km, 2),
            estimated_time_minutes=round(self.base_minutes + distance * self.minutes_per_km),
            distance_km=round(distance, 1),
        )
