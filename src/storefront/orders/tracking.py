"""Order tracking helpers for the order status screen.

The engine never receives driver positions. Tracking shows progress by
mapping the elapsed share of the delivery window onto the lifecycle, and
renders the remaining time as a short label.
"""

import math
from datetime import UTC, datetime, timedelta

from storefront.orders.order import LIFECYCLE, Order, OrderStatus, as_utc

DEFAULT_TRACKING_WINDOW = timedelta(minutes=25)


def status_for_progress(elapsed_seconds: float, total_seconds: float) -> OrderStatus:
    """Lifecycle status matching the elapsed share of the delivery window.

    The window is split into equal slices, one per step after ``pending``;
    once the window has passed, the order reads as delivered.
    """
    if total_seconds <= 0 or elapsed_seconds >= total_seconds:
        return OrderStatus.DELIVERED
    if elapsed_seconds <= 0:
        return OrderStatus.PENDING

    steps = len(LIFECYCLE) - 1
    index = int(elapsed_seconds * steps / total_seconds)
    return LIFECYCLE[min(index, steps)]


def format_eta(estimated_delivery: datetime | None, now: datetime | None = None) -> str:
    if estimated_delivery is None:
        return "Calculating..."

    now = as_utc(now) or datetime.now(UTC)
    remaining = (as_utc(estimated_delivery) - now).total_seconds()
    if remaining <= 0:
        return "Arriving now"

    minutes = math.floor(remaining / 60)
    if minutes < 1:
        return "Less than 1 minute"
    if minutes == 1:
        return "1 minute"
    return f"{minutes} minutes"


def tracking_window(order: Order) -> timedelta:
    """Length of the delivery window: placement to estimated delivery, 25 minutes when unknown."""
    if order.estimated_delivery is None:
        return DEFAULT_TRACKING_WINDOW
    return as_utc(order.estimated_delivery) - as_utc(order.created_at)


def expected_status(order: Order, now: datetime | None = None) -> OrderStatus:
    """Status the order should have reached by ``now`` if the window runs on schedule."""
    now = as_utc(now) or datetime.now(UTC)
    elapsed = (now - as_utc(order.created_at)).total_seconds()
    return status_for_progress(elapsed, tracking_window(order).total_seconds())
