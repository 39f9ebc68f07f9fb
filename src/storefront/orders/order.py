"""Order aggregate — an immutable snapshot of a checkout plus its delivery status.

State Machine (8 states):
    PENDING → CONFIRMED → PREPARING → READY → PICKED → DELIVERING → DELIVERED
    CANCELLED (from any state before DELIVERED)

Every transition goes through the same guard: an order moves one step
forward or is cancelled, never skips a step and never goes back.

Timestamps are held in UTC. A naive datetime handed to an order is read as UTC.
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, List, String

from storefront.domain import storefront
from storefront.exceptions import StaleTransitionError
from storefront.orders.events import (
    OrderCancelled,
    OrderDelivered,
    OrderDetailsUpdated,
    OrderPlaced,
    OrderStatusChanged,
)

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    PICKED = "picked"
    DELIVERING = "delivering"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class DeliveryType(Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


# The delivery lifecycle, in order
LIFECYCLE = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.PICKED,
    OrderStatus.DELIVERING,
    OrderStatus.DELIVERED,
]

# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.PICKED, OrderStatus.CANCELLED},
    OrderStatus.PICKED: {OrderStatus.DELIVERING, OrderStatus.CANCELLED},
    OrderStatus.DELIVERING: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

CURRENT_STATES = frozenset(status for status, targets in _VALID_TRANSITIONS.items() if targets)
PAST_STATES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def as_utc(value: datetime | None) -> datetime | None:
    """``value`` as an aware UTC datetime; naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _parse(enum_class, value, field):
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_class)
        raise ValidationError({field: [f"Unknown {field} {value!r}, expected one of: {allowed}"]}) from None


@storefront.entity(part_of="Order")
class OrderItem:
    """A cart line frozen into an order at checkout."""

    id: Identifier(identifier=True, required=True)
    name: String(required=True, max_length=255)
    unit_price: Float(required=True, min_value=0)
    quantity: Integer(required=True, min_value=1)
    vendor_id: Identifier(required=True)
    vendor_name: String(max_length=255, default="")
    image: String(max_length=1000)
    customizations: List(content_type=String)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@storefront.aggregate
class Order:
    customer_id: String(max_length=255, default="")
    vendor_id: Identifier(required=True)
    driver_id: Identifier()
    items: HasMany(OrderItem)
    total: Float(required=True, min_value=0)
    status: String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    created_at: DateTime(required=True)
    estimated_delivery: DateTime()
    delivery_address: String(required=True, max_length=500)
    contact_phone: String(max_length=50, default="")
    payment_method_id: Identifier()
    payment_status: String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    delivery_fee: Float(min_value=0, default=0.0)
    delivery_type: String(choices=DeliveryType, default=DeliveryType.DELIVERY.value)

    @invariant.post
    def items_come_from_the_order_vendor(self):
        if any(item.vendor_id != self.vendor_id for item in self.items):
            raise ValidationError({"items": ["An order can only contain items from one vendor"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        lines,
        delivery_address,
        contact_phone,
        delivery_fee=0.0,
        delivery_type=DeliveryType.DELIVERY.value,
        payment_method_id=None,
        estimated_minutes=None,
        now=None,
    ):
        """Create a pending order from checkout lines.

        Each line is copied into a new order item: later changes to the cart
        never reach the order.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})
        vendor_ids = {line.vendor_id for line in lines}
        if len(vendor_ids) > 1:
            raise ValidationError({"items": ["An order can only contain items from one vendor"]})

        now = as_utc(now) or datetime.now(UTC)
        items = [OrderItem(**line.details()) for line in lines]
        subtotal = sum(item.line_total for item in items)
        delivery_type = _parse(DeliveryType, delivery_type, "delivery_type").value

        order = cls(
            customer_id=customer_id or "",
            vendor_id=items[0].vendor_id,
            total=round(subtotal + delivery_fee, 2),
            created_at=now,
            estimated_delivery=now + timedelta(minutes=estimated_minutes) if estimated_minutes is not None else None,
            delivery_address=delivery_address,
            contact_phone=contact_phone,
            payment_method_id=payment_method_id,
            delivery_fee=round(delivery_fee, 2),
            delivery_type=delivery_type,
        )
        for item in items:
            order.add_items(item)

        order.raise_(
            OrderPlaced(
                order_id=order.id,
                customer_id=order.customer_id,
                vendor_id=order.vendor_id,
                item_count=len(items),
                total=order.total,
                delivery_fee=order.delivery_fee,
                delivery_type=order.delivery_type,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_current(self) -> bool:
        return OrderStatus(self.status) in CURRENT_STATES

    @property
    def is_past(self) -> bool:
        return OrderStatus(self.status) in PAST_STATES

    @property
    def product_ids(self) -> list[str]:
        return [item.id for item in self.items]

    def contains_product(self, product_id) -> bool:
        return any(item.id == product_id for item in self.items)

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise StaleTransitionError(
                {"status": [f"Cannot transition from {current.value} to {target_status.value}"]}
            )

    def advance(self, new_status):
        """Move the order to ``new_status``: the next lifecycle step or cancelled."""
        target = _parse(OrderStatus, new_status, "status")
        if target == OrderStatus.CANCELLED:
            self.cancel()
            return

        self._assert_can_transition(target)
        previous = self.status
        self.status = target.value

        self.raise_(OrderStatusChanged(order_id=self.id, previous_status=previous, new_status=target.value))
        if target == OrderStatus.DELIVERED:
            self.raise_(
                OrderDelivered(
                    order_id=self.id,
                    customer_id=self.customer_id,
                    product_ids=json.dumps(self.product_ids),
                )
            )

    def complete(self):
        """Mark a delivering order as delivered. Allowed from DELIVERING only."""
        current = OrderStatus(self.status)
        if current != OrderStatus.DELIVERING:
            raise StaleTransitionError(
                {"status": [f"Only orders that are out for delivery can be completed, this one is {current.value}"]}
            )
        self.advance(OrderStatus.DELIVERED)

    def cancel(self, reason=None):
        current = OrderStatus(self.status)
        if current in PAST_STATES:
            raise StaleTransitionError({"status": [f"Cannot cancel order in {current.value} state"]})

        self.status = OrderStatus.CANCELLED.value
        self.raise_(OrderCancelled(order_id=self.id, previous_status=current.value, reason=reason))

    # -------------------------------------------------------------------
    # Non-status fields
    # -------------------------------------------------------------------
    def update_details(self, driver_id=_UNSET, estimated_delivery=_UNSET, payment_status=_UNSET):
        changed = []
        if driver_id is not _UNSET:
            self.driver_id = driver_id
            changed.append("driver_id")
        if estimated_delivery is not _UNSET:
            self.estimated_delivery = as_utc(estimated_delivery)
            changed.append("estimated_delivery")
        if payment_status is not _UNSET:
            self.payment_status = _parse(PaymentStatus, payment_status, "payment_status").value
            changed.append("payment_status")

        if changed:
            self.raise_(OrderDetailsUpdated(order_id=self.id, changed_fields=json.dumps(changed)))
