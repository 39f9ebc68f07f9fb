"""Checkout — turns the cart into a pending order.

Preconditions, all reported together in one ValidationError:
1. the cart has lines to check out (for a multi-vendor cart, a vendor is selected)
2. a delivery address is given, or can be taken from the address book
3. a contact phone number is given
4. when paying by card, a card payment method can be resolved

On success the ordered lines leave the cart. Pickup orders carry no
delivery fee; delivery orders are priced by the delivery estimator when both
locations are known and at the flat fee otherwise.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from storefront.addresses.address_book import AddressBook
from storefront.cart.cart import Cart
from storefront.delivery.port import Coordinates, DeliveryEstimator
from storefront.exceptions import ValidationError
from storefront.orders.order import DeliveryType, Order
from storefront.payments.registry import PaymentKind, PaymentMethod, PaymentRegistry

FLAT_DELIVERY_FEE = 2.99
DEFAULT_DELIVERY_MINUTES = 45


class PaymentSelection(BaseModel):
    """How the customer wants to pay: cash, or a card (a saved id or the default card)."""

    model_config = ConfigDict(use_enum_values=True)

    kind: PaymentKind = PaymentKind.CASH.value
    method_id: str | None = None


class CheckoutDetails(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    delivery_address: str | None = None
    address_id: str | None = None
    contact_phone: str = ""
    payment: PaymentSelection = Field(default_factory=PaymentSelection)
    delivery_type: DeliveryType = DeliveryType.DELIVERY.value
    vendor_location: Coordinates | None = None
    customer_location: Coordinates | None = None


def resolve_delivery_address(details: CheckoutDetails, address_book: AddressBook) -> str | None:
    """Free text wins, then the chosen saved address, then the default one."""
    if details.delivery_address and details.delivery_address.strip():
        return details.delivery_address.strip()

    address = address_book.find(details.address_id) if details.address_id else address_book.default()
    return address.one_line() if address else None


def resolve_payment_method(selection: PaymentSelection, registry: PaymentRegistry) -> PaymentMethod | None:
    if selection.kind == PaymentKind.CASH.value:
        return registry.cash_method()

    if selection.method_id:
        method = registry.find(selection.method_id)
    else:
        method = registry.default()
    if method is None or method.is_cash:
        return None
    return method


def quote_delivery(details: CheckoutDetails, estimator: DeliveryEstimator) -> tuple[float, int]:
    """Delivery fee and estimated minutes for the checkout."""
    if details.delivery_type == DeliveryType.PICKUP.value:
        return 0.0, DEFAULT_DELIVERY_MINUTES

    if details.vendor_location and details.customer_location:
        quote = estimator.estimate(details.vendor_location, details.customer_location)
        return quote.cost, quote.estimated_time_minutes

    return FLAT_DELIVERY_FEE, DEFAULT_DELIVERY_MINUTES


def place_order(
    cart: Cart,
    address_book: AddressBook,
    registry: PaymentRegistry,
    details: CheckoutDetails,
    estimator: DeliveryEstimator,
    customer_id: str = "",
    now: datetime | None = None,
) -> Order:
    """Create an order from ``cart`` and remove the ordered lines from it.

    ``cart`` is modified in place; callers pass a working copy.
    """
    errors: dict[str, list[str]] = {}

    lines = []
    try:
        lines = cart.checkout_lines()
    except ValidationError as exc:
        errors.update(exc.messages)
    else:
        if not lines:
            errors["cart"] = ["Please add items to your cart before checkout"]

    address = resolve_delivery_address(details, address_book)
    if not address:
        errors["delivery_address"] = ["Please enter your delivery address"]

    if not details.contact_phone.strip():
        errors["contact_phone"] = ["Please enter your phone number"]

    method = resolve_payment_method(details.payment, registry)
    if method is None:
        errors["payment"] = ["Please select a card to pay with"]

    if errors:
        raise ValidationError(errors)

    delivery_fee, minutes = quote_delivery(details, estimator)
    order = Order.place(
        customer_id=customer_id,
        lines=lines,
        delivery_address=address,
        contact_phone=details.contact_phone.strip(),
        delivery_fee=delivery_fee,
        delivery_type=details.delivery_type,
        payment_method_id=method.id,
        estimated_minutes=minutes,
        now=now,
    )

    cart.drop_lines([line.id for line in lines])
    return order
