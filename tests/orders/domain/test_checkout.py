"""Tests for checkout — preconditions, delivery pricing and cart clean-up."""

from datetime import UTC, datetime, timedelta

import pytest

from storefront.addresses.address_book import Address, AddressBook
from storefront.cart.cart import Cart, CartLine
from storefront.delivery.distance_adapter import DistanceEstimator
from storefront.delivery.fake_adapter import FakeEstimator
from storefront.delivery.port import Coordinates
from storefront.exceptions import ValidationError
from storefront.orders.checkout import (
    DEFAULT_DELIVERY_MINUTES,
    FLAT_DELIVERY_FEE,
    CheckoutDetails,
    PaymentSelection,
    place_order,
)
from storefront.payments.registry import CASH_METHOD_ID, PaymentKind, PaymentMethod, PaymentRegistry

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=UTC)


def _line(line_id, vendor_id="v1", unit_price=5.0, quantity=1):
    return CartLine(id=line_id, name=line_id, unit_price=unit_price, quantity=quantity, vendor_id=vendor_id)


def _cart(*lines):
    cart = Cart()
    for line in lines:
        cart.add_item(line)
    return cart


def _details(**kwargs):
    kwargs.setdefault("delivery_address", "1 Main Road, Cape Town")
    kwargs.setdefault("contact_phone", "0215550100")
    return CheckoutDetails(**kwargs)


def _checkout(cart, details=None, address_book=None, registry=None, estimator=None):
    return place_order(
        cart,
        address_book or AddressBook(),
        registry or PaymentRegistry.seeded(),
        details or _details(),
        estimator or FakeEstimator(),
        customer_id="cust-001",
        now=NOW,
    )


class TestPreconditions:
    def test_empty_cart_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _checkout(Cart())
        assert "cart" in exc.value.messages

    def test_missing_address_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _checkout(_cart(_line("a")), _details(delivery_address="  "))
        assert "delivery_address" in exc.value.messages

    def test_missing_phone_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _checkout(_cart(_line("a")), _details(contact_phone=""))
        assert "contact_phone" in exc.value.messages

    def test_card_payment_without_card_is_rejected(self):
        details = _details(payment=PaymentSelection(kind=PaymentKind.CARD))

        with pytest.raises(ValidationError) as exc:
            _checkout(_cart(_line("a")), details)
        assert "payment" in exc.value.messages

    def test_unknown_card_is_rejected(self):
        details = _details(payment=PaymentSelection(kind=PaymentKind.CARD, method_id="card-9"))

        with pytest.raises(ValidationError):
            _checkout(_cart(_line("a")), details)

    def test_all_problems_reported_together(self):
        with pytest.raises(ValidationError) as exc:
            _checkout(Cart(), _details(delivery_address="", contact_phone=""))
        assert set(exc.value.messages) == {"cart", "delivery_address", "contact_phone"}

    def test_rejection_leaves_cart_untouched(self):
        cart = _cart(_line("a"))

        with pytest.raises(ValidationError):
            _checkout(cart, _details(contact_phone=""))
        assert len(cart.lines) == 1

    def test_multi_vendor_cart_needs_a_selected_vendor(self):
        cart = _cart(_line("a", "v1"), _line("b", "v2"))

        with pytest.raises(ValidationError) as exc:
            _checkout(cart)
        assert "vendor" in exc.value.messages


class TestPlacement:
    def test_creates_pending_order_and_clears_cart(self):
        cart = _cart(_line("a", quantity=2))
        order = _checkout(cart)

        assert order.status == "pending"
        assert order.customer_id == "cust-001"
        assert order.items[0].quantity == 2
        assert cart.is_empty

    def test_cash_is_used_by_default(self):
        order = _checkout(_cart(_line("a")))

        assert order.payment_method_id == CASH_METHOD_ID

    def test_default_card_is_resolved(self):
        registry = PaymentRegistry.seeded()
        card = registry.add(PaymentMethod.from_card_number("4111111111111111", "12/27", id="card-1"))
        registry.set_default(card.id)

        order = _checkout(
            _cart(_line("a")),
            _details(payment=PaymentSelection(kind=PaymentKind.CARD)),
            registry=registry,
        )
        assert order.payment_method_id == "card-1"

    def test_selected_card_is_resolved(self):
        registry = PaymentRegistry.seeded()
        registry.add(PaymentMethod.from_card_number("5500000000000004", "12/27", id="card-2"))

        order = _checkout(
            _cart(_line("a")),
            _details(payment=PaymentSelection(kind=PaymentKind.CARD, method_id="card-2")),
            registry=registry,
        )
        assert order.payment_method_id == "card-2"

    def test_default_saved_address_is_used(self):
        book = AddressBook()
        book.add(Address(id="home", label="Home", street="5 Loop St", city="Cape Town", postal_code="8001"))

        order = _checkout(_cart(_line("a")), _details(delivery_address=None), address_book=book)
        assert order.delivery_address == "5 Loop St, Cape Town, 8001"

    def test_chosen_saved_address_is_used(self):
        book = AddressBook()
        book.add(Address(id="home", label="Home", street="5 Loop St", city="Cape Town"))
        book.add(Address(id="work", label="Work", street="9 Bree St", city="Cape Town"))

        order = _checkout(_cart(_line("a")), _details(delivery_address=None, address_id="work"), address_book=book)
        assert order.delivery_address == "9 Bree St, Cape Town"

    def test_selected_vendor_lines_only(self):
        cart = _cart(_line("a", "v1"), _line("b", "v2"), _line("c", "v1"))
        cart.select_vendor("v1")
        order = _checkout(cart)

        assert order.product_ids == ["a", "c"]
        assert [line.id for line in cart.lines] == ["b"]
        assert cart.selected_vendor_id is None
        assert cart.multi_vendor_notice is False


class TestDeliveryPricing:
    def test_flat_fee_without_locations(self):
        order = _checkout(_cart(_line("a", unit_price=10.0)))

        assert order.delivery_fee == FLAT_DELIVERY_FEE
        assert order.total == 12.99
        assert order.estimated_delivery == NOW + timedelta(minutes=DEFAULT_DELIVERY_MINUTES)

    def test_pickup_is_free(self):
        order = _checkout(_cart(_line("a", unit_price=10.0)), _details(delivery_type="pickup"))

        assert order.delivery_fee == 0
        assert order.total == 10.0
        assert order.delivery_type == "pickup"

    def test_estimator_quote_with_locations(self):
        estimator = FakeEstimator(cost=7.5, minutes=20)
        details = _details(
            vendor_location=Coordinates(-33.92, 18.42),
            customer_location=Coordinates(-33.93, 18.44),
        )
        order = _checkout(_cart(_line("a", unit_price=10.0)), details, estimator=estimator)

        assert order.delivery_fee == 7.5
        assert order.total == 17.5
        assert order.estimated_delivery == NOW + timedelta(minutes=20)
        assert len(estimator.requests) == 1

    def test_distance_estimator_quote(self):
        point = Coordinates(-33.92, 18.42)
        details = _details(vendor_location=point, customer_location=point)
        order = _checkout(_cart(_line("a", unit_price=1.0)), details, estimator=DistanceEstimator())

        assert order.delivery_fee == 10.0
        assert order.estimated_delivery == NOW + timedelta(minutes=5)

    def test_locations_from_plain_dicts(self):
        details = CheckoutDetails(
            delivery_address="1 Main Road",
            contact_phone="0215550100",
            vendor_location={"latitude": -33.92, "longitude": 18.42},
            customer_location={"latitude": -33.92, "longitude": 18.42},
        )

        assert details.vendor_location == Coordinates(-33.92, 18.42)
