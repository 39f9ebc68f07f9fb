"""Shared BDD fixtures and step definitions for the Storefront domain."""

import pytest
from pytest_bdd import given, parsers, then, when

from storefront.cart.cart import Cart, CartLine
from storefront.cart.events import (
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    MultiVendorCartDetected,
)
from storefront.orders.events import OrderCancelled, OrderDelivered, OrderPlaced, OrderStatusChanged
from storefront.orders.order import LIFECYCLE, Order, OrderStatus

# Map event name strings to classes for dynamic lookup
_EVENT_CLASSES = {
    "CartItemAdded": CartItemAdded,
    "CartItemRemoved": CartItemRemoved,
    "CartQuantityUpdated": CartQuantityUpdated,
    "MultiVendorCartDetected": MultiVendorCartDetected,
    "OrderPlaced": OrderPlaced,
    "OrderStatusChanged": OrderStatusChanged,
    "OrderDelivered": OrderDelivered,
    "OrderCancelled": OrderCancelled,
}


def _add_line(cart, quantity, line_id, vendor_id, price):
    cart.add_item(
        CartLine(
            id=line_id,
            name=f"Product {line_id}",
            unit_price=price,
            quantity=quantity,
            vendor_id=vendor_id,
            vendor_name=f"Vendor {vendor_id}",
        )
    )


def _place_order(lines):
    order = Order.place(
        customer_id="cust-001",
        lines=lines,
        delivery_address="12 Long Street, Cape Town",
        contact_phone="+27 21 555 0100",
    )
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an empty cart", target_fixture="cart")
def empty_cart():
    return Cart()


@given(parsers.cfparse('the cart holds {quantity:d} of "{line_id}" from vendor "{vendor_id}" at {price:f}'))
def cart_holds(cart, quantity, line_id, vendor_id, price):
    _add_line(cart, quantity, line_id, vendor_id, price)
    cart._events.clear()


@given("a placed order", target_fixture="order")
def placed_order():
    return _place_order([CartLine(id="p1", name="Bread", unit_price=2.0, quantity=2, vendor_id="v1")])


@given(parsers.cfparse('the order has reached "{status}"'))
def order_has_reached(order, status):
    target = LIFECYCLE.index(OrderStatus(status))
    for step in LIFECYCLE[1 : target + 1]:
        order.advance(step)
    order._events.clear()


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer adds {quantity:d} of "{line_id}" from vendor "{vendor_id}" at {price:f}'))
def customer_adds(cart, quantity, line_id, vendor_id, price):
    _add_line(cart, quantity, line_id, vendor_id, price)


@when(parsers.cfparse('the customer sets the quantity of "{line_id}" to {quantity:d}'))
def customer_sets_quantity(cart, line_id, quantity):
    cart.update_item_quantity(line_id, quantity)


@when("the customer places an order from the cart", target_fixture="order")
def customer_places_order(cart):
    return _place_order(cart.checkout_lines())


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the cart has {count:d} line"))
@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_lines(cart, count):
    assert len(cart.lines) == count


@then(parsers.cfparse('line "{line_id}" has quantity {quantity:d}'))
def line_has_quantity(cart, line_id, quantity):
    assert cart.find(line_id).quantity == quantity


@then(parsers.cfparse("the cart total is {total:f}"))
def cart_total_is(cart, total):
    assert cart.total == total


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then(parsers.cfparse("the {aggregate} raised a {event_name} event"))
def aggregate_raised_event(request, aggregate, event_name):
    event_class = _EVENT_CLASSES[event_name]
    raised = request.getfixturevalue(aggregate)._events
    assert any(isinstance(event, event_class) for event in raised)


@then(parsers.cfparse("the {aggregate} raised no {event_name} event"))
def aggregate_raised_no_event(request, aggregate, event_name):
    event_class = _EVENT_CLASSES[event_name]
    raised = request.getfixturevalue(aggregate)._events
    assert not any(isinstance(event, event_class) for event in raised)
