"""Storefront — the commerce engine behind the mobile storefront screens.

One explicitly constructed instance owns the session: cart, address book,
payment methods, orders and ratings and the signed-in user. Construct it once
at application start (inside the storefront domain context), call ``load()``
to restore durable state and ``shutdown()`` to drain pending writes.

Every mutating operation follows the same steps:

1. take a working copy of the affected aggregate
2. apply the operation; the aggregate checks its invariants after each change
3. swap the copy into the session, publish the raised events and, for the
   address book and payment methods, queue a write of the whole collection

A rule violation stops at step 2: the session is left untouched and the
caller gets a failed ``Outcome`` naming the error kind and its messages.
"""

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from storefront.addresses.address_book import Address, AddressBook
from storefront.cart.cart import Cart, CartLine, VendorGroup
from storefront.catalog import Catalog
from storefront.customer import Customer
from storefront.delivery import get_estimator
from storefront.delivery.port import DeliveryEstimator
from storefront.exceptions import DOMAIN_ERRORS, ObjectNotFoundError, ValidationError
from storefront.orders.checkout import CheckoutDetails, place_order
from storefront.orders.ledger import OrderLedger
from storefront.orders.order import LIFECYCLE, Order, OrderStatus
from storefront.orders.tracking import expected_status
from storefront.payments.registry import PaymentMethod, PaymentRegistry
from storefront.persistence import get_storage
from storefront.persistence.adapter import PersistenceAdapter
from storefront.ratings.rating import ProductRating, RatingBook, can_rate

logger = structlog.get_logger(__name__)

EventListener = Callable[[Any], None]

_ORDER_DETAIL_FIELDS = frozenset({"driver_id", "estimated_delivery", "payment_status"})


@dataclass(frozen=True)
class Outcome:
    """Result of a storefront operation.

    ``error`` is the name of the rule that was violated (``ValidationError``,
    ``ProtectedEntityError``, ``StaleTransitionError`` or
    ``ObjectNotFoundError``) and ``messages`` its user-facing messages.
    """

    ok: bool
    value: Any = None
    error: str | None = None
    messages: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, exc) -> "Outcome":
        return cls(ok=False, error=type(exc).__name__, messages=exc.messages)

    def __bool__(self) -> bool:
        return self.ok


@contextmanager
def _validated() -> Iterator[None]:
    """Re-raise pydantic failures of input models as the domain's ``ValidationError``."""
    try:
        yield
    except PydanticValidationError as exc:
        messages: dict[str, list[str]] = {}
        for error in exc.errors():
            name = ".".join(str(part) for part in error["loc"]) or "value"
            messages.setdefault(name, []).append(error["msg"])
        raise ValidationError(messages) from exc


def _drain_events(aggregate) -> list:
    """Return and forget the events the aggregate raised since the last drain."""
    events = list(aggregate._events)
    aggregate._events.clear()
    return events


def _as_model(model_class, value):
    if isinstance(value, model_class):
        return value
    return model_class.model_validate(value)


def _as_entity(entity_class, value):
    """A fresh entity built from ``value``, never the caller's own object."""
    if isinstance(value, entity_class):
        return deepcopy(value)
    return entity_class(**value)


class Storefront:
    def __init__(
        self,
        persistence: PersistenceAdapter | None = None,
        estimator: DeliveryEstimator | None = None,
        catalog: Catalog | None = None,
    ):
        self.persistence = persistence or PersistenceAdapter(get_storage())
        self._estimator = estimator
        self.catalog = catalog or Catalog()

        self._cart = Cart()
        self._address_book = AddressBook()
        self._payment_registry = PaymentRegistry.seeded()
        self._ratings = RatingBook()
        self._ledger = OrderLedger()
        self._current_order_id: str | None = None
        self._user: Customer | None = None
        self._authenticated = False
        self._listeners: list[EventListener] = []

    @property
    def estimator(self) -> DeliveryEstimator:
        return self._estimator or get_estimator()

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def load(self) -> None:
        """Restore the address book and payment methods from durable storage."""
        self._address_book = self.persistence.load_addresses()
        self._payment_registry = self.persistence.load_payment_methods()
        logger.info(
            "storefront.loaded",
            addresses=len(self._address_book.addresses),
            payment_methods=len(self._payment_registry.methods),
        )

    def flush(self) -> None:
        """Wait until every queued durable write has been attempted."""
        self.persistence.flush()

    def shutdown(self) -> None:
        self.persistence.close()
        logger.info("storefront.shutdown")

    # -------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------
    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Call ``listener`` with every committed domain event. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, events: list) -> None:
        for event in events:
            logger.debug("storefront.event", event_type=type(event).__name__)
            for listener in list(self._listeners):
                listener(event)

    # -------------------------------------------------------------------
    # Operation plumbing
    # -------------------------------------------------------------------
    def _attempt(self, action: str, work: Callable[[], Any], **context) -> Outcome:
        try:
            with _validated():
                value = work()
        except DOMAIN_ERRORS as exc:
            logger.warning(
                "storefront.operation_rejected",
                action=action,
                error=type(exc).__name__,
                messages=exc.messages,
                **context,
            )
            return Outcome.failure(exc)

        logger.info("storefront.operation_applied", action=action, **context)
        return Outcome.success(value)

    def _mutate(self, action: str, name: str, operation: Callable[[Any], Any], **context) -> Outcome:
        attribute = f"_{name}"
        working = deepcopy(getattr(self, attribute))

        outcome = self._attempt(action, lambda: deepcopy(operation(working)), **context)
        if outcome.ok:
            events = _drain_events(working)
            setattr(self, attribute, working)
            self._publish(events)
            if events:
                self._persist(name, working)
        return outcome

    def _persist(self, name: str, aggregate) -> None:
        if name == "address_book":
            self.persistence.save_addresses(aggregate)
        elif name == "payment_registry":
            self.persistence.save_payment_methods(aggregate)

    def _mutate_order(self, action: str, order_id: str, operation: Callable[[Order], Any], **context) -> Outcome:
        def work():
            order = self._ledger.get(order_id)
            operation(order)
            return order

        outcome = self._attempt(action, work, order_id=order_id, **context)
        if not outcome.ok:
            return outcome

        order = outcome.value
        events = _drain_events(order)
        self._ledger.replace(order)
        self._publish(events)
        return Outcome.success(deepcopy(order))

    # -------------------------------------------------------------------
    # Session user
    # -------------------------------------------------------------------
    @property
    def user(self) -> Customer | None:
        return deepcopy(self._user)

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    @property
    def customer_id(self) -> str:
        return self._user.id if self._user else ""

    def set_user(self, user: Customer | dict | None) -> Outcome:
        """Hand over the signed-in user; ``None`` signs out. Authentication follows the user."""

        def work():
            customer = _as_model(Customer, user) if user is not None else None
            self._user = customer
            self._authenticated = customer is not None
            return deepcopy(customer)

        return self._attempt("set_user", work)

    def set_authenticated(self, authenticated: bool) -> Outcome:
        self._authenticated = bool(authenticated)
        return Outcome.success(self._authenticated)

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------
    @property
    def cart(self) -> Cart:
        return deepcopy(self._cart)

    def add_to_cart(self, line: CartLine | dict) -> Outcome:
        return self._mutate("add_to_cart", "cart", lambda cart: cart.add_item(_as_entity(CartLine, line)))

    def add_product(self, product_id: str, quantity: int = 1, customizations: list[str] | None = None) -> Outcome:
        """Add a catalog product to the cart at its catalog price."""

        def operation(cart: Cart):
            line = self.catalog.cart_line(product_id, quantity, customizations)
            if line is None:
                raise ValidationError({"product_id": [f"Product {product_id} is not in the catalog"]})
            return cart.add_item(line)

        return self._mutate("add_product", "cart", operation, product_id=product_id)

    def remove_from_cart(self, line_id: str) -> Outcome:
        return self._mutate("remove_from_cart", "cart", lambda cart: cart.remove_item(line_id), line_id=line_id)

    def update_quantity(self, line_id: str, quantity: int) -> Outcome:
        return self._mutate(
            "update_quantity",
            "cart",
            lambda cart: cart.update_item_quantity(line_id, quantity),
            line_id=line_id,
            quantity=quantity,
        )

    def clear_cart(self) -> Outcome:
        return self._mutate("clear_cart", "cart", lambda cart: cart.clear())

    def dismiss_multi_vendor_notice(self) -> Outcome:
        return self._mutate("dismiss_multi_vendor_notice", "cart", lambda cart: cart.dismiss_multi_vendor_notice())

    def select_vendor_for_checkout(self, vendor_id: str) -> Outcome:
        return self._mutate(
            "select_vendor_for_checkout",
            "cart",
            lambda cart: cart.select_vendor(vendor_id),
            vendor_id=vendor_id,
        )

    def vendor_groups(self) -> list[VendorGroup]:
        return deepcopy(self._cart.vendor_groups())

    # -------------------------------------------------------------------
    # Address book
    # -------------------------------------------------------------------
    @property
    def addresses(self) -> list[Address]:
        return deepcopy(list(self._address_book.addresses))

    def add_address(self, address: Address | dict) -> Outcome:
        return self._mutate("add_address", "address_book", lambda book: book.add(_as_entity(Address, address)))

    def update_address(self, address_id: str, **changes) -> Outcome:
        return self._mutate(
            "update_address",
            "address_book",
            lambda book: book.update(address_id, **changes),
            address_id=address_id,
        )

    def remove_address(self, address_id: str) -> Outcome:
        return self._mutate(
            "remove_address", "address_book", lambda book: book.remove(address_id), address_id=address_id
        )

    def set_default_address(self, address_id: str) -> Outcome:
        return self._mutate(
            "set_default_address",
            "address_book",
            lambda book: book.set_default(address_id),
            address_id=address_id,
        )

    # -------------------------------------------------------------------
    # Payment methods
    # -------------------------------------------------------------------
    @property
    def payment_methods(self) -> list[PaymentMethod]:
        return deepcopy(list(self._payment_registry.methods))

    def add_payment_method(self, method: PaymentMethod | dict) -> Outcome:
        return self._mutate(
            "add_payment_method",
            "payment_registry",
            lambda registry: registry.add(_as_entity(PaymentMethod, method)),
        )

    def add_card(self, card_number: str, expiry: str) -> Outcome:
        """Save a card from its number. Only the last four digits are kept."""
        return self._mutate(
            "add_card",
            "payment_registry",
            lambda registry: registry.add(PaymentMethod.from_card_number(card_number, expiry)),
        )

    def update_payment_method(self, method_id: str, **changes) -> Outcome:
        return self._mutate(
            "update_payment_method",
            "payment_registry",
            lambda registry: registry.update(method_id, **changes),
            method_id=method_id,
        )

    def remove_payment_method(self, method_id: str) -> Outcome:
        return self._mutate(
            "remove_payment_method",
            "payment_registry",
            lambda registry: registry.remove(method_id),
            method_id=method_id,
        )

    def set_default_payment_method(self, method_id: str) -> Outcome:
        return self._mutate(
            "set_default_payment_method",
            "payment_registry",
            lambda registry: registry.set_default(method_id),
            method_id=method_id,
        )

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def place_order(self, details: CheckoutDetails | dict | None = None, now: datetime | None = None) -> Outcome:
        """Check out the cart (or the selected vendor's lines of it) into a pending order."""
        cart = deepcopy(self._cart)

        def work():
            checkout = self._with_vendor_location(cart, _as_model(CheckoutDetails, details or {}))
            return place_order(
                cart,
                self._address_book,
                self._payment_registry,
                checkout,
                self.estimator,
                customer_id=self.customer_id,
                now=now,
            )

        outcome = self._attempt("place_order", work, customer_id=self.customer_id)
        if not outcome.ok:
            return outcome

        order = outcome.value
        events = _drain_events(order) + _drain_events(cart)
        self._ledger.prepend(order)
        self._cart = cart
        self._publish(events)
        return Outcome.success(deepcopy(order))

    def _with_vendor_location(self, cart: Cart, details: CheckoutDetails) -> CheckoutDetails:
        """Fill in the vendor location from the catalog when the caller left it out."""
        if details.vendor_location is not None:
            return details

        vendor_ids = cart.vendor_ids
        vendor_id = cart.selected_vendor_id or (vendor_ids[0] if len(vendor_ids) == 1 else None)
        vendor = self.catalog.vendor(vendor_id) if vendor_id else None
        if vendor is None or vendor.location is None:
            return details
        return details.model_copy(update={"vendor_location": vendor.location})

    def advance_order(self, order_id: str, status: OrderStatus | str) -> Outcome:
        status_value = status.value if isinstance(status, OrderStatus) else status
        return self._mutate_order(
            "advance_order", order_id, lambda order: order.advance(status), status=status_value
        )

    def complete_order(self, order_id: str) -> Outcome:
        return self._mutate_order("complete_order", order_id, lambda order: order.complete())

    def cancel_order(self, order_id: str, reason: str | None = None) -> Outcome:
        return self._mutate_order("cancel_order", order_id, lambda order: order.cancel(reason))

    def update_order(self, order_id: str, **changes) -> Outcome:
        """Change driver, estimated delivery or payment status. Status moves only through transitions."""

        def operation(order: Order):
            unknown = sorted(set(changes) - _ORDER_DETAIL_FIELDS)
            if unknown:
                raise ValidationError({name: ["Field cannot be updated"] for name in unknown})
            order.update_details(**changes)

        return self._mutate_order("update_order", order_id, operation)

    def sync_order_progress(self, order_id: str, now: datetime | None = None) -> Outcome:
        """Step the order forward to where its delivery window says it should be."""

        def operation(order: Order):
            if not order.is_current:
                return
            target = LIFECYCLE.index(expected_status(order, now))
            while LIFECYCLE.index(OrderStatus(order.status)) < target:
                next_status = LIFECYCLE[LIFECYCLE.index(OrderStatus(order.status)) + 1]
                order.advance(next_status)

        return self._mutate_order("sync_order_progress", order_id, operation)

    def set_current_order(self, order_id: str | None) -> Outcome:
        """Choose the order the tracking screen follows; ``None`` clears it."""

        def work():
            if order_id is not None and order_id not in self._ledger:
                raise ObjectNotFoundError({"order_id": [f"Order {order_id} not found"]})
            self._current_order_id = order_id
            return order_id

        return self._attempt("set_current_order", work, order_id=order_id)

    @property
    def current_order(self) -> Order | None:
        if self._current_order_id is None:
            return None
        return self._ledger.get(self._current_order_id)

    def order(self, order_id: str) -> Order | None:
        if order_id not in self._ledger:
            return None
        return self._ledger.get(order_id)

    def orders(self) -> list[Order]:
        """Every order of the session, most recent first."""
        return self._ledger.all()

    def current_orders(self) -> list[Order]:
        return self._ledger.current()

    def past_orders(self) -> list[Order]:
        return self._ledger.past()

    # -------------------------------------------------------------------
    # Ratings
    # -------------------------------------------------------------------
    def submit_rating(self, rating: ProductRating | dict) -> Outcome:
        """Store a rating, replacing the customer's earlier one for the same product."""
        return self._mutate("submit_rating", "ratings", lambda book: book.submit(_as_entity(ProductRating, rating)))

    def rate_product(self, product_id: str, value: int) -> Outcome:
        """Rate a product as the signed-in customer, who must have received it."""

        def operation(book: RatingBook):
            if not self.customer_id:
                raise ValidationError({"customer": ["Sign in to rate products"]})
            order = self._delivered_order_with(product_id)
            if order is None:
                raise ValidationError({"product_id": ["You can rate products once your order has been delivered"]})
            return book.submit(
                ProductRating(
                    product_id=product_id,
                    customer_id=self.customer_id,
                    rating=value,
                    order_id=order.id,
                )
            )

        return self._mutate("rate_product", "ratings", operation, product_id=product_id)

    def _delivered_order_with(self, product_id: str) -> Order | None:
        orders = self._ledger.for_customer(self.customer_id)
        return next((order for order in orders if can_rate(product_id, self.customer_id, [order])), None)

    def update_rating(self, product_id: str, customer_id: str, value: int) -> Outcome:
        return self._mutate(
            "update_rating",
            "ratings",
            lambda book: book.update_rating(product_id, customer_id, value),
            product_id=product_id,
        )

    def merge_remote_ratings(self, ratings: Iterable[ProductRating | dict]) -> Outcome:
        """Take in ratings fetched from the backend; ratings already held locally win."""
        return self._mutate(
            "merge_remote_ratings",
            "ratings",
            lambda book: book.merge_remote(_as_entity(ProductRating, rating) for rating in ratings),
        )

    def product_rating(self, product_id: str) -> float:
        return self._ratings.product_rating(product_id)

    def vendor_rating(self, vendor_id: str, product_ids: list[str]) -> float:
        return self._ratings.vendor_rating(vendor_id, product_ids)

    def vendor_rating_from_catalog(self, vendor_id: str) -> float:
        return self._ratings.vendor_rating(vendor_id, self.catalog.product_ids_for(vendor_id))

    def has_rated(self, product_id: str, customer_id: str) -> bool:
        return self._ratings.has_rated(product_id, customer_id)

    def can_rate(self, product_id: str, customer_id: str | None = None) -> bool:
        return can_rate(product_id, customer_id or self.customer_id, self._ledger.all())

    def ratings(self) -> list[ProductRating]:
        return deepcopy(list(self._ratings.ratings))
