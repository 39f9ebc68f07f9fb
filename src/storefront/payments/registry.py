"""PaymentRegistry aggregate — saved cards plus the always-present cash method.

Cash on delivery is the terminal fallback: the registry holds exactly one
cash method at all times and refuses to delete it. A fresh registry (and one
restored without any durable record) is seeded with it as the default.
"""

import re
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, HasMany, String

from storefront.domain import storefront
from storefront.exceptions import ProtectedEntityError
from storefront.payments.events import (
    DefaultPaymentMethodChanged,
    PaymentMethodAdded,
    PaymentMethodRemoved,
    PaymentMethodUpdated,
)
from storefront.shared.default_collection import (
    DefaultedEntries,
    DefaultEvents,
    check_single_default,
    check_unique_ids,
)

CASH_METHOD_ID = "cash-1"
CASH_METHOD_LABEL = "Cash on Delivery"

_LAST4 = re.compile(r"^\d{4}$")
_EXPIRY = re.compile(r"^(0[1-9]|1[0-2])/\d{2}$")

_EVENTS = DefaultEvents(
    added=PaymentMethodAdded,
    updated=PaymentMethodUpdated,
    removed=PaymentMethodRemoved,
    default_changed=DefaultPaymentMethodChanged,
)
_UPDATABLE = frozenset({"label", "expiry"})


class PaymentKind(Enum):
    CARD = "card"
    CASH = "cash"


@storefront.entity(part_of="PaymentRegistry")
class PaymentMethod:
    kind: String(required=True, choices=PaymentKind)
    label: String(required=True, max_length=100)
    last4: String(max_length=4)
    expiry: String(max_length=5)
    is_default: Boolean(default=False)

    @invariant.post
    def card_details_are_well_formed(self):
        errors = {}
        if self.last4 is not None and not _LAST4.match(self.last4):
            errors["last4"] = ["must be exactly four digits"]
        if self.expiry is not None and not _EXPIRY.match(self.expiry):
            errors["expiry"] = ["must look like MM/YY"]
        if errors:
            raise ValidationError(errors)

    @property
    def is_cash(self) -> bool:
        return self.kind == PaymentKind.CASH.value

    @classmethod
    def cash(cls):
        return cls(id=CASH_METHOD_ID, kind=PaymentKind.CASH.value, label=CASH_METHOD_LABEL, is_default=True)

    @classmethod
    def from_card_number(cls, card_number: str, expiry: str, **kwargs):
        """Build a card method from a raw card number, keeping only the last four digits."""
        digits = "".join(ch for ch in card_number if ch.isdigit())
        if len(digits) < 12:
            raise ValidationError({"card_number": ["Card number must have at least 12 digits"]})

        label = "Visa" if digits.startswith("4") else "Mastercard"
        return cls(kind=PaymentKind.CARD.value, label=label, last4=digits[-4:], expiry=expiry, **kwargs)


@storefront.aggregate
class PaymentRegistry:
    methods: HasMany(PaymentMethod)

    @invariant.post
    def exactly_one_default_method_when_methods_exist(self):
        check_single_default(self.methods, "Payment method")

    @invariant.post
    def method_ids_are_unique(self):
        check_unique_ids(self.methods, "Payment method")

    @invariant.post
    def exactly_one_cash_method(self):
        if not self.methods:
            return
        cash_methods = [method for method in self.methods if method.is_cash]
        if len(cash_methods) != 1:
            raise ValidationError({"kind": ["Exactly one cash payment method must exist"]})

    @classmethod
    def seeded(cls):
        """A registry holding only the cash method, as default."""
        registry = cls()
        registry.add_methods(PaymentMethod.cash())
        return registry

    def _entries(self) -> DefaultedEntries:
        return DefaultedEntries(self, "methods", "Payment method", _EVENTS, _UPDATABLE)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def find(self, method_id):
        return self._entries().find(method_id)

    def default(self):
        return self._entries().default()

    def cash_method(self):
        return next((method for method in self.methods if method.is_cash), None)

    def cards(self) -> list:
        return [method for method in self.methods if not method.is_cash]

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add(self, method):
        if method.is_cash and self.cash_method() is not None:
            raise ValidationError({"kind": ["Cash on delivery is already available"]})
        return self._entries().add(method)

    def update(self, method_id, **changes):
        return self._entries().update(method_id, **changes)

    def remove(self, method_id) -> bool:
        """Remove a card. Returns False when there was nothing to remove."""
        method = self.find(method_id)
        if method is not None and method.is_cash:
            raise ProtectedEntityError({"id": ["Cash on Delivery cannot be removed as a payment method"]})
        return self._entries().remove(method_id) is not None

    def set_default(self, method_id):
        return self._entries().set_default(method_id)
