"""Cart aggregate — the customer's working set of products before checkout.

Lines are keyed by product id: adding a product that is already in the cart
merges quantities instead of creating a second line. The cart total is never
stored; it is derived from the current lines every time it is read.

Checkout supports a single vendor at a time. When the cart spans several
vendors the multi-vendor notice is raised and the customer picks the vendor
to check out with ``select_vendor``.
"""

import json
from dataclasses import dataclass, field

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, HasMany, Identifier, Integer, List, String

from storefront.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CheckoutVendorSelected,
    MultiVendorCartDetected,
)
from storefront.domain import storefront


@storefront.entity(part_of="Cart")
class CartLine:
    """One product in the cart. The line id is the product id."""

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

    def details(self) -> dict:
        """The line's values, for copying it into another line or an order item."""
        return {
            "id": self.id,
            "name": self.name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "image": self.image,
            "customizations": list(self.customizations) if self.customizations else None,
        }


@dataclass
class VendorGroup:
    """Cart lines belonging to one vendor."""

    vendor_id: str
    vendor_name: str
    lines: list = field(default_factory=list)

    @property
    def subtotal(self) -> float:
        return round(sum(line.line_total for line in self.lines), 2)


@storefront.aggregate
class Cart:
    lines: HasMany(CartLine)
    multi_vendor_notice: Boolean(default=False)
    selected_vendor_id: Identifier()

    @invariant.post
    def line_ids_are_unique(self):
        ids = [line.id for line in self.lines]
        if len(ids) != len(set(ids)):
            raise ValidationError({"lines": ["A product can only appear once in the cart"]})

    @invariant.post
    def selected_vendor_has_lines(self):
        if self.selected_vendor_id is not None and self.selected_vendor_id not in self.vendor_ids:
            raise ValidationError({"selected_vendor_id": ["Selected vendor has no items in the cart"]})

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def total(self) -> float:
        return round(sum(line.line_total for line in self.lines), 2)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def vendor_ids(self) -> list[str]:
        """Distinct vendor ids in order of first appearance."""
        return list(dict.fromkeys(line.vendor_id for line in self.lines))

    def find(self, line_id):
        return next((line for line in self.lines if line.id == line_id), None)

    def vendor_groups(self) -> list[VendorGroup]:
        groups: dict[str, VendorGroup] = {}
        for line in self.lines:
            group = groups.get(line.vendor_id)
            if group is None:
                group = groups[line.vendor_id] = VendorGroup(vendor_id=line.vendor_id, vendor_name=line.vendor_name)
            group.lines.append(line)
        return list(groups.values())

    def checkout_lines(self) -> list:
        """Lines that the next checkout would order."""
        vendors = self.vendor_ids
        if len(vendors) <= 1:
            return list(self.lines)
        if self.selected_vendor_id is None:
            raise ValidationError(
                {
                    "vendor": [
                        "You have items from multiple vendors. "
                        "Please select one vendor to proceed to checkout."
                    ]
                }
            )
        return [line for line in self.lines if line.vendor_id == self.selected_vendor_id]

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_item(self, line: CartLine) -> CartLine:
        """Add a line, or increase the quantity of the line with the same id.

        A merge keeps the price, vendor and metadata of the line already in
        the cart, so only a new line can bring a new vendor in.
        """
        vendors_before = self.vendor_ids
        existing = self.find(line.id)

        if existing:
            existing.quantity += line.quantity
            target = existing
        else:
            target = CartLine(**line.details())
            self.add_lines(target)

        self.raise_(
            CartItemAdded(
                line_id=target.id,
                vendor_id=target.vendor_id,
                quantity=line.quantity,
                new_quantity=target.quantity,
                merged=existing is not None,
            )
        )

        if vendors_before and target.vendor_id not in vendors_before:
            self.multi_vendor_notice = True
            self.raise_(MultiVendorCartDetected(vendor_ids=json.dumps(self.vendor_ids)))

        return target

    def remove_item(self, line_id) -> bool:
        """Remove a line. Returns False when there was nothing to remove."""
        line = self.find(line_id)
        if line is None:
            return False

        with atomic_change(self):
            self.remove_lines(line)
            self._forget_vanished_vendor()

        self.raise_(CartItemRemoved(line_id=line_id, vendor_id=line.vendor_id))
        return True

    def update_item_quantity(self, line_id, quantity: int) -> bool:
        """Set a line's quantity exactly; zero or less removes the line."""
        if quantity <= 0:
            return self.remove_item(line_id)

        line = self.find(line_id)
        if line is None:
            return False

        previous_quantity = line.quantity
        line.quantity = quantity

        self.raise_(
            CartQuantityUpdated(
                line_id=line_id,
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )
        return True

    def drop_lines(self, line_ids) -> None:
        for line_id in line_ids:
            self.remove_item(line_id)

    def clear(self) -> None:
        removed = len(self.lines)
        with atomic_change(self):
            for line in list(self.lines):
                self.remove_lines(line)
            self.multi_vendor_notice = False
            self.selected_vendor_id = None
        self.raise_(CartCleared(removed_line_count=removed))

    # -------------------------------------------------------------------
    # Vendor handling
    # -------------------------------------------------------------------
    def dismiss_multi_vendor_notice(self) -> None:
        self.multi_vendor_notice = False

    def select_vendor(self, vendor_id) -> None:
        if vendor_id not in self.vendor_ids:
            raise ValidationError({"vendor_id": [f"No items from vendor {vendor_id} in the cart"]})

        self.selected_vendor_id = vendor_id
        self.raise_(CheckoutVendorSelected(vendor_id=vendor_id))

    def _forget_vanished_vendor(self) -> None:
        if self.selected_vendor_id is not None and self.selected_vendor_id not in self.vendor_ids:
            self.selected_vendor_id = None
        if len(self.vendor_ids) <= 1:
            self.multi_vendor_notice = False
