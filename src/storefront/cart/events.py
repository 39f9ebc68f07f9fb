"""Domain events for the Cart aggregate."""

from protean.fields import Boolean, Identifier, Integer, Text

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, either as a new line or merged into an existing one."""

    __version__ = 1

    line_id: Identifier(required=True)
    vendor_id: Identifier(required=True)
    quantity: Integer(required=True)
    new_quantity: Integer(required=True)
    merged: Boolean(default=False)


@storefront.event(part_of="Cart")
class CartQuantityUpdated:
    """The quantity of a cart line was set to a new value."""

    __version__ = 1

    line_id: Identifier(required=True)
    previous_quantity: Integer(required=True)
    new_quantity: Integer(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = 1

    line_id: Identifier(required=True)
    vendor_id: Identifier(required=True)


@storefront.event(part_of="Cart")
class CartCleared:
    """All lines were removed from the cart."""

    __version__ = 1

    removed_line_count: Integer(required=True)


@storefront.event(part_of="Cart")
class MultiVendorCartDetected:
    """The cart now holds products from more than one vendor."""

    __version__ = 1

    vendor_ids: Text(required=True)  # JSON: list of vendor ids


@storefront.event(part_of="Cart")
class CheckoutVendorSelected:
    __version__ = 1

    vendor_id: Identifier(required=True)
