"""Domain events for the Order aggregate."""

from protean.fields import Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A checkout produced a new order in the pending state."""

    __version__ = 1

    order_id: Identifier(required=True)
    customer_id: String(max_length=255, default="")
    vendor_id: Identifier(required=True)
    item_count: Integer(required=True)
    total: Float(required=True)
    delivery_fee: Float()
    delivery_type: String(max_length=20)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id: Identifier(required=True)
    previous_status: String(max_length=20, required=True)
    new_status: String(max_length=20, required=True)


@storefront.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id: Identifier(required=True)
    customer_id: String(max_length=255, default="")
    product_ids: Text(required=True)  # JSON: list of product ids


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id: Identifier(required=True)
    previous_status: String(max_length=20, required=True)
    reason: String(max_length=500)


@storefront.event(part_of="Order")
class OrderDetailsUpdated:
    __version__ = 1

    order_id: Identifier(required=True)
    changed_fields: Text(required=True)  # JSON: list of field names
