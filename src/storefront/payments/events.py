"""Domain events for the PaymentRegistry aggregate."""

from protean.fields import Boolean, Identifier, Text

from storefront.domain import storefront


@storefront.event(part_of="PaymentRegistry")
class PaymentMethodAdded:
    __version__ = 1

    entry_id: Identifier(required=True)
    is_default: Boolean(default=False)


@storefront.event(part_of="PaymentRegistry")
class PaymentMethodUpdated:
    __version__ = 1

    entry_id: Identifier(required=True)
    changed_fields: Text(required=True)  # JSON: list of field names


@storefront.event(part_of="PaymentRegistry")
class PaymentMethodRemoved:
    __version__ = 1

    entry_id: Identifier(required=True)
    promoted_default_id: Identifier()


@storefront.event(part_of="PaymentRegistry")
class DefaultPaymentMethodChanged:
    __version__ = 1

    entry_id: Identifier(required=True)
    previous_default_id: Identifier()
