"""Domain events for the AddressBook aggregate."""

from protean.fields import Boolean, Identifier, Text

from storefront.domain import storefront


@storefront.event(part_of="AddressBook")
class AddressAdded:
    __version__ = 1

    entry_id: Identifier(required=True)
    is_default: Boolean(default=False)


@storefront.event(part_of="AddressBook")
class AddressUpdated:
    __version__ = 1

    entry_id: Identifier(required=True)
    changed_fields: Text(required=True)  # JSON: list of field names


@storefront.event(part_of="AddressBook")
class AddressRemoved:
    """An address was deleted; ``promoted_default_id`` is set when another address took over as default."""

    __version__ = 1

    entry_id: Identifier(required=True)
    promoted_default_id: Identifier()


@storefront.event(part_of="AddressBook")
class DefaultAddressChanged:
    __version__ = 1

    entry_id: Identifier(required=True)
    previous_default_id: Identifier()
