"""AddressBook aggregate — the customer's delivery addresses."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, HasMany, String

from storefront.addresses.events import (
    AddressAdded,
    AddressRemoved,
    AddressUpdated,
    DefaultAddressChanged,
)
from storefront.domain import storefront
from storefront.shared.default_collection import (
    DefaultedEntries,
    DefaultEvents,
    check_single_default,
    check_unique_ids,
)

_EVENTS = DefaultEvents(
    added=AddressAdded,
    updated=AddressUpdated,
    removed=AddressRemoved,
    default_changed=DefaultAddressChanged,
)
_UPDATABLE = frozenset({"label", "street", "city", "postal_code"})


@storefront.entity(part_of="AddressBook")
class Address:
    """A delivery location. ``label`` is free text such as "Home" or "Work"."""

    label: String(required=True, max_length=100)
    street: String(required=True, max_length=255)
    city: String(required=True, max_length=100)
    postal_code: String(max_length=20, default="")
    is_default: Boolean(default=False)

    @invariant.post
    def text_fields_must_not_be_blank(self):
        blank = [name for name in ("label", "street", "city") if not (getattr(self, name) or "").strip()]
        if blank:
            raise ValidationError({name: ["must not be blank"] for name in blank})

    def one_line(self) -> str:
        parts = [self.street, self.city, self.postal_code]
        return ", ".join(part for part in parts if part)


@storefront.aggregate
class AddressBook:
    addresses: HasMany(Address)

    @invariant.post
    def exactly_one_default_address_when_addresses_exist(self):
        check_single_default(self.addresses, "Address")

    @invariant.post
    def address_ids_are_unique(self):
        check_unique_ids(self.addresses, "Address")

    def _entries(self) -> DefaultedEntries:
        return DefaultedEntries(self, "addresses", "Address", _EVENTS, _UPDATABLE)

    def find(self, address_id):
        return self._entries().find(address_id)

    def default(self):
        return self._entries().default()

    def add(self, address):
        return self._entries().add(address)

    def update(self, address_id, **changes):
        return self._entries().update(address_id, **changes)

    def remove(self, address_id) -> bool:
        """Remove an address. Returns False when there was nothing to remove."""
        return self._entries().remove(address_id) is not None

    def set_default(self, address_id):
        return self._entries().set_default(address_id)
