"""Persistence adapter — mirrors the address book and payment registry to storage.

Each save serializes the whole collection (a full overwrite, never a patch)
and hands it to the background writer. Records are camelCase JSON arrays,
e.g. ``[{"id": "home", "label": "Home", ..., "isDefault": true}]``.

Loading happens once on cold start; a missing or unreadable record never
stops the session:

- ``addresses``: an empty address book
- ``paymentMethods``: the registry seeded with cash on delivery
"""

import structlog
from protean import atomic_change
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from storefront.addresses.address_book import Address, AddressBook
from storefront.exceptions import PersistenceError, ValidationError
from storefront.payments.registry import PaymentMethod, PaymentRegistry
from storefront.persistence.port import KeyValueStorage
from storefront.persistence.writer import BackgroundWriter

logger = structlog.get_logger(__name__)

ADDRESSES_KEY = "addresses"
PAYMENT_METHODS_KEY = "paymentMethods"


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class AddressRecord(_Record):
    id: str = Field(min_length=1)
    label: str
    street: str
    city: str
    postal_code: str | None = None
    is_default: bool = False


class PaymentMethodRecord(_Record):
    id: str = Field(min_length=1)
    kind: str
    label: str
    last4: str | None = None
    expiry: str | None = None
    is_default: bool = False


_addresses = TypeAdapter(list[AddressRecord])
_payment_methods = TypeAdapter(list[PaymentMethodRecord])


class PersistenceAdapter:
    def __init__(self, storage: KeyValueStorage, writer: BackgroundWriter | None = None):
        self.storage = storage
        self.writer = writer or BackgroundWriter(storage)

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def save_addresses(self, book: AddressBook) -> None:
        self._save(ADDRESSES_KEY, _addresses, book.addresses)

    def save_payment_methods(self, registry: PaymentRegistry) -> None:
        self._save(PAYMENT_METHODS_KEY, _payment_methods, registry.methods)

    def _save(self, key: str, adapter: TypeAdapter, entries) -> None:
        records = adapter.validate_python(list(entries), from_attributes=True)
        payload = adapter.dump_json(records, by_alias=True, exclude_none=True).decode("utf-8")
        self.writer.submit(key, payload)

    def flush(self) -> None:
        self.writer.flush()

    def close(self) -> None:
        self.writer.close()

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def load_addresses(self) -> AddressBook:
        records = self._load(ADDRESSES_KEY, _addresses)
        if records is None:
            return AddressBook()
        return self._restore(ADDRESSES_KEY, AddressBook(), "addresses", Address, records) or AddressBook()

    def load_payment_methods(self) -> PaymentRegistry:
        records = self._load(PAYMENT_METHODS_KEY, _payment_methods)
        if not records:
            return PaymentRegistry.seeded()
        restored = self._restore(PAYMENT_METHODS_KEY, PaymentRegistry(), "methods", PaymentMethod, records)
        return restored or PaymentRegistry.seeded()

    def _load(self, key: str, adapter: TypeAdapter) -> list | None:
        try:
            raw = self.storage.get_item(key)
        except PersistenceError as exc:
            logger.error("persistence.read_failed", key=key, error=str(exc))
            return None

        if raw is None:
            logger.info("persistence.record_missing", key=key)
            return None

        try:
            return adapter.validate_json(raw)
        except PydanticValidationError as exc:
            logger.warning("persistence.record_corrupt", key=key, error_count=exc.error_count())
            return None

    def _restore(self, key: str, aggregate, field: str, entity_class, records):
        """Fill ``aggregate`` from ``records``; None when they break its invariants."""
        ids = [record.id for record in records]
        if len(ids) != len(set(ids)):
            logger.warning("persistence.record_inconsistent", key=key, errors={"id": ["Duplicate ids"]})
            return None

        try:
            with atomic_change(aggregate):
                for record in records:
                    getattr(aggregate, f"add_{field}")(entity_class(**record.model_dump()))
        except ValidationError as exc:
            logger.warning("persistence.record_inconsistent", key=key, errors=exc.messages)
            return None
        logger.info("persistence.loaded", key=key, count=len(getattr(aggregate, field)))
        return aggregate
