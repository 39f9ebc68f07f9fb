"""Tests for the Storefront facade — cart operations and atomic outcomes."""

from storefront.cart.events import CartItemAdded, MultiVendorCartDetected
from storefront.catalog import Catalog, Product, Vendor
from storefront.delivery.fake_adapter import FakeEstimator
from storefront.engine import Outcome, Storefront
from storefront.persistence.adapter import PersistenceAdapter
from storefront.persistence.memory_adapter import MemoryStorage


def _line(line_id, vendor_id="v1", unit_price=3.99, quantity=1):
    return {
        "id": line_id,
        "name": line_id,
        "unit_price": unit_price,
        "quantity": quantity,
        "vendor_id": vendor_id,
    }


class TestOutcome:
    def test_success_is_truthy(self):
        assert Outcome.success(1)
        assert Outcome.success(1).value == 1

    def test_failure_is_falsy(self):
        from storefront.exceptions import ValidationError

        outcome = Outcome.failure(ValidationError({"cart": ["empty"]}))
        assert not outcome
        assert outcome.error == "ValidationError"
        assert outcome.messages == {"cart": ["empty"]}


class TestEndToEndScenario:
    def test_merge_then_multi_vendor(self, storefront):
        storefront.add_to_cart(_line("t1", "v1", 3.99, 2))
        storefront.add_to_cart(_line("t1", "v1", 3.99, 1))

        cart = storefront.cart
        assert [(line.id, line.quantity) for line in cart.lines] == [("t1", 3)]
        assert cart.total == 11.97

        outcome = storefront.add_to_cart(_line("f1", "v2", 2.49, 1))

        assert outcome.ok
        cart = storefront.cart
        assert cart.multi_vendor_notice is True
        assert cart.total == 14.46


class TestCartOperations:
    def test_add_accepts_camel_case(self, storefront):
        outcome = storefront.add_to_cart(
            {"id": "a", "name": "A", "unitPrice": 2.0, "quantity": 1, "vendorId": "v1", "vendorName": "V"}
        )

        assert outcome.ok
        assert outcome.value.unit_price == 2.0

    def test_invalid_line_is_a_validation_failure(self, storefront):
        outcome = storefront.add_to_cart(_line("a", quantity=0))

        assert not outcome.ok
        assert outcome.error == "ValidationError"
        assert "quantity" in outcome.messages
        assert storefront.cart.lines == []

    def test_remove_unknown_is_successful_noop(self, storefront):
        outcome = storefront.remove_from_cart("missing")

        assert outcome.ok
        assert outcome.value is False

    def test_update_quantity_and_remove(self, storefront):
        storefront.add_to_cart(_line("a", quantity=1))
        storefront.update_quantity("a", 4)
        assert storefront.cart.lines[0].quantity == 4

        storefront.update_quantity("a", 0)
        assert storefront.cart.lines == []

    def test_clear(self, storefront):
        storefront.add_to_cart(_line("a"))
        storefront.add_to_cart(_line("b", "v2"))
        storefront.clear_cart()

        cart = storefront.cart
        assert cart.lines == []
        assert cart.total == 0
        assert cart.multi_vendor_notice is False

    def test_dismiss_notice(self, storefront):
        storefront.add_to_cart(_line("a"))
        storefront.add_to_cart(_line("b", "v2"))
        storefront.dismiss_multi_vendor_notice()

        assert storefront.cart.multi_vendor_notice is False
        assert len(storefront.cart.lines) == 2

    def test_vendor_groups(self, storefront):
        storefront.add_to_cart(_line("a", "v1", 1.0, 2))
        storefront.add_to_cart(_line("b", "v2", 2.0, 1))

        groups = storefront.vendor_groups()
        assert [(group.vendor_id, group.subtotal) for group in groups] == [("v1", 2.0), ("v2", 2.0)]

    def test_select_unknown_vendor_fails(self, storefront):
        storefront.add_to_cart(_line("a"))
        outcome = storefront.select_vendor_for_checkout("v9")

        assert outcome.error == "ValidationError"
        assert storefront.cart.selected_vendor_id is None

    def test_cart_property_is_a_copy(self, storefront):
        storefront.add_to_cart(_line("a"))
        storefront.cart.lines.clear()

        assert len(storefront.cart.lines) == 1

    def test_returned_line_is_detached(self, storefront):
        line = storefront.add_to_cart(_line("a")).value
        line.quantity = 50

        assert storefront.cart.lines[0].quantity == 1


class TestEvents:
    def test_listeners_receive_committed_events(self, storefront):
        received = []
        storefront.subscribe(received.append)

        storefront.add_to_cart(_line("a", "v1"))
        storefront.add_to_cart(_line("b", "v2"))

        assert [type(event) for event in received] == [CartItemAdded, CartItemAdded, MultiVendorCartDetected]

    def test_failed_operation_publishes_nothing(self, storefront):
        received = []
        storefront.subscribe(received.append)

        storefront.add_to_cart(_line("a", quantity=-1))

        assert received == []

    def test_unsubscribe(self, storefront):
        received = []
        unsubscribe = storefront.subscribe(received.append)
        unsubscribe()
        unsubscribe()

        storefront.add_to_cart(_line("a"))
        assert received == []

    def test_cart_changes_are_not_persisted(self, storefront, memory_storage):
        storefront.add_to_cart(_line("a"))
        storefront.flush()

        assert memory_storage.items == {}


class TestCatalogProducts:
    def _storefront(self):
        catalog = Catalog(
            [
                Vendor(
                    id="v1",
                    name="Green Grocer",
                    products=[Product(id="p1", name="Apples", price=1.5), Product(id="p2", name="Pears", price=2.0)],
                )
            ]
        )
        return Storefront(
            persistence=PersistenceAdapter(MemoryStorage()),
            estimator=FakeEstimator(),
            catalog=catalog,
        )

    def test_add_product_uses_catalog_price(self):
        storefront = self._storefront()
        storefront.add_product("p1", quantity=2)

        line = storefront.cart.lines[0]
        assert line.unit_price == 1.5
        assert line.vendor_id == "v1"
        assert line.vendor_name == "Green Grocer"
        assert storefront.cart.total == 3.0

    def test_unknown_product_fails(self):
        outcome = self._storefront().add_product("p9")

        assert outcome.error == "ValidationError"
        assert "product_id" in outcome.messages
