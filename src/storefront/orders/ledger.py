"""OrderLedger — every order of the session, most recent first.

Orders are never deleted. The ledger stores them by value: ``get`` hands out
a copy and ``replace`` commits a modified copy back, so a caller holding an
order can never change the ledger behind its back.
"""

from copy import deepcopy

from storefront.exceptions import ObjectNotFoundError
from storefront.orders.order import Order


def _not_found(order_id) -> ObjectNotFoundError:
    return ObjectNotFoundError({"order_id": [f"Order {order_id} not found"]})


class OrderLedger:
    def __init__(self, orders: list[Order] | None = None) -> None:
        self._orders: list[Order] = [deepcopy(order) for order in orders or []]

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_id) -> bool:
        return any(order.id == order_id for order in self._orders)

    def prepend(self, order: Order) -> None:
        if order.id in self:
            raise ValueError(f"Order {order.id} is already in the ledger")
        self._orders.insert(0, deepcopy(order))

    def get(self, order_id) -> Order:
        for order in self._orders:
            if order.id == order_id:
                return deepcopy(order)
        raise _not_found(order_id)

    def replace(self, order: Order) -> None:
        for index, existing in enumerate(self._orders):
            if existing.id == order.id:
                self._orders[index] = deepcopy(order)
                return
        raise _not_found(order.id)

    def all(self) -> list[Order]:
        return [deepcopy(order) for order in self._orders]

    def current(self) -> list[Order]:
        return [deepcopy(order) for order in self._orders if order.is_current]

    def past(self) -> list[Order]:
        return [deepcopy(order) for order in self._orders if order.is_past]

    def for_customer(self, customer_id) -> list[Order]:
        return [deepcopy(order) for order in self._orders if order.customer_id == customer_id]
