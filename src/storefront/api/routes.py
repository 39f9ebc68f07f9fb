"""FastAPI endpoints for the Storefront engine.

Every endpoint calls one facade operation. A failed ``Outcome`` becomes an
HTTP error carrying the error kind and its messages:
ValidationError 422, ProtectedEntityError 409, StaleTransitionError 409,
ObjectNotFoundError 404.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from storefront.api.schemas import (
    AddAddressRequest,
    AddPaymentMethodRequest,
    AddressResponse,
    AdvanceOrderRequest,
    CancelOrderRequest,
    CartLineRequest,
    CartResponse,
    OrderIdResponse,
    OrderResponse,
    PaymentMethodResponse,
    PlaceOrderRequest,
    ProductRatingResponse,
    RatingResponse,
    SelectVendorRequest,
    StatusResponse,
    SubmitRatingRequest,
    UpdateAddressRequest,
    UpdateOrderRequest,
    UpdatePaymentMethodRequest,
    UpdateQuantityRequest,
    VendorGroupResponse,
    VendorRatingRequest,
)
from storefront.engine import Outcome, Storefront

_STATUS_FOR_ERROR = {
    "ValidationError": 422,
    "ProtectedEntityError": 409,
    "StaleTransitionError": 409,
    "ObjectNotFoundError": 404,
}


def get_storefront(request: Request) -> Storefront:
    return request.app.state.storefront


def unwrap(outcome: Outcome):
    """Return the outcome's value, or raise the HTTP error matching its failure."""
    if outcome.ok:
        return outcome.value
    raise HTTPException(
        status_code=_STATUS_FOR_ERROR.get(outcome.error, 400),
        detail={"error": outcome.error, "messages": outcome.messages},
    )


def _view(schema, obj) -> dict:
    """Render a domain object through its response schema."""
    return schema.model_validate(obj).model_dump(mode="json")


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("")
async def get_cart(storefront: Storefront = Depends(get_storefront)) -> dict:
    return _view(CartResponse, storefront.cart)


@cart_router.post("/items")
async def add_to_cart(body: CartLineRequest, storefront: Storefront = Depends(get_storefront)) -> dict:
    unwrap(storefront.add_to_cart(body.model_dump()))
    return _view(CartResponse, storefront.cart)


@cart_router.put("/items/{line_id}")
async def update_quantity(
    line_id: str, body: UpdateQuantityRequest, storefront: Storefront = Depends(get_storefront)
) -> dict:
    unwrap(storefront.update_quantity(line_id, body.quantity))
    return _view(CartResponse, storefront.cart)


@cart_router.delete("/items/{line_id}")
async def remove_from_cart(line_id: str, storefront: Storefront = Depends(get_storefront)) -> dict:
    unwrap(storefront.remove_from_cart(line_id))
    return _view(CartResponse, storefront.cart)


@cart_router.delete("")
async def clear_cart(storefront: Storefront = Depends(get_storefront)) -> dict:
    unwrap(storefront.clear_cart())
    return _view(CartResponse, storefront.cart)


@cart_router.post("/notice/dismiss", response_model=StatusResponse)
async def dismiss_multi_vendor_notice(storefront: Storefront = Depends(get_storefront)) -> StatusResponse:
    unwrap(storefront.dismiss_multi_vendor_notice())
    return StatusResponse()


@cart_router.put("/vendor", response_model=StatusResponse)
async def select_vendor(body: SelectVendorRequest, storefront: Storefront = Depends(get_storefront)) -> StatusResponse:
    unwrap(storefront.select_vendor_for_checkout(body.vendor_id))
    return StatusResponse()


@cart_router.get("/vendors")
async def vendor_groups(storefront: Storefront = Depends(get_storefront)) -> list[dict]:
    return [_view(VendorGroupResponse, group) for group in storefront.vendor_groups()]


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------
address_router = APIRouter(prefix="/addresses", tags=["addresses"])


@address_router.get("")
async def list_addresses(storefront: Storefront = Depends(get_storefront)) -> list[dict]:
    return [_view(AddressResponse, address) for address in storefront.addresses]


@address_router.post("", status_code=201)
async def add_address(body: AddAddressRequest, storefront: Storefront = Depends(get_storefront)) -> dict:
    return _view(AddressResponse, unwrap(storefront.add_address(body.model_dump())))


@address_router.patch("/{address_id}")
async def update_address(
    address_id: str, body: UpdateAddressRequest, storefront: Storefront = Depends(get_storefront)
) -> dict:
    outcome = storefront.update_address(address_id, **body.model_dump(exclude_unset=True))
    return _view(AddressResponse, unwrap(outcome))


@address_router.delete("/{address_id}", response_model=StatusResponse)
async def remove_address(address_id: str, storefront: Storefront = Depends(get_storefront)) -> StatusResponse:
    unwrap(storefront.remove_address(address_id))
    return StatusResponse()


@address_router.put("/{address_id}/default")
async def set_default_address(address_id: str, storefront: Storefront = Depends(get_storefront)) -> dict:
    return _view(AddressResponse, unwrap(storefront.set_default_address(address_id)))


# ---------------------------------------------------------------------------
# Payment methods
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payment-methods", tags=["payment-methods"])


@payment_router.get("")
async def list_payment_methods(storefront: Storefront = Depends(get_storefront)) -> list[dict]:
    return [_view(PaymentMethodResponse, method) for method in storefront.payment_methods]


@payment_router.post("", status_code=201)
async def add_payment_method(body: AddPaymentMethodRequest, storefront: Storefront = Depends(get_storefront)) -> dict:
    if body.card_number:
        outcome = storefront.add_card(body.card_number, body.expiry)
    else:
        outcome = storefront.add_payment_method(body.model_dump(exclude={"card_number"}, exclude_none=True))
    return _view(PaymentMethodResponse, unwrap(outcome))


@payment_router.patch("/{method_id}")
async def update_payment_method(
    method_id: str, body: UpdatePaymentMethodRequest, storefront: Storefront = Depends(get_storefront)
) -> dict:
    outcome = storefront.update_payment_method(method_id, **body.model_dump(exclude_unset=True))
    return _view(PaymentMethodResponse, unwrap(outcome))


@payment_router.delete("/{method_id}", response_model=StatusResponse)
async def remove_payment_method(method_id: str, storefront: Storefront = Depends(get_storefront)) -> StatusResponse:
    unwrap(storefront.remove_payment_method(method_id))
    return StatusResponse()


@payment_router.put("/{method_id}/default")
async def set_default_payment_method(method_id: str, storefront: Storefront = Depends(get_storefront)) -> dict:
    return _view(PaymentMethodResponse, unwrap(storefront.set_default_payment_method(method_id)))


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest, storefront: Storefront = Depends(get_storefront)) -> OrderIdResponse:
    order = unwrap(storefront.place_order(body.model_dump(exclude_none=True)))
    return OrderIdResponse(order_id=order.id)


@order_router.get("")
async def list_orders(
    scope: str = Query("all", pattern="^(current|past|all)$"),
    storefront: Storefront = Depends(get_storefront),
) -> list[dict]:
    if scope == "current":
        orders = storefront.current_orders()
    elif scope == "past":
        orders = storefront.past_orders()
    else:
        orders = storefront.orders()
    return [_view(OrderResponse, order) for order in orders]


@order_router.get("/{order_id}")
async def get_order(order_id: str, storefront: Storefront = Depends(get_storefront)) -> dict:
    order = storefront.order(order_id)
    if order is None:
        raise HTTPException(
            status_code=404,
            detail={"error": "ObjectNotFoundError", "messages": {"order_id": [f"Order {order_id} not found"]}},
        )
    return _view(OrderResponse, order)


@order_router.patch("/{order_id}")
async def update_order(
    order_id: str, body: UpdateOrderRequest, storefront: Storefront = Depends(get_storefront)
) -> dict:
    return _view(OrderResponse, unwrap(storefront.update_order(order_id, **body.model_dump(exclude_unset=True))))


@order_router.post("/{order_id}/advance")
async def advance_order(
    order_id: str, body: AdvanceOrderRequest, storefront: Storefront = Depends(get_storefront)
) -> dict:
    return _view(OrderResponse, unwrap(storefront.advance_order(order_id, body.status)))


@order_router.post("/{order_id}/complete")
async def complete_order(order_id: str, storefront: Storefront = Depends(get_storefront)) -> dict:
    return _view(OrderResponse, unwrap(storefront.complete_order(order_id)))


@order_router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str, body: CancelOrderRequest, storefront: Storefront = Depends(get_storefront)
) -> dict:
    return _view(OrderResponse, unwrap(storefront.cancel_order(order_id, body.reason)))


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------
rating_router = APIRouter(prefix="/ratings", tags=["ratings"])


@rating_router.post("", status_code=201)
async def submit_rating(body: SubmitRatingRequest, storefront: Storefront = Depends(get_storefront)) -> dict:
    return _view(ProductRatingResponse, unwrap(storefront.submit_rating(body.model_dump())))


@rating_router.get("/products/{product_id}", response_model=RatingResponse)
async def product_rating(product_id: str, storefront: Storefront = Depends(get_storefront)) -> RatingResponse:
    return RatingResponse(id=product_id, rating=storefront.product_rating(product_id))


@rating_router.post("/vendors/{vendor_id}", response_model=RatingResponse)
async def vendor_rating(
    vendor_id: str, body: VendorRatingRequest, storefront: Storefront = Depends(get_storefront)
) -> RatingResponse:
    """Rating of a vendor over ``product_ids``, or over its catalog products when omitted."""
    if body.product_ids is None:
        rating = storefront.vendor_rating_from_catalog(vendor_id)
    else:
        rating = storefront.vendor_rating(vendor_id, body.product_ids)
    return RatingResponse(id=vendor_id, rating=rating)
