"""Pydantic request/response schemas for the Storefront API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# --- Request Schemas ---


class CartLineRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "t1",
                    "name": "Tomatoes 1kg",
                    "unit_price": 3.99,
                    "quantity": 2,
                    "vendor_id": "v1",
                    "vendor_name": "Green Grocer",
                }
            ]
        }
    }

    id: str = Field(..., min_length=1)
    name: str = Field(..., max_length=255)
    unit_price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    vendor_id: str = Field(..., min_length=1)
    vendor_name: str = ""
    image: str | None = None
    customizations: list[str] | None = None


class UpdateQuantityRequest(BaseModel):
    quantity: int


class SelectVendorRequest(BaseModel):
    vendor_id: str


class AddAddressRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [{"label": "Home", "street": "12 Long Street", "city": "Cape Town", "postal_code": "8001"}]
        }
    }

    label: str = Field(..., max_length=100)
    street: str = Field(..., max_length=255)
    city: str = Field(..., max_length=100)
    postal_code: str = Field("", max_length=20)


class UpdateAddressRequest(BaseModel):
    label: str | None = Field(None, max_length=100)
    street: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=20)
    is_default: bool | None = None


class AddPaymentMethodRequest(BaseModel):
    """Either a raw ``card_number`` (only its last four digits are kept) or a prepared method."""

    model_config = {
        "json_schema_extra": {"examples": [{"card_number": "4111 1111 1111 1111", "expiry": "12/27"}]}
    }

    card_number: str | None = Field(None, max_length=32)
    kind: str = "card"
    label: str | None = Field(None, max_length=100)
    last4: str | None = None
    expiry: str | None = None


class UpdatePaymentMethodRequest(BaseModel):
    label: str | None = Field(None, max_length=100)
    expiry: str | None = None
    is_default: bool | None = None


class CoordinatesSchema(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class PlaceOrderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "delivery_address": "12 Long Street, Cape Town",
                    "contact_phone": "+27 21 555 0100",
                    "payment": {"kind": "cash"},
                    "delivery_type": "delivery",
                }
            ]
        }
    }

    delivery_address: str | None = None
    address_id: str | None = None
    contact_phone: str = ""
    payment: dict = Field(default_factory=lambda: {"kind": "cash"})
    delivery_type: str = "delivery"
    vendor_location: CoordinatesSchema | None = None
    customer_location: CoordinatesSchema | None = None


class AdvanceOrderRequest(BaseModel):
    status: str


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class UpdateOrderRequest(BaseModel):
    driver_id: str | None = None
    estimated_delivery: datetime | None = None
    payment_status: str | None = None


class SubmitRatingRequest(BaseModel):
    product_id: str
    customer_id: str
    rating: int = Field(..., ge=1, le=5)
    order_id: str = ""


class VendorRatingRequest(BaseModel):
    product_ids: list[str] | None = None


# --- Response Schemas ---


class StatusResponse(BaseModel):
    status: str = "ok"


class OrderIdResponse(BaseModel):
    order_id: str


class RatingResponse(BaseModel):
    id: str
    rating: float


# --- Aggregate views (read from domain objects by attribute) ---


class CartLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    unit_price: float
    quantity: int
    vendor_id: str
    vendor_name: str | None = ""
    image: str | None = None
    customizations: list[str] | None = None


class CartResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lines: list[CartLineResponse]
    total: float
    multi_vendor_notice: bool
    selected_vendor_id: str | None = None


class VendorGroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    vendor_id: str
    vendor_name: str | None = ""
    lines: list[CartLineResponse]
    subtotal: float


class AddressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    label: str
    street: str
    city: str
    postal_code: str | None = ""
    is_default: bool


class PaymentMethodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: str
    label: str
    last4: str | None = None
    expiry: str | None = None
    is_default: bool


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: str | None = ""
    vendor_id: str
    driver_id: str | None = None
    items: list[CartLineResponse]
    total: float
    status: str
    created_at: datetime
    estimated_delivery: datetime | None = None
    delivery_address: str
    contact_phone: str | None = ""
    payment_method_id: str | None = None
    payment_status: str
    delivery_fee: float
    delivery_type: str


class ProductRatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    customer_id: str
    rating: int
    order_id: str | None = ""
    created_at: datetime | None = None
