"""Storefront API package."""

from storefront.api.routes import address_router, cart_router, order_router, payment_router, rating_router

__all__ = ["cart_router", "address_router", "payment_router", "order_router", "rating_router"]
