"""Read-only vendor and product reference data.

The catalog is owned by the backend; the engine only looks vendors and
products up by id, to derive vendor ratings and to build cart lines.
"""

from pydantic import BaseModel, Field

from storefront.cart.cart import CartLine
from storefront.delivery.port import Coordinates


class Product(BaseModel):
    id: str = Field(min_length=1)
    name: str
    price: float = Field(ge=0)
    category: str = ""
    image: str | None = None


class Vendor(BaseModel):
    id: str = Field(min_length=1)
    name: str
    tagline: str = ""
    image: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    products: list[Product] = Field(default_factory=list)

    @property
    def location(self) -> Coordinates | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(self.latitude, self.longitude)


class Catalog:
    def __init__(self, vendors: list[Vendor] | None = None) -> None:
        self._vendors = {vendor.id: vendor for vendor in vendors or []}

    def vendor(self, vendor_id: str) -> Vendor | None:
        return self._vendors.get(vendor_id)

    def vendors(self) -> list[Vendor]:
        return list(self._vendors.values())

    def product_ids_for(self, vendor_id: str) -> list[str]:
        vendor = self.vendor(vendor_id)
        return [product.id for product in vendor.products] if vendor else []

    def find_product(self, product_id: str) -> tuple[Vendor, Product] | None:
        for vendor in self._vendors.values():
            for product in vendor.products:
                if product.id == product_id:
                    return vendor, product
        return None

    def cart_line(self, product_id: str, quantity: int = 1, customizations: list[str] | None = None) -> CartLine | None:
        """Cart line for a catalog product, priced at the catalog price."""
        found = self.find_product(product_id)
        if found is None:
            return None

        vendor, product = found
        return CartLine(
            id=product.id,
            name=product.name,
            unit_price=product.price,
            quantity=quantity,
            vendor_id=vendor.id,
            vendor_name=vendor.name,
            image=product.image,
            customizations=customizations,
        )
