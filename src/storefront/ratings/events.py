"""Domain events for product ratings."""

from protean.fields import Boolean, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="RatingBook")
class ProductRated:
    """A customer rated a product for the first time, or replaced an earlier rating."""

    __version__ = 1

    product_id: Identifier(required=True)
    customer_id: Identifier(required=True)
    rating: Integer(required=True)
    order_id: String(max_length=255, default="")
    replaced: Boolean(default=False)


@storefront.event(part_of="RatingBook")
class ProductRatingChanged:
    __version__ = 1

    product_id: Identifier(required=True)
    customer_id: Identifier(required=True)
    previous_rating: Integer(required=True)
    new_rating: Integer(required=True)


@storefront.event(part_of="RatingBook")
class RemoteRatingsMerged:
    __version__ = 1

    inserted_count: Integer(required=True)
    skipped_count: Integer(required=True)
