"""RatingBook aggregate — product ratings held for the session.

One rating per (product, customer): a later submission from the same customer
replaces the earlier one. Product and vendor ratings are derived on demand;
with no real ratings the deterministic fallback is shown instead.
"""

from collections.abc import Iterable
from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storefront.domain import storefront
from storefront.orders.order import Order, OrderStatus
from storefront.ratings.events import ProductRated, ProductRatingChanged, RemoteRatingsMerged
from storefront.ratings.fallback import fallback_rating


def _utc_now() -> datetime:
    return datetime.now(UTC)


@storefront.entity(part_of="RatingBook")
class ProductRating:
    product_id: Identifier(required=True)
    customer_id: Identifier(required=True)
    rating: Integer(required=True, min_value=1, max_value=5)
    order_id: String(max_length=255, default="")
    created_at: DateTime(default=_utc_now)

    @property
    def key(self) -> tuple[str, str]:
        return self.product_id, self.customer_id

    def duplicate(self):
        return ProductRating(
            product_id=self.product_id,
            customer_id=self.customer_id,
            rating=self.rating,
            order_id=self.order_id,
            created_at=self.created_at,
        )


def can_rate(product_id, customer_id, orders: Iterable[Order]) -> bool:
    """True when some delivered order of the customer contains the product."""
    return any(
        order.customer_id == customer_id
        and order.status == OrderStatus.DELIVERED.value
        and order.contains_product(product_id)
        for order in orders
    )


@storefront.aggregate
class RatingBook:
    ratings: HasMany(ProductRating)

    @invariant.post
    def one_rating_per_customer_and_product(self):
        keys = [rating.key for rating in self.ratings]
        if len(keys) != len(set(keys)):
            raise ValidationError({"ratings": ["A customer can rate a product only once"]})

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def find(self, product_id, customer_id):
        return next(
            (rating for rating in self.ratings if rating.key == (product_id, customer_id)),
            None,
        )

    def has_rated(self, product_id, customer_id) -> bool:
        return self.find(product_id, customer_id) is not None

    def ratings_for(self, product_ids: Iterable[str]) -> list:
        wanted = set(product_ids)
        return [rating for rating in self.ratings if rating.product_id in wanted]

    def product_rating(self, product_id) -> float:
        """Average of the product's ratings, or its fallback when it has none."""
        values = [rating.rating for rating in self.ratings_for([product_id])]
        if not values:
            return fallback_rating(product_id)
        return sum(values) / len(values)

    def vendor_rating(self, vendor_id, product_ids: list[str]) -> float:
        """Rating of a vendor from the ratings of its products.

        Averages every real rating among ``product_ids``. When none of the
        products is rated the average of their fallbacks is returned instead;
        the two are never mixed. A vendor without products gets the fallback
        of its own id.
        """
        if not product_ids:
            return fallback_rating(vendor_id)

        values = [rating.rating for rating in self.ratings_for(product_ids)]
        if values:
            return sum(values) / len(values)

        fallbacks = [fallback_rating(product_id) for product_id in product_ids]
        return sum(fallbacks) / len(fallbacks)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def submit(self, rating: ProductRating) -> ProductRating:
        """Store ``rating``, replacing the customer's earlier rating of the product."""
        existing = self.find(*rating.key)
        if existing is not None:
            with atomic_change(self):
                existing.rating = rating.rating
                existing.order_id = rating.order_id
                existing.created_at = rating.created_at
            stored = existing
        else:
            stored = rating.duplicate()
            self.add_ratings(stored)

        self.raise_(
            ProductRated(
                product_id=stored.product_id,
                customer_id=stored.customer_id,
                rating=stored.rating,
                order_id=stored.order_id,
                replaced=existing is not None,
            )
        )
        return stored

    def update_rating(self, product_id, customer_id, value: int) -> bool:
        """Change the value of an existing rating. Returns False when there is none."""
        existing = self.find(product_id, customer_id)
        if existing is None:
            return False

        previous = existing.rating
        existing.rating = value
        self.raise_(
            ProductRatingChanged(
                product_id=product_id,
                customer_id=customer_id,
                previous_rating=previous,
                new_rating=value,
            )
        )
        return True

    def merge_remote(self, ratings: Iterable[ProductRating]) -> int:
        """Insert fetched ratings the book does not hold yet; local ones win.

        Returns the number of ratings inserted.
        """
        inserted = skipped = 0
        with atomic_change(self):
            for rating in ratings:
                if self.has_rated(*rating.key):
                    skipped += 1
                    continue
                self.add_ratings(rating.duplicate())
                inserted += 1

        if inserted:
            self.raise_(RemoteRatingsMerged(inserted_count=inserted, skipped_count=skipped))
        return inserted
