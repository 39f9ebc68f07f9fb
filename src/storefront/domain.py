"""Storefront bounded context — cart, addresses, payment methods, orders and ratings.

Aggregates change state only through their methods, check their invariants
after every change and raise domain events named in the past tense. The
storefront facade applies each operation to a working copy of an aggregate
and commits the copy to the session only when the operation succeeds.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
