"""Error taxonomy for the storefront engine.

Domain-rule violations are protean exceptions carrying a ``messages`` dict
that maps the offending field (or concern) to user-facing messages, e.g.
``{"cart": ["Please add items to your cart before checkout"]}``.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError

__all__ = [
    "DOMAIN_ERRORS",
    "ObjectNotFoundError",
    "PersistenceError",
    "ProtectedEntityError",
    "StaleTransitionError",
    "ValidationError",
]


class ProtectedEntityError(ValidationError):
    """Attempt to delete an entity that must always exist (the cash payment method)."""


class StaleTransitionError(ValidationError):
    """Order status change requested from a state that does not allow it."""


class PersistenceError(Exception):
    """Durable storage read/write failure. Logged by the persistence layer, never surfaced."""


# Rule violations an operation reports back to its caller
DOMAIN_ERRORS = (ValidationError, ObjectNotFoundError)
