"""In-memory storage adapter — for tests and throwaway sessions.

Reads and writes can be made to fail on demand to exercise the
persistence failure paths.
"""

from storefront.exceptions import PersistenceError
from storefront.persistence.port import KeyValueStorage


class MemoryStorage(KeyValueStorage):
    def __init__(self, items: dict[str, str] | None = None):
        self.items: dict[str, str] = dict(items or {})
        self.fail_reads = False
        self.fail_writes = False
        self.failure_reason = "Storage unavailable"

    def configure(
        self, fail_reads: bool = False, fail_writes: bool = False, failure_reason: str = "Storage unavailable"
    ):
        """Configure the failure behavior for testing."""
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.failure_reason = failure_reason

    def get_item(self, key: str) -> str | None:
        if self.fail_reads:
            raise PersistenceError(self.failure_reason)
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise PersistenceError(self.failure_reason)
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        if self.fail_writes:
            raise PersistenceError(self.failure_reason)
        self.items.pop(key, None)
