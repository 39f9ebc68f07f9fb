"""Durable key-value storage port (abstract interface).

String keys map to string values, the way the device store the app runs on
exposes them. Adapters raise ``PersistenceError`` on any failure.
"""

from abc import ABC, abstractmethod


class KeyValueStorage(ABC):
    """Abstract durable key-value store."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key was never written."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...
