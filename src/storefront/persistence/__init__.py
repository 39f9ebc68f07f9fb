"""Durable storage factory.

Provides get_storage() / set_storage() to swap implementations:
- MemoryStorage for tests and throwaway sessions
- FileStorage for a JSON file per key under STOREFRONT_STORAGE_DIR

The adapter is selected through the STOREFRONT_STORAGE environment variable
(``memory`` or ``file``, default ``file``).
"""

import os

from storefront.persistence.port import KeyValueStorage

DEFAULT_STORAGE_DIR = ".storefront"

_current_storage: KeyValueStorage | None = None


def get_storage() -> KeyValueStorage:
    """Return the current storage adapter (singleton)."""
    global _current_storage
    if _current_storage is None:
        adapter = os.environ.get("STOREFRONT_STORAGE", "file")
        if adapter == "memory":
            from storefront.persistence.memory_adapter import MemoryStorage

            _current_storage = MemoryStorage()
        elif adapter == "file":
            from storefront.persistence.file_adapter import FileStorage

            _current_storage = FileStorage(os.environ.get("STOREFRONT_STORAGE_DIR", DEFAULT_STORAGE_DIR))
        else:
            raise ValueError(f"Unknown storage adapter: {adapter}")
    return _current_storage


def set_storage(storage: KeyValueStorage) -> None:
    """Override the active storage adapter (useful for tests)."""
    global _current_storage
    _current_storage = storage


def reset_storage() -> None:
    """Reset to the configured storage adapter."""
    global _current_storage
    _current_storage = None
