"""Store implementations for autorest."""

from autorest.store.base import (
    ConstraintError,
    DuplicateKeyError,
    NotFoundError,
    Record,
    Store,
    StoreError,
    ValidationError,
)
from autorest.store.memory import InMemoryStore

__all__ = [
    "Store",
    "InMemoryStore",
    "Record",
    "StoreError",
    "NotFoundError",
    "DuplicateKeyError",
    "ValidationError",
    "ConstraintError",
]
