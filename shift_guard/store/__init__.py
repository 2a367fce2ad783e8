"""Document store boundary: the minimal store needed to host triggers."""

from shift_guard.store.base import ChangeKind, DocumentChange, DocumentStore
from shift_guard.store.memory import InMemoryDocumentStore
from shift_guard.store.sql import SqlDocumentStore

__all__ = [
    "ChangeKind",
    "DocumentChange",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
]
