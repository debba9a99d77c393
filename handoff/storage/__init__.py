"""Document storage backends."""

from .base import DocumentStore, StorageError
from .memory import InMemoryDocumentStore
from .postgres import PostgresDocumentStore

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "PostgresDocumentStore",
    "StorageError",
]
