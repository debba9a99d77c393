"""Document store contract shared by the conversation and lead repositories."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Protocol

Document = Dict[str, Any]
Filter = Mapping[str, Any]

_MISSING = object()


class StorageError(RuntimeError):
    """Raised when the underlying store rejects a read or a write."""


class DocumentStore(Protocol):
    """Minimal document-store surface the handoff core relies on.

    Filters map dotted field paths (``customer.user.id``) to the value the
    field must equal. Every returned document carries its identity under
    ``"id"``.
    """

    def find_one(self, collection: str, filter: Filter) -> Optional[Document]: ...

    def find(self, collection: str, filter: Optional[Filter] = None) -> List[Document]: ...

    def create(self, collection: str, data: Document) -> Document: ...

    def update_by_id(self, collection: str, document_id: str, patch: Document) -> bool: ...

    def delete_by_id(self, collection: str, document_id: str) -> bool: ...


def lookup_path(document: Mapping[str, Any], path: str) -> Any:
    """Return the value at ``path`` or a sentinel when any segment is missing."""

    current: Any = document
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return _MISSING
    return current


def matches(document: Mapping[str, Any], filter: Optional[Filter]) -> bool:
    if not filter:
        return True
    for path, expected in filter.items():
        value = lookup_path(document, path)
        if value is _MISSING or value != expected:
            return False
    return True
