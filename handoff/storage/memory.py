"""Dictionary backed document store used in tests and local runs."""

from __future__ import annotations

import copy
from threading import Lock
from typing import Dict, List, Optional
from uuid import uuid4

from .base import Document, Filter, matches


class InMemoryDocumentStore:
    """Keeps documents per collection in insertion order.

    Documents are deep-copied on the way in and out so callers never share
    state with the store, mirroring a real database round-trip.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = Lock()

    def _collection(self, name: str) -> Dict[str, Document]:
        return self._collections.setdefault(name, {})

    def find_one(self, collection: str, filter: Filter) -> Optional[Document]:
        with self._lock:
            for document in self._collection(collection).values():
                if matches(document, filter):
                    return copy.deepcopy(document)
        return None

    def find(self, collection: str, filter: Optional[Filter] = None) -> List[Document]:
        with self._lock:
            return [
                copy.deepcopy(document)
                for document in self._collection(collection).values()
                if matches(document, filter)
            ]

    def create(self, collection: str, data: Document) -> Document:
        document = copy.deepcopy(data)
        document["id"] = str(uuid4())
        with self._lock:
            self._collection(collection)[document["id"]] = document
        return copy.deepcopy(document)

    def update_by_id(self, collection: str, document_id: str, patch: Document) -> bool:
        with self._lock:
            existing = self._collection(collection).get(document_id)
            if existing is None:
                return False
            for key, value in patch.items():
                if key == "id":
                    continue
                existing[key] = copy.deepcopy(value)
        return True

    def delete_by_id(self, collection: str, document_id: str) -> bool:
        with self._lock:
            return self._collection(collection).pop(document_id, None) is not None

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collection(collection))
