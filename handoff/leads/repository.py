"""Lead persistence on top of a :class:`DocumentStore`."""

from __future__ import annotations

from typing import List, Optional

from pydantic import ValidationError

from ..conversations.repository import dump_conversation
from ..conversations.schemas import Conversation
from ..storage.base import Document, DocumentStore, StorageError
from .schemas import Lead

COLLECTION = "leads"


def _load_lead(document: Document) -> Lead:
    try:
        return Lead.model_validate(document)
    except ValidationError as exc:
        raise StorageError(f"Stored lead {document.get('id')} is malformed: {exc}") from exc


class LeadRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def get_by_lead_id(self, lead_id: str) -> Optional[Lead]:
        document = self._store.find_one(COLLECTION, {"lead_id": lead_id})
        if document is None:
            return None
        return _load_lead(document)

    def create(self, lead_id: str, name: Optional[str]) -> Lead:
        lead = Lead(lead_id=lead_id, name=name)
        document = self._store.create(
            COLLECTION, lead.model_dump(mode="json", exclude={"id"})
        )
        return _load_lead(document)

    def update_conversations(self, lead: Lead, conversations: List[Conversation]) -> bool:
        """Persist ``last_conversations_by_channel`` and nothing else."""

        if lead.id is None:
            raise StorageError("Cannot update a lead that was never stored")
        patch = {
            "last_conversations_by_channel": [
                {**dump_conversation(conversation), "id": conversation.id}
                for conversation in conversations
            ]
        }
        return self._store.update_by_id(COLLECTION, lead.id, patch)

    def delete(self, lead: Lead) -> bool:
        if lead.id is None:
            raise StorageError("Cannot delete a lead that was never stored")
        return self._store.delete_by_id(COLLECTION, lead.id)
