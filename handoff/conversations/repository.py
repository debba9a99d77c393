"""Conversation persistence on top of a :class:`DocumentStore`."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..storage.base import Document, DocumentStore, StorageError
from .schemas import Address, Conversation, ConversationState

COLLECTION = "conversations"

CUSTOMER_NAME = "customer.user.name"
CUSTOMER_ID = "customer.user.id"
CUSTOMER_CONVERSATION_ID = "customer.conversation.id"
AGENT_CONVERSATION_ID = "agent.conversation.id"


def dump_conversation(conversation: Conversation) -> Dict[str, Any]:
    """Serialise a conversation into the JSON document form stored on disk."""

    return conversation.model_dump(mode="json", by_alias=True, exclude={"id"})


def load_conversation(document: Document) -> Conversation:
    try:
        return Conversation.model_validate(document)
    except ValidationError as exc:
        raise StorageError(
            f"Stored conversation {document.get('id')} is malformed: {exc}"
        ) from exc


class ConversationRepository:
    """Typed access to the ``conversations`` collection."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def find_one(self, filter: Dict[str, Any]) -> Optional[Conversation]:
        document = self._store.find_one(COLLECTION, filter)
        if document is None:
            return None
        return load_conversation(document)

    def find(self, filter: Optional[Dict[str, Any]] = None) -> List[Conversation]:
        return [load_conversation(doc) for doc in self._store.find(COLLECTION, filter)]

    def create(self, customer: Address) -> Conversation:
        conversation = Conversation(
            customer=customer, state=ConversationState.BOT, transcript=[]
        )
        document = self._store.create(COLLECTION, dump_conversation(conversation))
        return load_conversation(document)

    def update(self, conversation: Conversation) -> bool:
        if conversation.id is None:
            raise StorageError("Cannot update a conversation that was never stored")
        return self._store.update_by_id(
            COLLECTION, conversation.id, dump_conversation(conversation)
        )

    def delete(self, conversation: Conversation) -> bool:
        if conversation.id is None:
            raise StorageError("Cannot delete a conversation that was never stored")
        return self._store.delete_by_id(COLLECTION, conversation.id)
