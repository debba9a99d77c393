"""Locate the conversation a selector refers to."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..storage.base import StorageError
from . import repository as repo
from .repository import ConversationRepository
from .schemas import Address, Conversation, ConversationState
from .selectors import (
    BestChoice,
    ByAgentConversationId,
    ByCustomerConversationId,
    ByCustomerId,
    ByCustomerName,
    Selector,
)

logger = logging.getLogger(__name__)


class ConversationResolver:
    """Turns a :data:`Selector` into at most one stored conversation."""

    def __init__(self, repository: ConversationRepository) -> None:
        self._repository = repository

    def resolve(
        self,
        by: Optional[Selector],
        customer_address: Optional[Address] = None,
    ) -> Optional[Conversation]:
        """Return the matching conversation or ``None``.

        Only a :class:`ByCustomerConversationId` lookup with a
        ``customer_address`` fallback writes to storage: when no conversation
        exists yet, a fresh one in Bot state is created for that address.
        Several conversations may share a customer name or id; the first one
        the store returns wins.
        """

        if isinstance(by, ByCustomerName):
            return self._repository.find_one({repo.CUSTOMER_NAME: by.name})
        if isinstance(by, ByCustomerId):
            return self._repository.find_one({repo.CUSTOMER_ID: by.customer_id})
        if isinstance(by, ByAgentConversationId):
            return self._repository.find_one(
                {repo.AGENT_CONVERSATION_ID: by.conversation_id}
            )
        if isinstance(by, ByCustomerConversationId):
            conversation = self._repository.find_one(
                {repo.CUSTOMER_CONVERSATION_ID: by.conversation_id}
            )
            if conversation is None and customer_address is not None:
                conversation = self._repository.create(customer_address)
                logger.info(
                    "Created conversation %s for customer conversation %s",
                    conversation.id,
                    by.conversation_id,
                )
            return conversation
        if isinstance(by, BestChoice):
            return self._waiting_longest()
        return None

    def list_conversations(self) -> List[Conversation]:
        try:
            return self._repository.find()
        except StorageError:
            logger.exception("Failed loading conversations")
            return []

    def _waiting_longest(self) -> Optional[Conversation]:
        waiting = [
            conversation
            for conversation in self._repository.find(
                {"state": int(ConversationState.WAITING)}
            )
            if conversation.transcript
        ]
        if not waiting:
            return None
        # min() keeps the first of equal timestamps, i.e. document order.
        return min(waiting, key=lambda conversation: conversation.last_activity)
