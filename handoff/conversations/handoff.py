"""Bot / Waiting / Agent transitions and the retention policy."""

from __future__ import annotations

import logging
from typing import Optional

from ..config import HandoffSettings
from ..storage.base import StorageError
from .repository import ConversationRepository
from .resolver import ConversationResolver
from .schemas import Address, Conversation, ConversationState
from .selectors import Selector

logger = logging.getLogger(__name__)


class HandoffStateMachine:
    """Moves conversations between the bot, the queue and human agents.

    Every transition re-reads the conversation through the resolver and writes
    it back once; there is no cache and no optimistic locking, so two
    concurrent transitions on one conversation resolve as last writer wins.
    Storage failures are logged and reported as ``False`` / ``None``.
    """

    def __init__(
        self,
        repository: ConversationRepository,
        resolver: ConversationResolver,
        settings: HandoffSettings,
    ) -> None:
        self._repository = repository
        self._resolver = resolver
        self._settings = settings

    def queue_customer_for_agent(self, by: Optional[Selector]) -> bool:
        try:
            conversation = self._resolver.resolve(by)
            if conversation is None:
                return False
            conversation.state = ConversationState.WAITING
            return self._save(conversation)
        except StorageError:
            logger.exception("Failed to queue conversation for %s", by)
            return False

    def connect_customer_to_agent(
        self, by: Optional[Selector], agent_address: Address
    ) -> Optional[Conversation]:
        """Attach ``agent_address`` and return the updated conversation.

        Customers have to be queued first: a conversation still in Bot state
        is left untouched and ``None`` is returned.
        """

        try:
            conversation = self._resolver.resolve(by)
            if conversation is None:
                return None
            if conversation.state == ConversationState.BOT:
                logger.warning(
                    "Refusing to connect conversation %s to an agent before it was queued",
                    conversation.id,
                )
                return None
            conversation.agent = agent_address
            conversation.state = ConversationState.AGENT
            if not self._save(conversation):
                return None
        except StorageError:
            logger.exception("Failed to connect %s to an agent", by)
            return None
        return conversation

    def connect_customer_to_bot(self, by: Optional[Selector]) -> bool:
        try:
            conversation = self._resolver.resolve(by)
            if conversation is None:
                return False
            conversation.state = ConversationState.BOT
            if conversation.agent is None:
                return self._save(conversation)
            if self._settings.retain_data:
                # A stale agent address would keep that agent looking busy.
                conversation.agent = None
                return self._save(conversation)
            logger.info("Handoff finished, deleting conversation %s", conversation.id)
            if not self._repository.delete(conversation):
                logger.warning(
                    "Conversation %s was already gone when deleting it", conversation.id
                )
                return False
            return True
        except StorageError:
            logger.exception("Failed to return %s to the bot", by)
            return False

    def _save(self, conversation: Conversation) -> bool:
        if self._repository.update(conversation):
            return True
        logger.warning(
            "Conversation %s disappeared before it could be updated", conversation.id
        )
        return False
