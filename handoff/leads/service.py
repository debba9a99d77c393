"""Roll the latest conversation per channel into the customer's lead."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..conversations import repository as convo_repo
from ..conversations.repository import ConversationRepository
from ..conversations.schemas import Conversation, IncomingMessage
from ..conversations.selectors import ByCustomerId, Selector
from ..storage.base import StorageError
from .repository import LeadRepository
from .schemas import Lead

logger = logging.getLogger(__name__)


def _channel_key(conversation: Conversation) -> tuple[str, Optional[str]]:
    return conversation.customer.channel_id, conversation.customer.bot.name


def merge_channel_conversation(
    existing: List[Conversation], conversation: Conversation
) -> List[Conversation]:
    """Replace the entry for ``conversation``'s channel and bot, or append it."""

    key = _channel_key(conversation)
    kept = [item for item in existing if _channel_key(item) != key]
    kept.append(conversation)
    return kept


class LeadAggregator:
    """Keeps ``Lead.last_conversations_by_channel`` in step with conversations."""

    def __init__(
        self,
        conversations: ConversationRepository,
        leads: LeadRepository,
    ) -> None:
        self._conversations = conversations
        self._leads = leads

    def roll_up(
        self, by: Optional[Selector], message: IncomingMessage, from_tag: str
    ) -> Optional[Lead]:
        """Store the customer's conversation for the message's channel on the lead.

        Only :class:`ByCustomerId` selectors are meaningful here. Candidates
        are the customer's conversations on the same channel and bot that have
        at least one transcript line; they are ordered newest first by last
        activity and the final element (the least recently active) is taken.
        Returns the updated lead, or ``None`` when there was nothing to roll up
        or the store failed.
        """

        if not isinstance(by, ByCustomerId) or message.address is None:
            return None
        address = message.address
        try:
            candidates = [
                conversation
                for conversation in self._conversations.find(
                    {convo_repo.CUSTOMER_ID: by.customer_id}
                )
                if conversation.customer.channel_id == address.channel_id
                and conversation.customer.bot.name == address.bot.name
                and conversation.transcript
            ]
            if not candidates:
                return None
            candidates.sort(key=lambda c: c.last_activity, reverse=True)
            conversation = candidates[-1]

            lead = self._leads.get_by_lead_id(by.customer_id)
            if lead is None:
                lead = self._leads.create(
                    conversation.customer.user.id, conversation.customer.user.name
                )
                logger.info("Created lead %s", lead.lead_id)

            merged = merge_channel_conversation(
                lead.last_conversations_by_channel, conversation
            )
            if not self._leads.update_conversations(lead, merged):
                logger.warning("Lead %s disappeared before it could be updated", lead.lead_id)
                return None
        except StorageError:
            logger.exception("Failed to update lead for customer %s", by.customer_id)
            return None
        lead.last_conversations_by_channel = merged
        return lead

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        try:
            return self._leads.get_by_lead_id(lead_id)
        except StorageError:
            logger.exception("Failed to load lead %s", lead_id)
            return None

    def delete_lead(self, lead_id: str) -> bool:
        try:
            lead = self._leads.get_by_lead_id(lead_id)
            if lead is None:
                return False
            return self._leads.delete(lead)
        except StorageError:
            logger.exception("Failed to delete lead %s", lead_id)
            return False
