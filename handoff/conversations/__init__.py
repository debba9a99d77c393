"""Conversation records, selectors and the handoff core."""

from . import schemas
from .schemas import Address, Conversation, ConversationState, IncomingMessage, TranscriptLine
from .selectors import (
    BestChoice,
    ByAgentConversationId,
    ByCustomerConversationId,
    ByCustomerId,
    ByCustomerName,
    Selector,
    selector_from_fields,
)

__all__ = [
    "Address",
    "BestChoice",
    "ByAgentConversationId",
    "ByCustomerConversationId",
    "ByCustomerId",
    "ByCustomerName",
    "Conversation",
    "ConversationState",
    "IncomingMessage",
    "Selector",
    "TranscriptLine",
    "schemas",
    "selector_from_fields",
]
