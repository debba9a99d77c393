"""Selectors used to locate a conversation.

A selector is exactly one of the variants below. Callers holding a loose set
of fields (HTTP payloads, older integrations) go through
:func:`selector_from_fields`, which honors the first present field in the
order name, customer id, agent conversation id, customer conversation id,
best choice.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .schemas import SelectorPayload


@dataclass(frozen=True)
class ByCustomerName:
    name: str


@dataclass(frozen=True)
class ByCustomerId:
    customer_id: str


@dataclass(frozen=True)
class ByAgentConversationId:
    conversation_id: str


@dataclass(frozen=True)
class ByCustomerConversationId:
    conversation_id: str


@dataclass(frozen=True)
class BestChoice:
    """Pick the customer who has been waiting longest."""


Selector = Union[
    ByCustomerName,
    ByCustomerId,
    ByAgentConversationId,
    ByCustomerConversationId,
    BestChoice,
]


def selector_from_fields(
    *,
    customer_name: str | None = None,
    customer_id: str | None = None,
    agent_conversation_id: str | None = None,
    customer_conversation_id: str | None = None,
    best_choice: bool = False,
) -> Optional[Selector]:
    if customer_name:
        return ByCustomerName(customer_name)
    if customer_id:
        return ByCustomerId(customer_id)
    if agent_conversation_id:
        return ByAgentConversationId(agent_conversation_id)
    if customer_conversation_id:
        return ByCustomerConversationId(customer_conversation_id)
    if best_choice:
        return BestChoice()
    return None


def selector_from_payload(payload: SelectorPayload) -> Optional[Selector]:
    return selector_from_fields(
        customer_name=payload.customer_name,
        customer_id=payload.customer_id,
        agent_conversation_id=payload.agent_conversation_id,
        customer_conversation_id=payload.customer_conversation_id,
        best_choice=payload.best_choice,
    )
