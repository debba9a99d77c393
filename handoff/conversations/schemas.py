"""Pydantic records for conversations, addresses and transcripts."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import IntEnum
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


class _Record(BaseModel):
    # Unknown keys from the store or the bot runtime are dropped here.
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ConversationState(IntEnum):
    BOT = 0
    WAITING = 1
    AGENT = 2


def _as_state(value: int) -> int:
    try:
        return ConversationState(value)
    except ValueError:
        return value


# Stored documents may carry any state in 0..3; known values come back as
# ConversationState members.
StoredState = Annotated[int, Field(ge=0, le=3), AfterValidator(_as_state)]


class Identity(_Record):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    is_group: bool | None = None


class Address(_Record):
    """One endpoint of a conversation as reported by the bot runtime."""

    model_config = ConfigDict(frozen=True)

    bot: Identity
    channel_id: str
    conversation: Identity | None = None
    user: Identity
    id: str | None = None
    service_url: str | None = None
    use_auth: bool | None = None


class TranscriptLine(_Record):
    """A single turn; immutable once appended."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    from_: str = Field(alias="from")
    sentiment_score: float | None = -1
    state: StoredState
    attachments: str | None = None
    adaptive_response_kv_pairs: str | None = None
    text: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _normalise_timestamp(cls, value: datetime) -> datetime:
        return _ensure_utc(value)


class Conversation(_Record):
    id: str | None = None
    customer: Address
    agent: Address | None = None
    state: StoredState = ConversationState.BOT
    transcript: list[TranscriptLine] = Field(default_factory=list)

    @model_validator(mode="after")
    def _agent_required_when_connected(self) -> "Conversation":
        if self.state == ConversationState.AGENT and self.agent is None:
            raise ValueError("a conversation in Agent state needs an agent address")
        return self

    @property
    def last_activity(self) -> datetime | None:
        if not self.transcript:
            return None
        return self.transcript[-1].timestamp


class IncomingMessage(_Record):
    """The parts of a bot-framework activity the handoff core reads."""

    text: str | None = None
    value: Any = None
    attachments: list[dict[str, Any]] = Field(default_factory=list)
    local_timestamp: datetime | None = None
    timestamp: datetime | None = None
    address: Address | None = None

    @field_validator("local_timestamp", "timestamp")
    @classmethod
    def _normalise_timestamps(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return _ensure_utc(value)


class SelectorPayload(_Record):
    """Loose selector fields as sent over HTTP; see ``selector_from_fields``."""

    customer_name: str | None = None
    customer_id: str | None = None
    agent_conversation_id: str | None = None
    customer_conversation_id: str | None = None
    best_choice: bool = False


class ResolveRequest(_Record):
    by: SelectorPayload
    customer_address: Address | None = None


class TranscriptRequest(_Record):
    by: SelectorPayload
    message: IncomingMessage
    from_: str = Field(alias="from")


class ConnectAgentRequest(_Record):
    by: SelectorPayload
    agent_address: Address


class SelectorRequest(_Record):
    by: SelectorPayload


class LeadRollUpRequest(_Record):
    customer_id: str
    message: IncomingMessage
    from_: str = Field(alias="from")


class OperationResult(BaseModel):
    success: bool


class ConversationList(BaseModel):
    items: list[Conversation]
    total: int
