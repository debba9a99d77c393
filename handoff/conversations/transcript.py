"""Append transcript lines to conversations."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..sentiment import SentimentClient, SentimentError
from ..storage.base import StorageError
from ..telemetry import TelemetryClient
from .repository import ConversationRepository
from .resolver import ConversationResolver
from .schemas import Conversation, IncomingMessage, TranscriptLine
from .selectors import Selector

logger = logging.getLogger(__name__)

CUSTOMER = "Customer"
SENTIMENT_NOT_COMPUTED = -1.0
TRANSCRIPT_EVENT = "Transcript"


def _line_timestamp(message: IncomingMessage, from_tag: str) -> datetime:
    now = datetime.now(timezone.utc)
    if from_tag != CUSTOMER:
        return now
    return message.local_timestamp or message.timestamp or now


def _serialise(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str)


def transcript_event_properties(conversation: Conversation) -> Dict[str, Any]:
    """Flatten the latest line plus participant identities for telemetry.

    Event sinks cannot index nested objects, so everything ends up as a
    top-level scalar.
    """

    properties: Dict[str, Any] = conversation.transcript[-1].model_dump(
        mode="json", by_alias=True
    )
    customer = conversation.customer
    properties.update(
        {
            "bot_id": customer.bot.id,
            "customer_id": customer.user.id,
            "customer_name": customer.user.name,
            "customer_channel_id": customer.channel_id,
            "customer_conversation_id": (
                customer.conversation.id if customer.conversation else None
            ),
        }
    )
    agent = conversation.agent
    if agent is not None:
        properties.update(
            {
                "agent_id": agent.user.id,
                "agent_name": agent.user.name,
                "agent_channel_id": agent.channel_id,
                "agent_conversation_id": (
                    agent.conversation.id if agent.conversation else None
                ),
            }
        )
    return properties


class TranscriptRecorder:
    """Adds one line per message, scoring customer text when configured."""

    def __init__(
        self,
        repository: ConversationRepository,
        resolver: ConversationResolver,
        *,
        sentiment: Optional[SentimentClient] = None,
        telemetry: Optional[TelemetryClient] = None,
    ) -> None:
        self._repository = repository
        self._resolver = resolver
        self._sentiment = sentiment
        self._telemetry = telemetry

    def append(
        self, by: Optional[Selector], message: IncomingMessage, from_tag: str
    ) -> bool:
        try:
            conversation = self._resolver.resolve(by)
        except StorageError:
            logger.exception("Failed to load conversation for %s", by)
            return False
        if conversation is None:
            return False

        line = TranscriptLine(
            timestamp=_line_timestamp(message, from_tag),
            from_=from_tag,
            sentiment_score=self._score(message.text, from_tag),
            state=conversation.state,
            attachments=_serialise(message.attachments),
            adaptive_response_kv_pairs=_serialise(message.value),
            text=message.text,
        )
        conversation.transcript.append(line)
        self._track(conversation)

        try:
            updated = self._repository.update(conversation)
        except StorageError:
            logger.exception("Failed to update conversation %s", conversation.id)
            return False
        if not updated:
            logger.warning(
                "Conversation %s disappeared before its transcript was saved",
                conversation.id,
            )
        return updated

    def _score(self, text: Optional[str], from_tag: str) -> float:
        if from_tag != CUSTOMER or self._sentiment is None:
            return SENTIMENT_NOT_COMPUTED
        try:
            score = self._sentiment.score(text)
        except SentimentError as exc:
            logger.warning("Sentiment unavailable: %s", exc)
            return SENTIMENT_NOT_COMPUTED
        except Exception as exc:
            # Injected clients may raise their own transport errors.
            logger.warning("Sentiment client failed: %r", exc)
            return SENTIMENT_NOT_COMPUTED
        return SENTIMENT_NOT_COMPUTED if score is None else score

    def _track(self, conversation: Conversation) -> None:
        if self._telemetry is None:
            return
        try:
            self._telemetry.track_event(
                TRANSCRIPT_EVENT, transcript_event_properties(conversation)
            )
        except Exception as exc:  # pragma: no cover - defensive
            logger.warning("Dropping transcript telemetry event: %s", exc)
