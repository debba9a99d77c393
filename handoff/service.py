"""Public surface used by the bot runtime."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

import psycopg

from .config import HandoffSettings
from .conversations.handoff import HandoffStateMachine
from .conversations.repository import ConversationRepository
from .conversations.resolver import ConversationResolver
from .conversations.schemas import Address, Conversation, IncomingMessage
from .conversations.selectors import Selector
from .conversations.transcript import TranscriptRecorder
from .leads.repository import LeadRepository
from .leads.schemas import Lead
from .leads.service import LeadAggregator
from .sentiment import SentimentClient
from .storage.base import DocumentStore, StorageError
from .storage.postgres import PostgresDocumentStore
from .telemetry import TelemetryClient

logger = logging.getLogger(__name__)

_UNSET = object()


class HandoffService:
    """Wires resolver, state machine, transcript recorder and lead aggregator.

    Sentiment and telemetry collaborators default to whatever ``settings``
    enables; pass them explicitly to override (``None`` switches them off).
    """

    def __init__(
        self,
        store: DocumentStore,
        settings: Optional[HandoffSettings] = None,
        *,
        sentiment: Optional[SentimentClient] | object = _UNSET,
        telemetry: Optional[TelemetryClient] | object = _UNSET,
    ) -> None:
        self.settings = settings or HandoffSettings()
        if sentiment is _UNSET:
            sentiment = self.settings.build_sentiment_client()
        if telemetry is _UNSET:
            telemetry = self.settings.build_telemetry_client()
        conversations = ConversationRepository(store)
        self._resolver = ConversationResolver(conversations)
        self._state_machine = HandoffStateMachine(
            conversations, self._resolver, self.settings
        )
        self._recorder = TranscriptRecorder(
            conversations,
            self._resolver,
            sentiment=sentiment,  # type: ignore[arg-type]
            telemetry=telemetry,  # type: ignore[arg-type]
        )
        self._leads = LeadAggregator(conversations, LeadRepository(store))

    # ------------------------------------------------------------------
    # Lookups

    def get_conversation(
        self, by: Optional[Selector], customer_address: Optional[Address] = None
    ) -> Optional[Conversation]:
        try:
            return self._resolver.resolve(by, customer_address)
        except StorageError:
            logger.exception("Failed to resolve conversation for %s", by)
            return None

    def list_conversations(self) -> List[Conversation]:
        return self._resolver.list_conversations()

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        return self._leads.get_lead(lead_id)

    def delete_lead(self, lead_id: str) -> bool:
        return self._leads.delete_lead(lead_id)

    # ------------------------------------------------------------------
    # Operations

    def add_to_transcript(
        self, by: Optional[Selector], message: IncomingMessage, from_tag: str
    ) -> bool:
        return self._recorder.append(by, message, from_tag)

    def queue_customer_for_agent(self, by: Optional[Selector]) -> bool:
        return self._state_machine.queue_customer_for_agent(by)

    def connect_customer_to_agent(
        self, by: Optional[Selector], agent_address: Address
    ) -> Optional[Conversation]:
        return self._state_machine.connect_customer_to_agent(by, agent_address)

    def connect_customer_to_bot(self, by: Optional[Selector]) -> bool:
        return self._state_machine.connect_customer_to_bot(by)

    def update_lead_conversation(
        self, by: Optional[Selector], message: IncomingMessage, from_tag: str
    ) -> Optional[Lead]:
        return self._leads.roll_up(by, message, from_tag)


def create_postgres_service(
    conn: psycopg.Connection, settings: Optional[HandoffSettings] = None
) -> HandoffService:
    return HandoffService(PostgresDocumentStore(conn), settings)


@contextmanager
def service_context_from_dsn(
    dsn: str, settings: Optional[HandoffSettings] = None
) -> Iterator[HandoffService]:
    conn = psycopg.connect(dsn)
    try:
        service = create_postgres_service(conn, settings)
        yield service
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
