"""Prepare the database for the handoff service.

Waits for PostgreSQL, creates the ``documents`` table and, when
``SEED_DEMO_CONVERSATION`` is truthy, stores a queued demo conversation so an
agent console has something to pick up.
"""

from __future__ import annotations

import logging
import os
import time

import psycopg
from dotenv import load_dotenv

from handoff.config import HandoffSettings, _to_bool
from handoff.conversations.schemas import Address, Identity, IncomingMessage
from handoff.conversations.selectors import ByCustomerConversationId
from handoff.service import HandoffService, service_context_from_dsn
from handoff.storage.postgres import PostgresDocumentStore

logger = logging.getLogger("seed")

DEMO_CONVERSATION_ID = "demo-customer-conversation"


def wait_for_database(db_url: str, max_attempts: int = 10, delay: float = 3.0) -> None:
    """Attempt to establish a database connection, retrying if necessary."""

    for attempt in range(1, max_attempts + 1):
        try:
            with psycopg.connect(db_url, connect_timeout=5) as connection:
                with connection.cursor() as cursor:
                    cursor.execute("SELECT 1")
        except psycopg.Error as exc:  # pragma: no cover - depends on external DB
            logger.info(
                "Database not ready (attempt %d/%d): %s; retrying in %.1fs",
                attempt,
                max_attempts,
                exc,
                delay,
            )
            if attempt >= max_attempts:
                raise RuntimeError("Database did not become ready in time") from exc
            time.sleep(delay)
            continue

        logger.info("Database connection established after %d attempt(s)", attempt)
        return


def _seed_demo_conversation(service: HandoffService) -> None:
    customer = Address(
        bot=Identity(id="demo-bot", name="Demo Bot"),
        channel_id="webchat",
        conversation=Identity(id=DEMO_CONVERSATION_ID),
        user=Identity(id="demo-customer", name="Demo Customer"),
    )
    by = ByCustomerConversationId(DEMO_CONVERSATION_ID)
    conversation = service.get_conversation(by, customer)
    if conversation is None:
        raise RuntimeError("Could not create the demo conversation")
    if not conversation.transcript:
        service.add_to_transcript(
            by, IncomingMessage(text="I would like to talk to a person"), "Customer"
        )
    service.queue_customer_for_agent(by)
    logger.info("Demo conversation %s is waiting for an agent", conversation.id)


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    settings = HandoffSettings.from_env()
    if not settings.database_url:
        raise RuntimeError(
            "DATABASE_URL is not configured and PGHOST/PGDATABASE/PGUSER are missing."
        )
    logger.info("Starting seed process using %s", settings.redacted()["database_url"])

    wait_for_database(settings.database_url)

    with psycopg.connect(settings.database_url) as conn:
        PostgresDocumentStore(conn).ensure_schema()
        logger.info("Schema ensured successfully.")

    if _to_bool(os.getenv("SEED_DEMO_CONVERSATION")):
        with service_context_from_dsn(settings.database_url, settings) as service:
            _seed_demo_conversation(service)


if __name__ == "__main__":
    main()
