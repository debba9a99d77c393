"""Tests for :mod:`handoff.conversations.resolver`."""

from handoff.conversations.repository import COLLECTION, ConversationRepository
from handoff.conversations.resolver import ConversationResolver
from handoff.conversations.schemas import ConversationState
from handoff.conversations.selectors import (
    BestChoice,
    ByAgentConversationId,
    ByCustomerConversationId,
    ByCustomerId,
    ByCustomerName,
)


def _resolver(store) -> ConversationResolver:
    return ConversationResolver(ConversationRepository(store))


def test_customer_conversation_id_creates_once_with_fallback(store, make_address):
    resolver = _resolver(store)
    address = make_address("c1")

    created = resolver.resolve(ByCustomerConversationId("c1"), address)

    assert created is not None
    assert created.id is not None
    assert created.state == ConversationState.BOT
    assert created.transcript == []
    assert store.count(COLLECTION) == 1

    again = resolver.resolve(ByCustomerConversationId("c1"))
    assert again is not None
    assert again.id == created.id
    assert store.count(COLLECTION) == 1


def test_customer_conversation_id_without_fallback_returns_none(store):
    assert _resolver(store).resolve(ByCustomerConversationId("missing")) is None
    assert store.count(COLLECTION) == 0


def test_lookup_by_customer_name_and_id(store, make_address):
    resolver = _resolver(store)
    created = resolver.resolve(
        ByCustomerConversationId("c1"), make_address("c1", user_id="u9", user_name="Grace")
    )

    assert resolver.resolve(ByCustomerName("Grace")).id == created.id
    assert resolver.resolve(ByCustomerId("u9")).id == created.id
    assert resolver.resolve(ByCustomerName("Nobody")) is None
    assert resolver.resolve(ByCustomerId("u0")) is None


def test_lookup_by_agent_conversation_id(store, make_service, make_address, make_message):
    service = make_service()
    by = ByCustomerConversationId("c1")
    service.get_conversation(by, make_address("c1"))
    service.add_to_transcript(by, make_message(), "Customer")
    service.queue_customer_for_agent(by)
    service.connect_customer_to_agent(by, make_address("agent-conv", user_id="agent-1"))

    found = _resolver(store).resolve(ByAgentConversationId("agent-conv"))

    assert found is not None
    assert found.customer.conversation.id == "c1"
    assert _resolver(store).resolve(ByAgentConversationId("other")) is None


def test_missing_selector_is_not_found(store):
    assert _resolver(store).resolve(None) is None


def test_best_choice_picks_longest_waiting(store, make_service, make_address, make_message):
    service = make_service()
    for conversation_id, minutes in (("recent", 30), ("oldest", 5), ("middle", 15)):
        by = ByCustomerConversationId(conversation_id)
        service.get_conversation(by, make_address(conversation_id, user_id=conversation_id))
        service.add_to_transcript(by, make_message(minutes=minutes), "Customer")
        service.queue_customer_for_agent(by)

    chosen = _resolver(store).resolve(BestChoice())

    assert chosen is not None
    assert chosen.customer.conversation.id == "oldest"


def test_best_choice_ignores_bot_state_and_empty_transcripts(
    store, make_service, make_address, make_message
):
    service = make_service()
    # Waiting but never said anything: cannot be ordered.
    silent = ByCustomerConversationId("silent")
    service.get_conversation(silent, make_address("silent"))
    service.queue_customer_for_agent(silent)
    # Older activity but still with the bot.
    bot = ByCustomerConversationId("bot")
    service.get_conversation(bot, make_address("bot"))
    service.add_to_transcript(bot, make_message(minutes=1), "Customer")

    resolver = _resolver(store)
    assert resolver.resolve(BestChoice()) is None

    waiting = ByCustomerConversationId("waiting")
    service.get_conversation(waiting, make_address("waiting"))
    service.add_to_transcript(waiting, make_message(minutes=20), "Customer")
    service.queue_customer_for_agent(waiting)

    chosen = resolver.resolve(BestChoice())
    assert chosen.customer.conversation.id == "waiting"


def test_best_choice_ties_keep_document_order(store, make_service, make_address, make_message):
    service = make_service()
    for conversation_id in ("first", "second"):
        by = ByCustomerConversationId(conversation_id)
        service.get_conversation(by, make_address(conversation_id))
        service.add_to_transcript(by, make_message(minutes=10), "Customer")
        service.queue_customer_for_agent(by)

    assert _resolver(store).resolve(BestChoice()).customer.conversation.id == "first"


def test_list_conversations_returns_everything(store, make_address):
    resolver = _resolver(store)
    resolver.resolve(ByCustomerConversationId("a"), make_address("a"))
    resolver.resolve(ByCustomerConversationId("b"), make_address("b"))

    ids = [c.customer.conversation.id for c in resolver.list_conversations()]
    assert ids == ["a", "b"]
