"""HTTP routes exposing the handoff operations to the bot runtime."""

from __future__ import annotations

from collections.abc import Iterator
from functools import lru_cache

import psycopg
from fastapi import APIRouter, Depends, HTTPException

from ..config import HandoffSettings
from ..conversations import schemas
from ..conversations.selectors import ByCustomerId, selector_from_payload
from ..leads.schemas import Lead
from ..service import HandoffService, create_postgres_service

router = APIRouter(prefix="/api/handoff", tags=["handoff"])


@lru_cache
def get_settings() -> HandoffSettings:
    return HandoffSettings.from_env()


def get_handoff_service(
    settings: HandoffSettings = Depends(get_settings),
) -> Iterator[HandoffService]:
    """Yield a service bound to one connection, committed when the request ends."""

    if not settings.database_url:
        raise HTTPException(status_code=500, detail="DATABASE_URL not configured")
    try:
        conn = psycopg.connect(settings.database_url)
    except psycopg.Error as exc:  # pragma: no cover - defensive
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    try:
        yield create_postgres_service(conn, settings)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@router.post("/resolve", response_model=schemas.Conversation)
def resolve_conversation(
    payload: schemas.ResolveRequest,
    service: HandoffService = Depends(get_handoff_service),
) -> schemas.Conversation:
    conversation = service.get_conversation(
        selector_from_payload(payload.by), payload.customer_address
    )
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


@router.get("/conversations", response_model=schemas.ConversationList)
def list_conversations(
    service: HandoffService = Depends(get_handoff_service),
) -> schemas.ConversationList:
    items = service.list_conversations()
    return schemas.ConversationList(items=items, total=len(items))


@router.post("/transcript", response_model=schemas.OperationResult)
def add_to_transcript(
    payload: schemas.TranscriptRequest,
    service: HandoffService = Depends(get_handoff_service),
) -> schemas.OperationResult:
    success = service.add_to_transcript(
        selector_from_payload(payload.by), payload.message, payload.from_
    )
    return schemas.OperationResult(success=success)


@router.post("/queue", response_model=schemas.OperationResult)
def queue_customer_for_agent(
    payload: schemas.SelectorRequest,
    service: HandoffService = Depends(get_handoff_service),
) -> schemas.OperationResult:
    success = service.queue_customer_for_agent(selector_from_payload(payload.by))
    return schemas.OperationResult(success=success)


@router.post("/connect-agent", response_model=schemas.Conversation)
def connect_customer_to_agent(
    payload: schemas.ConnectAgentRequest,
    service: HandoffService = Depends(get_handoff_service),
) -> schemas.Conversation:
    conversation = service.connect_customer_to_agent(
        selector_from_payload(payload.by), payload.agent_address
    )
    if conversation is None:
        raise HTTPException(
            status_code=404, detail="No queued conversation matched the selector"
        )
    return conversation


@router.post("/connect-bot", response_model=schemas.OperationResult)
def connect_customer_to_bot(
    payload: schemas.SelectorRequest,
    service: HandoffService = Depends(get_handoff_service),
) -> schemas.OperationResult:
    success = service.connect_customer_to_bot(selector_from_payload(payload.by))
    return schemas.OperationResult(success=success)


@router.post("/leads/roll-up", response_model=schemas.OperationResult)
def roll_up_lead(
    payload: schemas.LeadRollUpRequest,
    service: HandoffService = Depends(get_handoff_service),
) -> schemas.OperationResult:
    lead = service.update_lead_conversation(
        ByCustomerId(payload.customer_id), payload.message, payload.from_
    )
    return schemas.OperationResult(success=lead is not None)


@router.get("/leads/{lead_id}", response_model=Lead)
def get_lead(
    lead_id: str,
    service: HandoffService = Depends(get_handoff_service),
) -> Lead:
    lead = service.get_lead(lead_id)
    if lead is None:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found")
    return lead


@router.delete("/leads/{lead_id}", response_model=schemas.OperationResult)
def delete_lead(
    lead_id: str,
    service: HandoffService = Depends(get_handoff_service),
) -> schemas.OperationResult:
    if not service.delete_lead(lead_id):
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found")
    return schemas.OperationResult(success=True)
