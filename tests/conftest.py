import pathlib
import sys
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))
from handoff.app_logging import init_logging
from handoff.config import HandoffSettings
from handoff.conversations.schemas import Address, Identity, IncomingMessage
from handoff.routers import handoff as handoff_router
from handoff.service import HandoffService
from handoff.storage import InMemoryDocumentStore

BASE_TIME = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def make_address() -> Callable[..., Address]:
    def _make(
        conversation_id: str = "c1",
        user_id: str = "u1",
        user_name: str | None = "Ada",
        channel_id: str = "webchat",
        bot_name: str = "support-bot",
    ) -> Address:
        return Address(
            bot=Identity(id="bot-1", name=bot_name),
            channel_id=channel_id,
            conversation=Identity(id=conversation_id),
            user=Identity(id=user_id, name=user_name),
            service_url="https://bot.example/api",
        )

    return _make


@pytest.fixture
def make_message(make_address) -> Callable[..., IncomingMessage]:
    def _make(
        text: str = "hello",
        minutes: int | None = 0,
        address: Address | None = None,
        **extra: Any,
    ) -> IncomingMessage:
        local = BASE_TIME + timedelta(minutes=minutes) if minutes is not None else None
        return IncomingMessage(
            text=text,
            local_timestamp=local,
            address=address or make_address(),
            **extra,
        )

    return _make


@pytest.fixture
def make_service(store) -> Callable[..., HandoffService]:
    def _make(retain_data: bool = False, **kwargs: Any) -> HandoffService:
        kwargs.setdefault("sentiment", None)
        kwargs.setdefault("telemetry", None)
        return HandoffService(store, HandoffSettings(retain_data=retain_data), **kwargs)

    return _make


@pytest.fixture
def api_client(make_service):
    """A client for the handoff routes backed by the in-memory store."""

    def _create(retain_data: bool = False) -> TestClient:
        service = make_service(retain_data=retain_data)
        app = FastAPI()
        app.include_router(handoff_router.router)
        app.dependency_overrides[handoff_router.get_handoff_service] = lambda: service
        return TestClient(app)

    return _create


@pytest.fixture
def app_factory(monkeypatch):
    def _create_app(log_dir: str, log_request_bodies: bool = False):
        """Create a FastAPI app with logging initialised."""
        monkeypatch.setenv("LOG_DIR", str(log_dir))
        if log_request_bodies:
            monkeypatch.setenv("LOG_REQUEST_BODIES", "true")
        app = FastAPI()

        @app.post("/echo")
        async def echo(request: Request):
            return await request.json()

        init_logging(app)
        return app

    return _create_app
