import json
import logging
import tempfile
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler

import pytest
from starlette.testclient import TestClient

from handoff.app_logging import init_logging
from handoff.telemetry import LoggingTelemetryClient


def _clear_handlers(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.handlers.clear()
    return logger


@pytest.fixture
def log_dir(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("LOG_DIR", tmpdir)
        yield Path(tmpdir)


def test_timed_rotating_handler_configuration(log_dir, monkeypatch):
    monkeypatch.setenv("LOG_RETENTION_DAYS", "5")
    app_logger = _clear_handlers("handoff")
    telemetry_logger = _clear_handlers("handoff.telemetry")
    access_logger = _clear_handlers("uvicorn.access")

    init_logging()

    for logger in (app_logger, telemetry_logger, access_logger):
        handler = next(
            h for h in logger.handlers if isinstance(h, TimedRotatingFileHandler)
        )
        assert handler.when == "MIDNIGHT"
        assert handler.backupCount == 5

    app_logger.handlers.clear()
    telemetry_logger.handlers.clear()
    access_logger.handlers.clear()


def test_log_files_and_redaction(log_dir, app_factory):
    _clear_handlers("handoff")
    _clear_handlers("handoff.telemetry")
    _clear_handlers("uvicorn.access")
    app = app_factory(log_dir, log_request_bodies=True)

    app_logger = logging.getLogger("handoff")
    logging.getLogger("handoff.conversations.handoff").info("hello handoff")
    LoggingTelemetryClient().track_event("Transcript", {"text": "hi"})

    with TestClient(app) as client:
        resp = client.post(
            "/echo",
            json={"token": "secret", "value": 1},
            headers={"Authorization": "Bearer secret"},
        )
        assert resp.status_code == 200

    telemetry_logger = logging.getLogger("handoff.telemetry")
    access_logger = logging.getLogger("uvicorn.access")
    for logger in (app_logger, telemetry_logger, access_logger):
        for handler in logger.handlers:
            handler.flush()

    app_log = (log_dir / "handoff.log").read_text()
    assert "hello handoff" in app_log
    assert "Transcript" not in app_log

    telemetry_line = (log_dir / "telemetry.log").read_text().splitlines()[-1]
    assert json.loads(telemetry_line) == {"event": "Transcript", "properties": {"text": "hi"}}

    access_line = (log_dir / "access.log").read_text().splitlines()[-1]
    payload = access_line.split(": ", 1)[1]
    data = json.loads(payload)
    assert data["headers"]["authorization"] == "***"
    assert data["body"]["token"] == "***"

    app_logger.handlers.clear()
    telemetry_logger.handlers.clear()
    access_logger.handlers.clear()
