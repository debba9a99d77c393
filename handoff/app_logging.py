"""Application, telemetry and access logging setup.

Three loggers are configured here:

- ``handoff``: every module logs through a child of it
  (``logging.getLogger(__name__)``); written to ``handoff.log``.
- ``handoff.telemetry``: transcript events from
  :class:`~handoff.telemetry.LoggingTelemetryClient`; written to
  ``telemetry.log`` and not propagated to ``handoff.log``.
- ``uvicorn.access``: one scrubbed JSON line per HTTP request, written to
  ``access.log`` by the middleware installed on the FastAPI app.

Environment variables: LOG_DIR, LOG_LEVEL, LOG_JSON, LOG_REQUEST_BODIES,
LOG_RETENTION_DAYS, LOG_ROTATE_UTC.
"""

from __future__ import annotations

import json
import logging
import os
import time
from logging.handlers import TimedRotatingFileHandler
from typing import Any, cast
from uuid import uuid4

from fastapi import FastAPI, Request

APP_LOGGER = "handoff"
TELEMETRY_LOGGER = "handoff.telemetry"
ACCESS_LOGGER = "uvicorn.access"


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter used when LOG_JSON=true."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - simple
        log_record = {
            "level": record.levelname,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def _get_formatter(log_json: bool) -> logging.Formatter:
    if log_json:
        return JsonFormatter()
    return logging.Formatter("[%(asctime)s] %(levelname)s in %(name)s: %(message)s")


SENSITIVE_FIELDS = {
    "authorization",
    "cookie",
    "set-cookie",
    "password",
    "token",
    "ocp-apim-subscription-key",
    "service_url",
}


def _scrub(data: object) -> object:
    """Recursively scrub sensitive fields from dictionaries and lists."""

    if isinstance(data, dict):
        return {
            k: ("***" if k.lower() in SENSITIVE_FIELDS else _scrub(v))
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [_scrub(v) for v in data]
    return data


def _rotating_handler(
    log_dir: str, filename: str, formatter: logging.Formatter
) -> TimedRotatingFileHandler:
    handler = TimedRotatingFileHandler(
        os.path.join(log_dir, filename),
        when="midnight",
        backupCount=int(os.getenv("LOG_RETENTION_DAYS", "7")),
        utc=os.getenv("LOG_ROTATE_UTC", "false").lower() == "true",
    )
    handler.setFormatter(formatter)
    return handler


def _install_access_logging(app: FastAPI) -> None:
    """Log one JSON line per request (health checks excluded).

    A generated X-Request-Id is echoed back in the response headers so bot
    runtime logs can be correlated with ours.
    """

    log_request_bodies = os.getenv("LOG_REQUEST_BODIES", "false").lower() == "true"
    skip_paths = {"/api/health"}
    access_logger = logging.getLogger(ACCESS_LOGGER)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        if request.url.path in skip_paths:
            return await call_next(request)

        request_id = request.headers.get("X-Request-Id") or uuid4().hex
        request.state.request_id = request_id

        start = time.time()

        body_content = None
        if log_request_bodies:
            body_bytes = await request.body()

            async def receive() -> dict:  # pragma: no cover - internal
                return {"type": "http.request", "body": body_bytes, "more_body": False}

            request._receive = receive  # type: ignore[attr-defined]

            if body_bytes:
                try:
                    body_content = _scrub(json.loads(body_bytes))
                except ValueError:
                    body_content = body_bytes.decode("utf-8", errors="replace")

        response = await call_next(request)

        client = request.client
        client_ip = request.headers.get("X-Forwarded-For")
        if not client_ip and client is not None:
            client_ip = client.host

        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "latency_ms": round((time.time() - start) * 1000, 2),
            "client_ip": client_ip,
            "headers": _scrub(dict(request.headers)),
        }
        if body_content is not None:
            log_data["body"] = body_content

        response.headers["X-Request-Id"] = request_id

        access_logger.info(json.dumps(log_data, default=str))
        return response


def init_logging(app: FastAPI | None = None) -> None:
    """Initialise the application, telemetry and access loggers."""

    log_dir = os.getenv("LOG_DIR", "logs")
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json = os.getenv("LOG_JSON", "false").lower() == "true"

    os.makedirs(log_dir, exist_ok=True)

    formatter = _get_formatter(log_json)
    log_level = getattr(logging, log_level_str, logging.INFO)

    app_logger = logging.getLogger(APP_LOGGER)
    if not app_logger.handlers:
        app_logger.addHandler(_rotating_handler(log_dir, "handoff.log", formatter))
    app_logger.setLevel(log_level)

    telemetry_logger = logging.getLogger(TELEMETRY_LOGGER)
    if not telemetry_logger.handlers:
        # Events are already JSON; keep them one object per line.
        telemetry_logger.addHandler(
            _rotating_handler(log_dir, "telemetry.log", logging.Formatter("%(message)s"))
        )
    telemetry_logger.propagate = False
    telemetry_logger.setLevel(logging.INFO)

    access_logger = logging.getLogger(ACCESS_LOGGER)
    access_logger.handlers.clear()
    access_logger.addHandler(_rotating_handler(log_dir, "access.log", formatter))
    access_logger.setLevel(log_level)

    if app is not None:
        cast(Any, app).logger = app_logger
        _install_access_logging(app)
