"""Telemetry sinks for transcript events."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol


class TelemetryClient(Protocol):
    """Fire-and-forget event sink."""

    def track_event(self, name: str, properties: dict[str, Any]) -> None: ...


class LoggingTelemetryClient:
    """Write each event as one JSON line to the ``handoff.telemetry`` logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("handoff.telemetry")

    def track_event(self, name: str, properties: dict[str, Any]) -> None:
        self.logger.info(
            json.dumps({"event": name, "properties": properties}, default=str)
        )
