"""Runtime configuration for the handoff service.

Settings are read once from the environment (optionally seeded from a ``.env``
file) and handed explicitly to the components that branch on them. Nothing in
the core reads process state on its own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .sentiment import DEFAULT_SENTIMENT_URL, SentimentClient, TextAnalyticsSentimentClient
from .telemetry import LoggingTelemetryClient, TelemetryClient


def _to_bool(value: str | None) -> bool:
    """Parse a truthy string value into ``bool``."""

    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _build_database_url() -> str | None:
    """Compute the database URL from ``DATABASE_URL`` or ``PG*`` variables."""

    direct = os.getenv("DATABASE_URL")
    if direct:
        return direct

    host = os.getenv("PGHOST")
    port = os.getenv("PGPORT", "5432")
    database = os.getenv("PGDATABASE")
    user = os.getenv("PGUSER")
    password = os.getenv("PGPASSWORD")

    if not all([host, database, user]):
        return None

    auth = user
    if password:
        auth = f"{user}:{password}"
    return f"postgresql://{auth}@{host}:{port}/{database}"


@dataclass(slots=True)
class HandoffSettings:
    """Configuration consumed by the state machine and transcript recorder."""

    retain_data: bool = False
    text_analytics_key: str | None = None
    text_analytics_url: str = DEFAULT_SENTIMENT_URL
    text_analytics_timeout: float = 10.0
    telemetry_enabled: bool = False
    database_url: str | None = None

    @classmethod
    def from_env(cls) -> "HandoffSettings":
        load_dotenv()
        timeout_raw = os.getenv("TEXT_ANALYTICS_TIMEOUT", "10")
        try:
            timeout = float(timeout_raw)
        except ValueError as exc:
            raise ValueError(
                f"TEXT_ANALYTICS_TIMEOUT must be a number, got {timeout_raw!r}"
            ) from exc
        if timeout <= 0:
            raise ValueError("TEXT_ANALYTICS_TIMEOUT must be positive")
        return cls(
            retain_data=_to_bool(os.getenv("RETAIN_DATA")),
            text_analytics_key=os.getenv("TEXT_ANALYTICS_KEY") or None,
            text_analytics_url=os.getenv("TEXT_ANALYTICS_URL", DEFAULT_SENTIMENT_URL),
            text_analytics_timeout=timeout,
            telemetry_enabled=_to_bool(os.getenv("TELEMETRY_ENABLED")),
            database_url=_build_database_url(),
        )

    @property
    def sentiment_enabled(self) -> bool:
        return bool(self.text_analytics_key)

    def build_sentiment_client(self) -> SentimentClient | None:
        if not self.sentiment_enabled:
            return None
        return TextAnalyticsSentimentClient(
            self.text_analytics_key or "",
            url=self.text_analytics_url,
            timeout=self.text_analytics_timeout,
        )

    def build_telemetry_client(self) -> TelemetryClient | None:
        if not self.telemetry_enabled:
            return None
        return LoggingTelemetryClient()

    def redacted(self) -> dict[str, object]:
        """Return the settings as a dict with secrets masked."""

        return {
            "retain_data": self.retain_data,
            "text_analytics_key": "***" if self.text_analytics_key else None,
            "text_analytics_url": self.text_analytics_url,
            "text_analytics_timeout": self.text_analytics_timeout,
            "telemetry_enabled": self.telemetry_enabled,
            "database_url": _redact_url(self.database_url),
        }


def _redact_url(db_url: str | None) -> str | None:
    if not db_url or "@" not in db_url or "://" not in db_url:
        return db_url
    scheme, rest = db_url.split("://", 1)
    auth, host = rest.rsplit("@", 1)
    if ":" not in auth:
        return db_url
    user = auth.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"
