"""Sentiment scoring through the Text Analytics REST API."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

DEFAULT_SENTIMENT_URL = (
    "https://westus.api.cognitive.microsoft.com/text/analytics/v2.0/sentiment"
)
_DOCUMENT_ID = "bot-analytics"


class SentimentError(RuntimeError):
    """Raised when the sentiment service cannot produce a score."""


class SentimentClient(Protocol):
    """Anything able to score a piece of text."""

    def score(self, text: str | None) -> float | None: ...


class TextAnalyticsSentimentClient:
    """Score text with the cognitive services ``sentiment`` endpoint.

    Returns ``None`` when there is nothing to score or the service replies
    without a score for our document. Transport errors, HTTP errors and
    undecodable bodies are raised as :class:`SentimentError`.
    """

    def __init__(
        self,
        api_key: str,
        *,
        url: str = DEFAULT_SENTIMENT_URL,
        language: str = "en",
        timeout: float = 10.0,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("Text Analytics sentiment requires an API key")
        self._api_key = api_key
        self._url = url
        self._language = language
        self._timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)

    def _payload(self, text: str) -> dict[str, Any]:
        return {
            "documents": [
                {"language": self._language, "id": _DOCUMENT_ID, "text": text}
            ]
        }

    def score(self, text: str | None) -> float | None:
        if not text:
            return None
        headers = {
            "Content-Type": "application/json",
            "Ocp-Apim-Subscription-Key": self._api_key,
        }
        try:
            response = self.session.request(
                "POST",
                self._url,
                headers=headers,
                json=self._payload(text),
                timeout=self._timeout,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise SentimentError(f"Sentiment request failed: {exc}") from exc

        if not isinstance(body, dict):
            raise SentimentError(f"Unexpected sentiment response {type(body).__name__}")
        documents = body.get("documents") or []
        if not isinstance(documents, list) or not all(
            isinstance(document, dict) for document in documents
        ):
            raise SentimentError("Unexpected shape for sentiment documents")
        for document in documents:
            if document.get("id") != _DOCUMENT_ID:
                continue
            score = document.get("score")
            if score is None:
                return None
            try:
                return float(score)
            except (TypeError, ValueError) as exc:
                raise SentimentError(f"Unexpected sentiment score {score!r}") from exc
        self.logger.debug("Sentiment response carried no score for %s", _DOCUMENT_ID)
        return None
