"""Celebratory captions for finished rounds.

The caption is a nice-to-have. The client returns None when it has no API
key, and wraps every transport or response problem in
AnnotationServiceError so the caller can log and move on.
"""

from __future__ import annotations

import re
from http import HTTPStatus
from typing import TYPE_CHECKING, Protocol

import httpx
import structlog

from lottery.logic.exceptions import AnnotationServiceError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = structlog.get_logger()

DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

_QUOTE_CHARS = re.compile(r"[\"'“”‘’]")

_PROMPT_TEMPLATE = """\
Context: prize draw at a company party. Prize: "{prize}". Winners: {winners}.
Task: write one very short congratulation, at most 12 words.
Rules: a single line, no quotation marks, festive and a little funny.
Examples: Fortune smiles, next year you get rich! / Luck level: legendary!
"""


class AnnotationService(Protocol):
    """Produces a short caption for a round, or None when unavailable."""

    async def annotate(self, prize_name: str, winner_names: Sequence[str]) -> str | None: ...


def build_prompt(prize_name: str, winner_names: Sequence[str]) -> str:
    return _PROMPT_TEMPLATE.format(prize=prize_name, winners=", ".join(winner_names))


def clean_caption(text: str | None) -> str | None:
    """Trim the model reply and strip quote characters. Empty results become None."""
    if text is None:
        return None
    cleaned = _QUOTE_CHARS.sub("", text.strip()).strip()
    return cleaned or None


class GeminiAnnotationService:
    """Calls the Gemini generateContent REST endpoint."""

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._api_key = api_key or None
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds

    @property
    def enabled(self) -> bool:
        return self._api_key is not None

    async def annotate(self, prize_name: str, winner_names: Sequence[str]) -> str | None:
        if self._api_key is None:
            return None

        url = f"{self._base_url}/models/{self._model}:generateContent"
        body = {"contents": [{"parts": [{"text": build_prompt(prize_name, winner_names)}]}]}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=body, headers={"x-goog-api-key": self._api_key})
        except httpx.HTTPError as exc:
            raise AnnotationServiceError(f"caption request failed: {exc}") from exc

        if response.status_code != HTTPStatus.OK:
            raise AnnotationServiceError(f"caption request returned HTTP {response.status_code}")

        try:
            payload = response.json()
            parts = payload["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            raise AnnotationServiceError("unexpected caption response shape") from exc

        caption = clean_caption(text)
        logger.debug("caption generated", model=self._model, has_caption=caption is not None)
        return caption
