"""
llm_engine.py
=============
Gemini generation client for the FarmFlight assistant.

One request per chat turn:
  • model    : GEMINI_MODEL (default gemini-2.0-flash)
  • sampling : temperature 0.7, top_p 0.95, top_k 40
  • safety   : BLOCK_MEDIUM_AND_ABOVE for harassment, sexually explicit,
               dangerous content and hate speech

Content parts arrive already ordered (text first, then inline videos) and are
forwarded as a single user turn. Every failure surfaces as GenerationFailure;
nothing is retried.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from google import genai
from google.genai import types

from rag_pipeline.attachments import VideoPart
from rag_pipeline.errors import GenerationFailure
from rag_pipeline.prompt_builder import ContentPart, TextPart

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"

SAFETY_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
)
SAFETY_THRESHOLD = types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE


def _clean_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    return value.strip().strip('"').strip("'")


def _is_auth_error(exc: Exception) -> bool:
    for attr in ("code", "status_code"):
        if getattr(exc, attr, None) in (401, 403):
            return True

    response = getattr(exc, "response", None)
    if response is not None and getattr(response, "status_code", None) in (401, 403):
        return True

    text = str(exc).lower()
    return "api key not valid" in text or "permission_denied" in text or "unauthenticated" in text


@dataclass(frozen=True)
class SamplingConfig:
    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 40


DEFAULT_SAMPLING = SamplingConfig()


def build_generation_config(sampling: SamplingConfig = DEFAULT_SAMPLING) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        temperature     = sampling.temperature,
        top_p           = sampling.top_p,
        top_k           = sampling.top_k,
        safety_settings = [
            types.SafetySetting(category=category, threshold=SAFETY_THRESHOLD)
            for category in SAFETY_CATEGORIES
        ],
    )


def to_sdk_parts(parts: Sequence[ContentPart]) -> List[types.Part]:
    """Translate pipeline content parts into SDK parts, preserving order."""
    sdk_parts: List[types.Part] = []
    for part in parts:
        if isinstance(part, TextPart):
            sdk_parts.append(types.Part.from_text(text=part.text))
        elif isinstance(part, VideoPart):
            try:
                raw = base64.b64decode(part.data, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise GenerationFailure(f"video part {part.name} is not valid base64") from exc
            sdk_parts.append(types.Part.from_bytes(data=raw, mime_type=part.mime_type))
        else:
            raise GenerationFailure(f"unsupported content part: {type(part).__name__}")
    return sdk_parts


def _extract_text(response: Any) -> str:
    text = getattr(response, "text", None)
    if text and text.strip():
        return text.strip()

    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None) if feedback is not None else None
    if block_reason:
        raise GenerationFailure(f"prompt blocked by safety filters ({block_reason})")
    raise GenerationFailure("model returned an empty response")


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Any = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else _clean_env("GEMINI_API_KEY", "")
        self.model = model or _clean_env("GEMINI_MODEL", DEFAULT_MODEL) or DEFAULT_MODEL
        self.timeout_seconds = timeout_seconds or float(_clean_env("HTTP_TIMEOUT_SECONDS", "120") or "120")
        self._client = client

    @property
    def is_configured(self) -> bool:
        if self._client is not None:
            return True
        return bool(self.api_key) and not self.api_key.startswith("your_")

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(
                api_key      = self.api_key,
                http_options = types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )
        return self._client

    async def generate(
        self,
        parts: Sequence[ContentPart],
        sampling: SamplingConfig = DEFAULT_SAMPLING,
    ) -> str:
        """Send the ordered content parts to Gemini and return the answer text."""
        if not self.is_configured:
            raise GenerationFailure("Gemini unavailable: missing/invalid API configuration.")
        if not parts:
            raise GenerationFailure("no content parts to send")

        contents = [types.Content(role="user", parts=to_sdk_parts(parts))]
        try:
            response = await self._get_client().aio.models.generate_content(
                model    = self.model,
                contents = contents,
                config   = build_generation_config(sampling),
            )
        except Exception as exc:
            if _is_auth_error(exc):
                logger.warning("Gemini authorization failed: %s", exc)
                raise GenerationFailure(f"Gemini authorization failed: {exc}") from exc
            raise GenerationFailure(f"Gemini request failed: {exc}") from exc

        text = _extract_text(response)
        logger.info("Gemini answer received (%d chars, model=%s).", len(text), self.model)
        return text
