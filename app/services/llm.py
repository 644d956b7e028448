from __future__ import annotations

import json
import logging
import os
import re
import time
from functools import lru_cache
from typing import Any

from openai import OpenAI

from app.core.config import settings

logger = logging.getLogger(__name__)

_FENCE_OPEN_RE = re.compile(r"^```[a-zA-Z]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?```$")
_UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")
_HEX_ESCAPE_RE = re.compile(r"\\x([0-9a-fA-F]{2})")


class LLMError(RuntimeError):
    def __init__(self, message: str, *, code: str = "llm_unavailable"):
        super().__init__(message)
        self.code = code


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def _api_key() -> str:
    return (os.getenv("GEMINI_API_KEY") or settings.gemini_api_key or "").strip()


def llm_enabled() -> bool:
    if not _env_bool("LLM_ENABLED", True):
        return False
    api_key = _api_key()
    return bool(api_key) and not _looks_like_placeholder(api_key)


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    # Gemini is reached through its OpenAI-compatible endpoint.
    return OpenAI(
        api_key=_api_key(),
        base_url=settings.gemini_base_url,
        timeout=settings.llm_timeout_s,
        max_retries=settings.llm_max_retries,
    )


def _model() -> str:
    return (os.getenv("GEMINI_MODEL") or settings.gemini_model).strip()


def sanitize_text(text: str) -> str:
    """Decode literal ``\\uXXXX`` / ``\\xXX`` escapes pasted into resume text."""
    if not text:
        return text
    text = _UNICODE_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), text)
    return _HEX_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), text)


def strip_code_fences(text: str) -> str:
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN_RE.sub("", cleaned, count=1)
        cleaned = _FENCE_CLOSE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def text_completion(
    *,
    prompt: str,
    temperature: float = 0.3,
    max_output_tokens: int = 4096,
    purpose: str = "unknown",
) -> str:
    if not llm_enabled():
        raise LLMError("Google Gemini API key not configured", code="llm_disabled")

    started = time.perf_counter()
    try:
        response = _client().chat.completions.create(
            model=_model(),
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_output_tokens,
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("llm_completion_failed purpose=%s model=%s prompt_len=%s: %s", purpose, _model(), len(prompt), exc)
        raise LLMError(str(exc) or "AI request failed", code="llm_exception") from exc

    content = response.choices[0].message.content if response.choices else ""
    latency_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "llm_completion purpose=%s model=%s prompt_len=%s response_len=%s latency_ms=%s",
        purpose,
        _model(),
        len(prompt),
        len(content or ""),
        latency_ms,
    )
    if not content:
        raise LLMError("AI service returned an empty response", code="empty_response")
    return strip_code_fences(content)


def json_completion(
    *,
    prompt: str,
    temperature: float = 0.2,
    max_output_tokens: int = 4096,
    purpose: str = "unknown",
) -> dict[str, Any]:
    text = text_completion(
        prompt=prompt,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        purpose=purpose,
    )
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("llm_json_parse_failed purpose=%s head=%r", purpose, text[:500])
        raise LLMError(f"Failed to parse AI response as JSON: {exc}", code="invalid_json") from exc
    if not isinstance(parsed, dict):
        raise LLMError("AI response was not a JSON object", code="invalid_schema")
    return parsed
