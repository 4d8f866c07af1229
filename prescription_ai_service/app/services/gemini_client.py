import logging
import os
from typing import Any, Dict, Optional

import requests

from app.core.llm_config import (
    GEMINI_BASE_URL,
    GEMINI_MAX_OUTPUT_TOKENS_CAP,
    GEMINI_MODEL,
    GEMINI_TIMEOUT_S,
)
from app.schemas.models import GenerationConfig
from app.services.errors import GenerationMalformed, GenerationUnavailable

logger = logging.getLogger("prescription_ai.gemini")


def _extract_text(data: Any) -> str:
    """candidates[0].content.parts[0].text, or GenerationMalformed."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise GenerationMalformed(f"response has no candidates[0].content.parts[0].text ({e!r})") from e
    if not isinstance(text, str) or not text.strip():
        raise GenerationMalformed("response text is empty")
    return text


def generate_text(
    prompt: str,
    config: Optional[GenerationConfig] = None,
    model: Optional[str] = None,
    timeout_s: Optional[float] = None,
) -> str:
    """
    Single generateContent call; returns the model's raw text.
    Transport problems raise GenerationUnavailable, envelope problems
    raise GenerationMalformed. No retries.
    """
    # read key at runtime (prevents stale cached value)
    api_key = os.getenv("GEMINI_API_KEY", "").strip()
    if not api_key:
        raise GenerationUnavailable("GEMINI_API_KEY is not configured")

    cfg = config or GenerationConfig()
    if cfg.max_output_tokens > GEMINI_MAX_OUTPUT_TOKENS_CAP:
        cfg = cfg.model_copy(update={"max_output_tokens": GEMINI_MAX_OUTPUT_TOKENS_CAP})

    url = f"{GEMINI_BASE_URL}/models/{model or GEMINI_MODEL}:generateContent"
    payload: Dict[str, Any] = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": cfg.to_request(),
    }

    try:
        r = requests.post(
            url,
            params={"key": api_key},
            headers={"Content-Type": "application/json"},
            json=payload,
            timeout=timeout_s or GEMINI_TIMEOUT_S,
        )
    except requests.Timeout as e:
        logger.warning(f"generation timed out after {timeout_s or GEMINI_TIMEOUT_S}s")
        raise GenerationUnavailable(f"timeout: {e}") from e
    except requests.RequestException as e:
        logger.warning(f"generation transport error: {e}")
        raise GenerationUnavailable(f"network error: {e}") from e

    if r.status_code >= 400:
        logger.warning(f"generation endpoint returned {r.status_code}")
        raise GenerationUnavailable(f"Gemini {r.status_code}: {r.text[:500]}", upstream_status=r.status_code)

    try:
        data = r.json()
    except ValueError as e:
        raise GenerationMalformed(f"response body is not JSON: {r.text[:200]}") from e

    return _extract_text(data)
