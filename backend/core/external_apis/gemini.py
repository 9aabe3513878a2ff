"""
Gemini generateContent client. Returns the first candidate's text or raises GenerationError.
"""
import logging
from typing import Any, Optional

import requests

from core.config import (
    AI_RETRIES,
    AI_TIMEOUT,
    get_gemini_api_key,
    get_gemini_api_url,
    get_gemini_model,
)
from core.errors import GenerationError
from core.external_apis.http_retry import fetch_json_with_retries, redact

logger = logging.getLogger(__name__)


def generate_content_url() -> str:
    return f"{get_gemini_api_url()}/models/{get_gemini_model()}:generateContent"


def extract_text(payload: Any) -> Optional[str]:
    """candidates[0].content.parts[0].text, or None when absent (refusal, blocked, odd shape)."""
    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return None
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    if not isinstance(text, str) or not text.strip():
        return None
    return text


def generate_text(
    prompt: str,
    json_mode: bool = False,
    temperature: Optional[float] = None,
    timeout: int = AI_TIMEOUT,
    retries: int = AI_RETRIES,
) -> str:
    """
    Send one prompt and return the completion text.
    json_mode asks for application/json output; temperature is sent only when given.
    """
    api_key = get_gemini_api_key()
    if not api_key:
        raise GenerationError("GEMINI_API_KEY is not set")

    body: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
    generation_config: dict[str, Any] = {}
    if json_mode:
        generation_config["responseMimeType"] = "application/json"
    if temperature is not None:
        generation_config["temperature"] = temperature
    if generation_config:
        body["generationConfig"] = generation_config

    try:
        payload = fetch_json_with_retries(
            generate_content_url(),
            method="POST",
            params={"key": api_key},
            json=body,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            retries=retries,
        )
    except (requests.RequestException, ValueError) as e:
        raise GenerationError(redact(f"{type(e).__name__}: {e}")[:300]) from e

    text = extract_text(payload)
    if text is None:
        reason = ""
        if isinstance(payload, dict):
            feedback = payload.get("promptFeedback")
            if isinstance(feedback, dict):
                reason = str(feedback.get("blockReason") or "")
        logger.warning("GEMINI no text in response block_reason=%s", reason or "none")
        raise GenerationError(f"no text in response{': ' + reason if reason else ''}")
    return text
