"""
HTTP request + JSON decode with bounded retries and linear backoff.
Shared by every external call (Open Food Facts, Gemini, OCR).
"""
import logging
import re
import time
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 2
DEFAULT_BASE_DELAY = 1.0
DEFAULT_TIMEOUT = 15

_KEY_IN_URL_RE = re.compile(r"(key=)[^&]+", re.IGNORECASE)


def redact(text: str) -> str:
    """Hide API keys carried in query strings before logging."""
    return _KEY_IN_URL_RE.sub(r"\1***", str(text))


def fetch_json_with_retries(
    url: str,
    method: str = "GET",
    params: Optional[dict] = None,
    json: Optional[Any] = None,
    data: Optional[dict] = None,
    files: Optional[dict] = None,
    headers: Optional[dict] = None,
    timeout: int = DEFAULT_TIMEOUT,
    retries: int = DEFAULT_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
) -> Any:
    """
    Send the request and return the decoded JSON body.
    Non-2xx status, network errors and undecodable bodies all count as failures.
    Makes 1 + retries attempts, sleeping (attempt + 1) * base_delay between them,
    then re-raises the last error.
    """
    attempts = max(0, retries) + 1
    for attempt in range(attempts):
        try:
            resp = requests.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                files=files,
                headers=headers,
                timeout=timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(
                "EXTERNAL_API retry attempt=%s/%s url=%s error=%s",
                attempt + 1, attempts, redact(url)[:80], redact(f"{type(e).__name__}: {e}")[:200],
            )
            if attempt == attempts - 1:
                raise
        delay = (attempt + 1) * base_delay
        logger.info("EXTERNAL_API backoff %.1fs before retry", delay)
        time.sleep(delay)
