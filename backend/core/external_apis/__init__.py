"""
External service connectors: Open Food Facts (free, no key) and Gemini.
All go through fetch_json_with_retries.
"""
from .http_retry import fetch_json_with_retries
from .open_food_facts import probe_flags, probe_phrase
from .gemini import generate_text

__all__ = [
    "fetch_json_with_retries",
    "probe_flags",
    "probe_phrase",
    "generate_text",
]
