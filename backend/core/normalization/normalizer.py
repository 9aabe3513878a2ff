"""
Deterministic label-text normalization. No network, no LLM.
Used directly for display and as the ingredient list whenever the AI path is unavailable.
"""
import re
import logging
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

# "Ingredients:", "INGREDIENT -", "ingredients" at the very start
_HEADER_RE = re.compile(r"^\s*ingredients?\b[:\s-]*", re.IGNORECASE)
# "Contains 2% or less of:" style disclaimers (first occurrence)
_DISCLAIMER_RE = re.compile(r"\bcontains\s+\d+%[^:]*:\s*", re.IGNORECASE)
_BULLETS_RE = re.compile(r"[·•]")
_WHITESPACE_RE = re.compile(r"\s+")

_SEGMENT_SPLIT_RE = re.compile(r"[,;\n]+")
_LEADING_AND_RE = re.compile(r"^(?:and\s+)+", re.IGNORECASE)
_TRAILING_PERIOD_RE = re.compile(r"\.$")


def _normalize_once(text: str) -> str:
    t = _HEADER_RE.sub("", text, count=1)
    t = _DISCLAIMER_RE.sub("", t, count=1)
    t = _BULLETS_RE.sub(" ", t)
    t = _WHITESPACE_RE.sub(" ", t)
    return t.strip()


def normalize_ingredients_text(text: Optional[str]) -> str:
    """
    Strip the header and percentage disclaimer, replace bullet glyphs, collapse whitespace.
    Repeats until stable so the result is a fixed point (stacked headers, bullets hiding
    a disclaimer). Every repeat after the first only shortens the string.
    """
    out = _normalize_once(str(text or ""))
    while True:
        again = _normalize_once(out)
        if again == out:
            return out
        out = again


def phrase_key(phrase: str) -> str:
    """Comparison key for a phrase: lowercase, single-spaced, trimmed."""
    return _WHITESPACE_RE.sub(" ", (phrase or "").lower()).strip()


def dedupe_phrases(phrases: Iterable[str]) -> List[str]:
    """Drop case-insensitive duplicates and blanks, keeping the first spelling and input order."""
    seen = set()
    out: List[str] = []
    for p in phrases:
        key = phrase_key(p)
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(p.strip())
    return out


def _clean_segment(segment: str) -> str:
    s = _LEADING_AND_RE.sub("", segment.strip())
    s = _TRAILING_PERIOD_RE.sub("", s)
    return s.strip()


def list_for_display(text: Optional[str]) -> List[str]:
    """
    Ordered ingredient phrases: split on commas, semicolons and newlines;
    trim each, drop a leading "and " and one trailing period, skip empties.
    Case is preserved.
    """
    normalized = normalize_ingredients_text(text)
    if not normalized:
        return []
    out = []
    for segment in _SEGMENT_SPLIT_RE.split(normalized):
        cleaned = _clean_segment(segment)
        if cleaned:
            out.append(cleaned)
    return out
