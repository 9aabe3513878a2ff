"""
AI ingredient classification with a three-tier degradation ladder:

  1. Gemini parses and classifies the label text (source=ai).
  2. If that fails for any reason, the deterministic normalizer provides the
     phrase list and Open Food Facts provides flags (source=off).
  3. If the probe flags nothing too, the result carries no flags (source=fallback).

classify_ingredients never raises.
"""
import json
import logging
import re
from typing import Any, List, Optional, Sequence

from core.errors import GenerationError
from core.external_apis.gemini import generate_text
from core.external_apis.open_food_facts import probe_flags
from core.models.analysis import (
    ClassificationItem,
    ClassificationResult,
    FlagSource,
    unique_in_order,
)
from core.normalization.normalizer import (
    dedupe_phrases,
    list_for_display,
    normalize_ingredients_text,
    phrase_key,
)

logger = logging.getLogger(__name__)

# Always harmful, whatever the model says
TOXIN_TERMS = ("poison", "bleach", "antifreeze", "cyanide", "arsenic", "mercury", "lead", "lye")
_TOXIN_RE = re.compile(r"\b(?:" + "|".join(TOXIN_TERMS) + r")\b", re.IGNORECASE)
SAFETY_OVERRIDE_REASON = "toxic or non-food substance"

# Upper bound on characters scanned when recovering an embedded JSON object
MAX_RECOVERY_SCAN = 100_000

_CLASSIFY_PROMPT = """You are a nutrition safety checker.

Task A - Parse:
- Extract a clean, de-duplicated list of ingredient PHRASES from the text.
- Keep multi-word phrases together (e.g. "palm oil", "high fructose corn syrup", "sodium stearoyl lactylate").
- Expand common abbreviations (e.g. "msg" -> "monosodium glutamate (msg)").
- Lowercase every phrase.

Task B - Classify each phrase:
- Set "harmful" to true or false for a general audience, with a short neutral reason (20 words or fewer).
- SAFETY-FIRST RULE: any phrase naming a poison or non-food substance ({toxins}) is harmful=true.
- Concern categories to consider (not exhaustive): added sugars and syrups, partially or fully hydrogenated fats,
  artificial colors, artificial flavors, preservatives, emulsifiers and stabilizers, nitrites and nitrates,
  high-sodium leaveners, ultra-processed additives.
- If genuinely unsure, set harmful=false. Do not speculate.

Return ONLY strict JSON:
{{
  "parsedIngredients": ["phrase1", "phrase2"],
  "items": [
    {{"term": "phrase1", "harmful": true, "reason": "short reason"}}
  ]
}}

Ingredient text:
\"\"\"{text}\"\"\""""


def build_classification_prompt(normalized_text: str) -> str:
    return _CLASSIFY_PROMPT.format(toxins=", ".join(TOXIN_TERMS), text=normalized_text)


def is_toxin_phrase(phrase: str) -> bool:
    return bool(_TOXIN_RE.search(phrase or ""))


def _strip_code_fences(raw: str) -> str:
    cleaned = re.sub(r"```(?:json)?\s*", "", raw)
    return cleaned.strip().rstrip("`").strip()


def _first_balanced_object(text: str) -> Optional[str]:
    """
    First balanced {...} substring, skipping braces inside JSON string literals.
    Scans at most MAX_RECOVERY_SCAN characters.
    """
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    end = min(len(text), start + MAX_RECOVERY_SCAN)
    for i in range(start, end):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_classification_response(raw: Optional[str]) -> Optional[dict]:
    """
    Strict parse first, then brace-matching recovery.
    Returns the decoded object, or None when the response is unusable.
    """
    if not raw or not raw.strip():
        return None
    cleaned = _strip_code_fences(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        candidate = _first_balanced_object(cleaned)
        if candidate is None:
            logger.warning("AI_CLASSIFY no JSON object in response: %s", raw[:200])
            return None
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            logger.warning("AI_CLASSIFY recovered block is not JSON: %s", candidate[:200])
            return None
    if not isinstance(data, dict):
        logger.warning("AI_CLASSIFY response is %s, not an object", type(data).__name__)
        return None
    return data


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _coerce_items(raw_items: Any) -> List[ClassificationItem]:
    items: List[ClassificationItem] = []
    if not isinstance(raw_items, list):
        return items
    for entry in raw_items:
        if not isinstance(entry, dict):
            continue
        term = phrase_key(str(entry.get("term") or ""))
        if not term:
            continue
        items.append(ClassificationItem(
            term=term,
            harmful=_as_bool(entry.get("harmful")),
            reason=str(entry.get("reason") or "").strip(),
        ))
    return items


def _toxin_words(phrase: str) -> set:
    return {m.lower() for m in _TOXIN_RE.findall(phrase or "")}


def apply_safety_override(
    parsed: List[str],
    items: List[ClassificationItem],
    input_phrases: Sequence[str] = (),
) -> tuple[List[str], List[ClassificationItem]]:
    """
    Force toxin phrases harmful, whatever the model answered.
    - classified toxin phrases are flipped to harmful;
    - parsed toxin phrases the model left unclassified get an item;
    - toxin phrases in the label text that the model dropped entirely are
      added to both the parsed list and the items.
    Returns (parsed, items).
    """
    parsed = list(parsed)
    out: List[ClassificationItem] = []
    for item in items:
        if not item.harmful and is_toxin_phrase(item.term):
            logger.info("AI_CLASSIFY safety override term=%s", item.term)
            item = ClassificationItem(term=item.term, harmful=True, reason=item.reason or SAFETY_OVERRIDE_REASON)
        out.append(item)

    classified = {i.term for i in out}
    for phrase in parsed:
        if phrase not in classified and is_toxin_phrase(phrase):
            logger.info("AI_CLASSIFY safety override (unclassified) term=%s", phrase)
            out.append(ClassificationItem(term=phrase, harmful=True, reason=SAFETY_OVERRIDE_REASON))
            classified.add(phrase)

    covered = set()
    for item in out:
        if item.harmful:
            covered |= _toxin_words(item.term)
    for raw_phrase in input_phrases:
        phrase = phrase_key(raw_phrase)
        words = _toxin_words(phrase)
        if not words or words <= covered or phrase in classified:
            continue
        logger.info("AI_CLASSIFY safety override (missing from response) term=%s", phrase)
        # an empty parsed list stays empty so the caller falls back to the normalizer list
        if parsed and phrase not in parsed:
            parsed.append(phrase)
        out.append(ClassificationItem(term=phrase, harmful=True, reason=SAFETY_OVERRIDE_REASON))
        classified.add(phrase)
        covered |= words
    return parsed, out


def result_from_response(data: dict, text: str = "") -> ClassificationResult:
    """Build the AI-path result from a decoded model response and the label text it was given."""
    raw_parsed = data.get("parsedIngredients")
    parsed = dedupe_phrases(
        phrase_key(str(p)) for p in (raw_parsed if isinstance(raw_parsed, list) else [])
    )
    parsed, items = apply_safety_override(parsed, _coerce_items(data.get("items")), list_for_display(text))
    flags = unique_in_order(i.term for i in items if i.harmful)
    return ClassificationResult(
        parsed_ingredients=tuple(parsed),
        items=tuple(items),
        flags=flags,
        source=FlagSource.AI,
    )


def fallback_classification(text: str) -> ClassificationResult:
    """Normalizer phrases plus Open Food Facts flags; no per-item reasons."""
    parsed = list_for_display(text)
    flags = probe_flags(dedupe_phrases(parsed))
    source = FlagSource.OFF if flags else FlagSource.FALLBACK
    logger.info("AI_CLASSIFY fallback source=%s phrases=%d flags=%d", source.value, len(parsed), len(flags))
    return ClassificationResult(
        parsed_ingredients=tuple(parsed),
        items=(),
        flags=tuple(flags),
        source=source,
    )


def classify_ingredients(text: str) -> ClassificationResult:
    """Classify label text with Gemini; degrade to normalizer + Open Food Facts on any failure."""
    normalized = normalize_ingredients_text(text)
    try:
        raw = generate_text(build_classification_prompt(normalized), json_mode=True, temperature=0.0)
    except GenerationError as e:
        logger.warning("AI_CLASSIFY unavailable, falling back. reason=%s", e)
        return fallback_classification(normalized)

    data = parse_classification_response(raw)
    if data is None:
        logger.warning("AI_CLASSIFY unparseable response, falling back")
        return fallback_classification(normalized)

    result = result_from_response(data, normalized)
    logger.info(
        "AI_CLASSIFY success parsed=%d items=%d flags=%s",
        len(result.parsed_ingredients), len(result.items), list(result.flags),
    )
    return result
