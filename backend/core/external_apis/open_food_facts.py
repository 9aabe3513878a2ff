"""
Open Food Facts probe (no key required).
Search: https://world.openfoodfacts.org/cgi/search.pl?search_terms=...&json=1

A phrase is flagged when the top matching product carries additive tags or
ingredient-analysis tags. Best effort: a failed lookup leaves the phrase unflagged.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from core.config import OFF_RETRIES, OFF_TIMEOUT, get_open_food_facts_enabled
from core.external_apis.http_retry import fetch_json_with_retries
from core.models.analysis import unique_in_order

logger = logging.getLogger(__name__)

OFF_SEARCH_URL = "https://world.openfoodfacts.org/cgi/search.pl"
DEFAULT_MAX_WORKERS = 8


def _tag_list(product: dict, key: str) -> list:
    value = product.get(key)
    return value if isinstance(value, list) else []


def product_is_flagged(product: Optional[dict]) -> bool:
    """True when the product has any additives_tags or ingredients_analysis_tags."""
    if not isinstance(product, dict):
        return False
    return bool(_tag_list(product, "additives_tags") or _tag_list(product, "ingredients_analysis_tags"))


def search_top_product(phrase: str, timeout: int = OFF_TIMEOUT, retries: int = OFF_RETRIES) -> Optional[dict]:
    """First product for the search term, or None. Network and decode errors propagate."""
    params = {
        "search_terms": phrase,
        "search_simple": 1,
        "action": "process",
        "json": 1,
    }
    data = fetch_json_with_retries(OFF_SEARCH_URL, params=params, timeout=timeout, retries=retries)
    products = data.get("products") if isinstance(data, dict) else None
    if not isinstance(products, list) or not products or not isinstance(products[0], dict):
        return None
    return products[0]


def probe_phrase(phrase: str, timeout: int = OFF_TIMEOUT) -> bool:
    """Look up one phrase. Any failure counts as not flagged."""
    if not phrase or not phrase.strip():
        return False
    try:
        product = search_top_product(phrase.strip(), timeout=timeout)
    except Exception as e:
        logger.warning("OFF_PROBE miss phrase=%s error=%s", phrase[:60], type(e).__name__)
        return False
    if product is None:
        logger.info("OFF_PROBE no results phrase=%s", phrase[:60])
        return False
    flagged = product_is_flagged(product)
    name = product.get("product_name")
    logger.info(
        "OFF_PROBE phrase=%s product=%s flagged=%s",
        phrase[:60], name[:60] if isinstance(name, str) else "", flagged,
    )
    return flagged


def probe_flags(phrases: Sequence[str], max_workers: int = DEFAULT_MAX_WORKERS) -> List[str]:
    """
    Probe every phrase concurrently and return the flagged ones.
    Result order follows first occurrence in the input, not completion order.
    """
    if not phrases:
        return []
    if not get_open_food_facts_enabled():
        logger.info("OFF_PROBE disabled (OPEN_FOOD_FACTS_ENABLED=false)")
        return []
    workers = max(1, min(max_workers, len(phrases)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="off-probe") as pool:
        results = list(pool.map(probe_phrase, phrases))
    flagged = unique_in_order(p for p, hit in zip(phrases, results) if hit)
    logger.info("OFF_PROBE done phrases=%d flagged=%d", len(phrases), len(flagged))
    return list(flagged)
