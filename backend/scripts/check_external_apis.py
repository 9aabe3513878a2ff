#!/usr/bin/env python3
"""
Check if the external services (Gemini, Open Food Facts) are reachable.
Run from backend: python scripts/check_external_apis.py
Exit 0 if at least one service works; 1 if both fail or none configured.
The pipeline still answers with both down (fallback flags and note), so this is informational.
"""
import sys
from pathlib import Path
from typing import Tuple

# Add backend to path when run as script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# Short timeout for health check
HEALTH_TIMEOUT = 8


def check_gemini(api_key: str) -> Tuple[bool, str]:
    """Return (success, message)."""
    if not (api_key or "").strip():
        return False, "no API key (set GEMINI_API_KEY)"
    from core.errors import GenerationError
    from core.external_apis.gemini import generate_text
    try:
        text = generate_text("Reply with the single word: ok", timeout=HEALTH_TIMEOUT, retries=0)
    except GenerationError as e:
        return False, str(e)[:120]
    return True, f"ok (reply={text.strip()[:20]!r})"


def check_open_food_facts() -> Tuple[bool, str]:
    """Return (success, message)."""
    import requests
    from core.external_apis.open_food_facts import search_top_product
    try:
        product = search_top_product("sugar", timeout=HEALTH_TIMEOUT, retries=0)
    except (requests.RequestException, ValueError) as e:
        return False, f"{type(e).__name__}"
    if product is None:
        return False, "no result"
    return True, f"ok (product={(product.get('product_name') or '')[:40]!r})"


def main() -> int:
    from core.config import get_gemini_api_key, get_open_food_facts_enabled
    gemini_key = get_gemini_api_key()
    off_enabled = get_open_food_facts_enabled()
    print("Checking external services...")
    gemini_ok, gemini_msg = check_gemini(gemini_key)
    print(f"  Gemini:          {'OK' if gemini_ok else 'FAIL'} - {gemini_msg}")
    off_ok = False
    off_msg = "disabled (OPEN_FOOD_FACTS_ENABLED=false)"
    if off_enabled:
        off_ok, off_msg = check_open_food_facts()
    print(f"  Open Food Facts: {'OK' if off_ok else 'FAIL'} - {off_msg}")
    if gemini_ok or off_ok:
        print("At least one service is working.")
        return 0
    print("All configured services failed or none configured.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
