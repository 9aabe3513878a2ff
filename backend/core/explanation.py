"""
Short explanation of the flagged terms, rendered from markdown to HTML.
Falls back to a fixed note when the generative service fails; never raises.
"""
import logging
from typing import Sequence

import markdown

from core.errors import GenerationError
from core.external_apis.gemini import generate_text

logger = logging.getLogger(__name__)

FALLBACK_EXPLANATION_MD = "Unable to generate explanation right now."


def render_markdown(text: str) -> str:
    return markdown.markdown(text)


FALLBACK_EXPLANATION_HTML = render_markdown(FALLBACK_EXPLANATION_MD)


def build_explanation_prompt(flags: Sequence[str]) -> str:
    if flags:
        return (
            "Explain briefly for a general audience why these ingredients may be concerning: "
            f"{', '.join(flags)}.\n"
            "Cover only these terms. Use short bullets grouped by concern category, neutral tone, "
            "no medical claims. Markdown only. 120 words or fewer."
        )
    return (
        "No harmful ingredients were flagged. Write a short, friendly note (60 words or fewer) "
        "about balanced eating and reading labels. Markdown only."
    )


def generate_explanation(flags: Sequence[str]) -> str:
    """HTML explanation for the flags (or a friendly note when there are none)."""
    flags = list(flags or [])
    try:
        text = generate_text(build_explanation_prompt(flags))
    except GenerationError as e:
        logger.warning("EXPLANATION unavailable, using fallback note. reason=%s", e)
        return FALLBACK_EXPLANATION_HTML
    html = render_markdown(text.strip())
    if not html.strip():
        return FALLBACK_EXPLANATION_HTML
    logger.info("EXPLANATION success flags=%d len=%d", len(flags), len(html))
    return html
