"""
Unit tests: risk scorer and explanation generator.
Run from repo root: python -m pytest backend/tests/test_risk_and_explanation.py -v
"""
import os
from unittest.mock import patch

from core.errors import GenerationError
from core.scoring import RiskLevel, score_risk


def test_score_thresholds():
    assert score_risk([]) == RiskLevel.LOW
    assert score_risk(["a"]) == RiskLevel.MEDIUM
    assert score_risk(["a", "b", "c"]) == RiskLevel.MEDIUM
    assert score_risk(["a", "b", "c", "d"]) == RiskLevel.HIGH
    assert score_risk([str(i) for i in range(12)]) == RiskLevel.HIGH


def test_score_monotonic():
    order = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH]
    levels = [order.index(score_risk(["x"] * n)) for n in range(10)]
    assert levels == sorted(levels)


def test_score_values_are_wire_strings():
    assert score_risk(None).value == "low"
    assert score_risk(("a",)) == "medium"


def test_explanation_prompt_lists_flags():
    from core.explanation import build_explanation_prompt
    prompt = build_explanation_prompt(["aspartame", "lead"])
    assert "aspartame, lead" in prompt
    assert "no medical claims" in prompt
    assert "balanced eating" in build_explanation_prompt([])


@patch("core.explanation.generate_text", return_value="- **aspartame**: artificial sweetener")
def test_explanation_renders_markdown(mock_generate):
    from core.explanation import generate_explanation
    html = generate_explanation(["aspartame"])
    assert "<li>" in html
    assert "<strong>aspartame</strong>" in html
    # no temperature or JSON mode for explanations
    assert mock_generate.call_args.kwargs == {}


@patch("core.explanation.generate_text", side_effect=GenerationError("HTTPError: 500"))
def test_explanation_falls_back_on_failure(mock_generate):
    from core.explanation import FALLBACK_EXPLANATION_HTML, generate_explanation
    html = generate_explanation([])
    assert html == FALLBACK_EXPLANATION_HTML
    assert "Unable to generate explanation right now." in html
    assert html.startswith("<p>")


def test_explanation_falls_back_on_malformed_reply():
    from core.explanation import FALLBACK_EXPLANATION_HTML, generate_explanation
    for payload in ({"candidates": [{"content": "oops"}]}, {"candidates": {"0": 1}}):
        with patch.dict(os.environ, {"GEMINI_API_KEY": "test-key"}), \
                patch("core.external_apis.gemini.fetch_json_with_retries", return_value=payload):
            assert generate_explanation(["lead"]) == FALLBACK_EXPLANATION_HTML
