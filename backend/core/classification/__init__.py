from .ai_classifier import classify_ingredients, parse_classification_response, TOXIN_TERMS

__all__ = [
    "classify_ingredients",
    "parse_classification_response",
    "TOXIN_TERMS",
]
