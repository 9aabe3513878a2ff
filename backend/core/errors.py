"""
Errors surfaced by the analysis pipeline.

Only InputError and ExtractionError reach callers. GenerationError stays
inside the classifier and explanation generator, which degrade on it.
"""


class InputError(ValueError):
    """Missing or empty ingredient input; raised before any external call."""


class ExtractionError(RuntimeError):
    """OCR failed or returned no usable text."""


# Name used by the OCR collaborator contract
TextExtractionError = ExtractionError


class GenerationError(RuntimeError):
    """Generative-text call failed, was refused, or returned no text."""
