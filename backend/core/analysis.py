"""
Analysis pipeline: input -> classification -> ingredients/flags -> risk -> explanation -> stored record.

Collaborators are injected so the HTTP layer, scripts and tests can swap them:
    store       create / list / get (ScanStore)
    classifier  text -> ClassificationResult, never raises
    explainer   flags -> HTML, never raises
    ocr         OCREngine-like object with extract_text(bytes, filename); raises ExtractionError
"""
import logging
from typing import Callable, List, Optional, Sequence

from core.classification.ai_classifier import classify_ingredients
from core.errors import ExtractionError, InputError
from core.explanation import generate_explanation
from core.models.analysis import AnalysisResult, ClassificationResult, InputType
from core.normalization.normalizer import list_for_display
from core.scan_storage import DEFAULT_LIST_LIMIT, ScanStore

logger = logging.getLogger(__name__)


class AnalysisService:
    def __init__(
        self,
        store: ScanStore,
        classifier: Callable[[str], ClassificationResult] = classify_ingredients,
        explainer: Callable[[Sequence[str]], str] = generate_explanation,
        ocr=None,
    ):
        self.store = store
        self.classifier = classifier
        self.explainer = explainer
        self.ocr = ocr

    def analyze_text(self, text: Optional[str]) -> AnalysisResult:
        """Analyze typed ingredient text. Empty input raises InputError before any external call."""
        raw = (text or "").strip()
        if not raw or not list_for_display(raw):
            raise InputError("ingredientsText is required")
        return self._analyze(raw, InputType.TEXT, raw_input=raw)

    def analyze_image(self, image_bytes: Optional[bytes], filename: str) -> AnalysisResult:
        """OCR the label, then analyze its text. ExtractionError from OCR propagates."""
        if not image_bytes:
            raise InputError("image file is required")
        if self.ocr is None:
            raise RuntimeError("AnalysisService has no OCR engine configured")
        text = self.ocr.extract_text(image_bytes, filename)
        if not list_for_display(text):
            raise ExtractionError("No ingredient text found in image")
        return self._analyze(text, InputType.IMAGE, raw_input=filename)

    def _analyze(self, text: str, input_type: InputType, raw_input: str) -> AnalysisResult:
        classification = self.classifier(text)
        extracted = list(classification.parsed_ingredients) or list_for_display(text)
        flags = list(classification.flags)
        explanation_html = self.explainer(flags)

        record = AnalysisResult(
            input_type=input_type,
            raw_input=raw_input,
            extracted_ingredients=extracted,
            flags=flags,
            explanation_html=explanation_html,
            source=classification.source,
            items=classification.items,
        )
        stored = self.store.create(record)
        logger.info(
            "ANALYSIS done id=%s input_type=%s ingredients=%d flags=%d risk=%s source=%s",
            stored.id, input_type.value, len(stored.extracted_ingredients),
            len(stored.flags), stored.risk_level.value, stored.source.value,
        )
        return stored

    def list_scans(self, limit: int = DEFAULT_LIST_LIMIT) -> List[AnalysisResult]:
        return self.store.list(limit)

    def get_scan(self, scan_id: str) -> Optional[AnalysisResult]:
        return self.store.get(scan_id)
