"""
OCR.space client for photographed ingredient labels.
"""
import logging
from pathlib import PurePath

import requests

from core.config import OCR_TIMEOUT, get_ocr_api_key, get_ocr_api_url
from core.errors import ExtractionError
from core.external_apis.http_retry import fetch_json_with_retries

logger = logging.getLogger(__name__)

# extension -> filetype parameter accepted by OCR.space
ALLOWED_FILE_TYPES = {"png": "png", "jpg": "jpeg", "jpeg": "jpeg", "bmp": "bmp"}
ALLOWED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/bmp"}


def ocr_file_type(filename: str) -> str:
    ext = PurePath(filename or "").suffix.lower().lstrip(".")
    if not ext:
        return "png"
    if ext not in ALLOWED_FILE_TYPES:
        raise ExtractionError(f"Unsupported file type: .{ext} (PNG/JPG/BMP only)")
    return ALLOWED_FILE_TYPES[ext]


class OCREngine:
    def __init__(self, api_key: str = "", timeout: int = OCR_TIMEOUT, retries: int = 0):
        self.api_key = api_key or get_ocr_api_key()
        self.timeout = timeout
        self.retries = retries

    def extract_text(self, image_bytes: bytes, filename: str) -> str:
        """
        Extracts text from image bytes. Raises ExtractionError when the service
        fails or finds no text.
        """
        filetype = ocr_file_type(filename)
        logger.info("OCR request filename=%s filetype=%s bytes=%d", filename, filetype, len(image_bytes))
        try:
            payload = fetch_json_with_retries(
                get_ocr_api_url(),
                method="POST",
                data={"apikey": self.api_key, "language": "eng", "filetype": filetype},
                files={"file": (filename or f"label.{filetype}", image_bytes)},
                timeout=self.timeout,
                retries=self.retries,
            )
        except (requests.RequestException, ValueError) as e:
            logger.error("OCR failed filename=%s error=%s", filename, type(e).__name__)
            raise ExtractionError(f"OCR request failed: {type(e).__name__}") from e

        if not isinstance(payload, dict):
            raise ExtractionError("OCR returned an unexpected response")
        if payload.get("IsErroredOnProcessing"):
            message = payload.get("ErrorMessage") or "processing error"
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
            logger.error("OCR processing error filename=%s message=%s", filename, message)
            raise ExtractionError(f"OCR failed: {message}")

        results = payload.get("ParsedResults") or []
        text = ""
        if results and isinstance(results[0], dict):
            text = (results[0].get("ParsedText") or "").strip()
        if not text:
            raise ExtractionError("No text found by OCR")
        logger.info("OCR OK filename=%s len=%d", filename, len(text))
        return text
