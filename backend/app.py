"""
LabelLens FastAPI application.

Endpoints:
    GET  /                  Health check
    POST /analyze/text      Ingredient text -> classification -> risk -> explanation
    POST /analyze/image     Label photo -> OCR -> same pipeline
    GET  /scans             Recent scans (summaries, newest first)
    GET  /scans/{scan_id}   One stored scan
"""
from fastapi import FastAPI, UploadFile, File, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional
import logging
from dotenv import load_dotenv
from pathlib import Path

# Load env vars
load_dotenv(Path(__file__).parent / ".env")

from core.config import configure_logging, get_allowed_origins, log_config

# Logger
configure_logging()
logger = logging.getLogger(__name__)

# Initialize App
app = FastAPI(title="LabelLens Ingredient Analysis API")
log_config()

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from core.analysis import AnalysisService
from core.errors import ExtractionError, InputError
from core.scan_storage import DEFAULT_LIST_LIMIT, get_scan_store
from ocr_engine import ALLOWED_CONTENT_TYPES, OCREngine, ocr_file_type

analysis_service = AnalysisService(store=get_scan_store(), ocr=OCREngine())


# --- Request Models ---
class AnalyzeTextRequest(BaseModel):
    ingredientsText: Optional[str] = None


# --- Endpoints ---

@app.get("/")
def health_check():
    return {"status": "ok", "service": "LabelLens"}


@app.post("/analyze/text")
def analyze_text(request: AnalyzeTextRequest):
    """Analyze typed ingredient text."""
    logger.info("Analyze text request len=%d", len(request.ingredientsText or ""))
    try:
        result = analysis_service.analyze_text(request.ingredientsText)
        return result.to_dict()
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Analyze text failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to analyze text")


@app.post("/analyze/image")
def analyze_image(image: Optional[UploadFile] = File(None)):
    """OCR a label photo (PNG/JPG/BMP) and analyze the extracted text."""
    if image is None:
        raise HTTPException(status_code=400, detail="image file is required")
    if image.content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail="Invalid file type (PNG/JPG/BMP only).")
    try:
        ocr_file_type(image.filename or "")
    except ExtractionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("Analyze image request filename=%s", image.filename)
    try:
        image_bytes = image.file.read()
        result = analysis_service.analyze_image(image_bytes, image.filename or "")
        return result.to_dict()
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExtractionError as e:
        logger.warning("Analyze image extraction failed filename=%s: %s", image.filename, e)
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error("Analyze image failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to analyze image")


@app.get("/scans")
def list_scans(limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=DEFAULT_LIST_LIMIT)):
    """Recent scans, newest first."""
    return [s.to_summary() for s in analysis_service.list_scans(limit)]


@app.get("/scans/{scan_id}")
def get_scan(scan_id: str):
    scan = analysis_service.get_scan(scan_id)
    if scan is None:
        raise HTTPException(status_code=404, detail="Not found")
    return scan.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
