"""
Centralized configuration read from the environment.
All resolution relative to the backend directory.
"""
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Repo root: backend/core/config.py -> parent=core, parent.parent=backend, parent.parent.parent=repo
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_REPO_ROOT = _BACKEND_DIR.parent


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


# --- Data paths ---
def get_scan_store_path() -> Path:
    custom = os.environ.get("SCAN_STORE_PATH", "").strip()
    if custom:
        return Path(custom)
    return _REPO_ROOT / "data" / "scans.json"


def get_scan_history_max() -> int:
    return int(os.environ.get("SCAN_HISTORY_MAX", "50"))


def get_log_file() -> str:
    return os.environ.get("LOG_FILE", "").strip()


def get_allowed_origins() -> list[str]:
    raw = os.environ.get("ALLOWED_ORIGINS", "*")
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


# --- External APIs (lazy read from env) ---
def get_open_food_facts_enabled() -> bool:
    return _env_flag("OPEN_FOOD_FACTS_ENABLED", "true")


def get_ocr_api_key() -> str:
    return os.environ.get("OCR_API_KEY", "").strip()


def get_ocr_api_url() -> str:
    return os.environ.get("OCR_API_URL", "https://api.ocr.space/parse/image")


# --- Generative text / Gemini ---
def get_gemini_api_key() -> str:
    return os.environ.get("GEMINI_API_KEY", "").strip()


def get_gemini_api_url() -> str:
    return os.environ.get("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta").rstrip("/")


def get_gemini_model() -> str:
    return os.environ.get("GEMINI_MODEL", "gemini-1.5-flash")


# Timeout (seconds) and retry defaults for external calls
AI_TIMEOUT = int(os.environ.get("AI_TIMEOUT", "25"))
AI_RETRIES = int(os.environ.get("AI_RETRIES", "1"))
OFF_TIMEOUT = int(os.environ.get("OFF_TIMEOUT", "12"))
OFF_RETRIES = int(os.environ.get("OFF_RETRIES", "1"))
OCR_TIMEOUT = int(os.environ.get("OCR_TIMEOUT", "25"))


# --- Startup logging ---
def configure_logging(level: int = logging.INFO) -> None:
    """basicConfig for the service, plus a file handler when LOG_FILE is set."""
    logging.basicConfig(level=level)
    log_file = get_log_file()
    if not log_file:
        return
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s"))
    logging.getLogger().addHandler(handler)


def log_config() -> None:
    logger.info(
        "CONFIG: gemini_key=%s gemini_model=%s ocr_key=%s off_enabled=%s "
        "scan_store=%s history_max=%s ai_timeout=%ds ai_retries=%s off_timeout=%ds ocr_timeout=%ds",
        bool(get_gemini_api_key()), get_gemini_model(), bool(get_ocr_api_key()),
        get_open_food_facts_enabled(), get_scan_store_path(), get_scan_history_max(),
        AI_TIMEOUT, AI_RETRIES, OFF_TIMEOUT, OCR_TIMEOUT,
    )
