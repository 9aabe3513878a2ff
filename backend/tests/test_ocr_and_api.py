"""
OCR client (mocked HTTP) and FastAPI routes (TestClient, pipeline collaborators stubbed).
Run from repo root: python -m pytest backend/tests/test_ocr_and_api.py -v
"""
from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi.testclient import TestClient

from core.analysis import AnalysisService
from core.errors import ExtractionError
from core.models.analysis import ClassificationResult, FlagSource
from core.scan_storage import ScanStore


# --- OCR engine ---

def test_ocr_file_type_mapping():
    from ocr_engine import ocr_file_type
    assert ocr_file_type("label.JPG") == "jpeg"
    assert ocr_file_type("label.png") == "png"
    assert ocr_file_type("noext") == "png"
    with pytest.raises(ExtractionError):
        ocr_file_type("label.gif")


@patch("ocr_engine.fetch_json_with_retries")
def test_ocr_extract_text_success(mock_fetch):
    from ocr_engine import OCREngine
    mock_fetch.return_value = {"ParsedResults": [{"ParsedText": "Ingredients: Sugar, Salt\r\n"}]}
    text = OCREngine(api_key="ocr-key").extract_text(b"bytes", "label.jpg")
    assert text == "Ingredients: Sugar, Salt"
    kwargs = mock_fetch.call_args.kwargs
    assert kwargs["method"] == "POST"
    assert kwargs["data"] == {"apikey": "ocr-key", "language": "eng", "filetype": "jpeg"}
    assert kwargs["files"]["file"] == ("label.jpg", b"bytes")


@pytest.mark.parametrize("payload", [
    {"ParsedResults": [{"ParsedText": "   "}]},
    {"ParsedResults": []},
    {"IsErroredOnProcessing": True, "ErrorMessage": ["Unable to recognize the file type"]},
    ["unexpected"],
])
def test_ocr_no_usable_text_raises(payload):
    from ocr_engine import OCREngine
    with patch("ocr_engine.fetch_json_with_retries", return_value=payload):
        with pytest.raises(ExtractionError):
            OCREngine(api_key="k").extract_text(b"bytes", "label.png")


@patch("ocr_engine.fetch_json_with_retries", side_effect=requests.HTTPError("403"))
def test_ocr_http_failure_raises_extraction_error(mock_fetch):
    from ocr_engine import OCREngine
    with pytest.raises(ExtractionError):
        OCREngine(api_key="k").extract_text(b"bytes", "label.png")


# --- HTTP API ---

@pytest.fixture
def client(monkeypatch):
    import app as app_module
    ocr = MagicMock()
    ocr.extract_text.return_value = "Ingredients: water, lead"
    service = AnalysisService(
        store=ScanStore(path=None, max_entries=50),
        classifier=lambda text: ClassificationResult(
            parsed_ingredients=("water", "lead"),
            items=(),
            flags=("lead",),
            source=FlagSource.AI,
        ),
        explainer=lambda flags: "<p>explained</p>",
        ocr=ocr,
    )
    monkeypatch.setattr(app_module, "analysis_service", service)
    return TestClient(app_module.app)


def test_health(client):
    assert client.get("/").json()["status"] == "ok"


def test_analyze_text_returns_record(client):
    resp = client.post("/analyze/text", json={"ingredientsText": "water, lead"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["inputType"] == "text"
    assert body["extractedIngredients"] == ["water", "lead"]
    assert body["flags"] == ["lead"]
    assert body["riskLevel"] == "medium"
    assert body["explanationHtml"] == "<p>explained</p>"
    assert body["source"] == "ai"
    assert body["id"] and body["createdAt"]


@pytest.mark.parametrize("payload", [{}, {"ingredientsText": "   "}])
def test_analyze_text_empty_is_400(client, payload):
    resp = client.post("/analyze/text", json=payload)
    assert resp.status_code == 400
    assert "ingredientsText" in resp.json()["detail"]


def test_analyze_image(client):
    resp = client.post("/analyze/image", files={"image": ("label.png", b"\x89PNG", "image/png")})
    assert resp.status_code == 200
    body = resp.json()
    assert body["inputType"] == "image"
    assert body["rawInput"] == "label.png"


def test_analyze_image_rejects_bad_type_and_missing_file(client):
    resp = client.post("/analyze/image", files={"image": ("label.gif", b"GIF89a", "image/gif")})
    assert resp.status_code == 400
    assert client.post("/analyze/image").status_code == 400


def test_analyze_image_rejects_extension_mismatch(client):
    import app as app_module
    resp = client.post("/analyze/image", files={"image": ("label.gif", b"GIF89a", "image/png")})
    assert resp.status_code == 400
    assert ".gif" in resp.json()["detail"]
    app_module.analysis_service.ocr.extract_text.assert_not_called()


def test_analyze_image_extraction_error_is_422(client):
    import app as app_module
    app_module.analysis_service.ocr.extract_text.side_effect = ExtractionError("No text found by OCR")
    resp = client.post("/analyze/image", files={"image": ("label.jpg", b"jpg", "image/jpeg")})
    assert resp.status_code == 422


def test_scan_history_and_detail(client):
    first = client.post("/analyze/text", json={"ingredientsText": "a"}).json()
    second = client.post("/analyze/text", json={"ingredientsText": "b"}).json()
    listing = client.get("/scans").json()
    assert [s["id"] for s in listing] == [second["id"], first["id"]]
    assert listing[0]["extractedIngredientsCount"] == 2
    assert client.get("/scans", params={"limit": 1}).json()[0]["id"] == second["id"]
    assert client.get(f"/scans/{first['id']}").json()["rawInput"] == "a"
    assert client.get("/scans/does-not-exist").status_code == 404
