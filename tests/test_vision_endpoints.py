"""Tests for the binary vision endpoints."""

import shutil

import pytest
from fastapi.testclient import TestClient

from conftest import FakeVisionService, Services, make_image
from chat_gateway.config import settings
from chat_gateway.services.vision import DetectedObject, OCRResult, VisionService

OCTET_STREAM = {"Content-Type": "application/octet-stream"}


class TestVisionContentType:
    """Binary endpoints only accept application/octet-stream."""

    @pytest.mark.parametrize("endpoint", ["ocr", "detect", "analyze"])
    def test_json_content_type_rejected(self, client: TestClient, services: Services, endpoint: str):
        response = client.post(
            f"/v1/vision/{endpoint}",
            headers={"Content-Type": "application/json"},
            content=b"{}",
        )
        assert response.status_code == 415

        error = response.json()["error"]
        assert error["type"] == "invalid_request_error"
        assert "application/octet-stream" in error["message"]

    def test_missing_content_type_rejected(self, client: TestClient, services: Services):
        response = client.post("/v1/vision/ocr", content=make_image())
        assert response.status_code == 415


class TestVisionErrors:
    """Test invalid image bodies."""

    @pytest.mark.parametrize("endpoint", ["ocr", "detect", "analyze"])
    def test_empty_body(self, client: TestClient, services: Services, endpoint: str):
        response = client.post(f"/v1/vision/{endpoint}", headers=OCTET_STREAM, content=b"")
        assert response.status_code == 400
        assert response.json()["error"]["type"] == "invalid_request_error"

    @pytest.mark.parametrize("endpoint", ["ocr", "detect", "analyze"])
    def test_not_an_image(self, client: TestClient, services: Services, endpoint: str):
        response = client.post(
            f"/v1/vision/{endpoint}", headers=OCTET_STREAM, content=b"plain text bytes"
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_image"


class TestVisionEndpoints:
    """Test successful analysis."""

    def test_ocr_jpeg(self, client: TestClient, services: Services):
        """A valid JPEG yields text, confidence in [0, 1] and a language."""
        response = client.post(
            "/v1/vision/ocr", headers=OCTET_STREAM, content=make_image("JPEG", (16, 9))
        )
        assert response.status_code == 200

        data = response.json()
        assert data["text"] == "Image 16x9"
        assert 0 <= data["confidence"] <= 1
        assert data["language"] == "en"

    def test_ocr_content_type_with_parameters(self, client: TestClient, services: Services):
        response = client.post(
            "/v1/vision/ocr",
            headers={"Content-Type": "application/octet-stream; charset=binary"},
            content=make_image(),
        )
        assert response.status_code == 200

    def test_detect(self, client: TestClient, services: Services):
        services.vision.objects = [
            DetectedObject(label="dog", confidence=0.8, description="dog with 80% confidence"),
        ]

        response = client.post("/v1/vision/detect", headers=OCTET_STREAM, content=make_image())
        assert response.status_code == 200
        assert response.json() == {
            "objects": [
                {"label": "dog", "confidence": 0.8, "description": "dog with 80% confidence"}
            ]
        }

    def test_detect_nothing(self, client: TestClient, services: Services):
        response = client.post("/v1/vision/detect", headers=OCTET_STREAM, content=make_image())
        assert response.json() == {"objects": []}

    def test_analyze(self, client: TestClient, services: Services):
        services.vision.objects = [
            DetectedObject(label="tree", confidence=0.6, description="tree with 60% confidence"),
        ]

        response = client.post(
            "/v1/vision/analyze", headers=OCTET_STREAM, content=make_image("PNG", (12, 12))
        )
        assert response.status_code == 200

        data = response.json()
        assert data["object"] == "vision.analysis"
        assert data["model"] == settings.MODEL_NAME
        assert isinstance(data["created"], int)
        assert data["processing_time"] >= 0

        analysis = data["analysis"]
        assert analysis["text_content"] == "Image 12x12"
        assert analysis["language"] == "en"
        assert "Image analysis completed." in analysis["image_description"]
        assert analysis["object_detections"] == [
            {
                "label": "tree",
                "bounding_box": {"x": 0.0, "y": 0.0, "width": 1.0, "height": 1.0},
                "description": "tree with 60% confidence",
            }
        ]


class TextlessVisionService(FakeVisionService):
    def _ocr(self, data: bytes) -> OCRResult:
        return OCRResult(text="", confidence=0.3, language=None)


class TestAnalysisConfidence:
    """Overall confidence is the text-recognition confidence."""

    async def test_objects_do_not_raise_confidence(self):
        service = TextlessVisionService(
            objects=[DetectedObject(label="cat", confidence=0.95, description="cat")]
        )
        analysis = await service.analyze_image(make_image())

        assert analysis.text_content == ""
        assert [o.label for o in analysis.object_detections] == ["cat"]
        assert analysis.confidence == 0.3
        assert "Analysis confidence: 30%." in analysis.image_description

    async def test_confidence_with_text(self):
        analysis = await FakeVisionService().analyze_image(make_image())
        assert analysis.confidence == 0.87


@pytest.mark.integration
@pytest.mark.skipif(shutil.which("tesseract") is None, reason="tesseract not installed")
class TestTesseractBackend:
    """Real OCR backend, when tesseract is available."""

    async def test_blank_image(self):
        service = VisionService(min_confidence=0.1)
        result = await service.extract_text(make_image("PNG", (64, 64), "white"))
        assert result.text == ""
        assert 0 <= result.confidence <= 1

    async def test_analyze_without_classifier(self):
        service = VisionService(min_confidence=0.1)
        service.classifier_model = None
        analysis = await service.analyze_image(make_image("JPEG", (64, 64), "white"))
        assert analysis.object_detections == []
        assert analysis.confidence == 0.0
