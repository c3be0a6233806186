"""Binary image analysis routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Request

from ..config import settings
from ..errors import InvalidRequestError, ServiceUnavailableError, UnsupportedMediaTypeError
from ..models.vision import (
    BoundingBox,
    DetectedObjectInfo,
    DetectedObjectSummary,
    DetectResponse,
    OCRResponse,
    VisionAnalysisResponse,
    VisionAnalysisResult,
)
from ..services.vision import InvalidImageError, VisionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vision", tags=["Vision"])

# Global vision service (will be set by main.py)
vision_service: Optional[VisionService] = None

BINARY_CONTENT_TYPE = "application/octet-stream"


def init_vision_service(service: VisionService) -> None:
    """Initialize vision service instance."""
    global vision_service
    vision_service = service


async def _read_image(req: Request) -> bytes:
    """Read the raw image body, enforcing the binary content type."""
    if not vision_service:
        raise ServiceUnavailableError("Vision service not initialized")

    content_type = req.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type != BINARY_CONTENT_TYPE:
        raise UnsupportedMediaTypeError(
            f"Content-Type must be {BINARY_CONTENT_TYPE}, got '{content_type or 'none'}'"
        )

    data = await req.body()
    if not data:
        raise InvalidRequestError("Invalid image data provided", code="invalid_image")
    return data


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


@router.post("/ocr", response_model=OCRResponse)
async def ocr(req: Request):
    """Extract text from raw image bytes."""
    data = await _read_image(req)
    try:
        result = await vision_service.extract_text(data)
    except InvalidImageError as e:
        raise InvalidRequestError(str(e), code="invalid_image") from e

    logger.debug(f"OCR extracted {len(result.text)} characters")
    return OCRResponse(
        text=result.text,
        confidence=_clamp(result.confidence),
        language=result.language,
    )


@router.post("/detect", response_model=DetectResponse)
async def detect(req: Request):
    """Classify objects in raw image bytes."""
    data = await _read_image(req)
    try:
        objects = await vision_service.detect_objects(data)
    except InvalidImageError as e:
        raise InvalidRequestError(str(e), code="invalid_image") from e

    return DetectResponse(
        objects=[
            DetectedObjectSummary(
                label=obj.label,
                confidence=_clamp(obj.confidence),
                description=obj.description,
            )
            for obj in objects
        ]
    )


@router.post("/analyze", response_model=VisionAnalysisResponse)
async def analyze(req: Request):
    """Full analysis: OCR, classification and a summary description."""
    data = await _read_image(req)
    try:
        analysis = await vision_service.analyze_image(data)
    except InvalidImageError as e:
        raise InvalidRequestError(str(e), code="invalid_image") from e

    detections = []
    for obj in analysis.object_detections:
        x, y, width, height = obj.bounding_box
        detections.append(
            DetectedObjectInfo(
                label=obj.label,
                bounding_box=BoundingBox(x=x, y=y, width=width, height=height),
                description=obj.description,
            )
        )

    return VisionAnalysisResponse(
        model=settings.MODEL_NAME,
        analysis=VisionAnalysisResult(
            text_content=analysis.text_content,
            object_detections=detections,
            image_description=analysis.image_description,
            language=analysis.language,
        ),
        processing_time=analysis.processing_time,
    )
