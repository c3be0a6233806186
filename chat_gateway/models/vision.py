"""Vision endpoint response models."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .openai.response import new_completion_id, unix_now


class OCRResponse(BaseModel):
    """Text recognized in an image."""

    text: str
    confidence: float = Field(ge=0, le=1)
    language: Optional[str] = None


class DetectedObjectSummary(BaseModel):
    label: str
    confidence: float
    description: str


class DetectResponse(BaseModel):
    objects: List[DetectedObjectSummary]


class BoundingBox(BaseModel):
    """Normalized bounding box (0-1 coordinates)."""

    x: float = 0.0
    y: float = 0.0
    width: float = 1.0
    height: float = 1.0


class DetectedObjectInfo(BaseModel):
    label: str
    bounding_box: BoundingBox
    description: str


class VisionAnalysisResult(BaseModel):
    text_content: str
    object_detections: List[DetectedObjectInfo]
    image_description: str
    language: Optional[str] = None


class VisionAnalysisResponse(BaseModel):
    """Full image analysis response."""

    id: str = Field(default_factory=lambda: new_completion_id("vision"))
    object: Literal["vision.analysis"] = "vision.analysis"
    created: int = Field(default_factory=unix_now)
    model: str
    analysis: VisionAnalysisResult
    processing_time: float
