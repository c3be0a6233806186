"""Vision analysis: image decoding, OCR and object classification."""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, List, Optional, Tuple

import pytesseract
from PIL import Image, UnidentifiedImageError

from ..config import settings

logger = logging.getLogger(__name__)


class VisionError(Exception):
    """Vision processing failed."""


class InvalidImageError(VisionError):
    """The bytes are not a decodable image."""


@dataclass
class OCRResult:
    text: str
    confidence: float
    language: Optional[str] = None


@dataclass
class DetectedObject:
    label: str
    confidence: float
    description: str
    # Normalized (x, y, width, height); classification covers the whole image
    bounding_box: Tuple[float, float, float, float] = (0.0, 0.0, 1.0, 1.0)


@dataclass
class ImageAnalysis:
    text_content: str
    object_detections: List[DetectedObject] = field(default_factory=list)
    image_description: str = ""
    confidence: float = 0.0
    processing_time: float = 0.0
    language: Optional[str] = None


def decode_image(data: bytes) -> Image.Image:
    """Decode image bytes, raising InvalidImageError for unknown containers."""
    if not data:
        raise InvalidImageError("Invalid image data provided")
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise InvalidImageError("Invalid image format") from e
    return image


def describe_analysis(text: str, objects: List[DetectedObject], confidence: float) -> str:
    """Short human-readable summary of an analysis."""
    description = "Image analysis completed. "
    if text:
        preview = text[:100] + ("..." if len(text) > 100 else "")
        description += f'Contains text: "{preview}". '
    if objects:
        description += f"Objects detected: {', '.join(o.label for o in objects)}. "
    description += f"Analysis confidence: {int(confidence * 100)}%."
    return description


class VisionService:
    """OCR via tesseract, optional classification via a transformers pipeline."""

    def __init__(
        self,
        language_detector: Optional[Any] = None,
        classifier_model: Optional[str] = None,
        ocr_lang: Optional[str] = None,
        ocr_config: Optional[str] = None,
        min_confidence: Optional[float] = None,
    ):
        self.language_detector = language_detector
        self.classifier_model = classifier_model or settings.VISION_CLASSIFIER_MODEL
        self.ocr_lang = ocr_lang or settings.OCR_LANG
        self.ocr_config = ocr_config if ocr_config is not None else settings.OCR_CONFIG
        self.min_confidence = (
            settings.VISION_MIN_CONFIDENCE if min_confidence is None else min_confidence
        )
        self._classifier = None
        self._classifier_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Blocking workers (run in threads)
    # -------------------------------------------------------------------------

    def _ocr(self, data: bytes) -> OCRResult:
        image = decode_image(data).convert("RGB")
        try:
            result = pytesseract.image_to_data(
                image,
                lang=self.ocr_lang,
                config=self.ocr_config,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise VisionError("Tesseract OCR engine is not installed") from e
        except pytesseract.TesseractError as e:
            raise VisionError(f"OCR failed: {e}") from e

        words: List[str] = []
        confidences: List[float] = []
        for word, conf in zip(result.get("text", []), result.get("conf", [])):
            word = (word or "").strip()
            conf = float(conf)
            if word and conf >= 0:
                words.append(word)
                confidences.append(conf / 100)

        text = " ".join(words)
        confidence = sum(confidences) / len(confidences) if confidences else 0.0
        language = None
        if text and self.language_detector is not None:
            language = self.language_detector.detect(text)

        return OCRResult(text=text, confidence=min(max(confidence, 0.0), 1.0), language=language)

    def _get_classifier(self):
        with self._classifier_lock:
            if self._classifier is None:
                try:
                    # Optional dependency, see the `classify` extra
                    from transformers import pipeline
                except ImportError as e:
                    raise VisionError(
                        "transformers is required for object detection. "
                        "Install with: pip install 'chat-gateway[classify]'"
                    ) from e
                logger.info(f"Loading image classifier: {self.classifier_model}")
                self._classifier = pipeline("image-classification", model=self.classifier_model)
            return self._classifier

    def _classify(self, data: bytes) -> List[DetectedObject]:
        image = decode_image(data).convert("RGB")
        if not self.classifier_model:
            return []

        predictions = self._get_classifier()(image)
        objects = []
        for prediction in predictions:
            confidence = float(prediction["score"])
            if confidence <= self.min_confidence:
                continue
            label = prediction["label"]
            objects.append(
                DetectedObject(
                    label=label,
                    confidence=confidence,
                    description=f"{label} with {int(confidence * 100)}% confidence",
                )
            )
        return objects

    # -------------------------------------------------------------------------
    # Async API
    # -------------------------------------------------------------------------

    async def validate_image(self, data: bytes) -> str:
        """Check that `data` decodes; return the container format name."""
        image = await asyncio.to_thread(decode_image, data)
        return (image.format or "unknown").lower()

    async def extract_text(self, data: bytes) -> OCRResult:
        return await asyncio.to_thread(self._ocr, data)

    async def detect_objects(self, data: bytes) -> List[DetectedObject]:
        return await asyncio.to_thread(self._classify, data)

    async def analyze_image(self, data: bytes) -> ImageAnalysis:
        """Run OCR and classification concurrently and summarize."""
        start = time.monotonic()
        await self.validate_image(data)

        ocr, objects = await asyncio.gather(self.extract_text(data), self.detect_objects(data))

        return ImageAnalysis(
            text_content=ocr.text,
            object_detections=objects,
            image_description=describe_analysis(ocr.text, objects, ocr.confidence),
            confidence=ocr.confidence,
            processing_time=time.monotonic() - start,
            language=ocr.language,
        )
