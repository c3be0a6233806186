"""Pytest configuration and fixtures for gateway tests."""

import base64
import re
import time
from dataclasses import dataclass
from io import BytesIO
from typing import Dict, Generator, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from chat_gateway.main import app
from chat_gateway.models.common import GenerationOptions, Transcript
from chat_gateway.routes import chat, models, vision
from chat_gateway.services.engine import LanguageModelEngine
from chat_gateway.services.vision import DetectedObject, OCRResult, VisionService, decode_image


DEFAULT_RESPONSE = "Hello there! I am a local model. How can I help you today?"


# -----------------------------------------------------------------------------
# Fake collaborators
# -----------------------------------------------------------------------------


def cumulative_snapshots(text: str) -> List[str]:
    """Word-by-word cumulative snapshots, with one repeated snapshot."""
    tokens = re.findall(r"\S+\s*", text)
    snapshots = []
    current = ""
    for token in tokens:
        current += token
        snapshots.append(current)
    if len(snapshots) > 1:
        # Engines sometimes report the same snapshot twice
        snapshots.insert(1, snapshots[0])
    return snapshots


class FakeEngine(LanguageModelEngine):
    """In-memory engine recording every call."""

    def __init__(
        self,
        response: str = DEFAULT_RESPONSE,
        available: bool = True,
        reason: Optional[str] = None,
        error: Optional[Exception] = None,
        fail_after: Optional[int] = None,
    ):
        self.response = response
        self.available = available
        self.reason = reason
        self.error = error
        self.fail_after = fail_after
        self.calls: List[Tuple[Transcript, str, GenerationOptions]] = []
        self.streams_opened = 0
        self.streams_closed = 0
        self.snapshots_sent = 0

    async def is_available(self):
        return self.available, self.reason

    async def generate(self, transcript, prompt, options):
        self.calls.append((transcript, prompt, options))
        if self.error is not None:
            raise self.error
        return self.response

    async def stream_generate(self, transcript, prompt, options):
        self.calls.append((transcript, prompt, options))
        self.streams_opened += 1
        try:
            for index, snapshot in enumerate(cumulative_snapshots(self.response)):
                if self.error is not None and index == (self.fail_after or 0):
                    raise self.error
                self.snapshots_sent += 1
                yield snapshot
        finally:
            self.streams_closed += 1


class FakeLanguageDetector:
    """Detects a language when a marker substring is present."""

    def __init__(self, markers: Optional[Dict[str, str]] = None, default: Optional[str] = None):
        self.markers = markers or {}
        self.default = default
        self.seen: List[str] = []

    def detect(self, text: str) -> Optional[str]:
        self.seen.append(text)
        for marker, language in self.markers.items():
            if marker in text:
                return language
        return self.default


class FakeVisionService(VisionService):
    """
    Vision service with deterministic OCR and classification.

    Images are really decoded with Pillow; the recognized "text" is the
    image size, and `delays` (keyed by image width) slows OCR so tests can
    check that results are reassembled in order.
    """

    def __init__(
        self,
        objects: Optional[List[DetectedObject]] = None,
        delays: Optional[Dict[int, float]] = None,
        language: Optional[str] = "en",
    ):
        super().__init__(classifier_model=None, min_confidence=0.1)
        self.objects = objects or []
        self.delays = delays or {}
        self.language = language
        self.analyzed: List[Tuple[int, int]] = []

    def _ocr(self, data: bytes) -> OCRResult:
        image = decode_image(data)
        width, height = image.size
        time.sleep(self.delays.get(width, 0))
        self.analyzed.append((width, height))
        return OCRResult(text=f"Image {width}x{height}", confidence=0.87, language=self.language)

    def _classify(self, data: bytes) -> List[DetectedObject]:
        decode_image(data)
        return [o for o in self.objects if o.confidence > self.min_confidence]


# -----------------------------------------------------------------------------
# Image helpers
# -----------------------------------------------------------------------------


def make_image(fmt: str = "PNG", size: Tuple[int, int] = (8, 8), color: str = "red") -> bytes:
    """Encode a solid-color image."""
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def image_b64(fmt: str = "PNG", size: Tuple[int, int] = (8, 8), color: str = "red") -> str:
    return base64.b64encode(make_image(fmt, size, color)).decode()


def data_url(fmt: str = "PNG", size: Tuple[int, int] = (8, 8), color: str = "red") -> str:
    return f"data:image/{fmt.lower()};base64,{image_b64(fmt, size, color)}"


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@dataclass
class Services:
    engine: FakeEngine
    vision: FakeVisionService
    detector: FakeLanguageDetector


def install_services(services: Services) -> Services:
    """Point every router at the given collaborators."""
    chat.init_services(services.engine, services.vision, services.detector)
    models.init_engine(services.engine)
    vision.init_vision_service(services.vision)
    return services


@pytest.fixture(scope="module")
def client() -> Generator[TestClient, None, None]:
    """Create synchronous test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def services(client: TestClient) -> Services:
    """Fresh fake collaborators, installed after application startup."""
    return install_services(
        Services(
            engine=FakeEngine(),
            vision=FakeVisionService(),
            detector=FakeLanguageDetector(markers={"Bonjour": "fr", "Привет": "ru"}),
        )
    )


@pytest.fixture
def simple_chat_request() -> dict:
    """Simple chat completion request."""
    return {"messages": [{"role": "user", "content": "Hello"}]}


@pytest.fixture
def streaming_chat_request() -> dict:
    """Streaming chat completion request."""
    return {"messages": [{"role": "user", "content": "Hello"}], "stream": True}


@pytest.fixture
def conversation_messages() -> list:
    """Multi-turn conversation messages."""
    return [
        {"role": "system", "content": "You are terse."},
        {"role": "user", "content": "My name is TestUser"},
        {"role": "assistant", "content": "Hello TestUser!"},
        {"role": "user", "content": "What is my name?"},
    ]


def parse_sse(body: str) -> List[str]:
    """Split an SSE body into `data:` payloads."""
    return [frame[len("data: "):] for frame in body.split("\n\n") if frame.startswith("data: ")]
