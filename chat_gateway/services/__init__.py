"""Services for the chat gateway."""

from .engine import (
    EngineError,
    EngineUnavailableError,
    LanguageModelEngine,
    OllamaEngine,
    UnsupportedLanguageError,
)
from .generation import GenerationController, GenerationSession, PreparedGeneration
from .language import LanguageDetector, LanguageGate
from .streaming import StreamDeltaEncoder, StreamState, encode_sse_stream
from .transcript import build_transcript, split_history
from .vision import InvalidImageError, VisionError, VisionService

__all__ = [
    "EngineError",
    "EngineUnavailableError",
    "GenerationController",
    "GenerationSession",
    "InvalidImageError",
    "LanguageDetector",
    "LanguageGate",
    "LanguageModelEngine",
    "OllamaEngine",
    "PreparedGeneration",
    "StreamDeltaEncoder",
    "StreamState",
    "UnsupportedLanguageError",
    "VisionError",
    "VisionService",
    "build_transcript",
    "encode_sse_stream",
    "split_history",
]
