"""Data models for the OpenAI-compatible API."""

from . import openai, vision
from .common import GenerationOptions, Transcript, TranscriptEntry

__all__ = [
    # Submodules
    "openai",
    "vision",
    # Common
    "GenerationOptions",
    "Transcript",
    "TranscriptEntry",
]
