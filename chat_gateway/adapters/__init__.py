"""Adapters for format conversion."""

from .base import decode_base64_image, format_for_mime, is_image_data_url, parse_data_url
from .openai_adapter import OpenAIAdapter, render_image_analysis

__all__ = [
    "OpenAIAdapter",
    "decode_base64_image",
    "format_for_mime",
    "is_image_data_url",
    "parse_data_url",
    "render_image_analysis",
]
