"""OpenAI format adapter - turns image-bearing messages into engine text."""

import asyncio
import logging
from typing import List, Optional, Sequence

from ..errors import InvalidRequestError
from ..models.openai import (
    ContentPart,
    ImageData,
    ImageDataContent,
    ImageUrlContent,
    Message,
    TextContent,
)
from ..services.vision import ImageAnalysis, InvalidImageError, VisionService
from ..utils.debug_logger import log_vision_processed
from .base import decode_base64_image, format_for_mime, is_image_data_url, parse_data_url

logger = logging.getLogger(__name__)

VISION_INTRO = "User uploaded an image with the following analysis:"
VISION_OUTRO = "Please analyze this image and respond to the user's question about it."


def render_image_analysis(analysis: ImageAnalysis) -> str:
    """Render a vision analysis as the context paragraph given to the engine."""
    sections = [VISION_INTRO]
    if analysis.text_content:
        sections.append(f'Text content found: "{analysis.text_content}"')
    if analysis.object_detections:
        labels = ", ".join(
            f"{obj.label} ({int(obj.confidence * 100)}%)" for obj in analysis.object_detections
        )
        sections.append(f"Objects detected: {labels}")
    sections.append(f"Overall analysis confidence: {int(analysis.confidence * 100)}%")
    sections.append(VISION_OUTRO)
    return "\n\n".join(sections)


class OpenAIAdapter:
    """
    Adapter for converting multimodal OpenAI messages to engine text.

    The engine is text-only, so every image part is replaced by a vision
    analysis paragraph (or a short reference when analysis is disabled).
    Parts within a message and messages within a request are processed
    concurrently and reassembled in their original order.
    """

    def __init__(self, vision: VisionService):
        self.vision = vision

    async def describe_image(self, data: bytes, image_format: str, vision_analysis: bool) -> str:
        """Text stand-in for decoded image bytes."""
        try:
            if vision_analysis:
                analysis = await self.vision.analyze_image(data)
                return render_image_analysis(analysis)
            await self.vision.validate_image(data)
        except InvalidImageError as e:
            raise InvalidRequestError(str(e), code="invalid_image") from e

        return f"[Image: {image_format.upper()} format, {len(data)} bytes]"

    async def process_image_url(self, part: ImageUrlContent, vision_analysis: bool) -> str:
        """Process image_url content block."""
        url = part.image_url.url

        if is_image_data_url(url):
            mime_type, payload = parse_data_url(url)
            data = decode_base64_image(payload)
            return await self.describe_image(data, format_for_mime(mime_type), vision_analysis)

        # Remote images are not fetched
        if url.startswith("data:"):
            return f"[Image URL: {url[:50]}...]"
        return f"[Image URL: {url}]"

    async def process_image_data(self, image_data: ImageData, vision_analysis: bool) -> str:
        """Process inline image_data content block."""
        data = decode_base64_image(image_data.data)
        return await self.describe_image(data, image_data.format, vision_analysis)

    async def process_content_block(self, part: ContentPart, vision_analysis: bool) -> Optional[str]:
        """Process a content block and return its text representation."""
        if isinstance(part, TextContent):
            return part.text
        if isinstance(part, ImageUrlContent):
            return await self.process_image_url(part, vision_analysis)
        if isinstance(part, ImageDataContent):
            return await self.process_image_data(part.image_data, vision_analysis)
        return None

    async def process_message(
        self,
        message: Message,
        vision_analysis: bool = True,
        request_id: Optional[str] = None,
        index: int = 0,
    ) -> Message:
        """Replace a message's content with its text and image descriptions."""
        if not message.has_images:
            return message

        outputs = await asyncio.gather(
            *(self.process_content_block(part, vision_analysis) for part in message.parts)
        )
        content = "\n\n".join(text for text in outputs if text)

        image_count = sum(1 for part in message.parts if not isinstance(part, TextContent))
        logger.debug(f"Processed {image_count} image(s) in message {index}: {content[:200]!r}")
        log_vision_processed(
            request_id=request_id or "",
            message_index=index,
            image_count=image_count,
            analyzed=vision_analysis,
        )

        return message.model_copy(update={"content": content})

    async def process_messages(
        self,
        messages: Sequence[Message],
        vision_analysis: bool = True,
        request_id: Optional[str] = None,
    ) -> List[Message]:
        """Process every message; the result keeps the input order."""
        return list(
            await asyncio.gather(
                *(
                    self.process_message(message, vision_analysis, request_id, index)
                    for index, message in enumerate(messages)
                )
            )
        )
