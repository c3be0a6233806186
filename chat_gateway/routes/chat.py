"""Chat completion routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from ..adapters.openai_adapter import OpenAIAdapter
from ..config import settings
from ..errors import InvalidRequestError, ServiceUnavailableError
from ..models.openai import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    Choice,
    MultimodalChatCompletionRequest,
    ResponseMessage,
    new_completion_id,
    unix_now,
)
from ..services.engine import LanguageModelEngine
from ..services.generation import GenerationController
from ..services.language import LanguageDetector, LanguageGate
from ..services.streaming import StreamDeltaEncoder, encode_sse_stream
from ..services.vision import VisionService
from ..utils.debug_logger import log_incoming_request, log_outgoing_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])

# Global service instances (will be set by main.py)
controller: Optional[GenerationController] = None
language_gate: Optional[LanguageGate] = None
adapter: Optional[OpenAIAdapter] = None

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
    "X-Accel-Buffering": "no",
}


def init_services(
    engine: LanguageModelEngine,
    vision: VisionService,
    detector: LanguageDetector,
) -> None:
    """Initialize service instances."""
    global controller, language_gate, adapter
    language_gate = LanguageGate(detector)
    controller = GenerationController(engine, language_gate)
    adapter = OpenAIAdapter(vision)


async def _handle_completion(
    request: ChatCompletionRequest,
    req: Request,
    vision_analysis: bool,
):
    """
    Shared pipeline for both chat endpoints.

    Everything that can fail before generation (empty history, engine
    availability, language, image decoding) raises here, so streaming
    requests get a plain JSON error instead of a partial stream.
    """
    if not controller or not language_gate or not adapter:
        raise ServiceUnavailableError("Services not initialized")

    request_id = new_completion_id("afm" if request.stream else "afmd")
    log_incoming_request(
        request_id=request_id,
        path=req.url.path,
        message_count=len(request.messages),
        stream=bool(request.stream),
        model=request.model,
        body=request.model_dump(exclude_none=True),
    )

    if not request.messages:
        raise InvalidRequestError("No messages provided", code="empty_messages")

    await controller.ensure_available()
    await language_gate.validate_messages(request.messages)

    messages = request.messages
    if any(message.has_images for message in messages):
        messages = await adapter.process_messages(messages, vision_analysis, request_id)
        await language_gate.validate_messages([m for m in messages if m.parts])

    prepared = await controller.prepare(messages)
    options = request.generation_options()

    logger.debug(
        f"Request {request_id}: stream={request.stream}, model={request.model}, "
        f"history={len(prepared.transcript)}"
    )

    if request.stream:
        encoder = StreamDeltaEncoder(
            completion_id=request_id,
            created=unix_now(),
            model=settings.MODEL_NAME,
        )
        return StreamingResponse(
            encode_sse_stream(controller.stream(prepared, options), encoder, request_id),
            media_type="text/event-stream",
            headers=STREAM_HEADERS,
        )

    content = await controller.complete(prepared, options)
    response = ChatCompletionResponse(
        id=request_id,
        model=request.model or settings.MODEL_NAME,
        choices=[Choice(message=ResponseMessage(content=content), finish_reason="stop")],
    )
    log_outgoing_response(request_id, 200, content)
    return response


@router.post("/chat/completions", response_model=ChatCompletionResponse)
async def chat_completions(request: ChatCompletionRequest, req: Request):
    """
    OpenAI-compatible chat completions endpoint.

    Only `temperature` and `max_tokens` are forwarded to the engine. Image
    parts are analyzed when VISION_ANALYSIS_DEFAULT is enabled.
    """
    return await _handle_completion(request, req, settings.VISION_ANALYSIS_DEFAULT)


@router.post("/chat/completions/multimodal", response_model=ChatCompletionResponse)
async def multimodal_chat_completions(request: MultimodalChatCompletionRequest, req: Request):
    """
    Chat completions with explicit control over vision preprocessing.

    `vision_analysis: false` replaces images with a short reference
    instead of an OCR/classification summary.
    """
    vision_analysis = request.vision_analysis if request.vision_analysis is not None else True
    return await _handle_completion(request, req, vision_analysis)
