"""OpenAI-compatible data models."""

from .content import (
    ContentPart,
    ImageData,
    ImageDataContent,
    ImageUrl,
    ImageUrlContent,
    TextContent,
)
from .request import (
    ChatCompletionRequest,
    Message,
    MultimodalChatCompletionRequest,
)
from .response import (
    ChatCompletionResponse,
    ChatCompletionStreamResponse,
    Choice,
    ModelInfo,
    ModelListResponse,
    ResponseMessage,
    ServerStatus,
    StreamChoice,
    new_completion_id,
    unix_now,
)

__all__ = [
    # Content
    "ContentPart",
    "ImageData",
    "ImageDataContent",
    "ImageUrl",
    "ImageUrlContent",
    "TextContent",
    # Request
    "ChatCompletionRequest",
    "Message",
    "MultimodalChatCompletionRequest",
    # Response
    "ChatCompletionResponse",
    "ChatCompletionStreamResponse",
    "Choice",
    "ModelInfo",
    "ModelListResponse",
    "ResponseMessage",
    "ServerStatus",
    "StreamChoice",
    "new_completion_id",
    "unix_now",
]
