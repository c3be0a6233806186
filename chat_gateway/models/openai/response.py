"""OpenAI chat completion response models."""

import time
import uuid
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


def new_completion_id(prefix: str = "afmd") -> str:
    """Unique response id of the form `<prefix>-<uuid>`."""
    return f"{prefix}-{uuid.uuid4()}"


def unix_now() -> int:
    return int(time.time())


class ResponseMessage(BaseModel):
    """Response message in choice."""

    role: Literal["assistant"] = "assistant"
    content: str


class Choice(BaseModel):
    """Non-streaming response choice."""

    index: int = 0
    message: ResponseMessage
    finish_reason: Literal["stop", "length"] = "stop"


class ChatCompletionResponse(BaseModel):
    """OpenAI-compatible chat completion response."""

    id: str = Field(default_factory=new_completion_id)
    object: Literal["chat.completion"] = "chat.completion"
    created: int = Field(default_factory=unix_now)
    model: str
    choices: List[Choice]


class StreamChoice(BaseModel):
    """Streaming response choice.

    `delta` only carries the keys that are present for this chunk, so an
    absent role or content is omitted rather than serialized as null.
    """

    index: int = 0
    delta: Dict[str, Any]
    finish_reason: Optional[str] = None


class ChatCompletionStreamResponse(BaseModel):
    """OpenAI-compatible streaming chat completion chunk."""

    id: str
    object: Literal["chat.completion.chunk"] = "chat.completion.chunk"
    created: int
    model: str
    choices: List[StreamChoice]


class ModelInfo(BaseModel):
    """Model information."""

    id: str
    object: Literal["model"] = "model"
    created: int = Field(default_factory=unix_now)
    owned_by: str


class ModelListResponse(BaseModel):
    """Model list response."""

    object: Literal["list"] = "list"
    data: List[ModelInfo]


class ServerStatus(BaseModel):
    """Engine availability and server metadata."""

    model_available: bool
    reason: str
    supported_languages: List[str]
    server_version: str
    apple_intelligence_compatible: bool = True
