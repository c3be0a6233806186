"""OpenAI chat completion request models."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..common import GenerationOptions
from .content import ContentPart


class Message(BaseModel):
    """
    Chat message with flattened text content.

    `content` arrives either as a plain string or as an array of typed
    parts. For arrays, `content` becomes the space-joined text parts and
    the original array is kept in `parts` for the multimodal preprocessor.
    Roles other than system/user/assistant are accepted and later treated
    as user turns.
    """

    model_config = ConfigDict(frozen=True)

    role: str
    content: str
    name: Optional[str] = None
    parts: Optional[List[ContentPart]] = None

    @model_validator(mode="before")
    @classmethod
    def decode_content(cls, data: Any) -> Any:
        """Decode `content` as either a string or a list of content parts."""
        if not isinstance(data, dict):
            return data

        raw = data.get("content")
        if isinstance(raw, str):
            return {**data, "parts": None}

        if isinstance(raw, list):
            texts = [
                item["text"]
                for item in raw
                if isinstance(item, dict)
                and item.get("type") == "text"
                and isinstance(item.get("text"), str)
            ]
            return {**data, "content": " ".join(texts), "parts": raw}

        raise ValueError("Content must be either a string or an array of content objects")

    @property
    def has_images(self) -> bool:
        """Whether any non-text part is present."""
        return bool(self.parts) and any(part.type != "text" for part in self.parts)


class ChatCompletionRequest(BaseModel):
    """
    OpenAI-compatible chat completion request.

    Only `temperature` and `max_tokens` reach the engine. The remaining
    sampling fields are accepted for wire compatibility and ignored.
    """

    model: Optional[str] = None
    messages: List[Message]
    max_tokens: Optional[int] = Field(default=None, ge=1)
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    top_p: Optional[float] = None
    n: Optional[int] = None
    stream: Optional[bool] = False
    stop: Optional[Union[str, List[str]]] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    logit_bias: Optional[Dict[str, float]] = None
    user: Optional[str] = None

    def generation_options(self) -> GenerationOptions:
        """Options honored by the engine."""
        return GenerationOptions(temperature=self.temperature, max_tokens=self.max_tokens)


class MultimodalChatCompletionRequest(ChatCompletionRequest):
    """Chat completion request with vision preprocessing control."""

    vision_analysis: Optional[bool] = True
