"""OpenAI content types for chat messages."""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class TextContent(BaseModel):
    """Text content block."""

    type: Literal["text"] = "text"
    text: str


class ImageUrl(BaseModel):
    """Image URL specification."""

    url: str  # https://... or data:image/png;base64,...
    detail: Optional[str] = None


class ImageUrlContent(BaseModel):
    """Image URL content block."""

    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl


class ImageData(BaseModel):
    """Inline base64 image payload."""

    data: str  # base64 encoded
    format: str = "png"  # "jpeg", "png", ...
    detail: Optional[str] = None


class ImageDataContent(BaseModel):
    """Inline image content block."""

    type: Literal["image_data"] = "image_data"
    image_data: ImageData


ContentPart = Annotated[
    Union[TextContent, ImageUrlContent, ImageDataContent],
    Field(discriminator="type"),
]
