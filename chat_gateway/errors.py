"""OpenAI-shaped error taxonomy shared by JSON and SSE transports."""

import json
import logging
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base error rendered as an OpenAI error envelope."""

    status_code: int = 500
    error_type: str = "server_error"
    code: Optional[str] = None

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_envelope(self) -> Dict[str, Any]:
        """Build the `{error: {message, type, code?}}` body."""
        error: Dict[str, Any] = {"message": self.message, "type": self.error_type}
        if self.code:
            error["code"] = self.code
        return {"error": error}

    def to_response(self) -> JSONResponse:
        """Render as a JSON error response."""
        return JSONResponse(status_code=self.status_code, content=self.to_envelope())

    def to_sse(self) -> str:
        """Render as an in-stream error event followed by the stream terminator."""
        payload = json.dumps(self.to_envelope(), ensure_ascii=False)
        return f"data: {payload}\n\ndata: [DONE]\n\n"


class InvalidRequestError(GatewayError):
    status_code = 400
    error_type = "invalid_request_error"


class NotFoundError(GatewayError):
    status_code = 404
    error_type = "invalid_request_error"
    code = "model_not_found"


class UnsupportedMediaTypeError(GatewayError):
    status_code = 415
    error_type = "invalid_request_error"
    code = "unsupported_media_type"


class PayloadTooLargeError(GatewayError):
    status_code = 413
    error_type = "invalid_request_error"
    code = "payload_too_large"


class ServiceUnavailableError(GatewayError):
    status_code = 503
    error_type = "service_unavailable"
    code = "unavailable_error"


class InternalServerError(GatewayError):
    status_code = 500
    error_type = "server_error"
    code = "internal_error"


def map_exception(exc: BaseException) -> GatewayError:
    """
    Classify any failure into the gateway error taxonomy.

    Engine and vision errors are imported lazily to keep this module
    free of service dependencies.
    """
    from .services.engine import EngineUnavailableError, UnsupportedLanguageError
    from .services.language import unsupported_language_message
    from .services.vision import InvalidImageError

    if isinstance(exc, GatewayError):
        return exc
    if isinstance(exc, UnsupportedLanguageError):
        return InvalidRequestError(
            unsupported_language_message(exc.language), code="unsupported_language"
        )
    if isinstance(exc, EngineUnavailableError):
        return ServiceUnavailableError(str(exc) or "Model not available")
    if isinstance(exc, InvalidImageError):
        return InvalidRequestError(str(exc), code="invalid_image")

    logger.debug(f"Unclassified error mapped to server_error: {exc!r}")
    return InternalServerError(f"Error generating response: {exc}")
