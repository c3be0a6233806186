"""Request body size limit middleware."""

import logging

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..config import settings
from ..errors import PayloadTooLargeError

logger = logging.getLogger(__name__)


class RequestSizeLimitMiddleware:
    """
    Reject requests whose body exceeds `max_bytes`.

    A declared Content-Length is checked up front. Bodies without one
    (chunked uploads) are counted as they are received; once the limit is
    crossed the application's response is discarded and a 413 is sent.

    Written as plain ASGI middleware so streaming responses pass through
    untouched.
    """

    def __init__(self, app: ASGIApp, max_bytes: int = 0):
        self.app = app
        self.max_bytes = max_bytes or settings.MAX_REQUEST_BYTES

    def _too_large(self) -> PayloadTooLargeError:
        return PayloadTooLargeError(
            f"Request body too large. Maximum size is {self.max_bytes} bytes."
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        for name, value in scope.get("headers", []):
            if name == b"content-length":
                try:
                    length = int(value)
                except ValueError:
                    length = 0
                if length > self.max_bytes:
                    logger.warning(
                        f"Rejected {scope.get('path')}: body of {length} bytes exceeds {self.max_bytes}"
                    )
                    await self._too_large().to_response()(scope, receive, send)
                    return
                break

        received = 0
        exceeded = False
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    exceeded = True
                    raise self._too_large()
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if exceeded:
                # The app rendered its own reply to the aborted read
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except PayloadTooLargeError:
            if not exceeded:
                raise

        if exceeded and not response_started:
            logger.warning(
                f"Rejected {scope.get('path')}: streamed body exceeds {self.max_bytes} bytes"
            )
            await self._too_large().to_response()(scope, receive, send)
