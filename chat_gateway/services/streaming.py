"""Cumulative snapshots to OpenAI Server-Sent-Events chunks."""

import logging
from enum import Enum
from typing import Any, AsyncGenerator, Dict, Optional

from ..errors import GatewayError, map_exception
from ..models.openai import ChatCompletionStreamResponse, StreamChoice
from ..utils.debug_logger import log_error_raised, log_outgoing_response, log_stream_chunk

logger = logging.getLogger(__name__)

DONE_FRAME = "data: [DONE]\n\n"


class StreamState(str, Enum):
    START = "start"
    STREAMING = "streaming"
    ERROR = "error"
    DONE = "done"


class StreamDeltaEncoder:
    """
    Turns cumulative text snapshots into minimal SSE delta chunks.

    The first chunk announces the assistant role. Later snapshots that add
    no text are suppressed. `finish()` emits the stop chunk and `[DONE]`;
    `fail()` emits an error event and `[DONE]`.
    """

    def __init__(self, completion_id: str, created: int, model: str):
        self.completion_id = completion_id
        self.created = created
        self.model = model
        self.state = StreamState.START
        self.content = ""
        self.chunk_count = 0

    def _frame(self, delta: Dict[str, Any], finish_reason: Optional[str] = None) -> str:
        chunk = ChatCompletionStreamResponse(
            id=self.completion_id,
            created=self.created,
            model=self.model,
            choices=[StreamChoice(delta=delta, finish_reason=finish_reason)],
        )
        self.chunk_count += 1
        return f"data: {chunk.model_dump_json()}\n\n"

    def encode_snapshot(self, snapshot: str) -> Optional[str]:
        """Frame for a new snapshot, or None if it adds nothing."""
        if self.state not in (StreamState.START, StreamState.STREAMING):
            raise RuntimeError(f"Cannot encode snapshot in state {self.state.value}")

        is_first = self.state is StreamState.START
        delta_text = snapshot[len(self.content):]
        if not delta_text and not is_first:
            return None

        delta: Dict[str, Any] = {}
        if is_first:
            delta["role"] = "assistant"
        if delta_text:
            delta["content"] = delta_text

        self.content = snapshot
        self.state = StreamState.STREAMING
        return self._frame(delta)

    def finish(self) -> str:
        """Terminal stop chunk followed by the [DONE] sentinel."""
        frame = self._frame({}, finish_reason="stop")
        self.state = StreamState.DONE
        return frame + DONE_FRAME

    def fail(self, error: GatewayError) -> str:
        """In-stream error event followed by the [DONE] sentinel."""
        self.state = StreamState.ERROR
        frame = error.to_sse()
        self.state = StreamState.DONE
        return frame


async def encode_sse_stream(
    snapshots: AsyncGenerator[str, None],
    encoder: StreamDeltaEncoder,
    request_id: Optional[str] = None,
) -> AsyncGenerator[str, None]:
    """
    Drive `snapshots` through `encoder`, yielding SSE text.

    Always ends with `[DONE]` unless the client goes away, in which case
    the snapshot generator is closed so generation stops.
    """
    try:
        async for snapshot in snapshots:
            frame = encoder.encode_snapshot(snapshot)
            if frame is None:
                continue
            log_stream_chunk(request_id or encoder.completion_id, encoder.chunk_count, frame)
            yield frame

        yield encoder.finish()
        log_outgoing_response(
            request_id or encoder.completion_id, 200, encoder.content, is_stream=True
        )

    except Exception as e:
        error = map_exception(e)
        logger.error(f"Stream error: {error.message}")
        log_error_raised(
            request_id or encoder.completion_id,
            error.status_code,
            error.error_type,
            error.message,
            is_stream=True,
        )
        yield encoder.fail(error)

    finally:
        await snapshots.aclose()
