"""Structured telemetry events with pluggable sinks.

The gateway emits a handful of named events (request received, vision
processed, stream chunk emitted, error raised, response sent). Sinks
decide what to do with them; the default `LoggingSink` writes them to the
`debug.payloads` logger.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..config import settings

logger = logging.getLogger("debug.payloads")


def _truncate(text: str, max_length: int = 0) -> str:
    """Truncate text if max_length is set."""
    if max_length <= 0 or len(text) <= max_length:
        return text
    return text[:max_length] + f"... [truncated, total {len(text)} chars]"


def _safe_json(obj: Any, indent: Optional[int] = None) -> str:
    """Safely serialize object to JSON string."""
    try:
        return json.dumps(obj, ensure_ascii=False, indent=indent, default=str)
    except (TypeError, ValueError) as e:
        return f"<serialization error: {e}>"


class EventSink:
    """Receives telemetry events. Subclasses override `emit`."""

    def emit(self, event: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError


class LoggingSink(EventSink):
    """Writes events to the payload logger.

    Bodies are only included when DEBUG_LOG_PAYLOADS is enabled.
    """

    PAYLOAD_KEYS = ("body", "data", "content")

    def emit(self, event: str, fields: Dict[str, Any]) -> None:
        if event == "stream_chunk" and not settings.DEBUG_LOG_PAYLOADS:
            return

        if not settings.DEBUG_LOG_PAYLOADS:
            fields = {k: v for k, v in fields.items() if k not in self.PAYLOAD_KEYS}

        timestamp = datetime.now().isoformat()
        rendered = _truncate(_safe_json(fields), settings.DEBUG_LOG_MAX_LENGTH)
        level = logging.WARNING if event == "error_raised" else logging.DEBUG
        logger.log(level, f"[{timestamp}] {event}: {rendered}")


_sinks: List[EventSink] = [LoggingSink()]


def add_event_sink(sink: EventSink) -> None:
    """Register an additional event sink."""
    _sinks.append(sink)


def remove_event_sink(sink: EventSink) -> None:
    """Unregister a previously added sink."""
    if sink in _sinks:
        _sinks.remove(sink)


def emit_event(event: str, **fields: Any) -> None:
    """Dispatch an event to every registered sink."""
    for sink in list(_sinks):
        try:
            sink.emit(event, fields)
        except Exception as e:
            logging.getLogger(__name__).warning(
                f"Event sink {type(sink).__name__} failed on {event}: {e}"
            )


def log_incoming_request(
    request_id: str,
    path: str,
    message_count: int,
    stream: bool,
    model: Optional[str],
    body: Optional[Any] = None,
) -> None:
    """Request received."""
    emit_event(
        "request_received",
        request_id=request_id,
        path=path,
        message_count=message_count,
        stream=stream,
        model=model,
        body=body,
    )


def log_outgoing_response(
    request_id: str,
    status_code: int,
    content: Optional[str] = None,
    is_stream: bool = False,
) -> None:
    """Response completed."""
    emit_event(
        "response_sent",
        request_id=request_id,
        status_code=status_code,
        is_stream=is_stream,
        length=len(content) if content is not None else None,
        content=content,
    )


def log_vision_processed(
    request_id: str,
    message_index: int,
    image_count: int,
    analyzed: bool,
) -> None:
    """Image parts of one message were turned into text."""
    emit_event(
        "vision_processed",
        request_id=request_id,
        message_index=message_index,
        image_count=image_count,
        analyzed=analyzed,
    )


def log_stream_chunk(
    request_id: str,
    chunk_index: int,
    data: Optional[Any] = None,
) -> None:
    """Individual stream chunk emitted."""
    emit_event("stream_chunk", request_id=request_id, chunk_index=chunk_index, data=data)


def log_error_raised(
    request_id: Optional[str],
    status_code: int,
    error_type: str,
    message: str,
    is_stream: bool = False,
) -> None:
    """An error envelope was produced."""
    emit_event(
        "error_raised",
        request_id=request_id,
        status_code=status_code,
        error_type=error_type,
        message=message,
        is_stream=is_stream,
    )
