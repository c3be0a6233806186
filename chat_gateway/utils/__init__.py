"""Utility modules."""

from .debug_logger import (
    EventSink,
    LoggingSink,
    add_event_sink,
    emit_event,
    log_error_raised,
    log_incoming_request,
    log_outgoing_response,
    log_stream_chunk,
    log_vision_processed,
    remove_event_sink,
)

__all__ = [
    "EventSink",
    "LoggingSink",
    "add_event_sink",
    "emit_event",
    "log_error_raised",
    "log_incoming_request",
    "log_outgoing_response",
    "log_stream_chunk",
    "log_vision_processed",
    "remove_event_sink",
]
