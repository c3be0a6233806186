"""Conversation history to engine transcript conversion."""

from typing import Dict, Sequence, Tuple

from ..errors import InvalidRequestError
from ..models.common import EntryKind, Transcript, TranscriptEntry
from ..models.openai import Message

ROLE_TO_KIND: Dict[str, EntryKind] = {
    "system": "instructions",
    "user": "prompt",
    "assistant": "response",
}


def entry_for_message(message: Message) -> TranscriptEntry:
    """Map one message to a transcript entry. Unknown roles become prompts."""
    kind = ROLE_TO_KIND.get(message.role.lower(), "prompt")
    return TranscriptEntry(kind=kind, segments=(message.content,))


def build_transcript(history: Sequence[Message]) -> Transcript:
    """Convert prior turns, in order, into transcript entries."""
    return tuple(entry_for_message(message) for message in history)


def split_history(messages: Sequence[Message]) -> Tuple[Transcript, str]:
    """
    Split a conversation into (transcript of prior turns, current prompt).

    The last message is always the current prompt and never part of the
    transcript, whatever its role.
    """
    if not messages:
        raise InvalidRequestError("No messages provided", code="empty_messages")
    return build_transcript(messages[:-1]), messages[-1].content
