"""Internal types shared between the request adapters and the engine."""

from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple


# =============================================================================
# Generation Options
# =============================================================================


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling options forwarded to the engine (None = engine default)."""

    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


# =============================================================================
# Transcript
# =============================================================================


EntryKind = Literal["instructions", "prompt", "response"]


@dataclass(frozen=True)
class TranscriptEntry:
    """One prior conversation turn in the engine's transcript form."""

    kind: EntryKind
    segments: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def text(self) -> str:
        return "".join(self.segments)


Transcript = Tuple[TranscriptEntry, ...]
