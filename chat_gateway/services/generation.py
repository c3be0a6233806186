"""Generation controller: availability, sessions, single-shot and streamed generation."""

import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Sequence

from ..errors import GatewayError, ServiceUnavailableError, map_exception
from ..models.common import GenerationOptions, Transcript
from ..models.openai import Message
from .engine import LanguageModelEngine
from .language import LanguageGate
from .transcript import split_history

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedGeneration:
    """Validated transcript and current-turn prompt for one request."""

    transcript: Transcript
    prompt: str


class GenerationSession:
    """
    One request's generation context.

    Created from a transcript, runs at most one generation at a time, and
    is discarded when the request completes. Never pooled or reused.
    """

    def __init__(
        self,
        engine: LanguageModelEngine,
        transcript: Transcript,
        options: GenerationOptions,
    ):
        self.engine = engine
        self.transcript = transcript
        self.options = options
        self._busy = False
        self._closed = False

    def _begin(self) -> None:
        if self._closed:
            raise RuntimeError("Generation session is closed")
        if self._busy:
            raise RuntimeError("Generation session already has a generation in flight")
        self._busy = True

    def close(self) -> None:
        self._closed = True

    async def respond(self, prompt: str) -> str:
        self._begin()
        try:
            return await self.engine.generate(self.transcript, prompt, self.options)
        finally:
            self._busy = False

    async def stream_response(self, prompt: str) -> AsyncGenerator[str, None]:
        """Yield cumulative snapshots; closing this generator abandons the engine stream."""
        self._begin()
        stream = self.engine.stream_generate(self.transcript, prompt, self.options)
        try:
            async for snapshot in stream:
                yield snapshot
        finally:
            await stream.aclose()
            self._busy = False


class GenerationController:
    """Drives the engine for chat completion requests."""

    def __init__(self, engine: LanguageModelEngine, language_gate: LanguageGate):
        self.engine = engine
        self.language_gate = language_gate

    async def ensure_available(self) -> None:
        """Raise ServiceUnavailableError unless the engine reports available."""
        available, reason = await self.engine.is_available()
        if not available:
            logger.warning(f"Model not available: {reason}")
            raise ServiceUnavailableError(reason or "Model not available")

    async def prepare(self, messages: Sequence[Message]) -> PreparedGeneration:
        """Build the transcript and validate the current prompt's language."""
        transcript, prompt = split_history(messages)
        await self.language_gate.validate_text(prompt)
        logger.debug(f"Prepared transcript with {len(transcript)} entries")
        return PreparedGeneration(transcript=transcript, prompt=prompt)

    async def complete(self, prepared: PreparedGeneration, options: GenerationOptions) -> str:
        """Generate the full response text."""
        session = GenerationSession(self.engine, prepared.transcript, options)
        try:
            return await session.respond(prepared.prompt)
        except GatewayError:
            raise
        except Exception as e:
            logger.error(f"Completion error: {e}")
            raise map_exception(e) from e
        finally:
            session.close()

    async def stream(
        self, prepared: PreparedGeneration, options: GenerationOptions
    ) -> AsyncGenerator[str, None]:
        """Yield cumulative snapshots; engine failures surface as GatewayError."""
        session = GenerationSession(self.engine, prepared.transcript, options)
        snapshots = session.stream_response(prepared.prompt)
        try:
            async for snapshot in snapshots:
                yield snapshot
        except GatewayError:
            raise
        except Exception as e:
            logger.error(f"Stream generation error: {e}")
            raise map_exception(e) from e
        finally:
            await snapshots.aclose()
            session.close()
