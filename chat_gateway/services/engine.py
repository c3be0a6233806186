"""Text generation engine interface and the default local-engine client."""

import json
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

import httpx

from ..config import settings
from ..models.common import GenerationOptions, Transcript

logger = logging.getLogger(__name__)


class EngineError(Exception):
    """Generation failed inside the engine."""


class EngineUnavailableError(EngineError):
    """The engine cannot serve requests right now."""


class UnsupportedLanguageError(EngineError):
    """The engine rejected the prompt's language during generation."""

    def __init__(self, language: Optional[str] = None, message: Optional[str] = None):
        super().__init__(message or f"Unsupported language: {language or 'unknown'}")
        self.language = language


class LanguageModelEngine:
    """
    Capability interface the gateway drives.

    Implementations hold no per-conversation state: every call receives
    the full transcript of prior turns plus the current prompt.
    """

    async def is_available(self) -> Tuple[bool, Optional[str]]:
        """Return (available, reason). `reason` explains unavailability."""
        raise NotImplementedError

    async def generate(
        self, transcript: Transcript, prompt: str, options: GenerationOptions
    ) -> str:
        """Generate the full response text."""
        raise NotImplementedError

    def stream_generate(
        self, transcript: Transcript, prompt: str, options: GenerationOptions
    ) -> AsyncGenerator[str, None]:
        """Yield cumulative response snapshots, each extending the previous one."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release engine resources."""


# Transcript entry kind -> chat role understood by the local engine
ENTRY_ROLES: Dict[str, str] = {
    "instructions": "system",
    "prompt": "user",
    "response": "assistant",
}


class OllamaEngine(LanguageModelEngine):
    """Engine backed by a local Ollama-compatible `/api/chat` server."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.ENGINE_BASE_URL).rstrip("/")
        self.model = model or settings.ENGINE_MODEL
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.engine_timeout,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def is_available(self) -> Tuple[bool, Optional[str]]:
        try:
            response = await self._client.get("/api/tags")
            response.raise_for_status()
            tags = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Engine availability check failed: {e}")
            return False, f"Local model engine not reachable at {self.base_url}"

        names = {model.get("name") for model in tags.get("models", [])}
        if self.model in names or f"{self.model}:latest" in names:
            return True, None
        return False, (
            f"Model '{self.model}' is not installed in the local engine. "
            "Models are downloaded on demand; please wait and try again later."
        )

    def build_payload(
        self,
        transcript: Transcript,
        prompt: str,
        options: GenerationOptions,
        stream: bool,
    ) -> Dict[str, Any]:
        """Map transcript, prompt and options onto an `/api/chat` body."""
        messages: List[Dict[str, str]] = [
            {"role": ENTRY_ROLES[entry.kind], "content": entry.text} for entry in transcript
        ]
        messages.append({"role": "user", "content": prompt})

        payload: Dict[str, Any] = {"model": self.model, "messages": messages, "stream": stream}
        engine_options: Dict[str, Any] = {}
        if options.temperature is not None:
            engine_options["temperature"] = options.temperature
        if options.max_tokens is not None:
            engine_options["num_predict"] = options.max_tokens
        if engine_options:
            payload["options"] = engine_options
        return payload

    def _raise_for_error(self, status_code: int, detail: str) -> None:
        if status_code == 404:
            raise EngineUnavailableError(f"Model '{self.model}' not available: {detail}")
        if status_code >= 500 and "loading" in detail.lower():
            raise EngineUnavailableError(f"Model not ready: {detail}")
        raise EngineError(f"Engine returned HTTP {status_code}: {detail}")

    async def generate(
        self, transcript: Transcript, prompt: str, options: GenerationOptions
    ) -> str:
        payload = self.build_payload(transcript, prompt, options, stream=False)
        try:
            response = await self._client.post("/api/chat", json=payload)
        except httpx.ConnectError as e:
            raise EngineUnavailableError(f"Local model engine not reachable: {e}") from e

        if response.status_code >= 400:
            self._raise_for_error(response.status_code, response.text[:200])

        data = response.json()
        if data.get("error"):
            raise EngineError(data["error"])
        return (data.get("message") or {}).get("content") or ""

    async def stream_generate(
        self, transcript: Transcript, prompt: str, options: GenerationOptions
    ) -> AsyncGenerator[str, None]:
        payload = self.build_payload(transcript, prompt, options, stream=True)
        content = ""
        try:
            async with self._client.stream("POST", "/api/chat", json=payload) as response:
                if response.status_code >= 400:
                    body = await response.aread()
                    self._raise_for_error(
                        response.status_code, body.decode(errors="ignore")[:200]
                    )

                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        chunk = json.loads(line)
                    except json.JSONDecodeError:
                        logger.debug(f"Skipping non-JSON engine line: {line[:100]!r}")
                        continue

                    if chunk.get("error"):
                        raise EngineError(chunk["error"])

                    delta = (chunk.get("message") or {}).get("content") or ""
                    if delta:
                        content += delta
                        yield content
                    if chunk.get("done"):
                        break
        except httpx.ConnectError as e:
            raise EngineUnavailableError(f"Local model engine not reachable: {e}") from e
