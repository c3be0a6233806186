"""Tests for the local engine client."""

import json

import httpx
import pytest

from chat_gateway.models.common import GenerationOptions, TranscriptEntry
from chat_gateway.services.engine import EngineError, EngineUnavailableError, OllamaEngine


def make_engine(handler) -> OllamaEngine:
    client = httpx.AsyncClient(
        base_url="http://engine.test", transport=httpx.MockTransport(handler)
    )
    return OllamaEngine(base_url="http://engine.test", model="llama3.2", client=client)


def ndjson(*chunks: dict) -> bytes:
    return b"".join(json.dumps(chunk).encode() + b"\n" for chunk in chunks)


class TestAvailability:
    """Availability via /api/tags."""

    async def test_available(self):
        engine = make_engine(
            lambda request: httpx.Response(200, json={"models": [{"name": "llama3.2:latest"}]})
        )
        assert await engine.is_available() == (True, None)

    async def test_model_missing(self):
        engine = make_engine(
            lambda request: httpx.Response(200, json={"models": [{"name": "other"}]})
        )
        available, reason = await engine.is_available()
        assert available is False
        assert "llama3.2" in reason

    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        available, reason = await make_engine(handler).is_available()
        assert available is False
        assert "not reachable" in reason


class TestPayload:
    """Transcript and options mapping."""

    def test_build_payload(self):
        engine = make_engine(lambda request: httpx.Response(200))
        transcript = (
            TranscriptEntry(kind="instructions", segments=("Be brief.",)),
            TranscriptEntry(kind="prompt", segments=("Hi",)),
            TranscriptEntry(kind="response", segments=("Hello!",)),
        )
        payload = engine.build_payload(
            transcript, "How are you?", GenerationOptions(temperature=0.2, max_tokens=50), stream=True
        )

        assert payload["model"] == "llama3.2"
        assert payload["stream"] is True
        assert payload["messages"] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "How are you?"},
        ]
        assert payload["options"] == {"temperature": 0.2, "num_predict": 50}

    def test_no_options_when_unset(self):
        engine = make_engine(lambda request: httpx.Response(200))
        payload = engine.build_payload((), "Hi", GenerationOptions(), stream=False)
        assert "options" not in payload


class TestGenerate:
    """Single-shot and streamed generation."""

    async def test_generate(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"role": "assistant", "content": "Hi!"}, "done": True})

        engine = make_engine(handler)
        assert await engine.generate((), "Hello", GenerationOptions()) == "Hi!"
        assert seen["body"]["stream"] is False

    async def test_generate_model_not_found(self):
        engine = make_engine(lambda request: httpx.Response(404, json={"error": "model not found"}))
        with pytest.raises(EngineUnavailableError):
            await engine.generate((), "Hello", GenerationOptions())

    async def test_generate_server_error(self):
        engine = make_engine(lambda request: httpx.Response(500, json={"error": "out of memory"}))
        with pytest.raises(EngineError) as exc_info:
            await engine.generate((), "Hello", GenerationOptions())
        assert not isinstance(exc_info.value, EngineUnavailableError)

    async def test_stream_cumulative_snapshots(self):
        body = ndjson(
            {"message": {"content": "Hel"}, "done": False},
            {"message": {"content": ""}, "done": False},
            {"message": {"content": "lo"}, "done": False},
            {"message": {"content": "!"}, "done": True},
        )
        engine = make_engine(lambda request: httpx.Response(200, content=body))

        snapshots = [s async for s in engine.stream_generate((), "Hi", GenerationOptions())]
        assert snapshots == ["Hel", "Hello", "Hello!"]

    async def test_stream_error_line(self):
        body = ndjson({"message": {"content": "Hel"}, "done": False}, {"error": "engine crashed"})
        engine = make_engine(lambda request: httpx.Response(200, content=body))

        snapshots = []
        with pytest.raises(EngineError):
            async for snapshot in engine.stream_generate((), "Hi", GenerationOptions()):
                snapshots.append(snapshot)
        assert snapshots == ["Hel"]

    async def test_stream_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        engine = make_engine(handler)
        with pytest.raises(EngineUnavailableError):
            async for _ in engine.stream_generate((), "Hi", GenerationOptions()):
                pass
