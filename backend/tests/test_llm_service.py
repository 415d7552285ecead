"""
Tests for the Ollama completion client and stream reassembly.
"""

import asyncio
import json

import httpx
import pytest

from app.services.llm_service import CompletionAssembler, LLMService
from app.utils.exceptions import LLMTimeoutError, NetworkError, UpstreamError
from tests.factories import ndjson_body

BASE_URL = "http://ollama.test"


def _line(fragment, done=False):
    return json.dumps({"model": "m", "response": fragment, "done": done})


def _service(handler, timeout: float = 5.0) -> LLMService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LLMService(client=client, base_url=BASE_URL, completion_timeout=timeout)


def test_assembler_concatenates_fragments_in_order():
    lines = [_line("Hel"), _line("lo, "), _line("world"), _line("", done=True)]

    completion = CompletionAssembler.assemble("m", lines)

    assert completion.text == "Hello, world"
    assert completion.done is True
    assert completion.chunk_errors == []


def test_assembler_skips_one_malformed_line():
    """A corrupt line costs its own fragment only."""
    lines = [_line("a"), _line("b"), '{"response": "c"', _line("d"), _line("e", done=True)]

    completion = CompletionAssembler.assemble("m", lines)

    assert completion.text == "abde"
    assert len(completion.chunk_errors) == 1
    assert completion.chunk_errors[0].line_number == 3
    assert completion.chunk_errors[0].raw == '{"response": "c"'


def test_assembler_ignores_blank_lines():
    completion = CompletionAssembler.assemble("m", ["", _line("x"), "   ", _line("y", done=True)])

    assert completion.text == "xy"
    assert completion.chunk_errors == []


def test_assembler_rejects_non_object_and_non_string_response():
    lines = ["[1, 2]", json.dumps({"response": 42}), _line("ok", done=True)]

    completion = CompletionAssembler.assemble("m", lines)

    assert completion.text == "ok"
    assert [e.line_number for e in completion.chunk_errors] == [1, 2]


def test_assembler_records_server_error_chunk():
    completion = CompletionAssembler.assemble("m", [_line("part"), json.dumps({"error": "out of memory"})])

    assert completion.text == "part"
    assert completion.done is False
    assert "out of memory" in completion.chunk_errors[0].error


@pytest.mark.asyncio
async def test_generate_completion_streams_and_sends_parameters():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=ndjson_body('{"summary": "ok"}', chunk_size=3))

    service = _service(handler)
    completion = await service.generate_completion("llama3", "Analyze", {"temperature": 0.2})

    assert completion.text == '{"summary": "ok"}'
    assert completion.done is True
    assert seen["url"] == f"{BASE_URL}/api/generate"
    assert seen["body"] == {"model": "llama3", "prompt": "Analyze", "temperature": 0.2}


@pytest.mark.asyncio
async def test_generate_completion_non_success_status_raises_upstream_error():
    service = _service(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(UpstreamError) as exc_info:
        await service.generate_completion("llama3", "Analyze")

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_generate_completion_connection_failure_raises_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    service = _service(handler)

    with pytest.raises(NetworkError):
        await service.generate_completion("llama3", "Analyze")


@pytest.mark.asyncio
async def test_generate_completion_is_bounded_by_timeout():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, content=ndjson_body("late"))

    service = _service(handler, timeout=0.05)

    with pytest.raises(LLMTimeoutError):
        await service.generate_completion("llama3", "Analyze")


@pytest.mark.asyncio
async def test_list_models_and_health_check():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"models": [{"name": "llama3"}, {"name": "mistral"}]})

    service = _service(handler)

    models = await service.list_models()

    assert [m["name"] for m in models] == ["llama3", "mistral"]
    assert await service.health_check() is True


@pytest.mark.asyncio
async def test_health_check_false_when_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    service = _service(handler)

    assert await service.health_check() is False
    assert await service.list_models() == []
