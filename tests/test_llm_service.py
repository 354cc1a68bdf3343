import asyncio
import json

import httpx
import pytest

from cardsmith.errors import GenerationTimeout, ServiceError
from cardsmith.services.llm_service import GenerationClient

URL = "http://ollama.test/api/generate"


def ndjson(*chunks):
    return "".join(
        (c if isinstance(c, str) else json.dumps(c)) + "\n" for c in chunks
    ).encode()


def client_for(handler):
    return GenerationClient(transport=httpx.MockTransport(handler))


def test_concatenates_fragments_until_done():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            content=ndjson(
                {"response": "Q: What is Go?", "done": False},
                {"response": "\nA: A language"},
                {"response": "", "done": True},
                {"response": "IGNORED"},
            ),
        )

    text = asyncio.run(client_for(handler).generate("llama3.2", URL, "prompt text"))
    assert text == "Q: What is Go?\nA: A language"
    assert seen["body"] == {"model": "llama3.2", "prompt": "prompt text"}


def test_stream_ending_without_done_returns_collected_text():
    def handler(request):
        return httpx.Response(200, content=ndjson({"response": "part 1 "}, {"response": "part 2"}))

    assert asyncio.run(client_for(handler).generate("m", URL, "p")) == "part 1 part 2"


def test_undecodable_chunks_are_skipped():
    def handler(request):
        return httpx.Response(
            200,
            content=ndjson(
                {"response": "keep "},
                "{not json",
                "[1, 2, 3]",
                {"done": False},
                {"response": 42},
                {"response": "this"},
                {"done": True},
            ),
        )

    assert asyncio.run(client_for(handler).generate("m", URL, "p")) == "keep this"


def test_non_success_status_raises_service_error():
    def handler(request):
        return httpx.Response(404, json={"error": "model not found"})

    with pytest.raises(ServiceError) as excinfo:
        asyncio.run(client_for(handler).generate("missing", URL, "p"))
    assert excinfo.value.status_code == 404


def test_transport_failure_raises_service_error_without_status():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ServiceError) as excinfo:
        asyncio.run(client_for(handler).generate("m", URL, "p"))
    assert excinfo.value.status_code is None


def test_deadline_raises_generation_timeout():
    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200, content=ndjson({"response": "late", "done": True}))

    with pytest.raises(GenerationTimeout):
        asyncio.run(client_for(handler).generate("m", URL, "p", timeout=0.05))


def test_timeout_is_not_a_service_error():
    assert not issubclass(GenerationTimeout, ServiceError)
    assert not issubclass(ServiceError, GenerationTimeout)


def test_uses_injected_http_client():
    def handler(request):
        return httpx.Response(200, content=ndjson({"response": "ok", "done": True}))

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            return await GenerationClient(http_client=http).generate("m", URL, "p")

    assert asyncio.run(scenario()) == "ok"
