"""
Unit tests for the OpenRouter chat completion service.
"""

import json

import httpx
import pytest

from concierge.services.llm import LLMService
from concierge.utils.exceptions import ConfigurationError, LLMError

TOOLS = [{"type": "function", "function": {"name": "search_products", "description": "d", "parameters": {}}}]


def make_service(handler, calls=None, **kwargs):
    def recording_handler(request):
        if calls is not None:
            calls.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(
        base_url="https://llm.test/api/v1",
        transport=httpx.MockTransport(recording_handler)
    )
    return LLMService(api_key="test-key", model="test/model", http_client=http_client, **kwargs)


def test_missing_api_key_is_a_configuration_error():
    with pytest.raises(ConfigurationError) as exc_info:
        LLMService(api_key="", model="test/model")
    assert exc_info.value.missing == ["OPENROUTER_API_KEY"]


def test_from_settings(settings):
    service = LLMService.from_settings(settings)

    assert service.model == "test/model"
    assert service.base_url == "https://llm.test/api/v1"
    assert service.client.headers["Authorization"] == "Bearer test-key"


@pytest.mark.asyncio
async def test_text_reply_and_request_body(completion_body):
    calls = []
    service = make_service(lambda r: httpx.Response(200, json=completion_body("Ciao!")), calls, max_tokens=256)

    reply = await service.complete(
        [{"role": "system", "content": "s"}, {"role": "user", "content": "ciao"}],
        tools=TOOLS,
        tool_choice="auto"
    )

    assert reply.text == "Ciao!"
    assert not reply.has_tool_calls
    request = calls[0]
    assert request.url.path == "/api/v1/chat/completions"
    body = json.loads(request.content)
    assert body["model"] == "test/model"
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 256
    assert body["tools"] == TOOLS
    assert body["tool_choice"] == "auto"
    assert body["messages"][1] == {"role": "user", "content": "ciao"}


@pytest.mark.asyncio
async def test_no_tools_omits_tool_fields(completion_body):
    calls = []
    service = make_service(lambda r: httpx.Response(200, json=completion_body("ok")), calls)

    await service.complete([{"role": "user", "content": "x"}], tools=None, tool_choice="auto")

    body = json.loads(calls[0].content)
    assert "tools" not in body
    assert "tool_choice" not in body
    assert "max_tokens" not in body


@pytest.mark.asyncio
async def test_tool_call_reply(completion_body):
    body = completion_body(tool_calls=[{"id": "call_abc", "name": "search_products", "arguments": {"keyword": "accendino"}}])
    service = make_service(lambda r: httpx.Response(200, json=body))

    reply = await service.complete([{"role": "user", "content": "avete accendini?"}])

    assert reply.text is None
    assert reply.has_tool_calls
    call = reply.tool_calls[0]
    assert call.id == "call_abc"
    assert call.name == "search_products"
    assert call.arguments == {"keyword": "accendino"}


def test_unparseable_arguments_become_empty():
    service = LLMService(api_key="k", model="m")
    data = {"choices": [{"message": {"content": None, "tool_calls": [
        {"id": "c1", "type": "function", "function": {"name": "search_products", "arguments": "{not json"}}
    ]}}]}

    reply = service.parse_reply(data)

    assert reply.tool_calls[0].arguments == {}


def test_legacy_function_call_shape():
    service = LLMService(api_key="k", model="m")
    data = {"choices": [{"message": {"content": "", "function_call": {
        "name": "search_products", "arguments": "{\"keyword\": \"grinder\"}"
    }}}]}

    reply = service.parse_reply(data)

    assert reply.tool_calls[0].name == "search_products"
    assert reply.tool_calls[0].arguments == {"keyword": "grinder"}
    assert reply.tool_calls[0].id is None


def test_content_parts_are_joined():
    service = LLMService(api_key="k", model="m")
    data = {"choices": [{"message": {"content": [
        {"type": "text", "text": "Ecco "},
        {"type": "text", "text": "i prodotti"},
    ]}}]}

    assert service.parse_reply(data).text == "Ecco i prodotti"


def test_no_choices_is_an_error():
    service = LLMService(api_key="k", model="m")

    with pytest.raises(LLMError):
        service.parse_reply({"error": {"message": "No endpoints found"}})


@pytest.mark.asyncio
async def test_error_status_raises():
    service = make_service(lambda r: httpx.Response(500, json={"error": {"message": "upstream"}}))

    with pytest.raises(LLMError) as exc_info:
        await service.complete([{"role": "user", "content": "x"}])

    assert exc_info.value.details["status_code"] == 500
    assert exc_info.value.error_code == "LLM_ERROR"


@pytest.mark.asyncio
async def test_transport_failure_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    service = make_service(handler)

    with pytest.raises(LLMError):
        await service.complete([{"role": "user", "content": "x"}])


@pytest.mark.asyncio
async def test_invalid_json_raises():
    service = make_service(lambda r: httpx.Response(200, text="not json"))

    with pytest.raises(LLMError):
        await service.complete([{"role": "user", "content": "x"}])
