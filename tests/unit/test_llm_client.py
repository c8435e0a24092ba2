"""LLM client tests against a mocked HTTP transport."""

import json

import httpx
import pytest

from vibeflow.config import LLMConfig
from vibeflow.errors import ApiError, ConfigurationError, ParsingError
from vibeflow.llm import (
    perform_direct_llm_call,
    perform_research_query,
    select_model_for_task,
    update_available_models,
)


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _completion(text):
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


def test_select_model_for_task():
    config = LLMConfig(
        llm_mapping={"prd_generation": "prd/model", "default_generation": "gen/model"}
    )
    assert select_model_for_task(config, "prd_generation", "fallback") == "prd/model"
    assert select_model_for_task(config, "rules_generation", "fallback") == "gen/model"
    assert select_model_for_task(LLMConfig(), "rules_generation", "fallback") == "fallback"


@pytest.mark.asyncio
async def test_direct_call_posts_chat_completion():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("  generated text  "))

    config = LLMConfig(
        api_key="sk-test",
        base_url="http://llm.local/v1/",
        llm_mapping={"prd_generation": "prd/model"},
    )
    async with _client(handler) as client:
        text = await perform_direct_llm_call(
            "Write a PRD", "system", config, "prd_generation", client=client
        )

    assert text == "generated text"
    assert seen["url"] == "http://llm.local/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "prd/model"
    assert seen["body"]["temperature"] == 0.1
    assert seen["body"]["messages"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "Write a PRD"},
    ]


@pytest.mark.asyncio
async def test_research_query_uses_research_model():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("findings"))

    config = LLMConfig(api_key="sk-test", research_model="research/model")
    async with _client(handler) as client:
        assert await perform_research_query("What?", config, client=client) == "findings"
    assert seen["body"]["model"] == "research/model"
    assert seen["body"]["messages"][1] == {"role": "user", "content": "What?"}


@pytest.mark.asyncio
async def test_missing_api_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        await perform_direct_llm_call("p", "s", LLMConfig(), "prd_generation")


@pytest.mark.asyncio
async def test_http_error_becomes_api_error_with_status():
    def handler(request):
        return httpx.Response(429, json={"error": "rate limited"})

    async with _client(handler) as client:
        with pytest.raises(ApiError) as exc_info:
            await perform_direct_llm_call(
                "p", "s", LLMConfig(api_key="k"), "prd_generation", client=client
            )

    assert exc_info.value.status_code == 429
    assert exc_info.value.message.startswith("LLM API Error: Status 429.")
    assert exc_info.value.to_detail()["status_code"] == 429


@pytest.mark.asyncio
async def test_transport_error_becomes_api_error_without_status():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(ApiError) as exc_info:
            await perform_research_query("q", LLMConfig(api_key="k"), client=client)
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [{"choices": []}, {"choices": [{"message": {"content": ""}}]}, {"result": "x"}],
)
async def test_unexpected_shape_is_parsing_error(payload):
    def handler(request):
        return httpx.Response(200, json=payload)

    async with _client(handler) as client:
        with pytest.raises(ParsingError):
            await perform_direct_llm_call(
                "p", "s", LLMConfig(api_key="k"), "prd_generation", client=client
            )


@pytest.mark.asyncio
async def test_invalid_json_is_parsing_error():
    def handler(request):
        return httpx.Response(200, content=b"not json")

    async with _client(handler) as client:
        with pytest.raises(ParsingError):
            await perform_direct_llm_call(
                "p", "s", LLMConfig(api_key="k"), "prd_generation", client=client
            )


@pytest.mark.asyncio
async def test_update_available_models_builds_mapping():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(
            200,
            json={
                "models": [
                    {"name": "gpt-4o", "id": "openai/gpt-4o"},
                    {"name": "phi-4", "id": "microsoft/phi-4"},
                    {"name": "incomplete"},
                ]
            },
        )

    config = LLMConfig(github_api_key="gh-key", models_url="http://models.local/inference")
    async with _client(handler) as client:
        mapping = await update_available_models(config, client=client)

    assert mapping == {"gpt-4o": "openai/gpt-4o", "phi-4": "microsoft/phi-4"}
    assert seen == {
        "method": "GET",
        "url": "http://models.local/inference",
        "auth": "Bearer gh-key",
    }


@pytest.mark.asyncio
async def test_update_available_models_requires_github_key():
    with pytest.raises(ConfigurationError) as exc_info:
        await update_available_models(LLMConfig(api_key="openrouter-only"))
    assert "GITHUB_API_KEY" in exc_info.value.message


@pytest.mark.asyncio
async def test_update_available_models_http_error_keeps_status():
    def handler(request):
        return httpx.Response(401, json={"error": "bad credentials"})

    async with _client(handler) as client:
        with pytest.raises(ApiError) as exc_info:
            await update_available_models(LLMConfig(github_api_key="k"), client=client)

    assert exc_info.value.status_code == 401
    assert exc_info.value.message.startswith("GitHub Models API Error: Status 401.")


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"data": []}, {"models": "nope"}, ["not", "a", "dict"]])
async def test_update_available_models_unexpected_shape(payload):
    def handler(request):
        return httpx.Response(200, json=payload)

    async with _client(handler) as client:
        with pytest.raises(ParsingError):
            await update_available_models(LLMConfig(github_api_key="k"), client=client)
