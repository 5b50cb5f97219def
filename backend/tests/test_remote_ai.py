"""Remote assistants against mocked chat-completions endpoints."""

import json

import httpx
import pytest

from models import ResponseType
from remote_ai import (
    OpenAIAssistant,
    PerplexityAssistant,
    RemoteAIError,
    default_assistants,
    extract_suggestions,
)


def function_call_reply(arguments):
    return {"choices": [{"message": {"function_call": {"name": "generate_warehouse_response", "arguments": arguments}}}]}


def content_reply(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def transport_returning(body=None, status=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=body if body is not None else {})
    return httpx.MockTransport(handler)


class TestOpenAIAssistant:
    async def test_robot_answer_attaches_robot(self, snapshot):
        seen = []
        arguments = json.dumps({"message": "AMR 03 is sorting boxes.", "display_type": "robot", "data_id": "3"})
        assistant = OpenAIAssistant(api_key="sk-test", transport=transport_returning(function_call_reply(arguments), seen=seen))

        result = await assistant.answer("what is AMR 3 doing", snapshot)

        assert result.message == "AMR 03 is sorting boxes."
        assert result.response.type == ResponseType.ROBOT
        assert result.response.title == "AMR 03 Status"
        request = seen[0]
        assert request.headers["Authorization"] == "Bearer sk-test"
        payload = json.loads(request.content)
        assert payload["model"] == "gpt-4o"
        assert payload["function_call"] == {"name": "generate_warehouse_response"}
        assert "Active Robots: 2/6" in payload["messages"][0]["content"]

    async def test_plain_answer(self, snapshot):
        arguments = json.dumps({"message": "All good.", "display_type": "none"})
        assistant = OpenAIAssistant(api_key="sk-test", transport=transport_returning(function_call_reply(arguments)))
        result = await assistant.answer("how are things", snapshot)
        assert result.response.type == ResponseType.TEXT
        assert result.response.title == "AI Response"

    async def test_unknown_entity_falls_back_to_text(self, snapshot):
        arguments = json.dumps({"message": "Robot 77?", "display_type": "robot", "data_id": "77"})
        assistant = OpenAIAssistant(api_key="sk-test", transport=transport_returning(function_call_reply(arguments)))
        result = await assistant.answer("robot 77", snapshot)
        assert result.response.type == ResponseType.TEXT

    async def test_http_error(self, snapshot):
        assistant = OpenAIAssistant(api_key="sk-test", transport=transport_returning(status=500))
        with pytest.raises(RemoteAIError, match="HTTP 500"):
            await assistant.answer("hi", snapshot)

    async def test_missing_key(self, snapshot, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assistant = OpenAIAssistant()
        assert not assistant.configured
        with pytest.raises(RemoteAIError):
            await assistant.answer("hi", snapshot)

    async def test_bad_arguments(self, snapshot):
        assistant = OpenAIAssistant(api_key="sk-test", transport=transport_returning(function_call_reply("not json")))
        with pytest.raises(RemoteAIError):
            await assistant.answer("hi", snapshot)

    async def test_no_choices(self, snapshot):
        assistant = OpenAIAssistant(api_key="sk-test", transport=transport_returning({"choices": []}))
        with pytest.raises(RemoteAIError):
            await assistant.answer("hi", snapshot)

    async def test_transport_failure(self, snapshot):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assistant = OpenAIAssistant(api_key="sk-test", transport=httpx.MockTransport(handler))
        with pytest.raises(RemoteAIError, match="ConnectError"):
            await assistant.answer("hi", snapshot)

    async def test_suggestions(self, snapshot):
        body = content_reply(json.dumps({"suggestions": ["Charge AMR 05", "Free up Zone B"]}))
        assistant = OpenAIAssistant(api_key="sk-test", transport=transport_returning(body))
        assert await assistant.suggest_optimizations(snapshot) == ["Charge AMR 05", "Free up Zone B"]

    async def test_empty_suggestions_raise(self, snapshot):
        body = content_reply(json.dumps({"suggestions": []}))
        assistant = OpenAIAssistant(api_key="sk-test", transport=transport_returning(body))
        with pytest.raises(RemoteAIError):
            await assistant.suggest_optimizations(snapshot)

    def test_model_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")
        assert OpenAIAssistant(api_key="sk-test").model == "gpt-4o-mini"


class TestPerplexityAssistant:
    async def test_zone_reference_detected_in_text(self, snapshot):
        seen = []
        body = content_reply("Zone B is congested right now.")
        assistant = PerplexityAssistant(api_key="pplx-test", transport=transport_returning(body, seen=seen))

        result = await assistant.answer("where is it busy", snapshot)

        assert result.response.type == ResponseType.ZONE
        assert result.response.title == "Zone B Status"
        payload = json.loads(seen[0].content)
        assert payload["model"] == "sonar"
        assert payload["temperature"] == 0.2

    async def test_robot_reference_wins_over_zone(self, snapshot):
        body = content_reply("AMR 4 is idle in Zone B.")
        assistant = PerplexityAssistant(api_key="pplx-test", transport=transport_returning(body))
        result = await assistant.answer("idle robots?", snapshot)
        assert result.response.type == ResponseType.ROBOT
        assert result.response.data.id == 4

    async def test_empty_completion(self, snapshot):
        assistant = PerplexityAssistant(api_key="pplx-test", transport=transport_returning(content_reply("")))
        with pytest.raises(RemoteAIError):
            await assistant.answer("hi", snapshot)

    async def test_suggestions_from_free_text(self, snapshot):
        body = content_reply("Here are my suggestions:\n1. Charge AMR 05\n2. Ease Zone B traffic\n")
        assistant = PerplexityAssistant(api_key="pplx-test", transport=transport_returning(body))
        assert await assistant.suggest_optimizations(snapshot) == ["Charge AMR 05", "Ease Zone B traffic"]


def test_extract_suggestions_drops_preamble_and_bullets():
    text = "\n".join([
        "Based on the metrics, consider the following.",
        "Recommendations:",
        "- Rotate charging for low battery AMRs",
        "* Rebalance Zone A",
        "",
        "3) Review tool assignments",
        "According to the data, nothing else stands out.",
    ])
    assert extract_suggestions(text) == [
        "Rotate charging for low battery AMRs",
        "Rebalance Zone A",
        "Review tool assignments",
    ]


def test_default_chain_order():
    assert [a.name for a in default_assistants()] == ["OpenAI", "Perplexity"]


def test_bad_timeout_is_ignored(monkeypatch):
    monkeypatch.setenv("REMOTE_AI_TIMEOUT", "soon")
    assert OpenAIAssistant(api_key="sk-test").timeout == 30.0
