import asyncio

import pytest

from gateway.errors import ProviderError
from gateway.services.completion_models import ChatMessage, CompletionRequest, ProviderConfig
from gateway.services.openai_compatible_completion_provider import (
    OpenAICompatibleCompletionProvider,
)


class FakeResponse:
    def __init__(self, status_code: int, payload: dict, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> dict:
        return self._payload


def _config(**overrides: object) -> ProviderConfig:
    values = {
        "api_key": "chat-key",
        "model": "gpt-4o-mini",
        "base_url": "https://lab.example.com/v1/",
    }
    values.update(overrides)
    return ProviderConfig(**values)


def _request(model: str | None = None) -> CompletionRequest:
    return CompletionRequest(
        messages=(
            ChatMessage(role="system", content="system"),
            ChatMessage(role="user", content="user"),
        ),
        model=model,
    )


def test_complete_posts_expected_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    async def fake_post_json(self, url: str, headers: dict[str, str], payload: dict) -> FakeResponse:
        captured["url"] = url
        captured["headers"] = headers
        captured["payload"] = payload
        return FakeResponse(
            status_code=200,
            payload={
                "choices": [{"message": {"content": "hello"}, "finish_reason": "stop"}],
                "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
            },
        )

    monkeypatch.setattr(OpenAICompatibleCompletionProvider, "_post_json", fake_post_json)
    provider = OpenAICompatibleCompletionProvider(_config())

    result = asyncio.run(provider.complete(_request()))

    assert result.content == "hello"
    assert result.usage.total_tokens == 4
    assert captured["url"] == "https://lab.example.com/v1/chat/completions"
    assert captured["headers"] == {
        "Authorization": "Bearer chat-key",
        "Content-Type": "application/json",
    }
    assert captured["payload"] == {
        "model": "gpt-4o-mini",
        "messages": [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "user"},
        ],
        "temperature": 0.7,
        "max_tokens": 1024,
    }


def test_request_model_forwarded_without_normalization(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured: dict[str, object] = {}

    async def fake_post_json(self, url: str, headers: dict[str, str], payload: dict) -> FakeResponse:
        captured["payload"] = payload
        return FakeResponse(200, {"choices": [{"message": {"content": "ok"}}]})

    monkeypatch.setattr(OpenAICompatibleCompletionProvider, "_post_json", fake_post_json)
    provider = OpenAICompatibleCompletionProvider(_config())

    asyncio.run(provider.complete(_request(model="claude-3.5-sonnet")))

    assert captured["payload"]["model"] == "claude-3.5-sonnet"


def test_blank_request_model_falls_back_to_default(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured: dict[str, object] = {}

    async def fake_post_json(self, url: str, headers: dict[str, str], payload: dict) -> FakeResponse:
        captured["payload"] = payload
        return FakeResponse(200, {"choices": [{"message": {"content": "ok"}}]})

    monkeypatch.setattr(OpenAICompatibleCompletionProvider, "_post_json", fake_post_json)
    provider = OpenAICompatibleCompletionProvider(_config())

    asyncio.run(provider.complete(_request(model="   ")))

    assert captured["payload"]["model"] == "gpt-4o-mini"


def test_complete_raises_on_non_2xx(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_post_json(self, url: str, headers: dict[str, str], payload: dict) -> FakeResponse:
        return FakeResponse(status_code=503, payload={"error": "down"}, text="down")

    monkeypatch.setattr(OpenAICompatibleCompletionProvider, "_post_json", fake_post_json)
    provider = OpenAICompatibleCompletionProvider(_config())

    with pytest.raises(ProviderError, match="OpenAI-compatible completion request failed: 503 down"):
        asyncio.run(provider.complete(_request()))


def test_provider_requires_base_url_and_model() -> None:
    with pytest.raises(ValueError, match="base_url must not be empty"):
        OpenAICompatibleCompletionProvider(_config(base_url=None))
    with pytest.raises(ValueError, match="model must not be empty"):
        OpenAICompatibleCompletionProvider(_config(model=None))
