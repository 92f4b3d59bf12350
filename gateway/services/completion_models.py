"""Canonical completion types and wire helpers shared by provider adapters."""

from dataclasses import dataclass, field
import logging
from typing import Any, Mapping, Protocol

from gateway.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
)
from gateway.errors import ProviderError


logger = logging.getLogger(__name__)


def require_non_empty(value: str, field_name: str) -> str:
    normalized_value = value.strip()
    if normalized_value == "":
        raise ValueError(f"{field_name} must not be empty")
    return normalized_value


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str


@dataclass(frozen=True)
class CompletionRequest:
    messages: tuple[ChatMessage, ...]
    model: str | None = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    response_format: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if len(self.messages) == 0:
            raise ValueError("messages must not be empty")
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be greater than zero")


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class CompletionResult:
    content: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    reasoning_content: str | None = None
    finish_reason: str | None = None


@dataclass(frozen=True)
class ProviderConfig:
    """Fixed configuration for one adapter instance."""

    api_key: str
    model: str | None = None
    base_url: str | None = None
    timeout_seconds: float = DEFAULT_UPSTREAM_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        require_non_empty(self.api_key, "api_key")
        if self.base_url is not None:
            object.__setattr__(self, "base_url", normalize_base_url(self.base_url))
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than zero")

    def __repr__(self) -> str:
        return (
            f"ProviderConfig(api_key='***', model={self.model!r}, "
            f"base_url={self.base_url!r}, timeout_seconds={self.timeout_seconds!r})"
        )


class CompletionProvider(Protocol):
    async def complete(self, request: CompletionRequest) -> CompletionResult:
        """Run one single-shot completion."""


def normalize_base_url(base_url: str) -> str:
    return require_non_empty(base_url, "base_url").rstrip("/")


def build_chat_completions_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/chat/completions"


def build_headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


def build_completion_payload(model: str, request: CompletionRequest) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "model": model,
        "messages": [
            {"role": message.role, "content": message.content}
            for message in request.messages
        ],
        "temperature": request.temperature,
        "max_tokens": request.max_tokens,
    }
    if request.response_format is not None:
        payload["response_format"] = dict(request.response_format)
    return payload


def decode_completion_envelope(payload: Any, error_prefix: str) -> CompletionResult:
    """Decode a chat-completions envelope leniently.

    Only a non-object envelope or a missing/empty ``choices`` list is fatal;
    absent content degrades to ``""`` and absent usage counters to zero.
    """
    if not isinstance(payload, dict):
        raise ProviderError(f"{error_prefix} must be a JSON object")
    choices = payload.get("choices")
    if not isinstance(choices, list) or len(choices) == 0:
        raise ProviderError(f"{error_prefix} missing choices")
    first_choice = choices[0] if isinstance(choices[0], dict) else {}
    message = first_choice.get("message")
    if not isinstance(message, dict):
        message = {}
    content = message.get("content")
    reasoning_content = message.get("reasoning_content")
    finish_reason = first_choice.get("finish_reason")
    return CompletionResult(
        content=content if isinstance(content, str) else "",
        usage=_decode_usage(payload.get("usage"), error_prefix),
        reasoning_content=reasoning_content if isinstance(reasoning_content, str) else None,
        finish_reason=finish_reason if isinstance(finish_reason, str) else None,
    )


def _decode_usage(raw_usage: Any, error_prefix: str) -> TokenUsage:
    if not isinstance(raw_usage, dict):
        logger.warning("completion_usage_missing source=%s", error_prefix)
        return TokenUsage()
    counters: dict[str, int] = {}
    for counter in ("prompt_tokens", "completion_tokens", "total_tokens"):
        value = raw_usage.get(counter)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            counters[counter] = value
            continue
        logger.warning(
            "completion_usage_counter_defaulted source=%s counter=%s",
            error_prefix,
            counter,
        )
        counters[counter] = 0
    return TokenUsage(**counters)


def parse_json_body(response: Any, error_prefix: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError(
            f"{error_prefix} is not valid JSON",
            status_code=response.status_code,
        ) from exc


def warn_if_empty_content(result: CompletionResult, source: str) -> None:
    """Log empty completions; a successful call never raises for them."""
    if result.content.strip() != "":
        return
    if result.finish_reason == "length":
        logger.warning(
            "completion_truncated_before_content source=%s reasoning_present=%s "
            "completion_tokens=%s hint=increase_max_tokens",
            source,
            result.reasoning_content is not None,
            result.usage.completion_tokens,
        )
        return
    logger.warning(
        "completion_empty_content source=%s finish_reason=%s",
        source,
        result.finish_reason,
    )
