"""Completion adapter for arbitrary OpenAI-compatible endpoints."""

import logging
from typing import Any

import httpx

from gateway.errors import ProviderError
from gateway.services.completion_models import (
    CompletionRequest,
    CompletionResult,
    ProviderConfig,
    build_chat_completions_url,
    build_completion_payload,
    build_headers,
    decode_completion_envelope,
    parse_json_body,
    require_non_empty,
    warn_if_empty_content,
)


logger = logging.getLogger(__name__)


class OpenAICompatibleCompletionProvider:
    """Forwards model names verbatim; base URL and default model are required."""

    def __init__(self, config: ProviderConfig) -> None:
        if config.base_url is None:
            raise ValueError("base_url must not be empty")
        if config.model is None:
            raise ValueError("model must not be empty")
        self._config = config
        self._default_model = require_non_empty(config.model, "model")
        self._base_url = config.base_url

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        model = (request.model or "").strip() or self._default_model
        payload = build_completion_payload(model, request)
        url = build_chat_completions_url(self._base_url)
        logger.info("openai_compatible_completion_started model=%s url=%s", model, url)
        response = await self._post_json(url, build_headers(self._config.api_key), payload)
        if not 200 <= response.status_code < 300:
            raise ProviderError(
                "OpenAI-compatible completion request failed: "
                f"{response.status_code} {response.text}",
                status_code=response.status_code,
            )
        result = decode_completion_envelope(
            parse_json_body(response, "OpenAI-compatible completion response"),
            error_prefix="OpenAI-compatible completion response",
        )
        warn_if_empty_content(result, source="openai_compatible")
        logger.info(
            "openai_compatible_completion_completed model=%s response_length=%s",
            model,
            len(result.content),
        )
        return result

    async def _post_json(
        self,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any],
    ) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                return await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"OpenAI-compatible request failed: {type(exc).__name__}: {exc}"
            ) from exc
