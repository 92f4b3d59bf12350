"""Completion adapter for the Z.AI chat-completions backend."""

import logging
from typing import Any

import httpx

from gateway.constants import ZAI_API_BASE_URL, ZAI_DEFAULT_MODEL
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
    warn_if_empty_content,
)


logger = logging.getLogger(__name__)

# Model-name fragments that belong to other backend families.
FOREIGN_MODEL_FRAGMENTS = ("gpt", "claude", "gemini")


def is_foreign_model(model: str) -> bool:
    lowered = model.lower()
    return any(fragment in lowered for fragment in FOREIGN_MODEL_FRAGMENTS)


def normalize_model(requested_model: str | None, default_model: str) -> str:
    if requested_model is None or requested_model.strip() == "":
        return default_model
    if is_foreign_model(requested_model):
        logger.info(
            "zai_model_substituted requested_model=%s model=%s",
            requested_model,
            default_model,
        )
        return default_model
    return requested_model


class ZAICompletionProvider:
    """Z.AI adapter; call sites passing another family's model get the Z.AI default."""

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        self._default_model = normalize_model(config.model, ZAI_DEFAULT_MODEL)
        self._base_url = config.base_url or ZAI_API_BASE_URL

    @property
    def default_model(self) -> str:
        return self._default_model

    @property
    def base_url(self) -> str:
        return self._base_url

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        model = normalize_model(request.model, self._default_model)
        payload = build_completion_payload(model, request)
        url = build_chat_completions_url(self._base_url)
        logger.info(
            "zai_completion_started model=%s message_count=%s max_tokens=%s "
            "has_response_format=%s",
            model,
            len(request.messages),
            request.max_tokens,
            request.response_format is not None,
        )
        response = await self._post_json(url, build_headers(self._config.api_key), payload)
        if not 200 <= response.status_code < 300:
            logger.error(
                "zai_completion_failed model=%s status=%s body_length=%s",
                model,
                response.status_code,
                len(response.text),
            )
            raise ProviderError(
                f"Z.AI API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )
        result = decode_completion_envelope(
            parse_json_body(response, "Z.AI completion response"),
            error_prefix="Z.AI completion response",
        )
        warn_if_empty_content(result, source="zai")
        logger.info(
            "zai_completion_completed model=%s content_length=%s finish_reason=%s "
            "total_tokens=%s",
            model,
            len(result.content),
            result.finish_reason,
            result.usage.total_tokens,
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
                f"Z.AI request failed: {type(exc).__name__}: {exc}"
            ) from exc
