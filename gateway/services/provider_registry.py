"""Builds completion adapters from provider names."""

import logging

from gateway.config import CompletionProviderProfile
from gateway.constants import PROVIDER_OPENAI_COMPATIBLE, PROVIDER_ZAI
from gateway.services.completion_models import CompletionProvider, ProviderConfig
from gateway.services.openai_compatible_completion_provider import (
    OpenAICompatibleCompletionProvider,
)
from gateway.services.zai_completion_provider import ZAICompletionProvider


logger = logging.getLogger(__name__)


def build_completion_provider(provider: str, config: ProviderConfig) -> CompletionProvider:
    if provider == PROVIDER_ZAI:
        logger.info("completion_provider_built provider=%s", provider)
        return ZAICompletionProvider(config)
    if provider == PROVIDER_OPENAI_COMPATIBLE:
        logger.info("completion_provider_built provider=%s", provider)
        return OpenAICompatibleCompletionProvider(config)
    raise ValueError(f"unsupported completion provider: {provider}")


def build_provider_from_profile(profile: CompletionProviderProfile) -> CompletionProvider:
    config = ProviderConfig(
        api_key=profile.api_key,
        model=profile.model,
        base_url=profile.base_url,
        timeout_seconds=profile.timeout_seconds,
    )
    return build_completion_provider(profile.provider, config)
