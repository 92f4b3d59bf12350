"""Gateway services package."""

from gateway.services.cors import CorsPolicy
from gateway.services.edge_router import EdgeRouter, PathClass
from gateway.services.harness_dispatcher import HarnessLocator, SessionHarnessDispatcher
from gateway.services.openai_compatible_completion_provider import (
    OpenAICompatibleCompletionProvider,
)
from gateway.services.zai_completion_provider import ZAICompletionProvider


__all__ = [
    "CorsPolicy",
    "EdgeRouter",
    "HarnessLocator",
    "OpenAICompatibleCompletionProvider",
    "PathClass",
    "SessionHarnessDispatcher",
    "ZAICompletionProvider",
]
