"""Shared pytest configuration for the project."""

from pathlib import Path
import sys

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

_OPTIONAL_ENV = (
    "HARNESS_ACTOR_NAME",
    "ASSETS_DIR",
    "UPSTREAM_TIMEOUT_SECONDS",
    "ACCESS_CLIENT_ID",
    "ACCESS_CLIENT_SECRET",
    "GATEWAY_PORT",
    "LLM_PROVIDER",
    "LLM_API_KEY",
    "LLM_MODEL",
    "LLM_BASE_URL",
    "LLM_TIMEOUT_SECONDS",
)


@pytest.fixture
def required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("HARNESS_URL", "http://harness.test")
    monkeypatch.setenv("MCP_AGENT_URL", "http://mcp.test")
    monkeypatch.setenv("APP_LOG_LEVEL", "INFO")
    monkeypatch.setenv("HARNESS_API_TOKEN", "test-api-token")
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://dashboard.example.com")
    for name in _OPTIONAL_ENV:
        monkeypatch.delenv(name, raising=False)
