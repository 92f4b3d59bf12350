import os

import pytest

from gateway.config import Settings, load_environment_from_dotenv


def test_missing_environment_tag_raises(
    required_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("ENVIRONMENT", raising=False)

    with pytest.raises(
        ValueError,
        match="Missing required environment variable: ENVIRONMENT",
    ):
        Settings.from_env()


def test_blank_harness_url_raises(
    required_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("HARNESS_URL", "   ")

    with pytest.raises(
        ValueError,
        match="Missing required environment variable: HARNESS_URL",
    ):
        Settings.from_env()


def test_settings_from_env_success_with_defaults(required_env: None) -> None:
    settings = Settings.from_env()

    assert settings.environment == "test"
    assert settings.harness_url == "http://harness.test"
    assert settings.mcp_agent_url == "http://mcp.test"
    assert settings.api_token == "test-api-token"
    assert settings.cors_allowed_origins == "https://dashboard.example.com"
    assert settings.harness_actor_name == "main"
    assert settings.assets_dir is None
    assert settings.upstream_timeout_seconds == 30.0
    assert settings.access_credentials is None
    assert settings.gateway_port == 8787
    assert settings.completion_provider is None


def test_missing_api_token_is_allowed(
    required_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("HARNESS_API_TOKEN", raising=False)

    settings = Settings.from_env()

    assert settings.api_token is None


def test_invalid_port_raises(
    required_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("GATEWAY_PORT", "not-a-port")

    with pytest.raises(
        ValueError,
        match="Invalid integer for environment variable GATEWAY_PORT: not-a-port",
    ):
        Settings.from_env()


def test_invalid_timeout_raises(
    required_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("UPSTREAM_TIMEOUT_SECONDS", "soon")

    with pytest.raises(
        ValueError,
        match="Invalid float for environment variable UPSTREAM_TIMEOUT_SECONDS: soon",
    ):
        Settings.from_env()


def test_non_positive_timeout_raises(
    required_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("UPSTREAM_TIMEOUT_SECONDS", "0")

    with pytest.raises(ValueError, match="UPSTREAM_TIMEOUT_SECONDS must be greater than zero"):
        Settings.from_env()


def test_access_credentials_require_both_values(
    required_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("ACCESS_CLIENT_ID", "client-id")

    with pytest.raises(
        ValueError,
        match="ACCESS_CLIENT_ID and ACCESS_CLIENT_SECRET must be set together",
    ):
        Settings.from_env()


def test_access_credentials_parsed(
    required_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("ACCESS_CLIENT_ID", "client-id")
    monkeypatch.setenv("ACCESS_CLIENT_SECRET", "client-secret")

    settings = Settings.from_env()

    assert settings.access_credentials is not None
    assert settings.access_credentials.client_id == "client-id"
    assert settings.access_credentials.client_secret == "client-secret"
    assert "client-secret" not in repr(settings.access_credentials)


def test_unknown_completion_provider_raises(
    required_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "unexpected_provider")
    monkeypatch.setenv("LLM_API_KEY", "llm-key")

    with pytest.raises(
        ValueError,
        match="LLM_PROVIDER must be one of: zai, openai_compatible",
    ):
        Settings.from_env()


def test_completion_provider_requires_api_key(
    required_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "zai")

    with pytest.raises(
        ValueError,
        match="Missing required environment variable: LLM_API_KEY",
    ):
        Settings.from_env()


def test_completion_provider_profile_parsed(
    required_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "zai")
    monkeypatch.setenv("LLM_API_KEY", "llm-secret-key")
    monkeypatch.setenv("LLM_MODEL", "GLM-4.6")
    monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "12.5")

    settings = Settings.from_env()

    profile = settings.completion_provider
    assert profile is not None
    assert profile.provider == "zai"
    assert profile.api_key == "llm-secret-key"
    assert profile.model == "GLM-4.6"
    assert profile.base_url is None
    assert profile.timeout_seconds == 12.5
    assert "llm-secret-key" not in repr(profile)


def test_settings_repr_hides_api_token(required_env: None) -> None:
    settings = Settings.from_env()

    assert "test-api-token" not in repr(settings)


def test_load_environment_from_dotenv_sets_environment(
    tmp_path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    dotenv_path = tmp_path / ".env"
    dotenv_path.write_text("HARNESS_URL=http://from-dotenv.test\n", encoding="utf-8")
    monkeypatch.delenv("HARNESS_URL", raising=False)

    loaded = load_environment_from_dotenv(str(dotenv_path))

    assert loaded is True
    assert os.getenv("HARNESS_URL") == "http://from-dotenv.test"


def test_load_environment_from_dotenv_rejects_empty_path() -> None:
    with pytest.raises(ValueError, match="dotenv_path must not be empty"):
        load_environment_from_dotenv(" ")
