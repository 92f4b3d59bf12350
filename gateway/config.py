"""Configuration loading with strict required environment variables."""

from dataclasses import dataclass
import logging
import os

from dotenv import load_dotenv

from gateway.constants import (
    ALLOWED_COMPLETION_PROVIDERS,
    DEFAULT_GATEWAY_PORT,
    DEFAULT_HARNESS_ACTOR_NAME,
    DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessCredentials:
    """Credential pair presented to a trusted reverse-proxy hop."""

    client_id: str
    client_secret: str

    def __repr__(self) -> str:
        return f"AccessCredentials(client_id={self.client_id!r}, client_secret='***')"


@dataclass(frozen=True)
class CompletionProviderProfile:
    """Optional completion backend selected through the environment."""

    provider: str
    api_key: str
    model: str | None
    base_url: str | None
    timeout_seconds: float

    def __repr__(self) -> str:
        return (
            f"CompletionProviderProfile(provider={self.provider!r}, api_key='***', "
            f"model={self.model!r}, base_url={self.base_url!r}, "
            f"timeout_seconds={self.timeout_seconds!r})"
        )


@dataclass(frozen=True)
class Settings:
    """Gateway settings loaded once from environment variables."""

    environment: str
    harness_url: str
    mcp_agent_url: str
    app_log_level: str
    api_token: str | None
    cors_allowed_origins: str
    harness_actor_name: str
    assets_dir: str | None
    upstream_timeout_seconds: float
    access_credentials: AccessCredentials | None
    gateway_port: int
    completion_provider: CompletionProviderProfile | None

    def __repr__(self) -> str:
        token_state = "set" if self.api_token else "unset"
        return (
            f"Settings(environment={self.environment!r}, harness_url={self.harness_url!r}, "
            f"mcp_agent_url={self.mcp_agent_url!r}, api_token={token_state})"
        )

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls(
            environment=_require_env("ENVIRONMENT"),
            harness_url=_require_env("HARNESS_URL").strip(),
            mcp_agent_url=_require_env("MCP_AGENT_URL").strip(),
            app_log_level=_require_env("APP_LOG_LEVEL"),
            api_token=_optional_env("HARNESS_API_TOKEN"),
            cors_allowed_origins=_optional_env("CORS_ALLOWED_ORIGINS") or "",
            harness_actor_name=(
                _optional_env("HARNESS_ACTOR_NAME") or DEFAULT_HARNESS_ACTOR_NAME
            ),
            assets_dir=_optional_env("ASSETS_DIR"),
            upstream_timeout_seconds=_parse_optional_float(
                "UPSTREAM_TIMEOUT_SECONDS",
                DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
            ),
            access_credentials=_parse_access_credentials(),
            gateway_port=_parse_optional_int("GATEWAY_PORT", DEFAULT_GATEWAY_PORT),
            completion_provider=_parse_completion_provider_profile(),
        )
        if settings.api_token is None:
            logger.warning("api_token_missing protected_mounts=fail_closed")
        logger.info(
            "settings_loaded environment=%s harness_url=%s assets_configured=%s",
            settings.environment,
            settings.harness_url,
            settings.assets_dir is not None,
        )
        return settings


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        raise ValueError(f"Missing required environment variable: {name}")
    return value


def _optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value


def _parse_optional_int(name: str, default: int) -> int:
    raw_value = _optional_env(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ValueError(
            f"Invalid integer for environment variable {name}: {raw_value}"
        ) from exc


def _parse_optional_float(name: str, default: float) -> float:
    raw_value = _optional_env(name)
    if raw_value is None:
        return default
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise ValueError(
            f"Invalid float for environment variable {name}: {raw_value}"
        ) from exc
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero")
    return value


def _parse_access_credentials() -> AccessCredentials | None:
    client_id = _optional_env("ACCESS_CLIENT_ID")
    client_secret = _optional_env("ACCESS_CLIENT_SECRET")
    if client_id is None and client_secret is None:
        return None
    if client_id is None or client_secret is None:
        raise ValueError(
            "ACCESS_CLIENT_ID and ACCESS_CLIENT_SECRET must be set together"
        )
    logger.info("access_credentials_configured client_id=%s", client_id)
    return AccessCredentials(client_id=client_id, client_secret=client_secret)


def _parse_completion_provider_profile() -> CompletionProviderProfile | None:
    provider = _optional_env("LLM_PROVIDER")
    if provider is None:
        return None
    provider = provider.strip()
    if provider not in ALLOWED_COMPLETION_PROVIDERS:
        raise ValueError(
            f"LLM_PROVIDER must be one of: {', '.join(ALLOWED_COMPLETION_PROVIDERS)}"
        )
    profile = CompletionProviderProfile(
        provider=provider,
        api_key=_require_env("LLM_API_KEY"),
        model=_optional_env("LLM_MODEL"),
        base_url=_optional_env("LLM_BASE_URL"),
        timeout_seconds=_parse_optional_float(
            "LLM_TIMEOUT_SECONDS",
            DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
        ),
    )
    logger.info(
        "validated_completion_provider provider=%s model=%s base_url=%s",
        profile.provider,
        profile.model,
        profile.base_url,
    )
    return profile


def load_environment_from_dotenv(dotenv_path: str) -> bool:
    if dotenv_path.strip() == "":
        raise ValueError("dotenv_path must not be empty")
    loaded = load_dotenv(dotenv_path=dotenv_path, override=False)
    logger.info("dotenv_load_attempted dotenv_path=%s loaded=%s", dotenv_path, loaded)
    return loaded
