"""Shared immutable constants for routing, headers and provider endpoints."""

API_PREFIX = "/api"
AGENT_PREFIX = "/agent"
MCP_PREFIX = "/mcp"
HEALTH_PATH = "/health"
SCHEDULED_PATH = "/__scheduled"
DEFAULT_HARNESS_PATH = "/status"
HARNESS_CRON_PATH = "/cron"

DEFAULT_HARNESS_ACTOR_NAME = "main"
HARNESS_ACTOR_HEADER = "X-Harness-Actor"
ACCESS_CLIENT_ID_HEADER = "CF-Access-Client-Id"
ACCESS_CLIENT_SECRET_HEADER = "CF-Access-Client-Secret"

CORS_WILDCARD = "*"
CORS_ALLOWED_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_ALLOWED_HEADERS = "Content-Type, Authorization"
CORS_MAX_AGE_SECONDS = "86400"

PROVIDER_ZAI = "zai"
PROVIDER_OPENAI_COMPATIBLE = "openai_compatible"

ALLOWED_COMPLETION_PROVIDERS = (
    PROVIDER_ZAI,
    PROVIDER_OPENAI_COMPATIBLE,
)

ZAI_API_BASE_URL = "https://api.z.ai/api/coding/paas/v4"
ZAI_DEFAULT_MODEL = "GLM-4.7"

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1024
DEFAULT_UPSTREAM_TIMEOUT_SECONDS = 30.0
DEFAULT_GATEWAY_PORT = 8787
