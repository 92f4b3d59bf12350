"""Top-level request classification for the edge gateway."""

from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Callable, Mapping

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from gateway.config import Settings
from gateway.constants import AGENT_PREFIX, API_PREFIX, HEALTH_PATH, MCP_PREFIX
from gateway.errors import ErrorCode, create_error
from gateway.services.assets import AssetFetcher
from gateway.services.authorization import is_authorized, unauthorized_response
from gateway.services.cors import CorsPolicy, merge_cors_headers, preflight_response
from gateway.services.harness_dispatcher import SessionHarnessDispatcher
from gateway.services.protocol_mount import ProtocolMount
from gateway.services.scheduled import (
    ExecutionContext,
    JobHandler,
    ScheduledTrigger,
    route_scheduled,
)


logger = logging.getLogger(__name__)


class PathClass(str, Enum):
    PREFLIGHT = "preflight"
    HEALTH = "health"
    API = "api"
    MCP = "mcp"
    AGENT = "agent"
    ASSET = "asset"


def classify_request(method: str, path: str) -> PathClass:
    """Pick the handling class; earlier rules win."""
    if method.upper() == "OPTIONS":
        return PathClass.PREFLIGHT
    if path == HEALTH_PATH:
        return PathClass.HEALTH
    if path.startswith(API_PREFIX):
        return PathClass.API
    if path.startswith(MCP_PREFIX):
        return PathClass.MCP
    if path.startswith(AGENT_PREFIX):
        return PathClass.AGENT
    return PathClass.ASSET


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


class EdgeRouter:
    """Composes the guard, CORS policy, dispatcher and collaborators per request."""

    def __init__(
        self,
        settings: Settings,
        dispatcher: SessionHarnessDispatcher,
        protocol_mount: ProtocolMount,
        assets: AssetFetcher,
        job_handler: JobHandler,
        execution_context: ExecutionContext,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._settings = settings
        self._cors_policy = CorsPolicy.from_config(settings.cors_allowed_origins)
        self._dispatcher = dispatcher
        self._protocol_mount = protocol_mount
        self._assets = assets
        self._job_handler = job_handler
        self._execution_context = execution_context
        self._clock = clock

    def cors_headers_for(self, request: Request) -> Mapping[str, str]:
        return self._cors_policy.resolve(request.headers.get("Origin"))

    async def route(self, request: Request) -> Response:
        cors_headers = self.cors_headers_for(request)
        path = request.scope["path"]
        path_class = classify_request(request.method, path)
        logger.info(
            "edge_route_classified path_class=%s method=%s path=%s",
            path_class.value,
            request.method,
            path,
        )

        if path_class == PathClass.PREFLIGHT:
            return preflight_response(cors_headers)
        if path_class == PathClass.HEALTH:
            return self._health_response()
        if path_class == PathClass.API:
            return await self._dispatcher.dispatch(request, API_PREFIX, cors_headers)
        if path_class == PathClass.MCP:
            if not is_authorized(request, self._settings.api_token):
                return unauthorized_response()
            response = await self._protocol_mount.handle(request)
            merge_cors_headers(response.headers, cors_headers)
            return response
        if path_class == PathClass.AGENT:
            return await self._dispatcher.dispatch(request, AGENT_PREFIX, cors_headers)

        response = await self._assets.fetch(request)
        merge_cors_headers(response.headers, cors_headers)
        return response

    def route_scheduled(self, trigger: ScheduledTrigger) -> None:
        route_scheduled(trigger, self._job_handler, self._execution_context)

    async def route_scheduled_request(self, request: Request) -> Response:
        if not is_authorized(request, self._settings.api_token):
            return unauthorized_response()
        cron = request.query_params.get("cron", "").strip()
        if cron == "":
            raise create_error(ErrorCode.INVALID_INPUT, "cron query parameter is required")
        self.route_scheduled(ScheduledTrigger(cron=cron, scheduled_time=self._clock()))
        return JSONResponse(status_code=202, content={"status": "accepted", "cron": cron})

    def _health_response(self) -> JSONResponse:
        return JSONResponse(
            content={
                "status": "ok",
                "timestamp": format_timestamp(self._clock()),
                "environment": self._settings.environment,
            }
        )
