"""FastAPI application entrypoint."""

from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
import logging
from typing import AsyncIterator, Callable

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from gateway.config import AccessCredentials, Settings, load_environment_from_dotenv
from gateway.constants import (
    ACCESS_CLIENT_ID_HEADER,
    ACCESS_CLIENT_SECRET_HEADER,
    SCHEDULED_PATH,
)
from gateway.errors import ErrorCode, GatewayError
from gateway.logging_config import configure_logging
from gateway.services.assets import AssetFetcher, MissingAssetFetcher, StaticAssetFetcher
from gateway.services.completion_models import CompletionProvider
from gateway.services.cors import merge_cors_headers
from gateway.services.edge_router import EdgeRouter
from gateway.services.harness_dispatcher import HarnessLocator, SessionHarnessDispatcher
from gateway.services.protocol_mount import HttpProtocolMount, ProtocolMount
from gateway.services.provider_registry import build_provider_from_profile
from gateway.services.scheduled import ExecutionContext, HarnessJobHandler, JobHandler


logger = logging.getLogger(__name__)
_EDGE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@dataclass(frozen=True)
class GatewayServices:
    http_client: httpx.AsyncClient
    dispatcher: SessionHarnessDispatcher
    protocol_mount: ProtocolMount
    assets: AssetFetcher
    job_handler: JobHandler
    execution_context: ExecutionContext
    completion_provider: CompletionProvider | None


def create_app() -> FastAPI:
    dotenv_loaded = load_environment_from_dotenv(".env")
    settings = Settings.from_env()
    configure_logging(settings.app_log_level)
    logger.info("application_startup_dotenv_loaded loaded=%s", dotenv_loaded)
    services = _build_services(settings)
    router = EdgeRouter(
        settings=settings,
        dispatcher=services.dispatcher,
        protocol_mount=services.protocol_mount,
        assets=services.assets,
        job_handler=services.job_handler,
        execution_context=services.execution_context,
    )
    # The catch-all route owns every path.
    application = FastAPI(
        title="Harness Edge Gateway",
        lifespan=_build_lifespan(services),
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    application.state.edge_router = router
    application.state.completion_provider = services.completion_provider
    _register_error_handlers(application)
    _register_routes(application, router)
    return application


def _build_services(settings: Settings) -> GatewayServices:
    http_client = httpx.AsyncClient(timeout=settings.upstream_timeout_seconds)
    default_headers = _build_access_headers(settings.access_credentials)
    locator = HarnessLocator(settings.harness_url, http_client, default_headers)
    dispatcher = SessionHarnessDispatcher(locator, settings.harness_actor_name)
    completion_provider = None
    if settings.completion_provider is not None:
        completion_provider = build_provider_from_profile(settings.completion_provider)
    return GatewayServices(
        http_client=http_client,
        dispatcher=dispatcher,
        protocol_mount=HttpProtocolMount(settings.mcp_agent_url, http_client, default_headers),
        assets=_build_asset_fetcher(settings),
        job_handler=HarnessJobHandler(dispatcher.stub),
        execution_context=ExecutionContext(),
        completion_provider=completion_provider,
    )


def _build_access_headers(credentials: AccessCredentials | None) -> dict[str, str]:
    if credentials is None:
        return {}
    return {
        ACCESS_CLIENT_ID_HEADER: credentials.client_id,
        ACCESS_CLIENT_SECRET_HEADER: credentials.client_secret,
    }


def _build_asset_fetcher(settings: Settings) -> AssetFetcher:
    if settings.assets_dir is None:
        logger.info("static_assets_not_configured")
        return MissingAssetFetcher()
    return StaticAssetFetcher(settings.assets_dir)


def _build_lifespan(
    services: GatewayServices,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("application_started")
        yield
        await services.execution_context.drain()
        await services.http_client.aclose()
        logger.info("application_stopped")

    return lifespan


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        logger.info(
            "gateway_error_returned code=%s status=%s path=%s",
            exc.code.value,
            exc.http_status,
            request.url.path,
        )
        response = JSONResponse(
            status_code=exc.http_status,
            content={"error": exc.message, "code": exc.code.value},
        )
        if exc.code != ErrorCode.UNAUTHORIZED:
            router: EdgeRouter = request.app.state.edge_router
            merge_cors_headers(response.headers, router.cors_headers_for(request))
        return response


def _register_routes(app: FastAPI, router: EdgeRouter) -> None:
    @app.api_route(SCHEDULED_PATH, methods=["GET", "POST"])
    async def scheduled_trigger(request: Request) -> Response:
        return await router.route_scheduled_request(request)

    @app.api_route("/{full_path:path}", methods=_EDGE_METHODS)
    async def edge(request: Request) -> Response:
        return await router.route(request)
