"""Static asset fallback for paths no other route claims."""

import logging
from typing import Protocol

from fastapi import Request, Response
from fastapi.staticfiles import StaticFiles

from gateway.errors import ErrorCode, create_error


logger = logging.getLogger(__name__)


class AssetFetcher(Protocol):
    async def fetch(self, request: Request) -> Response:
        """Serve a static asset for the request path."""


class StaticAssetFetcher:
    """Serves files from a directory, ``index.html`` for directory paths."""

    def __init__(self, directory: str) -> None:
        self._static_files = StaticFiles(directory=directory, html=True)
        logger.info("static_assets_configured directory=%s", directory)

    async def fetch(self, request: Request) -> Response:
        path = self._static_files.get_path(request.scope)
        return await self._static_files.get_response(path, request.scope)


class MissingAssetFetcher:
    """Fallback used when no asset directory is configured."""

    async def fetch(self, request: Request) -> Response:
        logger.info("static_asset_unavailable path=%s", request.url.path)
        raise create_error(ErrorCode.NOT_FOUND, "Not found")
