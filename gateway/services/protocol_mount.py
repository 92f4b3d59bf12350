"""Authenticated protocol mount served behind ``/mcp``."""

import logging
from typing import Mapping, Protocol

import httpx
from fastapi import Request, Response

from gateway.services.cors import NO_CORS_HEADERS
from gateway.services.harness_dispatcher import (
    build_target_url,
    encoded_query,
    encoded_request_path,
    forwardable_request_headers,
    relay_response,
    request_body,
    send_streaming,
)


logger = logging.getLogger(__name__)


class ProtocolMount(Protocol):
    async def handle(self, request: Request) -> Response:
        """Serve one already-authorized protocol request."""


class HttpProtocolMount:
    """Forwards protocol traffic, path included, to the protocol agent service."""

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient,
        default_headers: Mapping[str, str] | None = None,
    ) -> None:
        if base_url.strip() == "":
            raise ValueError("base_url must not be empty")
        self._base_url = base_url.strip()
        self._client = client
        self._default_headers = dict(default_headers or {})

    async def handle(self, request: Request) -> Response:
        overridden = {name.lower() for name in self._default_headers}
        headers = [
            (name, value)
            for name, value in forwardable_request_headers(request.headers)
            if name.lower() not in overridden
        ]
        headers.extend(self._default_headers.items())
        url = build_target_url(
            self._base_url, encoded_request_path(request), encoded_query(request)
        )
        upstream = await send_streaming(
            self._client,
            request.method,
            url,
            headers,
            request_body(request),
            target_label="Protocol mount",
        )
        logger.info(
            "protocol_mount_forwarded path=%s method=%s status=%s",
            request.url.path,
            request.method,
            upstream.status_code,
        )
        return relay_response(upstream, NO_CORS_HEADERS)
