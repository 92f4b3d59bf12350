"""Forwarding of public requests to the session harness actor."""

import logging
from typing import AsyncIterator, Mapping
from urllib.parse import quote
import uuid

import httpx
from fastapi import Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from gateway.constants import DEFAULT_HARNESS_PATH, HARNESS_ACTOR_HEADER
from gateway.errors import ProviderError
from gateway.services.cors import merge_cors_headers


logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)
_EXCLUDED_REQUEST_HEADERS = HOP_BY_HOP_HEADERS | {"host"}
_EXCLUDED_RESPONSE_HEADERS = HOP_BY_HOP_HEADERS | {"content-length"}
_BODYLESS_METHODS = frozenset({"GET", "HEAD"})
_ACTOR_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "gateway://session-harness")


def derive_actor_address(name: str) -> str:
    """Map a logical actor name to its stable address."""
    normalized_name = name.strip()
    if normalized_name == "":
        raise ValueError("actor name must not be empty")
    return str(uuid.uuid5(_ACTOR_NAMESPACE, normalized_name))


def build_harness_path(path: str, prefix: str) -> str:
    if not path.startswith(prefix):
        raise ValueError(f"path {path} does not start with prefix {prefix}")
    suffix = path[len(prefix) :]
    if suffix == "":
        return DEFAULT_HARNESS_PATH
    if not suffix.startswith("/"):
        return f"/{suffix}"
    return suffix


def encoded_request_path(request: Request, prefix: str = "") -> str:
    """Return the request path with its percent-encoding intact."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.decode("latin-1").split("?", 1)[0]
        if path.startswith(prefix):
            return path
    return quote(request.scope["path"])


def encoded_query(request: Request) -> str:
    return request.scope.get("query_string", b"").decode("latin-1")


def build_target_url(base_url: str, path: str, query: str) -> str:
    url = f"{base_url.rstrip('/')}{path}"
    if query != "":
        return f"{url}?{query}"
    return url


def forwardable_request_headers(headers: Mapping[str, str]) -> list[tuple[str, str]]:
    return [
        (name, value)
        for name, value in headers.items()
        if name.lower() not in _EXCLUDED_REQUEST_HEADERS
    ]


def request_body(request: Request) -> AsyncIterator[bytes] | None:
    if request.method.upper() in _BODYLESS_METHODS:
        return None
    return request.stream()


async def send_streaming(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    headers: list[tuple[str, str]],
    body: bytes | AsyncIterator[bytes] | None,
    target_label: str,
) -> httpx.Response:
    upstream_request = client.build_request(method, url, headers=headers, content=body)
    try:
        return await client.send(upstream_request, stream=True)
    except httpx.HTTPError as exc:
        logger.error(
            "upstream_request_failed target=%s method=%s error_type=%s",
            target_label,
            method,
            type(exc).__name__,
        )
        raise ProviderError(
            f"{target_label} request failed: {type(exc).__name__}: {exc}"
        ) from exc


def relay_response(
    upstream: httpx.Response,
    cors_headers: Mapping[str, str],
) -> StreamingResponse:
    """Stream ``upstream`` back unchanged apart from hop-by-hop headers and CORS."""
    response = StreamingResponse(
        upstream.aiter_raw(),
        status_code=upstream.status_code,
        background=BackgroundTask(upstream.aclose),
    )
    for name, value in upstream.headers.multi_items():
        if name.lower() not in _EXCLUDED_RESPONSE_HEADERS:
            response.headers.append(name, value)
    merge_cors_headers(response.headers, cors_headers)
    return response


class HarnessStub:
    """Handle on one addressed harness actor."""

    def __init__(
        self,
        address: str,
        base_url: str,
        client: httpx.AsyncClient,
        default_headers: Mapping[str, str],
    ) -> None:
        self.address = address
        self._base_url = base_url
        self._client = client
        self._default_headers = dict(default_headers)

    async def fetch(
        self,
        method: str,
        path: str,
        query: str,
        headers: list[tuple[str, str]],
        body: bytes | AsyncIterator[bytes] | None,
    ) -> httpx.Response:
        overridden = {name.lower() for name in self._default_headers}
        overridden.add(HARNESS_ACTOR_HEADER.lower())
        outbound_headers = [
            (name, value) for name, value in headers if name.lower() not in overridden
        ]
        outbound_headers.extend(self._default_headers.items())
        outbound_headers.append((HARNESS_ACTOR_HEADER, self.address))
        url = build_target_url(self._base_url, path, query)
        return await send_streaming(
            self._client,
            method,
            url,
            outbound_headers,
            body,
            target_label="Harness",
        )


class HarnessLocator:
    """Lookup capability from actor name to actor handle."""

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

    def get(self, name: str) -> HarnessStub:
        address = derive_actor_address(name)
        logger.info("harness_actor_resolved name=%s address=%s", name, address)
        return HarnessStub(address, self._base_url, self._client, self._default_headers)


class SessionHarnessDispatcher:
    """Reshapes public requests into actor requests and relays the answer."""

    def __init__(self, locator: HarnessLocator, actor_name: str) -> None:
        self._stub = locator.get(actor_name)

    @property
    def stub(self) -> HarnessStub:
        return self._stub

    async def dispatch(
        self,
        request: Request,
        prefix: str,
        cors_headers: Mapping[str, str],
    ) -> StreamingResponse:
        harness_path = build_harness_path(encoded_request_path(request, prefix), prefix)
        upstream = await self._stub.fetch(
            request.method,
            harness_path,
            encoded_query(request),
            forwardable_request_headers(request.headers),
            request_body(request),
        )
        logger.info(
            "harness_dispatch_completed prefix=%s harness_path=%s method=%s status=%s",
            prefix,
            harness_path,
            request.method,
            upstream.status_code,
        )
        return relay_response(upstream, cors_headers)
