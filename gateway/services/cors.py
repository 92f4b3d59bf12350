"""CORS policy resolution from the request origin and a configured allow-list."""

from dataclasses import dataclass
import logging
import re
from types import MappingProxyType
from typing import Mapping, MutableMapping

from fastapi import Response

from gateway.constants import (
    CORS_ALLOWED_HEADERS,
    CORS_ALLOWED_METHODS,
    CORS_MAX_AGE_SECONDS,
    CORS_WILDCARD,
)


logger = logging.getLogger(__name__)
_LOOPBACK_ORIGIN_PATTERN = re.compile(r"^http://(localhost|127\.0\.0\.1):\d+$")
NO_CORS_HEADERS: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True)
class CorsPolicy:
    """Parsed allow-list; resolving it is a pure function of the origin."""

    allowed_origins: frozenset[str]

    @classmethod
    def from_config(cls, allow_list: str) -> "CorsPolicy":
        origins = (origin.strip() for origin in allow_list.split(","))
        return cls(allowed_origins=frozenset(origin for origin in origins if origin != ""))

    @property
    def allows_all(self) -> bool:
        return CORS_WILDCARD in self.allowed_origins

    def is_allowed(self, origin: str | None) -> bool:
        if origin is None or origin == "":
            return False
        if _LOOPBACK_ORIGIN_PATTERN.match(origin):
            return True
        return origin in self.allowed_origins or self.allows_all

    def resolve(self, origin: str | None) -> Mapping[str, str]:
        if not self.is_allowed(origin):
            return NO_CORS_HEADERS
        # Echo the origin instead of "*" so credentialed requests keep working.
        return MappingProxyType(
            {
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Methods": CORS_ALLOWED_METHODS,
                "Access-Control-Allow-Headers": CORS_ALLOWED_HEADERS,
                "Access-Control-Max-Age": CORS_MAX_AGE_SECONDS,
            }
        )


def resolve_cors_headers(origin: str | None, allow_list: str) -> Mapping[str, str]:
    return CorsPolicy.from_config(allow_list).resolve(origin)


def merge_cors_headers(
    headers: MutableMapping[str, str],
    cors_headers: Mapping[str, str],
) -> MutableMapping[str, str]:
    """Overlay CORS headers onto ``headers``; CORS wins on case-insensitive collision."""
    overridden = {name.lower() for name in cors_headers}
    for name in {name for name in headers if name.lower() in overridden}:
        del headers[name]
    headers.update(cors_headers)
    return headers


def preflight_response(cors_headers: Mapping[str, str]) -> Response:
    logger.debug("cors_preflight_answered allowed=%s", len(cors_headers) > 0)
    return Response(status_code=204, headers=dict(cors_headers))
