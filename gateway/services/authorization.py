"""Bearer-token guard for the protected protocol mount."""

import logging
from typing import Any

from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)

_BEARER_PREFIX = "Bearer "
UNAUTHORIZED_MESSAGE = "Unauthorized. Requires: Authorization: Bearer <token>"


def constant_time_compare(candidate: str, expected: str) -> bool:
    """Compare two tokens without exiting early on the first differing character.

    Tokens of different length are rejected immediately; bearer tokens are
    fixed-format so their length is not treated as secret.
    """
    if len(candidate) != len(expected):
        return False
    return accumulate_mismatch(candidate, expected) == 0


def accumulate_mismatch(candidate: str, expected: str) -> int:
    if len(candidate) != len(expected):
        raise ValueError("accumulate_mismatch requires equal-length inputs")
    mismatch = 0
    for candidate_char, expected_char in zip(candidate, expected):
        mismatch |= ord(candidate_char) ^ ord(expected_char)
    return mismatch


def is_authorized(request: Any, api_token: str | None) -> bool:
    if not api_token:
        return False
    authorization = request.headers.get("Authorization")
    if authorization is None or not authorization.startswith(_BEARER_PREFIX):
        return False
    return constant_time_compare(authorization[len(_BEARER_PREFIX) :], api_token)


def unauthorized_response() -> JSONResponse:
    logger.info("authorization_rejected")
    return JSONResponse(status_code=401, content={"error": UNAUTHORIZED_MESSAGE})
