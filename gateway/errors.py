"""Error taxonomy shared by the router, the dispatcher and completion providers."""

from enum import Enum


class ErrorCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"


_HTTP_STATUS_BY_CODE = {
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.PROVIDER_ERROR: 502,
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.NOT_FOUND: 404,
}


class GatewayError(Exception):
    """Base error carrying a stable machine-readable code."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS_BY_CODE[self.code]


class ProviderError(GatewayError):
    """Failure reaching or decoding an upstream backend.

    ``status_code`` is the backend's HTTP status, or ``None`` when the call
    never produced a response (transport failure, timeout) or the response
    could not be decoded.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(ErrorCode.PROVIDER_ERROR, message)
        self.status_code = status_code


def create_error(code: ErrorCode, message: str) -> GatewayError:
    if code == ErrorCode.PROVIDER_ERROR:
        return ProviderError(message)
    return GatewayError(code, message)
