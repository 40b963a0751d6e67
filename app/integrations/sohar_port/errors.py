"""
Sohar Port error taxonomy.

Every transport failure is turned into exactly one SoharPortError variant by
map_transport_failure(). Each variant carries an ErrorKind tag so operation
boundaries can `match` on the kind instead of chaining isinstance checks.

    kind           status   error_code         retryable
    NETWORK        0        NETWORK_ERROR      yes
    AUTH           401/403  AUTH_ERROR         no
    VALIDATION     400      VALIDATION_ERROR   no
    NOT_FOUND      404      NOT_FOUND          no
    UNKNOWN        other    body errorCode or  only if status >= 500 or 0
                            UNKNOWN_ERROR

SoharPortConfigError is outside the hierarchy: it is raised at
client construction time and is never converted into a result object.
"""

from __future__ import annotations

import enum
from typing import Any

import requests

ERROR_MESSAGES = {
    "NETWORK_ERROR": "Failed to connect to Sohar Port API",
    "TIMEOUT_ERROR": "Request to Sohar Port API timed out",
    "AUTH_ERROR": "Authentication failed with Sohar Port API",
    "VALIDATION_ERROR": "Invalid request data",
    "NOT_FOUND": "Gate pass not found in Sohar Port system",
    "UNKNOWN_ERROR": "An unknown error occurred",
    "DEADLINE_EXCEEDED": "Sohar Port call deadline exceeded",
    "MALFORMED_RESPONSE": "Unexpected response format from Sohar Port API",
}


class ErrorKind(enum.Enum):
    NETWORK = "network"
    AUTH = "auth"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class SoharPortConfigError(Exception):
    """Raised when the gateway configuration cannot work (missing URL/key etc.)."""


class SoharPortError(Exception):
    """Base Sohar Port failure; used directly for the generic/unknown case.

    Args:
        message:     Human-readable explanation.
        status_code: HTTP status, or 0 when no response was received.
        error_code:  Machine-readable code surfaced to callers as `error`.
        details:     Optional response body / diagnostic payload.
    """

    kind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        error_code: str = "UNKNOWN_ERROR",
        details: Any = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return not self.status_code or self.status_code >= 500

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} status={self.status_code} "
            f"code={self.error_code} message={self.message!r}>"
        )


class SoharPortNetworkError(SoharPortError):
    """Connection refused, DNS failure, timeout: no HTTP response received."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, 0, "NETWORK_ERROR", details)

    @property
    def retryable(self) -> bool:
        return True


class SoharPortAuthError(SoharPortError):
    kind = ErrorKind.AUTH

    def __init__(self, message: str, status_code: int = 401, details: Any = None) -> None:
        super().__init__(message, status_code, "AUTH_ERROR", details)

    @property
    def retryable(self) -> bool:
        return False


class SoharPortValidationError(SoharPortError):
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, 400, "VALIDATION_ERROR", details)

    @property
    def retryable(self) -> bool:
        return False


class SoharPortNotFoundError(SoharPortError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, 404, "NOT_FOUND", details)

    @property
    def retryable(self) -> bool:
        return False


def failure_fields(exc: SoharPortError, fallback_message: str) -> dict:
    """Result-object fields for a failed operation.

    A status of 0 (no HTTP response) is reported as 500 to callers; the
    error code still tells network failures apart.
    """
    return {
        "success": False,
        "status_code": exc.status_code or 500,
        "message": exc.message or fallback_message,
        "error": exc.error_code,
    }


def _response_body(resp: requests.Response) -> Any:
    """Parsed JSON body when possible, else up to 500 chars of text."""
    try:
        return resp.json()
    except ValueError:
        return resp.text[:500] if resp.text else None


def _body_field(body: Any, key: str) -> Any:
    return body.get(key) if isinstance(body, dict) else None


def map_transport_failure(exc: requests.RequestException) -> SoharPortError:
    """Classify a raw `requests` failure into exactly one taxonomy variant."""
    if isinstance(exc, requests.Timeout):
        return SoharPortNetworkError(
            ERROR_MESSAGES["TIMEOUT_ERROR"],
            details={"code": "TIMEOUT", "original_error": str(exc)[:500]},
        )
    if isinstance(exc, requests.ConnectionError):
        return SoharPortNetworkError(
            ERROR_MESSAGES["NETWORK_ERROR"],
            details={"code": "CONNECTION_ERROR", "original_error": str(exc)[:500]},
        )

    resp = exc.response
    if resp is None:
        return SoharPortError(
            str(exc)[:500] or ERROR_MESSAGES["UNKNOWN_ERROR"],
            0,
            "UNKNOWN_ERROR",
            {"original_error": type(exc).__name__},
        )

    status = resp.status_code
    body = _response_body(resp)
    body_message = _body_field(body, "message")

    match status:
        case 401 | 403:
            return SoharPortAuthError(body_message or ERROR_MESSAGES["AUTH_ERROR"], status, body)
        case 400:
            return SoharPortValidationError(body_message or ERROR_MESSAGES["VALIDATION_ERROR"], body)
        case 404:
            return SoharPortNotFoundError(body_message or ERROR_MESSAGES["NOT_FOUND"], body)
        case _:
            return SoharPortError(
                body_message or ERROR_MESSAGES["UNKNOWN_ERROR"],
                status,
                _body_field(body, "errorCode") or "UNKNOWN_ERROR",
                body,
            )


def map_unexpected_failure(exc: Exception) -> SoharPortError:
    """Wrap a non-`requests` error raised while sending (bad adapter input etc.)."""
    return SoharPortError(
        ERROR_MESSAGES["UNKNOWN_ERROR"],
        0,
        "UNKNOWN_ERROR",
        {"original_error": type(exc).__name__, "detail": str(exc)[:500]},
    )


def malformed_body_error(body: Any) -> SoharPortError:
    """A 2xx response whose body does not have the documented shape."""
    return SoharPortError(
        ERROR_MESSAGES["MALFORMED_RESPONSE"],
        502,
        "UNKNOWN_ERROR",
        {"body_type": type(body).__name__},
    )
