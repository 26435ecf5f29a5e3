"""Error taxonomy for bridged S3 operations.

Handlers classify every failure into one of the kinds below right after the
request returns. The structured exception travels up to the caller; only the
outermost boundary (the CLI) turns it into text.
"""

from enum import Enum
from typing import Any, Optional

from botocore.exceptions import ClientError, HTTPClientError
from botocore.exceptions import ConnectionError as BotoConnectionError


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    DISPATCH_FAILURE = "dispatch_failure"
    BACKEND_ERROR = "backend_error"
    CONFIG_ERROR = "config_error"


class S3BridgeError(Exception):
    """Base class for all classified failures."""

    kind: ErrorKind = ErrorKind.BACKEND_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigError(S3BridgeError):
    """A required endpoint or credential is missing from both overrides and environment."""

    kind = ErrorKind.CONFIG_ERROR


class NotFoundError(S3BridgeError):
    kind = ErrorKind.NOT_FOUND


class AccessDeniedError(S3BridgeError):
    kind = ErrorKind.ACCESS_DENIED


class DispatchFailureError(S3BridgeError):
    """The request never got an application-level response from the backend."""

    kind = ErrorKind.DISPATCH_FAILURE


class BackendError(S3BridgeError):
    """The backend answered but rejected or could not fulfil the request."""

    kind = ErrorKind.BACKEND_ERROR


# Transport-level failures: unreachable endpoint, DNS, timeouts, dropped connections
DISPATCH_EXCEPTIONS = (BotoConnectionError, HTTPClientError)


def is_dispatch_failure(exc: BaseException) -> bool:
    return isinstance(exc, DISPATCH_EXCEPTIONS)


def error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "") or ""


def error_message(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Message", "") or ""


def describe(exc: BaseException, operation: Optional[str] = None, **context: Any) -> str:
    """Build a single-line failure description with resource context."""
    parts = [f"{operation} failed" if operation else "S3 request failed"]
    resource = ", ".join(f"{name}={value!r}" for name, value in context.items() if value is not None)
    if resource:
        parts.append(f"({resource})")
    return f"{' '.join(parts)}: {exc}"
