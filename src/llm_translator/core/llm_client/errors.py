"""
Error classification for the LLM client package.

This module contains:
- APIErrorType enum for categorizing errors
- APIError dataclass for error information
- classify_error function mapping SDK and network exceptions to APIError
- to_client_error function turning an APIError into a raisable ClientError
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

import openai

from ..errors import (
    AuthenticationError,
    ClientError,
    ConnectionFailedError,
    MalformedResponseError,
    ProtocolError,
    RemoteRateLimitError,
    RequestRejectedError,
    RequestTimeoutError,
    ServerError,
)


class APIErrorType(str, Enum):
    """Types of API errors."""

    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    QUOTA_EXCEEDED = "quota_exceeded"
    NETWORK = "network"
    TIMEOUT = "timeout"
    INVALID_REQUEST = "invalid_request"
    SERVER_ERROR = "server_error"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


# Error types worth another attempt
TRANSIENT_ERROR_TYPES = frozenset(
    {APIErrorType.RATE_LIMIT, APIErrorType.NETWORK, APIErrorType.TIMEOUT, APIErrorType.SERVER_ERROR}
)


@dataclass
class APIError:
    """API error information."""

    error_type: APIErrorType
    message: str
    status_code: Optional[int] = None
    retry_after: Optional[float] = None
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()

    @property
    def is_transient(self) -> bool:
        return self.error_type in TRANSIENT_ERROR_TYPES


def _parse_retry_after(error: openai.APIStatusError) -> Optional[float]:
    try:
        value = error.response.headers.get("retry-after")
    except AttributeError:
        return None
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _classify_status_error(error: openai.APIStatusError) -> APIError:
    status = error.status_code
    message = str(error)

    if status in (401, 403):
        return APIError(APIErrorType.AUTHENTICATION, message, status)
    if status == 429:
        if getattr(error, "code", None) == "insufficient_quota":
            return APIError(APIErrorType.QUOTA_EXCEEDED, message, status)
        return APIError(APIErrorType.RATE_LIMIT, message, status, retry_after=_parse_retry_after(error))
    if status >= 500:
        return APIError(APIErrorType.SERVER_ERROR, message, status)
    return APIError(APIErrorType.INVALID_REQUEST, message, status)


def classify_error(error: Exception) -> APIError:
    """
    Classify exception into API error type.

    openai SDK exceptions are classified by their type and HTTP status;
    anything else falls back to the exception type and message keywords.

    Args:
        error: The exception to classify.

    Returns:
        APIError with classified error type.
    """
    # APITimeoutError subclasses APIConnectionError, check it first
    if isinstance(error, openai.APITimeoutError):
        return APIError(APIErrorType.TIMEOUT, str(error))
    if isinstance(error, openai.APIConnectionError):
        return APIError(APIErrorType.NETWORK, str(error))
    if isinstance(error, openai.APIResponseValidationError):
        return APIError(APIErrorType.MALFORMED_RESPONSE, str(error), getattr(error, "status_code", None))
    if isinstance(error, openai.APIStatusError):
        return _classify_status_error(error)

    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return APIError(APIErrorType.TIMEOUT, str(error) or "Request timed out")
    if isinstance(error, ConnectionError):
        return APIError(APIErrorType.NETWORK, str(error) or "Connection failed")

    error_str = str(error).lower()

    if any(keyword in error_str for keyword in ["unauthorized", "invalid api key", "authentication"]):
        return APIError(APIErrorType.AUTHENTICATION, str(error))

    if any(keyword in error_str for keyword in ["rate limit", "too many requests"]):
        return APIError(APIErrorType.RATE_LIMIT, str(error), retry_after=getattr(error, "retry_after", None))

    if any(keyword in error_str for keyword in ["quota", "billing"]):
        return APIError(APIErrorType.QUOTA_EXCEEDED, str(error))

    if any(keyword in error_str for keyword in ["network", "connection", "dns"]):
        return APIError(APIErrorType.NETWORK, str(error))

    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int) and status_code >= 500:
        return APIError(APIErrorType.SERVER_ERROR, str(error), status_code)

    return APIError(APIErrorType.UNKNOWN, str(error), status_code if isinstance(status_code, int) else None)


_ERROR_CLASSES = {
    APIErrorType.AUTHENTICATION: AuthenticationError,
    APIErrorType.QUOTA_EXCEEDED: RequestRejectedError,
    APIErrorType.NETWORK: ConnectionFailedError,
    APIErrorType.TIMEOUT: RequestTimeoutError,
    APIErrorType.INVALID_REQUEST: RequestRejectedError,
    APIErrorType.SERVER_ERROR: ServerError,
    APIErrorType.MALFORMED_RESPONSE: MalformedResponseError,
    APIErrorType.UNKNOWN: ProtocolError,
}


def to_client_error(api_error: APIError) -> ClientError:
    """Build the exception matching a classified error."""
    if api_error.error_type is APIErrorType.RATE_LIMIT:
        return RemoteRateLimitError(
            api_error.message, status_code=api_error.status_code or 429, retry_after=api_error.retry_after
        )
    error_cls = _ERROR_CLASSES[api_error.error_type]
    return error_cls(api_error.message, status_code=api_error.status_code)


__all__ = [
    "APIErrorType",
    "APIError",
    "TRANSIENT_ERROR_TYPES",
    "classify_error",
    "to_client_error",
]
