"""GADS Bridge — Error taxonomy and standard error responses."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ErrorType(str, Enum):
    AUTH = "AUTH"
    VALIDATION = "VALIDATION"
    RATE_LIMIT = "RATE_LIMIT"
    NOT_FOUND = "NOT_FOUND"
    UPSTREAM = "UPSTREAM"
    UNKNOWN = "UNKNOWN"


class ErrorDetail(BaseModel):
    type: ErrorType
    message: str
    upstream_code: Optional[str] = None
    retry_after_seconds: Optional[float] = None


class ErrorResponse(BaseModel):
    """Body returned to callers for any failed request."""

    error: ErrorDetail


def create_error_response(
    error_type: ErrorType,
    message: str,
    upstream_code: Optional[str] = None,
    retry_after_seconds: Optional[float] = None,
) -> ErrorResponse:
    """Build a standardized error response."""
    return ErrorResponse(
        error=ErrorDetail(
            type=error_type,
            message=message,
            upstream_code=upstream_code or None,
            retry_after_seconds=retry_after_seconds or None,
        )
    )


class GoogleAdsAPIError(Exception):
    """Raised when the Google Ads API (or its credentials) fail."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_type: ErrorType = ErrorType.UPSTREAM,
        upstream_code: Optional[str] = None,
        retry_after_seconds: Optional[float] = None,
    ):
        self.status_code = status_code
        self.error_type = error_type
        self.upstream_code = upstream_code
        self.retry_after_seconds = retry_after_seconds
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)

    def to_response(self) -> ErrorResponse:
        return create_error_response(
            self.error_type,
            self.message,
            self.upstream_code,
            self.retry_after_seconds,
        )
