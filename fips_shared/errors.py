"""
Shared error handling for the FIPS frontend.

CMS errors are raised inside the CMS client's request helper and absorbed at
the client boundary; they never reach page handlers.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from .logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class FrontendException(Exception):
    """Base exception for the frontend."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(FrontendException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class CmsError(FrontendException):
    """Base class for failed CMS calls."""

    def __init__(self, code: str, endpoint: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.endpoint = endpoint
        super().__init__(code, f"cms {endpoint}: {message}", details)


class CmsTransportError(CmsError):
    """Connection refused, timeout, DNS failure."""

    def __init__(self, endpoint: str, message: str = "Transport error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CMS_TRANSPORT_ERROR", endpoint, message, details)


class CmsStatusError(CmsError):
    """CMS answered with a non-success status."""

    def __init__(self, endpoint: str, status_code: int, details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        super().__init__(
            "CMS_STATUS_ERROR",
            endpoint,
            f"Unexpected status {status_code}",
            {"status_code": status_code, **(details or {})},
        )


class CmsDeserializationError(CmsError):
    """Response body was not valid JSON or did not match the expected shape."""

    def __init__(self, endpoint: str, message: str = "Malformed response", details: Optional[Dict[str, Any]] = None):
        super().__init__("CMS_DESERIALIZATION_ERROR", endpoint, message, details)
