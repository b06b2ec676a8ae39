"""
Error Codes and Exceptions.

Every failure surfaced to a caller is a NarrateError carrying an HTTP
status, a machine-readable code and optional upstream detail. The API
layer turns it into a JSON body with to_dict().

Taxonomy:
    InvalidInputError   400  missing/empty field, bad voice id
    ConfigurationError  500  required environment configuration missing
    UpstreamError       *    TTS or storage returned a non-success status;
                             the upstream status is passed through

SynthesisPending is not a NarrateError: a synthesis call that
outlives its deadline is a "come back later" outcome (HTTP 202), not a
failure.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    """Standardized error codes for API responses."""
    INVALID_INPUT = "INVALID_INPUT"         # Bad request data
    CONFIG_MISSING = "CONFIG_MISSING"       # Environment not configured
    UPSTREAM_FAILED = "UPSTREAM_FAILED"     # TTS or storage non-success
    INTERNAL_ERROR = "INTERNAL_ERROR"       # Unexpected error


class NarrateError(Exception):
    """
    Base exception for narration errors.

    Attributes:
        message: Human-readable error message.
        code: Error code from ErrorCode.
        status_code: HTTP status to answer with.
        detail: Optional diagnostic text (e.g. upstream response body).
    """

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        detail: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON error body."""
        result: Dict[str, Any] = {
            "ok": False,
            "error": self.message,
            "code": self.code,
        }
        if self.detail is not None:
            result["detail"] = self.detail
        return result


class InvalidInputError(NarrateError):
    """Raised when the request body is missing required data."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, ErrorCode.INVALID_INPUT, 400, detail)


class ConfigurationError(NarrateError):
    """Raised when required configuration is absent. Operators must fix it."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, ErrorCode.CONFIG_MISSING, 500, detail)


class UpstreamError(NarrateError):
    """
    Raised when the TTS or storage service answers with a non-success status.

    A status outside the 4xx/5xx range (an unexpected redirect, say) is
    reported as 502 so the caller never sees a "successful" error.
    """

    def __init__(self, message: str, status_code: int, detail: Optional[str] = None):
        if not 400 <= status_code <= 599:
            status_code = 502
        super().__init__(message, ErrorCode.UPSTREAM_FAILED, status_code, detail)


class SynthesisPending(Exception):
    """The TTS call did not finish before its deadline; retry the same request later."""

    def __init__(self, timeout_s: float):
        self.timeout_s = timeout_s
        super().__init__(f"synthesis did not complete within {timeout_s:g}s")
