"""
Input Validation for the Narration Service.

Validation happens before any network call so a rejected request never
costs a storage probe or a synthesis.

Validation Rules:
    - title, campaign, text: Required, non-empty after trimming
    - voiceId: Optional; when present, 1-64 chars of [A-Za-z0-9_-]

All validation functions raise ValidationError with:
    - message: Human-readable error description
    - code: Machine-readable error code (e.g., "TEXT_REQUIRED")
"""
from __future__ import annotations

import re
from typing import Any, Optional

_VOICE_ID_RE = re.compile(r"^[A-Za-z0-9_\-]{1,64}$")


class ValidationError(Exception):
    """
    Exception raised when input validation fails.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code for programmatic handling.
    """

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


def validate_required(value: Any, field: str) -> str:
    """
    Validate a required string field.

    Returns:
        The value with surrounding whitespace removed.

    Raises:
        ValidationError: If the value is missing, not a string, or blank.
    """
    if value is None:
        raise ValidationError(f"{field} is required", f"{field.upper()}_REQUIRED")
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", f"{field.upper()}_INVALID_TYPE")
    stripped = value.strip()
    if not stripped:
        raise ValidationError(f"{field} must be non-empty", f"{field.upper()}_REQUIRED")
    return stripped


def validate_voice_id(voice_id: Any) -> Optional[str]:
    """
    Validate an optional voice identifier.

    The identifier becomes part of the TTS URL path and of the content
    hash, so only a conservative character set is accepted.

    Returns:
        The voice id, or None when absent or blank.
    """
    if voice_id is None:
        return None
    if not isinstance(voice_id, str):
        raise ValidationError("voiceId must be a string", "VOICE_ID_INVALID_TYPE")
    voice_id = voice_id.strip()
    if not voice_id:
        return None
    if not _VOICE_ID_RE.match(voice_id):
        raise ValidationError(
            "voiceId may only contain letters, digits, '_' and '-' (max 64)",
            "VOICE_ID_INVALID_FORMAT",
        )
    return voice_id
