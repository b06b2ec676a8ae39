"""
narrate-ms Services Layer.

Business logic between the API layer and the narration clients:
    - narrate_service.py: NarrateService (cache-aware narration orchestrator)
    - validators.py: Input validation functions
"""
from narrate_ms.core.errors import (
    ConfigurationError,
    ErrorCode,
    InvalidInputError,
    NarrateError,
    SynthesisPending,
    UpstreamError,
)

from .narrate_service import (
    NarrateService,
    NarrationRequest,
    NarrationResult,
    NarrationStatus,
)

__all__ = [
    "NarrateService",
    "NarrationRequest",
    "NarrationResult",
    "NarrationStatus",
    "NarrateError",
    "InvalidInputError",
    "ConfigurationError",
    "UpstreamError",
    "SynthesisPending",
    "ErrorCode",
]
