"""
narrate-ms: Cached text-to-speech narration service.

Turns {title, campaign, text, voiceId?} into a durable URL for an MP3 in
object storage. The storage key is derived from the voice and the
canonicalized text, so repeated submissions of the same content are
answered from storage instead of calling the TTS provider again.

Key Features:
    - Single endpoint (/narrate) with permissive CORS
    - Content-addressed storage keys (cards/{12-hex}.mp3)
    - Public or private buckets (signed URLs with public-style fallback)
    - Bounded synthesis time: slow calls answer 202 "processing"
    - Structured logging and Prometheus metrics

Example Usage:
    >>> from narrate_ms.core.config import load_settings
    >>> from narrate_ms.services import NarrateService, NarrationRequest
    >>>
    >>> service = NarrateService(load_settings().get_service_config())
    >>> result = await service.narrate(
    ...     NarrationRequest(title="Card A", campaign="Camp1", text="Hello world")
    ... )
    >>> result.url
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
