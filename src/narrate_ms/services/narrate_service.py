"""
NarrateService - Cached Narration Pipeline.

This module provides the NarrateService class, which turns a
{title, campaign, text, voiceId?} submission into a URL for an MP3 in the
object store, synthesizing only when the content has never been narrated.

Pipeline:
    Validate → Canonicalize → Identify → Probe cache
        hit  → Resolve URL                                  → ready (200)
        miss → Synthesize (deadline) → Publish → Resolve URL → ready (200)
                  └─ deadline exceeded                        → processing (202)

Error Handling:
    - InvalidInputError: missing/blank fields (400), raised before any I/O
    - ConfigurationError: required settings absent (500)
    - UpstreamError: TTS or storage non-success, status passed through
    - NarrateError(INTERNAL_ERROR): anything unexpected (500)

There is no internal retry. A processing outcome tells the caller to
resubmit the identical payload; the content-derived key makes that safe.

Concurrency:
    Two requests for the same content may both miss the cache and both
    synthesize. The upload overwrites (x-upsert), so the last writer wins.
    This costs a duplicate TTS call, never a wrong file.

Example:
    >>> config = load_settings().get_service_config()
    >>> service = NarrateService(config)
    >>> result = await service.narrate(
    ...     NarrationRequest(title="Card A", campaign="Camp1", text="Hello world"),
    ...     request_id="req-123",
    ... )
    >>> result.url
    'https://project.supabase.co/storage/v1/object/public/audio/cards/....mp3'
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from narrate_ms.core.config import NarrateServiceConfig, Settings
from narrate_ms.core.errors import (
    ConfigurationError,
    ErrorCode,
    InvalidInputError,
    NarrateError,
    SynthesisPending,
    UpstreamError,
)
from narrate_ms.core.logging import debug, fail, get_logger, info, set_request_id, success, verbose, warn
from narrate_ms.core.metrics import metrics
from narrate_ms.narration.identity import ArtifactLocation, content_id, locate
from narrate_ms.narration.storage import StorageClient
from narrate_ms.narration.synthesis import SynthesisClient
from narrate_ms.services.validators import ValidationError, validate_required, validate_voice_id
from narrate_ms.utils.text import canonicalize_text, preview
from narrate_ms.utils.timeit import timeit

_LOG = get_logger("narrate-ms.service")

PROCESSING_HINT = "Synthesis is still running. Resubmit the same request in a few seconds."


# =============================================================================
# Request/Response Dataclasses
# =============================================================================

@dataclass
class NarrationRequest:
    """
    Incoming narration submission. Not persisted.

    Attributes:
        title: Card title (cosmetic, used in the suggested filename).
        campaign: Campaign name (cosmetic, used in the suggested filename).
        text: Text to narrate.
        voice_id: Optional voice override; defaults to the configured voice.
    """
    title: Any = None
    campaign: Any = None
    text: Any = None
    voice_id: Any = None


class NarrationStatus:
    READY = "ready"
    PROCESSING = "processing"


@dataclass
class NarrationResult:
    """
    Terminal non-error outcome of a narration request.

    Attributes:
        status: NarrationStatus.READY or NarrationStatus.PROCESSING.
        id: Content identifier.
        location: Object path and suggested filename.
        url: Access URL (None while processing).
        cached: True when no synthesis happened.
        bytes: Size of freshly generated audio (None on cache hits).
    """
    status: str
    id: str
    location: ArtifactLocation
    url: Optional[str] = None
    cached: bool = False
    bytes: Optional[int] = None

    @property
    def ready(self) -> bool:
        return self.status == NarrationStatus.READY

    def to_dict(self) -> Dict[str, Any]:
        """JSON body for the API response."""
        if not self.ready:
            return {
                "ok": False,
                "status": NarrationStatus.PROCESSING,
                "id": self.id,
                "hint": PROCESSING_HINT,
            }
        body: Dict[str, Any] = {
            "ok": True,
            "id": self.id,
            "url": self.url,
            "filename": self.location.filename,
        }
        if self.bytes is not None:
            body["bytes"] = self.bytes
        return body


# =============================================================================
# Main Service Class
# =============================================================================

class NarrateService:
    """
    Narration orchestrator: cache probe, synthesis, upload, URL resolution.

    The configuration is immutable and injected; the service holds no other
    mutable state besides the HTTP connection pool.

    Usage:
        service = NarrateService(config)
        result = await service.narrate(NarrationRequest(...), request_id="abc")
        await service.aclose()

    Args:
        config: Validated service configuration.
        client: Optional shared httpx.AsyncClient (tests pass one built on
            httpx.MockTransport). When omitted the service creates and
            owns its own client.
    """

    def __init__(self, config: NarrateServiceConfig, client: Optional[httpx.AsyncClient] = None):
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=config.storage.http_timeout_s,
            follow_redirects=False,
        )
        self._storage = StorageClient(config.storage, self._client)
        self._synthesizer = SynthesisClient(config.synthesis, self._client)
        self._text_preview_chars = config.logging.text_preview_chars

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> NarrateServiceConfig:
        return self._config

    @property
    def storage(self) -> StorageClient:
        return self._storage

    @property
    def synthesizer(self) -> SynthesisClient:
        return self._synthesizer

    def is_configured(self) -> bool:
        return not self._config.missing_required()

    async def aclose(self) -> None:
        """Close the HTTP client if this service created it."""
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # Validation
    # =========================================================================

    def _require_config(self) -> None:
        missing = self._config.missing_required()
        if missing:
            raise ConfigurationError("Missing environment variables", detail=", ".join(missing))

    def _validate(self, request: NarrationRequest) -> tuple[str, str, str, str]:
        """Return (title, campaign, text, voice) or raise InvalidInputError."""
        try:
            title = validate_required(request.title, "title")
            campaign = validate_required(request.campaign, "campaign")
            text = validate_required(request.text, "text")
            voice = validate_voice_id(request.voice_id) or self._config.synthesis.voice_id
        except ValidationError as e:
            raise InvalidInputError(e.message, detail=e.code) from e
        return title, campaign, text, voice

    # =========================================================================
    # Public API: narrate()
    # =========================================================================

    async def narrate(self, request: NarrationRequest, request_id: Optional[str] = None) -> NarrationResult:
        """
        Produce (or reuse) the narration for a request.

        Args:
            request: The submission.
            request_id: Tags every log line of this call; when omitted the
                caller's current request id is kept.

        Returns:
            NarrationResult, either ready with a URL or processing.

        Raises:
            InvalidInputError, ConfigurationError, UpstreamError, or
            NarrateError(INTERNAL_ERROR) for anything unexpected.
        """
        if request_id:
            set_request_id(request_id)
        try:
            result = await self._narrate(request)
        except InvalidInputError:
            metrics.record_outcome("rejected")
            raise
        except ConfigurationError:
            metrics.record_outcome("config_error")
            raise
        except UpstreamError as e:
            fail(_LOG, "upstream_failed", error=e.message, status=e.status_code)
            metrics.record_outcome("upstream_failure")
            raise
        except NarrateError:
            metrics.record_outcome("error")
            raise
        except Exception as e:
            fail(_LOG, "request_failed", error=str(e), error_type=type(e).__name__)
            metrics.record_outcome("error")
            raise NarrateError(str(e) or "server error", ErrorCode.INTERNAL_ERROR, 500) from e

        if not result.ready:
            metrics.record_outcome("processing")
        elif result.cached:
            metrics.record_outcome("cached")
        else:
            metrics.record_outcome("generated")
        return result

    async def _narrate(self, request: NarrationRequest) -> NarrationResult:
        self._require_config()
        title, campaign, text, voice = self._validate(request)

        canonical = canonicalize_text(text)
        narration_id = content_id(voice, canonical, self._config.narration.id_length)
        location = locate(narration_id, campaign, title, self._config.narration.folder)

        info(_LOG, "request", id=narration_id, chars=len(canonical),
             text_preview=preview(canonical, self._text_preview_chars))
        debug(_LOG, "resolved", voice=voice, path=location.object_path, filename=location.filename)

        # Stage 1: cache probe (fails open to a miss)
        with timeit("probe") as t_probe:
            found = await self._storage.exists(location.object_path)
        verbose(_LOG, "stage", event="probe", seconds=round(t_probe.seconds, 4), found=found)

        if found:
            metrics.record_cache("hit")
            url = await self._storage.resolve_url(location.object_path)
            success(_LOG, "cache_hit", id=narration_id, path=location.object_path)
            return NarrationResult(
                status=NarrationStatus.READY,
                id=narration_id,
                location=location,
                url=url,
                cached=True,
            )

        metrics.record_cache("miss")
        info(_LOG, "cache_miss", id=narration_id)

        # Stage 2: synthesis under deadline
        try:
            with timeit("synth") as t_synth:
                audio = await self._synthesizer.synthesize(voice, canonical)
        except SynthesisPending:
            metrics.observe_synthesis(t_synth.seconds, "timeout")
            warn(_LOG, "synth_pending", id=narration_id, seconds=round(t_synth.seconds, 3))
            return NarrationResult(
                status=NarrationStatus.PROCESSING,
                id=narration_id,
                location=location,
            )
        except UpstreamError:
            metrics.observe_synthesis(t_synth.seconds, "error")
            raise
        metrics.observe_synthesis(t_synth.seconds, "ok")
        verbose(_LOG, "stage", event="synth", seconds=round(t_synth.seconds, 4), bytes=len(audio))

        # Stage 3: publish with overwrite
        with timeit("publish") as t_pub:
            await self._storage.publish(location.object_path, audio)
        verbose(_LOG, "stage", event="publish", seconds=round(t_pub.seconds, 4))
        metrics.record_audio_bytes(len(audio))

        url = await self._storage.resolve_url(location.object_path)
        success(_LOG, "generated", id=narration_id, path=location.object_path, bytes=len(audio))
        return NarrationResult(
            status=NarrationStatus.READY,
            id=narration_id,
            location=location,
            url=url,
            cached=False,
            bytes=len(audio),
        )

    # =========================================================================
    # Health Check
    # =========================================================================

    def get_health_info(self) -> Dict[str, Any]:
        """Configuration readiness without exposing secrets."""
        missing = self._config.missing_required()
        return {
            "ok": not missing,
            "missing": missing,
            "bucket": self._config.storage.bucket,
            "visibility": self._config.storage.visibility.value,
            "synthesis_timeout_ms": self._config.synthesis.timeout_ms,
            "signed_url_ttl_s": self._config.storage.signed_url_ttl_s,
            "model_id": self._config.synthesis.model_id,
        }


# =============================================================================
# Global Service Singleton
# =============================================================================

_service: Optional[NarrateService] = None
_service_lock = threading.Lock()


def get_service(settings: Settings) -> NarrateService:
    """
    Get or create the global NarrateService instance.

    Raises:
        ConfigValidationError: If the settings contain invalid values.
    """
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = NarrateService(settings.get_service_config())
    return _service


async def shutdown_service() -> None:
    """Close and drop the global service (application shutdown, tests)."""
    global _service
    with _service_lock:
        service, _service = _service, None
    if service is not None:
        await service.aclose()
