"""
Configuration Management for narrate-ms.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Frozen dataclass configuration objects
    - Optional YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (ELEVEN_API_KEY, SUPABASE_URL, BUCKET, etc.)
    2. YAML config file (config/settings.yaml, if present)
    3. Defaults class values

Example settings.yaml:
    synthesis:
      voice_id: 21m00Tcm4TlvDq8ikWAM
      timeout_ms: 25000

    storage:
      url: https://project.supabase.co
      bucket: audio
      visibility: private
      signed_url_ttl_s: 604800

    logging:
      level: 2  # NORMAL

Secrets (API keys) are normally supplied through the environment only.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    This exception is thrown when a configuration value is outside
    acceptable bounds or of the wrong type.
    """
    pass


class BucketVisibility(str, Enum):
    """How the object store serves narrated files."""
    PUBLIC = "public"
    PRIVATE = "private"


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - Synthesis: external TTS service parameters
        - Storage: object store and URL settings
        - Narration: identifier and object layout
        - Logging: log previews
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Synthesis
    # ─────────────────────────────────────────────────────────────────────────
    SYNTHESIS_BASE_URL = "https://api.elevenlabs.io"
    SYNTHESIS_MODEL_ID = "eleven_multilingual_v2"
    SYNTHESIS_OUTPUT_FORMAT = "mp3_44100_128"
    SYNTHESIS_STABILITY = 0.5
    SYNTHESIS_SIMILARITY_BOOST = 0.75
    SYNTHESIS_TIMEOUT_MS = 25000        # Wall-clock budget for one TTS call

    # ─────────────────────────────────────────────────────────────────────────
    # Storage
    # ─────────────────────────────────────────────────────────────────────────
    STORAGE_BUCKET = "audio"
    STORAGE_VISIBILITY = BucketVisibility.PUBLIC
    STORAGE_SIGNED_URL_TTL_S = 86400 * 7  # 7 days
    STORAGE_HTTP_TIMEOUT_S = 15.0       # Transport timeout for probe/upload/sign

    # ─────────────────────────────────────────────────────────────────────────
    # Narration
    # ─────────────────────────────────────────────────────────────────────────
    NARRATION_FOLDER = "cards"
    NARRATION_ID_LENGTH = 12

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_TEXT_PREVIEW_CHARS = 80


# Environment variable -> (section, key)
_ENV_OVERRIDES = {
    "ELEVEN_API_KEY": ("synthesis", "api_key"),
    "ELEVEN_VOICE_ID": ("synthesis", "voice_id"),
    "ELEVEN_MODEL_ID": ("synthesis", "model_id"),
    "ELEVEN_BASE_URL": ("synthesis", "base_url"),
    "TTS_TIMEOUT_MS": ("synthesis", "timeout_ms"),
    "SUPABASE_URL": ("storage", "url"),
    "SUPABASE_SERVICE_ROLE_KEY": ("storage", "service_key"),
    "BUCKET": ("storage", "bucket"),
    "BUCKET_VISIBILITY": ("storage", "visibility"),
    "SIGNED_URL_TTL": ("storage", "signed_url_ttl_s"),
}


@dataclass(frozen=True)
class SynthesisConfig:
    """
    External TTS service configuration.

    `api_key` and `voice_id` have no defaults; a request arriving without
    them is answered with a configuration error.
    """
    api_key: str = ""
    voice_id: str = ""
    base_url: str = Defaults.SYNTHESIS_BASE_URL
    model_id: str = Defaults.SYNTHESIS_MODEL_ID
    output_format: str = Defaults.SYNTHESIS_OUTPUT_FORMAT
    stability: float = Defaults.SYNTHESIS_STABILITY
    similarity_boost: float = Defaults.SYNTHESIS_SIMILARITY_BOOST
    timeout_ms: int = Defaults.SYNTHESIS_TIMEOUT_MS

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0


@dataclass(frozen=True)
class StorageConfig:
    """
    Object store configuration.

    The visibility mode decides how existence is probed and how access
    URLs are built for the whole lifetime of the process.
    """
    url: str = ""
    service_key: str = ""
    bucket: str = Defaults.STORAGE_BUCKET
    visibility: BucketVisibility = Defaults.STORAGE_VISIBILITY
    signed_url_ttl_s: int = Defaults.STORAGE_SIGNED_URL_TTL_S
    http_timeout_s: float = Defaults.STORAGE_HTTP_TIMEOUT_S

    @property
    def is_private(self) -> bool:
        return self.visibility is BucketVisibility.PRIVATE


@dataclass(frozen=True)
class NarrationConfig:
    """Identifier length and object folder."""
    folder: str = Defaults.NARRATION_FOLDER
    id_length: int = Defaults.NARRATION_ID_LENGTH


@dataclass(frozen=True)
class LoggingConfig:
    """
    Service-side logging options.

    The log level itself (`logging.level`, NARRATE_MS_LOG_LEVEL) is read by
    narrate_ms.core.logging when logging is configured.
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS


@dataclass(frozen=True)
class NarrateServiceConfig:
    """
    Validated, immutable configuration for NarrateService.

    Built once from Settings and injected into the service, so tests can
    hand the service any fake configuration they need.

    Usage:
        settings = load_settings()
        config = NarrateServiceConfig.from_settings(settings)
        print(config.storage.bucket)
    """
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    narration: NarrationConfig = field(default_factory=NarrationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "NarrateServiceConfig":
        """
        Create NarrateServiceConfig from Settings with validation.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Synthesis configuration
        # ─────────────────────────────────────────────────────────────────────
        synth_raw = raw.get("synthesis", {}) or {}
        voice_settings = synth_raw.get("voice_settings", {}) or {}
        try:
            synthesis = SynthesisConfig(
                api_key=str(synth_raw.get("api_key") or ""),
                voice_id=str(synth_raw.get("voice_id") or ""),
                base_url=str(synth_raw.get("base_url") or Defaults.SYNTHESIS_BASE_URL).rstrip("/"),
                model_id=str(synth_raw.get("model_id") or Defaults.SYNTHESIS_MODEL_ID),
                output_format=str(synth_raw.get("output_format") or Defaults.SYNTHESIS_OUTPUT_FORMAT),
                stability=float(voice_settings.get("stability", Defaults.SYNTHESIS_STABILITY)),
                similarity_boost=float(voice_settings.get("similarity_boost", Defaults.SYNTHESIS_SIMILARITY_BOOST)),
                timeout_ms=int(synth_raw.get("timeout_ms", Defaults.SYNTHESIS_TIMEOUT_MS)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"synthesis: {e}") from e
        cls._validate_positive("synthesis.timeout_ms", synthesis.timeout_ms)
        cls._validate_range("synthesis.voice_settings.stability", synthesis.stability, 0.0, 1.0)
        cls._validate_range("synthesis.voice_settings.similarity_boost", synthesis.similarity_boost, 0.0, 1.0)

        # ─────────────────────────────────────────────────────────────────────
        # Storage configuration
        # ─────────────────────────────────────────────────────────────────────
        storage_raw = raw.get("storage", {}) or {}
        visibility_raw = str(storage_raw.get("visibility") or Defaults.STORAGE_VISIBILITY.value)
        try:
            visibility = BucketVisibility(visibility_raw.strip().lower())
        except ValueError:
            raise ConfigValidationError(
                f"storage.visibility must be 'public' or 'private', got {visibility_raw!r}"
            )
        try:
            storage = StorageConfig(
                url=str(storage_raw.get("url") or "").rstrip("/"),
                service_key=str(storage_raw.get("service_key") or ""),
                bucket=str(storage_raw.get("bucket") or Defaults.STORAGE_BUCKET),
                visibility=visibility,
                signed_url_ttl_s=int(storage_raw.get("signed_url_ttl_s", Defaults.STORAGE_SIGNED_URL_TTL_S)),
                http_timeout_s=float(storage_raw.get("http_timeout_s", Defaults.STORAGE_HTTP_TIMEOUT_S)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"storage: {e}") from e
        cls._validate_positive("storage.signed_url_ttl_s", storage.signed_url_ttl_s)
        cls._validate_positive("storage.http_timeout_s", storage.http_timeout_s)

        # ─────────────────────────────────────────────────────────────────────
        # Narration layout
        # ─────────────────────────────────────────────────────────────────────
        narration_raw = raw.get("narration", {}) or {}
        try:
            narration = NarrationConfig(
                folder=str(narration_raw.get("folder") or Defaults.NARRATION_FOLDER).strip("/"),
                id_length=int(narration_raw.get("id_length", Defaults.NARRATION_ID_LENGTH)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"narration: {e}") from e
        cls._validate_range("narration.id_length", narration.id_length, 8, 64)
        if not narration.folder or ".." in narration.folder:
            raise ConfigValidationError(f"narration.folder is invalid: {narration.folder!r}")

        # ─────────────────────────────────────────────────────────────────────
        # Logging configuration
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        try:
            logging_cfg = LoggingConfig(
                text_preview_chars=int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"logging: {e}") from e
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)

        return cls(
            synthesis=synthesis,
            storage=storage,
            narration=narration,
            logging=logging_cfg,
        )

    def missing_required(self) -> list[str]:
        """Names of required settings that are empty."""
        missing = []
        if not self.synthesis.api_key:
            missing.append("ELEVEN_API_KEY")
        if not self.synthesis.voice_id:
            missing.append("ELEVEN_VOICE_ID")
        if not self.storage.url:
            missing.append("SUPABASE_URL")
        if not self.storage.service_key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")
        return missing

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container.

    This is the raw settings object before validation. Use
    get_service_config() to get a validated NarrateServiceConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    def get_service_config(self) -> NarrateServiceConfig:
        """
        Get validated NarrateServiceConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return NarrateServiceConfig.from_settings(self)


def apply_env_overrides(raw: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Copy environment overrides into a raw settings dictionary.

    Empty environment values are ignored so an unset variable never
    shadows a value from the YAML file.
    """
    env = os.environ if environ is None else environ
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            # An empty YAML section loads as None
            section_map = raw.get(section) or {}
            section_map[key] = value
            raw[section] = section_map
    return raw


def load_settings(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Settings:
    """
    Load settings from an optional YAML file plus environment overrides.

    Unlike a typical service config, the file is optional: a deployment
    driven purely by environment variables is the common case.

    Args:
        path: YAML path. Defaults to $NARRATE_MS_SETTINGS or config/settings.yaml.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Settings object with loaded configuration.
    """
    env = os.environ if environ is None else environ
    p = Path(path or env.get("NARRATE_MS_SETTINGS") or "config/settings.yaml")

    raw: Dict[str, Any] = {}
    if p.exists():
        with p.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ConfigValidationError(f"settings file must contain a mapping: {p}")

    return Settings(raw=apply_env_overrides(raw, env))
