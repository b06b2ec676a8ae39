"""
FastAPI Dependency Injection Providers.

    get_settings()         - Loads and caches settings (YAML + environment)
    get_narrate_service()  - Returns the singleton NarrateService

Tests replace get_narrate_service through app.dependency_overrides to run
the real orchestrator against httpx.MockTransport fakes.
"""
from __future__ import annotations

from functools import lru_cache

from narrate_ms.core.config import Settings, load_settings
from narrate_ms.services.narrate_service import NarrateService, get_service


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    Settings are read once per process; restart to pick up changes.
    """
    return load_settings()


def get_narrate_service() -> NarrateService:
    """Get the singleton NarrateService instance."""
    return get_service(get_settings())
