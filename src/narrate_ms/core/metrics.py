"""
Prometheus Metrics for the Narration Service.

Metrics Exposed:
    narrate_requests_total          - Counter of /narrate outcomes
    narrate_cache_total             - Counter of cache probes by result (hit/miss)
    narrate_synthesis_seconds       - Histogram of TTS call latency
    narrate_audio_bytes_total       - Counter of published audio bytes

Usage:
    from narrate_ms.core.metrics import metrics

    metrics.record_outcome("generated")
    metrics.record_cache("hit")
    content, content_type = metrics.get_metrics_response()
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


class NarrateMetrics:
    """
    Metric collection for narrate-ms.

    A private CollectorRegistry keeps these metrics separate from anything
    else registered in the same process (and lets tests build fresh
    instances without duplicate-name errors).
    """

    def __init__(self) -> None:
        self._registry = CollectorRegistry()

        self._requests_total = Counter(
            "narrate_requests_total",
            "Total narrate requests by terminal outcome",
            ["outcome"],
            registry=self._registry,
        )
        self._cache_total = Counter(
            "narrate_cache_total",
            "Artifact cache probes by result",
            ["result"],
            registry=self._registry,
        )
        self._synthesis_seconds = Histogram(
            "narrate_synthesis_seconds",
            "Duration of external TTS calls in seconds",
            ["status"],
            buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 15.0, 25.0, 60.0),
            registry=self._registry,
        )
        self._audio_bytes_total = Counter(
            "narrate_audio_bytes_total",
            "Total audio bytes published to storage",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_outcome(self, outcome: str) -> None:
        """
        Record a terminal request outcome.

        Args:
            outcome: One of "cached", "generated", "processing",
                "rejected", "upstream_failure", "config_error", "error".
        """
        self._requests_total.labels(outcome=outcome).inc()

    def record_cache(self, result: str) -> None:
        """Record a cache probe result ("hit" or "miss")."""
        self._cache_total.labels(result=result).inc()

    def observe_synthesis(self, seconds: float, status: str) -> None:
        """Record TTS call latency ("ok", "timeout" or "error")."""
        self._synthesis_seconds.labels(status=status).observe(seconds)

    def record_audio_bytes(self, count: int) -> None:
        if count > 0:
            self._audio_bytes_total.inc(count)

    def get_metrics_response(self) -> tuple[bytes, str]:
        """
        Get metrics in Prometheus text format.

        Returns:
            Tuple of (content_bytes, content_type)
        """
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Global singleton metrics instance
metrics = NarrateMetrics()
