"""
Timing Utilities.

Measures wall-clock time of a code block with perf_counter(). Works
inside coroutines too: the block may contain awaits.

Example:
    with timeit("synth") as t:
        audio = await client.synthesize(voice, text)
    print(f"Took {t.seconds:.3f}s")
"""
from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, Optional


@dataclass
class Timing:
    """Timing measurement result."""
    name: str
    seconds: float
    meta: Optional[Dict[str, Any]] = None


class timeit:
    """
    Context manager for timing code blocks.

    `timing` is set on exit, including when the block raises, so callers
    can log the duration of failed calls.
    """

    def __init__(self, name: str, meta: Optional[Dict[str, Any]] = None):
        self.name = name
        self.meta = meta
        self.timing: Optional[Timing] = None
        self._t0 = 0.0

    def __enter__(self) -> "timeit":
        self._t0 = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.timing = Timing(self.name, perf_counter() - self._t0, self.meta)
        return False

    @property
    def seconds(self) -> float:
        """Elapsed seconds, or -1.0 while the block is still running."""
        return self.timing.seconds if self.timing else -1.0
