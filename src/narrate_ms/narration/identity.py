"""
Content Identifiers and Object Locations.

The identifier is the primary key of the artifact cache. It depends only
on the voice and the canonical text, so renaming a card's title or
campaign reuses the existing audio.

    id          = sha256(f"{voice}::{canonical_text}").hexdigest()[:12]
    object_path = f"cards/{id}.mp3"
    filename    = f"{safe(campaign)}__{safe(title)}--{id}.mp3"

Voice identifiers are validated upstream to `[A-Za-z0-9_-]+`, which keeps
the "::" separator unambiguous.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass

from narrate_ms.core.config import Defaults
from narrate_ms.utils.text import safe_name

ID_SEPARATOR = "::"
AUDIO_EXTENSION = "mp3"


@dataclass(frozen=True)
class ArtifactLocation:
    """
    Where a narration lives and what to call it when downloaded.

    Attributes:
        object_path: Storage key, e.g. "cards/3f9a0c12ab4e.mp3". Durable cache key.
        filename: Suggested download name. Cosmetic, never used for lookup.
    """
    object_path: str
    filename: str


def content_id(voice: str, canonical_text: str, length: int = Defaults.NARRATION_ID_LENGTH) -> str:
    """
    Derive the fixed-length lowercase hex identifier for (voice, text).

    Args:
        voice: Voice identifier.
        canonical_text: Output of canonicalize_text().
        length: Number of hex characters to keep (12; legacy files used 8).

    Returns:
        Lowercase hex string of exactly `length` characters.
    """
    payload = f"{voice}{ID_SEPARATOR}{canonical_text}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()[:length]


def locate(
    narration_id: str,
    campaign: str,
    title: str,
    folder: str = Defaults.NARRATION_FOLDER,
) -> ArtifactLocation:
    """Map an identifier (plus cosmetic labels) to its storage path and filename."""
    object_path = f"{folder}/{narration_id}.{AUDIO_EXTENSION}"
    filename = f"{safe_name(campaign)}__{safe_name(title)}--{narration_id}.{AUDIO_EXTENSION}"
    return ArtifactLocation(object_path=object_path, filename=filename)
