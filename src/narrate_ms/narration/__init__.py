"""
Narration Building Blocks.

    - identity.py: Content identifiers and object locations
    - synthesis.py: External TTS client with deadline handling
    - storage.py: Object store probing, URL resolution and upload
"""
from .identity import ArtifactLocation, content_id, locate
from .storage import StorageClient
from .synthesis import SynthesisClient

__all__ = [
    "ArtifactLocation",
    "content_id",
    "locate",
    "StorageClient",
    "SynthesisClient",
]
