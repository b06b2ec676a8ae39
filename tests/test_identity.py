"""
Tests for content identifiers and object locations.

Tests cover:
- content_id() - determinism, length, sensitivity to voice and text
- locate() - object path depends only on the identifier
- Filenames built from sanitized labels
"""
import dataclasses
import hashlib
import re

import pytest

from narrate_ms.narration.identity import ArtifactLocation, content_id, locate
from narrate_ms.utils.text import canonicalize_text


class TestContentId:
    """Tests for content_id()."""

    def test_matches_sha256_prefix(self):
        expected = hashlib.sha256(b"voiceA::Hello world").hexdigest()[:12]
        assert content_id("voiceA", "Hello world") == expected

    def test_deterministic(self):
        assert content_id("v", "same text") == content_id("v", "same text")

    def test_twelve_lowercase_hex(self):
        assert re.fullmatch(r"[0-9a-f]{12}", content_id("v", "text"))

    def test_custom_length(self):
        assert len(content_id("v", "text", length=8)) == 8
        assert content_id("v", "text", length=8) == content_id("v", "text")[:8]

    def test_voice_changes_id(self):
        assert content_id("voiceA", "Hello") != content_id("voiceB", "Hello")

    def test_text_changes_id(self):
        assert content_id("voiceA", "Hello") != content_id("voiceA", "Hello!")

    def test_canonical_variants_share_id(self):
        a = content_id("v", canonicalize_text("Hello   world\r\n"))
        b = content_id("v", canonicalize_text("Hello world"))
        assert a == b


class TestLocate:
    """Tests for locate()."""

    def test_object_path(self):
        loc = locate("abc123def456", "Camp1", "Card A")
        assert loc.object_path == "cards/abc123def456.mp3"

    def test_filename(self):
        loc = locate("abc123def456", "Camp1", "Card A")
        assert loc.filename == "Camp1__Card_A--abc123def456.mp3"

    def test_labels_do_not_affect_object_path(self):
        a = locate("abc123def456", "Camp1", "Card A")
        b = locate("abc123def456", "Other campaign", "Renamed card")
        assert a.object_path == b.object_path
        assert a.filename != b.filename

    def test_hostile_labels_sanitized(self):
        loc = locate("abc123def456", "../secret", "a/b.c")
        assert loc.filename == "_secret__a_b_c--abc123def456.mp3"

    def test_custom_folder(self):
        assert locate("abc", "c", "t", folder="narrations").object_path == "narrations/abc.mp3"

    def test_frozen(self):
        loc = locate("abc", "c", "t")
        assert isinstance(loc, ArtifactLocation)
        with pytest.raises(dataclasses.FrozenInstanceError):
            loc.object_path = "elsewhere"
