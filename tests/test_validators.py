"""
Tests for input validation functions.

Tests cover:
- validate_required() - missing, blank, wrong type, trimming
- validate_voice_id() - optional, allowed characters, max length
"""
import pytest

from narrate_ms.services.validators import ValidationError, validate_required, validate_voice_id


class TestValidateRequired:
    """Tests for validate_required()."""

    def test_valid_value_trimmed(self):
        assert validate_required("  Card A  ", "title") == "Card A"

    def test_none_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_required(None, "title")
        assert exc_info.value.code == "TITLE_REQUIRED"
        assert "required" in exc_info.value.message

    def test_blank_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_required(" \t\n", "text")
        assert exc_info.value.code == "TEXT_REQUIRED"

    def test_empty_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_required("", "campaign")
        assert exc_info.value.code == "CAMPAIGN_REQUIRED"

    def test_non_string_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_required(42, "text")
        assert exc_info.value.code == "TEXT_INVALID_TYPE"

    def test_unicode_accepted(self):
        assert validate_required("Campaña", "campaign") == "Campaña"


class TestValidateVoiceId:
    """Tests for validate_voice_id()."""

    def test_absent_is_none(self):
        assert validate_voice_id(None) is None

    def test_blank_is_none(self):
        assert validate_voice_id("   ") is None

    @pytest.mark.parametrize("voice", ["21m00Tcm4TlvDq8ikWAM", "voice_a", "voice-b", "x"])
    def test_valid(self, voice):
        assert validate_voice_id(voice) == voice

    def test_trimmed(self):
        assert validate_voice_id(" abc ") == "abc"

    @pytest.mark.parametrize("voice", ["a::b", "../x", "voice id", "a/b", "v" * 65, "vóz"])
    def test_invalid_format(self, voice):
        with pytest.raises(ValidationError) as exc_info:
            validate_voice_id(voice)
        assert exc_info.value.code == "VOICE_ID_INVALID_FORMAT"

    def test_non_string(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_voice_id(123)
        assert exc_info.value.code == "VOICE_ID_INVALID_TYPE"
