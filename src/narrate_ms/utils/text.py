"""
Text Canonicalization and Filename Sanitizing.

Canonicalization makes trivially different submissions (trailing spaces,
Windows line endings, extra blank lines) map to the same content
identifier, so they share one narrated file.

Canonicalization Steps (in order):
    1. Strip leading/trailing whitespace
    2. CRLF line endings -> LF
    3. Runs of spaces/tabs -> single space
    4. Three or more consecutive newlines -> exactly two

The function is idempotent: canonicalize_text(canonicalize_text(x)) equals
canonicalize_text(x) for every string.

Example:
    >>> canonicalize_text("  Hello\\t\\tworld\\r\\n\\r\\n\\r\\n\\r\\nBye  ")
    'Hello world\\n\\nBye'
    >>> safe_name("Campaña de Otoño / 2024")
    'Campana_de_Otono_2024'
"""
from __future__ import annotations

import re
import unicodedata

# "\r+\n" rather than "\r\n" so that "\r\r\n" does not need a second pass
_CRLF_RE = re.compile(r"\r+\n")
_INLINE_WS_RE = re.compile(r"[ \t]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_\-]+")
_UNDERSCORES_RE = re.compile(r"_+")

SAFE_NAME_MAX_CHARS = 120


def canonicalize_text(text: str) -> str:
    """
    Return the canonical form of `text` used for content hashing.

    Not locale sensitive and total: the empty string maps to itself.
    """
    s = text.strip()
    s = _CRLF_RE.sub("\n", s)
    s = _INLINE_WS_RE.sub(" ", s)
    s = _BLANK_LINES_RE.sub("\n\n", s)
    return s


def strip_diacritics(value: str) -> str:
    """Decompose (NFD) and drop combining marks: "Canción" -> "Cancion"."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def safe_name(value: str, max_chars: int = SAFE_NAME_MAX_CHARS) -> str:
    """
    Sanitize a free-form label for use inside a filename.

    The result only contains ASCII letters, digits, "_" and "-", so it can
    never carry a path separator or a ".." segment.
    """
    s = strip_diacritics(value or "").strip()
    s = _UNSAFE_RE.sub("_", s)
    s = _UNDERSCORES_RE.sub("_", s)
    return s[:max_chars]


def preview(text: str, max_chars: int) -> str:
    """Single-line preview of `text` for logs."""
    if max_chars <= 0:
        return ""
    flat = " ".join(text.split())
    if len(flat) <= max_chars:
        return flat
    return flat[:max_chars] + "…"
