"""
Permissive CORS headers for /narrate.

The endpoint is called from browser tools and automation platforms, so
every response (including errors) allows any origin and echoes the
headers the preflight asked for.
"""
from __future__ import annotations

from typing import Dict

from fastapi import Request

ALLOWED_METHODS = "POST, GET, OPTIONS"
DEFAULT_ALLOWED_HEADERS = "Content-Type"


def cors_headers(request: Request) -> Dict[str, str]:
    requested = request.headers.get("access-control-request-headers")
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": requested or DEFAULT_ALLOWED_HEADERS,
    }
