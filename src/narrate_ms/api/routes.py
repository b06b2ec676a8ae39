"""
Narration API Routes.

Endpoints:
    GET     /narrate   - Usage hint
    OPTIONS /narrate   - CORS preflight (200, empty body)
    POST    /narrate   - Narrate text, return the MP3 URL
    (other) /narrate   - 405 with Allow: POST, GET, OPTIONS
    GET     /health    - Configuration readiness
    GET     /metrics   - Prometheus metrics

POST /narrate Responses:
    200 {"ok": true, "id", "url", "filename", "bytes"?}   ready (bytes only when generated now)
    202 {"ok": false, "status": "processing", "id", "hint"}   synthesis outlived its deadline
    400 {"ok": false, "error", "code"}                    missing/blank fields
    500 {"ok": false, "error", "code"}                    missing configuration, unexpected failure
    4xx/5xx passed through from TTS/storage with "detail"

Every /narrate response carries the CORS headers from api/cors.py, an
X-Request-Id header, and on POST success an X-Cache header (hit/miss).

Example Usage:
    curl -X POST http://localhost:8000/narrate \\
        -H "Content-Type: application/json" \\
        -d '{"title": "Card A", "campaign": "Camp1", "text": "Hello world"}'
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from narrate_ms.api.cors import ALLOWED_METHODS, cors_headers
from narrate_ms.api.dependencies import get_narrate_service
from narrate_ms.api.schemas import (
    ErrorResponse,
    NarrateRequestBody,
    NarrateResponse,
    ProcessingResponse,
)
from narrate_ms.core.errors import ErrorCode, NarrateError
from narrate_ms.core.logging import error, get_logger, set_request_id
from narrate_ms.core.metrics import metrics
from narrate_ms.services.narrate_service import NarrateService, NarrationRequest

router = APIRouter()

_LOG = get_logger("narrate-ms.api")

NARRATE_PATH = "/narrate"
USAGE_HINT = "POST {title,campaign,text,voiceId?} to get an MP3 URL."


def _new_request_id() -> str:
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)
    return rid


@router.options("/narrate", include_in_schema=False)
async def narrate_preflight(request: Request) -> Response:
    """CORS preflight: empty 200 echoing the requested headers."""
    return Response(status_code=200, headers=cors_headers(request))


@router.get("/narrate")
async def narrate_hint(request: Request) -> JSONResponse:
    """Usage hint for humans poking at the endpoint."""
    return JSONResponse(
        status_code=200,
        content={"ok": True, "hint": USAGE_HINT},
        headers=cors_headers(request),
    )


@router.post(
    "/narrate",
    response_model=NarrateResponse,
    responses={
        202: {"model": ProcessingResponse},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def narrate(
    body: NarrateRequestBody,
    request: Request,
    service: NarrateService = Depends(get_narrate_service),
) -> JSONResponse:
    """
    Narrate text into an MP3 and return its URL.

    Identical (voice, text) submissions share one file: a second call is
    answered from storage without invoking the TTS service, whatever the
    title and campaign say.
    """
    rid = _new_request_id()
    headers = {**cors_headers(request), "X-Request-Id": rid}

    try:
        result = await service.narrate(
            NarrationRequest(
                title=body.title,
                campaign=body.campaign,
                text=body.text,
                voice_id=body.voice_id,
            ),
            request_id=rid,
        )
    except NarrateError as e:
        return JSONResponse(status_code=e.status_code, content=e.to_dict(), headers=headers)
    except Exception as e:
        # Last resort; NarrateService already wraps unexpected errors
        error(_LOG, "unhandled", error_type=type(e).__name__, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": str(e) or "server error", "code": ErrorCode.INTERNAL_ERROR},
            headers=headers,
        )

    if not result.ready:
        return JSONResponse(status_code=202, content=result.to_dict(), headers=headers)

    headers["X-Cache"] = "hit" if result.cached else "miss"
    return JSONResponse(status_code=200, content=result.to_dict(), headers=headers)


def method_not_allowed(request: Request) -> JSONResponse:
    """
    405 for any verb but GET/POST/OPTIONS on /narrate.

    Returned from the app-level HTTPException handler in main.py, so HEAD,
    TRACE and any other method get the same Allow and CORS headers.
    """
    return JSONResponse(
        status_code=405,
        content={"ok": False, "error": "Method not allowed"},
        headers={**cors_headers(request), "Allow": ALLOWED_METHODS},
    )


@router.get("/health")
def health(service: NarrateService = Depends(get_narrate_service)):
    """
    Readiness information for load balancers and operators.

    Reports which required settings are missing (by name only), the
    bucket mode and timeouts. Never includes secrets.
    """
    return service.get_health_info()


@router.get("/metrics")
def prometheus_metrics():
    """Prometheus metrics endpoint."""
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
