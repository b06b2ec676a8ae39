"""
FastAPI Application Entry Point.

Creates the narrate-ms application: logging, the /narrate router, JSON
error handlers (malformed bodies, invalid configuration, unsupported
methods on /narrate) and a lifespan hook that closes the shared HTTP
client on shutdown.

Usage:
    uvicorn narrate_ms.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from narrate_ms.api.cors import cors_headers
from narrate_ms.api.routes import NARRATE_PATH, method_not_allowed, router
from narrate_ms.core.config import ConfigValidationError
from narrate_ms.core.errors import ConfigurationError, InvalidInputError
from narrate_ms.core.logging import configure_logging, fail, get_logger
from narrate_ms.services.narrate_service import shutdown_service

_LOG = get_logger("narrate-ms.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await shutdown_service()


async def _invalid_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    body = InvalidInputError("Invalid request body", detail=problems or None)
    return JSONResponse(status_code=400, content=body.to_dict(), headers=cors_headers(request))


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code == 405 and request.url.path == NARRATE_PATH:
        return method_not_allowed(request)
    return await http_exception_handler(request, exc)


async def _invalid_config_handler(request: Request, exc: ConfigValidationError) -> JSONResponse:
    fail(_LOG, "config_invalid", error=str(exc))
    body = ConfigurationError("Invalid configuration", detail=str(exc))
    return JSONResponse(status_code=500, content=body.to_dict(), headers=cors_headers(request))


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance ready to serve requests.
    """
    # Reads NARRATE_MS_LOG_LEVEL and the logging section of settings.yaml
    configure_logging()

    app = FastAPI(title="narrate-ms", lifespan=lifespan)
    app.include_router(router)

    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _invalid_body_handler)
    app.add_exception_handler(ConfigValidationError, _invalid_config_handler)

    return app


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
