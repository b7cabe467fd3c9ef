"""FastAPI app factory: health endpoint plus the token and CSRF routes."""
from __future__ import annotations

import os
import time
from collections.abc import Callable
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from tokenauth.api import router as api_router
from tokenauth.config import get_settings
from tokenauth.logging_conf import get_logger, setup_logging

# Configure logging before anything else.
setup_logging()
logger = get_logger("tokenauth")

# Paths whose responses carry tokens or CSRF digests.
_CREDENTIAL_PREFIXES = ("/tokens", "/csrf")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Token Auth (Stateless)",
        version=os.getenv("APP_VERSION", "0.1.0"),
    )

    @app.on_event("startup")
    async def _on_startup() -> None:
        # Build the process-wide config once; a bad value fails startup, not a request.
        settings = get_settings()
        logger.info(
            "startup",
            extra={
                "event": "startup",
                "iss": settings.domain,
                "access_lifetime_days": settings.access_lifetime_days,
                "refresh_lifetime_days": settings.refresh_lifetime_days,
            },
        )

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        logger.info("shutdown", extra={"event": "shutdown"})

    @app.middleware("http")
    async def credential_responses(request: Request, call_next: Callable[[Request], Response]):
        """Correlate, time and mark uncacheable every request.

        Token and CSRF responses carry credentials, so they get
        ``Cache-Control: no-store``. Only method, path, status and timing are
        logged; headers such as Authorization or Cookie and request bodies
        never are. Health probes are not logged.
        """
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id
        path = request.url.path

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.error",
                extra={"event": "request_error", "method": request.method, "path": path, "request_id": request_id},
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        response.headers["X-Request-ID"] = request_id
        if path.startswith(_CREDENTIAL_PREFIXES):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"

        if path != "/health":
            logger.info(
                "request.end",
                extra={
                    "event": "request_end",
                    "method": request.method,
                    "path": path,
                    "status_code": response.status_code,
                    "elapsed_ms": round(elapsed_ms, 2),
                    "request_id": request_id,
                },
            )
        return response

    @app.get("/health", summary="Liveness/readiness check")
    async def health() -> JSONResponse:
        return JSONResponse(content={"ok": True, "iss": get_settings().domain})

    app.include_router(api_router)

    return app


# ASGI entrypoint for uvicorn: `uvicorn tokenauth.main:app --port 8000`
app = create_app()
