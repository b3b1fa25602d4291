"""
FastAPI application entry point for the photo engagement backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from photostore.config import get_settings
from photostore.dependencies import get_repository
from photostore.errors import (
    Conflict,
    InvalidInput,
    NotFound,
    PhotoStoreError,
    Unauthorized,
)
from photostore.routes import router

logger = logging.getLogger(__name__)

_HTTP_ERROR_KINDS = {
    400: InvalidInput.kind,
    401: Unauthorized.kind,
    404: NotFound.kind,
    405: "MethodNotAllowed",
    409: Conflict.kind,
    413: "PayloadTooLarge",
    415: "UnsupportedMediaType",
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Render every failure as {"message", "error", "details"} JSON."""

    @app.exception_handler(PhotoStoreError)
    async def photostore_error_handler(request: Request, exc: PhotoStoreError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "%s %s failed: %s: %s %s",
            request.method,
            request.url.path,
            exc.kind,
            exc.message,
            exc.details,
        )
        return JSONResponse(
            status_code=exc.status_code, content=jsonable_encoder(exc.as_dict())
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        kind = _HTTP_ERROR_KINDS.get(exc.status_code, "Error")
        logger.warning(
            "%s %s failed: %s %s", request.method, request.url.path, kind, exc.detail
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(
                {"message": str(exc.detail), "error": kind, "details": {}}
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ):
        error = InvalidInput("Invalid request", details={"errors": exc.errors()})
        return JSONResponse(
            status_code=error.status_code,
            content=jsonable_encoder(error.as_dict(), custom_encoder={Exception: str}),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error", "error": "Error", "details": {}},
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Check the document store at startup without blocking the service on it."""
    try:
        await run_in_threadpool(get_repository().verify)
    except PhotoStoreError as exc:
        logger.warning(
            "Document store not ready at startup: %s %s", exc.message, exc.details
        )
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title="Photo Engagement Backend", version="0.1.0", lifespan=lifespan
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_exception_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    logger.info(
        "API ready (prefix=%s, cors=%s, in_memory=%s)",
        settings.api_prefix,
        ",".join(settings.cors_origins),
        settings.use_in_memory_backends,
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("photostore.app:app", host="0.0.0.0", port=3000)
