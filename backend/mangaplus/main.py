"""
MangaPlus Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance;
       the lifespan owns the process-wide MongoDB and ImageKit clients.
Who:   Called by uvicorn (uvicorn mangaplus.main:app, or `mangaplus`).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌──────────┐ ┌──────────┐                  │
    │  │  Req ID  │→│ Logging  │→│   CORS   │                  │
    │  └──────────┘ └──────────┘ └──────────┘                  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌───────────┐ ┌──────────────────────┐ ┌──────────────┐ │
    │  │ GET /ping │ │ GET /manga/.../ch/{c}│ │ POST /upload │ │
    │  └───────────┘ └──────────────────────┘ └──────────────┘ │
    │                                                          │
    │  app.state: mongo_client, manga_collection, imagekit     │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (missing env vars are fatal)
    3. Build the ImageKit client
    4. Connect to MongoDB and ping it (unreachable host is fatal)

    Shutdown:
    1. Close the ImageKit HTTP client
    2. Close the MongoDB client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mangaplus import __version__
from mangaplus.config import settings
from mangaplus.database import close_mongodb, connect_to_mongodb, manga_collection
from mangaplus.exceptions import (
    ChapterNotFoundError,
    DatabaseError,
    FormValidationError,
    ImageUploadError,
    MangaPlusError,
)
from mangaplus.middleware.logging import RequestLoggingMiddleware
from mangaplus.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from mangaplus.routes import health, manga, upload
from mangaplus.services.imagekit_service import ImageKitService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup (before any client is built).
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Third-party libraries log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the shared clients on startup and release them on shutdown.

    Any MangaPlusError raised here propagates out of the lifespan, so uvicorn
    reports "Application startup failed" and exits without serving.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("MangaPlus Backend %s starting up...", __version__)

    app.state.startup_warnings = settings.startup_warnings()
    for warning in app.state.startup_warnings:
        logger.warning(warning)

    imagekit = None
    try:
        settings.validate_required()
        imagekit = ImageKitService.from_settings(settings)
        client = await connect_to_mongodb(settings)
    except MangaPlusError as e:
        logger.error("Startup failed: %s (%s)", e.message, e.error)
        if imagekit is not None:
            await imagekit.aclose()
        raise

    app.state.imagekit = imagekit
    app.state.mongo_client = client
    app.state.manga_collection = manga_collection(client, settings)

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)

    yield  # Application runs here

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("MangaPlus Backend shutting down...")
    await imagekit.aclose()
    await close_mongodb(client)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    code: str,
    request_id: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Builds the shared error body, tagged with the current request ID."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "code": code,
            "request_id": request_id if request_id is not None else request_id_var.get(""),
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        FormValidationError     → 400 Bad Request
        RequestValidationError  → 400 Bad Request (form fields of the wrong type)
        ImageUploadError        → 400 Bad Request
        ChapterNotFoundError    → 404 Not Found
        DatabaseError           → 500 Internal Server Error
        MangaPlusError (base)   → its status_code
        HTTPException (400)     → 400 Bad Request (malformed request body)
        HTTPException           → its status code
        Exception (fallback)    → 500 Internal Server Error
    """

    @app.exception_handler(FormValidationError)
    async def handle_form_error(request: Request, exc: FormValidationError):
        logger.warning("[%s] Form error: %s", request_id_var.get(""), exc.error)
        return error_response(400, exc.error, exc.message, exc.code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
        logger.warning("[%s] Request validation error: %s", request_id_var.get(""), details)
        return error_response(400, details, "Error parsing form", FormValidationError.code)

    @app.exception_handler(ImageUploadError)
    async def handle_upload_error(request: Request, exc: ImageUploadError):
        logger.warning(
            "[%s] Image upload error: %s | Context: %s",
            request_id_var.get(""),
            exc.error,
            exc.context,
        )
        return error_response(400, exc.error, exc.message, exc.code)

    @app.exception_handler(ChapterNotFoundError)
    async def handle_not_found(request: Request, exc: ChapterNotFoundError):
        return error_response(404, exc.error, exc.message, exc.code)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.error,
            exc.context,
        )
        return error_response(500, exc.error, exc.message, exc.code)

    @app.exception_handler(MangaPlusError)
    async def handle_app_error(request: Request, exc: MangaPlusError):
        logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.error)
        return error_response(exc.status_code, exc.error, exc.message, exc.code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        detail = str(exc.detail)
        # Body parsing (e.g. multipart without a boundary) is the only source of a bare 400
        if exc.status_code == 400:
            logger.warning("[%s] Body parse error: %s", request_id_var.get(""), detail)
            return error_response(400, detail, "Error parsing form", FormValidationError.code)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": detail,
                "message": detail,
                "code": "http_error",
                "request_id": request_id_var.get(""),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Stack trace is logged server-side only.

        Runs in ServerErrorMiddleware, outside RequestIDMiddleware, so the
        X-Request-ID header is set here from request.state.
        """
        rid = getattr(request.state, "request_id", None) or request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(
            500,
            "An unexpected error occurred",
            "Internal server error",
            "internal_server_error",
            request_id=rid,
            headers={REQUEST_ID_HEADER: rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance. The shared clients are
    attached by the lifespan; tests attach their own on app.state.
    """
    app = FastAPI(
        title="MangaPlus API",
        description=(
            "Manga chapter storage backend. Uploads chapter pages to ImageKit and "
            "keeps chapter records (image URLs and dimensions) in MongoDB."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(manga.router)
    app.include_router(upload.router)

    return app


# uvicorn expects `mangaplus.main:app` to be importable
app = create_app()
