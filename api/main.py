"""
api/main.py -- FastAPI application entry point for LibraryHub.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- the frontend runs on another origin and sends the auth
                       cookie, so credentials are allowed for the configured
                       origins only (never "*")
  2. log_requests   -- one log line per request with status and latency

Lifespan loads Settings (which refuses to start without AES_KEY, ALGORITHM
and JWT_SECRET), opens the stores and builds the AuthService; shutdown
closes the stores.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.admins import router as admins_router
from api.routes.v1.auth import router as auth_router
from api.routes.v1.books import router as books_router
from api.routes.v1.libraries import router as libraries_router
from auth.errors import AuthError
from auth.service import AuthConfig, AuthService
from auth.store import UserStore
from catalog.store import CatalogStore
from core.config import get_settings

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("libraryhub.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters: the user store must exist before the AuthService,
    which takes it as its identity collaborator.
    """
    settings = get_settings()
    logger.info("LibraryHub API starting up")
    app.state.user_store = UserStore(settings.database_url)
    app.state.catalog = CatalogStore(settings.database_url)
    app.state.auth = AuthService(
        AuthConfig.from_settings(settings),
        users=app.state.user_store,
        admins=app.state.user_store,
    )
    logger.info("Auth initialized (cipher=%s)", settings.algorithm)

    yield

    app.state.catalog.close()
    app.state.user_store.close()
    logger.info("LibraryHub API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="LibraryHub API",
    description="Library management: books, libraries, users and admins.",
    version=__version__,
    lifespan=lifespan,
)


def _cors_origins() -> list[str]:
    # Settings may not be loadable at import time (e.g. tooling that only
    # imports the module); the lifespan is where a missing secret must fail.
    try:
        return get_settings().cors_origin_list
    except ValueError:
        return []


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "x-access-token"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
#
# Routes live at the root (/login, /admin, /book, /library) -- the frontend
# calls them by those paths.
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(admins_router, tags=["Admins"])
app.include_router(books_router, tags=["Books"])
app.include_router(libraries_router, tags=["Libraries"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map Auth Module failures to their status code.

    5xx messages are replaced with a generic one; the cause is already logged
    where the error was raised.
    """
    message = exc.message if exc.status_code < 500 else "An unexpected error occurred."
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=message)).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with detail={"code": ..., "message": ...}.
    When detail is already a dict, use it directly as the error field.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=f"http_{exc.status_code}", message=str(exc.detail))
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(code="internal_error", message="An unexpected error occurred.")
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=__version__)
