"""Main FastAPI application module.

This module initializes the FastAPI application, registers the exception
handlers that render every error into the response envelope, and registers
all route handlers.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quizhub import __version__
from quizhub.api.middleware import register_middleware
from quizhub.api.routes import auth
from quizhub.config import (
    API_HOST,
    API_PORT,
    APP_ENV,
    CORS_ALLOWED_ORIGINS,
    validate_runtime_config,
)
from quizhub.core.database import init_db
from quizhub.core.dependencies import get_auth_rate_limiter, get_token_manager
from quizhub.core.exceptions import AuthenticationError, QuizHubError, ValidationError
from quizhub.core.logging_config import setup_logging
from quizhub.schemas.common import FieldError, error_envelope, utc_now_iso

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(
    title="QuizHub API",
    description="Backend API service for the QuizHub quiz platform.",
    version=__version__,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_middleware(app)

# Register route handlers
app.include_router(auth.router)


@app.on_event("startup")
def startup_tasks() -> None:
    """Refuse to start without signing secrets, then create missing tables."""
    validate_runtime_config()
    get_token_manager()
    get_auth_rate_limiter()
    init_db()
    logger.info("QuizHub API started (%s)", APP_ENV)


# --- Exception handlers ---


@app.exception_handler(QuizHubError)
async def handle_app_error(request: Request, exc: QuizHubError) -> JSONResponse:
    if isinstance(exc, AuthenticationError) and exc.reason is not None:
        reason = getattr(exc.reason, "value", exc.reason)
        logger.warning(
            "Authentication failed on %s %s (%s)",
            request.method,
            request.url.path,
            reason,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.message, exc.hint, exc.data),
    )


@app.exception_handler(RequestValidationError)
async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    field_errors = [
        FieldError(
            field=".".join(str(part) for part in error["loc"] if part != "body"),
            message=error["msg"],
        )
        for error in exc.errors()
    ]
    return await handle_app_error(
        request, ValidationError("Validation failed", data=field_errors)
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    message = None
    if exc.status_code == 404:
        message = f"Cannot {request.method} {request.url.path}"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail), message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_envelope(
            "Internal server error", "Something went wrong, please try again later"
        ),
    )


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links."""
    return {
        "name": "QuizHub API",
        "version": __version__,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/health",
    }


@app.get("/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status "ok", the current time and environment.
    """
    return {"status": "ok", "timestamp": utc_now_iso(), "environment": APP_ENV}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("quizhub.app:app", host=API_HOST, port=API_PORT, reload=True)
