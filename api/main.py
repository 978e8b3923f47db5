"""
FastAPI main application for the BookSwap API.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from accounts.service import AccountService
from api.auth import RateLimiter
from api.models import FieldError, HealthResponse, error_response
from api.routes import books_router, users_router
from listings.service import ListingService
from storage.database import MongoDBManager
from storage.images import ImageUploader
from utilities.config import BookSwapConfig, config as default_config
from utilities.errors import BookSwapError
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)

API_VERSION = "1.0.0"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
}

HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: BookSwapConfig = app.state.config

    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.get_log_file_path(),
        debug=settings.debug
    )
    logger.info("Starting BookSwap API")

    db_manager = MongoDBManager(
        connection_url=settings.mongodb_url,
        database_name=settings.mongodb_database,
        max_pool_size=settings.mongodb_max_pool_size,
        connect_timeout_ms=settings.mongodb_connect_timeout_ms,
        socket_timeout_ms=settings.mongodb_socket_timeout_ms,
    )
    try:
        database = await db_manager.connect()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    if not settings.has_image_host_credentials():
        logger.warning("Cloudinary credentials are not configured; image uploads will fail")

    image_uploader = ImageUploader(
        cloud_name=settings.cloudinary_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
    )
    app.state.db_manager = db_manager
    app.state.account_service = AccountService(database, settings)
    app.state.listing_service = ListingService(database, image_uploader)

    yield

    logger.info("Shutting down BookSwap API")
    await db_manager.disconnect()


def create_app(settings: Optional[BookSwapConfig] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration to use; defaults to the environment-loaded config
    """
    settings = settings or default_config

    app = FastAPI(
        title="BookSwap API",
        description="""
        REST backend for a peer-to-peer book exchange.

        ## Authentication

        Protected endpoints take the token returned by registration or login:

        ```
        Authorization: Bearer your_token_here
        ```

        ## Rate Limiting

        Account endpoints are limited to 100 requests per 15 minutes per client.
        """,
        version=API_VERSION,
        lifespan=lifespan
    )
    app.state.config = settings
    app.state.db_manager = None
    app.state.rate_limiter = RateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request and attach security headers."""
        start = time.perf_counter()
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2)
        )
        return response

    register_exception_handlers(app)

    @app.get("/", response_class=PlainTextResponse, tags=["Health"])
    async def root():
        """Liveness probe."""
        return "BookSwap API is running"

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check including database connectivity."""
        db_status = "disconnected"
        db_manager: Optional[MongoDBManager] = request.app.state.db_manager
        if db_manager:
            health_info = await db_manager.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.utcnow(),
            version=API_VERSION,
            database_status=db_status
        )

    app.include_router(users_router)
    app.include_router(books_router)
    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Map every failure onto the error envelope."""

    @app.exception_handler(BookSwapError)
    async def bookswap_error_handler(request: Request, exc: BookSwapError):
        return error_response(exc.status_code, exc.message, exc.code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            FieldError(
                field=".".join(str(part) for part in error.get("loc", ())[1:]),
                message=error.get("msg", "Invalid value"),
            )
            for error in exc.errors()
        ]
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Validation failed",
            "VALIDATION_ERROR",
            errors=errors
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(
            exc.status_code,
            str(exc.detail),
            HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception", error=str(exc), path=request.url.path)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            "SERVER_ERROR"
        )


app = create_app()
