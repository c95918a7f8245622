"""FastAPI application entry point.

Storefront Catalog API - product listings with per-variant stock.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.dependencies import FamilyServices, build_services
from storefront.errors import (
    CatalogError,
    InsufficientStockError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from storefront.routes import api_router
from storefront.schemas import ErrorDetail, ErrorResponse
from storefront.settings import Settings, get_settings
from storefront.stores.listings import PostgresListingStore
from storefront.stores.locks import LockProvider, RedisLocks
from storefront.stores.postgres import create_engine, create_session_factory, create_tables, ping_db
from storefront.stores.redis import close_redis, create_redis

logger = logging.getLogger("uvicorn.error")

# Most specific first
_STATUS_BY_ERROR: list[tuple[type[CatalogError], int]] = [
    (NotFoundError, 404),
    (ValidationError, 400),
    (InsufficientStockError, 400),
    (InternalError, 500),
]


def _status_for(exc: CatalogError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


def _error_response(status_code: int, code: str, message: str, detail: Any = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=jsonable_encoder(detail)))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events. Services injected through
    create_app(services=...) are used as is.
    """
    if getattr(app.state, "services", None) is not None:
        yield
        return

    # Startup
    settings: Settings = app.state.settings

    engine = create_engine(settings)
    try:
        await ping_db(engine)
        if settings.create_tables_on_startup:
            await create_tables(engine)
        logger.info("Postgres connected")
    except Exception:
        logger.exception("Postgres init failed")

    # Redis is only needed for cross-instance purchase locks
    redis_client = None
    locks: LockProvider | None = None
    if settings.purchase_mode == "locked" and settings.redis_url:
        try:
            redis_client = await create_redis(settings.redis_url)
            locks = RedisLocks(
                redis_client,
                ttl_seconds=settings.purchase_lock_ttl_seconds,
                wait_seconds=settings.purchase_lock_wait_seconds,
            )
            logger.info("Purchase locks shared via Redis")
        except Exception:
            logger.exception("Redis init failed; purchase locks are per-process")
            redis_client = None

    store = PostgresListingStore(create_session_factory(engine))
    app.state.services = build_services(store, settings, locks=locks)
    logger.info(f"Purchase mode: {settings.purchase_mode}")

    yield

    # Shutdown
    if redis_client is not None:
        await close_redis(redis_client)
    await engine.dispose()


def create_app(
    settings: Settings | None = None,
    services: dict[str, FamilyServices] | None = None,
) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Product catalog with per-variant stock and purchases",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    if services is not None:
        app.state.services = services

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Catalog errors -> structured error format
    @app.exception_handler(CatalogError)
    async def catalog_exception_handler(request: Request, exc: CatalogError) -> JSONResponse:
        if isinstance(exc, NotFoundError) and settings.not_found_as_empty:
            return JSONResponse(status_code=200, content=[])

        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error(f"[{exc.code}] {request.method} {request.url.path}: {exc.message} {exc.detail}")
        return _error_response(status_code, exc.code, exc.message, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(
            400,
            ValidationError.code,
            "Invalid request",
            {"errors": exc.errors()},
        )

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(
            500,
            InternalError.code,
            str(exc) if settings.debug else "Internal server error",
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
