"""
MenuMate ASGI application.

Routes:
    - /api/register, /api/users/login, /api/vendor/login: identity
    - /api/admin/...: food courts and managers
    - /api/vendor/shops, /api/shops/{id}/tables, /api/shops/{id}/menu: vendor management
    - /api/orders, /api/orders/{id}/review: customer ordering and reviews
    - /api/vendor/shops/{id}/analytics: dashboard
    - /api/public/...: QR landing, menus, waiter calls
    - /ws: real-time rooms
    - /health: database and real-time transport status
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from menumate.core.config import get_settings, setup_logging
from menumate.core.exceptions import MenuMateError
from menumate.database import engine, get_db, init_db
from menumate.routers import router as api_router
from menumate.schemas import ErrorResponse, HealthResponse
from menumate.services.realtime import BaseRealtimeChannel, get_realtime_channel
from menumate.services.storage import BaseImageStorage, get_image_storage

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database and the real-time transport; close both on exit."""
    logger.info(f"🍽️  {settings.app_name} v{settings.app_version} [{settings.env_mode.value}]")
    if settings.debug:
        logger.info("   debug logging enabled")

    await init_db()

    channel = get_realtime_channel()
    await channel.start()
    logger.info(f"✅ Rooms served by the {channel.provider_name} channel")
    logger.info(f"✅ Menu images kept in {get_image_storage().provider_name} storage")

    for name in settings.validate_production_config():
        logger.warning(f"⚠️ {name} still points at a local default")

    yield

    await channel.stop()
    await engine.dispose()
    logger.info("👋 Shut down cleanly")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Multi-tenant food court ordering: shops, QR tables, menus, "
        "orders, reviews, analytics and real-time waiter calls."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(api_router)

if settings.media_base_url.startswith("/"):
    Path(settings.upload_directory).mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.media_base_url,
        StaticFiles(directory=settings.upload_directory),
        name="media",
    )


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "success": True,
        "message": f"Welcome to {settings.app_name} v{settings.app_version} (Multi-Shop Ready!)",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db),
    channel: BaseRealtimeChannel = Depends(get_realtime_channel),
    storage: BaseImageStorage = Depends(get_image_storage),
) -> HealthResponse:
    """Verify the database, the real-time transport and image storage."""

    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "unhealthy"
        logger.error(f"Database health check failed: {e}")

    realtime_status = "healthy" if await channel.health_check() else "unhealthy"
    storage_status = "healthy" if await storage.health_check() else "unhealthy"

    statuses = (db_status, realtime_status, storage_status)
    overall = "operational" if all(s == "healthy" for s in statuses) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        realtime=realtime_status,
        storage=storage_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(MenuMateError)
async def menumate_exception_handler(request: Request, exc: MenuMateError) -> JSONResponse:
    """Known failures: taxonomy status and message."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=exc.message).model_dump(exclude_none=True),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input is a 400 like every other validation failure."""
    errors = exc.errors()
    message = "Invalid request."
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(message=message).model_dump(exclude_none=True),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    error = ErrorResponse(message="Server Error", detail=str(exc) if settings.debug else None)
    return JSONResponse(status_code=500, content=error.model_dump(exclude_none=True))


if __name__ == "__main__":
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
