# =======================================================================================
# authintegrate/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from . import __version__
from .api.routes.auth import router as auth_router
from .api.routes.dashboard import router as dashboard_router
from .api.routes.hardware import router as hardware_router
from .api.routes.realtime import router as realtime_router
from .api.routes.users import router as users_router
from .config import Config, config as default_config
from .container import ServiceContainer
from .database import DatabaseManager
from .logger import setup_logging
from .models.schemas import HealthResponse
from .utils.exceptions import AuthIntegrateError
from .utils.validators import format_validation_errors

logger = logging.getLogger(__name__)

SESSION_COOKIE = "authintegrate_session"
REQUEST_LOG_MAX = 80


def _register_exception_handlers(app: FastAPI) -> None:
    """Every error leaves as ``{"message": ...}`` with the matching status."""

    @app.exception_handler(AuthIntegrateError)
    async def handle_app_error(request: Request, exc: AuthIntegrateError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        message = format_validation_errors(exc.errors())
        if request.url.path == "/api/hardware/event":
            logger.warning("Hardware POST error: %s", message)
        return JSONResponse(status_code=400, content={"message": message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_store_error(request: Request, exc: SQLAlchemyError):
        logger.error("Store error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(settings: Optional[Config] = None, db: Optional[DatabaseManager] = None) -> FastAPI:
    settings = settings or default_config
    if not settings.SESSION_SECRET:
        raise RuntimeError("SESSION_SECRET must be set in environment variables")

    setup_logging(settings.API_DEBUG)
    services = ServiceContainer(settings, db)

    app = FastAPI(
        title="AuthIntegrate API",
        version=__version__,
        description="Dual-factor (fingerprint + password) access control",
        debug=settings.API_DEBUG,
    )
    app.state.services = services

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        session_cookie=SESSION_COOKIE,
        max_age=settings.SESSION_MAX_AGE,
        same_site="lax",
        https_only=settings.SESSION_HTTPS_ONLY,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_api_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            duration = (time.perf_counter() - start) * 1000
            line = f"{request.method} {request.url.path} {response.status_code} in {duration:.0f}ms"
            if len(line) > REQUEST_LOG_MAX:
                line = line[: REQUEST_LOG_MAX - 1] + "…"
            logger.info(line)
        return response

    _register_exception_handlers(app)

    # Routers
    app.include_router(auth_router, prefix="/api", tags=["auth"])
    app.include_router(users_router, prefix="/api", tags=["users"])
    app.include_router(dashboard_router, prefix="/api", tags=["dashboard"])
    app.include_router(hardware_router, prefix="/api", tags=["hardware"])
    app.include_router(realtime_router, tags=["realtime"])

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        try:
            services.db.fetch_one("SELECT 1")
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except SQLAlchemyError as e:
            return HealthResponse(status="error", dataAvailable=False, message=str(e))

    @app.on_event("startup")
    async def startup_event():
        services.db.create_schema()
        await services.startup()
        logger.info("AuthIntegrate API started (hardware mode: %s)", settings.HARDWARE_MODE)

    @app.on_event("shutdown")
    async def shutdown_event():
        await services.shutdown()
        logger.info("AuthIntegrate API stopped")

    return app
