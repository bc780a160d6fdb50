"""
Manual Lookup API

Public search/download endpoints plus the token-protected admin API.
Run with `python main.py` or `uvicorn main:app`.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import structlog
from datetime import datetime, timezone

from config import settings, check_connection
from exceptions import AppError

API_VERSION = "0.1.0"


def configure_logging() -> None:
    """Route structlog through stdlib logging at the configured level."""
    logging.basicConfig(format="%(message)s", level=settings.log_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.is_production
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()
logger = structlog.get_logger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report store row counts and auth setup once at boot."""
    logger.info(
        "application_starting",
        environment=settings.environment,
        debug=settings.debug
    )

    db_status = check_connection()
    if db_status["status"] == "healthy":
        logger.info(
            "database_connected",
            products=db_status["products_count"],
            manuals=db_status["manuals_count"]
        )
    else:
        # Keep serving; /health reports the store as degraded
        logger.error("database_connection_failed", error=db_status.get("error"))

    if not settings.api_token_list:
        logger.warning("api_tokens_not_configured")

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="Manual Lookup",
    description="Find and download product manuals by serial number",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================
# ROUTES
# ===================

@app.get("/health")
async def health_check():
    """Store status with row counts; `degraded` when the store is unreachable."""
    db_status = check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": _utc_now(),
        "environment": settings.environment,
        "database": db_status
    }


@app.get("/")
async def root():
    """Service name, version and endpoint map."""
    return {
        "name": "Manual Lookup API",
        "version": API_VERSION,
        "docs": "/docs" if settings.debug else "Disabled in production",
        "health": "/health",
        "endpoints": {
            "search": "/api/search",
            "download": "/api/download",
            "products": "/api/products",
            "manuals": "/api/manuals",
            "logs": "/api/logs",
            "dashboard": "/api/dashboard"
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Errors raised outside a route body (dependencies such as auth)."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Anything uncaught becomes INTERNAL_ERROR; details only in debug."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": _utc_now()
            }
        }
    )


# ===================
# ROUTERS
# ===================
from routes.lookup import router as lookup_router
from routes.products import router as products_router
from routes.manuals import router as manuals_router
from routes.logs import router as logs_router
from routes.dashboard import router as dashboard_router

app.include_router(lookup_router, prefix="/api", tags=["Lookup"])
app.include_router(products_router, prefix="/api/products", tags=["Products"])
app.include_router(manuals_router, prefix="/api/manuals", tags=["Manuals"])
app.include_router(logs_router, prefix="/api/logs", tags=["Logs"])
app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
