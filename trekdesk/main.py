"""
TrekDesk -- FastAPI application.
Public catalog/content API and the staff dashboard API for the trek site.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import logging.config
from datetime import datetime, timezone
import time
import asyncio

from slowapi.errors import RateLimitExceeded

from trekdesk.core.config import settings
from trekdesk.core.errors import TrekDeskError, trekdesk_error_handler
from trekdesk.core.rate_limiting import limiter, rate_limit_handler
from trekdesk.db.database import init_db
from trekdesk.api import (
    health,
    routes_content,
    routes_enquiries,
    routes_gallery,
    routes_media,
    routes_packages,
)

logging_config = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "detailed": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        },
        "json": {
            "()": "trekdesk.core.monitoring.JSONFormatter",
        },
    },
    "handlers": {
        "default": {
            "formatter": "json" if settings.log_format == "json" else "detailed",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "trekdesk": {"handlers": ["default"], "level": settings.log_level},
        "uvicorn": {"handlers": ["default"], "level": "INFO"},
        "sqlalchemy": {"handlers": ["default"], "level": "WARNING"},
    },
}

logging.config.dictConfig(logging_config)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment} | Workers: {settings.api_workers}")

    for attempt in range(1, 4):
        try:
            init_db()
            logger.info("Database initialized successfully")
            break
        except Exception as e:
            if attempt == 3:
                logger.error(f"Database init failed after 3 attempts, aborting startup: {e}")
                raise
            logger.warning(f"Database init attempt {attempt}/3 failed: {e}, retrying in 2s...")
            await asyncio.sleep(2)

    if not settings.cloudinary_cloud_name:
        logger.warning("Cloudinary is not configured; uploads will fail until it is")

    logger.info("Application startup complete -- ready to serve")
    yield
    logger.info("Application shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Trek package catalog, site content and staff dashboard API.",
    docs_url="/docs" if settings.debug else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(TrekDeskError, trekdesk_error_handler)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.middleware("http")
async def request_middleware(request: Request, call_next):
    """Request timing log plus security headers."""
    start = time.perf_counter()
    request_id = request.headers.get("X-Request-ID", "")

    response = await call_next(request)

    elapsed = time.perf_counter() - start
    response.headers["X-Process-Time"] = f"{elapsed:.3f}"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    if request_id:
        response.headers["X-Request-ID"] = request_id

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s",
        extra={"request_id": request_id or None},
    )
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.info(f"Validation error on {request.url.path}: {message}")
    return JSONResponse(status_code=422, content={"error": message, "detail": errors})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(routes_packages.router, prefix=settings.api_prefix)
app.include_router(routes_media.router, prefix=settings.api_prefix)
app.include_router(routes_gallery.router, prefix=settings.api_prefix)
app.include_router(routes_content.router, prefix=settings.api_prefix)
app.include_router(routes_enquiries.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "health": f"{settings.api_prefix}/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "trekdesk.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
