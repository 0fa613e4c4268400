"""
Cinema Booking API - Main Application Entry Point

A movie ticket booking backend demonstrating:
- Time-boxed seat locks arbitrated by a unique index
- Booking confirmation as a single claim-by-delete transaction
- Redis caching of catalog reads with prefix invalidation
- Structured logging with request correlation
"""

import asyncio
from contextlib import asynccontextmanager, suppress
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cinema.core.clock import get_clock
from cinema.core.config import get_settings
from cinema.core.exceptions import DomainError, ConflictError
from cinema.core.logging import setup_logging, get_logger
from cinema.core.metrics import metrics_endpoint
from cinema.api.router import api_router
from cinema.api.middleware import RequestLoggingMiddleware
from cinema.db.session import SessionLocal
from cinema.schemas.common import ErrorResponse
from cinema.services.cache_service import get_redis, close_redis, get_cache_stats
from cinema.services.lock_service import run_periodic_sweeper

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    sweeper = None
    if settings.LOCK_SWEEP_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(
            run_periodic_sweeper(SessionLocal, get_clock(), settings.LOCK_SWEEP_INTERVAL_SECONDS)
        )

    yield

    if sweeper:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Movie ticket booking API with time-boxed seat locks",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    body = ErrorResponse(
        message=exc.message,
        seat_ids=exc.seat_ids if isinstance(exc, ConflictError) else [],
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
