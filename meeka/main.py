"""
Meeka API

FastAPI application entry point for the conversational data-entry engine.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meeka.api.routes import chat, health
from meeka.config import settings
from meeka.core.collection import SCHEMAS
from meeka.core.intelligence.intent import get_intent_classifier
from meeka.core.intelligence.vocabulary import RegionCode
from meeka.infra.database import close_db, init_db
from meeka.infra.redis import RedisClient

VERSION = "1.0.0"

QUIET_LOGGERS = ("uvicorn.access", "httpx", "anthropic")


def setup_logging() -> None:
    """Configure root logging; DEBUG when settings.debug is on."""
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # SQL echo only while debugging
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


logger = logging.getLogger(__name__)


async def _connect_stores() -> None:
    if settings.is_development:
        # Production schemas are managed by migrations
        try:
            await init_db()
            logger.info(f"Record tables ready: {', '.join(SCHEMAS)}")
        except Exception as e:
            logger.warning(f"Database init skipped: {e}")

    try:
        if await RedisClient.get_client():
            logger.info("Dialogue sessions stored in Redis")
        else:
            logger.warning("Redis unavailable - dialogue sessions kept in memory")
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open stores and compile intent rules on startup; close stores on shutdown."""
    setup_logging()
    logger.info(f"Starting {settings.app_name} ({settings.app_env})")
    health.set_start_time()

    await _connect_stores()

    classifier = get_intent_classifier()
    logger.info(
        f"Intent rules compiled (threshold {classifier.scoring.threshold}, "
        f"default region {settings.default_region})"
    )

    yield

    logger.info("Shutting down...")
    await RedisClient.close()
    await close_db()
    logger.info("Redis and database connections closed")


app = FastAPI(
    title="Meeka API",
    description="""
    Conversational data entry for a personal health journal.

    ## Features
    - Intent detection for record, navigation and AI analysis requests
    - Guided collection of symptoms, medications, moods and diary notes
    - AI insights filed to the diary

    ## Profiles
    Record-creating requests need the selected patient in the `X-Profile-ID` header.
    """,
    version=VERSION,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Validation error", "detail": exc.errors()},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Log uncaught errors; only development responses carry the message."""
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.is_development else "Internal server error",
        },
    )


@app.middleware("http")
async def request_timing_middleware(request: Request, call_next):
    started = time.perf_counter()
    try:
        return await call_next(request)
    finally:
        if settings.debug:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.debug(f"{request.method} {request.url.path} took {elapsed_ms:.1f}ms")


app.include_router(health.router)
app.include_router(chat.router)


@app.get("/", tags=["Root"])
async def root() -> dict:
    """Service name, version and what it can collect."""
    return {
        "name": settings.app_name,
        "version": VERSION,
        "environment": settings.app_env,
        "tables": list(SCHEMAS),
        "regions": [region.value for region in RegionCode],
        "docs": "/docs" if settings.is_development else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "meeka.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )
