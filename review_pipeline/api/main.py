"""
FastAPI application for the Review Pipeline service.

This module initializes and configures the FastAPI application that serves
the comment, engagement and review endpoints.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from review_pipeline.api.dependencies import Services
from review_pipeline.api.endpoints import comments, reviews
from review_pipeline.config.settings import settings
from review_pipeline.core.counter_store import CounterStore
from review_pipeline.core.engagement import EngagementService
from review_pipeline.core.exceptions import PipelineError, RateLimitExceededError
from review_pipeline.core.moderation import CommentModerationService
from review_pipeline.core.rate_limiter import RateLimiter
from review_pipeline.core.review_store import ReviewStore
from review_pipeline.core.task_dispatcher import BackgroundTaskDispatcher
from review_pipeline.core.translation_sync import TranslationSyncEngine
from review_pipeline.core.trust_ledger import TrustLedger
from review_pipeline.integrations.redis_client import RedisResource
from review_pipeline.integrations.translator import GoogleTranslateClient, TranslationCache
from review_pipeline.monitoring.metrics import PrometheusExporter
from review_pipeline.utils.db_session import get_async_engine, get_async_session_factory
from review_pipeline.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def build_services() -> Services:
    """Wire the stores and services over the application's database and Redis."""
    session_factory = get_async_session_factory()
    redis = RedisResource(settings.REDIS_URL, socket_timeout=settings.RATE_LIMIT_TIMEOUT_SECONDS)
    redis_client = redis.connect()

    rate_limiter = RateLimiter(redis_client)
    trust_ledger = TrustLedger(session_factory=session_factory)
    translator = GoogleTranslateClient(cache=TranslationCache(redis_client))
    dispatcher = BackgroundTaskDispatcher()
    review_store = ReviewStore(session_factory=session_factory)
    translation_engine = TranslationSyncEngine(translator, review_store, dispatcher)
    review_store.translation_engine = translation_engine

    return Services(
        moderation=CommentModerationService(rate_limiter, trust_ledger, session_factory=session_factory),
        trust_ledger=trust_ledger,
        engagement=EngagementService(rate_limiter, CounterStore(session_factory=session_factory)),
        review_store=review_store,
        translation_engine=translation_engine,
        dispatcher=dispatcher,
        redis=redis,
        translator=translator,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Creates the Redis and translation clients and the background dispatcher
    on startup; drains background translations and closes clients on shutdown.
    """
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if settings.METRICS_ENABLED:
        PrometheusExporter(port=settings.METRICS_PORT).start_server()

    services = build_services()
    app.state.services = services

    yield

    # Shutdown
    logger.info("Shutting down application")
    await services.dispatcher.shutdown(timeout=settings.BACKGROUND_SHUTDOWN_TIMEOUT_SECONDS)
    await services.translator.close()
    await services.redis.close()
    await get_async_engine().dispose()


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitExceededError):
        headers = {"Retry-After": str(exc.retry_after)}
    if exc.status_code >= 500:
        logger.error(f"Unhandled pipeline error on {request.url.path}: {exc.message}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""Comment moderation and translation API for the book-review site.

        This API provides endpoints for:
        - Submitting, listing and reporting comments
        - Moderating comments and banning commenters
        - Liking reviews and tracking views
        - Writing reviews, with background translation of published content
        - Health monitoring""",
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_tags=[
            {"name": "comments", "description": "Comment submission and moderation"},
            {"name": "reviews", "description": "Review engagement and content"},
            {"name": "health", "description": "Health check and monitoring"},
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS if not settings.DEBUG else ["*"],
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS if not settings.DEBUG else ["*"]
    )

    app.add_exception_handler(PipelineError, pipeline_error_handler)

    app.include_router(comments.router, prefix="/api/v1", tags=["comments"])
    app.include_router(reviews.router, prefix="/api/v1", tags=["reviews"])

    @app.get("/health", tags=["health"], summary="Health Check")
    async def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            dict: Service status, version, timestamp and the state of the
            optional Redis and translation integrations.
        """
        services = getattr(request.app.state, "services", None)
        redis_status = "disabled"
        translation_status = "disabled"
        background_tasks = 0
        if services is not None:
            if services.redis.client is not None:
                redis_status = "connected" if await services.redis.ping() else "unreachable"
            translation_status = "enabled" if services.translator.configured else "disabled"
            background_tasks = services.dispatcher.pending

        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "redis": redis_status,
            "translation": translation_status,
            "background_tasks": background_tasks,
            "debug_mode": settings.DEBUG,
        }

    return app


# Create the application instance
app = create_app()


def run() -> None:
    """Serve the application with uvicorn on `API_HOST`:`API_PORT`."""
    uvicorn.run(
        "review_pipeline.api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_config=None,
    )


if __name__ == "__main__":
    run()
