"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis pool, database engine).
Middleware, CORS, error handlers, and routers are all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backstage import __version__
from backstage.api import api_router
from backstage.api.errors import register_error_handlers
from backstage.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "backstage.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        lookup_timeout_seconds=settings.lookup_timeout_seconds,
    )

    from backstage.middleware.redis import close_redis, init_redis
    try:
        await init_redis()
        logger.info("backstage.redis_connected", url=settings.redis_url)
    except Exception as e:
        # Redis is optional — only rate limiting needs it
        logger.warning("backstage.redis_unavailable", error=str(e))

    yield

    logger.info("backstage.shutdown")
    await close_redis()

    from backstage.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Backstage API",
        description="Backend-for-frontend for the artist management platform",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from backstage.middleware.rate_limit import RateLimitMiddleware
    from backstage.middleware.request_id import RequestIdMiddleware
    from backstage.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        key_rpm=settings.rate_limit_key_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-api-key", "X-Request-ID"],
    )

    register_error_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: backstage.main:app)
app = create_app()
