"""BiuBiuStar API - FastAPI application."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from biubiustar.api.api import api_router
from biubiustar.api.errors import register_exception_handlers
from biubiustar.api.middleware import BodySizeLimitMiddleware, RequestLoggingMiddleware, SecurityHeadersMiddleware
from biubiustar.core.cache import close_redis, create_redis
from biubiustar.core.config import settings
from biubiustar.core.logging_config import configure_logging
from biubiustar.db.session import create_engine, create_session_maker, display_url

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    engine = create_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    app.state.engine = engine
    app.state.session_maker = create_session_maker(engine)
    app.state.redis = create_redis(settings.REDIS_URL, settings.REDIS_PASSWORD)

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("database connected (%s)", display_url(settings.DATABASE_URL))
    except SQLAlchemyError as exc:
        logger.warning("database connection failed (%s): %s", display_url(settings.DATABASE_URL), exc)

    try:
        await app.state.redis.ping()
        logger.info("redis connected")
    except RedisError as exc:
        if settings.is_production:
            logger.error("redis connection failed: %s", exc)
            raise
        logger.warning("redis connection failed, continuing without it: %s", exc)

    if not settings.JWT_SECRET:
        logger.warning("JWT_SECRET is not set; authentication will fail")
    logger.info("%s %s started (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)
    try:
        yield
    finally:
        await close_redis(app.state.redis)
        await engine.dispose()
        logger.info("shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)
app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CLIENT_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)
register_exception_handlers(app)
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "success": True,
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "endpoints": {
            "auth": "/api/auth",
            "users": "/api/users",
            "posts": "/api/posts",
            "events": "/api/events",
            "admin": "/api/admin",
            "contact": "/api/contact",
            "health": "/api/health",
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("biubiustar.main:app", host="0.0.0.0", port=settings.PORT, reload=settings.DEBUG)
