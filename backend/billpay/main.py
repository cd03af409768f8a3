"""Main FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from billpay.config import settings
from billpay.database import create_db_engine, create_session_factory
from billpay.rate_limiter import limiter
from billpay.redis_client import close_redis, create_redis
from billpay.services.ephemeral_store import InMemoryEphemeralStore, RedisEphemeralStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create store handles at startup and release them at shutdown."""
    engine = create_db_engine(settings.database_url)
    redis_client = create_redis(settings)

    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.redis = redis_client
    if redis_client is not None:
        app.state.ephemeral_store = RedisEphemeralStore(redis_client)
    else:
        logger.warning("REDIS_URL not set, password reset tokens are kept in process memory")
        app.state.ephemeral_store = InMemoryEphemeralStore()

    logger.info(f"Started with credential store: {settings.credential_store}")
    try:
        yield
    finally:
        close_redis(redis_client)
        engine.dispose()
        logger.info("Store connections closed")


# Create FastAPI app
app = FastAPI(
    title="BillPay API",
    description="Bill payment and money movement backend",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add rate limiter to app state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(SQLAlchemyError)
@app.exception_handler(redis.RedisError)
async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    """Infrastructure failures reach the client as a generic server error."""
    logger.exception(f"Store failure on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "BillPay API", "version": "0.1.0", "status": "running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "credential_store": settings.credential_store,
        "ephemeral_store": "redis" if settings.redis_url else "memory",
    }


# Import and include routers
from billpay.routers import auth  # noqa: E402

app.include_router(auth.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
