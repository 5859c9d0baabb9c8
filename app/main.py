"""
Blogline API - FastAPI application entry point.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401  registers tables on Base.metadata
from .config import get_settings
from .database import engine, Base
from .limiter import limiter
from .logging_config import api_logger
from .middleware import SecurityHeadersMiddleware, RequestLoggingMiddleware
from .responses import api_exception_handler, request_validation_handler
from .routes import (
    posts_router,
    categories_router,
    comments_router,
    likes_router,
    health_router,
)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables for local SQLite setups; hosted stores manage their own schema."""
    if engine.dialect.name == "sqlite":
        Base.metadata.create_all(bind=engine)
    api_logger.info("Blogline API started", environment=settings.environment, dialect=engine.dialect.name)
    yield
    api_logger.info("Blogline API stopped")


app = FastAPI(
    title="Blogline API",
    description="Posts, categories, comments and likes for a server-rendered blog",
    version="1.0.0",
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter

# Envelope every error
app.add_exception_handler(RateLimitExceeded, api_exception_handler)
app.add_exception_handler(StarletteHTTPException, api_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, api_exception_handler)

app.add_middleware(SecurityHeadersMiddleware)

# Request logging middleware (only in debug mode)
if settings.debug:
    app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "Accept",
        "Origin",
        "X-Requested-With",
        "X-Request-ID",
    ],
    max_age=3600,
)

# Routes
app.include_router(posts_router)
app.include_router(categories_router)
app.include_router(comments_router)
app.include_router(likes_router)
app.include_router(health_router)


@app.get("/")
def root():
    return {
        "message": "Blogline API",
        "docs": "/api/docs" if settings.debug else "Disabled in production",
    }
