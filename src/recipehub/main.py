"""FastAPI application entry point."""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from recipehub.config import get_settings
from recipehub.database import Base, async_engine
from recipehub.errors import AppError
from recipehub.logging_config import LoggingContext, configure_logging, get_logger
from recipehub.routers import (
    auth_router,
    collections_router,
    meal_plans_router,
    notifications_router,
    recipes_router,
    reviews_router,
    spoonacular_router,
    users_router,
)
from recipehub.routers.spoonacular import close_spoonacular

settings = get_settings()

# Configure logging on module load
configure_logging(log_level=settings.log_level, json_format=settings.log_format == "json")
logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting Recipehub API")

    # Create database tables if they don't exist
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")

    yield

    logger.info("Shutting down Recipehub API")
    await close_spoonacular()
    await async_engine.dispose()


app = FastAPI(
    title="Recipehub API",
    description="Recipe sharing, reviews, collections and meal planning",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag every log record of a request with its id and echo the id back."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    with LoggingContext(request_id=request_id):
        response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# =============================================================================
# Error handling
# =============================================================================


def _error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=_error_body("Validation failed", errors=errors),
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(status_code=400, content=_error_body("Duplicate value"))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    extra = {"error": str(exc)} if settings.is_development else {}
    return JSONResponse(status_code=500, content=_error_body("Server Error", **extra))


# Include routers
app.include_router(auth_router)
app.include_router(recipes_router)
app.include_router(reviews_router)
app.include_router(collections_router)
app.include_router(meal_plans_router)
app.include_router(notifications_router)
app.include_router(users_router)
app.include_router(spoonacular_router)


@app.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "ok", "service": "recipehub-api"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Recipehub API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
