from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from depmatrix import __version__
from depmatrix.core.config import settings
from depmatrix.core.exceptions import (
    DependencyMatrixError,
    AuthenticationError,
    AuthorizationError,
    ResourceNotFoundError,
    DuplicateIdError,
    ValidationError,
    PersistenceError,
    error_response,
)
from depmatrix.core.logging_config import logger
from depmatrix.core.middleware import RequestLoggingMiddleware
from depmatrix.api.v1.router import api_router


async def validate_critical_config():
    """Validate critical configuration at startup - fail fast if missing"""
    errors = []
    warnings = []

    if not settings.JWT_SECRET_KEY or settings.JWT_SECRET_KEY == "CHANGE_ME":
        errors.append("JWT_SECRET_KEY is not set or using default value")

    if settings.STORAGE_MODE.lower() == "remote" and not settings.PERSISTENCE_API_URL:
        errors.append("PERSISTENCE_API_URL is not set while STORAGE_MODE=remote")

    if settings.STORAGE_MODE.lower() == "memory":
        warnings.append("STORAGE_MODE=memory - matrices are lost on restart")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] Critical configuration validated")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Storage mode: {settings.STORAGE_MODE}")
    logger.info("=" * 60)

    await validate_critical_config()

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(
    title=settings.APP_NAME,
    description="Triangular dependency matrix management: attributes, pairwise dependencies, totals and change history",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False  # Prevent 307 redirects that break CORS
)

# Add middleware (order matters - last added runs first)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


def status_for(exc: DependencyMatrixError) -> int:
    """HTTP status for a domain error"""
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, ResourceNotFoundError):
        return 404
    if isinstance(exc, DuplicateIdError):
        return 409
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, PersistenceError):
        return 502
    return 500


# Exception handlers
@app.exception_handler(DependencyMatrixError)
async def domain_exception_handler(request: Request, exc: DependencyMatrixError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}", extra={"error_details": exc.details})
    else:
        logger.warning(f"{exc.code}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=error_response(exc), headers=headers)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "storage_mode": settings.STORAGE_MODE,
    }


app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "depmatrix.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG,
    )
