from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.v1 import api_router
from .config import get_settings
from .core.database import create_tables
from .core.log_config import configure_logging
from .exceptions import NotFoundError, PreferenceValidationError
from .services.providers.registry import ProviderRegistry


settings = get_settings()
configure_logging(settings)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting News Aggregator API", version=__version__, cache_backend=settings.cache_backend)
    try:
        create_tables()
        logger.info("Database tables created/verified")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    ProviderRegistry(settings).log_missing_credentials()

    yield

    logger.info("Shutting down News Aggregator API")


def create_application() -> FastAPI:
    app = FastAPI(
        title="News Aggregator",
        description="Aggregates articles from NewsAPI, The Guardian and The New York Times behind one filtered, personalized API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/api/v1/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=exc.to_dict())

    @app.exception_handler(PreferenceValidationError)
    async def preference_validation_handler(request: Request, exc: PreferenceValidationError):
        return JSONResponse(status_code=422, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        logger.error(
            "Unhandled exception occurred",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            }
        )

    # Health check at root
    from .api.v1.endpoints import health
    app.include_router(health.router, tags=["health"])

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "news_aggregator.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level="info",
        access_log=False,
    )
