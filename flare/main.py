import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api import community, feed, health, preferences
from .api.deps import get_trending_service
from .config import settings
from .errors import FlareError
from .logging_config import setup_logging
from .middleware import ERROR_CATEGORY_HEADER, RequestLoggingMiddleware
from .services.engine import get_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)
    logger.info(f"Starting Flare API with {settings.storage_backend} storage")
    yield
    await get_trending_service().close()
    await get_engine().close()


# Create FastAPI app
app = FastAPI(
    title="Flare API",
    description="Trending aggregation and personalized ranking",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(FlareError)
async def flare_error_handler(request: Request, exc: FlareError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers={ERROR_CATEGORY_HEADER: exc.category.value},
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(feed.router, tags=["Feed"])
app.include_router(preferences.router, tags=["Preferences"])
app.include_router(community.router, tags=["Community"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Flare API",
        "version": __version__,
        "docs": "/docs",
        "health": "/healthz",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "flare.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
