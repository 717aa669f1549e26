"""
SongCart Application

Song cart, draft and catalog API for the music quiz builder.
"""

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from .routes import cart_router, music_router, tags_router
from .core.config import Settings, get_settings
from .core.errors import AppError
from .core.retry import QueryResult
from .core.rate_limit import RateLimiter
from .database.carts import CartRegistry
from .database.storage import InMemoryStorage, JSONFileStorage
from .services.apple_music import build_client

logger = logging.getLogger(__name__)


def build_storage(settings: Settings):
    if settings.storage_backend == "file":
        logger.info(f"Cart storage: files in {settings.storage_dir}")
        return JSONFileStorage(settings.storage_dir)
    logger.info("Cart storage: in-memory")
    return InMemoryStorage()


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    tag_query: Optional[Callable[[], Awaitable[QueryResult]]] = None,
) -> FastAPI:
    """
    Build the application with its process-wide services.

    ``tag_query`` fetches question-set rows for the popular tags route;
    without it that route answers 503.
    """
    settings = settings or get_settings()

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events"""
        logger.info(f"{settings.app_name} starting up...")
        app.state.settings = settings
        app.state.cart_registry = CartRegistry(build_storage(settings))
        app.state.rate_limiter = RateLimiter(sweep_interval=settings.rate_limit_sweep_interval)
        app.state.music_client = build_client(settings, http_client=http_client)
        app.state.tag_query = tag_query
        logger.info(f"Apple Music configured: {settings.apple_music_configured}")

        yield

        logger.info(f"{settings.app_name} shutting down...")
        await app.state.music_client.close()

    app = FastAPI(
        title=settings.app_name,
        description="Song cart and catalog API for the music quiz builder",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        # status 0 marks an unreachable upstream
        status_code = exc.status_code or 503
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.code} - {exc.message}")
        return JSONResponse(
            status_code=status_code,
            content=exc.to_dict(),
        )

    # Include API routers
    app.include_router(cart_router)
    app.include_router(music_router)
    app.include_router(tags_router)

    @app.get("/")
    async def home():
        """API index"""
        return {
            "message": f"{settings.app_name} API",
            "docs": "/docs",
            "endpoints": {
                "cart": "/api/cart",
                "drafts": "/api/cart/drafts",
                "music": "/api/music",
                "tags": "/api/tags/popular",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "songcart",
            "catalog_configured": settings.apple_music_configured,
        }

    return app


# Load environment variables
load_dotenv()

app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "songcart.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
