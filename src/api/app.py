"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src import __version__
from src.api.chat import router as chat_router
from src.api.chats import router as chats_router
from src.api.search import router as search_router
from src.api.settings import router as settings_router
from src.api.uploads import router as uploads_router
from src.cache import get_document_cache
from src.config import get_searxng_api_endpoint, load_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    # Startup
    logger.info("Starting InsightFlow API...")
    endpoint = get_searxng_api_endpoint(load_config())
    if endpoint:
        logger.info(f"Using SearxNG at {endpoint}")
    else:
        logger.info("SearxNG not configured, searches use the scraping fallback")
    yield
    # Shutdown
    get_document_cache().clear()
    logger.info("Shutting down InsightFlow API...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="InsightFlow API",
        description=(
            "Search-grounded AI chat. Routes questions through SearxNG (with a "
            "scraping fallback), grounds answers in the retrieved sources and "
            "uploaded documents, and streams tokens and citations back to the client."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    application.include_router(chat_router)
    application.include_router(chats_router)
    application.include_router(search_router)
    application.include_router(settings_router)
    application.include_router(uploads_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "insightflow"}

    return application


app = create_app()
