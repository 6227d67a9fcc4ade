"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from mindquest.api.middleware import setup_cors, setup_rate_limiting
from mindquest.api.routes import router
from mindquest.config import GEMINI_API_KEY

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    owns_client = app.state.upstream_client is None
    if owns_client:
        app.state.upstream_client = httpx.AsyncClient()
        logger.info("Upstream HTTP client created")

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    if owns_client:
        await app.state.upstream_client.aclose()
        app.state.upstream_client = None
        logger.info("Upstream HTTP client closed")


def create_api_application(
    upstream_client: Optional[httpx.AsyncClient] = None,
    gemini_api_key: str = GEMINI_API_KEY
) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        upstream_client: HTTP client for the generative language API; one
            is created at startup when omitted
        gemini_api_key: Server-side API key for the upstream call
    """
    app = FastAPI(
        title="MindQuest API",
        description="Generation proxy for MindQuest",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.upstream_client = upstream_client
    app.state.gemini_api_key = gemini_api_key

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)

    # Include routes
    app.include_router(router)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error"}
        )

    logger.info("FastAPI application created")

    return app
