"""API routes for the generation proxy"""
import logging
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from mindquest.api.middleware import limiter
from mindquest.api.models import HealthCheckResponse, ProxyErrorResponse
from mindquest.config import GEMINI_API_BASE_URL, GEMINI_MODEL, RATE_LIMIT
from mindquest.exceptions import ConfigurationError, wrap_external_exception

logger = logging.getLogger(__name__)

router = APIRouter()

GENERATE_CONTENT_PATH = "/api/generateContent"


def _error(status_code: int, message: str, details: Optional[str] = None) -> JSONResponse:
    body = ProxyErrorResponse(message=message, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def upstream_url(model: str = GEMINI_MODEL, base_url: str = GEMINI_API_BASE_URL) -> str:
    return f"{base_url}/models/{model}:generateContent"


async def _post_upstream(
    client: Optional[httpx.AsyncClient],
    api_key: str,
    payload: Any
) -> httpx.Response:
    params = {"key": api_key}
    if client is not None:
        return await client.post(upstream_url(), params=params, json=payload)
    async with httpx.AsyncClient() as own_client:
        return await own_client.post(upstream_url(), params=params, json=payload)


@router.post(GENERATE_CONTENT_PATH)
@limiter.limit(RATE_LIMIT)
async def generate_content(request: Request):
    """
    Forward a generateContent request to the generative language API

    The request body is passed through unchanged and the upstream JSON is
    returned unchanged. The API key never leaves the server.
    """
    api_key = request.app.state.gemini_api_key
    if not api_key:
        error = ConfigurationError(
            message="API key is not configured on the server.",
            config_key="GEMINI_API_KEY",
            operation="generate_content"
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, error.message)

    try:
        payload = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Request body must be valid JSON.")

    try:
        upstream = await _post_upstream(request.app.state.upstream_client, api_key, payload)
    except httpx.HTTPError as e:
        error = wrap_external_exception(e, operation="generate_content")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, error.message)

    if upstream.is_error:
        logger.warning(f"Upstream generateContent returned {upstream.status_code}")
        return _error(upstream.status_code, "Error from Google API", details=upstream.text)

    try:
        data = upstream.json()
    except ValueError:
        logger.error("Upstream generateContent returned a non-JSON body")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Upstream response was not valid JSON.")

    return JSONResponse(status_code=status.HTTP_200_OK, content=data)


@router.api_route(GENERATE_CONTENT_PATH, methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def generate_content_method_not_allowed(request: Request):
    return _error(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed")


@router.get("/api/health", response_model=HealthCheckResponse)
async def health_check():
    """Health check endpoint"""
    return HealthCheckResponse(status="ok")
