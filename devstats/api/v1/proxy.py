"""
GitHub proxy endpoint.

GET /api/v1/github/proxy?endpoint=/users/octocat/repos&cache=true

Also mounted at GET /proxy for clients using the bare proxy URL.
"""

import logging
import time

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from devstats.api.deps import get_proxy
from devstats.services.github import GitHubAPIError, GitHubProxy

router = APIRouter(prefix="/github", tags=["github"])
root_router = APIRouter(tags=["github"])
logger = logging.getLogger(__name__)

# Any other non-empty value ("true", "skills", ...) enables caching
CACHE_DISABLED_VALUES = {"", "false", "0", "no", "off"}


def wants_cache(value: str | None) -> bool:
    """Interpret the `cache` query parameter."""
    if value is None:
        return False
    return value.strip().lower() not in CACHE_DISABLED_VALUES


def error_response(e: GitHubAPIError) -> JSONResponse:
    """Render a normalized GitHub error as {"error": message} with its status."""
    detail = e.message
    if e.rate_limit_reset:
        reset_in = max(0, e.rate_limit_reset - int(time.time()))
        minutes = reset_in // 60
        detail = f"{e.message}. Rate limit resets in {minutes} minutes."
    return JSONResponse({"error": detail}, status_code=e.status_code)


async def proxy_github(
    endpoint: str | None = Query(None, description="GitHub API path, must start with /"),
    cache: str | None = Query(None, description="'true' or a partition name enables caching"),
    proxy: GitHubProxy = Depends(get_proxy),
) -> JSONResponse:
    """Forward a GET request to the GitHub API."""
    if not endpoint:
        return JSONResponse(
            {"error": "Endpoint parameter required"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        data = await proxy.fetch(endpoint, use_cache=wants_cache(cache))
    except GitHubAPIError as e:
        if e.status_code >= 500:
            logger.error(f"GitHub proxy error for {endpoint}: {e.message}")
        return error_response(e)
    except Exception as e:
        logger.exception(f"Unexpected proxy failure for {endpoint}")
        return JSONResponse(
            {"error": f"Failed to fetch from GitHub API: {e}"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return JSONResponse(data)


router.add_api_route("/proxy", proxy_github, methods=["GET"])
root_router.add_api_route("/proxy", proxy_github, methods=["GET"])
