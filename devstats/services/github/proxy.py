"""
GitHub API proxy.

Forwards a logical endpoint path (e.g. "/users/octocat/repos") to the GitHub
REST API, injects auth, normalizes upstream failures into GitHubAPIError
subclasses and optionally serves/stores responses through a CacheStore.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx
from cachetools import TLRUCache  # type: ignore[import-untyped]

from devstats.services.github.cache import CacheStore
from devstats.services.github.exceptions import (
    NetworkUnavailableError,
    RateLimitedError,
    RequestTimeoutError,
    UnexpectedPayloadError,
    ValidationError,
)
from devstats.services.github.helpers import RateLimitInfo, handle_error_response
from devstats.services.github.http_client import get_github_client

logger = logging.getLogger(__name__)

_RATE_LIMIT_KEY = "core"


def _until_reset(_key: str, reset_at: float, _now: float) -> float:
    """TLRU time-to-use: a rate limit block expires at GitHub's reset time."""
    return reset_at


class GitHubProxy:
    """
    Proxy for GitHub REST API GET requests.

    Uses the shared HTTP client singleton unless a client is injected.
    """

    DEFAULT_BASE_URL = "https://api.github.com"
    API_VERSION = "2022-11-28"

    def __init__(
        self,
        cache: CacheStore | None = None,
        token: str = "",
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = API_VERSION,
        user_agent: str = "devstats",
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.cache = cache
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": api_version,
            "User-Agent": user_agent,
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        # Holds the reset timestamp while GitHub reports an exhausted rate limit
        self._rate_limit_blocks: TLRUCache[str, float] = TLRUCache(
            maxsize=1, ttu=_until_reset, timer=clock
        )

    @property
    def is_authenticated(self) -> bool:
        return "Authorization" in self._headers

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client if self._client is not None else get_github_client()

    async def fetch(self, endpoint: str, use_cache: bool = False, refresh: bool = False) -> Any:
        """
        Fetch a GitHub endpoint and return its decoded JSON payload.

        Args:
            endpoint: API path, must start with "/" (query string allowed)
            use_cache: Serve from and write to the cache store
            refresh: With use_cache, skip the cached read but still store the response

        Returns:
            Decoded JSON payload

        Raises:
            ValidationError: If endpoint does not start with "/"
            GitHubAPIError: Normalized upstream or network failure
        """
        if not endpoint or not endpoint.startswith("/"):
            raise ValidationError("Endpoint must start with /")

        if use_cache and not refresh and self.cache is not None:
            cached = self.cache.get(endpoint)
            if cached is not None:
                return cached

        reset_at = self._rate_limit_blocks.get(_RATE_LIMIT_KEY)
        if reset_at is not None:
            logger.debug(f"Skipping {endpoint}: rate limited until {int(reset_at)}")
            raise RateLimitedError(
                "GitHub API rate limit exceeded", rate_limit_reset=int(reset_at)
            )

        data = await self._request(endpoint)

        if use_cache and self.cache is not None and not self.cache.set(endpoint, data):
            logger.warning(f"Failed to cache data for endpoint: {endpoint} - Data too large")

        return data

    async def _request(self, endpoint: str) -> Any:
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self.client.get(url, headers=self._headers)
        except httpx.TimeoutException as e:
            logger.warning(f"GitHub request timed out: {endpoint}")
            raise RequestTimeoutError(f"Request to GitHub API timed out: {endpoint}") from e
        except httpx.TransportError as e:
            logger.error(f"GitHub API unreachable for {endpoint}: {e}")
            raise NetworkUnavailableError(
                "Network connectivity issue - cannot reach GitHub API"
            ) from e

        try:
            handle_error_response(response, endpoint)
        except RateLimitedError as e:
            if e.rate_limit_reset and RateLimitInfo(response).is_exhausted:
                self._rate_limit_blocks[_RATE_LIMIT_KEY] = float(e.rate_limit_reset)
            raise

        try:
            return response.json()
        except ValueError as e:
            raise UnexpectedPayloadError(f"GitHub returned a non-JSON body for {endpoint}") from e
