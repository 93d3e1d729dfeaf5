"""
Shared HTTP client for upstream GitHub calls.

One pooled AsyncClient serves every GitHubProxy that is not given its own
client. Auth and GitHub headers are attached per request by the proxy, so the
same client works for authenticated and anonymous proxies.

Redirects are followed: GitHub answers 301 for renamed or transferred
repositories and the stats pipeline wants the moved repository's data.
"""

import logging

import httpx

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30.0
CONNECT_TIMEOUT_SECONDS = 5.0
MAX_CONNECTIONS = 20
MAX_KEEPALIVE_CONNECTIONS = 10

_client: httpx.AsyncClient | None = None


def get_github_client() -> httpx.AsyncClient:
    """Return the process-wide client, creating it on first use or after close."""
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS, connect=CONNECT_TIMEOUT_SECONDS),
            limits=httpx.Limits(
                max_connections=MAX_CONNECTIONS,
                max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS,
            ),
            follow_redirects=True,
            http2=True,
        )
        logger.debug("Created shared GitHub HTTP client")
    return _client


async def close_github_client() -> None:
    """Close the shared client (app shutdown). Safe to call when none exists."""
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
        logger.debug("Closed shared GitHub HTTP client")
    _client = None
