"""
GitHub API helper utilities.

Provides rate limit header parsing and the mapping from upstream HTTP
status codes to normalized errors.
"""

import json
import logging

import httpx

from devstats.services.github.exceptions import (
    AuthFailedError,
    GitHubAPIError,
    NotFoundError,
    RateLimitedError,
    UpstreamUnavailableError,
    UpstreamValidationError,
)

logger = logging.getLogger(__name__)


class RateLimitInfo:
    """Rate limit information from GitHub API response."""

    def __init__(self, response: httpx.Response) -> None:
        self.remaining = response.headers.get("X-RateLimit-Remaining")
        self.reset = response.headers.get("X-RateLimit-Reset")

    @property
    def reset_timestamp(self) -> int | None:
        """Get reset timestamp as integer, or None if missing or not numeric."""
        return _parse_int(self.reset)

    @property
    def is_exhausted(self) -> bool:
        """Check if rate limit is exhausted."""
        return _parse_int(self.remaining) == 0


def _parse_int(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        logger.debug(f"Ignoring non-numeric rate limit header: {value!r}")
        return None


def extract_error_message(response: httpx.Response) -> str:
    """
    Build a message for an unmapped upstream error.

    Prefers the JSON body's `message` field; otherwise appends the raw body
    to a generic status message.
    """
    message = f"GitHub API error: {response.status_code}"
    body = response.text
    if not body:
        return message

    try:
        parsed = json.loads(body)
    except ValueError:
        return f"{message} - {body}"

    if isinstance(parsed, dict) and parsed.get("message"):
        return str(parsed["message"])
    return message


def handle_error_response(response: httpx.Response, endpoint: str) -> None:
    """
    Raise the normalized error for a non-2xx GitHub response.

    Args:
        response: The HTTP response from GitHub API
        endpoint: Requested endpoint path, for log context

    Raises:
        RateLimitedError: On 403 (GitHub signals rate limiting with 403)
        NotFoundError, AuthFailedError, UpstreamValidationError,
        UpstreamUnavailableError: On 404, 401, 422, 503
        GitHubAPIError: For any other non-2xx status
    """
    if response.is_success:
        return

    status = response.status_code
    logger.debug(f"GitHub returned {status} for {endpoint}")

    if status == 403:
        rate_info = RateLimitInfo(response)
        raise RateLimitedError(
            "GitHub API rate limit exceeded",
            rate_limit_reset=rate_info.reset_timestamp,
        )
    elif status == 404:
        raise NotFoundError("Resource not found")
    elif status == 401:
        raise AuthFailedError("Authentication failed")
    elif status == 422:
        raise UpstreamValidationError("Validation failed")
    elif status == 503:
        raise UpstreamUnavailableError("GitHub API is temporarily unavailable")

    raise GitHubAPIError(extract_error_message(response))
