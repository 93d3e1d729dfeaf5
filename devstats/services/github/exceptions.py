"""Exceptions for GitHub service.

Every upstream failure is normalized into a GitHubAPIError subclass whose
status_code is the HTTP status the proxy returns to its caller.
"""


class GitHubAPIError(Exception):
    """Error from GitHub API."""

    status_code = 500
    retryable = True

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        rate_limit_reset: int | None = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.rate_limit_reset = rate_limit_reset  # Unix timestamp when rate limit resets
        super().__init__(message)


class ValidationError(GitHubAPIError):
    """Request rejected before reaching GitHub (e.g. malformed endpoint)."""

    status_code = 400
    retryable = False


class AuthFailedError(GitHubAPIError):
    """GitHub rejected the configured token (401)."""

    status_code = 401
    retryable = False


class NotFoundError(GitHubAPIError):
    """Resource does not exist upstream (404)."""

    status_code = 404
    retryable = False


class UpstreamValidationError(GitHubAPIError):
    """GitHub could not process the request parameters (422)."""

    status_code = 422
    retryable = False


class RateLimitedError(GitHubAPIError):
    """GitHub rate limit hit. Upstream answers 403; callers see 429."""

    status_code = 429


class UpstreamUnavailableError(GitHubAPIError):
    """GitHub answered 503."""

    status_code = 503


class NetworkUnavailableError(GitHubAPIError):
    """GitHub could not be reached at all (DNS, connect, aborted request)."""

    status_code = 503


class RequestTimeoutError(NetworkUnavailableError):
    """Request exceeded its time budget and was aborted."""


class UnexpectedPayloadError(GitHubAPIError):
    """Upstream payload did not match the expected shape."""

    status_code = 500
    retryable = False


class PayloadTooLargeError(Exception):
    """Value cannot be cached because its serialized size exceeds the item cap."""

    def __init__(self, size_bytes: int, max_bytes: int):
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(f"Serialized size {size_bytes} bytes exceeds cap of {max_bytes} bytes")
