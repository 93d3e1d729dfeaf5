"""
GitHub service package.

Re-exports all public types and classes.
Usage: `from devstats.services.github import GitHubProxy, CacheStore`

Module structure:
- proxy.py: Endpoint proxy with auth injection, error mapping and caching
- read_operations.py: Typed read operations used by the stats pipeline
- cache.py: TTL cache store
- helpers.py: Rate limit handling and error utilities
- types.py: Data types
- exceptions.py: Normalized error taxonomy
- constants.py: Event types and language colors
"""

from devstats.services.github.cache import CacheEntry, CacheStore
from devstats.services.github.constants import GITHUB_LANGUAGE_COLORS, language_color
from devstats.services.github.exceptions import (
    AuthFailedError,
    GitHubAPIError,
    NetworkUnavailableError,
    NotFoundError,
    PayloadTooLargeError,
    RateLimitedError,
    RequestTimeoutError,
    UnexpectedPayloadError,
    UpstreamUnavailableError,
    UpstreamValidationError,
    ValidationError,
)
from devstats.services.github.helpers import RateLimitInfo, handle_error_response
from devstats.services.github.http_client import close_github_client, get_github_client
from devstats.services.github.proxy import GitHubProxy
from devstats.services.github.read_operations import GitHubReadOperations
from devstats.services.github.types import (
    EventRecord,
    LanguageStat,
    RepoSummary,
    UserProfile,
)

__all__ = [
    # Proxy and typed reads (main entry points)
    "GitHubProxy",
    "GitHubReadOperations",
    # Cache
    "CacheEntry",
    "CacheStore",
    # HTTP client lifecycle
    "get_github_client",
    "close_github_client",
    # Utilities
    "handle_error_response",
    "language_color",
    "RateLimitInfo",
    # Exceptions
    "AuthFailedError",
    "GitHubAPIError",
    "NetworkUnavailableError",
    "NotFoundError",
    "PayloadTooLargeError",
    "RateLimitedError",
    "RequestTimeoutError",
    "UnexpectedPayloadError",
    "UpstreamUnavailableError",
    "UpstreamValidationError",
    "ValidationError",
    # Types
    "EventRecord",
    "LanguageStat",
    "RepoSummary",
    "UserProfile",
    # Constants
    "GITHUB_LANGUAGE_COLORS",
]
