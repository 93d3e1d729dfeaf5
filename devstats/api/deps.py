"""FastAPI dependencies resolving the per-process service objects.

The services are built once in the app lifespan and stored on app.state;
tests replace them through app.dependency_overrides.
"""

from fastapi import Request

from devstats.services.github import GitHubProxy
from devstats.services.stats_facade import StatsFacade


def get_proxy(request: Request) -> GitHubProxy:
    """Shared GitHub proxy (owns the proxy-side cache store)."""
    return request.app.state.proxy


def get_stats_facade(request: Request) -> StatsFacade:
    """Shared stats facade (owns the presentation cache store)."""
    return request.app.state.stats_facade
