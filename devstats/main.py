import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from devstats.api.router import api_router
from devstats.api.v1.proxy import root_router as proxy_root_router
from devstats.config import Settings, settings
from devstats.services.github import (
    CacheStore,
    GitHubProxy,
    GitHubReadOperations,
    close_github_client,
)
from devstats.services.stats_facade import StatsFacade


def setup_logging() -> None:
    """Configure application logging."""
    # Format: timestamp - level - logger name - message
    log_format = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
    date_format = "%H:%M:%S"

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=log_format,
        datefmt=date_format,
        stream=sys.stdout,
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)

    # Quieten uvicorn access logs (we'll log requests ourselves)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def _make_cache(config: Settings, name: str) -> CacheStore:
    return CacheStore(
        ttl_seconds=config.cache_ttl_seconds,
        max_entries=config.cache_max_entries,
        max_item_bytes=config.cache_max_item_bytes,
        cleanup_interval_seconds=config.cache_cleanup_interval_seconds,
        name=name,
    )


def build_services(app: FastAPI, config: Settings) -> None:
    """Create the per-process cache stores, proxy and stats facade on app.state."""
    proxy = GitHubProxy(
        cache=_make_cache(config, "proxy"),
        token=config.github_token,
        base_url=config.github_api_base_url,
        api_version=config.github_api_version,
        user_agent=config.github_user_agent,
    )
    app.state.proxy = proxy
    app.state.stats_facade = StatsFacade(
        reader=GitHubReadOperations(proxy),
        cache=_make_cache(config, "stats"),
        settings=config,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    # Startup
    setup_logging()
    build_services(app, settings)
    if not settings.github_auth_enabled:
        logger.warning("GITHUB_TOKEN not set; using unauthenticated GitHub requests")
    logger.info("devstats API starting up")
    yield
    # Shutdown
    app.state.stats_facade.close()
    await close_github_client()
    logger.info("devstats API shutting down")


app = FastAPI(
    title="devstats API",
    description="GitHub activity stats and API proxy for a personal site",
    version="0.1.0",
    lifespan=lifespan,
)

# Trust X-Forwarded-* from the hosting reverse proxy
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests, skipping OPTIONS preflight."""
    # Skip OPTIONS (CORS preflight) and health checks
    if request.method == "OPTIONS" or request.url.path == "/health":
        return await call_next(request)

    response = await call_next(request)

    # Only log non-2xx or refreshes
    path = request.url.path
    if response.status_code >= 400 or any(
        keyword in path for keyword in ["refresh", "retry"]
    ):
        logger.info(f"{request.method} {path} → {response.status_code}")

    return response


# Include API routes
app.include_router(api_router)
app.include_router(proxy_root_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
