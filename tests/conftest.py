"""Shared test fixtures.

Provides a controllable clock, a recording sleeper, settings suitable for
offline tests, and a stubbed GitHub served through httpx.MockTransport for
wiring real proxies and stats facades without network access.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime

import httpx
import pytest

from devstats.config import Settings
from devstats.services.github.cache import CacheStore
from devstats.services.github.proxy import GitHubProxy
from devstats.services.github.read_operations import GitHubReadOperations
from devstats.services.stats_facade import StatsFacade

# Reference time handed to stats facades built by make_facade
NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock returning seconds; advanced manually by tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleeper:
    """Async sleeper that records requested delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _repo(name: str, size: int, fork: bool = False) -> dict:
    return {
        "name": name,
        "owner": {"login": "octocat"},
        "language": None,
        "size": size,
        "stargazers_count": 3,
        "forks_count": 1,
        "pushed_at": "2025-06-01T10:00:00Z",
        "updated_at": "2025-06-01T10:00:00Z",
        "fork": fork,
        "private": False,
    }


def _copy(response: httpx.Response) -> httpx.Response:
    # Responses are bound to the request that read them
    return httpx.Response(
        response.status_code,
        headers=response.headers,
        content=response.content,
    )


class GitHubStub:
    """
    MockTransport handler emulating the GitHub endpoints the pipeline reads.

    `overrides` answer every request to a path with a canned response;
    `queued` responses are served once each, in order, before falling back.
    """

    def __init__(self) -> None:
        self.hits: Counter[str] = Counter()
        self.overrides: dict[str, httpx.Response] = {}
        self.queued: dict[str, list[httpx.Response]] = {}
        self.profile = {
            "login": "octocat",
            "public_repos": 3,
            "followers": 10,
            "following": 2,
            "public_gists": 0,
            "created_at": "2011-01-25T18:44:36Z",
            "updated_at": "2025-06-01T00:00:00Z",
        }
        self.repos = [_repo("alpha", 500), _repo("beta", 300), _repo("forked", 900, fork=True)]
        self.events = [
            {
                "type": "PushEvent",
                "created_at": "2025-06-10T09:00:00Z",
                "payload": {"commits": [{"sha": "a"}, {"sha": "b"}, {"sha": "c"}]},
            },
            {"type": "WatchEvent", "created_at": "2025-06-11T09:00:00Z", "payload": {}},
        ]
        self.languages = {
            "alpha": {"Rust": 700},
            "beta": {"TypeScript": 300},
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.hits[path] += 1
        if self.queued.get(path):
            return _copy(self.queued[path].pop(0))
        if path in self.overrides:
            return _copy(self.overrides[path])

        if path in ("/users/octocat", "/user"):
            return httpx.Response(200, json=self.profile)
        if path in ("/users/octocat/repos", "/user/repos"):
            return httpx.Response(200, json=self.repos)
        if path == "/users/octocat/events":
            return httpx.Response(200, json=self.events)
        if path == "/search/issues":
            total = 5 if "type:pr" in str(request.url) else 2
            return httpx.Response(200, json={"total_count": total})
        if path.startswith("/repos/octocat/") and path.endswith("/languages"):
            name = path.split("/")[3]
            return httpx.Response(200, json=self.languages.get(name, {}))
        return httpx.Response(404, json={"message": "Not Found"})


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def github() -> GitHubStub:
    return GitHubStub()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Factory for Settings that ignores the developer's .env file."""

    def _make(**overrides) -> Settings:
        values = {
            "github_username": "octocat",
            "github_token": "",
            "retry_base_delay_seconds": 0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def make_proxy(clock: FakeClock) -> Callable[..., GitHubProxy]:
    """
    Factory for a GitHubProxy whose HTTP client is backed by a handler.

    The handler receives the httpx.Request and returns an httpx.Response.
    """

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        token: str = "",
        cache: CacheStore | None = None,
    ) -> GitHubProxy:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GitHubProxy(
            cache=cache if cache is not None else CacheStore(ttl_seconds=3600, clock=clock),
            token=token,
            client=client,
            clock=clock,
        )

    return _make


@pytest.fixture
def stats_cache(clock: FakeClock) -> CacheStore:
    return CacheStore(ttl_seconds=3600, clock=clock, name="stats")


@pytest.fixture
def make_facade(make_proxy, make_settings, github, stats_cache, sleeper):
    """Factory for a StatsFacade reading from the GitHubStub; all facades share stats_cache."""

    def _make(
        token: str = "",
        cache: CacheStore | None = None,
        sleep=None,
        **settings_overrides,
    ) -> StatsFacade:
        proxy = make_proxy(github, token=token)
        return StatsFacade(
            reader=GitHubReadOperations(proxy),
            cache=cache if cache is not None else stats_cache,
            settings=make_settings(github_token=token, **settings_overrides),
            now=lambda: NOW,
            sleep=sleep or sleeper,
        )

    return _make
