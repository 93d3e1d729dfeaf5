"""
Stats facade: cache-first loading of the developer StatsRecord.

Flow: check presentation cache -> on miss fetch (profile, repos, events,
search totals, per-repo languages in batches) -> aggregate -> write cache.

Concurrent callers share one in-flight fetch (single-flight): a second load()
while a fetch is running awaits the same task instead of starting another
upstream sequence.

State machine:
    IDLE -> CHECKING_CACHE -> CACHE_HIT -> DONE
                           -> CACHE_MISS -> FETCHING -> AGGREGATING -> CACHING -> DONE
    force_refresh()/retry() enter at FETCHING; failures in FETCHING or
    AGGREGATING move to ERROR.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from devstats.config import Settings
from devstats.schemas.stats import StatsRecord
from devstats.services.aggregation import (
    aggregate_languages,
    build_stats_record,
    select_language_repos,
)
from devstats.services.batch import RetryPolicy, Sleeper, retry_async, run_batch
from devstats.services.github.cache import CacheStore
from devstats.services.github.exceptions import GitHubAPIError, ValidationError
from devstats.services.github.read_operations import GitHubReadOperations
from devstats.services.github.types import EventRecord, LanguageStat, RepoSummary, UserProfile

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FetchState(str, Enum):
    IDLE = "idle"
    CHECKING_CACHE = "checking_cache"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    FETCHING = "fetching"
    AGGREGATING = "aggregating"
    CACHING = "caching"
    DONE = "done"
    ERROR = "error"


class StatsUnavailableError(Exception):
    """Stats could not be fetched; carries a user-facing message."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


@dataclass
class FetchedData:
    """Raw inputs for one aggregation run."""

    profile: UserProfile
    repos: list[RepoSummary]
    public_repos: list[RepoSummary]
    events: list[EventRecord]
    language_maps: list[dict[str, int] | None]
    total_prs: int
    total_issues: int


def _utcnow() -> datetime:
    return datetime.now(UTC)


async def _gather_all(*aws: Awaitable[Any]) -> list[Any]:
    """
    Await concurrently and return results in order.

    The first failure cancels the still-running siblings and is re-raised
    unwrapped, so no upstream retries outlive a failed fetch.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(aw) for aw in aws]
    except ExceptionGroup as eg:
        raise eg.exceptions[0] from None
    return [task.result() for task in tasks]


class StatsFacade:
    """
    Owns the current StatsRecord and the fetch lifecycle around it.

    Construct once per process and share; the presentation cache is passed in
    so tests can use a fake clock.
    """

    def __init__(
        self,
        reader: GitHubReadOperations,
        cache: CacheStore,
        settings: Settings,
        now: Callable[[], datetime] = _utcnow,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.reader = reader
        self.cache = cache
        self.settings = settings
        self._now = now
        self._sleep = sleep
        self._retry_policy = RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_seconds,
            backoff_multiplier=settings.retry_backoff_multiplier,
        )

        self.state = FetchState.IDLE
        self.error: str | None = None
        self.progress = 0
        self._stats: StatsRecord | None = None
        self._languages: list[LanguageStat] | None = None
        self._inflight: asyncio.Task[StatsRecord] | None = None
        self._closed = False

    # ─────────────────────────────────────────────────────────────
    # Public operations
    # ─────────────────────────────────────────────────────────────

    @property
    def is_loading(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def load(self) -> StatsRecord:
        """
        Return the stats record, from cache when fresh.

        Raises:
            StatsUnavailableError: If fetching or aggregation failed
        """
        if self.is_loading:
            return await self._join()

        self.state = FetchState.CHECKING_CACHE
        cached = self._read_cached_stats()
        if cached is not None:
            self.state = FetchState.CACHE_HIT
            self._stats = cached
            self.error = None
            self.state = FetchState.DONE
            return cached

        self.state = FetchState.CACHE_MISS
        return await self._start_fetch(refresh=False)

    async def force_refresh(self) -> StatsRecord:
        """Bypass the cache and fetch fresh stats."""
        if self.is_loading:
            return await self._join()

        self.cache.delete(self.settings.stats_cache_key)
        self.cache.delete(self.settings.languages_cache_key)
        return await self._start_fetch(refresh=True)

    async def retry(self) -> StatsRecord:
        """Re-enter fetching, typically after an error."""
        if self.is_loading:
            return await self._join()
        return await self._start_fetch(refresh=True)

    async def load_languages(self) -> list[LanguageStat]:
        """Return the language breakdown, fetching stats when it is not cached."""
        cached = self.cache.get(self.settings.languages_cache_key)
        if cached is not None:
            try:
                return [LanguageStat(**item) for item in cached]
            except TypeError:
                logger.warning("Discarding malformed cached language data")
                self.cache.delete(self.settings.languages_cache_key)

        if self._stats_cache_fresh():
            if self._languages is not None:
                return list(self._languages)
            # Stats cached without languages (e.g. evicted): refetch, keeping the
            # cached record until the new one replaces it
            if self.is_loading:
                await self._join()
            else:
                await self._start_fetch(refresh=True)
        else:
            await self.load()
        return list(self._languages or [])

    def snapshot(self) -> dict[str, Any]:
        """Current state for rendering loading / error / loaded views."""
        return {
            "state": self.state.value,
            "loading": self.is_loading,
            "error": self.error,
            "progress": self.progress,
            "stats": self._stats,
        }

    def close(self) -> None:
        """Mark the facade disposed; fetches finishing afterwards do not write results."""
        self._closed = True

    # ─────────────────────────────────────────────────────────────
    # Fetch lifecycle
    # ─────────────────────────────────────────────────────────────

    def _stats_cache_fresh(self) -> bool:
        return self.settings.stats_cache_key in self.cache

    def _read_cached_stats(self) -> StatsRecord | None:
        cached = self.cache.get(self.settings.stats_cache_key)
        if cached is None:
            return None
        try:
            return StatsRecord.model_validate(cached)
        except PydanticValidationError:
            logger.warning("Discarding malformed cached stats record")
            self.cache.delete(self.settings.stats_cache_key)
            return None

    async def _start_fetch(self, refresh: bool) -> StatsRecord:
        task = asyncio.create_task(self._fetch_and_cache(refresh))
        task.add_done_callback(self._on_fetch_done)
        self._inflight = task
        return await self._join()

    async def _join(self) -> StatsRecord:
        assert self._inflight is not None
        # Shield so a cancelled caller does not cancel the shared fetch
        return await asyncio.shield(self._inflight)

    def _on_fetch_done(self, task: asyncio.Task[StatsRecord]) -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            task.exception()  # Mark retrieved when every caller has gone away

    async def _fetch_and_cache(self, refresh: bool) -> StatsRecord:
        self.state = FetchState.FETCHING
        self.error = None
        self.progress = 0

        try:
            # Refreshes also skip proxy-cached upstream responses
            reader = self.reader.fresh() if refresh else self.reader
            data = await self._fetch(reader)
            self.state = FetchState.AGGREGATING
            now = self._now()
            languages = aggregate_languages(data.language_maps, self.settings.top_languages_limit)
            record = build_stats_record(
                profile=data.profile,
                repos=data.repos,
                public_repos=data.public_repos,
                events=data.events,
                languages=languages,
                total_prs=data.total_prs,
                total_issues=data.total_issues,
                now=now,
                recent_days=self.settings.recent_activity_days,
            )
        except GitHubAPIError as e:
            raise self._fail(f"Failed to fetch GitHub data: {e.message}") from e
        except Exception as e:
            logger.exception("Unexpected error while building stats")
            raise self._fail(f"Failed to fetch GitHub data: {e}") from e

        if self._closed:
            logger.info("Stats facade closed during fetch; discarding result")
            return record

        self.state = FetchState.CACHING
        if not self.cache.set(self.settings.stats_cache_key, record.model_dump(mode="json")):
            logger.warning("Stats record could not be cached; serving uncached result")
        self.cache.set(self.settings.languages_cache_key, [asdict(stat) for stat in languages])

        self._stats = record
        self._languages = languages
        self.state = FetchState.DONE
        logger.info(
            f"Stats refreshed: {record.total_repos} repos, {record.total_commits} commits, "
            f"{len(record.top_languages)} languages"
        )
        return record

    def _fail(self, message: str) -> StatsUnavailableError:
        if not self._closed:
            self.state = FetchState.ERROR
            self.error = message
        logger.warning(message)
        return StatsUnavailableError(message)

    def _set_progress(self, percent: int) -> None:
        if not self._closed:
            self.progress = percent

    async def _call(self, fn: Callable[[], Awaitable[T]], label: str) -> T:
        return await retry_async(fn, self._retry_policy, sleep=self._sleep, label=label)

    async def _optional(self, fn: Callable[[], Awaitable[T]], default: T, label: str) -> T:
        try:
            return await self._call(fn, label)
        except GitHubAPIError as e:
            logger.warning(f"{label} unavailable, using fallback: {e.message}")
            return default

    async def _fetch(self, reader: GitHubReadOperations) -> FetchedData:
        username = self.settings.github_username

        if username:
            profile, repos, events = await _gather_all(
                self._call(lambda: reader.get_user_profile(username), "Profile fetch"),
                self._call(lambda: reader.get_user_repos(username), "Repos fetch"),
                self._call(lambda: reader.get_user_events(username), "Events fetch"),
            )
        elif reader.proxy.is_authenticated:
            profile = await self._call(lambda: reader.get_user_profile(""), "Profile fetch")
            username = profile.login
            repos, events = await _gather_all(
                self._call(lambda: reader.get_user_repos(username), "Repos fetch"),
                self._call(lambda: reader.get_user_events(username), "Events fetch"),
            )
        else:
            raise ValidationError("GITHUB_USERNAME must be set when no GitHub token is configured")

        # Fallback for star/fork totals if the public repo listing fails
        owned_public = [
            r for r in repos if r.owner_login.lower() == username.lower() and not r.is_private
        ]
        public_repos, total_prs, total_issues = await _gather_all(
            self._optional(lambda: reader.get_public_repos(username), owned_public, "Public repos"),
            self._optional(lambda: reader.get_search_total(username, "pr"), 0, "PR search"),
            self._optional(lambda: reader.get_search_total(username, "issue"), 0, "Issue search"),
        )

        selected = select_language_repos(
            public_repos,
            self._now(),
            recency_days=self.settings.language_recency_days,
            limit=self.settings.language_repo_limit,
        )
        logger.info(f"Fetching languages for {len(selected)} of {len(public_repos)} repos")
        language_maps = await run_batch(
            selected,
            lambda repo: reader.get_repo_languages(repo.full_name),
            self.settings.batch_concurrency,
            timeout=self.settings.batch_item_timeout_seconds,
            retry_policy=self._retry_policy,
            on_progress=self._set_progress,
            sleep=self._sleep,
        )

        return FetchedData(
            profile=profile,
            repos=repos,
            public_repos=public_repos,
            events=events,
            language_maps=language_maps,
            total_prs=total_prs,
            total_issues=total_issues,
        )
