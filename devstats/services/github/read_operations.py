"""
GitHub API read operations.

Typed accessors over the proxy for the data the stats pipeline consumes:
- User profile
- Repositories (authenticated or public)
- Public events
- Issue/PR search totals
- Per-repository language breakdown

Raw JSON is normalized into dataclasses here. Anything that does not match
the expected shape raises UnexpectedPayloadError instead of leaking loosely
typed data into aggregation.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from devstats.services.github.constants import PUSH_EVENT
from devstats.services.github.exceptions import UnexpectedPayloadError
from devstats.services.github.proxy import GitHubProxy
from devstats.services.github.types import EventRecord, RepoSummary, UserProfile

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a GitHub ISO 8601 timestamp ("2024-05-01T12:00:00Z")."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"Expected timestamp string, got {type(value).__name__}")
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _require_int(data: dict[str, Any], key: str, default: int | None = None) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Field {key!r} must be an integer")
    return value


def normalize_profile(data: dict[str, Any]) -> UserProfile:
    """Convert GitHub user response to UserProfile dataclass."""
    login = data["login"]
    if not isinstance(login, str):
        raise TypeError("Field 'login' must be a string")
    return UserProfile(
        login=login,
        public_repos=_require_int(data, "public_repos", 0),
        followers=_require_int(data, "followers", 0),
        following=_require_int(data, "following", 0),
        public_gists=_require_int(data, "public_gists", 0),
        created_at=str(data["created_at"]),
        updated_at=str(data.get("updated_at") or data["created_at"]),
        total_private_repos=data.get("total_private_repos") or 0,
    )


def normalize_repo(data: dict[str, Any]) -> RepoSummary:
    """Convert GitHub repository response to RepoSummary dataclass."""
    return RepoSummary(
        name=data["name"],
        owner_login=data["owner"]["login"],
        language=data.get("language"),
        size_bytes=_require_int(data, "size", 0),
        star_count=_require_int(data, "stargazers_count", 0),
        fork_count=_require_int(data, "forks_count", 0),
        pushed_at=parse_timestamp(data.get("pushed_at")),
        updated_at=parse_timestamp(data.get("updated_at")),
        is_fork=bool(data.get("fork", False)),
        is_private=bool(data.get("private", False)),
    )


def normalize_event(data: dict[str, Any]) -> EventRecord:
    """Convert GitHub event response to EventRecord dataclass."""
    event_type = data["type"]
    created_at = parse_timestamp(data["created_at"])
    if created_at is None:
        raise ValueError("Event is missing created_at")

    commit_count = None
    if event_type == PUSH_EVENT:
        commits = (data.get("payload") or {}).get("commits")
        if commits:
            commit_count = len(commits)

    return EventRecord(type=event_type, created_at=created_at, commit_count=commit_count)


def _normalize_list(
    payload: Any, normalize: Callable[[dict[str, Any]], T], endpoint: str
) -> list[T]:
    if not isinstance(payload, list):
        raise UnexpectedPayloadError(f"Expected a list from {endpoint}")
    try:
        return [normalize(item) for item in payload]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise UnexpectedPayloadError(f"Unexpected item shape from {endpoint}: {e}") from e


class GitHubReadOperations:
    """
    Read-only operations used by the stats pipeline.

    All calls go through the proxy with caching enabled, so repeated
    aggregation runs within the TTL reuse upstream responses.
    """

    def __init__(self, proxy: GitHubProxy, per_page: int = 100, refresh: bool = False):
        self.proxy = proxy
        self.per_page = per_page
        self.refresh = refresh

    def fresh(self) -> "GitHubReadOperations":
        """Copy that skips cached responses (still caching what it fetches)."""
        return GitHubReadOperations(self.proxy, per_page=self.per_page, refresh=True)

    async def _get(self, endpoint: str) -> Any:
        return await self.proxy.fetch(endpoint, use_cache=True, refresh=self.refresh)

    async def get_user_profile(self, username: str) -> UserProfile:
        """
        Fetch the profile. Uses /user when authenticated so private repo
        counts are included.
        """
        endpoint = "/user" if self.proxy.is_authenticated else f"/users/{username}"
        payload = await self._get(endpoint)
        if not isinstance(payload, dict):
            raise UnexpectedPayloadError(f"Expected an object from {endpoint}")
        try:
            return normalize_profile(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise UnexpectedPayloadError(f"Unexpected profile shape: {e}") from e

    async def get_user_repos(self, username: str) -> list[RepoSummary]:
        """Fetch repositories the user owns or collaborates on."""
        if self.proxy.is_authenticated:
            endpoint = f"/user/repos?per_page={self.per_page}&sort=updated&type=all"
        else:
            endpoint = f"/users/{username}/repos?per_page={self.per_page}&sort=updated"
        return _normalize_list(await self._get(endpoint), normalize_repo, endpoint)

    async def get_public_repos(self, username: str) -> list[RepoSummary]:
        """Fetch the user's public repositories (used for star/fork totals)."""
        endpoint = f"/users/{username}/repos?per_page={self.per_page}&sort=updated"
        return _normalize_list(await self._get(endpoint), normalize_repo, endpoint)

    async def get_user_events(self, username: str) -> list[EventRecord]:
        """Fetch recent public events (GitHub returns at most ~300, 90 days)."""
        endpoint = f"/users/{username}/events?per_page={self.per_page}"
        return _normalize_list(await self._get(endpoint), normalize_event, endpoint)

    async def get_search_total(self, username: str, kind: str) -> int:
        """
        Count issues or pull requests authored by the user.

        Args:
            kind: "pr" or "issue"
        """
        endpoint = f"/search/issues?q=author:{username}+type:{kind}"
        payload = await self._get(endpoint)
        if not isinstance(payload, dict):
            raise UnexpectedPayloadError(f"Expected an object from {endpoint}")
        total = payload.get("total_count", 0)
        if isinstance(total, bool) or not isinstance(total, int):
            raise UnexpectedPayloadError(f"Unexpected total_count from {endpoint}")
        return total

    async def get_repo_languages(self, full_name: str) -> dict[str, int]:
        """
        Fetch language breakdown (bytes per language) for a repository.

        Non-positive or non-integer byte counts are dropped.
        """
        endpoint = f"/repos/{full_name}/languages"
        payload = await self._get(endpoint)
        if not isinstance(payload, dict):
            raise UnexpectedPayloadError(f"Expected an object from {endpoint}")
        return {
            lang: count
            for lang, count in payload.items()
            if isinstance(count, int) and not isinstance(count, bool) and count > 0
        }
