"""Data types for GitHub API responses."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class UserProfile:
    """Normalized GitHub user profile."""

    login: str
    public_repos: int
    followers: int
    following: int
    public_gists: int
    created_at: str
    updated_at: str
    total_private_repos: int = 0  # Only present for the authenticated user


@dataclass
class RepoSummary:
    """Repository fields the aggregation pipeline needs."""

    name: str
    owner_login: str
    language: str | None
    size_bytes: int  # GitHub reports size in KB; treated as a relative weight
    star_count: int
    fork_count: int
    pushed_at: datetime | None
    updated_at: datetime | None
    is_fork: bool
    is_private: bool

    @property
    def full_name(self) -> str:
        return f"{self.owner_login}/{self.name}"


@dataclass
class EventRecord:
    """Public activity event."""

    type: str
    created_at: datetime
    commit_count: int | None = None  # None when a push payload lists no commits


@dataclass
class LanguageStat:
    """Language share across the selected repositories."""

    name: str
    bytes: int
    percentage: int
    color: str  # Hex color for display
