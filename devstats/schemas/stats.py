"""Pydantic schemas for the developer stats API.

StatsRecord is the aggregate the site renders. Fields are snake_case in
Python and serialized as camelCase (`totalStars`, `topLanguages`, ...) to
match the site's existing TypeScript types.

Streak and contribution numbers are heuristic estimates derived from the
public events feed (at most ~90 days / 300 events), not GitHub's
contribution calendar.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatsRecord(CamelModel):
    """Summary of a developer's public GitHub activity."""

    # Profile
    total_stars: int = Field(ge=0, description="Stars across public repos")
    total_forks: int = Field(ge=0, description="Forks across public repos")
    total_repos: int = Field(ge=0, description="Public repository count")
    private_repos: int = Field(default=0, ge=0, description="Private repos (token only)")
    followers: int = Field(ge=0)
    following: int = Field(ge=0)
    public_gists: int = Field(ge=0)
    account_created: str = Field(description="ISO 8601 account creation time")
    last_activity: str = Field(description="ISO 8601 time of the newest event")

    # Derived
    top_languages: dict[str, int] = Field(
        default_factory=dict,
        description="Language -> percentage (0-100), highest first, at most 6 entries",
    )
    recent_activity_score: int = Field(
        ge=0,
        alias="recentActivity",
        description="Repos pushed plus events in the last 30 days",
    )
    total_commits: int = Field(ge=0, description="Push-event commits this calendar year")
    total_prs: int = Field(default=0, ge=0)
    total_issues: int = Field(default=0, ge=0)
    contributed_to: int = Field(default=0, ge=0, description="Distinct other repo owners")

    # Estimates (approximations, see module docstring)
    total_contributions: int = Field(ge=0)
    current_streak: int = Field(ge=0, le=30)
    longest_streak: int = Field(ge=0, le=365)

    last_updated: str = Field(description="ISO 8601 time the record was computed")


class LanguageStatResponse(CamelModel):
    """Language share for the skills breakdown."""

    name: str = Field(description="Language name, e.g., 'TypeScript'")
    bytes: int = Field(ge=0, description="Bytes across the selected repositories")
    percentage: int = Field(ge=0, le=100, description="Share of the top languages")
    color: str = Field(description="Hex color for visualization, e.g., '#3178c6'")


class StatsStateResponse(CamelModel):
    """Facade snapshot for loading / error / loaded rendering."""

    state: Literal[
        "idle",
        "checking_cache",
        "cache_hit",
        "cache_miss",
        "fetching",
        "aggregating",
        "caching",
        "done",
        "error",
    ]
    loading: bool
    error: str | None = None
    progress: int = Field(default=0, ge=0, le=100, description="Language batch progress")
    stats: StatsRecord | None = None
