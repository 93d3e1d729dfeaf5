"""Pydantic schemas for API request/response validation."""

from devstats.schemas.stats import (
    LanguageStatResponse,
    StatsRecord,
    StatsStateResponse,
)

__all__ = [
    "LanguageStatResponse",
    "StatsRecord",
    "StatsStateResponse",
]
