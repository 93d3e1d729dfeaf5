"""
Developer stats endpoints.

The site calls GET /stats on load (cache-first) and POST /stats/refresh to
bypass the cache. GET /stats/state exposes loading / error / loaded state so
the client can offer a retry action.
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from devstats.api.deps import get_stats_facade
from devstats.schemas.stats import LanguageStatResponse, StatsRecord, StatsStateResponse
from devstats.services.stats_facade import StatsFacade, StatsUnavailableError

router = APIRouter(prefix="/stats", tags=["stats"])
logger = logging.getLogger(__name__)


def _unavailable(e: StatsUnavailableError) -> JSONResponse:
    return JSONResponse(
        {"error": e.message, "retry": "/api/v1/stats/retry"},
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


@router.get("", response_model=StatsRecord)
async def get_stats(facade: StatsFacade = Depends(get_stats_facade)):
    """Get developer stats, served from cache when fresh."""
    try:
        return await facade.load()
    except StatsUnavailableError as e:
        return _unavailable(e)


@router.post("/refresh", response_model=StatsRecord)
async def refresh_stats(facade: StatsFacade = Depends(get_stats_facade)):
    """Recompute stats, bypassing the cache."""
    try:
        return await facade.force_refresh()
    except StatsUnavailableError as e:
        return _unavailable(e)


@router.post("/retry", response_model=StatsRecord)
async def retry_stats(facade: StatsFacade = Depends(get_stats_facade)):
    """Retry fetching after an error."""
    try:
        return await facade.retry()
    except StatsUnavailableError as e:
        return _unavailable(e)


@router.get("/state", response_model=StatsStateResponse)
async def get_stats_state(facade: StatsFacade = Depends(get_stats_facade)):
    """Current fetch state, error message and last loaded record."""
    return StatsStateResponse(**facade.snapshot())


@router.get("/languages", response_model=list[LanguageStatResponse])
async def get_languages(facade: StatsFacade = Depends(get_stats_facade)):
    """Language breakdown with byte counts and display colors."""
    try:
        languages = await facade.load_languages()
    except StatsUnavailableError as e:
        return _unavailable(e)
    return [LanguageStatResponse(**asdict(stat)) for stat in languages]
