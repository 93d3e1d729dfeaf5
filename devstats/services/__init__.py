# Services package

from devstats.services.batch import RetryPolicy, retry_async, run_batch
from devstats.services.stats_facade import FetchState, StatsFacade, StatsUnavailableError

__all__ = [
    # Stats pipeline
    "FetchState",
    "StatsFacade",
    "StatsUnavailableError",
    # Batch fetching
    "RetryPolicy",
    "retry_async",
    "run_batch",
]
