from devstats.api.v1 import proxy, stats

__all__ = [
    "proxy",
    "stats",
]
