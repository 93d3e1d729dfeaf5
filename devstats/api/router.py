from fastapi import APIRouter

from devstats.api.v1 import proxy, stats

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(proxy.router)
api_router.include_router(stats.router)
