from fastapi import APIRouter

from .endpoints import aggregator, articles, categories, health, preferences, sources

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(aggregator.router, prefix="/aggregator", tags=["aggregator"])
api_router.include_router(articles.router, prefix="/articles", tags=["articles"])
api_router.include_router(sources.router, prefix="/sources", tags=["sources"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])

# Requires the X-User-Id header set by the auth gateway
api_router.include_router(preferences.router, prefix="/user", tags=["user-preferences"])
