from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..core.cache import CacheBackend, get_cache_backend
from ..core.clock import Clock, get_clock
from ..core.database import get_db
from ..services.aggregator_service import AggregatorService
from ..services.article_cache_service import ArticleCacheService
from ..services.article_query_service import ArticleQueryService
from ..services.preference_service import PreferenceService
from ..services.providers.registry import ProviderRegistry


def get_provider_registry(settings: Settings = Depends(get_settings)) -> ProviderRegistry:
    return ProviderRegistry(settings)


def get_article_cache_service(
    db: Session = Depends(get_db),
    backend: CacheBackend = Depends(get_cache_backend),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> ArticleCacheService:
    return ArticleCacheService(db, backend=backend, settings=settings, clock=clock)


def get_article_query_service(db: Session = Depends(get_db)) -> ArticleQueryService:
    return ArticleQueryService(db)


def get_aggregator_service(
    db: Session = Depends(get_db),
    registry: ProviderRegistry = Depends(get_provider_registry),
    cache: ArticleCacheService = Depends(get_article_cache_service),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> AggregatorService:
    return AggregatorService(db, registry=registry, cache=cache, clock=clock, settings=settings)


def get_preference_service(db: Session = Depends(get_db)) -> PreferenceService:
    return PreferenceService(db)


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """User identity as forwarded by the auth gateway."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()
