"""
Cached read paths (featured, by category, by source, statistics) and the
invalidation that keeps them consistent after articles change.

A cache failure never fails a request: reads fall back to the database and
invalidation problems are logged.
"""
import hashlib
import json
from typing import Any, Callable, Dict, Iterable, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..core.cache import CacheBackend, get_cache_backend
from ..core.clock import Clock, get_clock
from ..exceptions import CacheBackendError
from ..repositories.article_repository import ArticleRepository
from ..repositories.category_repository import CategoryRepository
from ..repositories.news_source_repository import NewsSourceRepository
from ..schemas.responses import ActivityLeader, AggregationStatistics, ArticleResponse

logger = structlog.get_logger(__name__)

MIN_LIMIT = 1
MAX_LIMIT = 100

FEATURED_TAGS = ("articles", "featured")
CATEGORY_TAGS = ("articles", "categories")
SOURCE_TAGS = ("articles", "sources")
STATISTICS_TAGS = ("statistics",)
ARTICLE_CACHE_TAGS = ("articles", "featured", "categories", "sources", "statistics")


def clamp_limit(limit: int) -> int:
    return min(max(int(limit), MIN_LIMIT), MAX_LIMIT)


class ArticleCacheService:

    def __init__(
        self,
        db: Session,
        backend: Optional[CacheBackend] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        self.db = db
        self.settings = settings if settings is not None else get_settings()
        self.backend = backend if backend is not None else get_cache_backend()
        self.clock = clock if clock is not None else get_clock()
        self.prefix = self.settings.cache_prefix
        self.ttls = self.settings.cache_ttls()
        self.articles = ArticleRepository(db)
        self.categories = CategoryRepository(db)
        self.sources = NewsSourceRepository(db)

        # Strategy is fixed for the lifetime of the service
        if self.backend.supports_tags:
            self._invalidate = self._invalidate_tagged
        else:
            self._invalidate = self._invalidate_enumerated

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def cache_key(self, operation: str, params: Optional[Dict[str, Any]] = None) -> str:
        key = f"{self.prefix}:{operation}"
        if params:
            digest = hashlib.md5(json.dumps(params, sort_keys=True).encode("utf-8")).hexdigest()
            key = f"{key}:{digest}"
        return key

    def featured_key(self, limit: int) -> str:
        return self.cache_key("featured_articles", {"limit": limit})

    def category_key(self, category_id: int, limit: int) -> str:
        return self.cache_key("category_articles", {"category_id": category_id, "limit": limit})

    def source_key(self, source_id: int, limit: int) -> str:
        return self.cache_key("source_articles", {"source_id": source_id, "limit": limit})

    def statistics_key(self) -> str:
        return self.cache_key("statistics")

    # ------------------------------------------------------------------
    # Cached reads
    # ------------------------------------------------------------------

    def featured_articles(self, limit: int = 5) -> List[ArticleResponse]:
        limit = clamp_limit(limit)
        payload = self._remember(
            self.featured_key(limit),
            self.ttls["featured_articles"],
            FEATURED_TAGS,
            lambda: self._serialize(self.articles.featured(limit)),
        )
        return [ArticleResponse.model_validate(item) for item in payload]

    def articles_by_category(self, category_id: int, limit: int = 20) -> List[ArticleResponse]:
        limit = clamp_limit(limit)
        payload = self._remember(
            self.category_key(category_id, limit),
            self.ttls["category_articles"],
            CATEGORY_TAGS,
            lambda: self._serialize(self.articles.by_category(category_id, limit)),
        )
        return [ArticleResponse.model_validate(item) for item in payload]

    def articles_by_source(self, source_id: int, limit: int = 20) -> List[ArticleResponse]:
        limit = clamp_limit(limit)
        payload = self._remember(
            self.source_key(source_id, limit),
            self.ttls["source_articles"],
            SOURCE_TAGS,
            lambda: self._serialize(self.articles.by_source(source_id, limit)),
        )
        return [ArticleResponse.model_validate(item) for item in payload]

    def statistics(self) -> AggregationStatistics:
        payload = self._remember(
            self.statistics_key(),
            self.ttls["statistics"],
            STATISTICS_TAGS,
            lambda: self.compute_statistics().model_dump(mode="json"),
        )
        return AggregationStatistics.model_validate(payload)

    def compute_statistics(self) -> AggregationStatistics:
        today_start, today_end = self.clock.today_bounds()
        week_start, week_end = self.clock.week_bounds()
        return AggregationStatistics(
            total_articles=self.articles.count(),
            articles_today=self.articles.count_created_between(today_start, today_end),
            articles_this_week=self.articles.count_created_between(week_start, week_end),
            total_sources=self.sources.count_active(),
            total_categories=self.categories.count_active(),
            most_active_source=self._leader(self.sources.with_article_counts()),
            most_popular_category=self._leader(self.categories.with_article_counts()),
        )

    @staticmethod
    def _leader(rows) -> Optional[ActivityLeader]:
        if not rows:
            return None
        entity, count = rows[0]
        return ActivityLeader(id=entity.id, name=entity.name, articles_count=count)

    @staticmethod
    def _serialize(articles) -> List[Dict[str, Any]]:
        return [ArticleResponse.model_validate(article).model_dump(mode="json") for article in articles]

    def _remember(self, key: str, ttl: int, tags: Iterable[str], compute: Callable[[], Any]) -> Any:
        try:
            cached = self.backend.get(key)
        except CacheBackendError as e:
            logger.warning("Cache read failed, falling back to database", key=key, error=e.message)
            return compute()

        if cached is not None:
            return cached

        value = compute()
        try:
            self.backend.put(key, value, ttl, tags=tags)
        except CacheBackendError as e:
            logger.warning("Cache write failed", key=key, error=e.message)
        return value

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def clear_article_caches(self) -> None:
        try:
            self._invalidate()
        except (CacheBackendError, SQLAlchemyError) as e:
            logger.error("Failed to clear article caches", error=str(e))
        else:
            logger.info("Article caches cleared")

    def _invalidate_tagged(self) -> None:
        self.backend.flush_tags(ARTICLE_CACHE_TAGS)

    def _invalidate_enumerated(self) -> None:
        self.backend.forget_many(self.enumerated_keys())

    def enumerated_keys(self) -> List[str]:
        """Every key a cached read could have written, for backends without tags."""
        limits = range(MIN_LIMIT, MAX_LIMIT + 1)
        keys = [self.statistics_key()]
        keys.extend(self.featured_key(limit) for limit in limits)
        for category_id in self.categories.all_ids():
            keys.extend(self.category_key(category_id, limit) for limit in limits)
        for source_id in self.sources.all_ids():
            keys.extend(self.source_key(source_id, limit) for limit in limits)
        return keys
