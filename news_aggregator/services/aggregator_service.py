"""
Aggregation run: fetch every active source through its provider adapter,
normalize, deduplicate by url and persist. One failing source never stops
the others.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..core.clock import Clock, get_clock
from ..exceptions import (
    DateParseError,
    DuplicateArticleError,
    InvalidArticleDataError,
    ProviderError,
    ProviderUnavailableError,
    SourceAggregationError,
    UnknownProviderError,
)
from ..models.article import Article, external_id_for_url
from ..models.news_source import NewsSource
from ..repositories.article_repository import ArticleRepository
from ..repositories.category_repository import CategoryRepository
from ..repositories.news_source_repository import NewsSourceRepository
from ..schemas.responses import AggregationStatistics, SourceRunResult
from ..utils.string_utils import truncate_text
from .article_cache_service import ArticleCacheService
from .providers.base import NewsProviderAdapter, NormalizedArticle, parse_published_at
from .providers.registry import ProviderRegistry

logger = structlog.get_logger(__name__)

# Keys that steer the run itself and must not reach a provider
ORCHESTRATION_KEYS = ("sources",)

TITLE_MAX_LENGTH = 500


class AggregatorService:

    def __init__(
        self,
        db: Session,
        registry: Optional[ProviderRegistry] = None,
        cache: Optional[ArticleCacheService] = None,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.settings = settings if settings is not None else get_settings()
        self.registry = registry if registry is not None else ProviderRegistry(self.settings)
        self.clock = clock if clock is not None else get_clock()
        if cache is None:
            cache = ArticleCacheService(db, settings=self.settings, clock=self.clock)
        self.cache = cache
        self.articles = ArticleRepository(db)
        self.categories = CategoryRepository(db)
        self.sources = NewsSourceRepository(db)

    def aggregate_news(self, options: Optional[Dict[str, Any]] = None) -> Dict[str, SourceRunResult]:
        """
        Run one aggregation pass over the active sources.

        Sources without a usable adapter are skipped and left out of the
        report. Every other source gets an entry, with status "error" if
        anything in its fetch/store cycle raised.
        """
        options = dict(options or {})
        options.setdefault("limit", self.settings.default_aggregation_limit)
        requested = options.get("sources")

        active_sources = self.sources.active_ordered()
        if requested:
            wanted = set(requested)
            active_sources = [source for source in active_sources if source.api_provider in wanted]

        logger.info("Starting news aggregation", sources=[s.slug for s in active_sources])

        results: Dict[str, SourceRunResult] = {}
        for source in active_sources:
            result = self.aggregate_source(source, options)
            if result is not None:
                results[source.name] = result

        logger.info(
            "News aggregation finished",
            sources=len(results),
            fetched=sum(r.fetched for r in results.values()),
            stored=sum(r.stored for r in results.values()),
        )
        return results

    def aggregate_source(self, source: NewsSource, options: Dict[str, Any]) -> Optional[SourceRunResult]:
        try:
            adapter = self.adapter_for(source)
        except ProviderError as e:
            logger.warning(
                "News service not available, skipping",
                news_source_id=source.id,
                source=source.name,
                error_code=e.error_code,
                error=e.message,
            )
            return None

        try:
            provider_options = {k: v for k, v in options.items() if k not in ORCHESTRATION_KEYS}
            provider_options = adapter.prepare_options(provider_options)

            articles = adapter.fetch_articles(provider_options)
            stored = self.store_articles(articles, source)

            result = SourceRunResult(fetched=len(articles), stored=stored, status="success")
            fetch_error = self._fetch_error(adapter)
            if fetch_error:
                result.fetch_error = fetch_error

            logger.info(
                "Aggregated news source",
                source=source.name,
                fetched=result.fetched,
                stored=result.stored,
            )
            return result

        except Exception as e:
            failure = SourceAggregationError(
                str(e),
                error_code="SOURCE_AGGREGATION_FAILED",
                details={"news_source_id": source.id, "source": source.name},
            )
            logger.error("Failed to aggregate news from source", error=failure.message, exc_info=True, **failure.details)
            # Leave the session usable for the next source
            self.db.rollback()
            return SourceRunResult(fetched=0, stored=0, status="error", error=failure.message)
        finally:
            self._close(adapter)

    def adapter_for(self, source: NewsSource) -> NewsProviderAdapter:
        """Usable adapter for source, or a ProviderError saying why there is none."""
        adapter = self.registry.create(source)
        if adapter is None:
            raise UnknownProviderError(source.api_provider)
        if not adapter.is_available():
            self._close(adapter)
            raise ProviderUnavailableError(source.api_provider)
        return adapter

    @staticmethod
    def _close(adapter: NewsProviderAdapter) -> None:
        close = getattr(adapter, "close", None)
        if callable(close):
            close()

    @staticmethod
    def _fetch_error(adapter: NewsProviderAdapter) -> Optional[str]:
        error = getattr(adapter, "last_error", None)
        if error is None:
            return None
        return getattr(error, "message", str(error))

    def store_articles(self, articles: Iterable[NormalizedArticle], source: NewsSource) -> int:
        """Persist new articles for source; returns how many were inserted."""
        stored = 0
        for data in articles:
            try:
                if self.store_article(data, source) is not None:
                    stored += 1
            except InvalidArticleDataError as e:
                logger.warning(e.message, news_source_id=source.id, **e.details)
            except DuplicateArticleError:
                continue
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(
                    "Failed to store article",
                    news_source_id=source.id,
                    url=getattr(data, "url", None),
                    error=str(e),
                )
            except Exception as e:
                # A malformed item is skipped; the rest of the batch still lands
                self.db.rollback()
                logger.error(
                    "Skipping article that could not be stored",
                    news_source_id=source.id,
                    url=getattr(data, "url", None),
                    error=str(e),
                    exc_info=True,
                )

        if stored > 0:
            self.cache.clear_article_caches()

        return stored

    def store_article(self, data: NormalizedArticle, source: NewsSource) -> Optional[Article]:
        title = (data.title or "").strip()
        url = (data.url or "").strip()
        if not title or not url:
            raise InvalidArticleDataError(
                "Skipping article with missing required fields",
                error_code="INVALID_ARTICLE",
                details={"url": url or None, "has_title": bool(title)},
            )

        if self.articles.exists_by_url(url):
            raise DuplicateArticleError(url)

        category = self.categories.find_or_create(data.category)
        now = self.clock.now()

        article = Article(
            news_source_id=source.id,
            category_id=category.id if category else None,
            external_id=data.external_id or external_id_for_url(url),
            title=truncate_text(title, TITLE_MAX_LENGTH),
            description=data.description,
            content=data.content,
            url=url,
            image_url=data.image_url,
            author=data.author,
            published_at=self.resolve_published_at(data.published_at, url),
            article_metadata=data.metadata or None,
            view_count=Article.DEFAULT_VIEW_COUNT,
            is_featured=False,
            created_at=now,
            updated_at=now,
        )

        inserted = self.articles.insert_if_absent(article)
        if inserted is None:
            raise DuplicateArticleError(url)
        return inserted

    def resolve_published_at(self, value: Optional[str], url: Optional[str] = None) -> datetime:
        if not value:
            logger.warning("Article has no publication date, using ingestion time", url=url)
            return self.clock.now()
        try:
            return parse_published_at(value)
        except DateParseError as e:
            logger.warning(e.message, url=url)
            return self.clock.now()

    def run_summary(self, results: Dict[str, SourceRunResult]) -> Dict[str, int]:
        return {
            "total_fetched": sum(r.fetched for r in results.values()),
            "total_stored": sum(r.stored for r in results.values()),
        }

    def statistics(self) -> AggregationStatistics:
        return self.cache.statistics()
