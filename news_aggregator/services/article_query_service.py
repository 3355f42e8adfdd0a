"""
Read side for articles: filtered, paginated listings and the
preference-driven personalized feed.
"""
import math
import re
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional, Union

from dateutil import parser as date_parser
from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from ..models.article import Article
from ..models.user_preference import UserPreference
from ..repositories.article_repository import ArticleRepository
from ..repositories.category_repository import CategoryRepository
from ..repositories.news_source_repository import NewsSourceRepository
from ..schemas.responses import ArticlePage, ArticleResponse, Pagination

TRUTHY = {"true", "1"}
FALSY = {"false", "0"}

DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateBound = Union[str, date, datetime, None]


def parse_featured(value: Any) -> Optional[bool]:
    """Tri-state featured filter; None means the filter is not applied."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        return None
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUTHY:
            return True
        if normalized in FALSY:
            return False
    return None


def parse_date_bound(value: DateBound, end_of_day: bool = False) -> Optional[datetime]:
    """
    Turn a date filter into a comparable datetime.

    A bare date covers its whole day, so as an upper bound it becomes
    23:59:59.999999. Unreadable values are ignored.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min)

    text = str(value).strip()
    try:
        if DATE_ONLY.match(text):
            day = date.fromisoformat(text)
            return datetime.combine(day, time.max if end_of_day else time.min)
        return _to_naive_utc(date_parser.parse(text))
    except (ValueError, OverflowError):
        return None


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class ArticleQueryService:

    def __init__(self, db: Session):
        self.db = db
        self.articles = ArticleRepository(db)
        self.categories = CategoryRepository(db)
        self.sources = NewsSourceRepository(db)

    def get_articles(self, filters: Optional[Dict[str, Any]] = None, page: int = 1, per_page: int = 20) -> ArticlePage:
        filters = filters or {}
        page, per_page = self._page_bounds(page, per_page)

        category_id = filters.get("category_id")
        if category_id is not None and not self.categories.exists(category_id):
            return self._empty_page(page, per_page)

        source_id = filters.get("source_id")
        if source_id is not None and not self.sources.exists(source_id):
            return self._empty_page(page, per_page)

        query = self._apply_base_filters(self.articles.with_relations(), filters)

        if category_id is not None:
            query = query.filter(Article.category_id == category_id)
        if source_id is not None:
            query = query.filter(Article.news_source_id == source_id)

        author = _clean(filters.get("author"))
        if author:
            query = query.filter(Article.author.ilike(f"%{author}%"))

        return self._paginate(query, page, per_page)

    def get_personalized_articles(
        self,
        preferences: UserPreference,
        filters: Optional[Dict[str, Any]] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> ArticlePage:
        """
        Articles matching the user's preferred sources, categories and authors,
        narrowed further by search, date and featured filters.
        """
        filters = filters or {}
        page, per_page = self._page_bounds(page, per_page or preferences.articles_per_page)

        query = self._apply_base_filters(self.articles.with_relations(), filters)

        preferred_sources = list(preferences.preferred_sources or [])
        if preferred_sources:
            query = query.filter(Article.news_source_id.in_(preferred_sources))

        preferred_categories = list(preferences.preferred_categories or [])
        if preferred_categories:
            query = query.filter(Article.category_id.in_(preferred_categories))

        preferred_authors = [a for a in (preferences.preferred_authors or []) if a]
        if preferred_authors:
            query = query.filter(or_(*[Article.author.ilike(f"%{author}%") for author in preferred_authors]))

        return self._paginate(query, page, per_page)

    def search(self, term: str, page: int = 1, per_page: int = 20) -> ArticlePage:
        return self.get_articles({"search": term}, page=page, per_page=per_page)

    def latest(self, limit: int = 10) -> List[ArticleResponse]:
        limit = min(max(limit, 1), 100)
        return [ArticleResponse.model_validate(article) for article in self.articles.latest(limit)]

    def _apply_base_filters(self, query: Query, filters: Dict[str, Any]) -> Query:
        search = _clean(filters.get("search"))
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Article.title.ilike(pattern),
                    Article.description.ilike(pattern),
                    Article.content.ilike(pattern),
                )
            )

        date_from = parse_date_bound(filters.get("date_from"))
        if date_from is not None:
            query = query.filter(Article.published_at >= date_from)

        date_to = parse_date_bound(filters.get("date_to"), end_of_day=True)
        if date_to is not None:
            query = query.filter(Article.published_at <= date_to)

        featured = parse_featured(filters.get("featured"))
        if featured is not None:
            query = query.filter(Article.is_featured.is_(featured))

        return query

    def _paginate(self, query: Query, page: int, per_page: int) -> ArticlePage:
        total = query.order_by(None).count()
        items = (
            query.order_by(Article.published_at.desc(), Article.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        last_page = max(1, math.ceil(total / per_page))
        return ArticlePage(
            data=[ArticleResponse.model_validate(article) for article in items],
            pagination=Pagination(
                current_page=page,
                last_page=last_page,
                per_page=per_page,
                total=total,
                has_more=page < last_page,
            ),
        )

    @staticmethod
    def _empty_page(page: int, per_page: int) -> ArticlePage:
        return ArticlePage(
            data=[],
            pagination=Pagination(current_page=page, last_page=1, per_page=per_page, total=0, has_more=False),
        )

    @staticmethod
    def _page_bounds(page: int, per_page: int):
        page = max(1, int(page or 1))
        per_page = min(max(int(per_page or 20), 1), 100)
        return page, per_page


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None
