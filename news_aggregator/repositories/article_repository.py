from datetime import datetime
from typing import List, Optional

import structlog
from sqlalchemy import update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..models.article import Article

logger = structlog.get_logger(__name__)


class ArticleRepository:
    def __init__(self, db: Session):
        self.db = db

    def with_relations(self):
        return self.db.query(Article).options(
            joinedload(Article.news_source),
            joinedload(Article.category),
        )

    def get_by_id(self, article_id: int) -> Optional[Article]:
        return self.with_relations().filter(Article.id == article_id).first()

    def exists_by_url(self, url: str) -> bool:
        return self.db.query(Article.id).filter(Article.url == url).first() is not None

    def insert_if_absent(self, article: Article) -> Optional[Article]:
        """
        Insert an article; None if its url is already stored.
        The unique index on url decides races between concurrent runs.
        """
        self.db.add(article)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info("Article insert lost unique race, treating as duplicate", url=article.url)
            return None
        self.db.refresh(article)
        return article

    def increment_view_count(self, article_id: int) -> None:
        self.db.execute(
            update(Article)
            .where(Article.id == article_id)
            .values(view_count=Article.view_count + 1)
        )
        self.db.commit()

    def set_featured(self, article: Article, featured: bool) -> Article:
        article.is_featured = featured
        self.db.commit()
        self.db.refresh(article)
        return article

    def featured(self, limit: int) -> List[Article]:
        return (
            self.with_relations()
            .filter(Article.is_featured.is_(True))
            .order_by(Article.published_at.desc(), Article.id.desc())
            .limit(limit)
            .all()
        )

    def latest(self, limit: int) -> List[Article]:
        return (
            self.with_relations()
            .order_by(Article.published_at.desc(), Article.id.desc())
            .limit(limit)
            .all()
        )

    def by_category(self, category_id: int, limit: int) -> List[Article]:
        return (
            self.with_relations()
            .filter(Article.category_id == category_id)
            .order_by(Article.published_at.desc(), Article.id.desc())
            .limit(limit)
            .all()
        )

    def by_source(self, source_id: int, limit: int) -> List[Article]:
        return (
            self.with_relations()
            .filter(Article.news_source_id == source_id)
            .order_by(Article.published_at.desc(), Article.id.desc())
            .limit(limit)
            .all()
        )

    def count(self) -> int:
        return self.db.query(func.count(Article.id)).scalar() or 0

    def count_created_between(self, start: datetime, end: datetime) -> int:
        return (
            self.db.query(func.count(Article.id))
            .filter(Article.created_at >= start, Article.created_at <= end)
            .scalar()
            or 0
        )
