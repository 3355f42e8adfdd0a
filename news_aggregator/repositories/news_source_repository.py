from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.article import Article
from ..models.news_source import NewsSource


class NewsSourceRepository:
    def __init__(self, db: Session):
        self.db = db

    def _ordered(self, query):
        return query.order_by(NewsSource.priority.desc(), NewsSource.name.asc())

    def get_by_id(self, source_id: int) -> Optional[NewsSource]:
        return self.db.query(NewsSource).filter(NewsSource.id == source_id).first()

    def exists(self, source_id: int) -> bool:
        return self.db.query(NewsSource.id).filter(NewsSource.id == source_id).first() is not None

    def get_by_slug(self, slug: str) -> Optional[NewsSource]:
        return self.db.query(NewsSource).filter(NewsSource.slug == slug).first()

    def active_ordered(self) -> List[NewsSource]:
        return self._ordered(self.db.query(NewsSource).filter(NewsSource.is_active.is_(True))).all()

    def list(self, active: Optional[bool] = None) -> List[NewsSource]:
        query = self.db.query(NewsSource)
        if active is not None:
            query = query.filter(NewsSource.is_active.is_(active))
        return self._ordered(query).all()

    def create(self, **fields) -> NewsSource:
        source = NewsSource(**fields)
        self.db.add(source)
        self.db.commit()
        self.db.refresh(source)
        return source

    def upsert_by_slug(self, slug: str, **fields) -> NewsSource:
        source = self.get_by_slug(slug)
        if source is None:
            source = NewsSource(slug=slug)
            self.db.add(source)
        for key, value in fields.items():
            setattr(source, key, value)
        self.db.commit()
        self.db.refresh(source)
        return source

    def count_active(self) -> int:
        return self.db.query(func.count(NewsSource.id)).filter(NewsSource.is_active.is_(True)).scalar() or 0

    def all_ids(self) -> List[int]:
        return [row[0] for row in self.db.query(NewsSource.id).all()]

    def with_article_counts(self) -> List[Tuple[NewsSource, int]]:
        count = func.count(Article.id).label("articles_count")
        return (
            self.db.query(NewsSource, count)
            .outerjoin(Article, Article.news_source_id == NewsSource.id)
            .group_by(NewsSource.id)
            .order_by(count.desc(), NewsSource.name)
            .all()
        )

    def article_count(self, source_id: int) -> int:
        return self.db.query(func.count(Article.id)).filter(Article.news_source_id == source_id).scalar() or 0
