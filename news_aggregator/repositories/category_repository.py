from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.article import Article
from ..models.category import Category
from ..utils.string_utils import slugify


class CategoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, category_id: int) -> Optional[Category]:
        return self.db.query(Category).filter(Category.id == category_id).first()

    def exists(self, category_id: int) -> bool:
        return self.db.query(Category.id).filter(Category.id == category_id).first() is not None

    def get_by_slug(self, slug: str) -> Optional[Category]:
        return self.db.query(Category).filter(Category.slug == slug).first()

    def find_or_create(self, name: Optional[str]) -> Optional[Category]:
        """Find a category by the slug of name, creating it (active) when missing."""
        if not name or not name.strip():
            return None

        slug = slugify(name)
        if not slug:
            return None

        category = self.get_by_slug(slug)
        if category:
            return category

        category = Category(name=name, slug=slug, is_active=True)
        self.db.add(category)
        try:
            self.db.commit()
        except IntegrityError:
            # Created concurrently under the same slug
            self.db.rollback()
            return self.get_by_slug(slug)
        self.db.refresh(category)
        return category

    def upsert_by_slug(self, slug: str, **fields) -> Category:
        category = self.get_by_slug(slug)
        if category is None:
            category = Category(slug=slug)
            self.db.add(category)
        for key, value in fields.items():
            setattr(category, key, value)
        self.db.commit()
        self.db.refresh(category)
        return category

    def list(self, active: Optional[bool] = None) -> List[Category]:
        query = self.db.query(Category)
        if active is not None:
            query = query.filter(Category.is_active.is_(active))
        return query.order_by(Category.name).all()

    def count_active(self) -> int:
        return self.db.query(func.count(Category.id)).filter(Category.is_active.is_(True)).scalar() or 0

    def all_ids(self) -> List[int]:
        return [row[0] for row in self.db.query(Category.id).all()]

    def with_article_counts(self) -> List[Tuple[Category, int]]:
        count = func.count(Article.id).label("articles_count")
        return (
            self.db.query(Category, count)
            .outerjoin(Article, Article.category_id == Category.id)
            .group_by(Category.id)
            .order_by(count.desc(), Category.name)
            .all()
        )

    def article_count(self, category_id: int) -> int:
        return self.db.query(func.count(Article.id)).filter(Article.category_id == category_id).scalar() or 0
