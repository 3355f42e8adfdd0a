import hashlib
import math

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from ..core.database import Base


def external_id_for_url(url: str) -> str:
    return hashlib.md5(url.encode("utf-8")).hexdigest()


class Article(Base):
    """
    Normalized article from any provider. The url is the identity:
    the first write wins and later writes with the same url are skipped.
    """
    __tablename__ = "articles"
    __table_args__ = (
        Index("ix_articles_published_at_id", "published_at", "id"),
    )

    DEFAULT_VIEW_COUNT = 0

    id = Column(Integer, primary_key=True, autoincrement=True)
    news_source_id = Column(
        Integer, ForeignKey("news_sources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id = Column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    external_id = Column(String(500), index=True)

    title = Column(String(500), nullable=False)
    description = Column(Text)
    content = Column(Text)
    url = Column(String(1000), nullable=False, unique=True)
    image_url = Column(String(1000))
    author = Column(String(255), index=True)

    published_at = Column(DateTime, nullable=False, index=True)
    # "metadata" is reserved on declarative classes
    article_metadata = Column("metadata", JSON)

    view_count = Column(Integer, nullable=False, default=DEFAULT_VIEW_COUNT)
    is_featured = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime, default=func.now(), index=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    news_source = relationship("NewsSource", back_populates="articles")
    category = relationship("Category", back_populates="articles")

    @validates("title")
    def _trim_title(self, key, value):
        return value.strip() if value else value

    @validates("description", "content", "author")
    def _trim_optional(self, key, value):
        if value is None:
            return None
        value = value.strip()
        return value or None

    @validates("url")
    def _default_external_id(self, key, value):
        if value and not self.external_id:
            self.external_id = external_id_for_url(value)
        return value

    @property
    def reading_time(self) -> int:
        """Estimated minutes at 200 words per minute."""
        if not self.content:
            return 0
        return max(1, math.ceil(len(self.content.split()) / 200))

    def __repr__(self):
        return f"<Article(id={self.id}, title='{self.title[:50]}...', url='{self.url}')>"
