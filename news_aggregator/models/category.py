from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from ..core.database import Base


class Category(Base):
    __tablename__ = "categories"

    DEFAULT_COLOR = "#3B82F6"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text)
    color = Column(String(7), nullable=False, default=DEFAULT_COLOR)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # No delete cascade: removing a category nulls article.category_id
    articles = relationship("Article", back_populates="category", passive_deletes=True)

    @validates("name")
    def _trim_name(self, key, value):
        return value.strip() if value else value

    @validates("slug")
    def _normalize_slug(self, key, value):
        return value.strip().lower() if value else value

    @validates("description")
    def _trim_description(self, key, value):
        return value.strip() if value else None

    @validates("color")
    def _normalize_color(self, key, value):
        return value.strip().upper() if value and value.strip() else self.DEFAULT_COLOR

    def __repr__(self):
        return f"<Category(id={self.id}, slug='{self.slug}')>"
