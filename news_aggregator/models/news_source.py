import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from ..core.database import Base


class ApiProvider(str, enum.Enum):
    NEWSAPI = "newsapi"
    GUARDIAN = "guardian"
    NYTIMES = "nytimes"


class NewsSource(Base):
    """One configured upstream provider. Owns its articles (cascade delete)."""
    __tablename__ = "news_sources"

    DEFAULT_PRIORITY = 0

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    api_provider = Column(String(50), nullable=False, index=True)
    api_endpoint = Column(String(500))
    api_config = Column(JSON)
    is_active = Column(Boolean, nullable=False, default=True)
    priority = Column(Integer, nullable=False, default=DEFAULT_PRIORITY)
    description = Column(Text)
    logo_url = Column(String(1000))
    website_url = Column(String(1000))

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    articles = relationship(
        "Article",
        back_populates="news_source",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("name")
    def _trim_name(self, key, value):
        return value.strip() if value else value

    @validates("slug")
    def _normalize_slug(self, key, value):
        return value.strip().lower() if value else value

    @validates("description")
    def _trim_description(self, key, value):
        return value.strip() if value else None

    def __repr__(self):
        return f"<NewsSource(id={self.id}, slug='{self.slug}', provider='{self.api_provider}')>"
