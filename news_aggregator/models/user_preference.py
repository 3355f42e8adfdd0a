from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON
from sqlalchemy.sql import func

from ..core.database import Base


class UserPreference(Base):
    """Per-user personalization. user_id is the opaque identity handed over by the auth gateway."""
    __tablename__ = "user_preferences"

    DEFAULT_LANGUAGE = "en"
    DEFAULT_COUNTRY = "us"
    DEFAULT_ARTICLES_PER_PAGE = 20
    DEFAULT_REFRESH_INTERVAL = 300
    MIN_REFRESH_INTERVAL = 60
    MAX_REFRESH_INTERVAL = 3600
    MIN_ARTICLES_PER_PAGE = 1
    MAX_ARTICLES_PER_PAGE = 100

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, unique=True, index=True)

    preferred_sources = Column(JSON, nullable=False, default=list)
    preferred_categories = Column(JSON, nullable=False, default=list)
    preferred_authors = Column(JSON, nullable=False, default=list)

    language = Column(String(10), nullable=False, default=DEFAULT_LANGUAGE)
    country = Column(String(10), nullable=False, default=DEFAULT_COUNTRY)
    articles_per_page = Column(Integer, nullable=False, default=DEFAULT_ARTICLES_PER_PAGE)
    show_images = Column(Boolean, nullable=False, default=True)
    auto_refresh = Column(Boolean, nullable=False, default=False)
    refresh_interval = Column(Integer, nullable=False, default=DEFAULT_REFRESH_INTERVAL)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<UserPreference(user_id='{self.user_id}')>"
