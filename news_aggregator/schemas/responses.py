"""API response schemas"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Sources and categories
# ============================================================================

class NewsSourceSummary(BaseModel):
    id: int
    name: str
    slug: str
    api_provider: str

    class Config:
        from_attributes = True


class NewsSourceResponse(BaseModel):
    id: int
    name: str
    slug: str
    api_provider: str
    api_endpoint: Optional[str] = None
    is_active: bool
    priority: int
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    articles_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategorySummary(BaseModel):
    id: int
    name: str
    slug: str
    color: str

    class Config:
        from_attributes = True


class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    color: str
    is_active: bool
    articles_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# Articles
# ============================================================================

class ArticleResponse(BaseModel):
    id: int
    external_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    url: str
    image_url: Optional[str] = None
    author: Optional[str] = None
    published_at: datetime
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="article_metadata")
    view_count: int = 0
    is_featured: bool = False
    reading_time: int = 0
    news_source: Optional[NewsSourceSummary] = None
    category: Optional[CategorySummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        populate_by_name = True


class Pagination(BaseModel):
    current_page: int
    last_page: int
    per_page: int
    total: int
    has_more: bool


class ArticlePage(BaseModel):
    data: List[ArticleResponse]
    pagination: Pagination


# ============================================================================
# Aggregation
# ============================================================================

class SourceRunResult(BaseModel):
    """Outcome of one source in an aggregation run"""
    fetched: int = 0
    stored: int = 0
    status: str = "success"  # success or error
    error: Optional[str] = None
    # Set when the provider call failed and was absorbed as an empty fetch
    fetch_error: Optional[str] = None


class AggregationReport(BaseModel):
    results: Dict[str, SourceRunResult]
    total_fetched: int
    total_stored: int


class ActivityLeader(BaseModel):
    id: int
    name: str
    articles_count: int


class AggregationStatistics(BaseModel):
    total_articles: int
    articles_today: int
    articles_this_week: int
    total_sources: int
    total_categories: int
    most_active_source: Optional[ActivityLeader] = None
    most_popular_category: Optional[ActivityLeader] = None


class Dashboard(BaseModel):
    statistics: AggregationStatistics
    featured_articles: List[ArticleResponse]
    latest_articles: List[ArticleResponse]


# ============================================================================
# Preferences
# ============================================================================

class UserPreferenceResponse(BaseModel):
    user_id: str
    preferred_sources: List[int] = []
    preferred_categories: List[int] = []
    preferred_authors: List[str] = []
    language: str
    country: str
    articles_per_page: int
    show_images: bool
    auto_refresh: bool
    refresh_interval: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
