"""API request schemas"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class AggregateRequest(BaseModel):
    """Body for triggering an aggregation run"""
    sources: Optional[List[str]] = Field(None, description="Provider ids to restrict the run to")
    limit: Optional[int] = Field(None, ge=1, le=100, description="Articles per source")


class FeaturedUpdateRequest(BaseModel):
    is_featured: bool


class UserPreferenceUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged"""
    preferred_sources: Optional[List[int]] = None
    preferred_categories: Optional[List[int]] = None
    preferred_authors: Optional[List[str]] = None
    language: Optional[str] = Field(None, min_length=2, max_length=10)
    country: Optional[str] = Field(None, min_length=2, max_length=10)
    articles_per_page: Optional[int] = None
    show_images: Optional[bool] = None
    auto_refresh: Optional[bool] = None
    refresh_interval: Optional[int] = None


class SourceIdsRequest(BaseModel):
    source_ids: List[int] = Field(..., min_length=1)


class CategoryIdsRequest(BaseModel):
    category_ids: List[int] = Field(..., min_length=1)


class AuthorsRequest(BaseModel):
    authors: List[str] = Field(..., min_length=1)

    @field_validator("authors")
    @classmethod
    def strip_authors(cls, value: List[str]) -> List[str]:
        authors = [author.strip() for author in value if author and author.strip()]
        if not authors:
            raise ValueError("authors must contain at least one non-empty name")
        return authors
