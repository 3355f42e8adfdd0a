from typing import Optional

from fastapi import APIRouter, Depends, Query

from ....schemas.requests import AuthorsRequest, CategoryIdsRequest, SourceIdsRequest, UserPreferenceUpdate
from ....schemas.responses import ArticlePage, UserPreferenceResponse
from ....services.article_query_service import ArticleQueryService
from ....services.preference_service import PreferenceService
from ...dependencies import get_article_query_service, get_current_user_id, get_preference_service

router = APIRouter()


@router.get("/preferences", response_model=UserPreferenceResponse)
async def get_preferences(
    user_id: str = Depends(get_current_user_id),
    service: PreferenceService = Depends(get_preference_service),
):
    """Preferences for the calling user, created with defaults on first read"""
    return service.get(user_id)


@router.put("/preferences", response_model=UserPreferenceResponse)
async def update_preferences(
    request: UserPreferenceUpdate,
    user_id: str = Depends(get_current_user_id),
    service: PreferenceService = Depends(get_preference_service),
):
    return service.update(user_id, request)


@router.post("/preferences/sources", response_model=UserPreferenceResponse)
async def add_preferred_sources(
    request: SourceIdsRequest,
    user_id: str = Depends(get_current_user_id),
    service: PreferenceService = Depends(get_preference_service),
):
    return service.add_sources(user_id, request.source_ids)


@router.delete("/preferences/sources", response_model=UserPreferenceResponse)
async def remove_preferred_sources(
    request: SourceIdsRequest,
    user_id: str = Depends(get_current_user_id),
    service: PreferenceService = Depends(get_preference_service),
):
    return service.remove_sources(user_id, request.source_ids)


@router.post("/preferences/categories", response_model=UserPreferenceResponse)
async def add_preferred_categories(
    request: CategoryIdsRequest,
    user_id: str = Depends(get_current_user_id),
    service: PreferenceService = Depends(get_preference_service),
):
    return service.add_categories(user_id, request.category_ids)


@router.delete("/preferences/categories", response_model=UserPreferenceResponse)
async def remove_preferred_categories(
    request: CategoryIdsRequest,
    user_id: str = Depends(get_current_user_id),
    service: PreferenceService = Depends(get_preference_service),
):
    return service.remove_categories(user_id, request.category_ids)


@router.post("/preferences/authors", response_model=UserPreferenceResponse)
async def add_preferred_authors(
    request: AuthorsRequest,
    user_id: str = Depends(get_current_user_id),
    service: PreferenceService = Depends(get_preference_service),
):
    return service.add_authors(user_id, request.authors)


@router.delete("/preferences/authors", response_model=UserPreferenceResponse)
async def remove_preferred_authors(
    request: AuthorsRequest,
    user_id: str = Depends(get_current_user_id),
    service: PreferenceService = Depends(get_preference_service),
):
    return service.remove_authors(user_id, request.authors)


@router.get("/personalized-articles", response_model=ArticlePage)
async def personalized_articles(
    search: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    featured: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100, description="Defaults to the user's articles_per_page"),
    user_id: str = Depends(get_current_user_id),
    service: PreferenceService = Depends(get_preference_service),
    query_service: ArticleQueryService = Depends(get_article_query_service),
):
    preferences = service.get(user_id)
    filters = {"search": search, "date_from": date_from, "date_to": date_to, "featured": featured}
    return query_service.get_personalized_articles(preferences, filters, page=page, per_page=per_page)
