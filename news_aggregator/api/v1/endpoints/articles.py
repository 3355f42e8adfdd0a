from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....exceptions import ArticleNotFoundError, CategoryNotFoundError, NewsSourceNotFoundError
from ....repositories.article_repository import ArticleRepository
from ....repositories.category_repository import CategoryRepository
from ....repositories.news_source_repository import NewsSourceRepository
from ....schemas.requests import FeaturedUpdateRequest
from ....schemas.responses import ArticlePage, ArticleResponse
from ....services.article_cache_service import ArticleCacheService
from ....services.article_query_service import ArticleQueryService
from ...dependencies import get_article_cache_service, get_article_query_service

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("", response_model=ArticlePage)
async def list_articles(
    search: Optional[str] = Query(None, description="Substring of title, description or content"),
    category_id: Optional[int] = Query(None),
    source_id: Optional[int] = Query(None),
    author: Optional[str] = Query(None, description="Substring of the author name"),
    date_from: Optional[str] = Query(None, description="Published on or after (ISO date or datetime)"),
    date_to: Optional[str] = Query(None, description="Published on or before (ISO date or datetime)"),
    featured: Optional[str] = Query(None, description="true/1 or false/0"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    query_service: ArticleQueryService = Depends(get_article_query_service),
):
    """List articles with filters, newest first"""
    filters = {
        "search": search,
        "category_id": category_id,
        "source_id": source_id,
        "author": author,
        "date_from": date_from,
        "date_to": date_to,
        "featured": featured,
    }
    return query_service.get_articles(filters, page=page, per_page=per_page)


@router.get("/featured", response_model=List[ArticleResponse])
async def featured_articles(
    limit: int = Query(5, description="Number of articles, clamped to 1..100"),
    cache: ArticleCacheService = Depends(get_article_cache_service),
):
    return cache.featured_articles(limit)


@router.get("/latest", response_model=List[ArticleResponse])
async def latest_articles(
    limit: int = Query(10, ge=1, le=100),
    query_service: ArticleQueryService = Depends(get_article_query_service),
):
    return query_service.latest(limit)


@router.get("/search", response_model=ArticlePage)
async def search_articles(
    q: str = Query(..., min_length=2, description="Search term"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    query_service: ArticleQueryService = Depends(get_article_query_service),
):
    return query_service.search(q, page=page, per_page=per_page)


@router.get("/category/{category_id}", response_model=List[ArticleResponse])
async def articles_by_category(
    category_id: int,
    limit: int = Query(20, description="Number of articles, clamped to 1..100"),
    db: Session = Depends(get_db),
    cache: ArticleCacheService = Depends(get_article_cache_service),
):
    if not CategoryRepository(db).exists(category_id):
        raise CategoryNotFoundError(category_id)
    return cache.articles_by_category(category_id, limit)


@router.get("/source/{source_id}", response_model=List[ArticleResponse])
async def articles_by_source(
    source_id: int,
    limit: int = Query(20, description="Number of articles, clamped to 1..100"),
    db: Session = Depends(get_db),
    cache: ArticleCacheService = Depends(get_article_cache_service),
):
    if not NewsSourceRepository(db).exists(source_id):
        raise NewsSourceNotFoundError(source_id)
    return cache.articles_by_source(source_id, limit)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: int, db: Session = Depends(get_db)):
    """Article detail; every read counts as a view"""
    repo = ArticleRepository(db)
    if repo.get_by_id(article_id) is None:
        raise ArticleNotFoundError(article_id)

    repo.increment_view_count(article_id)
    article = repo.get_by_id(article_id)
    return ArticleResponse.model_validate(article)


@router.put("/{article_id}/featured", response_model=ArticleResponse)
async def set_featured(
    article_id: int,
    request: FeaturedUpdateRequest,
    db: Session = Depends(get_db),
    cache: ArticleCacheService = Depends(get_article_cache_service),
):
    repo = ArticleRepository(db)
    article = repo.get_by_id(article_id)
    if article is None:
        raise ArticleNotFoundError(article_id)

    article = repo.set_featured(article, request.is_featured)
    cache.clear_article_caches()
    logger.info("Article featured flag updated", article_id=article_id, is_featured=request.is_featured)
    return ArticleResponse.model_validate(article)
