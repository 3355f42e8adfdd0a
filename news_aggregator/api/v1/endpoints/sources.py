from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....exceptions import NewsSourceNotFoundError
from ....repositories.news_source_repository import NewsSourceRepository
from ....schemas.responses import NewsSourceResponse

router = APIRouter()


@router.get("", response_model=List[NewsSourceResponse])
async def list_sources(
    active: Optional[bool] = Query(None, description="Only active (true) or inactive (false) sources"),
    db: Session = Depends(get_db),
):
    return NewsSourceRepository(db).list(active=active)


@router.get("/active", response_model=List[NewsSourceResponse])
async def active_sources(db: Session = Depends(get_db)):
    return NewsSourceRepository(db).active_ordered()


@router.get("/statistics", response_model=List[NewsSourceResponse])
async def source_statistics(db: Session = Depends(get_db)):
    """Sources with their article counts, busiest first"""
    rows = NewsSourceRepository(db).with_article_counts()
    return [
        NewsSourceResponse.model_validate(source).model_copy(update={"articles_count": count})
        for source, count in rows
    ]


@router.get("/{source_id}", response_model=NewsSourceResponse)
async def get_source(source_id: int, db: Session = Depends(get_db)):
    repo = NewsSourceRepository(db)
    source = repo.get_by_id(source_id)
    if source is None:
        raise NewsSourceNotFoundError(source_id)
    return NewsSourceResponse.model_validate(source).model_copy(
        update={"articles_count": repo.article_count(source_id)}
    )
