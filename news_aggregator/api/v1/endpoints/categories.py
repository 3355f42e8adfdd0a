from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....exceptions import CategoryNotFoundError
from ....repositories.category_repository import CategoryRepository
from ....schemas.responses import CategoryResponse

router = APIRouter()


@router.get("", response_model=List[CategoryResponse])
async def list_categories(
    active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
):
    return CategoryRepository(db).list(active=active)


@router.get("/active", response_model=List[CategoryResponse])
async def active_categories(db: Session = Depends(get_db)):
    return CategoryRepository(db).list(active=True)


@router.get("/statistics", response_model=List[CategoryResponse])
async def category_statistics(db: Session = Depends(get_db)):
    rows = CategoryRepository(db).with_article_counts()
    return [
        CategoryResponse.model_validate(category).model_copy(update={"articles_count": count})
        for category, count in rows
    ]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, db: Session = Depends(get_db)):
    repo = CategoryRepository(db)
    category = repo.get_by_id(category_id)
    if category is None:
        raise CategoryNotFoundError(category_id)
    return CategoryResponse.model_validate(category).model_copy(
        update={"articles_count": repo.article_count(category_id)}
    )
