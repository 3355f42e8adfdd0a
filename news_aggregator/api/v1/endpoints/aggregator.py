import structlog
from fastapi import APIRouter, Depends

from ....schemas.requests import AggregateRequest
from ....schemas.responses import AggregationReport, AggregationStatistics, Dashboard
from ....services.aggregator_service import AggregatorService
from ....services.article_cache_service import ArticleCacheService
from ....services.article_query_service import ArticleQueryService
from ...dependencies import get_aggregator_service, get_article_cache_service, get_article_query_service

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/aggregate", response_model=AggregationReport)
def aggregate(
    request: AggregateRequest,
    aggregator: AggregatorService = Depends(get_aggregator_service),
):
    """Run one aggregation pass now and report per-source results"""
    options = request.model_dump(exclude_none=True)
    logger.info("Aggregation triggered via API", options=options)

    results = aggregator.aggregate_news(options)
    return AggregationReport(results=results, **aggregator.run_summary(results))


@router.get("/statistics", response_model=AggregationStatistics)
async def statistics(cache: ArticleCacheService = Depends(get_article_cache_service)):
    return cache.statistics()


@router.get("/dashboard", response_model=Dashboard)
async def dashboard(
    cache: ArticleCacheService = Depends(get_article_cache_service),
    query_service: ArticleQueryService = Depends(get_article_query_service),
):
    return Dashboard(
        statistics=cache.statistics(),
        featured_articles=cache.featured_articles(5),
        latest_articles=query_service.latest(10),
    )
