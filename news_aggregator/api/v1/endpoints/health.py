from datetime import datetime
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from .... import __version__
from ....core.cache import CacheBackend, get_cache_backend
from ....core.database import get_db
from ....exceptions import CacheBackendError

logger = structlog.get_logger(__name__)

router = APIRouter()

HEALTH_PROBE_KEY = "health:probe"


@router.get("/health")
async def health_check(
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_cache_backend),
) -> Dict[str, Any]:
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "database": "unhealthy",
                "error": "Database connectivity failed",
                "timestamp": datetime.utcnow().isoformat(),
            },
        )

    # A broken cache degrades reads but does not take the service down
    try:
        cache.get(HEALTH_PROBE_KEY)
        cache_status = "healthy"
    except CacheBackendError as e:
        logger.warning("Cache health check failed", error=e.message)
        cache_status = "degraded"

    return {
        "status": "healthy",
        "service": "News Aggregator API",
        "version": __version__,
        "database": "healthy",
        "cache": cache_status,
        "timestamp": datetime.utcnow().isoformat(),
    }
