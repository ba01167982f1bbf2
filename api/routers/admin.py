from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from api.engine import get_orchestrator
from api.models import CacheStatsResponse, InvalidateCacheRequest, InvalidateCacheResponse
from compliance.ingredient_orchestrator import IngredientComplianceOrchestrator

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/invalidate-cache", response_model=InvalidateCacheResponse)
def invalidate_cache(
    data: Optional[InvalidateCacheRequest] = None,
    orchestrator: IngredientComplianceOrchestrator = Depends(get_orchestrator),
):
    """Clear the reference corpora (all, or the named ones); the next check reloads them."""
    corpora = data.corpora if data and data.corpora else []
    try:
        cleared = orchestrator.cache.invalidate(*corpora)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    names = ", ".join(c.value for c in cleared)
    return InvalidateCacheResponse(
        success=True,
        message=f"Reference caches invalidated: {names}. Next request will fetch fresh data.",
    )


@router.get("/cache-stats", response_model=CacheStatsResponse)
def cache_stats(orchestrator: IngredientComplianceOrchestrator = Depends(get_orchestrator)):
    return CacheStatsResponse(stats=orchestrator.cache.stats())
