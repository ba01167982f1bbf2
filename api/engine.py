from functools import lru_cache

from compliance.ingredient_orchestrator import IngredientComplianceOrchestrator
from core.db import build_reference_cache
from core.reference_cache import ReferenceDataCache


@lru_cache(maxsize=1)
def get_reference_cache() -> ReferenceDataCache:
    """Process-wide cache backed by the PostgreSQL reference tables."""
    return build_reference_cache()


@lru_cache(maxsize=1)
def get_orchestrator() -> IngredientComplianceOrchestrator:
    return IngredientComplianceOrchestrator(get_reference_cache())


def shutdown_engine():
    if get_reference_cache.cache_info().currsize:
        get_reference_cache().close()
    get_orchestrator.cache_clear()
    get_reference_cache.cache_clear()
