from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime, timezone


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class IngredientListRequest(BaseModel):
    ingredients: List[Optional[str]] = Field(..., description="Ingredient names in label order")


class IngredientCheckRequest(IngredientListRequest):
    productCategory: Optional[str] = None
    checks: Optional[List[Literal["allergens", "gras", "ndi"]]] = None


class InvalidateCacheRequest(BaseModel):
    corpora: Optional[List[str]] = None


class InvalidateCacheResponse(BaseModel):
    success: bool
    message: str
    timestamp: str = Field(default_factory=utc_timestamp)


class CacheStatsResponse(BaseModel):
    success: bool = True
    stats: Dict[str, Optional[Dict[str, Any]]]
    timestamp: str = Field(default_factory=utc_timestamp)
