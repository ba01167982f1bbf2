from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from compliance.matching import MatchResult, MatchTier
from core.reference_records import AllergenDefinition


class AllergenCheckResult(BaseModel):
    """One allergen found in one ingredient."""
    ingredient: str
    containsAllergen: bool = True
    allergen: Optional[AllergenDefinition] = None
    matchType: Literal["exact", "derivative", "fuzzy"]
    confidence: Literal["high", "medium"]

    @classmethod
    def from_match(cls, match: MatchResult) -> "AllergenCheckResult":
        if match.tier not in (MatchTier.EXACT, MatchTier.DERIVATIVE, MatchTier.FUZZY):
            raise ValueError(f"Not an allergen match tier: {match.tier.value}")
        return cls(
            ingredient=match.ingredient,
            containsAllergen=True,
            allergen=match.matched_entity,
            matchType=match.tier.value,
            confidence=match.confidence.value,
        )


class IngredientAllergens(BaseModel):
    ingredient: str
    allergens: List[AllergenCheckResult]


class AllergenSummaryCounts(BaseModel):
    totalIngredients: int = 0
    ingredientsWithAllergens: int = 0
    uniqueAllergensDetected: int = 0
    highConfidenceMatches: int = 0
    mediumConfidenceMatches: int = 0
    unverifiedIngredients: List[str] = Field(
        default_factory=list,
        description="Ingredients whose allergen check raised and could not be verified",
    )


class AllergenSummary(BaseModel):
    """Allergen report for a whole ingredient list."""
    allergensDetected: List[AllergenDefinition] = Field(default_factory=list)
    ingredientsWithAllergens: List[IngredientAllergens] = Field(default_factory=list)
    summary: AllergenSummaryCounts = Field(default_factory=AllergenSummaryCounts)
