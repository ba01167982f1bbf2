from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from compliance.matching import MatchResult
from core.reference_records import GRASIngredientRecord


class GRASCheckResult(BaseModel):
    """GRAS decision for one ingredient."""
    ingredient: str
    isGRAS: bool
    matchedEntry: Optional[GRASIngredientRecord] = None
    matchType: Optional[Literal["exact", "synonym", "fuzzy"]] = None
    verificationError: Optional[str] = None

    @classmethod
    def from_match(cls, match: MatchResult) -> "GRASCheckResult":
        if not match.matched:
            return cls(ingredient=match.ingredient, isGRAS=False, verificationError=match.error)
        return cls(
            ingredient=match.ingredient,
            isGRAS=True,
            matchedEntry=match.matched_entity,
            matchType=match.tier.value,
        )


class GRASComplianceReport(BaseModel):
    totalIngredients: int = 0
    grasCompliant: int = 0
    nonGRASIngredients: List[str] = Field(default_factory=list)
    grasIngredients: List[str] = Field(default_factory=list)
    detailedResults: List[GRASCheckResult] = Field(default_factory=list)
    overallCompliant: bool = True
    criticalIssues: List[str] = Field(default_factory=list)
