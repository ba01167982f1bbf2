from enum import Enum
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from core.reference_records import NDINotificationRecord, OldDietaryIngredientRecord


class NDIClassification(str, Enum):
    NDI_EXACT = "ndi_exact"
    NDI_PARTIAL = "ndi_partial"
    GRANDFATHERED_EXACT = "grandfathered_exact"
    GRANDFATHERED_SYNONYM = "grandfathered_synonym"
    REQUIRES_VERIFICATION = "requires_verification"


class NDICheckResult(BaseModel):
    """NDI / ODI status of one supplement ingredient."""
    ingredient: str
    hasNDI: bool
    matchType: Optional[Literal["exact", "partial"]] = None
    requiresNDI: bool
    ndiMatch: Optional[NDINotificationRecord] = None
    complianceNote: str
    classification: Optional[NDIClassification] = None
    odiMatch: Optional[OldDietaryIngredientRecord] = None
    verificationError: Optional[str] = None


class NDISummary(BaseModel):
    totalChecked: int = 0
    withNDI: int = 0
    withoutNDI: int = 0
    requiresNotification: int = 0


class NDIComplianceReport(BaseModel):
    """
    Informational report. ``requiresNotification`` counts ingredients missing
    from both corpora, which is not a confirmed violation.
    """
    results: List[NDICheckResult] = Field(default_factory=list)
    summary: NDISummary = Field(default_factory=NDISummary)
