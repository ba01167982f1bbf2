"""
New Dietary Ingredient (NDI) / Old Dietary Ingredient (ODI) classification
for dietary supplement ingredients under DSHEA 1994.

- Ingredients marketed BEFORE Oct 15, 1994 are grandfathered (no NDI required)
- Ingredients marketed AFTER Oct 15, 1994 require an NDI notification
  75 days before marketing

Order: NDI exact, NDI partial, ODI name, ODI synonym, otherwise the
ingredient requires verification.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

from compliance.matching import MatchResult, MatchTier
from compliance.ndi.constants import (
    GRANDFATHERED_NOTE,
    MIN_PARTIAL_LENGTH,
    NDI_ON_FILE_NOTE,
    NO_INGREDIENT_NOTE,
    REQUIRES_VERIFICATION_NOTE,
    VERIFICATION_FAILED_NOTE,
)
from compliance.ndi.models import NDICheckResult, NDIClassification
from compliance.text_normalizer import contains_term, match_key
from core.reference_cache import ReferenceDataCache
from core.reference_records import NDINotificationRecord, OldDietaryIngredientRecord

_TIER_BY_CLASSIFICATION = {
    NDIClassification.NDI_EXACT: MatchTier.EXACT,
    NDIClassification.NDI_PARTIAL: MatchTier.PARTIAL,
    NDIClassification.GRANDFATHERED_EXACT: MatchTier.EXACT,
    NDIClassification.GRANDFATHERED_SYNONYM: MatchTier.SYNONYM,
    NDIClassification.REQUIRES_VERIFICATION: MatchTier.NONE,
}


@dataclass(frozen=True)
class NDIMatchResult(MatchResult):
    """
    ``MatchResult`` that also records which NDI/ODI rule decided it.
    ``classification`` is None when there was no ingredient name to check.
    """
    classification: Optional[NDIClassification] = NDIClassification.REQUIRES_VERIFICATION

    @classmethod
    def classified(cls, ingredient: str, classification: NDIClassification, entity=None) -> "NDIMatchResult":
        return cls(
            ingredient=ingredient,
            matched_entity=entity,
            tier=_TIER_BY_CLASSIFICATION[classification],
            classification=classification,
        )

    @property
    def has_ndi(self) -> bool:
        return self.classification in (NDIClassification.NDI_EXACT, NDIClassification.NDI_PARTIAL)

    @property
    def grandfathered(self) -> bool:
        return self.classification in (
            NDIClassification.GRANDFATHERED_EXACT,
            NDIClassification.GRANDFATHERED_SYNONYM,
        )

    @property
    def requires_ndi(self) -> bool:
        return self.classification is NDIClassification.REQUIRES_VERIFICATION and self.error is None

    @property
    def notification(self) -> Optional[NDINotificationRecord]:
        return self.matched_entity if self.has_ndi else None

    @property
    def odi_record(self) -> Optional[OldDietaryIngredientRecord]:
        return self.matched_entity if self.grandfathered else None


def compliance_note(match: NDIMatchResult) -> str:
    if match.error is not None:
        return VERIFICATION_FAILED_NOTE
    if match.classification is None:
        return NO_INGREDIENT_NOTE
    if match.has_ndi:
        record = match.notification
        submitted = record.submission_date.isoformat() if record.submission_date else "unknown date"
        return NDI_ON_FILE_NOTE.format(number=record.notification_number, submitted=submitted)
    if match.grandfathered:
        return GRANDFATHERED_NOTE
    return REQUIRES_VERIFICATION_NOTE


def to_check_result(match: NDIMatchResult) -> NDICheckResult:
    match_type = None
    if match.classification is NDIClassification.NDI_EXACT:
        match_type = "exact"
    elif match.classification is NDIClassification.NDI_PARTIAL:
        match_type = "partial"
    return NDICheckResult(
        ingredient=match.ingredient,
        hasNDI=match.has_ndi,
        matchType=match_type,
        requiresNDI=match.requires_ndi,
        ndiMatch=match.notification,
        complianceNote=compliance_note(match),
        classification=None if match.error is not None else match.classification,
        odiMatch=match.odi_record,
        verificationError=match.error,
    )


class NDIMatcher:
    def __init__(self, cache: Optional[ReferenceDataCache] = None):
        self.cache = cache

    def _corpora(self, ndi, odi):
        if ndi is None or odi is None:
            if self.cache is None:
                raise ValueError("NDIMatcher needs a cache or explicit NDI and ODI lists")
            if ndi is None:
                ndi = self.cache.get_cached_ndi_notifications()
            if odi is None:
                odi = self.cache.get_cached_odi_ingredients()
        return ndi, [r for r in odi if r.active]

    def check_ndi(
        self,
        ingredient: str,
        ndi: Optional[Sequence[NDINotificationRecord]] = None,
        odi: Optional[Sequence[OldDietaryIngredientRecord]] = None,
    ) -> NDIMatchResult:
        key = match_key(ingredient or "")
        if not key:
            return NDIMatchResult(ingredient, None, MatchTier.NONE, classification=None)

        ndi, odi = self._corpora(ndi, odi)

        for record in ndi:
            if match_key(record.ingredient_name) == key:
                return NDIMatchResult.classified(ingredient, NDIClassification.NDI_EXACT, record)

        partial = self._partial_match(key, ndi)
        if partial is not None:
            return NDIMatchResult.classified(ingredient, NDIClassification.NDI_PARTIAL, partial)

        for record in odi:
            if match_key(record.ingredient_name) == key:
                return NDIMatchResult.classified(ingredient, NDIClassification.GRANDFATHERED_EXACT, record)

        for record in odi:
            if any(match_key(s) == key for s in record.synonyms):
                return NDIMatchResult.classified(ingredient, NDIClassification.GRANDFATHERED_SYNONYM, record)

        return NDIMatchResult.classified(ingredient, NDIClassification.REQUIRES_VERIFICATION)

    @staticmethod
    def _partial_match(
        key: str,
        ndi: Sequence[NDINotificationRecord],
    ) -> Optional[NDINotificationRecord]:
        # "beta glucan" <-> "beta glucan derived from yeast", in either direction
        candidates = []
        for record in ndi:
            name = match_key(record.ingredient_name)
            if not name or min(len(name), len(key)) < MIN_PARTIAL_LENGTH:
                continue
            if contains_term(name, key) or contains_term(key, name):
                candidates.append(record)
        if not candidates:
            return None
        return min(
            candidates,
            key=lambda r: (abs(len(match_key(r.ingredient_name)) - len(key)), r.notification_number),
        )
