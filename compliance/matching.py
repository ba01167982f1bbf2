import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

from compliance.text_normalizer import match_key


class MatchTier(str, Enum):
    """How an ingredient matched a reference record, strongest first."""
    EXACT = "exact"
    DERIVATIVE = "derivative"
    SYNONYM = "synonym"
    FUZZY = "fuzzy"
    PARTIAL = "partial"
    NONE = "none"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NOT_APPLICABLE = "n/a"


CONFIDENCE_BY_TIER: Dict[MatchTier, Confidence] = {
    MatchTier.EXACT: Confidence.HIGH,
    MatchTier.DERIVATIVE: Confidence.HIGH,
    MatchTier.SYNONYM: Confidence.HIGH,
    MatchTier.FUZZY: Confidence.MEDIUM,
    MatchTier.PARTIAL: Confidence.MEDIUM,
    MatchTier.NONE: Confidence.NOT_APPLICABLE,
}


def confidence_for(tier: MatchTier) -> Confidence:
    return CONFIDENCE_BY_TIER[MatchTier(tier)]


@dataclass(frozen=True)
class MatchResult:
    """One ingredient's match against one reference record (or against nothing)."""
    ingredient: str
    matched_entity: Optional[Any]
    tier: MatchTier
    error: Optional[str] = None

    @property
    def confidence(self) -> Confidence:
        return confidence_for(self.tier)

    @property
    def matched(self) -> bool:
        return self.tier is not MatchTier.NONE and self.matched_entity is not None

    @classmethod
    def no_match(cls, ingredient: str, error: Optional[str] = None) -> "MatchResult":
        return cls(ingredient=ingredient, matched_entity=None, tier=MatchTier.NONE, error=error)


class FalsePositiveDenylist:
    """Normalized ingredient names that must never produce a match."""

    def __init__(self, entries: Iterable[str] = ()):
        self._entries: FrozenSet[str] = frozenset(
            key for key in (match_key(e) for e in entries) if key
        )

    def __contains__(self, ingredient: object) -> bool:
        if not isinstance(ingredient, str):
            return False
        return match_key(ingredient) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(sorted(self._entries))

    def extended(self, entries: Iterable[str]) -> "FalsePositiveDenylist":
        return FalsePositiveDenylist(list(self._entries) + list(entries))

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "FalsePositiveDenylist":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON list of ingredient names")
        return cls(str(item) for item in data)
