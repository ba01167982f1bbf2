import logging
from typing import List, Optional, Sequence

from compliance.gras.constants import GENERIC_TERMS, MIN_TERM_LENGTH
from compliance.matching import MatchResult, MatchTier
from compliance.text_normalizer import match_key, tokens
from core.app_logging import get_logger, log_event
from core.reference_cache import ReferenceDataCache
from core.reference_records import GRASIngredientRecord

logger = get_logger(__name__)


def search_terms(key: str) -> List[str]:
    """
    Significant words of a normalized ingredient, longest first.
    e.g. "panax ginseng root" -> ["ginseng", "panax"]
    """
    terms = [
        t for t in tokens(key)
        if len(t) > MIN_TERM_LENGTH and t not in GENERIC_TERMS and not t.isdigit()
    ]
    # sorted() is stable, so equal-length terms keep label order
    return sorted(dict.fromkeys(terms), key=len, reverse=True)


def _name_tokens(record: GRASIngredientRecord) -> set:
    # Synonyms are only compared whole; their words are too broad ("vitamin c")
    return set(tokens(match_key(record.name)))


class GRASMatcher:
    """
    Decides whether one ingredient is Generally Recognized As Safe.
    1. Exact match on the GRAS ingredient name
    2. Match on the record's synonyms
    3. Fuzzy match of one significant word against the GRAS name
    Anything else is non-GRAS.
    """

    def __init__(self, cache: Optional[ReferenceDataCache] = None):
        self.cache = cache

    def _records(self, records: Optional[Sequence[GRASIngredientRecord]]) -> List[GRASIngredientRecord]:
        if records is None:
            if self.cache is None:
                raise ValueError("GRASMatcher needs a cache or an explicit GRAS record list")
            records = self.cache.get_cached_gras_ingredients()
        return [r for r in records if r.active]

    def check_gras(
        self,
        ingredient: str,
        records: Optional[Sequence[GRASIngredientRecord]] = None,
    ) -> MatchResult:
        key = match_key(ingredient or "")
        if not key:
            return MatchResult.no_match(ingredient)

        active = self._records(records)

        for record in active:
            if match_key(record.name) == key:
                return MatchResult(ingredient, record, MatchTier.EXACT)

        for record in active:
            if any(match_key(s) == key for s in record.synonyms):
                return MatchResult(ingredient, record, MatchTier.SYNONYM)

        fuzzy = self._fuzzy_match(key, active)
        if fuzzy is not None:
            return MatchResult(ingredient, fuzzy, MatchTier.FUZZY)

        log_event(logger, "Ingredient not found in GRAS database", ingredient=ingredient)
        return MatchResult.no_match(ingredient)

    def _fuzzy_match(
        self,
        key: str,
        records: Sequence[GRASIngredientRecord],
    ) -> Optional[GRASIngredientRecord]:
        for term in search_terms(key):
            candidates = [r for r in records if term in _name_tokens(r)]
            if candidates:
                # Prefer the most specific (shortest) name: "Coffee" over "Coffee fruit extract"
                best = min(candidates, key=lambda r: (len(r.name), r.name.lower()))
                log_event(logger, "GRAS fuzzy match", level=logging.DEBUG,
                          term=term, matched=best.name, candidates=len(candidates))
                return best
        return None
