"""
Major food allergen matching (FALCPA 2004, FASTER Act 2021).

Tiers, in order:
1. Exact: the ingredient is the allergen's own name ("Milk").
2. Derivative: the ingredient is one of the allergen's declared alternate
   names, its common name or a scientific name ("Whey", "Casein").
3. Fuzzy: only when tiers 1-2 found nothing for any allergen, the ingredient
   contains a derivative or allergen name as whole tokens ("Shrimp Extract").

Ingredients on the false-positive denylist ("Royal Jelly") never match.
"""
import logging
from typing import Iterable, List, Optional, Sequence

import config
from compliance.allergens.constants import DEFAULT_FALSE_POSITIVES, MIN_FUZZY_TERM_LENGTH
from compliance.matching import FalsePositiveDenylist, MatchResult, MatchTier
from compliance.text_normalizer import contains_term, match_key
from core.app_logging import get_logger, log_event
from core.reference_cache import ReferenceDataCache
from core.reference_records import AllergenDefinition

logger = get_logger(__name__)


def default_denylist(
    extra: Iterable[str] = (),
    denylist_file: Optional[str] = None,
) -> FalsePositiveDenylist:
    """
    Built-in false positives plus ALLERGEN_FALSE_POSITIVES and the optional
    ALLERGEN_FALSE_POSITIVES_FILE JSON list.
    """
    entries = list(DEFAULT_FALSE_POSITIVES) + list(config.ALLERGEN_FALSE_POSITIVES) + list(extra)
    denylist = FalsePositiveDenylist(entries)

    path = denylist_file or config.ALLERGEN_FALSE_POSITIVES_FILE
    if path:
        try:
            denylist = denylist.extended(FalsePositiveDenylist.from_json_file(path))
        except (OSError, ValueError) as e:
            log_event(logger, "Could not load allergen false-positive file, using built-in list",
                      level=logging.WARNING, path=path, error=e)
    return denylist


def _exact_terms(allergen: AllergenDefinition) -> List[str]:
    return [match_key(allergen.name)]


def _derivative_terms(allergen: AllergenDefinition) -> List[str]:
    names = list(allergen.derivatives) + list(allergen.scientific_names)
    if allergen.common_name:
        names.append(allergen.common_name)
    return [key for key in (match_key(n) for n in names) if key]


def _fuzzy_terms(allergen: AllergenDefinition) -> List[str]:
    names = [allergen.name] + list(allergen.derivatives)
    return [
        key for key in (match_key(n) for n in names)
        if len(key) >= MIN_FUZZY_TERM_LENGTH
    ]


class AllergenMatcher:
    """Matches single ingredients against the allergen corpus."""

    def __init__(
        self,
        cache: Optional[ReferenceDataCache] = None,
        false_positives: Optional[FalsePositiveDenylist] = None,
    ):
        self.cache = cache
        self.false_positives = false_positives if false_positives is not None else default_denylist()

    def _allergens(self, allergens: Optional[Sequence[AllergenDefinition]]) -> Sequence[AllergenDefinition]:
        if allergens is not None:
            return allergens
        if self.cache is None:
            raise ValueError("AllergenMatcher needs a cache or an explicit allergen list")
        return self.cache.get_cached_allergens()

    def match_ingredient(
        self,
        ingredient: str,
        allergens: Optional[Sequence[AllergenDefinition]] = None,
    ) -> List[MatchResult]:
        """
        Return one result per allergen the ingredient touches; empty list when
        none. ``allergens`` pins the corpus snapshot; the cache is read otherwise.
        """
        key = match_key(ingredient or "")
        if not key:
            return []
        if ingredient in self.false_positives:
            log_event(logger, "Allergen false positive suppressed", level=logging.DEBUG, ingredient=ingredient)
            return []

        active = [a for a in self._allergens(allergens) if a.active]

        results: List[MatchResult] = []
        seen = set()

        for allergen in active:
            if key in _exact_terms(allergen):
                seen.add(allergen.key)
                results.append(MatchResult(ingredient, allergen, MatchTier.EXACT))

        for allergen in active:
            if allergen.key in seen:
                continue
            if key in _derivative_terms(allergen):
                seen.add(allergen.key)
                results.append(MatchResult(ingredient, allergen, MatchTier.DERIVATIVE))

        if results:
            return results

        # Compound phrases: "shrimp extract", "whey protein concentrate"
        for allergen in active:
            if allergen.key in seen:
                continue
            if any(contains_term(key, term) for term in _fuzzy_terms(allergen)):
                seen.add(allergen.key)
                results.append(MatchResult(ingredient, allergen, MatchTier.FUZZY))

        return results
