"""
Folds per-ingredient matcher output into the three compliance reports.

Each ``aggregate_*`` function takes the ingredient list and a per-ingredient
match callable. An exception raised for one ingredient is logged and that
ingredient is reported as not verifiable; the rest of the list is unaffected.
"""
import logging
from typing import Callable, Dict, List, Optional, Sequence

from compliance.allergens.models import (
    AllergenCheckResult,
    AllergenSummary,
    AllergenSummaryCounts,
    IngredientAllergens,
)
from compliance.gras.models import GRASCheckResult, GRASComplianceReport
from compliance.matching import Confidence, MatchResult, MatchTier
from compliance.ndi.detector import NDIMatchResult, to_check_result
from compliance.ndi.models import NDIClassification, NDIComplianceReport, NDISummary
from core.app_logging import get_logger, log_event
from core.reference_records import AllergenDefinition

logger = get_logger(__name__)

AllergenMatchFn = Callable[[str], List[MatchResult]]
GRASMatchFn = Callable[[str], MatchResult]
NDIMatchFn = Callable[[str], NDIMatchResult]


def clean_ingredients(ingredients: Optional[Sequence[Optional[str]]]) -> List[str]:
    """
    Validate the ingredient list and drop blank entries.

    Raises:
        TypeError: ``ingredients`` is not a list/tuple, or holds something
            other than strings and ``None``.
    """
    if not isinstance(ingredients, (list, tuple)):
        raise TypeError(
            f"ingredients must be a list of strings, got {type(ingredients).__name__}"
        )
    cleaned = []
    for index, item in enumerate(ingredients):
        if item is None:
            continue
        if not isinstance(item, str):
            raise TypeError(
                f"ingredients[{index}] must be a string, got {type(item).__name__}"
            )
        if item.strip():
            cleaned.append(item)
    return cleaned


def _matcher_failed(check: str, ingredient: str, error: Exception) -> str:
    log_event(logger, f"{check} check failed for ingredient", level=logging.ERROR,
              exc_info=True, ingredient=ingredient, error=error)
    return f"{type(error).__name__}: {error}"


def non_gras_issue(ingredient: str) -> str:
    return (
        f'Ingredient "{ingredient}" is NOT in the FDA GRAS database and may require '
        "special approval or be prohibited for use in food products."
    )


def unverified_gras_issue(ingredient: str) -> str:
    return (
        f'Ingredient "{ingredient}" could not be verified against the FDA GRAS database '
        "and requires manual review."
    )


def aggregate_allergens(ingredients: Sequence[Optional[str]], match: AllergenMatchFn) -> AllergenSummary:
    ingredients = clean_ingredients(ingredients)

    with_allergens: List[IngredientAllergens] = []
    detected: Dict[str, AllergenDefinition] = {}
    unverified: List[str] = []
    high = medium = 0

    for ingredient in ingredients:
        try:
            matches = match(ingredient)
        except Exception as e:
            _matcher_failed("Allergen", ingredient, e)
            unverified.append(ingredient)
            continue

        results = [AllergenCheckResult.from_match(m) for m in matches if m.matched]
        if not results:
            continue

        with_allergens.append(IngredientAllergens(ingredient=ingredient, allergens=results))
        for m in matches:
            if not m.matched:
                continue
            detected.setdefault(m.matched_entity.key, m.matched_entity)
            if m.confidence is Confidence.HIGH:
                high += 1
            elif m.confidence is Confidence.MEDIUM:
                medium += 1

    return AllergenSummary(
        allergensDetected=list(detected.values()),
        ingredientsWithAllergens=with_allergens,
        summary=AllergenSummaryCounts(
            totalIngredients=len(ingredients),
            ingredientsWithAllergens=len(with_allergens),
            uniqueAllergensDetected=len(detected),
            highConfidenceMatches=high,
            mediumConfidenceMatches=medium,
            unverifiedIngredients=unverified,
        ),
    )


def aggregate_gras(ingredients: Sequence[Optional[str]], match: GRASMatchFn) -> GRASComplianceReport:
    ingredients = clean_ingredients(ingredients)
    if not ingredients:
        return GRASComplianceReport()

    detailed: List[GRASCheckResult] = []
    gras: List[str] = []
    non_gras: List[str] = []
    issues: List[str] = []

    for ingredient in ingredients:
        try:
            result = match(ingredient)
        except Exception as e:
            result = MatchResult.no_match(ingredient, error=_matcher_failed("GRAS", ingredient, e))

        detailed.append(GRASCheckResult.from_match(result))
        if result.matched:
            gras.append(ingredient)
            continue
        non_gras.append(ingredient)
        issues.append(unverified_gras_issue(ingredient) if result.error else non_gras_issue(ingredient))

    if non_gras:
        log_event(logger, "Non-GRAS ingredients detected", count=len(non_gras),
                  ingredients=", ".join(non_gras))

    return GRASComplianceReport(
        totalIngredients=len(ingredients),
        grasCompliant=len(gras),
        nonGRASIngredients=non_gras,
        grasIngredients=gras,
        detailedResults=detailed,
        overallCompliant=not non_gras,
        criticalIssues=issues,
    )


def aggregate_ndi(ingredients: Sequence[Optional[str]], match: NDIMatchFn) -> NDIComplianceReport:
    ingredients = clean_ingredients(ingredients)

    results = []
    with_ndi = without_ndi = requires = 0

    for ingredient in ingredients:
        try:
            result = match(ingredient)
        except Exception as e:
            result = NDIMatchResult(
                ingredient=ingredient,
                matched_entity=None,
                tier=MatchTier.NONE,
                error=_matcher_failed("NDI", ingredient, e),
                classification=NDIClassification.REQUIRES_VERIFICATION,
            )

        results.append(to_check_result(result))
        if result.has_ndi:
            with_ndi += 1
        else:
            without_ndi += 1
            if result.requires_ndi:
                requires += 1

    return NDIComplianceReport(
        results=results,
        summary=NDISummary(
            totalChecked=len(ingredients),
            withNDI=with_ndi,
            withoutNDI=without_ndi,
            requiresNotification=requires,
        ),
    )
