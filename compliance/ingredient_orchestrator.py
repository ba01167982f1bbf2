import asyncio
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel

from compliance.allergens.detector import AllergenMatcher
from compliance.allergens.models import AllergenSummary
from compliance.formatting import build_allergen_context, build_gras_context, build_ndi_context
from compliance.gras.detector import GRASMatcher
from compliance.gras.models import GRASComplianceReport
from compliance.matching import FalsePositiveDenylist
from compliance.ndi.detector import NDIMatcher
from compliance.ndi.models import NDIComplianceReport
from compliance.report_aggregator import (
    aggregate_allergens,
    aggregate_gras,
    aggregate_ndi,
    clean_ingredients,
)
from core.app_logging import get_logger, log_event
from core.reference_cache import ReferenceDataCache, ReferenceSnapshot

logger = get_logger(__name__)


class ProductCategory(str, Enum):
    CONVENTIONAL_FOOD = "CONVENTIONAL_FOOD"
    DIETARY_SUPPLEMENT = "DIETARY_SUPPLEMENT"
    NON_ALCOHOLIC_BEVERAGE = "NON_ALCOHOLIC_BEVERAGE"
    ALCOHOLIC_BEVERAGE = "ALCOHOLIC_BEVERAGE"


class Check(str, Enum):
    ALLERGENS = "allergens"
    GRAS = "gras"
    NDI = "ndi"


GRAS_CATEGORIES = {
    ProductCategory.CONVENTIONAL_FOOD,
    ProductCategory.NON_ALCOHOLIC_BEVERAGE,
    ProductCategory.ALCOHOLIC_BEVERAGE,
}


class IngredientComplianceResult(BaseModel):
    allergens: AllergenSummary
    gras: Optional[GRASComplianceReport] = None
    ndi: Optional[NDIComplianceReport] = None
    # Narrative summaries for reviewers and the analysis prompt
    allergenContext: str = ""
    grasContext: Optional[str] = None
    ndiContext: Optional[str] = None


def parse_category(category) -> Optional[ProductCategory]:
    """Known category or None; unknown strings select every check."""
    if category is None or isinstance(category, ProductCategory):
        return category
    try:
        return ProductCategory(str(category).strip().upper())
    except ValueError:
        return None


def parse_checks(checks: Iterable[str]) -> List[Check]:
    parsed = []
    for name in checks:
        try:
            check = name if isinstance(name, Check) else Check(str(name).strip().lower())
        except ValueError:
            valid = ", ".join(c.value for c in Check)
            raise ValueError(f"Unknown ingredient check: {name!r} (expected one of: {valid})")
        if check not in parsed:
            parsed.append(check)
    return parsed


def checks_for_category(category) -> List[Check]:
    """
    Allergens always run. GRAS applies to foods and beverages, NDI to dietary
    supplements; with no known category every check runs.
    """
    category = parse_category(category)
    if category is None:
        return [Check.ALLERGENS, Check.GRAS, Check.NDI]
    if category is ProductCategory.DIETARY_SUPPLEMENT:
        return [Check.ALLERGENS, Check.NDI]
    if category in GRAS_CATEGORIES:
        return [Check.ALLERGENS, Check.GRAS]
    return [Check.ALLERGENS]


class IngredientComplianceOrchestrator:
    """Runs the allergen, GRAS and NDI checks for one ingredient list."""

    def __init__(
        self,
        cache: ReferenceDataCache,
        false_positives: Optional[FalsePositiveDenylist] = None,
    ):
        self.cache = cache
        self.allergen_matcher = AllergenMatcher(cache, false_positives=false_positives)
        self.gras_matcher = GRASMatcher(cache)
        self.ndi_matcher = NDIMatcher(cache)

    def check_allergens(
        self,
        ingredients: Sequence[Optional[str]],
        snapshot: Optional[ReferenceSnapshot] = None,
    ) -> AllergenSummary:
        ingredients = clean_ingredients(ingredients)
        # One corpus snapshot for the whole list
        allergens = snapshot.allergens if snapshot is not None else self.cache.get_cached_allergens()
        return aggregate_allergens(
            ingredients, lambda ing: self.allergen_matcher.match_ingredient(ing, allergens)
        )

    def check_gras(
        self,
        ingredients: Sequence[Optional[str]],
        snapshot: Optional[ReferenceSnapshot] = None,
    ) -> GRASComplianceReport:
        ingredients = clean_ingredients(ingredients)
        records = snapshot.gras if snapshot is not None else self.cache.get_cached_gras_ingredients()
        return aggregate_gras(ingredients, lambda ing: self.gras_matcher.check_gras(ing, records))

    def check_ndi(
        self,
        ingredients: Sequence[Optional[str]],
        snapshot: Optional[ReferenceSnapshot] = None,
    ) -> NDIComplianceReport:
        ingredients = clean_ingredients(ingredients)
        if snapshot is not None:
            ndi, odi = snapshot.ndi, snapshot.odi
        else:
            ndi = self.cache.get_cached_ndi_notifications()
            odi = self.cache.get_cached_odi_ingredients()
        return aggregate_ndi(ingredients, lambda ing: self.ndi_matcher.check_ndi(ing, ndi, odi))

    async def evaluate(
        self,
        ingredients: Sequence[Optional[str]],
        product_category=None,
        checks: Optional[Iterable[str]] = None,
    ) -> IngredientComplianceResult:
        """Run the selected checks in parallel; allergens are always included."""
        cleaned = clean_ingredients(ingredients)
        selected = parse_checks(checks) if checks is not None else checks_for_category(product_category)
        if Check.ALLERGENS not in selected:
            selected.insert(0, Check.ALLERGENS)

        log_event(logger, "Evaluating ingredient compliance", ingredients=len(cleaned),
                  category=product_category, checks=",".join(c.value for c in selected))

        # Every check in this call sees the same reference data
        snapshot = await asyncio.to_thread(self.cache.snapshot)

        runners = {
            Check.ALLERGENS: self.check_allergens,
            Check.GRAS: self.check_gras,
            Check.NDI: self.check_ndi,
        }
        tasks = {
            check: asyncio.create_task(asyncio.to_thread(runners[check], cleaned, snapshot))
            for check in selected
        }
        await asyncio.gather(*tasks.values())

        allergens = tasks[Check.ALLERGENS].result()
        gras = tasks[Check.GRAS].result() if Check.GRAS in tasks else None
        ndi = tasks[Check.NDI].result() if Check.NDI in tasks else None
        return IngredientComplianceResult(
            allergens=allergens,
            gras=gras,
            ndi=ndi,
            allergenContext=build_allergen_context(allergens),
            grasContext=build_gras_context(gras) if gras is not None else None,
            ndiContext=build_ndi_context(ndi) if ndi is not None else None,
        )

    def evaluate_sync(
        self,
        ingredients: Sequence[Optional[str]],
        product_category=None,
        checks: Optional[Iterable[str]] = None,
    ) -> IngredientComplianceResult:
        return asyncio.run(self.evaluate(ingredients, product_category, checks))
