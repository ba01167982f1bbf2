import asyncio

import pytest

from compliance.ingredient_orchestrator import (
    Check,
    ProductCategory,
    checks_for_category,
    parse_checks,
)

INGREDIENTS = ["Water", "Whey Protein", "Astaxanthin", "Unknown Chemical 123"]


@pytest.mark.parametrize("category, expected", [
    ("CONVENTIONAL_FOOD", [Check.ALLERGENS, Check.GRAS]),
    ("NON_ALCOHOLIC_BEVERAGE", [Check.ALLERGENS, Check.GRAS]),
    ("alcoholic_beverage", [Check.ALLERGENS, Check.GRAS]),
    (ProductCategory.DIETARY_SUPPLEMENT, [Check.ALLERGENS, Check.NDI]),
    (None, [Check.ALLERGENS, Check.GRAS, Check.NDI]),
    ("PET_FOOD", [Check.ALLERGENS, Check.GRAS, Check.NDI]),
])
def test_checks_for_category(category, expected):
    assert checks_for_category(category) == expected


def test_parse_checks_rejects_unknown_names():
    assert parse_checks(["GRAS", "gras", "ndi"]) == [Check.GRAS, Check.NDI]
    with pytest.raises(ValueError, match="Unknown ingredient check"):
        parse_checks(["vitamins"])


def test_food_runs_allergens_and_gras(orchestrator):
    result = orchestrator.evaluate_sync(INGREDIENTS, "CONVENTIONAL_FOOD")
    assert result.ndi is None
    assert result.gras.totalIngredients == 4
    assert result.gras.nonGRASIngredients == ["Whey Protein", "Astaxanthin", "Unknown Chemical 123"]
    assert result.allergens.summary.ingredientsWithAllergens == 1


def test_supplement_runs_allergens_and_ndi(orchestrator):
    result = orchestrator.evaluate_sync(INGREDIENTS, "DIETARY_SUPPLEMENT")
    assert result.gras is None
    assert result.ndi.summary.totalChecked == 4
    assert result.ndi.results[2].hasNDI is True


def test_unknown_category_runs_everything(orchestrator):
    result = asyncio.run(orchestrator.evaluate(INGREDIENTS))
    assert result.allergens is not None
    assert result.gras is not None
    assert result.ndi is not None


def test_explicit_checks_always_include_allergens(orchestrator):
    result = orchestrator.evaluate_sync(INGREDIENTS, checks=["ndi"])
    assert result.gras is None
    assert result.ndi is not None
    assert result.allergens.summary.totalIngredients == 4


def test_results_follow_input_order(orchestrator):
    ingredients = ["Unknown Novel Ingredient 2024", "Ginseng", "Astaxanthin", "Vitamin C"]
    result = orchestrator.evaluate_sync(ingredients, "DIETARY_SUPPLEMENT")
    assert [r.ingredient for r in result.ndi.results] == ingredients


def test_contract_violation_raises(orchestrator):
    with pytest.raises(TypeError):
        orchestrator.evaluate_sync("Water, Salt")


def test_matcher_failure_does_not_abort_batch(orchestrator, monkeypatch):
    original = orchestrator.gras_matcher.check_gras

    def flaky(ingredient, records=None):
        if ingredient == "Whey Protein":
            raise RuntimeError("index corrupted")
        return original(ingredient, records)

    monkeypatch.setattr(orchestrator.gras_matcher, "check_gras", flaky)
    result = orchestrator.evaluate_sync(INGREDIENTS, "CONVENTIONAL_FOOD")
    assert result.gras.totalIngredients == 4
    assert result.gras.grasIngredients == ["Water"]
    assert result.gras.detailedResults[1].verificationError.startswith("RuntimeError")


def test_unavailable_reference_data_degrades_to_unmatched(source, denylist):
    from compliance.ingredient_orchestrator import IngredientComplianceOrchestrator
    from core.reference_cache import Corpus, ReferenceDataCache

    def down():
        raise ConnectionError("database down")

    source[Corpus.GRAS] = down
    cache = ReferenceDataCache(source)
    orchestrator = IngredientComplianceOrchestrator(cache, false_positives=denylist)
    report = orchestrator.check_gras(["Water"])
    assert report.nonGRASIngredients == ["Water"]
    assert report.overallCompliant is False
    cache.close()


def test_evaluate_builds_narratives(orchestrator):
    result = orchestrator.evaluate_sync(INGREDIENTS, "CONVENTIONAL_FOOD")
    assert "Major Food Allergens Detected: Milk" in result.allergenContext
    assert "CRITICAL: GRAS Compliance Issue Detected" in result.grasContext
    assert "3. Unknown Chemical 123" in result.grasContext
    assert result.ndiContext is None


def test_evaluate_takes_one_snapshot(orchestrator, monkeypatch):
    calls = []
    snapshot = orchestrator.cache.snapshot()

    def counting_snapshot():
        calls.append(1)
        return snapshot

    monkeypatch.setattr(orchestrator.cache, "snapshot", counting_snapshot)
    monkeypatch.setattr(orchestrator.cache, "get", lambda corpus: pytest.fail("per-check fetch"))
    orchestrator.evaluate_sync(INGREDIENTS)
    assert calls == [1]
