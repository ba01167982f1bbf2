import pytest

from compliance.matching import MatchResult, MatchTier
from compliance.report_aggregator import (
    aggregate_allergens,
    aggregate_gras,
    aggregate_ndi,
    clean_ingredients,
)
from core.reference_records import GRASIngredientRecord


def test_clean_ingredients_drops_blank_entries():
    assert clean_ingredients(["Water", "", "  ", None, "Salt"]) == ["Water", "Salt"]
    assert clean_ingredients(("Water",)) == ["Water"]


@pytest.mark.parametrize("bad", ["Water, Salt", None, {"Water"}, 3])
def test_non_list_input_fails_fast(bad):
    with pytest.raises(TypeError):
        clean_ingredients(bad)


def test_non_string_element_fails_fast():
    with pytest.raises(TypeError, match=r"ingredients\[1\]"):
        clean_ingredients(["Water", 42])


def test_allergen_report_for_empty_list(orchestrator):
    report = orchestrator.check_allergens([])
    assert report.allergensDetected == []
    assert report.ingredientsWithAllergens == []
    assert report.summary.totalIngredients == 0
    assert report.summary.uniqueAllergensDetected == 0


def test_allergen_totals(orchestrator):
    report = orchestrator.check_allergens(["Water", "Whey Protein", "Sugar", "Soy Lecithin", "Salt"])
    assert report.summary.totalIngredients == 5
    assert report.summary.ingredientsWithAllergens == 2
    assert report.summary.uniqueAllergensDetected == 2
    assert {a.name for a in report.allergensDetected} == {"Milk", "Soy"}
    assert [i.ingredient for i in report.ingredientsWithAllergens] == ["Whey Protein", "Soy Lecithin"]


def test_unique_allergens_count_entities_not_ingredients(orchestrator):
    report = orchestrator.check_allergens(["Milk", "Whey", "Eggs", "Albumin", "Soy Lecithin"])
    assert report.summary.ingredientsWithAllergens == 5
    assert report.summary.uniqueAllergensDetected == 3
    assert [a.name for a in report.allergensDetected] == ["Milk", "Eggs", "Soy"]


def test_confidence_counts(orchestrator):
    report = orchestrator.check_allergens(["Casein", "Shrimp Extract", "Butter"])
    assert report.summary.highConfidenceMatches == 2
    assert report.summary.mediumConfidenceMatches == 1
    shrimp = report.ingredientsWithAllergens[1].allergens[0]
    assert shrimp.matchType == "fuzzy"
    assert shrimp.confidence == "medium"
    assert shrimp.allergen.name == "Crustacean Shellfish"


def test_blank_ingredients_are_not_counted(orchestrator):
    report = orchestrator.check_allergens(["Milk", "", None, "   "])
    assert report.summary.totalIngredients == 1


def test_allergen_matcher_error_is_isolated():
    def match(ingredient):
        if ingredient == "Broken":
            raise RuntimeError("boom")
        return []

    report = aggregate_allergens(["Water", "Broken", "Salt"], match)
    assert report.summary.totalIngredients == 3
    assert report.summary.ingredientsWithAllergens == 0
    assert report.summary.unverifiedIngredients == ["Broken"]


def test_gras_report_empty_is_compliant(orchestrator):
    report = orchestrator.check_gras([])
    assert report.totalIngredients == 0
    assert report.grasCompliant == 0
    assert report.overallCompliant is True
    assert report.criticalIssues == []


def test_gras_report_mixed(orchestrator):
    report = orchestrator.check_gras(["Water", "Unknown Chemical 123", "1,3,7-TRIMETHYLXANTHINE"])
    assert report.totalIngredients == 3
    assert report.grasCompliant == 2
    assert report.grasIngredients == ["Water", "1,3,7-TRIMETHYLXANTHINE"]
    assert report.nonGRASIngredients == ["Unknown Chemical 123"]
    assert report.overallCompliant is False
    assert len(report.criticalIssues) == 1
    assert "Unknown Chemical 123" in report.criticalIssues[0]
    assert "NOT in the FDA GRAS database" in report.criticalIssues[0]
    assert [r.matchType for r in report.detailedResults] == ["exact", None, "synonym"]
    assert report.grasCompliant + len(report.nonGRASIngredients) == report.totalIngredients


def test_gras_matcher_error_is_isolated():
    def match(ingredient):
        if ingredient == "Broken":
            raise KeyError("gras")
        return MatchResult(ingredient, GRASIngredientRecord(name=ingredient), MatchTier.EXACT)

    report = aggregate_gras(["Water", "Broken"], match)
    assert report.nonGRASIngredients == ["Broken"]
    assert report.detailedResults[1].isGRAS is False
    assert "KeyError" in report.detailedResults[1].verificationError
    assert "manual review" in report.criticalIssues[0]


def test_ndi_report(orchestrator):
    report = orchestrator.check_ndi(["Astaxanthin", "Beta-glucan", "Ginseng", "Unknown Novel Ingredient 2024"])
    summary = report.summary
    assert summary.totalChecked == 4
    assert summary.withNDI == 2
    assert summary.withoutNDI == 2
    assert summary.requiresNotification == 1
    assert [r.matchType for r in report.results] == ["exact", "partial", None, None]
    assert [r.ingredient for r in report.results] == [
        "Astaxanthin", "Beta-glucan", "Ginseng", "Unknown Novel Ingredient 2024",
    ]


def test_ndi_matcher_error_is_isolated():
    def match(ingredient):
        raise RuntimeError("lookup failed")

    report = aggregate_ndi(["Mystery Extract"], match)
    result = report.results[0]
    assert result.hasNDI is False
    assert result.requiresNDI is False
    assert "manual review" in result.complianceNote
    assert "RuntimeError" in result.verificationError
    assert report.summary.withoutNDI == 1
    assert report.summary.requiresNotification == 0
