from compliance.gras.detector import GRASMatcher, search_terms
from compliance.matching import MatchTier
from core.reference_records import GRASIngredientRecord


def test_exact_match(orchestrator):
    result = orchestrator.gras_matcher.check_gras("Water")
    assert result.matched
    assert result.tier is MatchTier.EXACT
    assert result.matched_entity.name == "Water"


def test_exact_match_after_normalization(orchestrator):
    result = orchestrator.gras_matcher.check_gras("CITRIC ACID (acidulant) 2%")
    assert result.tier is MatchTier.EXACT
    assert result.matched_entity.name == "Citric Acid"


def test_synonym_match(orchestrator):
    result = orchestrator.gras_matcher.check_gras("1,3,7-TRIMETHYLXANTHINE")
    assert result.tier is MatchTier.SYNONYM
    assert result.matched_entity.name == "Caffeine"
    assert result.ingredient == "1,3,7-TRIMETHYLXANTHINE"


def test_fuzzy_prefers_shortest_name(orchestrator):
    result = orchestrator.gras_matcher.check_gras("Ground Roasted Coffee")
    assert result.tier is MatchTier.FUZZY
    assert result.matched_entity.name == "Coffee"


def test_unknown_ingredient_is_not_gras(orchestrator):
    result = orchestrator.gras_matcher.check_gras("Unknown Chemical 123")
    assert not result.matched
    assert result.tier is MatchTier.NONE


def test_generic_words_alone_do_not_match(orchestrator):
    # "acid" and "extract" are descriptors, not substances
    assert not orchestrator.gras_matcher.check_gras("Malic Acid").matched
    assert not orchestrator.gras_matcher.check_gras("Fruit Extract").matched


def test_inactive_records_are_ignored(orchestrator):
    assert not orchestrator.gras_matcher.check_gras("Retired Additive").matched


def test_explicit_record_list_without_cache():
    matcher = GRASMatcher()
    records = [GRASIngredientRecord(name="Sucrose", synonyms=["table sugar", "cane sugar"])]
    assert matcher.check_gras("Cane Sugar", records).tier is MatchTier.SYNONYM
    assert matcher.check_gras("Organic Sucrose Syrup", records).tier is MatchTier.FUZZY


def test_search_terms_order_and_filtering():
    assert search_terms("panax ginseng root") == ["ginseng", "panax"]
    assert search_terms("calcium pantothenate 1234") == ["pantothenate"]
    assert search_terms("red 40") == []


def test_fuzzy_ignores_words_inside_synonyms(orchestrator):
    # "Vitamin C" is a synonym of Ascorbic Acid; amygdalin must not ride on it
    result = orchestrator.gras_matcher.check_gras("Vitamin B17")
    assert result.tier is MatchTier.NONE
    assert result.matched_entity is None


def test_class_words_do_not_fuzzy_match():
    records = [
        GRASIngredientRecord(name="Sodium Chloride", synonyms=["salt"]),
        GRASIngredientRecord(name="Vitamin A"),
    ]
    matcher = GRASMatcher()
    assert matcher.check_gras("Sodium Azide", records).tier is MatchTier.NONE
    assert matcher.check_gras("Vitamin K2 Menaquinone", records).tier is MatchTier.NONE
    assert matcher.check_gras("Sea Salt", records).tier is MatchTier.NONE
