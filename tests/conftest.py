from datetime import date

import pytest

from compliance.ingredient_orchestrator import IngredientComplianceOrchestrator
from compliance.matching import FalsePositiveDenylist
from compliance.allergens.constants import DEFAULT_FALSE_POSITIVES
from core.reference_cache import ReferenceDataCache, StaticReferenceSource

ALLERGENS = [
    {
        "id": "1",
        "name": "Milk",
        "category": "Dairy",
        "common_name": "Cow's Milk",
        "derivatives": ["whey", "casein", "lactose", "butter", "cream", "cheese"],
        "scientific_names": ["Bos taurus"],
    },
    {
        "id": "2",
        "name": "Eggs",
        "category": "Poultry",
        "common_name": "Chicken Eggs",
        "derivatives": ["albumin", "ovalbumin", "egg white", "egg yolk", "lysozyme"],
        "scientific_names": ["Gallus gallus domesticus"],
    },
    {
        "id": "3",
        "name": "Soy",
        "category": "Legumes",
        "common_name": "Soybean",
        "derivatives": ["soybean", "tofu", "edamame", "soy lecithin", "miso"],
        "scientific_names": ["Glycine max"],
    },
    {
        "id": "4",
        "name": "Crustacean Shellfish",
        "category": "Shellfish",
        "common_name": "Shellfish",
        "derivatives": ["shrimp", "crab", "lobster", "crayfish", "prawn"],
    },
]

GRAS = [
    {"id": "10", "name": "Water", "gras_status": "affirmed"},
    {"id": "11", "name": "Caffeine", "gras_status": "notice", "notice_number": "GRN 000923",
     "synonyms": ["1,3,7-trimethylxanthine"]},
    {"id": "12", "name": "Citric Acid", "gras_status": "notice", "notice_number": "GRN 000094",
     "synonyms": ["2-hydroxypropane-1,2,3-tricarboxylic acid"]},
    {"id": "13", "name": "Ascorbic Acid", "gras_status": "affirmed", "synonyms": ["Vitamin C"]},
    {"id": "14", "name": "Coffee", "gras_status": "affirmed"},
    {"id": "15", "name": "Coffee fruit extract", "gras_status": "notice"},
    {"id": "16", "name": "Retired Additive", "gras_status": "affirmed", "active": False},
]

NDI = [
    {"notification_number": 1, "report_number": "RPT-001", "ingredient_name": "Astaxanthin",
     "firm": "Test Firm Inc", "submission_date": date(2020, 1, 15), "fda_response_date": date(2020, 4, 1)},
    {"notification_number": 2, "ingredient_name": "Beta-glucan derived from yeast"},
]

ODI = [
    {"ingredient_name": "Ginseng", "synonyms": ["Panax ginseng"], "source_organization": "AHPA"},
    {"ingredient_name": "Echinacea", "source_organization": "AHPA"},
    {"ingredient_name": "Vitamin C", "synonyms": ["Ascorbic Acid", "L-ascorbic acid"],
     "source_organization": "CRN"},
]


@pytest.fixture
def source():
    return StaticReferenceSource(allergens=ALLERGENS, gras=GRAS, ndi=NDI, odi=ODI)


@pytest.fixture
def cache(source):
    cache = ReferenceDataCache(source, fetch_timeout=5)
    yield cache
    cache.close()


@pytest.fixture
def denylist():
    return FalsePositiveDenylist(DEFAULT_FALSE_POSITIVES)


@pytest.fixture
def orchestrator(cache, denylist):
    return IngredientComplianceOrchestrator(cache, false_positives=denylist)
