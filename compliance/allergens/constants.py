from typing import List

# Ingredient names that share tokens with an allergen term but are not
# allergens. Matched on the normalized ingredient, before any tier runs.
DEFAULT_FALSE_POSITIVES: List[str] = [
    "royal jelly",
    "royal gel",
    "bee jelly",
]

# Fuzzy (containment) tier ignores allergen terms shorter than this,
# so "soy", "egg" and "nut" only ever match exactly.
MIN_FUZZY_TERM_LENGTH = 4

MATCH_TYPE_LABELS = {
    "exact": "exact match",
    "derivative": "derivative",
    "fuzzy": "fuzzy match",
}

HIGH_CONFIDENCE_MARKER = "✓"
MEDIUM_CONFIDENCE_MARKER = "?"

NO_ALLERGENS_TEXT = "No allergens detected"
