from typing import FrozenSet

# Descriptors and class words (salts, vitamin families) that appear in many
# GRAS names and do not identify one substance. Never used alone as a fuzzy search term.
GENERIC_TERMS: FrozenSet[str] = frozenset({
    "extract",
    "powder",
    "concentrate",
    "isolate",
    "blend",
    "complex",
    "root",
    "seed",
    "leaf",
    "fruit",
    "berry",
    "natural",
    "organic",
    "protein",
    "flavor",
    "flavour",
    "juice",
    "dried",
    "ground",
    "acid",
    "syrup",
    "color",
    "colour",
    "vitamin",
    "mineral",
    "sodium",
    "calcium",
    "potassium",
    "magnesium",
    "chloride",
    "sulfate",
    "phosphate",
    "carbonate",
    "citrate",
    "oxide",
    "derived",
    "hydrolyzed",
    "modified",
    "oleoresin",
    "essence",
    "tincture",
})

# Fuzzy search terms must be longer than this
MIN_TERM_LENGTH = 3

CFR_CITATIONS = "21 CFR 170.3 (definitions) and 21 CFR 170.30 (GRAS determination)"
