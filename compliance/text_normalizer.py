import re
from functools import lru_cache
from typing import List

# (Vitamin C), [E330], {from milk}; innermost first, repeated until none remain
_BRACKETED = re.compile(r'\s*(?:\([^()]*\)|\[[^\[\]]*\]|\{[^{}]*\})')

# "whey, from milk" / "salt; anticaking agent" -> keep the head clause only.
# Comma must be followed by whitespace so "1,3,7-trimethylxanthine" survives.
_TRAILING_CLAUSE = re.compile(r'\s*[,;]\s.*$')

# D-, L-, DL-, d,l- stereochemistry / purity markers at the start of a word
_STEREO_PREFIX = re.compile(r'(?<![a-z0-9])(?:d,l|dl|d|l)-(?=[a-z0-9])')

# 5%, 50 mg, 1.5 g, 400 IU at the end of the name
_TRAILING_QUANTITY = re.compile(
    r'\s*\d+(?:[.,]\d+)?\s*(?:%|mg|mcg|µg|ug|g|kg|iu|ml)\.?\s*$'
)

_WHITESPACE = re.compile(r'\s+')

_TOKEN_SPLIT = re.compile(r"[\W_]+")


def _normalize_once(text: str) -> str:
    text = text.lower()
    text = _BRACKETED.sub('', text)
    text = _TRAILING_CLAUSE.sub('', text)
    text = _STEREO_PREFIX.sub('', text)
    text = _TRAILING_QUANTITY.sub('', text)
    text = _WHITESPACE.sub(' ', text).strip()
    return text


@lru_cache(maxsize=65536)
def normalize(raw: str) -> str:
    """
    Canonical comparison key for an ingredient name.
    - Lowercase
    - Remove bracketed qualifiers and trailing clauses
    - Remove stereochemistry prefixes (D-, L-, DL-)
    - Remove trailing percentages / quantities
    - Collapse whitespace

    Steps are repeated until the text stops changing, so
    ``normalize(normalize(x)) == normalize(x)`` for every input.
    """
    if not raw:
        return ""
    text = str(raw)
    while True:
        cleaned = _normalize_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned


def tokens(text: str) -> List[str]:
    """Alphanumeric tokens of an already-normalized string."""
    return [t for t in _TOKEN_SPLIT.split(text) if t]


def contains_term(text: str, term: str) -> bool:
    """
    True when the token sequence ``term`` occurs inside ``text`` on token
    boundaries. Both arguments are expected to be ``match_key`` output.
    """
    if not text or not term:
        return False
    return f" {term} " in f" {text} "


@lru_cache(maxsize=65536)
def match_key(raw: str) -> str:
    """Normalized name reduced to its tokens, so "Egg-White" and "egg white" compare equal."""
    return " ".join(tokens(normalize(raw)))
