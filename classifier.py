"""
Category classifier for LPJ Studios chat messages.

Two ordered rule tables:
  1. CLASSIFICATION_RULES — first match wins, later rules are never reached.
  2. OVERRIDE_RULES       — evaluated on every message after pass 1; a match
                            replaces the pass-1 tag and is final.

Matching is substring/regex based on the lower-cased message, so German
compounds ("Schafwolldecken", "Wolldecke") are caught by their parts.
"""

import re
from typing import Callable, Tuple

from models import CategoryTag

Predicate = Callable[[str], bool]


def _any_of(*terms: str) -> Predicate:
    return lambda text: any(term in text for term in terms)


def _pattern(regex: str) -> Predicate:
    compiled = re.compile(regex)
    return lambda text: compiled.search(text) is not None


def _all_of(*predicates: Predicate) -> Predicate:
    return lambda text: all(p(text) for p in predicates)


def _either(*predicates: Predicate) -> Predicate:
    return lambda text: any(p(text) for p in predicates)


# ─── Term groups ───
mentions_color = _any_of("farbe", "color", "colour")
# "decke" but not the verbs entdecken, aufdecken, abdecken, zudecken
mentions_blanket = _pattern(r"(?<!ent)(?<!auf)(?<!ab)(?<!zu)decke|deckn|plaid|blanket")
mentions_sheep = _any_of("schaf", "sheep")
mentions_wool = _any_of("wolle", "wool")
mentions_purity = _pattern(r"\brein(e|er|en|es)?\b|\bpure\b")
mentions_rug = _pattern(r"teppich|\brugs?\b|carpet")


CLASSIFICATION_RULES: Tuple[Tuple[Predicate, CategoryTag], ...] = (
    # 1. Colors outrank every blanket rule
    (mentions_color, CategoryTag.COLORS),

    # 2. Pure sheep wool blankets
    (
        _either(
            _all_of(mentions_sheep, mentions_blanket),
            _all_of(mentions_wool, mentions_blanket, mentions_purity),
        ),
        CategoryTag.SHEEP_WOOL_BLANKETS,
    ),

    # 3. Wool-mix blankets
    (_pattern(r"wollmix[\s-]*decke|wool[\s-]*mix[\s-]*blanket"), CategoryTag.WOOL_MIX_BLANKETS),

    # 4. Cashmere blankets
    (_pattern(r"kaschmir[\s-]*decke|cashmere[\s-]*blanket"), CategoryTag.CASHMERE_BLANKETS),

    # 5. Any other wool blanket
    (
        _either(_any_of("wolldecke"), _all_of(mentions_blanket, mentions_wool)),
        CategoryTag.WOOL_BLANKETS,
    ),

    # 6. Craftsmanship, uniqueness, price justification, sustainability, origin
    (
        _either(
            _any_of(
                "besondere", "besonders", "einzigartig", "unterscheidet", "warum",
                "teuer", "hergestellt", "handwerk", "qualität", "qualitaet",
                "nachhaltig", "herkunft", "woher",
                "special", "unique", "expensive", "craftsmanship", "quality",
                "sustainab", "handmade",
            ),
            _pattern(r"\bwhy\b"),
        ),
        CategoryTag.SPECIAL,
    ),

    # 7. Dog pillows get the full description, not the size/price shortcuts
    (_pattern(r"hundekissen|\bhunde?n?\b|\bdogs?\b"), CategoryTag.DETAILED),

    # 8. Narrow consultation topics
    (_any_of("größe", "groesse", "maße", "size"), CategoryTag.SIZES),
    (_any_of("preis", "kosten", "kostet", "price", "cost"), CategoryTag.PRICE),
    (_any_of("material"), CategoryTag.MATERIAL),
)

OVERRIDE_RULES: Tuple[Tuple[Predicate, CategoryTag], ...] = (
    (_all_of(mentions_rug, mentions_color), CategoryTag.RUG_COLORS),
    (mentions_rug, CategoryTag.RUGS),
)

DEFAULT_TAG = CategoryTag.DETAILED


def classify(message: str) -> CategoryTag:
    """Map a customer message to the category that shapes the reply."""
    text = (message or "").lower().strip()

    tag = DEFAULT_TAG
    for predicate, rule_tag in CLASSIFICATION_RULES:
        if predicate(text):
            tag = rule_tag
            break

    for predicate, rule_tag in OVERRIDE_RULES:
        if predicate(text):
            return rule_tag

    return tag
