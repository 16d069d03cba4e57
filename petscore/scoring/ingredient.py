"""
Ingredient Quality subscore (0-45).

Fixed rules, each computed independently:
  - Effective meat content   up to 20  (bands 30/40/50 %, soft cap 65 %)
  - Fillers                  up to 10  (-2 high-risk filler, -1 low-value carb)
  - Artificial additives     up to 10  (red flag/colour → 0; preservatives; controversial)
  - Named meat sources       up to 5   (all named 5, mixed 2.5, unnamed 0)
  - Processing quality       up to 5   (-2 per processed form, max -5)

plus the lexicon bonus (capped at ±LEXICON_BONUS_CAP) and the split
ingredient penalty.  The lexicon and the fixed rules meet only here.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from ..config import (
    ADDITIVE_CEILING,
    CONTROVERSIAL_ADDITIVE_PENALTY,
    EXTRA_PRESERVATIVE_PENALTY,
    FILLER_CEILING,
    FIRST_PRESERVATIVE_PENALTY,
    FRESH_MEAT_FACTOR,
    FRESH_MEAT_WINDOW,
    HIGH_RISK_FILLER_PENALTY,
    INGREDIENT_MAX,
    LEXICON_BONUS_CAP,
    LOW_VALUE_CARB_PENALTY,
    MEAT_CONTENT_BANDS,
    MEAT_SOFT_CAP,
    NAMED_SOURCE_BONUS,
    PRESERVATIVE_ZERO_COUNT,
    PROCESSED_INGREDIENT_PENALTY,
    PROCESSING_CEILING,
    PROCESSING_PENALTY_CAP,
)
from ..domain.models import FoodCategory, ProductInput, SubScore, Token
from .matcher import MatchResult
from .rule_tables import (
    ARTIFICIAL_COLOURS,
    ARTIFICIAL_PRESERVATIVES,
    CONTROVERSIAL_ADDITIVES,
    FRESH_MARKERS,
    HIGH_RISK_FILLERS,
    LOW_VALUE_CARBS,
    NAMED_MEAT_SOURCES,
    PROCESSED_INGREDIENTS,
    RED_FLAG_ADDITIVES,
    UNNAMED_MEAT_SOURCES,
    VEGETABLE_CARB_SOURCES,
)
from .split_detector import SplitDetection
from .tokenizer import contains_phrase, find_phrases

# Categories where fresh meat loses its water weight before the food is sold.
_DRIED_CATEGORIES = (FoodCategory.DRY, FoodCategory.COLD_PRESSED, FoodCategory.SNACK)


def _clamp(val: float, lo: float, hi: float) -> float:
    """Clamp val to [lo, hi]."""
    return max(lo, min(hi, val))


# ---------------------------------------------------------------------------
# Meat sources (shared with confidence and red-flag rules)
# ---------------------------------------------------------------------------

def classify_meat_sources(tokens: Sequence[Token]) -> Tuple[List[Token], List[Token]]:
    """
    Split tokens into (named, unnamed) animal sources.

    A token is named when its longest animal phrase is a named species
    ("chicken meat" is named, "fish derivatives" is not).  Tokens with no
    animal phrase are in neither list.
    """
    named_set = set(NAMED_MEAT_SOURCES)
    named: List[Token] = []
    unnamed: List[Token] = []
    for token in tokens:
        found = find_phrases([token], NAMED_MEAT_SOURCES + UNNAMED_MEAT_SOURCES)
        if not found:
            continue
        if any(p in named_set for p in found):
            named.append(token)
        else:
            unnamed.append(token)
    return named, unnamed


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def _meat_band_points(percent: float) -> float:
    for threshold, points in MEAT_CONTENT_BANDS:
        if percent >= threshold:
            return points
    return 0.0


def _has_fresh_meat_lead(product: ProductInput, tokens: Sequence[Token]) -> bool:
    if product.category not in _DRIED_CATEGORIES:
        return False
    for token in tokens[:FRESH_MEAT_WINDOW]:
        if any(contains_phrase(token.normalized, m) for m in FRESH_MARKERS) and \
                any(contains_phrase(token.normalized, n) for n in NAMED_MEAT_SOURCES):
            return True
    return False


def _meat_content_rule(product: ProductInput, tokens: Sequence[Token]) -> Tuple[float, Dict[str, float]]:
    declared = product.meat_content_percent
    if declared is None:
        return 0.0, {}

    effective = min(declared, MEAT_SOFT_CAP)
    points = _meat_band_points(effective)
    details: Dict[str, float] = {}

    if _has_fresh_meat_lead(product, tokens):
        dried_points = _meat_band_points(effective * FRESH_MEAT_FACTOR)
        if dried_points < points:
            details["freshMeatPenalty"] = -(points - dried_points)
        points = dried_points

    details["effectiveMeatContent"] = points
    return points, details


def _filler_rule(tokens: Sequence[Token]) -> Tuple[float, Dict[str, float]]:
    # One pass over both lists so "corn starch" is a low-value carb, not also "corn".
    found = find_phrases(tokens, HIGH_RISK_FILLERS + LOW_VALUE_CARBS, shadowed_by=VEGETABLE_CARB_SOURCES)
    high_risk = set(HIGH_RISK_FILLERS)
    n_high = sum(1 for p in found if p in high_risk)
    n_low = len(found) - n_high

    high_penalty = n_high * HIGH_RISK_FILLER_PENALTY
    low_penalty = n_low * LOW_VALUE_CARB_PENALTY
    points = max(0.0, FILLER_CEILING - high_penalty - low_penalty)

    details: Dict[str, float] = {"lowValueFillers": points}
    if n_high:
        details["highRiskFillerPenalty"] = -high_penalty
    if n_low:
        details["lowValueCarbPenalty"] = -low_penalty
    return points, details


def _preservative_penalty(count: int) -> float:
    if count <= 0:
        return 0.0
    return FIRST_PRESERVATIVE_PENALTY + EXTRA_PRESERVATIVE_PENALTY * (count - 1)


def _additive_rule(tokens: Sequence[Token]) -> Tuple[float, Dict[str, float]]:
    red_flags = find_phrases(tokens, RED_FLAG_ADDITIVES + ARTIFICIAL_COLOURS)
    if red_flags:
        return 0.0, {"noArtificialAdditives": 0.0, "redFlagAdditive": -ADDITIVE_CEILING}

    details: Dict[str, float] = {}
    n_preservatives = len(find_phrases(tokens, ARTIFICIAL_PRESERVATIVES))
    n_controversial = len(find_phrases(tokens, CONTROVERSIAL_ADDITIVES))

    if n_preservatives >= PRESERVATIVE_ZERO_COUNT:
        details["multiplePreservativesPenalty"] = -ADDITIVE_CEILING
        points = 0.0
    else:
        preservative_penalty = _preservative_penalty(n_preservatives)
        controversial_penalty = n_controversial * CONTROVERSIAL_ADDITIVE_PENALTY
        if preservative_penalty:
            details["artificialAdditivePenalty"] = -preservative_penalty
        if controversial_penalty:
            details["controversialAdditivePenalty"] = -controversial_penalty
        points = max(0.0, ADDITIVE_CEILING - preservative_penalty - controversial_penalty)

    details["noArtificialAdditives"] = points
    return points, details


def _named_source_rule(tokens: Sequence[Token]) -> Tuple[float, Dict[str, float]]:
    named, unnamed = classify_meat_sources(tokens)
    if named and not unnamed:
        points = NAMED_SOURCE_BONUS
    elif named:
        points = NAMED_SOURCE_BONUS / 2
    else:
        points = 0.0
    return points, {"namedMeatSources": points}


def _processing_rule(tokens: Sequence[Token]) -> Tuple[float, Dict[str, float]]:
    n_processed = len(find_phrases(tokens, PROCESSED_INGREDIENTS))
    penalty = min(PROCESSING_PENALTY_CAP, n_processed * PROCESSED_INGREDIENT_PENALTY)
    points = max(0.0, PROCESSING_CEILING - penalty)
    details: Dict[str, float] = {"processingQuality": points}
    if penalty:
        details["processingPenalty"] = -penalty
    return points, details


# ---------------------------------------------------------------------------
# Subscore
# ---------------------------------------------------------------------------

def compute_ingredient_score(
    product: ProductInput,
    tokens: Sequence[Token],
    match_result: MatchResult,
    split_detection: SplitDetection,
) -> SubScore:
    """
    Ingredient Quality subscore.

    Args:
        product: Sanitized product input.
        tokens: Tokenized declaration (may be empty).
        match_result: Lexicon matcher output.
        split_detection: Split-ingredient detector output (empty when disabled).

    Returns:
        SubScore with score in [0, 45] rounded to one decimal.
    """
    details: Dict[str, float] = {}
    total = 0.0

    rules = [lambda: _meat_content_rule(product, tokens)]
    if tokens:
        # Absence-of-bad-ingredient rules only pay out when there is a list to inspect.
        rules += [
            lambda: _filler_rule(tokens),
            lambda: _additive_rule(tokens),
            lambda: _named_source_rule(tokens),
            lambda: _processing_rule(tokens),
        ]
    for rule in rules:
        points, rule_details = rule()
        total += points
        details.update(rule_details)

    lexicon_bonus = _clamp(match_result.total, -LEXICON_BONUS_CAP, LEXICON_BONUS_CAP)
    total += lexicon_bonus
    details["lexiconBonusRaw"] = match_result.total
    details["lexiconBonus"] = round(lexicon_bonus, 1)

    if split_detection.penalty:
        total += split_detection.penalty
        details["splitIngredientPenalty"] = split_detection.penalty

    score = round(_clamp(total, 0.0, INGREDIENT_MAX), 1)
    return SubScore(name="ingredient", score=score, max_score=INGREDIENT_MAX, details=details)
