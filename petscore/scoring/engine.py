"""
Scoring engine: one product in, one ScoringResult out.

Pure and synchronous.  The only shared input is the lexicon, captured once
at entry so a concurrent set_active_lexicon() cannot change it mid-call.

Overall score = ingredient (0-45) + nutrition (0-33) + value (0-22).
Stars come from the overall score and are then capped by the most severe
red-flag tier.  Confidence is computed alongside and never feeds back into
the score.
"""

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..config import (
    ALGORITHM_VERSION,
    DEFAULT_FEATURE_FLAGS,
    GRADE_THRESHOLDS,
    INGREDIENT_MAX,
    LAST_UPDATED,
    NUTRITION_MAX,
    POOR_GRADE,
    STAR_THRESHOLDS,
    VALUE_MAX,
    FeatureFlags,
)
from ..domain.models import (
    CategoryPriceAnchor,
    InputAnomaly,
    ProductInput,
    ScoringResult,
    SubScore,
)
from ..lexicon import Lexicon, get_active_lexicon, load_lexicon
from .confidence import compute_confidence
from .ingredient import compute_ingredient_score
from .matcher import match_ingredients
from .nutrition import get_nutrition_calculator
from .red_flags import apply_cap, evaluate_red_flags
from .split_detector import SplitDetection, detect_split_ingredients
from .tokenizer import tokenize
from .value import get_value_calculator

logger = logging.getLogger(__name__)


class ScoringInvariantError(AssertionError):
    """Raised when a subscore leaves its declared range"""
    pass


# ---------------------------------------------------------------------------
# Stars & grades
# ---------------------------------------------------------------------------

def score_to_stars(overall: float) -> int:
    """Map 0-100 to 1-5 stars (before any red-flag cap)."""
    for threshold, stars in STAR_THRESHOLDS:
        if overall >= threshold:
            return stars
    return 1


def grade_for_score(overall: float) -> Tuple[str, float]:
    """Return (grade, band margin)."""
    for threshold, grade, margin in GRADE_THRESHOLDS:
        if overall >= threshold:
            return grade, margin
    return POOR_GRADE


def score_band(overall: float, margin: float) -> Tuple[float, float]:
    return (round(max(0.0, overall - margin), 1), round(min(100.0, overall + margin), 1))


def algorithm_metadata() -> Dict[str, Any]:
    """Version, release date and subscore weights of the scoring algorithm."""
    return {
        "version": ALGORITHM_VERSION,
        "last_updated": LAST_UPDATED,
        "weights": {
            "ingredient": INGREDIENT_MAX,
            "nutrition": NUTRITION_MAX,
            "value": VALUE_MAX,
        },
    }


def _check_subscore(subscore: SubScore) -> None:
    value = subscore.score
    if value is None or math.isnan(value) or value < 0.0 or value > subscore.max_score:
        raise ScoringInvariantError(
            f"{subscore.name} subscore {value!r} outside [0, {subscore.max_score:g}]"
        )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _resolve_lexicon(lexicon: Any) -> Lexicon:
    if lexicon is None:
        return get_active_lexicon()
    if isinstance(lexicon, Lexicon):
        return lexicon
    return load_lexicon(lexicon)


def _anchor_anomalies(product: ProductInput, anchor: Optional[CategoryPriceAnchor]) -> List[InputAnomaly]:
    if anchor is None or anchor.category is None or product.category is None:
        return []
    if anchor.category != product.category.value:
        return [InputAnomaly(
            "category_price_anchor",
            anchor.category,
            f"anchor is for '{anchor.category}' but product is '{product.category.value}'",
        )]
    return []


def score(
    product: Union[ProductInput, Mapping[str, Any]],
    lexicon: Any = None,
    category_price_anchor: Optional[CategoryPriceAnchor] = None,
    feature_flags: Optional[FeatureFlags] = None,
) -> ScoringResult:
    """
    Score one product.

    Args:
        product: ProductInput, or a raw record accepted by ProductInput.from_dict().
        lexicon: Lexicon, a lexicon source for load_lexicon(), or None for the
            active process-wide lexicon.
        category_price_anchor: Catalog average price for the product's category.
        feature_flags: Behaviour toggles; defaults to FeatureFlags().

    Returns:
        ScoringResult

    Raises:
        LexiconError: lexicon missing or malformed.
        ScoringInvariantError: a subscore left its range (rule-table defect).
    """
    lex = _resolve_lexicon(lexicon)
    flags = feature_flags if feature_flags is not None else DEFAULT_FEATURE_FLAGS
    if isinstance(product, Mapping):
        product = ProductInput.from_dict(product)

    clean, input_anomalies = product.sanitized()
    anomalies = list(input_anomalies) + _anchor_anomalies(clean, category_price_anchor)
    for anomaly in anomalies:
        logger.debug(f"Input anomaly {anomaly.field}={anomaly.value!r}: {anomaly.reason}")

    tokens = tokenize(clean.ingredients_raw)
    match_result = match_ingredients(tokens, lex, position_weighting=flags.position_weighting)
    split_detection = (
        detect_split_ingredients(tokens) if flags.split_ingredient_penalty else SplitDetection()
    )

    ingredient = compute_ingredient_score(clean, tokens, match_result, split_detection)
    nutrition_outcome = get_nutrition_calculator(flags.dry_matter_normalization).compute(clean, tokens)
    value_outcome = get_value_calculator(flags.energy_based_pricing).compute(
        clean, ingredient.score, category_price_anchor,
    )
    nutrition = nutrition_outcome.subscore
    value = value_outcome.subscore
    for subscore in (ingredient, nutrition, value):
        _check_subscore(subscore)

    overall = round(ingredient.score + nutrition.score + value.score, 1)

    score_stars = score_to_stars(overall)
    red_flag = evaluate_red_flags(tokens)
    star_rating = apply_cap(score_stars, red_flag)
    if star_rating > score_stars:
        raise ScoringInvariantError(f"red-flag cap raised stars {score_stars} → {star_rating}")
    if red_flag is not None and star_rating < score_stars:
        logger.debug(
            f"Red flag tier {red_flag.tier} ({red_flag.rule_id}) capped stars {score_stars} → {star_rating}"
        )

    grade, margin = grade_for_score(overall)
    confidence, level, confidence_breakdown = compute_confidence(clean, tokens, anomalies)

    breakdown: Dict[str, float] = {}
    for subscore in (ingredient, nutrition, value):
        breakdown.update(subscore.details)
    for category, points in match_result.breakdown.items():
        breakdown[f"lexicon:{category}"] = points

    warnings = [f"{a.field}: {a.reason}" for a in anomalies]
    warnings += list(nutrition_outcome.warnings) + list(value_outcome.warnings)
    if not tokens:
        warnings.append("no ingredient declaration")

    return ScoringResult(
        algorithm_version=ALGORITHM_VERSION,
        overall_score=overall,
        ingredient=ingredient,
        nutrition=nutrition,
        value=value,
        breakdown=breakdown,
        star_rating=star_rating,
        score_stars=score_stars,
        grade=grade,
        score_band=score_band(overall, margin),
        confidence_score=confidence,
        confidence_level=level,
        confidence_breakdown=confidence_breakdown,
        red_flag=red_flag,
        matches=match_result.matches,
        split_findings=split_detection.findings,
        dm_metrics=nutrition_outcome.dm_metrics,
        nutrition_meta=nutrition_outcome.meta,
        energy_metrics=value_outcome.energy_metrics,
        warnings=tuple(warnings),
        feature_flags=flags,
        category=clean.category.value if clean.category is not None else None,
    )
