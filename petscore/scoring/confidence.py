"""
Data-confidence score (0-100).

How well documented the product is, independent of how good it is:

    Ingredient disclosure     25  (meat % + every top-3 ingredient with a %)
    Nutrition completeness    25  (5 each: protein, fat, fiber, ash, moisture)
    Energy transparency       10  (declared kcal)
    Carbs transparency        10  (declared, not derived)
    Sourcing transparency     20  (all animal sources named; 10 if mixed)
    Manufacturing info        10  (provenance statement)

Deductions: 5 per input anomaly, 10 when the declared analysis sums past
100 %.  Level: >= 75 High, >= 50 Medium, else Low.
"""

from typing import List, Sequence, Tuple

from ..config import (
    CONFIDENCE_ANOMALY_PENALTY,
    CONFIDENCE_CARBS,
    CONFIDENCE_ENERGY,
    CONFIDENCE_HIGH,
    CONFIDENCE_INGREDIENT_DISCLOSURE,
    CONFIDENCE_INGREDIENT_PARTIAL,
    CONFIDENCE_MACRO_OVERFLOW_PENALTY,
    CONFIDENCE_MANUFACTURING,
    CONFIDENCE_MEDIUM,
    CONFIDENCE_PER_NUTRIENT,
    CONFIDENCE_SOURCING,
)
from ..domain.models import ConfidenceBreakdown, InputAnomaly, ProductInput, Token
from ..domain.validation import validate_macro_total
from .ingredient import classify_meat_sources

DISCLOSURE_WINDOW = 3
CORE_NUTRIENTS = ("protein_percent", "fat_percent", "fiber_percent", "ash_percent", "moisture_percent")


def confidence_level(score: float) -> str:
    if score >= CONFIDENCE_HIGH:
        return "High"
    if score >= CONFIDENCE_MEDIUM:
        return "Medium"
    return "Low"


def _ingredient_disclosure(product: ProductInput, tokens: Sequence[Token]) -> Tuple[float, str]:
    top = list(tokens)[:DISCLOSURE_WINDOW]
    meat_declared = product.meat_content_percent is not None
    any_percent = any(t.declared_percent is not None for t in tokens)
    top_all_percent = bool(top) and all(t.declared_percent is not None for t in top)

    if meat_declared and top_all_percent:
        return CONFIDENCE_INGREDIENT_DISCLOSURE, "full ingredient percentage disclosure"
    if meat_declared or any_percent:
        return CONFIDENCE_INGREDIENT_PARTIAL, "partial ingredient percentage disclosure"
    return 0.0, "no ingredient percentages disclosed"


def _sourcing(tokens: Sequence[Token]) -> Tuple[float, str]:
    named, unnamed = classify_meat_sources(tokens)
    if named and not unnamed:
        return CONFIDENCE_SOURCING, "all animal sources named"
    if named:
        return CONFIDENCE_SOURCING / 2, "some animal sources unnamed"
    if unnamed:
        return 0.0, "animal sources not named"
    return 0.0, "no animal source identified"


def compute_confidence(
    product: ProductInput,
    tokens: Sequence[Token],
    anomalies: Sequence[InputAnomaly] = (),
) -> Tuple[float, str, ConfidenceBreakdown]:
    """
    Score how complete and consistent the product data is.

    Args:
        product: Sanitized product input.
        tokens: Tokenized declaration.
        anomalies: Anomalies recorded by ProductInput.sanitized() and the engine.

    Returns:
        (score 0-100, level, ConfidenceBreakdown)
    """
    notes: List[str] = []

    disclosure, note = _ingredient_disclosure(product, tokens)
    notes.append(note)

    present = [name for name in CORE_NUTRIENTS if getattr(product, name) is not None]
    nutrition = CONFIDENCE_PER_NUTRIENT * len(present)
    missing = [name for name in CORE_NUTRIENTS if name not in present]
    if missing:
        notes.append("missing " + ", ".join(n.replace("_percent", "") for n in missing))

    energy = CONFIDENCE_ENERGY if product.calories_per_100g is not None else 0.0
    carbs = CONFIDENCE_CARBS if product.carbs_percent is not None else 0.0
    if not carbs:
        notes.append("carbohydrate not declared")

    sourcing, note = _sourcing(tokens)
    notes.append(note)

    manufacturing = CONFIDENCE_MANUFACTURING if (product.provenance or "").strip() else 0.0

    deductions = CONFIDENCE_ANOMALY_PENALTY * len(anomalies)
    for anomaly in anomalies:
        notes.append(f"{anomaly.field}: {anomaly.reason}")

    is_valid, message = validate_macro_total(
        [getattr(product, name) for name in CORE_NUTRIENTS] + [product.carbs_percent]
    )
    if not is_valid:
        deductions += CONFIDENCE_MACRO_OVERFLOW_PENALTY
        notes.append(message)

    total = disclosure + nutrition + energy + carbs + sourcing + manufacturing - deductions
    score = round(max(0.0, min(100.0, total)), 1)

    breakdown = ConfidenceBreakdown(
        ingredient_disclosure=disclosure,
        nutrition_completeness=nutrition,
        energy_transparency=energy,
        carbs_transparency=carbs,
        sourcing_transparency=sourcing,
        manufacturing_info=manufacturing,
        deductions=-deductions,
        details=tuple(notes),
    )
    return score, confidence_level(score), breakdown
