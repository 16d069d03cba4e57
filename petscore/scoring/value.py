"""
Value subscore (0-22).

Price-per-feed (max 15) compares the product's price with the category
anchor; ingredient-adjusted value (max 7) reconciles that price with the
Ingredient Quality subscore.

Two pricing variants share the interface:
    PerKgPricing    price per kg vs anchor price per kg
    EnergyPricing   price per 1000 kcal vs anchor price per 1000 kcal,
                    falling back to per-kg when either side is unknown
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..config import (
    ATWATER_CARB,
    ATWATER_FAT,
    ATWATER_PROTEIN,
    INGREDIENT_MAX,
    PRICE_NEUTRAL_POINTS,
    PRICE_RATIO_FLOOR_POINTS,
    PRICE_RATIO_TIERS,
    QUALITY_VALUE_NEUTRAL_POINTS,
    VALUE_MAX,
)
from ..domain.models import CategoryPriceAnchor, EnergyMetrics, ProductInput, SubScore
from .nutrition import estimate_carbs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValueOutcome:
    subscore: SubScore
    energy_metrics: Optional[EnergyMetrics] = None
    price_ratio: Optional[float] = None
    warnings: Tuple[str, ...] = ()


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None or value <= 0:
        return None
    return value


def price_ratio_points(ratio: Optional[float]) -> float:
    """Competitiveness curve: cheaper than the category average earns more."""
    if ratio is None:
        return PRICE_NEUTRAL_POINTS
    for bound, points, strict in PRICE_RATIO_TIERS:
        if (ratio < bound) if strict else (ratio <= bound):
            return points
    return PRICE_RATIO_FLOOR_POINTS


def quality_value_points(ratio: Optional[float], ingredient_score: float) -> float:
    """
    Price vs quality matrix.

        cheap & poor        2
        cheaper & good      7
        fair price & decent 5
        pricey & excellent  6
        pricey & poor       1
    """
    if ratio is None or ingredient_score <= 0:
        return QUALITY_VALUE_NEUTRAL_POINTS

    quality = ingredient_score / INGREDIENT_MAX
    if ratio < 0.8 and quality < 0.5:
        return 2.0
    if ratio < 1.0 and quality >= 0.7:
        return 7.0
    if ratio <= 1.2 and quality >= 0.6:
        return 5.0
    if ratio > 1.2 and quality >= 0.8:
        return 6.0
    if ratio > 1.2 and quality < 0.5:
        return 1.0
    return QUALITY_VALUE_NEUTRAL_POINTS


def atwater_kcal_per_100g(product: ProductInput) -> Optional[float]:
    """Modified Atwater estimate; needs at least protein and fat."""
    if product.protein_percent is None or product.fat_percent is None:
        return None
    carbs = product.carbs_percent
    if carbs is None:
        carbs = estimate_carbs(
            product.protein_percent, product.fat_percent, product.ash_percent,
            product.moisture_percent, product.fiber_percent,
        ) or 0.0
    kcal = (
        ATWATER_PROTEIN * product.protein_percent
        + ATWATER_FAT * product.fat_percent
        + ATWATER_CARB * carbs
    )
    return kcal if kcal > 0 else None


def energy_metrics_for(product: ProductInput) -> EnergyMetrics:
    kcal = _positive(product.calories_per_100g)
    estimated = False
    if kcal is None:
        kcal = atwater_kcal_per_100g(product)
        estimated = kcal is not None
    if kcal is None:
        return EnergyMetrics()

    price = _positive(product.price_per_kg)
    per_1000 = round(price * 100.0 / kcal, 4) if price is not None else None
    return EnergyMetrics(
        kcal_per_100g=round(kcal, 2),
        kcal_per_kg=round(kcal * 10.0, 1),
        price_per_1000kcal=per_1000,
        used_atwater_estimate=estimated,
    )


class ValueCalculator:
    """Shared scoring; subclasses choose how the price ratio is formed."""

    name = "per_kg"

    def _ratio(
        self, product: ProductInput, anchor: Optional[CategoryPriceAnchor],
    ) -> Tuple[Optional[float], Optional[EnergyMetrics], List[str]]:
        raise NotImplementedError

    def compute(
        self,
        product: ProductInput,
        ingredient_score: float,
        anchor: Optional[CategoryPriceAnchor],
    ) -> ValueOutcome:
        ratio, energy, warnings = self._ratio(product, anchor)

        feed = price_ratio_points(ratio)
        adjusted = quality_value_points(ratio, ingredient_score)
        details: Dict[str, float] = {
            "pricePerFeed": feed,
            "ingredientAdjustedValue": adjusted,
        }
        score = round(max(0.0, min(VALUE_MAX, feed + adjusted)), 1)
        return ValueOutcome(
            subscore=SubScore(name="value", score=score, max_score=VALUE_MAX, details=details),
            energy_metrics=energy,
            price_ratio=round(ratio, 4) if ratio is not None else None,
            warnings=tuple(warnings),
        )


def _per_kg_ratio(product: ProductInput, anchor: Optional[CategoryPriceAnchor]) -> Optional[float]:
    price = _positive(product.price_per_kg)
    reference = _positive(anchor.price_per_kg) if anchor is not None else None
    if price is None or reference is None:
        return None
    return price / reference


class PerKgPricing(ValueCalculator):
    name = "per_kg"

    def _ratio(self, product, anchor):
        return _per_kg_ratio(product, anchor), None, []


class EnergyPricing(ValueCalculator):
    """Price per 1000 kcal; a calorie-dense food needs less per feeding."""

    name = "energy"

    def _ratio(self, product, anchor):
        energy = energy_metrics_for(product)
        reference = _positive(anchor.price_per_1000kcal) if anchor is not None else None

        if energy.price_per_1000kcal is not None and reference is not None:
            return energy.price_per_1000kcal / reference, energy, []

        if energy.kcal_per_100g is None:
            reason = "energy content unknown"
        elif energy.price_per_1000kcal is None:
            reason = "price missing"
        else:
            reason = "category anchor has no price per 1000 kcal"
        warnings = [f"energy-based pricing unavailable ({reason}); used price per kg"]
        logger.debug(warnings[0])
        return _per_kg_ratio(product, anchor), energy, warnings


def get_value_calculator(energy_based: bool) -> ValueCalculator:
    return EnergyPricing() if energy_based else PerKgPricing()
