"""
Nutrition subscore (0-33).

    Protein                 up to 15
    Fat                     up to 8   (-2 above the obesity-risk threshold)
    Carbohydrate            up to 7   (+1 when the leading carb source is a vegetable)
    Fiber                   1
    Functional micronutrients up to 2 (one per group present)

Two calculators implement the same interface:

    AsFedNutrition      declared percentages, as-fed optimal ranges
    DryMatterNutrition  percentages / ((100 - moisture) / 100), wider ranges

As-fed comparison penalises high-moisture foods (wet, raw, fresh) against
kibble; the dry-matter basis removes the water before judging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import (
    CARB_POINTS,
    DEFAULT_ASH,
    DEFAULT_MOISTURE,
    FAT_PARTIAL_DISTANCE,
    FAT_PENALTY,
    FAT_POINTS,
    FIBER_POINTS,
    MICRONUTRIENT_CAP,
    NUTRITION_MAX,
    PROTEIN_LOW_RATIO,
    PROTEIN_PLATEAU_RATIO,
    PROTEIN_POINTS,
    VEGETABLE_CARB_BONUS,
)
from ..domain.models import (
    DryMatterMetrics,
    FoodCategory,
    NutritionMeta,
    ProductInput,
    SubScore,
    Token,
)
from .rule_tables import GRAIN_CARB_SOURCES, MICRONUTRIENT_GROUPS, VEGETABLE_CARB_SOURCES
from .tokenizer import find_phrases

logger = logging.getLogger(__name__)

# Below this dry-matter fraction the re-based values are meaningless (≈ water).
MIN_DM_FRACTION = 0.05


@dataclass(frozen=True)
class NutritionRanges:
    protein_optimal_min: float
    protein_optimal_max: float
    protein_low_threshold: float
    protein_plateau: float
    fat_min: float
    fat_max: float
    fat_penalty_threshold: float
    carbs_full_below: float
    carbs_zero_at: float
    fiber_min: float
    fiber_max: float


AS_FED_RANGES = NutritionRanges(
    protein_optimal_min=22.0,
    protein_optimal_max=32.0,
    protein_low_threshold=18.0,
    protein_plateau=35.0,
    fat_min=10.0,
    fat_max=20.0,
    fat_penalty_threshold=20.0,
    carbs_full_below=30.0,
    carbs_zero_at=40.0,
    fiber_min=2.5,
    fiber_max=5.0,
)

DRY_MATTER_RANGES = NutritionRanges(
    protein_optimal_min=24.0,
    protein_optimal_max=38.0,
    protein_low_threshold=20.0,
    protein_plateau=42.0,
    fat_min=12.0,
    fat_max=24.0,
    fat_penalty_threshold=26.0,
    carbs_full_below=35.0,
    carbs_zero_at=50.0,
    fiber_min=2.5,
    fiber_max=6.0,
)


@dataclass(frozen=True)
class NutritionBasis:
    """Percentages the rules are applied to (as-fed or dry matter)."""
    protein: Optional[float]
    fat: Optional[float]
    fiber: Optional[float]
    carbs: Optional[float]


@dataclass(frozen=True)
class NutritionOutcome:
    subscore: SubScore
    meta: NutritionMeta
    dm_metrics: Optional[DryMatterMetrics] = None
    warnings: Tuple[str, ...] = ()


def _clamp(val: float, lo: float, hi: float) -> float:
    """Clamp val to [lo, hi]."""
    return max(lo, min(hi, val))


def estimate_carbs(
    protein: Optional[float],
    fat: Optional[float],
    ash: Optional[float],
    moisture: Optional[float],
    fiber: Optional[float],
) -> Optional[float]:
    """
    Nitrogen-free extract: 100 - protein - fat - ash - moisture - fiber.

    Missing components count as 0; nothing declared at all → None.
    """
    parts = (protein, fat, ash, moisture)
    if all(v is None for v in parts):
        return None
    total = sum(v for v in parts + (fiber,) if v is not None)
    return max(0.0, 100.0 - total)


# ---------------------------------------------------------------------------
# Rules (basis-independent)
# ---------------------------------------------------------------------------

def _protein_points(protein: Optional[float], r: NutritionRanges) -> float:
    if protein is None:
        return 0.0
    if r.protein_optimal_min <= protein <= r.protein_optimal_max:
        return PROTEIN_POINTS
    if r.protein_low_threshold <= protein < r.protein_optimal_min:
        # transition band: from half credit at the threshold up to full credit
        ratio = (protein - r.protein_low_threshold) / (r.protein_optimal_min - r.protein_low_threshold)
        return PROTEIN_POINTS * (PROTEIN_LOW_RATIO + (1.0 - PROTEIN_LOW_RATIO) * ratio)
    if protein > r.protein_optimal_max:
        if protein >= r.protein_plateau:
            return PROTEIN_POINTS * PROTEIN_PLATEAU_RATIO
        span = r.protein_plateau - r.protein_optimal_max
        ratio = 1.0 - (protein - r.protein_optimal_max) / span * (1.0 - PROTEIN_PLATEAU_RATIO)
        return PROTEIN_POINTS * ratio
    return PROTEIN_POINTS * (protein / r.protein_low_threshold) * PROTEIN_LOW_RATIO


def _fat_points(fat: Optional[float], r: NutritionRanges) -> Tuple[float, Dict[str, float]]:
    if fat is None:
        return 0.0, {}
    if r.fat_min <= fat <= r.fat_max:
        return FAT_POINTS, {"moderateFat": FAT_POINTS}
    if fat > r.fat_penalty_threshold:
        points = FAT_POINTS - FAT_PENALTY
        return points, {"moderateFat": points, "highFatPenalty": -FAT_PENALTY}
    distance = min(abs(fat - r.fat_min), abs(fat - r.fat_max))
    points = 0.0
    if distance <= FAT_PARTIAL_DISTANCE:
        points = FAT_POINTS * (1.0 - distance / (2 * FAT_PARTIAL_DISTANCE))
    return points, {"moderateFat": round(points, 2)}


def _carb_points(carbs: Optional[float], r: NutritionRanges) -> float:
    if carbs is None:
        return 0.0
    if carbs < r.carbs_full_below:
        return CARB_POINTS
    if carbs < r.carbs_zero_at:
        return CARB_POINTS * (r.carbs_zero_at - carbs) / (r.carbs_zero_at - r.carbs_full_below)
    return 0.0


def leading_carb_source_is_vegetable(tokens: Sequence[Token]) -> bool:
    """True when the first declared carbohydrate source is a vegetable, not a grain/starch."""
    vegetables = set(VEGETABLE_CARB_SOURCES)
    for token in tokens:
        found = find_phrases([token], VEGETABLE_CARB_SOURCES + GRAIN_CARB_SOURCES)
        if not found:
            continue
        longest = max(found, key=len)
        return longest in vegetables
    return False


def micronutrient_groups_present(tokens: Sequence[Token]) -> List[str]:
    return [
        group for group, phrases in MICRONUTRIENT_GROUPS.items()
        if find_phrases(tokens, phrases)
    ]


# ---------------------------------------------------------------------------
# Calculators
# ---------------------------------------------------------------------------

class NutritionCalculator:
    """
    Shared scoring over a basis supplied by the subclass.

    Subclasses implement _basis() and set `ranges`.
    """

    ranges: NutritionRanges = AS_FED_RANGES
    name = "as_fed"

    def _basis(
        self, product: ProductInput,
    ) -> Tuple[NutritionBasis, NutritionMeta, Optional[DryMatterMetrics], List[str]]:
        raise NotImplementedError

    def compute(self, product: ProductInput, tokens: Sequence[Token]) -> NutritionOutcome:
        basis, meta, dm_metrics, warnings = self._basis(product)
        r = self.ranges
        details: Dict[str, float] = {}

        protein = _protein_points(basis.protein, r)
        if basis.protein is not None:
            details["proteinQuality"] = round(protein, 2)

        fat, fat_details = _fat_points(basis.fat, r)
        details.update(fat_details)

        carbs = _carb_points(basis.carbs, r)
        if basis.carbs is not None:
            details["lowCarbs"] = round(carbs, 2)
        if carbs > 0 and leading_carb_source_is_vegetable(tokens):
            carbs += VEGETABLE_CARB_BONUS
            details["vegetableCarbsBonus"] = VEGETABLE_CARB_BONUS

        fiber = 0.0
        if basis.fiber is not None and r.fiber_min <= basis.fiber <= r.fiber_max:
            fiber = FIBER_POINTS
            details["fiberScore"] = fiber

        groups = micronutrient_groups_present(tokens)
        micro = min(MICRONUTRIENT_CAP, float(len(groups)))
        if micro:
            details["micronutrientScore"] = micro

        total = protein + fat + carbs + fiber + micro
        score = round(_clamp(total, 0.0, NUTRITION_MAX), 1)
        return NutritionOutcome(
            subscore=SubScore(name="nutrition", score=score, max_score=NUTRITION_MAX, details=details),
            meta=meta,
            dm_metrics=dm_metrics,
            warnings=tuple(warnings),
        )


class AsFedNutrition(NutritionCalculator):
    """Declared (as-fed) percentages against as-fed optimal ranges."""

    ranges = AS_FED_RANGES
    name = "as_fed"

    def _basis(self, product):
        carbs = product.carbs_percent
        estimated = False
        if carbs is None:
            carbs = estimate_carbs(
                product.protein_percent, product.fat_percent, product.ash_percent,
                product.moisture_percent, product.fiber_percent,
            )
            estimated = carbs is not None

        meta = NutritionMeta(
            carbs_provided=product.carbs_percent is not None,
            carbs_estimated=estimated,
            ash_provided=product.ash_percent is not None,
            moisture_provided=product.moisture_percent is not None,
            used_dry_matter_basis=False,
        )
        basis = NutritionBasis(
            protein=product.protein_percent,
            fat=product.fat_percent,
            fiber=product.fiber_percent,
            carbs=carbs,
        )
        return basis, meta, None, []


def _moisture_or_default(product: ProductInput) -> float:
    if product.moisture_percent is not None:
        return product.moisture_percent
    return DEFAULT_MOISTURE[(product.category or FoodCategory.DRY).value]


class DryMatterNutrition(NutritionCalculator):
    """Moisture-free percentages against dry-matter optimal ranges."""

    ranges = DRY_MATTER_RANGES
    name = "dry_matter"

    def compute(self, product: ProductInput, tokens: Sequence[Token]) -> NutritionOutcome:
        moisture = _moisture_or_default(product)
        if (100.0 - moisture) / 100.0 < MIN_DM_FRACTION:
            outcome = AsFedNutrition().compute(product, tokens)
            warning = f"moisture {moisture:g}% leaves no dry matter to normalise; scored as-fed"
            return replace(outcome, warnings=outcome.warnings + (warning,))
        return super().compute(product, tokens)

    def _basis(self, product):
        category = (product.category or FoodCategory.DRY).value
        used_default_moisture = product.moisture_percent is None
        moisture = _moisture_or_default(product)

        ash = product.ash_percent
        used_default_ash = ash is None
        if used_default_ash:
            ash = DEFAULT_ASH[category]

        carbs = product.carbs_percent
        estimated = False
        if carbs is None:
            carbs = estimate_carbs(
                product.protein_percent, product.fat_percent, ash, moisture, product.fiber_percent,
            )
            estimated = carbs is not None

        meta = NutritionMeta(
            carbs_provided=product.carbs_percent is not None,
            carbs_estimated=estimated,
            ash_provided=not used_default_ash,
            moisture_provided=not used_default_moisture,
            used_dry_matter_basis=True,
        )

        dm_fraction = (100.0 - moisture) / 100.0

        def rebase(value: Optional[float]) -> Optional[float]:
            if value is None:
                return None
            return round(min(100.0, value / dm_fraction), 2)

        dm_metrics = DryMatterMetrics(
            dm_percent=round(dm_fraction * 100.0, 2),
            protein_dm=rebase(product.protein_percent),
            fat_dm=rebase(product.fat_percent),
            fiber_dm=rebase(product.fiber_percent),
            carbs_dm=rebase(carbs),
            used_default_moisture=used_default_moisture,
            used_default_ash=used_default_ash,
        )
        if used_default_moisture:
            logger.debug(f"Dry-matter basis using default moisture {moisture:g}% for {category}")

        basis = NutritionBasis(
            protein=dm_metrics.protein_dm,
            fat=dm_metrics.fat_dm,
            fiber=dm_metrics.fiber_dm,
            carbs=dm_metrics.carbs_dm,
        )
        return basis, meta, dm_metrics, []


def get_nutrition_calculator(dry_matter: bool) -> NutritionCalculator:
    return DryMatterNutrition() if dry_matter else AsFedNutrition()
