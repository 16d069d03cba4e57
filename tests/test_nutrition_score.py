"""
Tests for petscore/scoring/nutrition.py

Covers:
  - Protein / fat / carbohydrate curves (as-fed ranges)
  - Carbohydrate estimation
  - Vegetable carbohydrate bonus and micronutrient cap
  - Missing data → zero contribution, never an error
  - Dry-matter calculator: re-basing, defaults, metadata
"""

import math

import pytest

from petscore.domain.models import FoodCategory
from petscore.scoring.nutrition import (
    AS_FED_RANGES,
    DRY_MATTER_RANGES,
    AsFedNutrition,
    DryMatterNutrition,
    _carb_points,
    _fat_points,
    _protein_points,
    estimate_carbs,
    get_nutrition_calculator,
    leading_carb_source_is_vegetable,
)
from petscore.scoring.tokenizer import tokenize

from conftest import make_product


def _nutrition(calculator=None, **kwargs):
    product = make_product(**kwargs)
    calculator = calculator or AsFedNutrition()
    return calculator.compute(product, tokenize(product.ingredients_raw))


# ---------------------------------------------------------------------------
# 1. Curves
# ---------------------------------------------------------------------------

class TestProteinCurve:

    @pytest.mark.parametrize("protein,expected", [
        (22.0, 15.0),
        (27.0, 15.0),
        (32.0, 15.0),
        (20.0, 11.25),   # transition: half way from 7.5 to 15
        (18.0, 7.5),
        (9.0, 3.75),     # below minimum: 15 * 9/18 * 0.5
        (33.5, 14.25),   # decline towards plateau
        (35.0, 13.5),
        (60.0, 13.5),
        (0.0, 0.0),
        (None, 0.0),
    ])
    def test_as_fed(self, protein, expected):
        assert _protein_points(protein, AS_FED_RANGES) == pytest.approx(expected)

    def test_monotone_up_to_optimal(self):
        values = [_protein_points(p / 2, AS_FED_RANGES) for p in range(0, 65)]
        assert values == sorted(values)

    def test_dry_matter_optimal_band_wider(self):
        assert _protein_points(36.0, DRY_MATTER_RANGES) == 15.0
        assert _protein_points(36.0, AS_FED_RANGES) < 15.0


class TestFatCurve:

    @pytest.mark.parametrize("fat,expected", [
        (10.0, 8.0), (20.0, 8.0), (25.0, 6.0), (7.0, 5.6), (5.0, 4.0), (2.0, 0.0),
    ])
    def test_as_fed(self, fat, expected):
        points, _ = _fat_points(fat, AS_FED_RANGES)
        assert points == pytest.approx(expected)

    def test_high_fat_penalty_recorded(self):
        _, details = _fat_points(25.0, AS_FED_RANGES)
        assert details["highFatPenalty"] == -2.0

    def test_missing_fat(self):
        assert _fat_points(None, AS_FED_RANGES) == (0.0, {})


class TestCarbCurve:

    @pytest.mark.parametrize("carbs,expected", [
        (0.0, 7.0), (29.9, 7.0), (30.0, 7.0), (35.0, 3.5), (40.0, 0.0), (55.0, 0.0), (None, 0.0),
    ])
    def test_as_fed(self, carbs, expected):
        assert _carb_points(carbs, AS_FED_RANGES) == pytest.approx(expected)

    def test_estimate(self):
        assert estimate_carbs(22.0, 10.0, 8.0, 10.0, 3.0) == pytest.approx(47.0)

    def test_estimate_floor_zero(self):
        assert estimate_carbs(22.0, 10.0, 8.0, 78.0, 3.0) == 0.0

    def test_estimate_needs_some_analysis(self):
        assert estimate_carbs(None, None, None, None, 3.0) is None


# ---------------------------------------------------------------------------
# 2. Bonuses
# ---------------------------------------------------------------------------

class TestBonuses:

    def test_vegetable_lead_carb(self):
        assert leading_carb_source_is_vegetable(tokenize("Chicken, Sweet Potato, Rice"))

    def test_grain_lead_carb(self):
        assert not leading_carb_source_is_vegetable(tokenize("Chicken, Rice, Sweet Potato"))

    def test_potato_is_not_sweet_potato(self):
        assert not leading_carb_source_is_vegetable(tokenize("Chicken, Potato, Sweet Potato"))

    def test_no_carb_source(self):
        assert not leading_carb_source_is_vegetable(tokenize("Chicken, Salmon Oil"))

    def test_vegetable_bonus_added_when_carbs_score(self):
        sub = _nutrition(ingredients="Chicken, Sweet Potato, Peas", carbs=20.0).subscore
        assert sub.details["lowCarbs"] == 7.0
        assert sub.details["vegetableCarbsBonus"] == 1.0

    def test_no_vegetable_bonus_without_carb_points(self):
        sub = _nutrition(ingredients="Chicken, Sweet Potato", carbs=50.0).subscore
        assert "vegetableCarbsBonus" not in sub.details

    def test_micronutrients_capped_at_two(self):
        sub = _nutrition(ingredients="Chicken, Fish Oil, Glucosamine, Taurine, Chicory Root").subscore
        assert sub.details["micronutrientScore"] == 2.0

    def test_one_micronutrient_group(self):
        sub = _nutrition(ingredients="Chicken, Salmon Oil, Krill Oil").subscore
        assert sub.details["micronutrientScore"] == 1.0


# ---------------------------------------------------------------------------
# 3. As-fed subscore
# ---------------------------------------------------------------------------

class TestAsFed:

    def test_reference_product(self):
        outcome = _nutrition()
        # protein 15 + fat 8 + carbs(47%) 0 + fiber 1 + omega (fish oil) 1
        assert outcome.subscore.score == 25.0
        assert outcome.dm_metrics is None
        assert outcome.meta.carbs_estimated
        assert not outcome.meta.carbs_provided
        assert not outcome.meta.used_dry_matter_basis

    def test_all_missing_is_zero_not_error(self):
        outcome = _nutrition(ingredients="", protein=None, fat=None, fiber=None, ash=None, moisture=None)
        assert outcome.subscore.score == 0.0
        assert outcome.subscore.details == {}
        assert not outcome.meta.carbs_estimated

    def test_fiber_outside_band(self):
        assert "fiberScore" not in _nutrition(fiber=8.0).subscore.details

    def test_declared_carbs_used(self):
        outcome = _nutrition(carbs=25.0)
        assert outcome.subscore.details["lowCarbs"] == 7.0
        assert outcome.meta.carbs_provided
        assert not outcome.meta.carbs_estimated

    def test_score_bounds(self):
        for protein in (0, 10, 25, 50, 100):
            for fat in (0, 15, 40):
                sub = _nutrition(protein=float(protein), fat=float(fat)).subscore
                assert 0.0 <= sub.score <= 33.0
                assert not math.isnan(sub.score)


# ---------------------------------------------------------------------------
# 4. Dry matter
# ---------------------------------------------------------------------------

class TestDryMatter:

    def test_rebased_values(self):
        outcome = _nutrition(DryMatterNutrition(), protein=8.8, fat=5.5, fiber=0.5, ash=2.0, moisture=78.0,
                             category=FoodCategory.WET)
        dm = outcome.dm_metrics
        assert dm.dm_percent == 22.0
        assert dm.protein_dm == 40.0
        assert dm.fat_dm == 25.0
        assert not dm.used_default_moisture
        assert outcome.meta.used_dry_matter_basis

    def test_default_moisture_by_category(self):
        outcome = _nutrition(DryMatterNutrition(), moisture=None, ash=None, category=FoodCategory.WET)
        assert outcome.dm_metrics.used_default_moisture
        assert outcome.dm_metrics.used_default_ash
        assert outcome.dm_metrics.dm_percent == 22.0
        assert not outcome.meta.moisture_provided

    def test_missing_category_uses_dry_defaults(self):
        outcome = _nutrition(DryMatterNutrition(), moisture=None, category=None)
        assert outcome.dm_metrics.dm_percent == 90.0

    def test_values_capped_at_100(self):
        outcome = _nutrition(DryMatterNutrition(), protein=30.0, moisture=80.0)
        assert outcome.dm_metrics.protein_dm == 100.0

    def test_fully_wet_falls_back_with_warning(self):
        outcome = _nutrition(DryMatterNutrition(), moisture=100.0)
        assert outcome.dm_metrics is None
        assert outcome.warnings
        assert 0.0 <= outcome.subscore.score <= 33.0

    def test_fallback_uses_as_fed_ranges(self):
        broth = dict(category=FoodCategory.WET, protein=3.0, fat=1.0, ash=0.5, fiber=0.5, moisture=96.0)
        fallback = _nutrition(DryMatterNutrition(), **broth)
        as_fed = _nutrition(AsFedNutrition(), **broth)
        assert fallback.subscore == as_fed.subscore
        assert fallback.meta.used_dry_matter_basis is False
        assert fallback.meta == as_fed.meta
        assert fallback.warnings[-1].startswith("moisture 96%")

    def test_narrows_gap_between_dry_and_wet(self):
        """Same as-fed protein/fat, moisture 10 % vs 78 %."""
        common = dict(ingredients="Chicken", protein=22.0, fat=10.0, fiber=3.0, ash=8.0)
        scores = {}
        for name, calc in (("as_fed", AsFedNutrition()), ("dm", DryMatterNutrition())):
            dry = _nutrition(calc, moisture=10.0, category=FoodCategory.DRY, **common).subscore.score
            wet = _nutrition(calc, moisture=78.0, category=FoodCategory.WET, **common).subscore.score
            scores[name] = abs(wet - dry)
        assert scores["dm"] < scores["as_fed"]

    def test_calculator_selection(self):
        assert isinstance(get_nutrition_calculator(True), DryMatterNutrition)
        assert isinstance(get_nutrition_calculator(False), AsFedNutrition)
