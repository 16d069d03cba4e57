"""
Domain models for petscore.

Pure data classes + value objects. No I/O, no side effects.
Deterministic and fully testable.
"""
import json
import math
from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..config import FeatureFlags
from .validation import validate_percentage, validate_positive_amount


class FoodCategory(Enum):
    """Food form; drives moisture defaults and the price anchor used."""
    DRY = "dry"
    WET = "wet"
    RAW = "raw"
    FRESH = "fresh"
    COLD_PRESSED = "cold-pressed"
    SNACK = "snack"

    @classmethod
    def parse(cls, value: Any) -> Optional["FoodCategory"]:
        """Lenient lookup: 'Cold Pressed', 'cold_pressed', FoodCategory.DRY ..."""
        if isinstance(value, FoodCategory):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("_", "-").replace(" ", "-")
        for member in cls:
            if member.value == key:
                return member
        return None


# Percentage fields of ProductInput, in the order they are reported.
PERCENT_FIELDS = (
    "protein_percent",
    "fat_percent",
    "fiber_percent",
    "ash_percent",
    "moisture_percent",
    "carbs_percent",
    "meat_content_percent",
)


def _to_float(value: Any) -> Optional[float]:
    """None-safe float coercion; '', 'None', NaN and junk map to None."""
    if value is None or value == "" or value == "None":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


@dataclass(frozen=True)
class InputAnomaly:
    """One out-of-range or contradictory input value, recorded not raised."""
    field: str
    value: Any
    reason: str


@dataclass(frozen=True)
class ProductInput:
    """
    One product record as supplied by the ingestion layer - immutable.

    Every field is optional.  Percentages are expected in [0, 100] but the
    model never rejects out-of-range input; see sanitized().
    """
    category: Optional[FoodCategory] = None
    ingredients_raw: Optional[str] = None

    # Declared analysis, % as-fed
    protein_percent: Optional[float] = None
    fat_percent: Optional[float] = None
    fiber_percent: Optional[float] = None
    ash_percent: Optional[float] = None
    moisture_percent: Optional[float] = None
    carbs_percent: Optional[float] = None    # None → derived
    meat_content_percent: Optional[float] = None

    calories_per_100g: Optional[float] = None
    price_per_kg: Optional[float] = None

    # Manufacturing / provenance statement (e.g. "Made in our own kitchen in Yorkshire")
    provenance: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductInput":
        """
        Build from a loosely-typed record (CSV row, JSON object, DB row).

        Accepts a few aliases used by the ingestion layer
        (price_per_kg_gbp, carbohydrate_percent, ingredients).
        """
        def pick(*keys: str) -> Any:
            for k in keys:
                if k in data and data[k] not in (None, ""):
                    return data[k]
            return None

        provenance = pick("provenance", "manufacturing_info", "country_of_origin")
        name = pick("name", "product_name")
        ingredients = pick("ingredients_raw", "ingredients")
        return cls(
            category=FoodCategory.parse(pick("category", "food_category")),
            ingredients_raw=str(ingredients) if ingredients is not None else None,
            protein_percent=_to_float(pick("protein_percent", "protein")),
            fat_percent=_to_float(pick("fat_percent", "fat")),
            fiber_percent=_to_float(pick("fiber_percent", "fibre_percent", "fiber")),
            ash_percent=_to_float(pick("ash_percent", "ash")),
            moisture_percent=_to_float(pick("moisture_percent", "moisture")),
            carbs_percent=_to_float(pick("carbs_percent", "carbohydrate_percent")),
            meat_content_percent=_to_float(pick("meat_content_percent", "meat_content")),
            calories_per_100g=_to_float(pick("calories_per_100g", "kcal_per_100g")),
            price_per_kg=_to_float(pick("price_per_kg", "price_per_kg_gbp")),
            provenance=str(provenance) if provenance is not None else None,
            name=str(name) if name is not None else None,
        )

    def sanitized(self) -> Tuple["ProductInput", Tuple[InputAnomaly, ...]]:
        """
        Return a copy safe for scoring plus the anomalies found.

        - percentages outside [0, 100] are clamped
        - NaN / infinite numbers are dropped (treated as missing)
        - non-positive price / calories are dropped
        - a missing or unrecognised category is reported
        """
        anomalies: List[InputAnomaly] = []
        changes: Dict[str, Any] = {}

        for name in PERCENT_FIELDS:
            value = getattr(self, name)
            is_valid, message = validate_percentage(value, name)
            if not is_valid and not math.isfinite(value):
                anomalies.append(InputAnomaly(name, value, f"{message}, ignored"))
                changes[name] = None
            elif not is_valid:
                clamped = max(0.0, min(100.0, value))
                anomalies.append(InputAnomaly(name, value, f"{message}, clamped to {clamped:g}"))
                changes[name] = clamped

        for name in ("price_per_kg", "calories_per_100g"):
            value = getattr(self, name)
            is_valid, message = validate_positive_amount(value, name)
            if not is_valid:
                anomalies.append(InputAnomaly(name, value, f"{message}, ignored"))
                changes[name] = None

        if self.category is None:
            anomalies.append(InputAnomaly("category", None, "missing or unrecognised food category"))

        clean = replace(self, **changes) if changes else self
        return clean, tuple(anomalies)


@dataclass(frozen=True)
class Token:
    """One ingredient of the declaration, in declared-weight order."""
    text: str                               # original text, for display
    normalized: str                         # matching form
    position: int                           # 0-based, assigned after filtering
    declared_percent: Optional[float] = None


@dataclass(frozen=True)
class LexiconCategory:
    """A named group of ingredient phrases sharing one point value."""
    name: str
    description: str
    point_value: float
    phrases: Tuple[str, ...]


@dataclass(frozen=True)
class IngredientMatch:
    """A lexicon phrase found in the declaration (first occurrence only)."""
    phrase: str
    category: str
    base_points: float
    weighted_points: float
    position: int
    multiplier: float
    description: str = ""


@dataclass(frozen=True)
class SplitGroupFinding:
    """An ingredient family declared in several forms near the top of the list."""
    family: str
    count: int
    tokens: Tuple[str, ...]
    penalty: float            # negative


@dataclass(frozen=True)
class RedFlagDetection:
    """The tier that capped the star rating."""
    rule_id: str
    tier: int
    cap_stars: int
    reason: str
    matched_tokens: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CategoryPriceAnchor:
    """
    Catalog-wide average price for one food category, computed outside the
    engine.  Non-positive prices are treated as unavailable.
    """
    category: Optional[str]
    price_per_kg: Optional[float] = None
    price_per_1000kcal: Optional[float] = None
    sample_size: int = 0


@dataclass(frozen=True)
class SubScore:
    """One of the three weighted subscores with its rule-level details."""
    name: str
    score: float
    max_score: float
    details: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class DryMatterMetrics:
    dm_percent: float
    protein_dm: Optional[float] = None
    fat_dm: Optional[float] = None
    fiber_dm: Optional[float] = None
    carbs_dm: Optional[float] = None
    used_default_moisture: bool = False
    used_default_ash: bool = False


@dataclass(frozen=True)
class NutritionMeta:
    carbs_provided: bool = False
    carbs_estimated: bool = False
    ash_provided: bool = False
    moisture_provided: bool = False
    used_dry_matter_basis: bool = False


@dataclass(frozen=True)
class EnergyMetrics:
    kcal_per_100g: Optional[float] = None
    kcal_per_kg: Optional[float] = None
    price_per_1000kcal: Optional[float] = None
    used_atwater_estimate: bool = False


@dataclass(frozen=True)
class ConfidenceBreakdown:
    ingredient_disclosure: float = 0.0
    nutrition_completeness: float = 0.0
    energy_transparency: float = 0.0
    carbs_transparency: float = 0.0
    sourcing_transparency: float = 0.0
    manufacturing_info: float = 0.0
    deductions: float = 0.0
    details: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoringResult:
    """
    Full scoring output for one product.

    Constructed once per score() call and never mutated; to_json() is
    stable (sorted keys) so identical inputs give byte-identical output.
    """
    algorithm_version: str
    overall_score: float
    ingredient: SubScore
    nutrition: SubScore
    value: SubScore

    breakdown: Dict[str, float]
    star_rating: int
    score_stars: int                         # before any red-flag cap
    grade: str
    score_band: Tuple[float, float]

    confidence_score: float
    confidence_level: str                    # High | Medium | Low
    confidence_breakdown: ConfidenceBreakdown

    red_flag: Optional[RedFlagDetection] = None
    matches: Tuple[IngredientMatch, ...] = ()
    split_findings: Tuple[SplitGroupFinding, ...] = ()
    dm_metrics: Optional[DryMatterMetrics] = None
    nutrition_meta: Optional[NutritionMeta] = None
    energy_metrics: Optional[EnergyMetrics] = None
    warnings: Tuple[str, ...] = ()
    feature_flags: FeatureFlags = field(default_factory=FeatureFlags)
    category: Optional[str] = None

    @property
    def ingredient_score(self) -> float:
        return self.ingredient.score

    @property
    def nutrition_score(self) -> float:
        return self.nutrition.score

    @property
    def value_score(self) -> float:
        return self.value.score

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)
