"""
Scoring configuration and constants.

Rule tables (maxima, bands, thresholds) live here so every calculator reads
the same numbers, plus the feature-flag loader.  Feature flags are read from
an optional settings.json using the same nested layout as every other
setting:

    {
      "scoring": {
        "dry_matter_normalization": {"value": true},
        "energy_based_pricing":     {"value": false}
      }
    }
"""
import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

ALGORITHM_VERSION = "2.2.0"
LAST_UPDATED = "2026-10-01"

# ---------------------------------------------------------------------------
# Subscore maxima (sum = 100)
# ---------------------------------------------------------------------------

INGREDIENT_MAX = 45.0
NUTRITION_MAX = 33.0
VALUE_MAX = 22.0

# ---------------------------------------------------------------------------
# Ingredient quality rule points
# ---------------------------------------------------------------------------

MEAT_CONTENT_BANDS = (      # (min effective meat %, points), highest first
    (50.0, 20.0),
    (40.0, 12.0),
    (30.0, 6.0),
)
MEAT_SOFT_CAP = 65.0
FRESH_MEAT_FACTOR = 0.75   # fresh meat loses most of its weight when dried
FRESH_MEAT_WINDOW = 3      # top-N tokens inspected for "fresh" meat

FILLER_CEILING = 10.0
HIGH_RISK_FILLER_PENALTY = 2.0
LOW_VALUE_CARB_PENALTY = 1.0

ADDITIVE_CEILING = 10.0
FIRST_PRESERVATIVE_PENALTY = 3.0
EXTRA_PRESERVATIVE_PENALTY = 2.0
PRESERVATIVE_ZERO_COUNT = 3
CONTROVERSIAL_ADDITIVE_PENALTY = 3.0

NAMED_SOURCE_BONUS = 5.0

PROCESSING_CEILING = 5.0
PROCESSED_INGREDIENT_PENALTY = 2.0
PROCESSING_PENALTY_CAP = 5.0

LEXICON_BONUS_CAP = 8.0

# ---------------------------------------------------------------------------
# Position weighting & split-ingredient detection
# ---------------------------------------------------------------------------

POSITION_MULTIPLIERS = (   # (last index inclusive, multiplier)
    (4, 1.0),
    (9, 0.6),
)
TAIL_POSITION_MULTIPLIER = 0.3

SPLIT_WINDOW = 10
SPLIT_PENALTY_TWO = -1.5
SPLIT_PENALTY_THREE_PLUS = -3.0

RED_FLAG_TOP_WINDOW = 5

# ---------------------------------------------------------------------------
# Nutrition
# ---------------------------------------------------------------------------

PROTEIN_POINTS = 15.0
PROTEIN_PLATEAU_RATIO = 0.9
PROTEIN_LOW_RATIO = 0.5
FAT_POINTS = 8.0
FAT_PENALTY = 2.0
FAT_PARTIAL_DISTANCE = 5.0
CARB_POINTS = 7.0
VEGETABLE_CARB_BONUS = 1.0
FIBER_POINTS = 1.0
MICRONUTRIENT_CAP = 2.0

# Defaults used when moisture / ash are missing in dry-matter mode.
DEFAULT_MOISTURE = {
    "dry": 10.0,
    "wet": 78.0,
    "raw": 70.0,
    "fresh": 70.0,
    "cold-pressed": 8.0,
    "snack": 15.0,
}
DEFAULT_ASH = {
    "dry": 8.0,
    "wet": 2.5,
    "raw": 3.0,
    "fresh": 2.5,
    "cold-pressed": 7.0,
    "snack": 6.0,
}

# Modified Atwater factors, kcal per gram
ATWATER_PROTEIN = 3.5
ATWATER_FAT = 8.5
ATWATER_CARB = 3.5

# ---------------------------------------------------------------------------
# Value
# ---------------------------------------------------------------------------

PRICE_RATIO_TIERS = (      # (ratio upper bound, points, strict "<")
    (0.7, 15.0, True),
    (0.9, 12.0, True),
    (1.1, 9.0, False),
    (1.3, 6.0, False),
)
PRICE_RATIO_FLOOR_POINTS = 3.0
PRICE_NEUTRAL_POINTS = 6.0
QUALITY_VALUE_NEUTRAL_POINTS = 4.0

# ---------------------------------------------------------------------------
# Stars, grades, confidence
# ---------------------------------------------------------------------------

STAR_THRESHOLDS = (        # (min overall score, stars)
    (80.0, 5),
    (65.0, 4),
    (50.0, 3),
    (35.0, 2),
)
GRADE_THRESHOLDS = (
    (80.0, "Excellent", 3.0),
    (60.0, "Good", 5.0),
    (40.0, "Fair", 5.0),
)
POOR_GRADE = ("Poor", 7.0)

CONFIDENCE_INGREDIENT_DISCLOSURE = 25.0
CONFIDENCE_INGREDIENT_PARTIAL = 15.0
CONFIDENCE_PER_NUTRIENT = 5.0
CONFIDENCE_ENERGY = 10.0
CONFIDENCE_CARBS = 10.0
CONFIDENCE_SOURCING = 20.0
CONFIDENCE_MANUFACTURING = 10.0
CONFIDENCE_ANOMALY_PENALTY = 5.0
CONFIDENCE_MACRO_OVERFLOW_PENALTY = 10.0
CONFIDENCE_HIGH = 75.0
CONFIDENCE_MEDIUM = 50.0


# ============================================================
# Feature flags
# ============================================================

SETTINGS_ENV_VAR = "PETSCORE_SETTINGS"
SETTINGS_SECTION = "scoring"


@dataclass(frozen=True)
class FeatureFlags:
    """Behaviour toggles for staged rollout of scoring changes."""
    dry_matter_normalization: bool = False
    energy_based_pricing: bool = False
    position_weighting: bool = True
    split_ingredient_penalty: bool = True

    def with_overrides(self, **overrides: Optional[bool]) -> "FeatureFlags":
        """Return a copy with the non-None overrides applied."""
        changes = {k: bool(v) for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, bool]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_FEATURE_FLAGS = FeatureFlags()


def get_settings_path() -> Path:
    """
    Settings file location.

    PETSCORE_SETTINGS wins; otherwise settings.json in the data directory.
    """
    env_path = os.environ.get(SETTINGS_ENV_VAR)
    if env_path:
        return Path(env_path)
    from .utils.paths import get_data_dir  # noqa: PLC0415
    return get_data_dir() / "settings.json"


def _flag_value(entry: Any) -> Optional[bool]:
    if isinstance(entry, dict):
        entry = entry.get("value")
    if isinstance(entry, bool):
        return entry
    return None


def load_feature_flags(settings_path: "Union[str, Path, None]" = None) -> FeatureFlags:
    """
    Read feature flags from settings.json.

    Missing file → defaults.  Unreadable or malformed file → defaults and a
    warning; settings are optional, unlike the lexicon.

    Args:
        settings_path: Explicit file; defaults to get_settings_path().

    Returns:
        FeatureFlags
    """
    path = Path(settings_path) if settings_path is not None else get_settings_path()
    if not path.exists():
        return DEFAULT_FEATURE_FLAGS

    try:
        with open(path, "r", encoding="utf-8") as f:
            settings = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Ignoring unreadable settings file {path}: {e}")
        return DEFAULT_FEATURE_FLAGS

    section = settings.get(SETTINGS_SECTION) if isinstance(settings, dict) else None
    if not isinstance(section, dict):
        return DEFAULT_FEATURE_FLAGS

    known = {f.name for f in fields(FeatureFlags)}
    overrides = {
        name: _flag_value(entry)
        for name, entry in section.items()
        if name in known
    }
    return DEFAULT_FEATURE_FLAGS.with_overrides(**overrides)


def save_feature_flags(flags: FeatureFlags, settings_path: "Union[str, Path, None]" = None) -> bool:
    """
    Write feature flags into settings.json, preserving other sections.

    Returns:
        True if successful, False otherwise
    """
    path = Path(settings_path) if settings_path is not None else get_settings_path()

    settings: Dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                settings = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Overwriting unreadable settings file {path}: {e}")
            settings = {}

    settings[SETTINGS_SECTION] = {
        name: {"value": value} for name, value in flags.to_dict().items()
    }

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(settings, f, indent=2)
        return True
    except OSError as e:
        logger.error(f"Failed to write settings file {path}: {e}")
        return False
