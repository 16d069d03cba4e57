"""Deterministic pet-food product quality scoring."""

from .config import ALGORITHM_VERSION, FeatureFlags, load_feature_flags
from .domain.models import (
    CategoryPriceAnchor,
    FoodCategory,
    ProductInput,
    ScoringResult,
)
from .lexicon import (
    Lexicon,
    LexiconError,
    get_active_lexicon,
    load_lexicon,
    set_active_lexicon,
)
from .scoring.engine import ScoringInvariantError, algorithm_metadata, score

__version__ = ALGORITHM_VERSION

__all__ = [
    "ALGORITHM_VERSION",
    "CategoryPriceAnchor",
    "FeatureFlags",
    "FoodCategory",
    "Lexicon",
    "LexiconError",
    "ProductInput",
    "ScoringInvariantError",
    "ScoringResult",
    "algorithm_metadata",
    "get_active_lexicon",
    "load_feature_flags",
    "load_lexicon",
    "score",
    "set_active_lexicon",
]
