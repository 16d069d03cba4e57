"""
Red-flag override tiers.

Each tier caps the star rating when its trigger holds, whatever the
numeric score.  Tiers are evaluated in rank order (1 = most severe) and
evaluation stops at the first trigger:

    1  cap 2  red-flag preservative present (ethoxyquin, BHA, BHT, TBHQ)
    2  cap 2  toxic additive present (xylitol, menadione, sodium nitrite)
    3  cap 3  artificial colour together with an unnamed animal source
    4  cap 3  by-product / animal digest in the top 5 ingredients
    5  cap 4  artificial colour present
    6  cap 4  added sweetener in the top 5 ingredients

The aggregator applies min(score_stars, cap); a tier can only lower the
rating.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence, Tuple

from ..config import RED_FLAG_TOP_WINDOW
from ..domain.models import RedFlagDetection, Token
from .ingredient import classify_meat_sources
from .rule_tables import (
    ADDED_SWEETENERS,
    ARTIFICIAL_COLOURS,
    BY_PRODUCT_TERMS,
    RED_FLAG_PRESERVATIVES,
    TOXIC_ADDITIVES,
)
from .tokenizer import find_phrases


@dataclass(frozen=True)
class RedFlagContext:
    """Per-call view of the declaration shared by every tier."""
    tokens: Tuple[Token, ...]
    unnamed_sources: Tuple[Token, ...] = ()

    @classmethod
    def build(cls, tokens: Sequence[Token]) -> "RedFlagContext":
        _, unnamed = classify_meat_sources(tokens)
        return cls(tokens=tuple(tokens), unnamed_sources=tuple(unnamed))


def _texts(found: Dict[str, Token]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(t.text for t in found.values()))


@dataclass(frozen=True)
class RedFlagTier:
    """Common tier fields; subclasses implement evaluate()."""
    rule_id: str
    tier: int
    cap_stars: int
    reason: str

    def evaluate(self, context: RedFlagContext) -> Optional[RedFlagDetection]:
        raise NotImplementedError

    def _detection(self, matched_tokens: Tuple[str, ...]) -> RedFlagDetection:
        return RedFlagDetection(
            rule_id=self.rule_id,
            tier=self.tier,
            cap_stars=self.cap_stars,
            reason=self.reason,
            matched_tokens=matched_tokens,
        )


@dataclass(frozen=True)
class PresenceTier(RedFlagTier):
    """Triggers when any phrase appears anywhere in the declaration."""
    phrases: Tuple[str, ...] = ()
    shadowed_by: Tuple[str, ...] = ()

    def evaluate(self, context):
        found = find_phrases(context.tokens, self.phrases, self.shadowed_by)
        if not found:
            return None
        return self._detection(_texts(found))


@dataclass(frozen=True)
class PositionalTier(PresenceTier):
    """Presence restricted to the top `window` declared ingredients."""
    window: int = RED_FLAG_TOP_WINDOW

    def evaluate(self, context):
        found = find_phrases(context.tokens[:self.window], self.phrases, self.shadowed_by)
        if not found:
            return None
        return self._detection(_texts(found))


@dataclass(frozen=True)
class CoOccurrenceTier(RedFlagTier):
    """Triggers when `phrases` are present and the companion selector finds tokens too."""
    phrases: Tuple[str, ...] = ()
    companion: Callable[[RedFlagContext], Sequence[Token]] = field(default=lambda ctx: ())

    def evaluate(self, context):
        found = find_phrases(context.tokens, self.phrases)
        if not found:
            return None
        companions = list(self.companion(context))
        if not companions:
            return None
        texts = _texts(found) + tuple(t.text for t in companions)
        return self._detection(tuple(dict.fromkeys(texts)))


def _unnamed_sources(context: RedFlagContext) -> Sequence[Token]:
    return context.unnamed_sources


DEFAULT_RED_FLAG_TIERS: Tuple[RedFlagTier, ...] = (
    PresenceTier(
        rule_id="red_flag_preservative",
        tier=1,
        cap_stars=2,
        reason="Contains a red-flag synthetic preservative (ethoxyquin, BHA, BHT or TBHQ)",
        phrases=RED_FLAG_PRESERVATIVES,
    ),
    PresenceTier(
        rule_id="toxic_additive",
        tier=2,
        cap_stars=2,
        reason="Contains an additive considered unsafe for pets",
        phrases=TOXIC_ADDITIVES,
    ),
    CoOccurrenceTier(
        rule_id="colour_with_unnamed_meat",
        tier=3,
        cap_stars=3,
        reason="Artificial colouring combined with unnamed animal ingredients",
        phrases=ARTIFICIAL_COLOURS,
        companion=_unnamed_sources,
    ),
    PositionalTier(
        rule_id="by_product_top_ingredients",
        tier=4,
        cap_stars=3,
        reason="By-products or animal digest among the main ingredients",
        phrases=BY_PRODUCT_TERMS,
    ),
    PresenceTier(
        rule_id="artificial_colour",
        tier=5,
        cap_stars=4,
        reason="Contains artificial colouring",
        phrases=ARTIFICIAL_COLOURS,
    ),
    PositionalTier(
        rule_id="sweetener_top_ingredients",
        tier=6,
        cap_stars=4,
        reason="Added sugar or sweetener among the main ingredients",
        phrases=ADDED_SWEETENERS,
        # "caramel colour" is a colour, not a sweetener
        shadowed_by=ARTIFICIAL_COLOURS,
    ),
)


def evaluate_red_flags(
    tokens: Sequence[Token],
    tiers: Sequence[RedFlagTier] = DEFAULT_RED_FLAG_TIERS,
) -> Optional[RedFlagDetection]:
    """
    Return the most severe triggered tier, or None.

    Tiers are sorted by rank so a caller-supplied list in any order still
    evaluates most severe first.
    """
    if not tokens:
        return None
    context = RedFlagContext.build(tokens)
    for tier in sorted(tiers, key=lambda t: t.tier):
        detection = tier.evaluate(context)
        if detection is not None:
            return detection
    return None


def apply_cap(score_stars: int, detection: Optional[RedFlagDetection]) -> int:
    if detection is None:
        return score_stars
    return min(score_stars, detection.cap_stars)
