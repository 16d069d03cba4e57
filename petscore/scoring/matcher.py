"""
Lexicon matcher with position weighting.

For every lexicon category (file order) and every phrase in it, the first
candidate in declaration order containing the phrase as a whole word wins.
A phrase is matched at most once per call.

Position weighting (declared-weight rank):
    index 0-4  → 1.0
    index 5-9  → 0.6
    index 10+  → 0.3

Two candidate strategies share the same core:
    - per-token (position weighting on): each Token is a candidate
    - whole-text (legacy): one candidate at position 0 holding the whole
      declaration, every match at multiplier 1.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import POSITION_MULTIPLIERS, TAIL_POSITION_MULTIPLIER
from ..domain.models import IngredientMatch, Token
from .tokenizer import contains_phrase

# Joins token texts for whole-text matching; the comma keeps a phrase from
# spanning two ingredients ("chicken" + "fat" is not "chicken fat").
_WHOLE_TEXT_JOINER = " , "


@dataclass(frozen=True)
class MatchResult:
    """Matcher output: matches plus the per-category and total points."""
    matches: Tuple[IngredientMatch, ...] = ()
    breakdown: Dict[str, float] = field(default_factory=dict)
    total: float = 0.0          # weighted, 1 decimal
    raw_total: float = 0.0      # unweighted, 1 decimal


def position_multiplier(position: int) -> float:
    for last_index, multiplier in POSITION_MULTIPLIERS:
        if position <= last_index:
            return multiplier
    return TAIL_POSITION_MULTIPLIER


def _whole_text_candidates(tokens: Sequence[Token]) -> List[Token]:
    if not tokens:
        return []
    joined = _WHOLE_TEXT_JOINER.join(t.normalized for t in tokens)
    return [Token(text=joined, normalized=joined, position=0)]


def match_ingredients(
    tokens: Sequence[Token],
    lexicon,
    position_weighting: bool = True,
) -> MatchResult:
    """
    Match tokens against the lexicon.

    Args:
        tokens: Output of tokenizer.tokenize().
        lexicon: Lexicon (categories mapping name → LexiconCategory).
        position_weighting: False → legacy whole-text matching at 1.0x.

    Returns:
        MatchResult
    """
    candidates = list(tokens) if position_weighting else _whole_text_candidates(tokens)
    if not candidates:
        return MatchResult()

    matches: List[IngredientMatch] = []
    matched_phrases = set()
    for category in lexicon.categories.values():
        for phrase in category.phrases:
            if phrase in matched_phrases:
                continue
            hit: Optional[Token] = next(
                (c for c in candidates if contains_phrase(c.normalized, phrase)),
                None,
            )
            if hit is None:
                continue
            multiplier = position_multiplier(hit.position) if position_weighting else 1.0
            matches.append(IngredientMatch(
                phrase=phrase,
                category=category.name,
                base_points=category.point_value,
                weighted_points=round(category.point_value * multiplier, 2),
                position=hit.position,
                multiplier=multiplier,
                description=category.description,
            ))
            matched_phrases.add(phrase)

    breakdown: Dict[str, float] = {}
    for m in matches:
        breakdown[m.category] = breakdown.get(m.category, 0.0) + m.weighted_points
    breakdown = {k: round(v, 1) for k, v in breakdown.items()}

    return MatchResult(
        matches=tuple(matches),
        breakdown=breakdown,
        total=round(sum(m.weighted_points for m in matches), 1),
        raw_total=round(sum(m.base_points for m in matches), 1),
    )
