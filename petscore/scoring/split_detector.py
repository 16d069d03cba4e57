"""
Split-ingredient detector.

Counts distinct tokens per ingredient family inside the first SPLIT_WINDOW
declared ingredients.  "peas, pea protein, pea starch" is three legume
tokens even though each one is small enough to sit below the meat.

    count >= 3 → -3.0
    count == 2 → -1.5   (replaced, not added to, by the >=3 case)

Family penalties are summed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from ..config import SPLIT_PENALTY_THREE_PLUS, SPLIT_PENALTY_TWO, SPLIT_WINDOW
from ..domain.models import SplitGroupFinding, Token
from .rule_tables import SPLIT_INGREDIENT_FAMILIES
from .tokenizer import tokens_matching


@dataclass(frozen=True)
class SplitDetection:
    penalty: float = 0.0                          # sum of findings, <= 0
    findings: Tuple[SplitGroupFinding, ...] = ()


def _family_penalty(count: int) -> float:
    if count >= 3:
        return SPLIT_PENALTY_THREE_PLUS
    if count == 2:
        return SPLIT_PENALTY_TWO
    return 0.0


def detect_split_ingredients(
    tokens: Sequence[Token],
    families: Dict[str, Tuple[str, ...]] = None,
    window: int = SPLIT_WINDOW,
) -> SplitDetection:
    """
    Scan the top-`window` tokens for ingredient families declared more than once.

    Args:
        tokens: Output of tokenizer.tokenize().
        families: family name → phrases; defaults to SPLIT_INGREDIENT_FAMILIES.
        window: Number of leading tokens considered.

    Returns:
        SplitDetection (no findings → penalty 0.0)
    """
    families = SPLIT_INGREDIENT_FAMILIES if families is None else families
    top = list(tokens)[:window]
    if not top:
        return SplitDetection()

    findings: List[SplitGroupFinding] = []
    for family, phrases in families.items():
        hits = tokens_matching(top, phrases)
        penalty = _family_penalty(len(hits))
        if penalty == 0.0:
            continue
        findings.append(SplitGroupFinding(
            family=family,
            count=len(hits),
            tokens=tuple(token.text for token, _ in hits),
            penalty=penalty,
        ))

    return SplitDetection(
        penalty=round(sum(f.penalty for f in findings), 1),
        findings=tuple(findings),
    )
