"""
Ingredient declaration tokenizer and phrase matching primitives.

    "Chicken (55%), Rice; Chicken Fat (vitamin E, rosemary)"
        → Token("Chicken (55%)",  "chicken",     0, 55.0)
          Token("Rice",           "rice",        1)
          Token("Chicken Fat (vitamin E, rosemary)", "chicken fat", 2)

Separators inside parentheses/brackets never split a token.  Phrase matching
is whole-word: "rice" does not match inside "liquorice".
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..domain.models import Token

SEPARATORS = (",", ";")
_OPENERS = "([{"
_CLOSERS = ")]}"

_PARENTHETICAL_RE = re.compile(r"\([^()]*\)|\[[^\[\]]*\]|\{[^{}]*\}")
_PUNCT_RE = re.compile(r"[.,;:!?()\[\]{}%*]")
_SPACE_RE = re.compile(r"\s+")
_PERCENT_RE = re.compile(r"(\d{1,3}(?:[.,]\d+)?)\s*%")


def split_top_level(text: str) -> List[str]:
    """Split on commas/semicolons that are not inside any bracket pair."""
    parts, buf, depth = [], [], 0
    for ch in text:
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(0, depth - 1)
        if ch in SEPARATORS and depth == 0:
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
    parts.append("".join(buf))
    return parts


def normalize_text(text: str) -> str:
    """Lower-case, drop parenthetical content and punctuation, squeeze spaces."""
    if not text:
        return ""
    t = text.lower()
    # nested brackets: strip innermost first until stable
    prev = None
    while prev != t:
        prev = t
        t = _PARENTHETICAL_RE.sub(" ", t)
    t = _PUNCT_RE.sub(" ", t)
    return _SPACE_RE.sub(" ", t).strip()


def _declared_percent(text: str) -> Optional[float]:
    m = _PERCENT_RE.search(text)
    if not m:
        return None
    try:
        return float(m.group(1).replace(",", "."))
    except ValueError:
        return None


def tokenize(declaration: Optional[str]) -> List[Token]:
    """
    Split a raw ingredient declaration into ordered tokens.

    Empty segments are dropped before positions are assigned, so positions
    are dense and 0-based over the kept tokens.  Empty input → [].
    """
    if not declaration or not declaration.strip():
        return []

    tokens: List[Token] = []
    for raw in split_top_level(declaration):
        text = raw.strip().strip(".")
        normalized = normalize_text(text)
        if not normalized:
            continue
        tokens.append(Token(
            text=text,
            normalized=normalized,
            position=len(tokens),
            declared_percent=_declared_percent(text),
        ))
    return tokens


# ---------------------------------------------------------------------------
# Phrase matching
# ---------------------------------------------------------------------------

@lru_cache(maxsize=4096)
def _phrase_pattern(phrase: str) -> "re.Pattern[str]":
    return re.compile(r"(?<!\w)" + re.escape(phrase) + r"(?!\w)")


def contains_phrase(normalized_text: str, phrase: str) -> bool:
    """Whole-word occurrence of an already-normalized phrase."""
    if not phrase or not normalized_text:
        return False
    return _phrase_pattern(phrase).search(normalized_text) is not None


def find_phrases(
    tokens: Sequence[Token],
    phrases: Iterable[str],
    shadowed_by: Iterable[str] = (),
) -> Dict[str, Token]:
    """
    Map each phrase found in the declaration to the first token containing it.

    Within one token a phrase is suppressed when a longer phrase from the
    same list also matched there and contains it ("corn gluten meal" counts
    once, not also as "corn").  The phrase can still be found in a later
    token where it stands alone.  Phrases in `shadowed_by` suppress the
    same way but are never reported ("sweet potato" hides "potato").

    Returns:
        Dict phrase → Token, in declaration order of first occurrence.
    """
    phrase_list = [p for p in dict.fromkeys(normalize_text(p) for p in phrases) if p]
    shadow_list = [p for p in dict.fromkeys(normalize_text(p) for p in shadowed_by) if p]
    found: Dict[str, Token] = {}
    for token in tokens:
        hits = [p for p in phrase_list if p not in found and contains_phrase(token.normalized, p)]
        # already-found phrases still shadow their sub-phrases in this token
        shadows = [p for p in phrase_list if p in found and contains_phrase(token.normalized, p)]
        shadows += [p for p in shadow_list if contains_phrase(token.normalized, p)]
        for p in hits:
            longer = [q for q in hits + shadows if q != p and len(q) > len(p) and contains_phrase(q, p)]
            if not longer:
                found[p] = token
    return found


def tokens_matching(tokens: Sequence[Token], phrases: Iterable[str]) -> List[Tuple[Token, str]]:
    """
    Every token that contains at least one phrase, with the longest phrase hit.

    Unlike find_phrases() this counts tokens, not phrases.
    """
    phrase_list = sorted(
        {normalize_text(p) for p in phrases if normalize_text(p)},
        key=lambda p: (-len(p), p),
    )
    result: List[Tuple[Token, str]] = []
    for token in tokens:
        for p in phrase_list:
            if contains_phrase(token.normalized, p):
                result.append((token, p))
                break
    return result
