"""
Ingredient lexicon: loader and process-wide registry.

The lexicon is reference data, versioned outside the code:

    {
      "version": "2024.06",
      "categories": {
        "PREMIUM_PROTEINS": {
          "description": "Named whole-meat proteins",
          "pointValue": 2,
          "ingredients": ["chicken", "deboned lamb", ...]
        },
        ...
      }
    }

A loaded Lexicon is immutable.  The active lexicon is swapped as a whole
reference under a lock, never edited in place, so a scoring call that
captured the old reference finishes on the old data.
"""

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .domain.models import LexiconCategory
from .scoring.tokenizer import normalize_text
from .utils.paths import get_default_lexicon_path

logger = logging.getLogger(__name__)


class LexiconError(Exception):
    """Base exception for lexicon configuration problems"""
    pass


class LexiconNotFoundError(LexiconError):
    """Raised when the lexicon source does not exist or cannot be read"""
    pass


class LexiconFormatError(LexiconError):
    """Raised when the lexicon content is not a valid lexicon document"""
    pass


@dataclass(frozen=True)
class Lexicon:
    """Immutable name → LexiconCategory mapping in file order."""
    version: str
    categories: Mapping[str, LexiconCategory]
    conflicts: Tuple[str, ...] = ()
    source: str = ""

    @property
    def phrase_count(self) -> int:
        return sum(len(c.phrases) for c in self.categories.values())

    def category_of(self, phrase: str) -> Optional[str]:
        """First category (file order) listing the phrase, if any."""
        key = normalize_text(phrase)
        for name, category in self.categories.items():
            if key in category.phrases:
                return name
        return None


LexiconSource = Union[str, Path, Mapping[str, Any], Lexicon]


def _read_source(source: LexiconSource) -> Tuple[Any, str]:
    if isinstance(source, Mapping):
        return source, "<mapping>"

    if isinstance(source, str) and source.lstrip().startswith("{"):
        try:
            return json.loads(source), "<json>"
        except json.JSONDecodeError as e:
            raise LexiconFormatError(f"Lexicon JSON is invalid: {e}") from e

    path = Path(source)
    if not path.exists():
        raise LexiconNotFoundError(f"Lexicon file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f), str(path)
    except json.JSONDecodeError as e:
        raise LexiconFormatError(f"Lexicon file {path} is not valid JSON: {e}") from e
    except OSError as e:
        raise LexiconNotFoundError(f"Lexicon file {path} cannot be read: {e}") from e


def _parse_category(name: str, raw: Any) -> LexiconCategory:
    if not isinstance(raw, Mapping):
        raise LexiconFormatError(f"Category {name!r} must be an object")

    point_value = raw.get("pointValue", raw.get("point_value"))
    if isinstance(point_value, bool) or not isinstance(point_value, (int, float)):
        raise LexiconFormatError(f"Category {name!r} has no numeric pointValue")

    phrases = raw.get("ingredients", raw.get("phrases"))
    if not isinstance(phrases, list) or not all(isinstance(p, str) for p in phrases):
        raise LexiconFormatError(f"Category {name!r} must list ingredients as strings")

    normalized = tuple(dict.fromkeys(p for p in (normalize_text(x) for x in phrases) if p))
    return LexiconCategory(
        name=name,
        description=str(raw.get("description", "")),
        point_value=float(point_value),
        phrases=normalized,
    )


def load_lexicon(source: LexiconSource, strict: bool = False) -> Lexicon:
    """
    Load and validate a lexicon.

    Args:
        source: Path, JSON text, parsed mapping, or an existing Lexicon.
        strict: Raise on phrases listed in more than one category instead of
                logging them (the first category in file order keeps them).

    Returns:
        Lexicon

    Raises:
        LexiconNotFoundError: source path missing/unreadable
        LexiconFormatError: invalid document
    """
    if isinstance(source, Lexicon):
        return source

    document, label = _read_source(source)
    if not isinstance(document, Mapping):
        raise LexiconFormatError(f"Lexicon {label} must be a JSON object")

    raw_categories = document.get("categories")
    if not isinstance(raw_categories, Mapping) or not raw_categories:
        raise LexiconFormatError(f"Lexicon {label} has no categories")

    categories: Dict[str, LexiconCategory] = {}
    owner: Dict[str, str] = {}
    conflicts: List[str] = []
    for name, raw in raw_categories.items():
        category = _parse_category(str(name), raw)
        kept = []
        for phrase in category.phrases:
            if phrase in owner:
                conflicts.append(phrase)
                logger.warning(
                    f"Lexicon phrase {phrase!r} listed in both {owner[phrase]} and {name}; "
                    f"keeping {owner[phrase]}"
                )
                continue
            owner[phrase] = category.name
            kept.append(phrase)
        categories[category.name] = LexiconCategory(
            name=category.name,
            description=category.description,
            point_value=category.point_value,
            phrases=tuple(kept),
        )

    if conflicts and strict:
        raise LexiconFormatError(
            f"Lexicon {label} lists {len(conflicts)} phrase(s) in more than one category: "
            + ", ".join(sorted(set(conflicts)))
        )

    lexicon = Lexicon(
        version=str(document.get("version", "unversioned")),
        categories=MappingProxyType(categories),
        conflicts=tuple(dict.fromkeys(conflicts)),
        source=label,
    )
    logger.info(
        f"Loaded lexicon {lexicon.version} from {label}: "
        f"{len(categories)} categories, {lexicon.phrase_count} phrases"
    )
    return lexicon


# ---------------------------------------------------------------------------
# Process-wide registry
# ---------------------------------------------------------------------------

_active_lexicon: Optional[Lexicon] = None
_registry_lock = threading.Lock()


def get_active_lexicon() -> Lexicon:
    """Return the active lexicon, loading the bundled default on first use."""
    global _active_lexicon
    current = _active_lexicon
    if current is not None:
        return current
    with _registry_lock:
        if _active_lexicon is None:
            _active_lexicon = load_lexicon(get_default_lexicon_path())
        return _active_lexicon


def set_active_lexicon(source: LexiconSource, strict: bool = False) -> Lexicon:
    """
    Load (if needed) and install a new active lexicon.

    Loading happens before the lock is taken; a failed load leaves the
    previous lexicon active.
    """
    global _active_lexicon
    lexicon = load_lexicon(source, strict=strict)
    with _registry_lock:
        _active_lexicon = lexicon
    return lexicon


def reset_active_lexicon() -> None:
    """Forget the active lexicon; the next get_active_lexicon() reloads the default."""
    global _active_lexicon
    with _registry_lock:
        _active_lexicon = None
