"""
Catalog-level helpers that live outside the scoring engine.

- compute_category_anchors(): average price per kg / per 1000 kcal per food
  category, the reference the Value subscore compares against
- score_catalog(): bulk re-scoring after a lexicon or rule change
- read_catalog() / write_results(): JSON and CSV I/O for tools/score_catalog.py
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import FeatureFlags
from .domain.models import CategoryPriceAnchor, ProductInput, ScoringResult
from .lexicon import get_active_lexicon, load_lexicon, Lexicon
from .scoring.engine import score
from .scoring.value import energy_metrics_for

logger = logging.getLogger(__name__)


class CatalogFormatError(ValueError):
    """Raised when a catalog file is not a list of product records"""
    pass


# ============================================================
# Category anchors
# ============================================================

def _as_product(record: Union[ProductInput, Dict[str, Any]]) -> ProductInput:
    if isinstance(record, ProductInput):
        return record
    return ProductInput.from_dict(record)


def compute_category_anchors(
    products: Iterable[Union[ProductInput, Dict[str, Any]]],
) -> Dict[str, CategoryPriceAnchor]:
    """
    Mean price per kg and per 1000 kcal for every category in the catalog.

    Products without a category or with a non-positive price are skipped;
    price per 1000 kcal averages only products whose energy is known
    (declared or Atwater-estimated).

    Args:
        products: ProductInput objects or raw records.

    Returns:
        {category value: CategoryPriceAnchor}
    """
    per_kg: Dict[str, List[float]] = {}
    per_kcal: Dict[str, List[float]] = {}

    for record in products:
        product, _ = _as_product(record).sanitized()
        if product.category is None or product.price_per_kg is None:
            continue
        key = product.category.value
        per_kg.setdefault(key, []).append(product.price_per_kg)
        energy = energy_metrics_for(product)
        if energy.price_per_1000kcal is not None:
            per_kcal.setdefault(key, []).append(energy.price_per_1000kcal)

    anchors: Dict[str, CategoryPriceAnchor] = {}
    for key, prices in sorted(per_kg.items()):
        kcal_prices = per_kcal.get(key)
        anchors[key] = CategoryPriceAnchor(
            category=key,
            price_per_kg=round(float(np.mean(prices)), 4),
            price_per_1000kcal=round(float(np.mean(kcal_prices)), 4) if kcal_prices else None,
            sample_size=len(prices),
        )
        logger.debug(f"Anchor {key}: {anchors[key].price_per_kg} per kg over {len(prices)} products")
    return anchors


# ============================================================
# Bulk scoring
# ============================================================

def score_catalog(
    products: Sequence[Union[ProductInput, Dict[str, Any]]],
    lexicon: Any = None,
    anchors: Optional[Dict[str, CategoryPriceAnchor]] = None,
    feature_flags: Optional[FeatureFlags] = None,
) -> List[Tuple[ProductInput, ScoringResult]]:
    """
    Score every product with one lexicon snapshot.

    Args:
        products: ProductInput objects or raw records.
        lexicon: Lexicon or lexicon source; None → active lexicon.
        anchors: Category anchors; computed from `products` when None.
        feature_flags: Passed through to score().

    Returns:
        [(product, result)] in input order
    """
    items = [_as_product(p) for p in products]
    if lexicon is None:
        lex = get_active_lexicon()
    elif isinstance(lexicon, Lexicon):
        lex = lexicon
    else:
        lex = load_lexicon(lexicon)
    if anchors is None:
        anchors = compute_category_anchors(items)

    results = []
    for product in items:
        anchor = anchors.get(product.category.value) if product.category is not None else None
        results.append((product, score(product, lex, anchor, feature_flags)))

    logger.info(f"Scored {len(results)} products with lexicon {lex.version}")
    return results


# ============================================================
# Catalog I/O
# ============================================================

RESULT_COLUMNS = [
    "name",
    "category",
    "overall_score",
    "ingredient_score",
    "nutrition_score",
    "value_score",
    "star_rating",
    "grade",
    "confidence_score",
    "confidence_level",
    "red_flag",
    "algorithm_version",
]


def read_catalog(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read product records from a JSON list or a CSV file with a header row.

    Raises:
        CatalogFormatError: content is not a list of records
        OSError: file cannot be read
    """
    path = Path(path)
    if path.suffix.lower() == ".csv":
        with open(path, "r", newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames:
                raise CatalogFormatError(f"CSV file {path} has no header row")
            return [dict(row) for row in reader]

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise CatalogFormatError(f"Invalid JSON in {path}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("products"), list):
        data = data["products"]
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise CatalogFormatError(f"JSON catalog {path} must be a list of product objects")
    return data


def result_row(product: ProductInput, result: ScoringResult) -> Dict[str, Any]:
    return {
        "name": product.name or "",
        "category": result.category or "",
        "overall_score": result.overall_score,
        "ingredient_score": result.ingredient_score,
        "nutrition_score": result.nutrition_score,
        "value_score": result.value_score,
        "star_rating": result.star_rating,
        "grade": result.grade,
        "confidence_score": result.confidence_score,
        "confidence_level": result.confidence_level,
        "red_flag": result.red_flag.rule_id if result.red_flag else "",
        "algorithm_version": result.algorithm_version,
    }


def write_results(
    results: Sequence[Tuple[ProductInput, ScoringResult]],
    path: Union[str, Path],
    fmt: str = "csv",
) -> int:
    """
    Write scored products as CSV summary rows or full JSON results.

    Returns:
        Number of products written
    """
    path = Path(path)
    if fmt == "json":
        payload = [
            {"product": product.name, "result": result.to_dict()}
            for product, result in results
        ]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True, default=str)
    else:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=RESULT_COLUMNS)
            writer.writeheader()
            for product, result in results:
                writer.writerow(result_row(product, result))
    return len(results)
