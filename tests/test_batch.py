"""
Tests for petscore/batch.py: category anchors, bulk scoring, catalog I/O.
"""

import csv
import json

import pytest

from petscore.batch import (
    RESULT_COLUMNS,
    CatalogFormatError,
    compute_category_anchors,
    read_catalog,
    score_catalog,
    write_results,
)
from petscore.domain.models import FoodCategory

from conftest import make_product


# ---------------------------------------------------------------------------
# Anchors
# ---------------------------------------------------------------------------

class TestCategoryAnchors:

    def test_mean_price_per_kg(self):
        anchors = compute_category_anchors([make_product(price=4.0), make_product(price=6.0)])
        assert anchors["dry"].price_per_kg == 5.0
        assert anchors["dry"].sample_size == 2

    def test_mean_price_per_1000kcal(self):
        anchors = compute_category_anchors([
            make_product(price=4.0, calories=400.0),    # 1.0 per 1000 kcal
            make_product(price=6.0, calories=300.0),    # 2.0 per 1000 kcal
        ])
        assert anchors["dry"].price_per_1000kcal == 1.5

    def test_categories_kept_apart(self):
        anchors = compute_category_anchors([
            make_product(price=4.0),
            make_product(price=2.5, category=FoodCategory.WET),
        ])
        assert list(anchors) == ["dry", "wet"]
        assert anchors["wet"].price_per_kg == 2.5
        assert anchors["wet"].category == "wet"

    def test_unpriced_and_uncategorised_skipped(self):
        anchors = compute_category_anchors([
            make_product(price=None),
            make_product(price=-3.0),
            make_product(price=8.0, category=None),
            make_product(price=5.0),
        ])
        assert anchors["dry"].price_per_kg == 5.0
        assert anchors["dry"].sample_size == 1

    def test_no_energy_no_kcal_anchor(self):
        anchors = compute_category_anchors([make_product(price=5.0, protein=None, fat=None)])
        assert anchors["dry"].price_per_1000kcal is None

    def test_raw_records_accepted(self):
        anchors = compute_category_anchors([{"category": "snack", "price_per_kg": "12.5"}])
        assert anchors["snack"].price_per_kg == 12.5

    def test_empty_catalog(self):
        assert compute_category_anchors([]) == {}


# ---------------------------------------------------------------------------
# Bulk scoring
# ---------------------------------------------------------------------------

class TestScoreCatalog:

    def test_input_order_kept(self):
        products = [make_product(name=f"Food {i}", price=3.0 + i) for i in range(4)]
        results = score_catalog(products)
        assert [p.name for p, _ in results] == ["Food 0", "Food 1", "Food 2", "Food 3"]

    def test_anchors_computed_from_catalog(self):
        cheap = make_product(name="cheap", price=3.0)
        dear = make_product(name="dear", price=9.0)
        (_, cheap_result), (_, dear_result) = score_catalog([cheap, dear])
        assert cheap_result.value_score > dear_result.value_score
        assert cheap_result.value.details["pricePerFeed"] == 15.0

    def test_single_product_has_ratio_one(self):
        (_, result), = score_catalog([make_product(price=5.0)])
        assert result.value.details["pricePerFeed"] == 9.0

    def test_explicit_lexicon_snapshot(self, small_lexicon):
        (_, result), = score_catalog([make_product()], lexicon=small_lexicon)
        assert {m.category for m in result.matches} <= {"GOOD", "FATS", "BAD"}

    def test_uncategorised_product_gets_no_anchor(self):
        (_, result), = score_catalog([make_product(price=5.0, category=None)], anchors={})
        assert result.value_score == 10.0


# ---------------------------------------------------------------------------
# I/O
# ---------------------------------------------------------------------------

class TestCatalogIO:

    def test_read_json_list(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([{"name": "A"}, {"name": "B"}]), encoding="utf-8")
        assert [r["name"] for r in read_catalog(path)] == ["A", "B"]

    def test_read_json_products_key(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"products": [{"name": "A"}]}), encoding="utf-8")
        assert read_catalog(path) == [{"name": "A"}]

    @pytest.mark.parametrize("content", ["{broken", '{"name": "A"}', "[1, 2]"])
    def test_read_json_rejects_non_catalog(self, tmp_path, content):
        path = tmp_path / "catalog.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(CatalogFormatError):
            read_catalog(path)

    def test_read_csv(self, tmp_path):
        path = tmp_path / "catalog.csv"
        path.write_text(
            "name,category,ingredients,protein,fat,price_per_kg\n"
            "Alpha,dry,\"Chicken, Rice\",24,12,4.5\n",
            encoding="utf-8",
        )
        rows = read_catalog(path)
        assert rows[0]["ingredients"] == "Chicken, Rice"
        (product, result), = score_catalog(rows)
        assert product.protein_percent == 24.0
        assert result.category == "dry"

    def test_read_csv_without_header(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(CatalogFormatError):
            read_catalog(path)

    def test_missing_file_is_os_error(self, tmp_path):
        with pytest.raises(OSError):
            read_catalog(tmp_path / "missing.json")

    def test_write_csv(self, tmp_path):
        results = score_catalog([make_product(name="Alpha", price=4.0), make_product(name="Beta", price=6.0)])
        path = tmp_path / "out.csv"
        assert write_results(results, path, "csv") == 2
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert list(rows[0]) == RESULT_COLUMNS
        assert [r["name"] for r in rows] == ["Alpha", "Beta"]
        assert rows[0]["algorithm_version"] == "2.2.0"

    def test_write_json(self, tmp_path):
        results = score_catalog([make_product(name="Alpha")])
        path = tmp_path / "out.json"
        assert write_results(results, path, "json") == 1
        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload[0]["product"] == "Alpha"
        assert payload[0]["result"]["overall_score"] == results[0][1].overall_score
