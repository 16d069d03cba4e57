"""
Tests for petscore/scoring/split_detector.py
"""

from petscore.scoring.split_detector import detect_split_ingredients
from petscore.scoring.tokenizer import tokenize


class TestSplitDetection:

    def test_three_pea_forms_trigger_legumes(self):
        result = detect_split_ingredients(tokenize("Chicken, Peas, Pea Protein, Pea Starch"))
        (finding,) = result.findings
        assert finding.family == "legumes"
        assert finding.count == 3
        assert finding.penalty == -3.0
        assert finding.tokens == ("Peas", "Pea Protein", "Pea Starch")
        assert result.penalty == -3.0

    def test_single_peas_no_finding(self):
        result = detect_split_ingredients(tokenize("Chicken, Peas, Rice"))
        assert result.findings == ()
        assert result.penalty == 0.0

    def test_two_forms_penalty_one_and_a_half(self):
        result = detect_split_ingredients(tokenize("Chicken, Rice, Brown Rice"))
        (finding,) = result.findings
        assert finding.family == "rice"
        assert finding.penalty == -1.5

    def test_three_plus_replaces_two(self):
        result = detect_split_ingredients(tokenize("Peas, Pea Protein, Pea Fibre, Lentils"))
        assert result.findings[0].count == 4
        assert result.penalty == -3.0

    def test_families_summed(self):
        result = detect_split_ingredients(
            tokenize("Chicken, Peas, Pea Protein, Potato, Potato Starch, Rice")
        )
        families = {f.family: f.penalty for f in result.findings}
        assert families == {"legumes": -1.5, "potato_tapioca": -1.5}
        assert result.penalty == -3.0

    def test_only_first_ten_tokens_considered(self):
        padding = [f"Item {i}" for i in range(9)]
        declaration = ", ".join(padding + ["Peas", "Pea Protein", "Pea Starch"])
        result = detect_split_ingredients(tokenize(declaration))
        assert result.findings == ()

    def test_empty_declaration(self):
        assert detect_split_ingredients([]).penalty == 0.0

    def test_custom_families(self):
        result = detect_split_ingredients(
            tokenize("Beef, Beef Liver, Beef Heart"),
            families={"beef": ("beef", "beef liver", "beef heart")},
        )
        assert result.findings[0].count == 3
