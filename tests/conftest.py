import pytest

from petscore.domain.models import FoodCategory, ProductInput
from petscore.lexicon import load_lexicon, reset_active_lexicon


@pytest.fixture(autouse=True)
def _fresh_lexicon_registry():
    """Each test starts (and ends) with the bundled default lexicon."""
    reset_active_lexicon()
    yield
    reset_active_lexicon()


@pytest.fixture
def small_lexicon():
    return load_lexicon({
        "version": "test-1",
        "categories": {
            "GOOD": {"description": "good", "pointValue": 2, "ingredients": ["chicken", "salmon oil"]},
            "FATS": {"description": "fats", "pointValue": 1.5, "ingredients": ["chicken fat"]},
            "BAD": {"description": "bad", "pointValue": -2, "ingredients": ["corn", "wheat"]},
        },
    })


def make_product(
    ingredients="Chicken (55%), Rice, Chicken Fat, Beet Pulp, Fish Oil, Vitamins and Minerals",
    category=FoodCategory.DRY,
    protein=22.0,
    fat=10.0,
    fiber=3.0,
    ash=8.0,
    moisture=10.0,
    carbs=None,
    meat=35.0,
    calories=None,
    price=None,
    provenance=None,
    name="Test Food",
) -> ProductInput:
    return ProductInput(
        category=category,
        ingredients_raw=ingredients,
        protein_percent=protein,
        fat_percent=fat,
        fiber_percent=fiber,
        ash_percent=ash,
        moisture_percent=moisture,
        carbs_percent=carbs,
        meat_content_percent=meat,
        calories_per_100g=calories,
        price_per_kg=price,
        provenance=provenance,
        name=name,
    )
