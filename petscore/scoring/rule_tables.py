"""
Fixed phrase tables for the rule-based parts of the engine.

These are closed lists owned by the code, unlike the open-ended lexicon.
Within one rule a phrase belongs to exactly one list; overlaps across
lists (e.g. "corn" vs "corn starch") are resolved by longest-phrase-wins
inside a token (see tokenizer.find_phrases).
"""

# ---------------------------------------------------------------------------
# Ingredient quality
# ---------------------------------------------------------------------------

HIGH_RISK_FILLERS = (
    "corn", "maize", "wheat", "soy", "soya",
    "corn gluten meal", "maize gluten", "wheat gluten", "soybean meal",
    "wheat flour", "corn flour", "soy flour", "wheat middlings",
    "cereal", "cereals",
)

LOW_VALUE_CARBS = (
    "rice", "white rice", "brewers rice", "brewer's rice", "rice flour",
    "potato", "potato starch", "tapioca", "tapioca starch", "cassava",
    "beet pulp", "corn starch", "maize starch",
)

RED_FLAG_ADDITIVES = (
    "ethoxyquin", "xylitol", "menadione", "sodium nitrite",
)

ARTIFICIAL_COLOURS = (
    "artificial colour", "artificial colours", "artificial color", "artificial colors",
    "red 40", "yellow 5", "yellow 6", "blue 1", "blue 2",
    "e102", "e110", "e129", "titanium dioxide",
    "caramel colour", "caramel color", "colourants",
)

ARTIFICIAL_PRESERVATIVES = (
    "bha", "bht", "tbhq", "propyl gallate",
    "potassium sorbate", "sodium benzoate", "calcium propionate",
)

CONTROVERSIAL_ADDITIVES = (
    "carrageenan", "guar gum", "cellulose", "powdered cellulose",
    "propylene glycol", "artificial flavour", "artificial flavor",
)

NAMED_MEAT_SOURCES = (
    "chicken", "beef", "lamb", "turkey", "duck", "goose", "venison", "bison",
    "pork", "rabbit", "goat", "quail", "salmon", "trout", "herring",
    "mackerel", "sardine", "anchovy", "white fish", "whitefish", "cod",
    "haddock", "pollock", "tuna", "fish",
)

UNNAMED_MEAT_SOURCES = (
    "poultry", "meat", "animal", "meat meal", "poultry meal",
    "meat and animal derivatives", "animal derivatives", "animal fat",
    "animal protein", "animal digest", "fish derivatives",
)

PROCESSED_INGREDIENTS = (
    "meat meal", "poultry meal", "chicken meal", "lamb meal", "fish meal",
    "meat and bone meal", "by-product", "by-products", "byproduct",
    "byproducts", "animal digest", "digest", "hydrolysate",
    "hydrolysed", "hydrolyzed", "rendered",
)

FRESH_MARKERS = ("fresh", "freshly prepared")

# ---------------------------------------------------------------------------
# Split-ingredient families
# ---------------------------------------------------------------------------

SPLIT_INGREDIENT_FAMILIES = {
    "legumes": (
        "pea", "peas", "pea protein", "pea starch", "pea fibre", "pea fiber",
        "pea flour", "lentil", "lentils", "chickpea", "chickpeas",
        "bean", "beans", "faba bean", "fava bean", "lupin",
    ),
    "corn": (
        "corn", "maize", "corn gluten meal", "corn gluten", "maize gluten",
        "corn starch", "maize starch", "corn flour", "corn meal", "ground corn",
    ),
    "rice": (
        "rice", "brown rice", "white rice", "brewers rice", "brewer's rice",
        "rice flour", "rice protein", "rice bran",
    ),
    "potato_tapioca": (
        "potato", "potatoes", "potato starch", "potato protein", "dried potato",
        "tapioca", "tapioca starch", "cassava",
    ),
}

# ---------------------------------------------------------------------------
# Nutrition
# ---------------------------------------------------------------------------

VEGETABLE_CARB_SOURCES = (
    "sweet potato", "pea", "peas", "carrot", "carrots", "pumpkin",
    "squash", "butternut squash", "lentil", "lentils", "chickpea",
    "chickpeas", "parsnip", "spinach",
)

GRAIN_CARB_SOURCES = (
    "rice", "brown rice", "white rice", "brewers rice", "brewer's rice",
    "corn", "maize", "wheat", "barley", "oats", "oatmeal", "millet",
    "sorghum", "rye", "cereals", "cereal", "potato", "tapioca",
)

MICRONUTRIENT_GROUPS = {
    "omega_fatty_acids": (
        "omega-3", "omega 3", "omega-6", "omega 6", "fish oil", "salmon oil",
        "krill oil", "dha", "epa", "linseed", "flaxseed",
    ),
    "joint_support": (
        "glucosamine", "chondroitin", "msm", "green lipped mussel",
        "green-lipped mussel", "collagen",
    ),
    "digestive_support": (
        "probiotics", "prebiotics", "chicory root", "inulin", "fos", "mos",
        "yucca", "fructooligosaccharides", "mannanoligosaccharides",
    ),
    "amino_acids": (
        "taurine", "l-carnitine", "carnitine", "dl-methionine", "methionine",
        "lysine", "l-lysine",
    ),
}

# ---------------------------------------------------------------------------
# Red-flag tiers
# ---------------------------------------------------------------------------

RED_FLAG_PRESERVATIVES = ("ethoxyquin", "bha", "bht", "tbhq")

TOXIC_ADDITIVES = ("xylitol", "menadione", "sodium nitrite")

BY_PRODUCT_TERMS = (
    "by-product", "by-products", "byproduct", "byproducts", "animal digest", "digest",
)

ADDED_SWEETENERS = (
    "sugar", "sugars", "sucrose", "glucose syrup", "corn syrup", "molasses",
    "caramel", "dextrose", "fructose", "syrup",
)
