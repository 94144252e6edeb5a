from __future__ import annotations

import pytest

from safety_engine import (
    IngredientCatalog,
    Product,
    ProductSafetyAggregator,
    RestrictionSeverity,
    UserRestriction,
)


@pytest.fixture
def catalog():
    """Synthetic ingredient risk data covering every risk level."""
    return IngredientCatalog.from_mapping(
        {
            "peanut oil": {"peanut_allergy": "danger"},
            "wheat flour": {"celiac_disease": "danger", "gluten_intolerance": "warning"},
            "oats": {"celiac_disease": "caution"},
            "whey": {"milk_allergy": "danger", "lactose_intolerance": "caution"},
            "soy lecithin": {"soy_allergy": "caution"},
            "mystery blend": {"celiac_disease": "caution", "peanut_allergy": "danger"},
            "rice flour": {"celiac_disease": "safe"},
        }
    )


@pytest.fixture
def aggregator(catalog):
    return ProductSafetyAggregator(catalog)


@pytest.fixture
def peanut_allergy():
    return UserRestriction(
        restriction_id="peanut_allergy", severity=RestrictionSeverity.LIFE_THREATENING
    )


@pytest.fixture
def celiac():
    return UserRestriction(restriction_id="celiac_disease", severity=RestrictionSeverity.SEVERE)


@pytest.fixture
def peanut_cookies():
    return Product(
        name="Crunchy Peanut Cookies",
        product_id="p-1",
        brand="Acme",
        category="Cookies",
        ingredients_list=["sugar", "peanut oil"],
        allergen_warnings=("Contains peanuts",),
        data_quality_score=80,
    )
