import pytest

from safety_engine import (
    AlternativeRanker,
    AlternativeSearchOptions,
    EngineConfig,
    InvalidInput,
    Product,
    ProductSafetyAggregator,
    RiskLevel,
)
from safety_engine.alternatives import is_similar_brand, name_similarity, token_similarity


def _candidate(product_id, name, ingredients, **kwargs):
    kwargs.setdefault("brand", "Acme")
    kwargs.setdefault("category", "Cookies")
    return Product(name=name, product_id=product_id, ingredients_list=ingredients, **kwargs)


@pytest.fixture
def ranker(aggregator):
    return AlternativeRanker(aggregator)


@pytest.fixture
def restrictions(peanut_allergy, celiac):
    return [peanut_allergy, celiac]


class TestAlternativeRanking:
    def test_orders_safe_before_caution_and_drops_danger(self, ranker, peanut_cookies, restrictions):
        candidates = [
            _candidate("c-danger", "Cookie", ["peanut oil", "sugar"]),
            _candidate("c-caution", "Cookie", ["oats", "sugar"]),
            _candidate("c-safe", "Cookie", ["rice flour", "sugar"]),
        ]
        ranked = ranker.rank(peanut_cookies, candidates, restrictions)

        assert [alt.product.product_id for alt in ranked] == ["c-safe", "c-caution"]
        assert [alt.safety_level for alt in ranked] == [RiskLevel.SAFE, RiskLevel.CAUTION]

    def test_minimum_level_safe_only(self, ranker, peanut_cookies, restrictions):
        candidates = [
            _candidate("c-caution", "Cookie", ["oats"]),
            _candidate("c-safe", "Cookie", ["sugar"]),
        ]
        options = AlternativeSearchOptions(min_safety_level=RiskLevel.SAFE)
        ranked = ranker.rank(peanut_cookies, candidates, restrictions, options=options)
        assert [alt.product.product_id for alt in ranked] == ["c-safe"]

    def test_match_score_breaks_ties_within_a_level(self, ranker, peanut_cookies, restrictions):
        candidates = [
            _candidate("c-far", "Plain Biscuit", ["sugar"], brand="Other", category="Snacks"),
            _candidate("c-near", "Crunchy Rice Cookies", ["sugar"]),
        ]
        ranked = ranker.rank(peanut_cookies, candidates, restrictions)
        assert [alt.product.product_id for alt in ranked] == ["c-near", "c-far"]

    def test_match_score_components(self, ranker, peanut_cookies, restrictions):
        candidate = _candidate("c-1", "Crunchy Rice Cookies", ["rice flour", "sugar"], brand="acme", category="cookies")
        (alt,) = ranker.rank(peanut_cookies, [candidate], restrictions)
        # category 30 + brand 20 + name 2/3 * 25
        assert alt.match_score == 67

    def test_similar_brand_and_package_size(self, ranker, restrictions):
        original = Product(name="Cookies", brand="Acme", package_size="200 g", ingredients_list=["peanut oil"])
        candidate = Product(
            name="Cookies", product_id="c-1", brand="Acme Foods", package_size="200 g", ingredients_list=["sugar"]
        )
        (alt,) = ranker.rank(original, [candidate], restrictions)
        # similar brand 10 + name 25 + size 15
        assert alt.match_score == 50

    def test_brand_and_category_preferences_can_be_disabled(self, ranker, peanut_cookies, restrictions):
        candidate = _candidate("c-1", "Wafers", ["sugar"])
        options = AlternativeSearchOptions(prefer_same_brand=False, prefer_same_category=False)
        (alt,) = ranker.rank(peanut_cookies, [candidate], restrictions, options=options)
        assert alt.match_score == 0

    def test_reasons(self, ranker, restrictions):
        original = Product(
            name="Peanut Cookies",
            ingredients_list="wheat flour, peanut oil, artificial flavor, preservative",
            allergen_warnings=("Contains peanuts", "Contains gluten"),
        )
        candidate = Product(name="Rice Cookies", product_id="c-1", ingredients_list="rice flour, sugar")
        (alt,) = ranker.rank(original, [candidate], restrictions)

        assert alt.reasons == (
            "Gluten-free",
            "Peanut-free",
            "Nut-free",
            "No artificial ingredients",
            "No preservatives",
        )
        # name 1/2 * 25 = 12.5, + 10 artificial + 8 preservative, rounded half up
        assert name_similarity("Rice Cookies", "Peanut Cookies") == 0.5
        assert alt.match_score == 31

    def test_skips_original_and_duplicates(self, ranker, peanut_cookies, restrictions):
        candidates = [
            _candidate("p-1", "Same product", ["sugar"]),
            _candidate("c-1", "Wafers", ["sugar"]),
            _candidate("c-1", "Wafers again", ["sugar"]),
        ]
        ranked = ranker.rank(peanut_cookies, candidates, restrictions)
        assert [alt.product.name for alt in ranked] == ["Wafers"]

    def test_truncates_to_max_results(self, aggregator, peanut_cookies, restrictions):
        ranker = AlternativeRanker(aggregator, AlternativeSearchOptions(max_results=2))
        candidates = [_candidate(f"c-{i}", f"Wafer {i}", ["sugar"]) for i in range(6)]
        assert len(ranker.rank(peanut_cookies, candidates, restrictions)) == 2

    def test_defaults_come_from_engine_config(self, catalog):
        aggregator = ProductSafetyAggregator(
            catalog, config=EngineConfig(max_alternatives=1, min_safety_level=RiskLevel.SAFE)
        )
        ranker = AlternativeRanker(aggregator)
        assert ranker.options.max_results == 1
        assert ranker.options.min_safety_level == RiskLevel.SAFE

    def test_availability_score(self, ranker, peanut_cookies, restrictions):
        candidate = _candidate("c-1", "Wafers", ["sugar"], verification_count=70)
        (alt,) = ranker.rank(peanut_cookies, [candidate], restrictions)
        assert alt.availability_score == 100

    def test_requires_original(self, ranker, restrictions):
        with pytest.raises(InvalidInput):
            ranker.rank(None, [], restrictions)

    def test_display(self, ranker, peanut_cookies, restrictions):
        candidates = [
            _candidate("c-1", "Wafers", ["sugar"]),
            _candidate("c-2", "Generic Wafers", ["sugar"], brand=None),
        ]
        rows = ranker.display(ranker.rank(peanut_cookies, candidates, restrictions))
        by_title = {row["title"]: row for row in rows}
        assert by_title["Wafers"]["subtitle"] == "by Acme"
        assert by_title["Generic Wafers"]["subtitle"] == "Generic brand"
        assert by_title["Wafers"]["safety_badge"] == "safe"
        assert "Peanut-free" in by_title["Wafers"]["reasons"]


class TestSimilarity:
    def test_token_similarity(self):
        assert token_similarity([], ["a"]) == 0.0
        assert token_similarity(["oat", "bar"], ["oat", "bar"]) == 1.0
        assert token_similarity(["oats"], ["oat", "bar"]) == 0.5

    def test_name_similarity_ignores_case_and_punctuation(self):
        assert name_similarity("Choco-Chip!", "choco chip") == 0.5
        assert name_similarity("Crunchy Bar", "crunchy bar") == 1.0

    def test_similar_brand(self):
        assert is_similar_brand("Acme Foods", "ACME")
        assert not is_similar_brand("Acme", "Hearth")
        assert not is_similar_brand(None, "Acme")
