import itertools

import pytest

from safety_engine import (
    InvalidInput,
    Product,
    RestrictionSeverity,
    RiskLevel,
    SafetyAssessment,
    UserRestriction,
    worst,
    worst_of,
)

LEVELS = list(RiskLevel)


class TestRiskLevelOrdering:
    def test_total_order(self):
        assert RiskLevel.SAFE < RiskLevel.CAUTION < RiskLevel.WARNING < RiskLevel.DANGER
        shuffled = [RiskLevel.DANGER, RiskLevel.SAFE, RiskLevel.WARNING, RiskLevel.CAUTION]
        assert sorted(shuffled) == LEVELS

    def test_order_is_not_alphabetical(self):
        # "caution" < "danger" < "safe" as plain strings
        assert RiskLevel.SAFE < RiskLevel.DANGER
        assert max(LEVELS) == RiskLevel.DANGER

    @pytest.mark.parametrize("a,b", list(itertools.product(LEVELS, LEVELS)))
    def test_worst_is_commutative(self, a, b):
        assert worst(a, b) == worst(b, a)
        assert worst(a, b) == max(a, b)

    @pytest.mark.parametrize("a", LEVELS)
    def test_worst_is_idempotent(self, a):
        assert worst(a, a) == a

    def test_worst_is_associative(self):
        for a, b, c in itertools.product(LEVELS, repeat=3):
            assert worst(worst(a, b), c) == worst(a, worst(b, c))
            assert worst_of([a, b, c]) == worst(a, worst(b, c))

    def test_worst_of_empty_is_safe(self):
        assert worst_of([]) == RiskLevel.SAFE

    def test_worst_of_generator(self):
        assert worst_of(level for level in (RiskLevel.CAUTION, RiskLevel.WARNING)) == RiskLevel.WARNING

    def test_plain_strings_use_risk_order(self):
        assert worst_of(["danger"]) == RiskLevel.DANGER
        assert worst(RiskLevel.SAFE, "danger") == RiskLevel.DANGER
        assert worst("caution", RiskLevel.WARNING) == RiskLevel.WARNING
        assert RiskLevel.SAFE < "danger"
        assert "danger" > RiskLevel.SAFE
        assert RiskLevel.DANGER >= "Caution"

    def test_unknown_string_rejected(self):
        with pytest.raises(InvalidInput):
            worst(RiskLevel.SAFE, "lethal")
        with pytest.raises(InvalidInput):
            RiskLevel.SAFE < "lethal"

    def test_rank_follows_declaration_order(self):
        assert [level.rank for level in LEVELS] == [0, 1, 2, 3]
        assert RestrictionSeverity.LIFE_THREATENING.rank == 3

    def test_coerce(self):
        assert RiskLevel.coerce("DANGER") == RiskLevel.DANGER
        assert RiskLevel.coerce(" caution ") == RiskLevel.CAUTION
        assert RiskLevel.coerce(RiskLevel.SAFE) is RiskLevel.SAFE
        with pytest.raises(InvalidInput):
            RiskLevel.coerce("deadly")


class TestRestrictionSeverity:
    def test_ordering(self):
        assert (
            RestrictionSeverity.MILD
            < RestrictionSeverity.MODERATE
            < RestrictionSeverity.SEVERE
            < RestrictionSeverity.LIFE_THREATENING
        )

    def test_user_restriction_coerces_severity(self):
        restriction = UserRestriction(restriction_id="peanut_allergy", severity="life_threatening")
        assert restriction.severity == RestrictionSeverity.LIFE_THREATENING
        assert restriction.is_active

    def test_unknown_severity_rejected(self):
        with pytest.raises(InvalidInput):
            UserRestriction(restriction_id="peanut_allergy", severity="extreme")


class TestProduct:
    def test_list_ingredients_drop_blanks(self):
        product = Product(name="Mix", ingredients_list=["sugar", " ", "salt "])
        assert product.ingredient_names() == ["sugar", "salt"]

    def test_text_ingredients_split_on_top_level_separators(self):
        product = Product(name="Bread", ingredients_list="Wheat flour (wheat, malt), sugar; salt.")
        assert product.ingredient_names() == ["Wheat flour (wheat, malt)", "sugar", "salt"]

    def test_missing_ingredients(self):
        assert Product(name="Unknown").ingredient_names() == []
        assert Product(name="Blank", ingredients_list="  ").ingredient_names() == []

    def test_from_dict(self):
        product = Product.from_dict(
            {
                "id": "p-9",
                "name": "Granola",
                "ingredients_list": "oats, honey",
                "allergen_warnings": ["May contain nuts"],
                "data_quality_score": 70,
                "verification_count": 2,
            }
        )
        assert product.product_id == "p-9"
        assert product.allergen_warnings == ("May contain nuts",)
        assert product.identity() == "p-9"

    def test_from_dict_requires_name(self):
        with pytest.raises(InvalidInput):
            Product.from_dict({"ingredients_list": "oats"})

    def test_from_dict_rejects_non_numeric_quality(self):
        with pytest.raises(InvalidInput):
            Product.from_dict({"name": "Granola", "data_quality_score": "high"})


class TestSafetyAssessment:
    def test_to_dict_shape(self):
        assessment = SafetyAssessment(overall_safety_level=RiskLevel.SAFE, confidence_score=40)
        data = assessment.to_dict()
        assert data["overall_safety_level"] == "safe"
        assert data["risk_factors"] == {"risks": []}
        assert data["confidence_score"] == 40
        assert data["warnings"] == []

    def test_is_frozen(self):
        assessment = SafetyAssessment(overall_safety_level=RiskLevel.SAFE)
        with pytest.raises(AttributeError):
            assessment.overall_safety_level = RiskLevel.DANGER
