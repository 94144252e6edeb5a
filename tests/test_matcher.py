from safety_engine import IngredientRiskAssessment, RestrictionMatch, RestrictionMatcher, RiskLevel


def _risk(rid, level):
    return IngredientRiskAssessment(restriction_id=rid, risk_level=level)


class TestRestrictionMatcher:
    def setup_method(self):
        self.matcher = RestrictionMatcher()

    def test_filters_to_held_restrictions(self):
        matches = self.matcher.match(
            [_risk("peanut_allergy", "danger"), _risk("vegan", "warning")],
            {"peanut_allergy"},
        )
        assert matches == [RestrictionMatch("peanut_allergy", RiskLevel.DANGER)]

    def test_no_overlap_is_empty_and_safe(self):
        matches = self.matcher.match([_risk("vegan", "danger")], {"peanut_allergy"})
        assert matches == []
        assert self.matcher.worst_level(matches) == RiskLevel.SAFE

    def test_no_data_is_empty(self):
        assert self.matcher.match([], {"peanut_allergy"}) == []

    def test_keeps_assessment_order(self):
        matches = self.matcher.match(
            [_risk("celiac_disease", "caution"), _risk("peanut_allergy", "danger")],
            {"peanut_allergy", "celiac_disease"},
        )
        assert [m.restriction_id for m in matches] == ["celiac_disease", "peanut_allergy"]
        assert self.matcher.worst_level(matches) == RiskLevel.DANGER

    def test_duplicate_ratings_keep_worst(self):
        matches = self.matcher.match(
            [_risk("celiac_disease", "caution"), _risk("celiac_disease", "warning")],
            {"celiac_disease"},
        )
        assert matches == [RestrictionMatch("celiac_disease", RiskLevel.WARNING)]
