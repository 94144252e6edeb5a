import pytest

from safety_engine import ConfidenceScorer
from safety_engine.confidence import round_half_up


class TestConfidenceScorer:
    @pytest.fixture
    def scorer(self):
        return ConfidenceScorer()

    def test_few_ingredients_yield_low_confidence(self, scorer):
        assert scorer.score(5, 80) == 4

    def test_no_ingredients_reports_data_quality(self, scorer):
        assert scorer.score(0, 80) == 80
        assert scorer.score(0, 35.4) == 35

    def test_capped_at_100(self, scorer):
        assert scorer.score(200, 90) == 100
        assert scorer.score(0, 150) == 100

    def test_negative_quality_treated_as_zero(self, scorer):
        assert scorer.score(3, -10) == 0
        assert scorer.score(0, -5) == 0

    def test_rounds_half_up(self, scorer):
        assert scorer.score(1, 50) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4999) == 2

    def test_verification_bonus(self, scorer):
        assert scorer.score(5, 80, verification_count=3) == 7
        assert scorer.score(5, 80, verification_count=500) == 14

    def test_verification_bonus_configurable(self):
        assert ConfidenceScorer(verification_points=0).score(5, 80, verification_count=3) == 4

    @pytest.mark.parametrize("quality", [0, 33.3, 80, 100])
    def test_monotonic_in_ingredient_count(self, scorer, quality):
        previous = scorer.score(1, quality)
        for count in range(2, 301):
            current = scorer.score(count, quality)
            assert current >= previous
            assert 0 <= current <= 100
            previous = current

    def test_monotonic_in_verifications(self, scorer):
        scores = [scorer.score(10, 60, verification_count=v) for v in range(30)]
        assert scores == sorted(scores)

    def test_quality_clamped_to_range(self, scorer):
        assert scorer.score(3, float("inf")) == 3
        assert scorer.score(0, float("inf")) == 100
        assert scorer.score(3, float("nan")) == 0
        assert scorer.score(3, 250) == 3
