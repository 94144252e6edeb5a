"""
Confidence scoring: how much evaluated data backs a verdict, as an int 0-100.

Scoring:
- no ingredients recorded -> the product's own data_quality_score
- otherwise               -> min(100, round(ingredient_count * data_quality_score / 100))
- plus a bounded bonus for independent verifications of the ingredient data;
  with verification_count > 0 the score rises above the plain formula

data_quality_score is clamped to 0-100 first; NaN counts as 0, infinity as 100.
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (no banker's rounding)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return max(0, min(100, int(value)))


class ConfidenceScorer:
    def __init__(self, verification_points: int = 1, verification_bonus_cap: int = 10):
        self.verification_points = max(0, verification_points)
        self.verification_bonus_cap = max(0, verification_bonus_cap)

    def score(
        self,
        ingredient_count: int,
        data_quality_score: float,
        verification_count: int = 0,
    ) -> int:
        quality = float(data_quality_score or 0)
        if math.isnan(quality):
            quality = 0.0
        quality = max(0.0, min(100.0, quality))
        count = max(0, int(ingredient_count or 0))

        if count == 0:
            base = round_half_up(quality)
        else:
            base = min(100, round_half_up(count * quality / 100.0))

        return clamp_score(base + self.verification_bonus(verification_count))

    def verification_bonus(self, verification_count: int) -> int:
        checks = max(0, int(verification_count or 0))
        return min(self.verification_bonus_cap, checks * self.verification_points)
