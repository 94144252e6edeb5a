"""
Restriction matching: which of the caller's restrictions an ingredient implicates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterable, List

from .models import IngredientRiskAssessment, RiskLevel, worst_of


@dataclass(frozen=True)
class RestrictionMatch:
    restriction_id: str
    risk_level: RiskLevel


class RestrictionMatcher:
    """
    Pure filter over an ingredient's risk assessments. An ingredient with no
    overlapping assessment yields no matches, which callers read as safe;
    missing data is never escalated here.
    """

    def match(
        self,
        assessments: Iterable[IngredientRiskAssessment],
        active_restriction_ids: AbstractSet[str],
    ) -> List[RestrictionMatch]:
        """
        Return one match per held restriction, in assessment order. When the
        reference data rates the same restriction twice, the worse rating wins.
        """
        levels = {}
        for assessment in assessments:
            rid = assessment.restriction_id
            if rid not in active_restriction_ids:
                continue
            current = levels.get(rid)
            levels[rid] = assessment.risk_level if current is None else worst_of(
                (current, assessment.risk_level)
            )
        return [RestrictionMatch(restriction_id=rid, risk_level=level) for rid, level in levels.items()]

    @staticmethod
    def worst_level(matches: Iterable[RestrictionMatch]) -> RiskLevel:
        return worst_of(m.risk_level for m in matches)
