"""
Product safety aggregator: folds a product's ingredient list and a user's
active restrictions into one SafetyAssessment.

Key stages:
- validate inputs (a product, active restrictions only)
- look up each ingredient's curated risk ratings through an injected lookup
- match them against the held restrictions and keep the worst level per ingredient
- bucket each ingredient (safe / caution-or-warning / danger) and record risk factors
- reduce to the overall verdict and score confidence from data completeness
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .confidence import ConfidenceScorer
from .config import EngineConfig
from .errors import InvalidInput
from .ingredients import IngredientRiskLookup
from .matcher import RestrictionMatcher
from .models import (
    Product,
    RestrictionSeverity,
    RiskFactor,
    RiskLevel,
    SafetyAssessment,
    UserRestriction,
    worst_of,
)
from .restrictions import restriction_label


class ProductSafetyAggregator:
    """
    Pure, stateless assessment over in-memory inputs. Inject the ingredient
    lookup (and optionally matcher/scorer/config) to adapt to your stack.
    """

    def __init__(
        self,
        ingredient_lookup: IngredientRiskLookup,
        matcher: Optional[RestrictionMatcher] = None,
        confidence_scorer: Optional[ConfidenceScorer] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.ingredient_lookup = ingredient_lookup
        self.config = config or EngineConfig()
        self.matcher = matcher or RestrictionMatcher()
        self.confidence_scorer = confidence_scorer or ConfidenceScorer(
            verification_points=self.config.verification_points,
            verification_bonus_cap=self.config.verification_bonus_cap,
        )
        self.log = logging.getLogger(self.__class__.__name__)

    def assess(
        self, product: Product, restrictions: Iterable[UserRestriction]
    ) -> SafetyAssessment:
        """
        Evaluate every ingredient of the product against the held restrictions
        and return a fresh SafetyAssessment.
        """
        if product is None:
            self._reject("A product is required for a safety assessment")
        if not isinstance(product, Product):
            self._reject(f"Expected Product, got {type(product).__name__}")
        severities = self._active_severities(restrictions)
        held = frozenset(severities)

        safe_count = 0
        warning_count = 0
        danger_count = 0
        levels: List[RiskLevel] = []
        risk_factors: List[RiskFactor] = []

        names = product.ingredient_names()
        for name in names:
            matches = self.matcher.match(self.ingredient_lookup.risks_for(name), held)
            level = self.matcher.worst_level(matches)
            levels.append(level)

            if level == RiskLevel.SAFE:
                safe_count += 1
                continue
            if level == RiskLevel.DANGER:
                danger_count += 1
            else:
                # caution and warning share one bucket
                warning_count += 1

            if level == RiskLevel.CAUTION and not self.config.record_caution_factors:
                continue
            affected = tuple(m.restriction_id for m in matches if m.risk_level > RiskLevel.SAFE)
            risk_factors.append(
                RiskFactor(
                    ingredient_name=name,
                    risk_level=level,
                    restrictions_affected=affected,
                    highest_severity=max(severities[rid] for rid in affected),
                )
            )

        confidence = self.confidence_scorer.score(
            ingredient_count=len(names),
            data_quality_score=product.data_quality_score,
            verification_count=product.verification_count,
        )
        overall = worst_of(levels)
        warnings = self._critical_warnings(risk_factors, confidence, len(names))

        self.log.debug(
            "Assessed %r: %s (safe=%d, warning=%d, danger=%d, confidence=%d)",
            product.name,
            overall.value,
            safe_count,
            warning_count,
            danger_count,
            confidence,
        )
        return SafetyAssessment(
            overall_safety_level=overall,
            risk_factors=tuple(risk_factors),
            safe_ingredients_count=safe_count,
            warning_ingredients_count=warning_count,
            dangerous_ingredients_count=danger_count,
            confidence_score=confidence,
            total_ingredients=len(names),
            warnings=warnings,
        )

    def assess_many(
        self, products: Sequence[Product], restrictions: Iterable[UserRestriction]
    ) -> List[SafetyAssessment]:
        """Assess each product independently against the same restriction set."""
        restrictions = list(restrictions)
        return [self.assess(product, restrictions) for product in products]

    def _active_severities(
        self, restrictions: Optional[Iterable[UserRestriction]]
    ) -> Dict[str, RestrictionSeverity]:
        """
        Validate the restriction set and collapse duplicates to their worst
        severity. Inactive entries are a caller error, never silently dropped.
        """
        severities: Dict[str, RestrictionSeverity] = {}
        for restriction in restrictions or []:
            if not isinstance(restriction, UserRestriction):
                self._reject(f"Expected UserRestriction, got {type(restriction).__name__}")
            if not restriction.is_active:
                self._reject(
                    f"Restriction {restriction.restriction_id!r} is inactive; "
                    "pass active restrictions only"
                )
            if not restriction.restriction_id:
                self._reject("Restriction id is required")
            current = severities.get(restriction.restriction_id)
            if current is None or restriction.severity > current:
                severities[restriction.restriction_id] = restriction.severity
        return severities

    def _critical_warnings(
        self, risk_factors: Sequence[RiskFactor], confidence: int, ingredient_count: int
    ) -> Tuple[str, ...]:
        warnings: List[str] = []
        for factor in risk_factors:
            labels = ", ".join(restriction_label(rid) for rid in factor.restrictions_affected)
            if factor.risk_level == RiskLevel.DANGER:
                warnings.append(
                    f"CRITICAL: {factor.ingredient_name} is dangerous for {labels}. "
                    "Avoid this product."
                )
            elif (
                factor.risk_level == RiskLevel.WARNING
                and factor.highest_severity == RestrictionSeverity.LIFE_THREATENING
            ):
                warnings.append(
                    f"WARNING: {factor.ingredient_name} may affect your life-threatening "
                    f"{labels} restriction. Exercise extreme caution."
                )
        if ingredient_count == 0 or confidence < self.config.low_confidence_threshold:
            warnings.append("NOTICE: Low confidence in this assessment. Verification recommended.")
        return tuple(warnings)

    def _reject(self, message: str) -> None:
        self.log.warning("Rejected assessment input: %s", message)
        raise InvalidInput(message)
