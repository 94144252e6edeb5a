"""
Safer-alternative ranking for a product the user cannot have.

Each candidate is assessed with the same aggregator and restriction set as
the original, filtered by a minimum acceptable level, then ranked by safety
first and a token-overlap match score second.

Match score breakdown:
  Same category          +30
  Same / similar brand   +20 / +10
  Name similarity        up to +25
  Package size           up to +15
  Ingredient improvement +8..+12 per removed concern
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .aggregator import ProductSafetyAggregator
from .confidence import round_half_up
from .errors import InvalidInput
from .models import Product, RiskLevel, SafetyAssessment, UserRestriction
from .restrictions import free_from_label

# term in ingredients text -> (points, reason)
INGREDIENT_IMPROVEMENTS: Tuple[Tuple[str, int, str], ...] = (
    ("artificial", 10, "No artificial ingredients"),
    ("preservative", 8, "No preservatives"),
    ("high fructose", 12, "No high fructose corn syrup"),
)

# reason -> (terms in allergen warnings, terms in ingredients text)
FREE_FROM_MARKERS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    "Nut-free": (("nut", "peanut"), ()),
    "Gluten-free": (("gluten",), ("wheat", "gluten")),
    "Dairy-free": (("milk",), ("milk", "dairy")),
}


@dataclass
class AlternativeSearchOptions:
    max_results: int = 5
    min_safety_level: RiskLevel = RiskLevel.CAUTION
    prefer_same_brand: bool = True
    prefer_same_category: bool = True
    max_candidates: int = 50


@dataclass(frozen=True)
class AlternativeProduct:
    product: Product
    assessment: SafetyAssessment
    match_score: int
    availability_score: int
    reasons: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def safety_level(self) -> RiskLevel:
        return self.assessment.overall_safety_level


def _tokens(text: Optional[str], pattern: str = r"[^a-z0-9\s]") -> List[str]:
    return re.sub(pattern, "", (text or "").lower()).split()


def token_similarity(words1: Sequence[str], words2: Sequence[str]) -> float:
    """
    Share of words in the first list with a containing/contained word in the
    second, over the longer list's length.
    """
    if not words1 or not words2:
        return 0.0
    matches = sum(
        1 for w1 in words1 if any(w2 in w1 or w1 in w2 for w2 in words2)
    )
    return matches / max(len(words1), len(words2))


def name_similarity(name1: Optional[str], name2: Optional[str]) -> float:
    return token_similarity(_tokens(name1), _tokens(name2))


def size_similarity(size1: Optional[str], size2: Optional[str]) -> float:
    return token_similarity(_tokens(size1, r"[^a-z0-9.\s]"), _tokens(size2, r"[^a-z0-9.\s]"))


def is_similar_brand(brand1: Optional[str], brand2: Optional[str]) -> bool:
    """Different spellings or subsidiaries of the same brand."""
    if not brand1 or not brand2:
        return False
    n1 = re.sub(r"[^a-z0-9]", "", brand1.lower())
    n2 = re.sub(r"[^a-z0-9]", "", brand2.lower())
    if not n1 or not n2:
        return False
    return n1 in n2 or n2 in n1 or token_similarity(_tokens(brand1), _tokens(brand2)) > 0.7


class AlternativeRanker:
    """
    Ranks substitute products. Reuses the aggregator's verdict as the primary
    filter so "unsafe" and "safe alternative" always agree.
    """

    def __init__(
        self,
        aggregator: ProductSafetyAggregator,
        options: Optional[AlternativeSearchOptions] = None,
    ):
        self.aggregator = aggregator
        self.options = options or AlternativeSearchOptions(
            max_results=aggregator.config.max_alternatives,
            min_safety_level=aggregator.config.min_safety_level,
        )
        self.log = logging.getLogger(self.__class__.__name__)

    def rank(
        self,
        original: Product,
        candidates: Iterable[Product],
        restrictions: Iterable[UserRestriction],
        options: Optional[AlternativeSearchOptions] = None,
    ) -> List[AlternativeProduct]:
        opts = options or self.options
        if original is None:
            raise InvalidInput("An original product is required to rank alternatives")
        restrictions = list(restrictions or [])
        original_assessment = self.aggregator.assess(original, restrictions)
        min_level = RiskLevel.coerce(opts.min_safety_level)

        scored: List[AlternativeProduct] = []
        for candidate in self._unique_candidates(original, candidates, opts.max_candidates):
            assessment = self.aggregator.assess(candidate, restrictions)
            if assessment.overall_safety_level > min_level:
                continue
            scored.append(
                self._score(candidate, assessment, original, original_assessment, opts)
            )

        scored.sort(key=lambda alt: (alt.safety_level.rank, -alt.match_score, alt.product.name))
        self.log.debug(
            "Ranked %d acceptable alternatives for %r (min level %s)",
            len(scored),
            original.name,
            min_level.value,
        )
        return scored[: max(0, opts.max_results)]

    @staticmethod
    def _unique_candidates(
        original: Product, candidates: Iterable[Product], limit: int
    ) -> List[Product]:
        seen = set()
        original_ids = {original.product_id, original.barcode} - {None}
        unique: List[Product] = []
        for candidate in candidates or []:
            if candidate is None:
                continue
            ids = {candidate.product_id, candidate.barcode} - {None}
            if ids & original_ids or ids & seen:
                continue
            seen.update(ids)
            unique.append(candidate)
            if len(unique) >= limit:
                break
        return unique

    def _score(
        self,
        candidate: Product,
        assessment: SafetyAssessment,
        original: Product,
        original_assessment: SafetyAssessment,
        opts: AlternativeSearchOptions,
    ) -> AlternativeProduct:
        match_score = 0.0
        reasons = self._restriction_reasons(original_assessment, assessment)
        reasons += self._free_from_reasons(original, candidate)

        if (
            opts.prefer_same_category
            and candidate.category
            and original.category
            and candidate.category.strip().lower() == original.category.strip().lower()
        ):
            match_score += 30

        if opts.prefer_same_brand and candidate.brand and original.brand:
            if candidate.brand.strip().lower() == original.brand.strip().lower():
                match_score += 20
            elif is_similar_brand(candidate.brand, original.brand):
                match_score += 10

        match_score += name_similarity(candidate.name, original.name) * 25

        if candidate.package_size and original.package_size:
            match_score += size_similarity(candidate.package_size, original.package_size) * 15

        points, improvement_reasons = self._ingredient_improvements(candidate, original)
        match_score += points
        reasons += improvement_reasons

        return AlternativeProduct(
            product=candidate,
            assessment=assessment,
            match_score=round_half_up(match_score),
            availability_score=min(100, max(0, candidate.verification_count) * 2),
            reasons=tuple(dict.fromkeys(reasons)),
        )

    @staticmethod
    def _restriction_reasons(
        original: SafetyAssessment, candidate: SafetyAssessment
    ) -> List[str]:
        """Restrictions the original trips that the candidate does not."""
        implicated = [
            rid for factor in original.risk_factors for rid in factor.restrictions_affected
        ]
        still = {rid for factor in candidate.risk_factors for rid in factor.restrictions_affected}
        return [free_from_label(rid) for rid in dict.fromkeys(implicated) if rid not in still]

    @staticmethod
    def _free_from_reasons(original: Product, candidate: Product) -> List[str]:
        reasons = []
        for reason, (warning_terms, ingredient_terms) in FREE_FROM_MARKERS.items():
            if _has_marker(original, warning_terms, ingredient_terms) and not _has_marker(
                candidate, warning_terms, ingredient_terms
            ):
                reasons.append(reason)
        return reasons

    @staticmethod
    def _ingredient_improvements(candidate: Product, original: Product) -> Tuple[int, List[str]]:
        candidate_text = _ingredients_text(candidate)
        original_text = _ingredients_text(original)
        points = 0
        reasons = []
        for term, value, reason in INGREDIENT_IMPROVEMENTS:
            if term in original_text and term not in candidate_text:
                points += value
                reasons.append(reason)
        return points, reasons

    @staticmethod
    def display(alternatives: Iterable[AlternativeProduct]) -> List[Dict]:
        """Formatted alternative suggestions for UI display."""
        return [
            {
                "title": alt.product.name,
                "subtitle": f"by {alt.product.brand}" if alt.product.brand else "Generic brand",
                "safety_badge": alt.safety_level.value,
                "match_score": alt.match_score,
                "reasons": list(alt.reasons),
            }
            for alt in alternatives
        ]


def _ingredients_text(product: Product) -> str:
    return ", ".join(product.ingredient_names()).lower()


def _has_marker(product: Product, warning_terms: Sequence[str], ingredient_terms: Sequence[str]) -> bool:
    warnings = [w.lower() for w in product.allergen_warnings]
    if any(term in w for w in warnings for term in warning_terms):
        return True
    text = _ingredients_text(product)
    return any(term in text for term in ingredient_terms)
