"""
Shared domain models used by the safety engine.

- RiskLevel: ordered safe < caution < warning < danger, with worst-of helpers.
- RestrictionSeverity / RestrictionCategory: closed enums for user restrictions.
- DietaryRestriction / UserRestriction: reference data and the user's link to it.
- IngredientRiskAssessment / Ingredient: curated per-restriction ingredient risks.
- Product: normalized product representation independent of source.
- RiskFactor / SafetyAssessment: the engine's immutable output.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .errors import InvalidInput


@lru_cache(maxsize=None)
def _ranks(enum_cls) -> Dict[str, int]:
    return {member.name: index for index, member in enumerate(enum_cls)}


class _RankedEnum(str, Enum):
    """String enum whose members compare by declaration order, not by text."""

    @property
    def rank(self) -> int:
        return _ranks(type(self))[self.name]

    @classmethod
    def coerce(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidInput(f"Unknown {cls.__name__}: {value!r}") from None

    def _other_rank(self, other):
        # Plain strings are members' values; never fall back to str ordering.
        if isinstance(other, (type(self), str)):
            return type(self).coerce(other).rank
        return None

    def __lt__(self, other):
        rank = self._other_rank(other)
        if rank is None:
            return NotImplemented
        return self.rank < rank

    def __le__(self, other):
        rank = self._other_rank(other)
        if rank is None:
            return NotImplemented
        return self.rank <= rank

    def __gt__(self, other):
        rank = self._other_rank(other)
        if rank is None:
            return NotImplemented
        return self.rank > rank

    def __ge__(self, other):
        rank = self._other_rank(other)
        if rank is None:
            return NotImplemented
        return self.rank >= rank


class RiskLevel(_RankedEnum):
    SAFE = "safe"
    CAUTION = "caution"
    WARNING = "warning"
    DANGER = "danger"


class RestrictionSeverity(_RankedEnum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    LIFE_THREATENING = "life_threatening"


class RestrictionCategory(str, Enum):
    ALLERGY = "allergy"
    MEDICAL = "medical"
    LIFESTYLE = "lifestyle"
    RELIGIOUS = "religious"


def worst(a: RiskLevel, b: RiskLevel) -> RiskLevel:
    """Return the more severe of two risk levels; plain strings are coerced."""
    a, b = RiskLevel.coerce(a), RiskLevel.coerce(b)
    return a if a >= b else b


def worst_of(levels: Iterable[RiskLevel]) -> RiskLevel:
    """Reduce any number of levels to the most severe; no evidence means safe."""
    result = RiskLevel.SAFE
    for level in levels:
        result = worst(result, level)
    return result


@dataclass(frozen=True)
class DietaryRestriction:
    """
    Immutable reference entry for a category of dietary concern.
    """

    id: str
    name: str
    category: RestrictionCategory
    common_names: Tuple[str, ...] = ()
    description: Optional[str] = None
    cross_contamination_risk: bool = False
    medical_severity_default: RestrictionSeverity = RestrictionSeverity.MODERATE
    free_from_label: Optional[str] = None


@dataclass(frozen=True)
class UserRestriction:
    """
    A user's (or family member's) link to a DietaryRestriction.
    Inactive entries are soft-deleted and must be filtered out by callers.
    """

    restriction_id: str
    severity: RestrictionSeverity = RestrictionSeverity.MODERATE
    is_active: bool = True
    user_id: Optional[str] = None
    family_member_id: Optional[str] = None
    doctor_verified: bool = False
    notes: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "severity", RestrictionSeverity.coerce(self.severity))


@dataclass(frozen=True)
class IngredientRiskAssessment:
    restriction_id: str
    risk_level: RiskLevel
    risk_description: Optional[str] = None
    cross_contamination_risk: bool = False
    verified_by_expert: bool = False

    def __post_init__(self):
        object.__setattr__(self, "risk_level", RiskLevel.coerce(self.risk_level))


@dataclass(frozen=True)
class Ingredient:
    name: str
    common_names: Tuple[str, ...] = ()
    risk_assessments: Tuple[IngredientRiskAssessment, ...] = ()


# Top-level separators only; commas inside "(wheat, barley)" stay put.
_SEPARATORS = {",", ";"}


@dataclass(frozen=True)
class Product:
    """
    Standardized product model independent of the data store it came from.
    """

    name: str
    ingredients_list: Union[str, Sequence[str], None] = None
    allergen_warnings: Tuple[str, ...] = ()
    data_quality_score: float = 50.0
    verification_count: int = 0
    product_id: Optional[str] = None
    barcode: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    package_size: Optional[str] = None

    def __post_init__(self):
        if self.ingredients_list is not None and not isinstance(self.ingredients_list, str):
            object.__setattr__(self, "ingredients_list", tuple(self.ingredients_list))
        object.__setattr__(self, "allergen_warnings", tuple(self.allergen_warnings or ()))

    def ingredient_names(self) -> List[str]:
        """Names of the ingredients to evaluate, in label order."""
        raw = self.ingredients_list
        if not raw:
            return []
        if isinstance(raw, str):
            parts = _split_top_level(raw)
        else:
            parts = [str(item) for item in raw]
        names = []
        for part in parts:
            cleaned = part.strip().rstrip(".").strip()
            if cleaned:
                names.append(cleaned)
        return names

    def identity(self) -> Optional[str]:
        return self.product_id or self.barcode

    @classmethod
    def from_dict(cls, data: Dict) -> "Product":
        """Build a Product from a products-table row or JSON payload."""
        if not isinstance(data, dict):
            raise InvalidInput(f"Product payload must be an object, got {type(data).__name__}")
        if not data.get("name"):
            raise InvalidInput("Product payload requires a name")
        try:
            quality = float(data.get("data_quality_score", 50) or 0)
            verifications = int(data.get("verification_count", 0) or 0)
        except (TypeError, ValueError):
            raise InvalidInput("data_quality_score and verification_count must be numeric") from None
        return cls(
            name=str(data["name"]),
            ingredients_list=data.get("ingredients_list"),
            allergen_warnings=tuple(data.get("allergen_warnings") or ()),
            data_quality_score=quality,
            verification_count=verifications,
            product_id=data.get("product_id") or data.get("id"),
            barcode=data.get("barcode"),
            brand=data.get("brand"),
            category=data.get("category"),
            package_size=data.get("package_size"),
        )


def _split_top_level(text: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for ch in re.sub(r"\s+", " ", text):
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(0, depth - 1)
        if ch in _SEPARATORS and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


@dataclass(frozen=True)
class RiskFactor:
    ingredient_name: str
    risk_level: RiskLevel
    restrictions_affected: Tuple[str, ...]
    highest_severity: Optional[RestrictionSeverity] = None


@dataclass(frozen=True)
class SafetyAssessment:
    """
    Result of one assessment call. Never mutated; reassess to refresh.
    """

    overall_safety_level: RiskLevel
    risk_factors: Tuple[RiskFactor, ...] = ()
    safe_ingredients_count: int = 0
    warning_ingredients_count: int = 0
    dangerous_ingredients_count: int = 0
    confidence_score: int = 0
    total_ingredients: int = 0
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def is_safe(self) -> bool:
        return self.overall_safety_level == RiskLevel.SAFE

    def worst_factor(self) -> Optional[RiskFactor]:
        if not self.risk_factors:
            return None
        return max(self.risk_factors, key=lambda f: f.risk_level.rank)

    def to_dict(self) -> Dict:
        """Plain dict shaped like the persisted product_safety_assessments row."""
        data = asdict(self)
        data["overall_safety_level"] = self.overall_safety_level.value
        data["risk_factors"] = {
            "risks": [
                {
                    "ingredient_name": f.ingredient_name,
                    "risk_level": f.risk_level.value,
                    "restrictions_affected": list(f.restrictions_affected),
                    "highest_severity": f.highest_severity.value if f.highest_severity else None,
                }
                for f in self.risk_factors
            ]
        }
        data["warnings"] = list(self.warnings)
        return data
