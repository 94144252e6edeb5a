"""
Safety assessment engine: evaluates a product's ingredients against a user's
dietary restrictions and returns a verdict, confidence score, and risk factors.

Expose the main classes so consumers can import directly from the package.
"""

from .models import (
    DietaryRestriction,
    Ingredient,
    IngredientRiskAssessment,
    Product,
    RestrictionCategory,
    RestrictionSeverity,
    RiskFactor,
    RiskLevel,
    SafetyAssessment,
    UserRestriction,
    worst,
    worst_of,
)
from .errors import InvalidInput
from .config import EngineConfig
from .ingredients import IngredientCatalog, IngredientRiskLookup
from .matcher import RestrictionMatch, RestrictionMatcher
from .confidence import ConfidenceScorer
from .aggregator import ProductSafetyAggregator
from .alternatives import AlternativeProduct, AlternativeRanker, AlternativeSearchOptions
from .restrictions import resolve_restriction_id, restriction_label

__all__ = [
    "AlternativeProduct",
    "AlternativeRanker",
    "AlternativeSearchOptions",
    "ConfidenceScorer",
    "DietaryRestriction",
    "EngineConfig",
    "Ingredient",
    "IngredientCatalog",
    "IngredientRiskAssessment",
    "IngredientRiskLookup",
    "InvalidInput",
    "Product",
    "ProductSafetyAggregator",
    "RestrictionCategory",
    "RestrictionMatch",
    "RestrictionMatcher",
    "RestrictionSeverity",
    "RiskFactor",
    "RiskLevel",
    "SafetyAssessment",
    "UserRestriction",
    "resolve_restriction_id",
    "restriction_label",
    "worst",
    "worst_of",
]
