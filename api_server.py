"""
FastAPI wrapper for the safety assessment engine.

Endpoints:
- GET /health         : readiness probe
- POST /assess        : safety verdict for one product + restriction set
- POST /alternatives  : ranked safer substitutes for a product

Ingredient risk data comes from the CSV named by SAFETY_ENGINE_CATALOG, and
can be supplemented per request with `ingredient_risks`.

Run locally:
    uvicorn api_server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional, Union

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator

from safety_engine import (
    AlternativeRanker,
    AlternativeSearchOptions,
    EngineConfig,
    Ingredient,
    IngredientCatalog,
    IngredientRiskAssessment,
    IngredientRiskLookup,
    InvalidInput,
    Product,
    ProductSafetyAggregator,
    RiskLevel,
    UserRestriction,
)

log = logging.getLogger("api_server")

app = FastAPI(
    title="Food Safety Assessment API",
    description="REST API for product safety verdicts against dietary restrictions.",
    version="1.0.0",
)

# CORS for broad consumption; tighten in production by setting allowed origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ProductPayload(BaseModel):
    name: str = Field(..., description="Product name")
    product_id: Optional[str] = None
    barcode: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    package_size: Optional[str] = None
    ingredients_list: Union[str, List[str], None] = Field(
        None, description="Free-text label ingredients or a list of names"
    )
    allergen_warnings: List[str] = Field(default_factory=list)
    data_quality_score: float = Field(50.0, description="0-100 source data quality")
    verification_count: int = 0

    def to_product(self) -> Product:
        return Product(
            name=self.name,
            ingredients_list=self.ingredients_list,
            allergen_warnings=tuple(self.allergen_warnings),
            data_quality_score=self.data_quality_score,
            verification_count=self.verification_count,
            product_id=self.product_id,
            barcode=self.barcode,
            brand=self.brand,
            category=self.category,
            package_size=self.package_size,
        )


class RestrictionPayload(BaseModel):
    restriction_id: str
    severity: str = "moderate"
    is_active: bool = True

    @field_validator("restriction_id")
    @classmethod
    def _normalize_id(cls, v: str) -> str:
        return v.strip().lower()


class IngredientRiskPayload(BaseModel):
    ingredient: str
    restriction_id: str
    risk_level: str


class AssessRequest(BaseModel):
    product: ProductPayload
    restrictions: List[RestrictionPayload] = Field(default_factory=list)
    ingredient_risks: List[IngredientRiskPayload] = Field(
        default_factory=list,
        description="Extra ingredient risk ratings; these take precedence over the catalog.",
    )


class AlternativesRequest(AssessRequest):
    candidates: List[ProductPayload] = Field(default_factory=list)
    max_results: int = 5
    min_safety_level: str = "caution"


class _LayeredLookup(IngredientRiskLookup):
    """Request-level ratings first, shared catalog second."""

    def __init__(self, overrides: IngredientCatalog, fallback: IngredientRiskLookup):
        self.overrides = overrides
        self.fallback = fallback

    def risks_for(self, ingredient_name: str):
        if ingredient_name in self.overrides:
            return self.overrides.risks_for(ingredient_name)
        return self.fallback.risks_for(ingredient_name)


def _load_catalog() -> IngredientCatalog:
    path = os.environ.get("SAFETY_ENGINE_CATALOG")
    if not path:
        return IngredientCatalog()
    try:
        return IngredientCatalog.from_csv(path)
    except FileNotFoundError as exc:
        log.warning("Ingredient catalog unavailable: %s", exc)
        return IngredientCatalog()


# Shared singletons
catalog = _load_catalog()
config = EngineConfig.from_env()


def _aggregator(request: AssessRequest) -> ProductSafetyAggregator:
    lookup: IngredientRiskLookup = catalog
    if request.ingredient_risks:
        grouped: Dict[str, List[IngredientRiskAssessment]] = {}
        for risk in request.ingredient_risks:
            grouped.setdefault(risk.ingredient, []).append(
                IngredientRiskAssessment(restriction_id=risk.restriction_id, risk_level=risk.risk_level)
            )
        overrides = IngredientCatalog(
            Ingredient(name=name, risk_assessments=tuple(items)) for name, items in grouped.items()
        )
        lookup = _LayeredLookup(overrides, catalog)
    return ProductSafetyAggregator(lookup, config=config)


def _restrictions(payloads: List[RestrictionPayload]) -> List[UserRestriction]:
    return [
        UserRestriction(restriction_id=p.restriction_id, severity=p.severity, is_active=p.is_active)
        for p in payloads
    ]


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/assess")
def assess(request: AssessRequest) -> Dict:
    try:
        aggregator = _aggregator(request)
        assessment = aggregator.assess(request.product.to_product(), _restrictions(request.restrictions))
    except InvalidInput as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {"product": request.product.name, "assessment": assessment.to_dict()}


@app.post("/alternatives")
def alternatives(request: AlternativesRequest) -> Dict:
    try:
        aggregator = _aggregator(request)
        ranker = AlternativeRanker(aggregator)
        options = AlternativeSearchOptions(
            max_results=request.max_results,
            min_safety_level=RiskLevel.coerce(request.min_safety_level),
        )
        ranked = ranker.rank(
            request.product.to_product(),
            [c.to_product() for c in request.candidates],
            _restrictions(request.restrictions),
            options=options,
        )
    except InvalidInput as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {"product": request.product.name, "alternatives": ranker.display(ranked)}


if __name__ == "__main__":
    uvicorn.run("api_server:app", host="0.0.0.0", port=8000, reload=False)
