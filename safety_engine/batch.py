"""
Assess every product in a CSV export against one restriction profile and
write a one-row-per-product safety report.

Input columns: name, ingredients_list, and optionally product_id, barcode,
brand, category, package_size, allergen_warnings ("|"-separated),
data_quality_score, verification_count.

Usage:
    python -m safety_engine.batch --products products.csv --catalog ingredients.csv \
        --restrictions "peanut allergy:life_threatening,celiac" --output report.csv
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable, List, Optional

# Pandas is used for CSV I/O and DataFrame assembly.
import pandas as pd

from .aggregator import ProductSafetyAggregator
from .config import EngineConfig
from .ingredients import IngredientCatalog
from .models import Product, UserRestriction
from .restrictions import parse_restrictions

REPORT_COLUMNS = [
    "product_id",
    "barcode",
    "name",
    "brand",
    "overall_safety_level",
    "safe_ingredients_count",
    "warning_ingredients_count",
    "dangerous_ingredients_count",
    "total_ingredients",
    "confidence_score",
    "risk_factors",
    "warnings",
]


def _cell(value) -> Optional[str]:
    """Pandas yields NaN for blank cells; treat those as missing."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def _number(value, default: float) -> float:
    text = _cell(value)
    if text is None:
        return default
    try:
        return float(text)
    except ValueError:
        return default


def products_from_frame(df: pd.DataFrame) -> List[Product]:
    """Build Product records from a products DataFrame."""
    products: List[Product] = []
    for _, row in df.iterrows():
        warnings = _cell(row.get("allergen_warnings")) or ""
        products.append(
            Product(
                name=_cell(row.get("name")) or "Unknown product",
                ingredients_list=_cell(row.get("ingredients_list")),
                allergen_warnings=tuple(w.strip() for w in warnings.split("|") if w.strip()),
                data_quality_score=_number(row.get("data_quality_score"), 50.0),
                verification_count=int(_number(row.get("verification_count"), 0)),
                product_id=_cell(row.get("product_id")),
                barcode=_cell(row.get("barcode")),
                brand=_cell(row.get("brand")),
                category=_cell(row.get("category")),
                package_size=_cell(row.get("package_size")),
            )
        )
    return products


def assessment_report(
    aggregator: ProductSafetyAggregator,
    products: Iterable[Product],
    restrictions: Iterable[UserRestriction],
) -> pd.DataFrame:
    """Assess each product and collect one report row per product."""
    products = list(products)
    assessments = aggregator.assess_many(products, restrictions)
    rows = []
    for product, assessment in zip(products, assessments):
        data = assessment.to_dict()
        rows.append(
            {
                "product_id": product.product_id,
                "barcode": product.barcode,
                "name": product.name,
                "brand": product.brand,
                "overall_safety_level": data["overall_safety_level"],
                "safe_ingredients_count": assessment.safe_ingredients_count,
                "warning_ingredients_count": assessment.warning_ingredients_count,
                "dangerous_ingredients_count": assessment.dangerous_ingredients_count,
                "total_ingredients": assessment.total_ingredients,
                "confidence_score": assessment.confidence_score,
                "risk_factors": json.dumps(data["risk_factors"], ensure_ascii=False),
                "warnings": " | ".join(assessment.warnings),
            }
        )
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Batch safety report for a products CSV")
    parser.add_argument("--products", required=True, help="CSV of products to assess")
    parser.add_argument("--catalog", required=True, help="CSV of ingredient risk assessments")
    parser.add_argument(
        "--restrictions",
        required=True,
        help='Comma-separated restrictions with optional severity (e.g. "peanut:life_threatening,celiac")',
    )
    parser.add_argument("--output", default="db/reports/safety_report.csv", help="Report CSV path")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    catalog = IngredientCatalog.from_csv(args.catalog)
    aggregator = ProductSafetyAggregator(catalog, config=EngineConfig.from_env())

    # Keep identifiers as text so leading zeros in barcodes survive.
    df = pd.read_csv(args.products, dtype=str)
    report = assessment_report(aggregator, products_from_frame(df), parse_restrictions(args.restrictions))

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    report.to_csv(output, index=False, encoding="utf-8")

    print(f"Done! Assessed {len(report)} products.")
    print(f"Saved to {output}")


if __name__ == "__main__":
    main()
