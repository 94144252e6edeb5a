"""
CLI entrypoint to assess a product's safety for a set of dietary restrictions.

Flow:
- Parse user inputs (product JSON, ingredient catalog, restrictions, output format).
- Resolve restriction names to canonical ids and severities.
- Load the ingredient risk catalog and build the aggregator.
- Assess the product; optionally rank safer alternatives from a candidates file.
- Render either a text dashboard or JSON payload and append a history record.
"""

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from safety_engine import (
    AlternativeRanker,
    EngineConfig,
    IngredientCatalog,
    InvalidInput,
    Product,
    ProductSafetyAggregator,
    SafetyAssessment,
)
from safety_engine.restrictions import parse_restrictions, restriction_label

# Simple i18n table for CLI output (extendable with more locales).
TRANSLATIONS = {
    "en": {
        "quick_view": "=== Quick view ===",
        "details": "=== Details ===",
        "verdict": "Verdict",
        "confidence": "Confidence",
        "ingredients": "Ingredients",
        "safe": "safe",
        "concerns": "caution/warning",
        "dangerous": "dangerous",
        "risk_factors": "Risk factors:",
        "no_risk_factors": "No ingredient matches your restrictions.",
        "warnings": "Warnings:",
        "alternatives": "=== Safer alternatives ===",
        "no_alternatives": "No acceptable alternatives found.",
        "level_safe": "SAFE",
        "level_caution": "CAUTION",
        "level_warning": "WARNING",
        "level_danger": "DANGER",
    },
    "pt": {
        "quick_view": "=== Visão rápida ===",
        "details": "=== Detalhes ===",
        "verdict": "Veredicto",
        "confidence": "Confiança",
        "ingredients": "Ingredientes",
        "safe": "seguros",
        "concerns": "atenção/aviso",
        "dangerous": "perigosos",
        "risk_factors": "Fatores de risco:",
        "no_risk_factors": "Nenhum ingrediente corresponde às suas restrições.",
        "warnings": "Avisos:",
        "alternatives": "=== Alternativas mais seguras ===",
        "no_alternatives": "Nenhuma alternativa aceitável encontrada.",
        "level_safe": "SEGURO",
        "level_caution": "ATENÇÃO",
        "level_warning": "AVISO",
        "level_danger": "PERIGO",
    },
}


def _t(key: str, lang: str = "en") -> str:
    """Translate a key to the requested language with English fallback."""
    bundle = TRANSLATIONS.get(lang, TRANSLATIONS["en"])
    return bundle.get(key) or TRANSLATIONS["en"].get(key, key)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Configure and parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Assess a product's safety for a set of dietary restrictions"
    )
    parser.add_argument("--product", required=True, help="Path to a product JSON file")
    parser.add_argument(
        "--catalog",
        required=True,
        help="CSV of ingredient risk assessments (ingredient,restriction_id,risk_level,...)",
    )
    parser.add_argument(
        "--restrictions",
        default="",
        help='Comma-separated restrictions with optional severity (e.g. "peanut:life_threatening,celiac")',
    )
    parser.add_argument(
        "--candidates",
        default=None,
        help="Path to a JSON list of candidate products to rank as safer alternatives",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--lang",
        default="en",
        help="Language for output labels (e.g. en, pt). Defaults to en.",
    )
    parser.add_argument(
        "--history",
        default="db/history/history.csv",
        help="CSV audit log path; pass an empty string to disable",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return parser.parse_args(argv)


def render_bar(score: float, width: int = 30) -> str:
    """ASCII bar to visualize a 0-100 score."""
    filled = int((max(0.0, min(score, 100.0)) / 100.0) * width)
    return f"[{'#' * filled}{'.' * (width - filled)}]"


def render_text_result(product: Product, assessment: SafetyAssessment, lang: str = "en") -> str:
    """Pretty-print the assessment in a text-first dashboard layout."""
    lines = []
    headline = product.name
    if product.brand:
        headline += f" · {product.brand}"

    lines.append(_t("quick_view", lang))
    lines.append(headline)
    lines.append(f"{_t('verdict', lang)}: {_t('level_' + assessment.overall_safety_level.value, lang)}")
    lines.append(
        f"{_t('confidence', lang)}: {assessment.confidence_score}/100 "
        f"{render_bar(assessment.confidence_score)}"
    )
    lines.append(
        f"{_t('ingredients', lang)}: {assessment.total_ingredients} "
        f"({assessment.safe_ingredients_count} {_t('safe', lang)}, "
        f"{assessment.warning_ingredients_count} {_t('concerns', lang)}, "
        f"{assessment.dangerous_ingredients_count} {_t('dangerous', lang)})"
    )

    lines.append("\n" + _t("details", lang))
    lines.append(_t("risk_factors", lang))
    if not assessment.risk_factors:
        lines.append(f"  {_t('no_risk_factors', lang)}")
    for factor in assessment.risk_factors:
        labels = ", ".join(restriction_label(rid) for rid in factor.restrictions_affected)
        lines.append(
            f"  - {factor.ingredient_name}: {_t('level_' + factor.risk_level.value, lang)} ({labels})"
        )
    if assessment.warnings:
        lines.append(f"\n{_t('warnings', lang)}")
        for warning in assessment.warnings:
            lines.append(f"  ! {warning}")
    return "\n".join(lines)


def render_alternatives(display_rows: List[dict], lang: str = "en") -> str:
    lines = ["\n" + _t("alternatives", lang)]
    if not display_rows:
        lines.append(f"  {_t('no_alternatives', lang)}")
    for idx, row in enumerate(display_rows, start=1):
        reasons = ", ".join(row["reasons"])
        lines.append(
            f"  {idx}. {row['title']} ({row['subtitle']}) "
            f"[{_t('level_' + row['safety_badge'], lang)}] {reasons}"
        )
    return "\n".join(lines)


def _load_json(path: str):
    with Path(path).open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _next_history_id(path: Path) -> int:
    """Return the next numeric ID for the history CSV."""
    if not path.exists():
        return 1
    last_id = 0
    with path.open("r", newline="", encoding="utf-8") as fh:
        reader = csv.DictReader(fh)
        for row in reader:
            try:
                last_id = max(last_id, int(row.get("id", 0)))
            except ValueError:
                continue
    return last_id + 1


def append_history(
    history_path: Path,
    product: Product,
    restrictions_text: str,
    assessment: SafetyAssessment,
    lang: str,
    command_label: str = "cli",
) -> None:
    """Persist the assessment to a simple CSV audit log."""
    history_path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = [
        "id",
        "product_id",
        "barcode",
        "product_name",
        "brand",
        "user_restrictions",
        "command",
        "lang",
        "overall_safety_level",
        "confidence_score",
        "assessment",
    ]
    row = {
        "id": _next_history_id(history_path),
        "product_id": product.product_id or "",
        "barcode": product.barcode or "",
        "product_name": product.name,
        "brand": product.brand or "",
        "user_restrictions": restrictions_text,
        "command": command_label,
        "lang": lang,
        "overall_safety_level": assessment.overall_safety_level.value,
        "confidence_score": assessment.confidence_score,
        "assessment": json.dumps(assessment.to_dict(), ensure_ascii=False),
    }

    write_header = not history_path.exists()
    with history_path.open("a", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=fieldnames)
        if write_header:
            writer.writeheader()
        writer.writerow(row)


def main(argv: Optional[List[str]] = None) -> int:
    """Entrypoint: load inputs, run the assessment, render output, and log history."""
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))

    try:
        restrictions = parse_restrictions(args.restrictions)
        product = Product.from_dict(_load_json(args.product))
        catalog = IngredientCatalog.from_csv(args.catalog)
        aggregator = ProductSafetyAggregator(catalog, config=EngineConfig.from_env())
        assessment = aggregator.assess(product, restrictions)

        alternatives = None
        if args.candidates:
            candidates = [Product.from_dict(item) for item in _load_json(args.candidates)]
            ranker = AlternativeRanker(aggregator)
            alternatives = ranker.display(ranker.rank(product, candidates, restrictions))
    except InvalidInput as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 2

    if args.format == "json":
        output = {"product": product.name, "assessment": assessment.to_dict()}
        if alternatives is not None:
            output["alternatives"] = alternatives
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        print(render_text_result(product, assessment, lang=args.lang))
        if alternatives is not None:
            print(render_alternatives(alternatives, lang=args.lang))

    if args.history:
        append_history(
            Path(args.history), product, args.restrictions, assessment, lang=args.lang, command_label="main_cli"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
